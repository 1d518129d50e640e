"""
Zone file resolution - from a name's zone file to a verified profile.

    zone file text
      ├─ no $ORIGIN ──> legacy person JSON ──> lifted Person profile
      └─ $ORIGIN ────> first URI target ──> token file (HTTP)
                                            └─> [{"token": ...}] ──> verified claim

One structural fallback (legacy JSON) and no retries. Every resolution
re-fetches the token file.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

import httpx

from nameid import (
    HTTP_TIMEOUT_SECS,
    TOKEN_FILE_URI_NAME,
    TOKEN_FILE_URI_PRIORITY,
    TOKEN_FILE_URI_WEIGHT,
    ZONE_FILE_TEMPLATE,
    ZONE_FILE_TTL,
)
from nameid._zonefile import make_zone_file, parse_zone_file
from nameid.errors import (
    InvalidParameterError,
    InvalidProfileTokenError,
    MalformedZoneFileError,
    MissingTokenFileUrlError,
    TokenFileFetchFailedError,
    UnrecognizedProfileFormatError,
)
from nameid.network import CoreClient, fetch_text
from nameid.profiles.legacy import get_person_from_legacy_format
from nameid.profiles.tokens import extract_profile

log = logging.getLogger(__name__)


def _token_file_zone(origin: str, token_file_url: str) -> dict[str, Any]:
    return {
        "$origin": origin,
        "$ttl": ZONE_FILE_TTL,
        "uri": [{
            "name": TOKEN_FILE_URI_NAME,
            "priority": TOKEN_FILE_URI_PRIORITY,
            "weight": TOKEN_FILE_URI_WEIGHT,
            "target": token_file_url,
        }],
    }


# ---------------------------------------------------------------------------
# Name zone file value object
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NameZoneFile:
    """A name's zone file pointing at one profile token file.

    Scheme-less token file URLs get https://, as some historical zone
    files were published without one.
    """

    name: str
    token_file_url: str

    def __post_init__(self) -> None:
        if "." not in self.name:
            raise InvalidParameterError(
                "name", "not a valid name (does not include a '.')", self.name
            )
        url = self.token_file_url
        if "://" not in url:
            url = f"https://{url}"
            object.__setattr__(self, "token_file_url", url)
        try:
            hostname = urlsplit(url).hostname
        except ValueError:
            hostname = None
        if not hostname or "." not in hostname:
            raise InvalidParameterError(
                "tokenFileUrl", "not a valid absolute URL with a dotted hostname", url
            )

    @classmethod
    def from_json(cls, zone: dict[str, Any]) -> NameZoneFile:
        if "$origin" not in zone:
            raise InvalidParameterError("zone", "attribute $origin does not exist", zone)
        if "uri" not in zone:
            raise InvalidParameterError("zone", "attribute uri does not exist", zone)
        if not zone["uri"]:
            raise InvalidParameterError("zone", "attribute uri has no elements", zone)
        return cls(zone["$origin"], zone["uri"][0]["target"])

    @classmethod
    def from_string(cls, text: str) -> NameZoneFile:
        try:
            zone = parse_zone_file(text)
        except ValueError as e:
            raise MalformedZoneFileError(str(e)) from e
        return cls.from_json(zone)

    @classmethod
    async def lookup_by_name(cls, name: str, core: CoreClient | None = None) -> NameZoneFile:
        """Fetch and parse a name's current zone file. Trusts the core node."""
        core = core or CoreClient()
        response = await core.get_zone_file(name)
        return cls.from_string(response["zonefile"])

    def to_json(self) -> dict[str, Any]:
        return _token_file_zone(self.name, self.token_file_url)

    def to_string(self) -> str:
        return make_zone_file(self.to_json(), ZONE_FILE_TEMPLATE)

    def __str__(self) -> str:
        return self.to_string()


# ---------------------------------------------------------------------------
# Zone file helpers
# ---------------------------------------------------------------------------

def make_profile_zone_file(origin: str, token_file_url: str) -> str:
    """Render a zone file whose single URI record points at token_file_url."""
    if "://" not in token_file_url:
        raise InvalidParameterError("tokenFileUrl", "missing URL scheme", token_file_url)
    scheme, rest = token_file_url.split("://", 1)
    domain, _, path = rest.partition("/")
    target = f"{scheme}://{domain}/{path}"
    return make_zone_file(_token_file_zone(origin, target), ZONE_FILE_TEMPLATE)


def get_token_file_url(zone: dict[str, Any]) -> str | None:
    """First URI record target, defaulting to https. None if absent."""
    records = zone.get("uri")
    if not isinstance(records, list) or not records:
        return None
    first = records[0]
    if not isinstance(first, dict) or not first.get("target"):
        return None
    url = first["target"]
    if "://" not in url:
        url = f"https://{url}"
    return url


def parse_token_file(body: str) -> str:
    """Return the first token of a token file body."""
    try:
        records = json.loads(body)
    except ValueError as e:
        raise InvalidProfileTokenError("body is not JSON", body) from e
    if not isinstance(records, list):
        raise InvalidProfileTokenError("body is not a JSON array", body)
    if not records:
        raise InvalidProfileTokenError("the profile token file has no elements", body)
    first = records[0]
    token = first.get("token") if isinstance(first, dict) else None
    if not isinstance(token, str) or not token:
        raise InvalidProfileTokenError(
            "the first element of the profile token file has no token", body
        )
    return token


async def fetch_profile_token(
    token_file_url: str,
    client: httpx.AsyncClient | None = None,
    timeout: float = HTTP_TIMEOUT_SECS,
) -> str:
    """Fetch a token file and return its first token."""
    try:
        resp = await fetch_text(token_file_url, client, timeout)
    except httpx.HTTPError as e:
        raise TokenFileFetchFailedError(token_file_url, str(e)) from e
    if not resp.is_success:
        raise TokenFileFetchFailedError(
            token_file_url, f"HTTP {resp.status_code}", status=resp.status_code
        )
    return parse_token_file(resp.text)


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def _resolve_legacy(text: str) -> dict[str, Any]:
    try:
        legacy = json.loads(text)
        person = get_person_from_legacy_format(legacy)
    except ValueError as e:
        raise UnrecognizedProfileFormatError(
            "Zone file has no $ORIGIN and is not a legacy profile"
        ) from e
    log.info("Zone file has no $ORIGIN, resolved as legacy profile")
    return person


async def resolve_zone_file_to_profile(
    zone_file: str,
    public_key_or_address: str,
    client: httpx.AsyncClient | None = None,
    timeout: float = HTTP_TIMEOUT_SECS,
) -> dict[str, Any]:
    """Resolve zone file text to the profile it points at, verified against
    public_key_or_address.
    """
    try:
        zone = parse_zone_file(zone_file)
    except ValueError as e:
        raise MalformedZoneFileError(str(e)) from e

    if "$origin" not in zone:
        return _resolve_legacy(zone_file)

    token_file_url = get_token_file_url(zone)
    if token_file_url is None:
        raise MissingTokenFileUrlError(
            f"Zone file for {zone['$origin']} has no token file URI record"
        )

    log.info("Fetching token file %s for %s", token_file_url, zone["$origin"])
    token = await fetch_profile_token(token_file_url, client, timeout)
    return extract_profile(token, public_key_or_address)
