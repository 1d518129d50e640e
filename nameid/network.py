"""
HTTP access to the naming core API and to arbitrary URLs.

All I/O goes through httpx.AsyncClient. Callers may pass their own client
(shared connection pool, custom transport, test doubles); otherwise a
short-lived client is created per call with the configured timeout.
"""

from __future__ import annotations

import contextlib
import logging
from typing import Any, AsyncIterator
from urllib.parse import quote

import httpx

from nameid import DEFAULT_CORE_API_URL, HTTP_TIMEOUT_SECS, MAINNET_ADDRESS_VERSION
from nameid.errors import InvalidParameterError, NameNotFoundError, RemoteServiceError
from nameid.keys import coerce_address

log = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def open_client(
    client: httpx.AsyncClient | None = None, timeout: float = HTTP_TIMEOUT_SECS
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield client if given, else a fresh one that is closed on exit."""
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as fresh:
        yield fresh


async def fetch_text(
    url: str, client: httpx.AsyncClient | None = None, timeout: float = HTTP_TIMEOUT_SECS
) -> httpx.Response:
    """GET url and return the response, whatever its status.

    Transport failures propagate as httpx.HTTPError; status classification
    is the caller's job.
    """
    async with open_client(client, timeout) as http:
        return await http.get(url)


class CoreClient:
    """Name resolver client for the core API.

    Usage:
        core = CoreClient("https://core.blockstack.org")
        info = await core.get_name_info("alice.id")
    """

    def __init__(
        self,
        base_url: str = DEFAULT_CORE_API_URL,
        client: httpx.AsyncClient | None = None,
        timeout: float = HTTP_TIMEOUT_SECS,
        address_version: int = MAINNET_ADDRESS_VERSION,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.client = client
        self.timeout = timeout
        self.address_version = address_version

    @classmethod
    def from_settings(cls, settings, client: httpx.AsyncClient | None = None) -> CoreClient:
        return cls(
            settings.core_api_url,
            client=client,
            timeout=settings.http_timeout,
            address_version=settings.address_version,
        )

    async def get_json(self, path: str, name: str) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            async with open_client(self.client, self.timeout) as http:
                resp = await http.get(url)
        except httpx.HTTPError as e:
            raise RemoteServiceError(f"Core API unreachable at {url}: {e}") from e

        if resp.status_code == 404:
            raise NameNotFoundError(f"Name not found: {name}", status=404)
        if not resp.is_success:
            raise RemoteServiceError(
                f"Core API returned HTTP {resp.status_code} for {url}", status=resp.status_code
            )
        try:
            data = resp.json()
        except ValueError as e:
            raise RemoteServiceError(f"Core API returned invalid JSON for {url}") from e
        if not isinstance(data, dict):
            raise RemoteServiceError(f"Core API returned non-object JSON for {url}")
        return data

    async def get_name_info(self, name: str) -> dict[str, Any]:
        """Fetch {address, zonefile, ...} for a registered name."""
        if not name:
            raise InvalidParameterError("name", "must be non-empty", name)
        info = await self.get_json(f"/v1/names/{quote(name)}", name)
        if info.get("address"):
            info["address"] = coerce_address(info["address"], self.address_version)
        return info

    async def get_zone_file(self, name: str) -> dict[str, Any]:
        """Fetch {zonefile} for a name. A response without zonefile is an error."""
        if not name:
            raise InvalidParameterError("name", "must be non-empty", name)
        data = await self.get_json(f"/v1/names/{quote(name)}/zonefile", name)
        if "zonefile" not in data:
            raise NameNotFoundError(f"No zone file for name: {name}")
        log.debug("Fetched zone file for %s", name)
        return data
