"""
Storage hub connection and upload.

Connecting proves control of the app key: the hub hands out a challenge
text, we sign sha256(challenge) and the resulting bearer token authorizes
writes to the bucket named by the key's address.
"""

from __future__ import annotations

import base64
import hashlib
import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from nameid import HTTP_TIMEOUT_SECS
from nameid.config import load_settings
from nameid.errors import RemoteServiceError
from nameid.keys import compressed_public_key, public_key_to_address, sign_digest_der
from nameid.network import open_client

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class HubConfig:
    address: str
    url_prefix: str
    token: str
    server: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "url_prefix": self.url_prefix,
            "token": self.token,
            "server": self.server,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HubConfig:
        return cls(
            address=data["address"],
            url_prefix=data["url_prefix"],
            token=data["token"],
            server=data["server"],
        )


def _json_body(resp: httpx.Response, what: str) -> dict[str, Any]:
    if not resp.is_success:
        raise RemoteServiceError(f"{what} returned HTTP {resp.status_code}", status=resp.status_code)
    try:
        data = resp.json()
    except ValueError as e:
        raise RemoteServiceError(f"{what} returned invalid JSON") from e
    if not isinstance(data, dict):
        raise RemoteServiceError(f"{what} returned non-object JSON")
    return data


def _hub_server(hub_url: str | None) -> str:
    """hub_url without trailing slash; the configured hub when None."""
    return (hub_url or load_settings().hub_url).rstrip("/")


async def get_hub_info(
    hub_url: str | None, client: httpx.AsyncClient | None = None, timeout: float = HTTP_TIMEOUT_SECS
) -> dict[str, Any]:
    url = f"{_hub_server(hub_url)}/hub_info"
    log.info("Fetching hub info from %s", url)
    try:
        async with open_client(client, timeout) as http:
            resp = await http.get(url)
    except httpx.HTTPError as e:
        raise RemoteServiceError(f"Hub unreachable at {url}: {e}") from e
    return _json_body(resp, url)


def make_hub_token(challenge_text: str, signer_private_key: str) -> str:
    """base64(JSON {publickey, signature}) over sha256(challenge_text)."""
    digest = hashlib.sha256(challenge_text.encode("utf-8")).digest()
    token = {
        "publickey": compressed_public_key(signer_private_key),
        "signature": sign_digest_der(signer_private_key, digest).hex(),
    }
    return base64.b64encode(json.dumps(token, separators=(",", ":")).encode("utf-8")).decode("ascii")


async def connect_to_hub(
    hub_url: str | None,
    signer_private_key: str,
    client: httpx.AsyncClient | None = None,
    timeout: float = HTTP_TIMEOUT_SECS,
) -> HubConfig:
    """Sign the hub challenge; hub_url None means the configured hub."""
    server = _hub_server(hub_url)
    info = await get_hub_info(server, client, timeout)
    try:
        read_url_prefix = info["read_url_prefix"]
        challenge = info["challenge_text"]
    except KeyError as e:
        raise RemoteServiceError(f"Hub info is missing {e.args[0]}") from e

    return HubConfig(
        address=public_key_to_address(compressed_public_key(signer_private_key)),
        url_prefix=read_url_prefix,
        token=make_hub_token(challenge, signer_private_key),
        server=server,
    )


async def upload_to_hub(
    filename: str,
    contents: str | bytes,
    hub_config: HubConfig,
    content_type: str = "application/octet-stream",
    client: httpx.AsyncClient | None = None,
    timeout: float = HTTP_TIMEOUT_SECS,
) -> str:
    """POST contents to the hub; return the file's public URL."""
    url = f"{hub_config.server}/store/{hub_config.address}/{filename}"
    log.info("Uploading %s to %s", filename, hub_config.server)
    headers = {
        "Authorization": f"bearer {hub_config.token}",
        "Content-Type": content_type,
    }
    try:
        async with open_client(client, timeout) as http:
            resp = await http.post(url, content=contents, headers=headers)
    except httpx.HTTPError as e:
        raise RemoteServiceError(f"Upload to {url} failed: {e}") from e

    data = _json_body(resp, url)
    if "publicURL" not in data:
        raise RemoteServiceError(f"Hub response for {url} has no publicURL")
    return data["publicURL"]


def get_full_read_url(filename: str, hub_config: HubConfig) -> str:
    return f"{hub_config.url_prefix}{hub_config.address}/{filename}"


async def get_bucket_url(
    hub_url: str | None,
    app_private_key: str,
    client: httpx.AsyncClient | None = None,
    timeout: float = HTTP_TIMEOUT_SECS,
) -> str:
    """Public read URL of the app's bucket, with trailing slash."""
    info = await get_hub_info(hub_url, client, timeout)
    if "read_url_prefix" not in info:
        raise RemoteServiceError("Hub info is missing read_url_prefix")
    address = public_key_to_address(compressed_public_key(app_private_key))
    return f"{info['read_url_prefix']}{address}/"
