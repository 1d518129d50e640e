"""
Per-user app files on a storage hub.

Reads go to the public read URL (our own bucket, or another user's bucket
for the app found in their profile); writes go through the hub with the
bearer token from connect_to_hub. Encryption is ECIES to the app key.
"""

from __future__ import annotations

import json
import logging
import re

import httpx

from nameid import HTTP_TIMEOUT_SECS
from nameid.ecies import CipherObject, decrypt_ecies, encrypt_ecies
from nameid.errors import InvalidParameterError, RemoteServiceError, UnsupportedOperationError
from nameid.keys import derive_public_key
from nameid.network import fetch_text
from nameid.profiles.lookup import lookup_profile
from nameid.storage.hub import HubConfig, get_full_read_url, upload_to_hub

log = logging.getLogger(__name__)


async def get_user_app_file_url(
    path: str,
    username: str,
    app_origin: str,
    core_api_url: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> str | None:
    """Public URL of another user's file for app_origin, or None if they
    have no profile or no bucket for that app.
    """
    profile = await lookup_profile(username, core_api_url=core_api_url, client=client)
    if profile is None:
        return None
    bucket_url = (profile.get("apps") or {}).get(app_origin)
    if not bucket_url:
        return None
    # ensure one slash before any query or fragment
    bucket = re.sub(r"/?(\?|#|$)", r"/\1", bucket_url, count=1)
    return f"{bucket}{path}"


async def get_file(
    path: str,
    hub_config: HubConfig | None = None,
    *,
    decrypt: bool = False,
    app_private_key: str | None = None,
    username: str | None = None,
    app_origin: str | None = None,
    core_api_url: str | None = None,
    client: httpx.AsyncClient | None = None,
    timeout: float = HTTP_TIMEOUT_SECS,
) -> str | bytes | None:
    """Read a file. Returns None when the hub answers 404."""
    if username:
        if not app_origin:
            raise InvalidParameterError("appOrigin", "required with username")
        read_url = await get_user_app_file_url(path, username, app_origin, core_api_url, client)
    elif hub_config is not None:
        read_url = get_full_read_url(path, hub_config)
    else:
        raise InvalidParameterError("hubConfig", "required without username")
    if not read_url:
        raise RemoteServiceError(f"No read URL for {path}")
    if decrypt and not app_private_key:
        raise InvalidParameterError("appPrivateKey", "required to decrypt")

    try:
        resp = await fetch_text(read_url, client, timeout)
    except httpx.HTTPError as e:
        raise RemoteServiceError(f"getFile {path} failed: {e}") from e

    if resp.status_code == 404:
        log.info("getFile %s returned 404, returning None", path)
        return None
    if resp.status_code != 200:
        raise RemoteServiceError(
            f"getFile {path} failed with HTTP status {resp.status_code}", status=resp.status_code
        )

    if decrypt:
        return decrypt_ecies(app_private_key, CipherObject.from_json(resp.text))
    content_type = resp.headers.get("Content-Type")
    if content_type is None or content_type.startswith("text") or content_type.startswith("application/json"):
        return resp.text
    return resp.content


async def put_file(
    path: str,
    content: str | bytes,
    hub_config: HubConfig,
    *,
    encrypt: bool = False,
    app_private_key: str | None = None,
    client: httpx.AsyncClient | None = None,
    timeout: float = HTTP_TIMEOUT_SECS,
) -> str:
    """Write a file; return its public URL."""
    content_type = "text/plain" if isinstance(content, str) else "application/octet-stream"
    if encrypt:
        if not app_private_key:
            raise InvalidParameterError("appPrivateKey", "required to encrypt")
        cipher = encrypt_ecies(derive_public_key(app_private_key), content)
        content = json.dumps(cipher.to_dict())
        content_type = "application/json"
    return await upload_to_hub(path, content, hub_config, content_type, client, timeout)


def delete_file(path: str) -> None:
    """Storage hubs have no delete verb; always raises."""
    raise UnsupportedOperationError(f'Delete of "{path}" not supported by storage hubs')
