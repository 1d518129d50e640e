"""Identity-provider side of the sign-in flow."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import parse_qs, urlsplit

import httpx

from nameid import AUTH_HANDLER_PREFIX, HTTP_TIMEOUT_SECS
from nameid.errors import InvalidParameterError, RemoteServiceError
from nameid.network import fetch_text
from nameid.tokens import decode_token
from nameid.utils import update_query_string_parameter

log = logging.getLogger(__name__)


def get_auth_request_from_url(url: str) -> str | None:
    """Pull the authRequest token out of url's query string, or None."""
    values = parse_qs(urlsplit(url).query).get("authRequest")
    if not values:
        return None
    return values[0].replace(AUTH_HANDLER_PREFIX, "")


async def fetch_app_manifest(
    auth_request: str,
    client: httpx.AsyncClient | None = None,
    timeout: float = HTTP_TIMEOUT_SECS,
) -> dict[str, Any]:
    """Fetch the web app manifest named by the request's manifest_uri."""
    if not auth_request:
        raise InvalidParameterError("authRequest", "must be non-empty")
    manifest_uri = decode_token(auth_request)["payload"].get("manifest_uri")
    if not manifest_uri:
        raise InvalidParameterError("authRequest", "has no manifest_uri")

    try:
        resp = await fetch_text(manifest_uri, client, timeout)
    except httpx.HTTPError as e:
        log.error("Error while requesting manifest %s: %s", manifest_uri, e)
        raise RemoteServiceError(f"Manifest request to {manifest_uri} failed") from e
    if not resp.is_success:
        raise RemoteServiceError(
            f"Manifest request to {manifest_uri} returned HTTP {resp.status_code}",
            status=resp.status_code,
        )
    try:
        return resp.json()
    except ValueError as e:
        raise RemoteServiceError(f"Manifest at {manifest_uri} is not JSON") from e


def make_redirect_url(auth_request: str, auth_response: str) -> str:
    """URL sending the user back to the app with the auth response attached."""
    redirect_uri = decode_token(auth_request)["payload"].get("redirect_uri")
    if not redirect_uri:
        raise InvalidParameterError("authRequest", "has no redirect_uri")
    log.info("redirectURI: %s", redirect_uri)
    return update_query_string_parameter(redirect_uri, "authResponse", auth_response)
