"""Top-level profile lookup by name."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from nameid.config import load_settings
from nameid.errors import NameNotFoundError, RemoteServiceError
from nameid.network import CoreClient
from nameid.zonefile import resolve_zone_file_to_profile

log = logging.getLogger(__name__)


async def lookup_profile(
    name: str,
    core_api_url: str | None = None,
    core: CoreClient | None = None,
    client: httpx.AsyncClient | None = None,
) -> dict[str, Any] | None:
    """Resolve name to its verified profile document.

    Returns None when the name is not registered or has no zone file.
    Every other failure (malformed zone file, bad token, signature
    mismatch, unreachable core node) is raised.
    """
    if core is None:
        settings = load_settings(core_api_url=core_api_url)
        core = CoreClient.from_settings(settings, client=client)

    try:
        info = await core.get_name_info(name)
        zone_file = info.get("zonefile")
        if zone_file is None:
            zone_file = (await core.get_zone_file(name))["zonefile"]
    except NameNotFoundError:
        log.info("Name %s not found, no profile", name)
        return None

    if not info.get("address"):
        raise RemoteServiceError(f"Core API returned no owner address for {name}")
    return await resolve_zone_file_to_profile(
        zone_file, info["address"], client=client or core.client, timeout=core.timeout
    )
