"""Shared fixtures: well-known keys and an in-memory HTTP client factory."""

from __future__ import annotations

import json

import httpx
import pytest
import pytest_asyncio

# secp256k1 generator point: private key 1
PRIVKEY_ONE = "00" * 31 + "01"
PRIVKEY_ONE_COMPRESSED = PRIVKEY_ONE + "01"
PUBKEY_ONE_COMPRESSED = "0279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"
PUBKEY_ONE_UNCOMPRESSED = (
    "0479be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"
    "483ada7726a3c4655da4fbfc0e1108a8fd17b448a68554199c47d08ffb10d4b8"
)
ADDRESS_ONE_COMPRESSED = "1BgGZ9tcN4rm9KBzDn7KprQz87SZ26SAMH"
ADDRESS_ONE_UNCOMPRESSED = "1EHNa6Q4Jz2uvNExL497mE43ikXhwF6kZm"


@pytest_asyncio.fixture
async def mock_http():
    """Factory: routes {url: response spec} -> (AsyncClient, seen requests).

    A response spec is an httpx.Response, a (status, body) tuple where body
    is str/bytes or JSON-serializable, or a callable(request) -> Response.
    Unknown URLs answer 404. Clients are closed after the test.
    """
    clients = []

    def factory(routes):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            spec = routes.get(str(request.url))
            if spec is None:
                return httpx.Response(404, text="not found")
            if callable(spec):
                return spec(request)
            if isinstance(spec, httpx.Response):
                return spec
            status, body = spec
            if isinstance(body, bytes):
                return httpx.Response(status, content=body)
            if isinstance(body, str):
                return httpx.Response(status, text=body)
            return httpx.Response(status, text=json.dumps(body),
                                  headers={"Content-Type": "application/json"})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client, seen

    yield factory

    for client in clients:
        await client.aclose()
