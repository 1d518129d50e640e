"""
Tests for the core API client and settings.

TestCoreClient   - name info, zone files, status classification
TestSettings     - override/env/file/default precedence
"""

from __future__ import annotations

import httpx
import pytest

from conftest import ADDRESS_ONE_COMPRESSED
from nameid import DEFAULT_CORE_API_URL, TESTNET_ADDRESS_VERSION
from nameid.config import Settings, load_settings
from nameid.errors import InvalidParameterError, NameNotFoundError, RemoteServiceError
from nameid.keys import decode_address
from nameid.network import CoreClient

CORE = "https://core.example.com"


# ---------------------------------------------------------------------------
# TestCoreClient
# ---------------------------------------------------------------------------

class TestCoreClient:

    @pytest.mark.asyncio
    async def test_name_info(self, mock_http):
        client, seen = mock_http({
            CORE + "/v1/names/alice.id": (200, {"address": ADDRESS_ONE_COMPRESSED, "zonefile": "z"}),
        })
        info = await CoreClient(CORE + "/", client=client).get_name_info("alice.id")
        assert info == {"address": ADDRESS_ONE_COMPRESSED, "zonefile": "z"}
        assert str(seen[0].url) == CORE + "/v1/names/alice.id"

    @pytest.mark.asyncio
    async def test_address_coerced_to_network(self, mock_http):
        client, _ = mock_http({CORE + "/v1/names/alice.id": (200, {"address": ADDRESS_ONE_COMPRESSED})})
        core = CoreClient(CORE, client=client, address_version=TESTNET_ADDRESS_VERSION)
        info = await core.get_name_info("alice.id")
        version, digest = decode_address(info["address"])
        assert version == TESTNET_ADDRESS_VERSION
        assert digest == decode_address(ADDRESS_ONE_COMPRESSED)[1]

    @pytest.mark.asyncio
    async def test_not_found(self, mock_http):
        client, _ = mock_http({})
        with pytest.raises(NameNotFoundError) as exc:
            await CoreClient(CORE, client=client).get_name_info("nobody.id")
        assert exc.value.status == 404

    @pytest.mark.asyncio
    async def test_server_error(self, mock_http):
        client, _ = mock_http({CORE + "/v1/names/alice.id": (503, "busy")})
        with pytest.raises(RemoteServiceError) as exc:
            await CoreClient(CORE, client=client).get_name_info("alice.id")
        assert exc.value.status == 503
        assert not isinstance(exc.value, NameNotFoundError)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", ["not json", "[1, 2]"])
    async def test_bad_body(self, mock_http, body):
        client, _ = mock_http({CORE + "/v1/names/alice.id": (200, body)})
        with pytest.raises(RemoteServiceError):
            await CoreClient(CORE, client=client).get_name_info("alice.id")

    @pytest.mark.asyncio
    async def test_unreachable(self):
        def boom(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(boom))
        with pytest.raises(RemoteServiceError):
            await CoreClient(CORE, client=client).get_zone_file("alice.id")

    @pytest.mark.asyncio
    async def test_zone_file(self, mock_http):
        client, _ = mock_http({CORE + "/v1/names/alice.id/zonefile": (200, {"zonefile": "$ORIGIN alice.id"})})
        data = await CoreClient(CORE, client=client).get_zone_file("alice.id")
        assert data["zonefile"] == "$ORIGIN alice.id"

    @pytest.mark.asyncio
    async def test_empty_name(self):
        with pytest.raises(InvalidParameterError):
            await CoreClient(CORE).get_name_info("")

    def test_from_settings(self):
        settings = Settings(core_api_url=CORE, http_timeout=3.0, address_version=TESTNET_ADDRESS_VERSION)
        core = CoreClient.from_settings(settings)
        assert core.base_url == CORE
        assert core.timeout == 3.0
        assert core.address_version == TESTNET_ADDRESS_VERSION


# ---------------------------------------------------------------------------
# TestSettings
# ---------------------------------------------------------------------------

class TestSettings:

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for var in ("NAMEID_CORE_API_URL", "NAMEID_HUB_URL", "NAMEID_HTTP_TIMEOUT",
                    "NAMEID_LOG_LEVEL", "NAMEID_TRANSIT_KEY_PATH"):
            monkeypatch.delenv(var, raising=False)

    def test_defaults(self, tmp_path):
        settings = load_settings(tmp_path / "missing.toml")
        assert settings.core_api_url == DEFAULT_CORE_API_URL
        assert settings.http_timeout == 10.0
        assert settings.log_level == "INFO"

    def test_file(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text('[nameid]\ncore_api_url = "https://file.example.com"\nhttp_timeout = 2\n')
        settings = load_settings(path)
        assert settings.core_api_url == "https://file.example.com"
        assert settings.http_timeout == 2.0

    def test_flat_file(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text('log_level = "debug"\naddress_version = "0x6f"\n')
        settings = load_settings(path)
        assert settings.log_level == "DEBUG"
        assert settings.address_version == TESTNET_ADDRESS_VERSION

    def test_env_beats_file(self, tmp_path, monkeypatch):
        path = tmp_path / "config.toml"
        path.write_text('core_api_url = "https://file.example.com"\n')
        monkeypatch.setenv("NAMEID_CORE_API_URL", "https://env.example.com")
        assert load_settings(path).core_api_url == "https://env.example.com"

    def test_override_beats_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("NAMEID_CORE_API_URL", "https://env.example.com")
        settings = load_settings(tmp_path / "missing.toml", core_api_url="https://arg.example.com")
        assert settings.core_api_url == "https://arg.example.com"

    def test_none_override_ignored(self, tmp_path):
        settings = load_settings(tmp_path / "missing.toml", core_api_url=None)
        assert settings.core_api_url == DEFAULT_CORE_API_URL

    def test_broken_file_ignored(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("this is = = not toml")
        assert load_settings(path) == load_settings(tmp_path / "missing.toml")

    def test_unknown_override(self, tmp_path):
        with pytest.raises(TypeError):
            load_settings(tmp_path / "missing.toml", colour="blue")

    def test_transit_key_path_expanded(self, tmp_path, monkeypatch):
        monkeypatch.setenv("NAMEID_TRANSIT_KEY_PATH", str(tmp_path / "k"))
        assert load_settings(tmp_path / "missing.toml").transit_key_path == tmp_path / "k"
