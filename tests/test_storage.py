"""
Tests for storage hub access.

TestHubConnection   - hub info, challenge token, HubConfig
TestUpload          - upload_to_hub request shape and errors
TestGetFile         - reads from own and other users' buckets
TestPutFile         - content types and encryption
"""

from __future__ import annotations

import base64
import hashlib
import json

import httpx
import pytest

from conftest import ADDRESS_ONE_COMPRESSED, PRIVKEY_ONE, PRIVKEY_ONE_COMPRESSED, PUBKEY_ONE_COMPRESSED
from nameid.errors import InvalidParameterError, RemoteServiceError, UnsupportedOperationError
from nameid.storage import (
    HubConfig,
    connect_to_hub,
    delete_file,
    get_file,
    get_full_read_url,
    get_user_app_file_url,
    put_file,
    upload_to_hub,
)
from nameid.storage.hub import get_bucket_url, make_hub_token

try:
    import secp256k1
    HAS_SECP256K1 = True
except ImportError:
    HAS_SECP256K1 = False

try:
    import cryptography
    HAS_CRYPTOGRAPHY = True
except ImportError:
    HAS_CRYPTOGRAPHY = False

requires_secp256k1 = pytest.mark.skipif(
    not HAS_SECP256K1,
    reason="secp256k1 C bindings not installed (pip install secp256k1)",
)
requires_crypto = pytest.mark.skipif(
    not (HAS_SECP256K1 and HAS_CRYPTOGRAPHY),
    reason="secp256k1 and cryptography required",
)

HUB = "https://hub.example.com"
READ_PREFIX = "https://gaia.example.com/hub/"
HUB_INFO = {"read_url_prefix": READ_PREFIX, "challenge_text": '["gaiahub","2017","hub.example.com"]'}

CONFIG = HubConfig(
    address="1BucketAddress",
    url_prefix=READ_PREFIX,
    token="tok",
    server=HUB,
)


# ---------------------------------------------------------------------------
# TestHubConnection
# ---------------------------------------------------------------------------

class TestHubConnection:

    @requires_secp256k1
    def test_hub_token_signature(self):
        token = json.loads(base64.b64decode(make_hub_token("challenge", PRIVKEY_ONE)))
        # compressed key even for an uncompressed-convention private key
        assert token["publickey"] == PUBKEY_ONE_COMPRESSED
        pub = secp256k1.PublicKey(bytes.fromhex(token["publickey"]), raw=True)
        sig = pub.ecdsa_deserialize(bytes.fromhex(token["signature"]))
        digest = hashlib.sha256(b"challenge").digest()
        assert pub.ecdsa_verify(digest, sig, raw=True)

    @requires_secp256k1
    @pytest.mark.asyncio
    async def test_connect(self, mock_http):
        client, seen = mock_http({HUB + "/hub_info": (200, HUB_INFO)})
        config = await connect_to_hub(HUB + "/", PRIVKEY_ONE_COMPRESSED, client)
        assert config.address == ADDRESS_ONE_COMPRESSED
        assert config.url_prefix == READ_PREFIX
        assert config.server == HUB
        assert json.loads(base64.b64decode(config.token))["publickey"] == PUBKEY_ONE_COMPRESSED
        assert str(seen[0].url) == HUB + "/hub_info"

    @requires_secp256k1
    @pytest.mark.asyncio
    async def test_connect_incomplete_info(self, mock_http):
        client, _ = mock_http({HUB + "/hub_info": (200, {"read_url_prefix": READ_PREFIX})})
        with pytest.raises(RemoteServiceError, match="challenge_text"):
            await connect_to_hub(HUB, PRIVKEY_ONE_COMPRESSED, client)

    @pytest.mark.asyncio
    async def test_connect_hub_down(self, mock_http):
        client, _ = mock_http({HUB + "/hub_info": (502, "bad gateway")})
        with pytest.raises(RemoteServiceError) as exc:
            await connect_to_hub(HUB, PRIVKEY_ONE_COMPRESSED, client)
        assert exc.value.status == 502

    @requires_secp256k1
    @pytest.mark.asyncio
    async def test_bucket_url(self, mock_http):
        client, _ = mock_http({HUB + "/hub_info": (200, HUB_INFO)})
        url = await get_bucket_url(HUB, PRIVKEY_ONE, client)
        assert url == f"{READ_PREFIX}{ADDRESS_ONE_COMPRESSED}/"

    @requires_secp256k1
    @pytest.mark.asyncio
    async def test_connect_configured_hub(self, mock_http, monkeypatch):
        monkeypatch.setenv("NAMEID_HUB_URL", HUB + "/")
        client, seen = mock_http({HUB + "/hub_info": (200, HUB_INFO)})
        config = await connect_to_hub(None, PRIVKEY_ONE_COMPRESSED, client)
        assert config.server == HUB
        assert [str(r.url) for r in seen] == [HUB + "/hub_info"]

    def test_config_roundtrip(self):
        assert HubConfig.from_dict(CONFIG.to_dict()) == CONFIG

    def test_full_read_url(self):
        assert get_full_read_url("a/b.json", CONFIG) == READ_PREFIX + "1BucketAddress/a/b.json"


# ---------------------------------------------------------------------------
# TestUpload
# ---------------------------------------------------------------------------

class TestUpload:

    STORE_URL = HUB + "/store/1BucketAddress/notes.txt"

    @pytest.mark.asyncio
    async def test_upload(self, mock_http):
        client, seen = mock_http({self.STORE_URL: (200, {"publicURL": READ_PREFIX + "x"})})
        url = await upload_to_hub("notes.txt", "hello", CONFIG, "text/plain", client)
        assert url == READ_PREFIX + "x"
        request = seen[0]
        assert request.method == "POST"
        assert request.headers["Authorization"] == "bearer tok"
        assert request.headers["Content-Type"] == "text/plain"
        assert request.content == b"hello"

    @pytest.mark.asyncio
    async def test_upload_without_public_url(self, mock_http):
        client, _ = mock_http({self.STORE_URL: (200, {"ok": True})})
        with pytest.raises(RemoteServiceError):
            await upload_to_hub("notes.txt", "hello", CONFIG, client=client)

    @pytest.mark.asyncio
    async def test_upload_rejected(self, mock_http):
        client, _ = mock_http({self.STORE_URL: (401, "unauthorized")})
        with pytest.raises(RemoteServiceError) as exc:
            await upload_to_hub("notes.txt", "hello", CONFIG, client=client)
        assert exc.value.status == 401

    @pytest.mark.asyncio
    async def test_upload_transport_error(self):
        def boom(request):
            raise httpx.ConnectError("refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(boom))
        with pytest.raises(RemoteServiceError):
            await upload_to_hub("notes.txt", "hello", CONFIG, client=client)


# ---------------------------------------------------------------------------
# TestGetFile
# ---------------------------------------------------------------------------

class TestGetFile:

    READ_URL = READ_PREFIX + "1BucketAddress/notes.txt"

    @pytest.mark.asyncio
    async def test_text(self, mock_http):
        client, _ = mock_http({self.READ_URL: httpx.Response(
            200, text="hello", headers={"Content-Type": "text/plain"},
        )})
        assert await get_file("notes.txt", CONFIG, client=client) == "hello"

    @pytest.mark.asyncio
    async def test_binary(self, mock_http):
        client, _ = mock_http({self.READ_URL: httpx.Response(
            200, content=b"\x00\x01", headers={"Content-Type": "application/octet-stream"},
        )})
        assert await get_file("notes.txt", CONFIG, client=client) == b"\x00\x01"

    @pytest.mark.asyncio
    async def test_missing_is_none(self, mock_http):
        client, _ = mock_http({})
        assert await get_file("notes.txt", CONFIG, client=client) is None

    @pytest.mark.asyncio
    async def test_server_error(self, mock_http):
        client, _ = mock_http({self.READ_URL: (500, "boom")})
        with pytest.raises(RemoteServiceError) as exc:
            await get_file("notes.txt", CONFIG, client=client)
        assert exc.value.status == 500

    @pytest.mark.asyncio
    async def test_requires_config_or_username(self):
        with pytest.raises(InvalidParameterError):
            await get_file("notes.txt")
        with pytest.raises(InvalidParameterError):
            await get_file("notes.txt", username="alice.id")

    @pytest.mark.asyncio
    async def test_decrypt_requires_key(self):
        with pytest.raises(InvalidParameterError):
            await get_file("notes.txt", CONFIG, decrypt=True)

    @requires_crypto
    @pytest.mark.asyncio
    async def test_encrypted_roundtrip(self, mock_http):
        stored = {}

        def store(request):
            stored["body"] = request.content
            return httpx.Response(200, json={"publicURL": self.READ_URL})

        def read(request):
            return httpx.Response(200, content=stored["body"],
                                  headers={"Content-Type": "application/json"})

        client, seen = mock_http({
            HUB + "/store/1BucketAddress/notes.txt": store,
            self.READ_URL: read,
        })
        await put_file("notes.txt", "secret notes", CONFIG,
                       encrypt=True, app_private_key=PRIVKEY_ONE_COMPRESSED, client=client)
        assert seen[0].headers["Content-Type"] == "application/json"
        assert b"secret notes" not in stored["body"]
        content = await get_file("notes.txt", CONFIG, decrypt=True,
                                 app_private_key=PRIVKEY_ONE_COMPRESSED, client=client)
        assert content == "secret notes"

    @requires_secp256k1
    @pytest.mark.asyncio
    async def test_other_users_file(self, mock_http):
        from nameid.profiles.tokens import sign_profile_token, wrap_profile_token
        from nameid.zonefile import NameZoneFile

        token_url = "https://gaia.example.com/hub/alice/profile.json"
        profile = {"@type": "Person", "apps": {"https://app.example.com": READ_PREFIX + "appbucket"}}
        token_file = json.dumps([wrap_profile_token(sign_profile_token(profile, PRIVKEY_ONE_COMPRESSED))])
        client, _ = mock_http({
            "https://core.example.com/v1/names/alice.id": (200, {
                "address": ADDRESS_ONE_COMPRESSED,
                "zonefile": NameZoneFile("alice.id", token_url).to_string(),
            }),
            token_url: (200, token_file),
            READ_PREFIX + "appbucket/notes.txt": httpx.Response(
                200, text="shared", headers={"Content-Type": "text/plain"},
            ),
        })
        url = await get_user_app_file_url(
            "notes.txt", "alice.id", "https://app.example.com", "https://core.example.com", client
        )
        assert url == READ_PREFIX + "appbucket/notes.txt"
        content = await get_file(
            "notes.txt", username="alice.id", app_origin="https://app.example.com",
            core_api_url="https://core.example.com", client=client,
        )
        assert content == "shared"

    @pytest.mark.asyncio
    async def test_other_user_unknown(self, mock_http):
        client, _ = mock_http({})
        url = await get_user_app_file_url(
            "notes.txt", "nobody.id", "https://app.example.com", "https://core.example.com", client
        )
        assert url is None


# ---------------------------------------------------------------------------
# TestPutFile
# ---------------------------------------------------------------------------

class TestPutFile:

    STORE_URL = HUB + "/store/1BucketAddress/data.bin"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content,content_type", [
        ("text", "text/plain"),
        (b"\x00bytes", "application/octet-stream"),
    ])
    async def test_content_type(self, mock_http, content, content_type):
        client, seen = mock_http({self.STORE_URL: (200, {"publicURL": "u"})})
        assert await put_file("data.bin", content, CONFIG, client=client) == "u"
        assert seen[0].headers["Content-Type"] == content_type

    @pytest.mark.asyncio
    async def test_encrypt_requires_key(self):
        with pytest.raises(InvalidParameterError):
            await put_file("data.bin", "x", CONFIG, encrypt=True)

    def test_delete_unsupported(self):
        with pytest.raises(UnsupportedOperationError):
            delete_file("data.bin")
        with pytest.raises(NotImplementedError):
            delete_file("data.bin")
