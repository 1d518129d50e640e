"""
nameid - client SDK for a Bitcoin-anchored naming and identity network.

Pipeline:
    name  -> zone file (core API)  -> token file URL (URI record)
          -> token file (HTTP)     -> signed profile token (ES256K)
          -> verified profile claim (schema.org JSON-LD, legacy lifted)

Sibling protocols:
    auth     - sign-in request/response tokens, ECIES-wrapped app keys
    storage  - per-user files on a storage hub, optionally encrypted
"""

__version__ = "0.1.0"

# Network
MAINNET_ADDRESS_VERSION = 0x00
TESTNET_ADDRESS_VERSION = 0x6F
DEFAULT_CORE_API_URL = "https://core.blockstack.org"
DEFAULT_HUB_URL = "https://hub.blockstack.org"
HTTP_TIMEOUT_SECS = 10.0

# Zone files
ZONE_FILE_TTL = 3600
ZONE_FILE_TEMPLATE = "{$origin}\n{$ttl}\n{uri}\n"
TOKEN_FILE_URI_NAME = "_http._tcp"
TOKEN_FILE_URI_PRIORITY = 10
TOKEN_FILE_URI_WEIGHT = 1

# Tokens
SIGNING_ALGORITHM = "ES256K"

# DIDs
DID_SCHEME = "did"
DID_TYPE_BTC_ADDR = "btc-addr"
DID_TYPE_ECDSA_PUB = "ecdsa-pub"

# Auth
AUTH_PROTOCOL_VERSION = "1.1.0"
DEFAULT_SCOPES = ["store_write"]
AUTH_HANDLER_PREFIX = "blockstack:"
DEFAULT_AUTH_REQUEST_PATH = "/auth"
DEFAULT_MANIFEST_PATH = "/manifest.json"
DEFAULT_REDIRECT_PATH = "/"
