"""
Compact JWS tokens signed with ES256K.

Wire format: base64url(header) "." base64url(payload) "." base64url(r || s)
with no padding. The signature covers SHA-256 of the first two segments.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any

from nameid import SIGNING_ALGORITHM
from nameid.errors import MalformedTokenError, UnsupportedAlgorithmError
from nameid.keys import sign_compact, verify_compact


def base64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def base64url_decode(text: str) -> bytes:
    padded = text + "=" * (-len(text) % 4)
    try:
        return base64.urlsafe_b64decode(padded.encode("ascii"))
    except (binascii.Error, UnicodeEncodeError, ValueError) as e:
        raise MalformedTokenError(f"Invalid base64url segment: {e}") from e


def _encode_segment(obj: dict[str, Any]) -> str:
    return base64url_encode(json.dumps(obj, separators=(",", ":")).encode("utf-8"))


def _decode_segment(segment: str, name: str) -> dict[str, Any]:
    try:
        obj = json.loads(base64url_decode(segment))
    except ValueError as e:
        raise MalformedTokenError(f"Token {name} is not JSON") from e
    if not isinstance(obj, dict):
        raise MalformedTokenError(f"Token {name} is not a JSON object")
    return obj


def decode_token(token: str) -> dict[str, Any]:
    """Split a compact token into header, payload and signature WITHOUT verifying it."""
    if not isinstance(token, str):
        raise MalformedTokenError("Token must be a string")
    parts = token.split(".")
    if len(parts) != 3:
        raise MalformedTokenError("Token must have 3 dot-separated segments")
    return {
        "header": _decode_segment(parts[0], "header"),
        "payload": _decode_segment(parts[1], "payload"),
        "signature": parts[2],
    }


class TokenSigner:
    """Signs payloads as compact ES256K tokens."""

    def __init__(self, algorithm: str, private_key_hex: str) -> None:
        if algorithm != SIGNING_ALGORITHM:
            raise UnsupportedAlgorithmError(f"Signing algorithm {algorithm!r} is not supported")
        self.algorithm = algorithm
        self._private_key = private_key_hex

    def header(self) -> dict[str, str]:
        return {"typ": "JWT", "alg": self.algorithm}

    def sign(self, payload: dict[str, Any]) -> str:
        signing_input = _encode_segment(self.header()) + "." + _encode_segment(payload)
        signature = sign_compact(self._private_key, signing_input.encode("ascii"))
        return signing_input + "." + base64url_encode(signature)


class TokenVerifier:
    """Verifies compact tokens against one public key."""

    def __init__(self, algorithm: str, public_key_hex: str) -> None:
        if algorithm != SIGNING_ALGORITHM:
            raise UnsupportedAlgorithmError(f"Verification algorithm {algorithm!r} is not supported")
        self.algorithm = algorithm
        self.public_key = public_key_hex

    def verify(self, token: str) -> bool:
        """True iff the signature checks out. Structural garbage also returns False."""
        parts = token.split(".") if isinstance(token, str) else []
        if len(parts) != 3:
            return False
        try:
            signature = base64url_decode(parts[2])
        except MalformedTokenError:
            return False
        # Unused trailing bits must not let two encodings share one signature
        if base64url_encode(signature) != parts[2]:
            return False
        signing_input = (parts[0] + "." + parts[1]).encode("ascii", "replace")
        return verify_compact(self.public_key, signing_input, signature)


def create_unsecured_token(payload: dict[str, Any]) -> str:
    """Build an unsigned (alg "none") token. Only for tests and local tooling."""
    return _encode_segment({"typ": "JWT", "alg": "none"}) + "." + _encode_segment(payload) + "."
