"""
Key and address primitives.

Private keys travel as hex. A 66-char key ending in "01" marks that its
public key is used in compressed form; a plain 64-char key means
uncompressed. Addresses are base58check(version || hash160(pubkey)).

Requires secp256k1 (C bindings). Will raise ImportError if the library is
unavailable; install with: pip install secp256k1
"""

from __future__ import annotations

import binascii
import hashlib
import os
from dataclasses import dataclass

import base58

from nameid import MAINNET_ADDRESS_VERSION
from nameid.errors import InvalidKeyEncodingError, InvalidParameterError

COMPRESSED_SUFFIX = "01"


# ---------------------------------------------------------------------------
# Secp256k1 helpers
# ---------------------------------------------------------------------------

def _import_secp256k1():
    """Import secp256k1 C bindings. Raises ImportError if unavailable."""
    try:
        import secp256k1
        return secp256k1
    except ImportError:
        raise ImportError(
            "secp256k1 is required for keys, signing and ECIES. "
            "Install with: pip install secp256k1"
        )


def _unhex(value: str, parameter: str) -> bytes:
    try:
        return binascii.unhexlify(value)
    except (binascii.Error, TypeError, ValueError) as e:
        raise InvalidParameterError(parameter, "not a hex string", value) from e


def load_public_key(public_key_hex: str):
    """Parse a hex SEC1 public key (33 or 65 bytes) into a secp256k1 PublicKey."""
    lib = _import_secp256k1()
    raw = _unhex(public_key_hex, "publicKey")
    if len(raw) not in (33, 65):
        raise InvalidParameterError("publicKey", "must be 33 or 65 bytes", public_key_hex)
    try:
        return lib.PublicKey(raw, raw=True)
    except Exception as e:  # secp256k1 raises plain Exception for bad points
        raise InvalidParameterError("publicKey", "not a point on secp256k1", public_key_hex) from e


def load_private_key(private_key_hex: str):
    """Parse a hex private key into (secp256k1 PrivateKey, compressed flag)."""
    lib = _import_secp256k1()
    secret, compressed = decode_private_key(private_key_hex)
    try:
        return lib.PrivateKey(secret), compressed
    except Exception as e:
        raise InvalidKeyEncodingError("privateKey", "out of range for secp256k1") from e


# ---------------------------------------------------------------------------
# Private keys
# ---------------------------------------------------------------------------

def get_entropy(num_bytes: int = 32) -> bytes:
    """Return num_bytes from the OS CSPRNG."""
    if num_bytes <= 0:
        raise InvalidParameterError("numBytes", "must be positive", num_bytes)
    return os.urandom(num_bytes)


def make_ec_private_key() -> str:
    """Generate a fresh private key as 64 hex chars."""
    lib = _import_secp256k1()
    while True:
        secret = get_entropy(32)
        try:
            lib.PrivateKey(secret)
        except Exception:
            continue  # astronomically rare: zero or >= curve order
        return secret.hex()


def decode_private_key(private_key_hex: str) -> tuple[bytes, bool]:
    """Split hex private key into its 32 secret bytes and compression flag."""
    if not isinstance(private_key_hex, str):
        raise InvalidKeyEncodingError("privateKey", "must be a hex string")
    if len(private_key_hex) == 66:
        if private_key_hex[64:].lower() != COMPRESSED_SUFFIX:
            raise InvalidKeyEncodingError(
                "privateKey", "66-char keys must end in 01 (compressed)"
            )
        compressed = True
    elif len(private_key_hex) == 64:
        compressed = False
    else:
        raise InvalidKeyEncodingError(
            "privateKey", f"expected 64 or 66 hex chars, got {len(private_key_hex)}"
        )
    try:
        secret = binascii.unhexlify(private_key_hex[:64])
    except (binascii.Error, ValueError) as e:
        raise InvalidKeyEncodingError("privateKey", "not a hex string") from e
    return secret, compressed


def encode_private_key(secret: bytes, compressed: bool = True) -> str:
    if len(secret) != 32:
        raise InvalidKeyEncodingError("privateKey", "secret must be 32 bytes")
    return secret.hex() + (COMPRESSED_SUFFIX if compressed else "")


def derive_public_key(private_key_hex: str) -> str:
    """Derive the hex public key, compressed or not per the key's suffix."""
    key, compressed = load_private_key(private_key_hex)
    return key.pubkey.serialize(compressed=compressed).hex()


def compressed_public_key(private_key_hex: str) -> str:
    """Derive the 33-byte compressed public key regardless of suffix."""
    key, _ = load_private_key(private_key_hex)
    return key.pubkey.serialize(compressed=True).hex()


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------

def hash160(data: bytes) -> bytes:
    """RIPEMD160(SHA256(data))."""
    return hashlib.new("ripemd160", hashlib.sha256(data).digest()).digest()


def public_key_to_address(public_key_hex: str, version: int = MAINNET_ADDRESS_VERSION) -> str:
    raw = _unhex(public_key_hex, "publicKey")
    return base58.b58encode_check(bytes([version]) + hash160(raw)).decode("ascii")


@dataclass(frozen=True)
class AddressForms:
    """Both addresses a single public key can be known by."""

    compressed: str
    uncompressed: str

    def __contains__(self, address: object) -> bool:
        return address in (self.compressed, self.uncompressed)


def get_address_forms(public_key_hex: str, version: int = MAINNET_ADDRESS_VERSION) -> AddressForms:
    pub = load_public_key(public_key_hex)
    return AddressForms(
        compressed=public_key_to_address(pub.serialize(compressed=True).hex(), version),
        uncompressed=public_key_to_address(pub.serialize(compressed=False).hex(), version),
    )


def address_from_private_key(private_key_hex: str, version: int = MAINNET_ADDRESS_VERSION) -> str:
    return public_key_to_address(derive_public_key(private_key_hex), version)


def decode_address(address: str) -> tuple[int, bytes]:
    """Return (version byte, hash160) of a base58check address."""
    try:
        payload = base58.b58decode_check(address)
    except ValueError as e:
        raise InvalidParameterError("address", "bad base58check encoding", address) from e
    if len(payload) != 21:
        raise InvalidParameterError("address", "payload must be 21 bytes", address)
    return payload[0], payload[1:]


def coerce_address(address: str, version: int = MAINNET_ADDRESS_VERSION) -> str:
    """Re-encode address under another network version byte."""
    current, digest = decode_address(address)
    if current == version:
        return address
    return base58.b58encode_check(bytes([version]) + digest).decode("ascii")


# ---------------------------------------------------------------------------
# ECDSA
# ---------------------------------------------------------------------------

def sign_compact(private_key_hex: str, message: bytes) -> bytes:
    """Sign sha256(message); return the 64-byte r||s signature."""
    key, _ = load_private_key(private_key_hex)
    raw_sig = key.ecdsa_sign(message)
    return key.ecdsa_serialize_compact(raw_sig)


def sign_digest_der(private_key_hex: str, digest: bytes) -> bytes:
    """Sign a precomputed 32-byte digest; return a DER signature."""
    key, _ = load_private_key(private_key_hex)
    raw_sig = key.ecdsa_sign(digest, raw=True)
    return key.ecdsa_serialize(raw_sig)


def verify_compact(public_key_hex: str, message: bytes, signature: bytes) -> bool:
    """Verify a 64-byte r||s signature over sha256(message). Never raises on bad input."""
    if len(signature) != 64:
        return False
    try:
        pub = load_public_key(public_key_hex)
        raw_sig = pub.ecdsa_deserialize_compact(signature)
        # libsecp256k1 only accepts low-S; other signers may emit high-S
        _, raw_sig = pub.ecdsa_signature_normalize(raw_sig)
        return bool(pub.ecdsa_verify(message, raw_sig))
    except InvalidParameterError:
        return False
    except Exception:  # malformed r/s values
        return False
