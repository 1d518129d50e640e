"""
ECIES over secp256k1.

- Key agreement: ECDH with an ephemeral key, shared secret = x-coordinate
- Key derivation: SHA-512(secret) -> AES key (first half) || HMAC key (second half)
- Encryption: AES-256-CBC with PKCS7 padding (requires `cryptography`)
- Integrity: HMAC-SHA256 over iv || ephemeral pubkey || ciphertext

The MAC is checked before any decryption takes place.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import os
from dataclasses import dataclass
from typing import Any

from nameid.errors import InvalidParameterError, MacValidationError
from nameid.keys import load_private_key, load_public_key, make_ec_private_key

IV_SIZE = 16


def _import_cryptography():
    """Lazily import the AES-CBC pieces of the cryptography package."""
    try:
        from cryptography.hazmat.primitives import padding
        from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

        return Cipher, algorithms, modes, padding
    except ImportError:
        raise ImportError(
            "cryptography is required for ECIES encryption. "
            "Install with: pip install cryptography"
        )


@dataclass(frozen=True)
class CipherObject:
    """ECIES output. All byte fields serialize as lowercase hex."""

    iv: bytes
    ephemeral_pk: bytes
    cipher_text: bytes
    mac: bytes
    was_string: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "iv": self.iv.hex(),
            "ephemeralPK": self.ephemeral_pk.hex(),
            "cipherText": self.cipher_text.hex(),
            "mac": self.mac.hex(),
            "wasString": self.was_string,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CipherObject:
        try:
            return cls(
                iv=bytes.fromhex(data["iv"]),
                ephemeral_pk=bytes.fromhex(data["ephemeralPK"]),
                cipher_text=bytes.fromhex(data["cipherText"]),
                mac=bytes.fromhex(data["mac"]),
                was_string=bool(data.get("wasString", False)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidParameterError("cipherObject", f"malformed: {e}") from e

    @classmethod
    def from_json(cls, text: str) -> CipherObject:
        try:
            data = json.loads(text)
        except ValueError as e:
            raise InvalidParameterError("cipherObject", "not JSON") from e
        if not isinstance(data, dict):
            raise InvalidParameterError("cipherObject", "not a JSON object")
        return cls.from_dict(data)


def _shared_keys(point, scalar: bytes) -> tuple[bytes, bytes]:
    shared = point.tweak_mul(scalar).serialize(compressed=True)[1:]
    digest = hashlib.sha512(shared).digest()
    return digest[:32], digest[32:]


def _mac(key: bytes, iv: bytes, ephemeral_pk: bytes, cipher_text: bytes) -> bytes:
    return hmac.new(key, iv + ephemeral_pk + cipher_text, hashlib.sha256).digest()


def encrypt_ecies(public_key_hex: str, content: str | bytes) -> CipherObject:
    """Encrypt content so only the holder of public_key_hex's secret can read it."""
    Cipher, algorithms, modes, padding = _import_cryptography()
    recipient = load_public_key(public_key_hex)

    was_string = isinstance(content, str)
    plaintext = content.encode("utf-8") if was_string else bytes(content)

    ephemeral, _ = load_private_key(make_ec_private_key())
    ephemeral_pk = ephemeral.pubkey.serialize(compressed=True)
    enc_key, mac_key = _shared_keys(recipient, ephemeral.private_key)

    iv = os.urandom(IV_SIZE)
    padder = padding.PKCS7(128).padder()
    padded = padder.update(plaintext) + padder.finalize()
    encryptor = Cipher(algorithms.AES(enc_key), modes.CBC(iv)).encryptor()
    cipher_text = encryptor.update(padded) + encryptor.finalize()

    return CipherObject(
        iv=iv,
        ephemeral_pk=ephemeral_pk,
        cipher_text=cipher_text,
        mac=_mac(mac_key, iv, ephemeral_pk, cipher_text),
        was_string=was_string,
    )


def decrypt_ecies(private_key_hex: str, cipher: CipherObject | dict[str, Any]) -> str | bytes:
    """Decrypt a CipherObject. Raises MacValidationError on tampering."""
    Cipher, algorithms, modes, padding = _import_cryptography()
    if isinstance(cipher, dict):
        cipher = CipherObject.from_dict(cipher)

    key, _ = load_private_key(private_key_hex)
    ephemeral = load_public_key(cipher.ephemeral_pk.hex())
    enc_key, mac_key = _shared_keys(ephemeral, key.private_key)

    expected = _mac(mac_key, cipher.iv, cipher.ephemeral_pk, cipher.cipher_text)
    if not hmac.compare_digest(expected, cipher.mac):
        raise MacValidationError("ECIES MAC does not match ciphertext")

    if len(cipher.iv) != IV_SIZE:
        raise InvalidParameterError("cipherObject", "iv must be 16 bytes")
    decryptor = Cipher(algorithms.AES(enc_key), modes.CBC(cipher.iv)).decryptor()
    try:
        padded = decryptor.update(cipher.cipher_text) + decryptor.finalize()
        unpadder = padding.PKCS7(128).unpadder()
        plaintext = unpadder.update(padded) + unpadder.finalize()
    except ValueError as e:
        raise InvalidParameterError("cipherObject", "bad block padding") from e

    return plaintext.decode("utf-8") if cipher.was_string else plaintext
