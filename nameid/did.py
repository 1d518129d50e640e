"""Decentralized identifiers: did:<type>:<identifier>."""

from __future__ import annotations

from dataclasses import dataclass

from nameid import DID_SCHEME, DID_TYPE_BTC_ADDR, DID_TYPE_ECDSA_PUB
from nameid.errors import MalformedIdentifierError, TypeMismatchError


@dataclass(frozen=True)
class DecentralizedID:
    did_type: str
    identifier: str

    def __post_init__(self) -> None:
        if not self.did_type or ":" in self.did_type:
            raise MalformedIdentifierError(f"Invalid DID type: {self.did_type!r}")
        if not self.identifier or ":" in self.identifier:
            raise MalformedIdentifierError(f"Invalid DID identifier: {self.identifier!r}")

    def __str__(self) -> str:
        return f"{DID_SCHEME}:{self.did_type}:{self.identifier}"

    @classmethod
    def from_address(cls, address: str) -> DecentralizedID:
        return cls(DID_TYPE_BTC_ADDR, address)

    @classmethod
    def from_public_key(cls, public_key_hex: str) -> DecentralizedID:
        return cls(DID_TYPE_ECDSA_PUB, public_key_hex)

    @classmethod
    def parse(cls, did: str) -> DecentralizedID:
        """Parse a DID string. Raises MalformedIdentifierError."""
        if not isinstance(did, str):
            raise MalformedIdentifierError("DID must be a string")
        parts = did.split(":")
        if len(parts) != 3:
            raise MalformedIdentifierError(f"Decentralized IDs must have 3 parts: {did!r}")
        if parts[0].lower() != DID_SCHEME:
            raise MalformedIdentifierError(f'Decentralized IDs must start with "did": {did!r}')
        return cls(parts[1], parts[2])

    @property
    def address(self) -> str:
        if self.did_type != DID_TYPE_BTC_ADDR:
            raise TypeMismatchError(
                f"DID type {self.did_type!r} does not carry an address"
            )
        return self.identifier


def make_did_from_address(address: str) -> str:
    return str(DecentralizedID.from_address(address))


def make_did_from_public_key(public_key_hex: str) -> str:
    return str(DecentralizedID.from_public_key(public_key_hex))


def get_did_type(did: str) -> str:
    return DecentralizedID.parse(did).did_type


def get_address_from_did(did: str) -> str:
    return DecentralizedID.parse(did).address
