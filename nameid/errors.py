"""
Error taxonomy.

Every failure raised by nameid derives from NameIDError so hosts can catch
the library as a whole. The verification kinds (MalformedTokenError,
IssuerMismatchError, SignatureVerificationFailedError) are siblings on
purpose: callers must be able to tell a garbage token from a token naming
the wrong signer from a token whose signature does not check out.
"""

from __future__ import annotations

from typing import Any


class NameIDError(Exception):
    """Base class for nameid errors."""


# ---------------------------------------------------------------------------
# Parameters and identifiers
# ---------------------------------------------------------------------------

class InvalidParameterError(NameIDError):
    """A precondition on a caller-supplied value was violated."""

    def __init__(self, parameter: str, reason: str = "", value: Any = None) -> None:
        self.parameter = parameter
        self.reason = reason
        self.value = value
        message = f"Invalid parameter {parameter!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class InvalidKeyEncodingError(InvalidParameterError):
    """Private key hex is neither 64 chars nor 66 chars ending in 01."""


class MalformedIdentifierError(NameIDError):
    """DID string is not of the form did:<type>:<identifier>."""


class TypeMismatchError(NameIDError):
    """DID type does not support the requested extraction."""


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

class UnsupportedAlgorithmError(NameIDError):
    """Signing algorithm other than ES256K was requested."""


class MalformedTokenError(NameIDError):
    """Token is structurally invalid (bad encoding or missing fields)."""


class IssuerMismatchError(NameIDError):
    """Token issuer does not match the expected public key or address."""


class SignatureVerificationFailedError(NameIDError):
    """Token issuer matched but the signature did not verify."""


class MacValidationError(NameIDError):
    """ECIES MAC mismatch; ciphertext was tampered with or key is wrong."""


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

class MalformedZoneFileError(NameIDError):
    """Zone file text could not be parsed."""


class UnrecognizedProfileFormatError(NameIDError):
    """Zone file has no $ORIGIN and is not a legacy profile either."""


class MissingTokenFileUrlError(NameIDError):
    """Zone file carries no URI record pointing at a token file."""


class TokenFileFetchFailedError(NameIDError):
    """Token file could not be fetched."""

    def __init__(self, url: str, reason: str = "", status: int | None = None) -> None:
        self.url = url
        self.status = status
        message = f"Failed to fetch token file {url}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class InvalidProfileTokenError(NameIDError):
    """Token file body is not a non-empty array whose first element has a token."""

    def __init__(self, reason: str, body: str = "") -> None:
        self.reason = reason
        self.body = body
        super().__init__(f"Invalid profile token file: {reason}")


# ---------------------------------------------------------------------------
# Remote services
# ---------------------------------------------------------------------------

class RemoteServiceError(NameIDError):
    """Remote endpoint answered with an unexpected status or was unreachable."""

    def __init__(self, message: str, status: int | None = None) -> None:
        self.status = status
        super().__init__(message)


class NameNotFoundError(RemoteServiceError):
    """Name is not registered, or has no zone file."""


class InvalidProofUrlError(NameIDError):
    """Proof URL does not belong to the claimed service."""


class UnsupportedOperationError(NameIDError, NotImplementedError):
    """Operation is not supported by the remote service."""
