"""
Profile tokens - a profile document signed as an ES256K token.

Payload:
    {"jti": uuid4, "iat": iso8601, "exp": iso8601,
     "subject": {"publicKey": hex}, "issuer": {"publicKey": hex},
     "claim": <profile JSON-LD>}

Verification order matters: structure first, then issuer identity, then
the signature. Each stage has its own error type.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from nameid import SIGNING_ALGORITHM
from nameid.errors import (
    InvalidParameterError,
    IssuerMismatchError,
    MalformedTokenError,
    SignatureVerificationFailedError,
    UnsupportedAlgorithmError,
)
from nameid.keys import derive_public_key, get_address_forms
from nameid.tokens import TokenSigner, TokenVerifier, decode_token
from nameid.utils import make_uuid4, next_year, to_iso8601, utcnow

log = logging.getLogger(__name__)


def sign_profile_token(
    profile: dict[str, Any],
    private_key_hex: str,
    subject: dict[str, Any] | None = None,
    issuer: dict[str, Any] | None = None,
    signing_algorithm: str = SIGNING_ALGORITHM,
    issued_at: datetime | None = None,
    expires_at: datetime | None = None,
) -> str:
    """Sign profile with private_key_hex. Subject and issuer default to the signer."""
    if signing_algorithm != SIGNING_ALGORITHM:
        raise UnsupportedAlgorithmError(f"Signing algorithm {signing_algorithm!r} is not supported")

    public_key = derive_public_key(private_key_hex)
    payload = {
        "jti": make_uuid4(),
        "iat": to_iso8601(issued_at or utcnow()),
        "exp": to_iso8601(expires_at or next_year()),
        "subject": subject or {"publicKey": public_key},
        "issuer": issuer or {"publicKey": public_key},
        "claim": profile,
    }
    return TokenSigner(signing_algorithm, private_key_hex).sign(payload)


def wrap_profile_token(token: str) -> dict[str, Any]:
    """Build one token file element: the token plus its decoded form."""
    return {"token": token, "decodedToken": decode_token(token)}


def _require_public_key(payload: dict[str, Any], field: str) -> str:
    party = payload.get(field)
    if not isinstance(party, dict):
        raise MalformedTokenError(f"Token doesn't have a {field}")
    public_key = party.get("publicKey")
    if not isinstance(public_key, str) or not public_key:
        raise MalformedTokenError(f"Token doesn't have a {field} public key")
    return public_key


def verify_profile_token(token: str, public_key_or_address: str) -> dict[str, Any]:
    """Verify token against an expected public key or address.

    Returns the decoded token ({header, payload, signature}).
    Raises MalformedTokenError, IssuerMismatchError or
    SignatureVerificationFailedError.
    """
    decoded = decode_token(token)
    payload = decoded["payload"]

    _require_public_key(payload, "subject")
    issuer_public_key = _require_public_key(payload, "issuer")
    if "claim" not in payload:
        raise MalformedTokenError("Token doesn't have a claim")

    try:
        forms = get_address_forms(issuer_public_key)
    except InvalidParameterError as e:
        raise MalformedTokenError(f"Token issuer public key is invalid: {e}") from e

    if public_key_or_address.lower() != issuer_public_key.lower() and public_key_or_address not in forms:
        log.warning(
            "Profile token issuer %s does not match expected %s",
            forms.compressed, public_key_or_address,
        )
        raise IssuerMismatchError(
            "Token issuer public key does not match the verifying value"
        )

    algorithm = decoded["header"].get("alg")
    if algorithm != SIGNING_ALGORITHM:
        raise UnsupportedAlgorithmError(f"Token algorithm {algorithm!r} is not supported")

    if not TokenVerifier(algorithm, issuer_public_key).verify(token):
        log.warning("Profile token signature invalid for issuer %s", forms.compressed)
        raise SignatureVerificationFailedError("Token signature verification failed")

    return decoded


def extract_profile(
    token: str,
    public_key_or_address: str | None = None,
    *,
    allow_unverified: bool = False,
) -> dict[str, Any]:
    """Return the profile claim of token.

    Verification against public_key_or_address is mandatory. Passing
    allow_unverified=True with no key skips it: the claim is then
    attacker-controlled and must not be trusted.
    """
    if public_key_or_address:
        decoded = verify_profile_token(token, public_key_or_address)
    elif allow_unverified:
        decoded = decode_token(token)
    else:
        raise InvalidParameterError(
            "publicKeyOrAddress", "required unless allow_unverified=True"
        )

    claim = decoded["payload"].get("claim")
    if not isinstance(claim, dict):
        raise MalformedTokenError("Token claim is not a JSON object")
    return claim
