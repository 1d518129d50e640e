"""
Auth request/response tokens for "sign in with a decentralized ID".

Request  (app -> identity provider): signed with the app's transit key.
Response (identity provider -> app): signed with the user's identity key;
carries the app private key, encrypted to the transit key when the app
supplied one.

Both set iss = did:btc-addr:<address of the signing public key>.
Times (iat/exp) are integer seconds since the epoch.
"""

from __future__ import annotations

import binascii
import logging
from datetime import datetime
from typing import Any

from nameid import AUTH_PROTOCOL_VERSION, DEFAULT_SCOPES, SIGNING_ALGORITHM
from nameid.auth.transit import FileTransitKeyStore, TransitKeyStore
from nameid.did import DecentralizedID
from nameid.ecies import CipherObject, decrypt_ecies, encrypt_ecies
from nameid.errors import (
    InvalidParameterError,
    IssuerMismatchError,
    MalformedTokenError,
    NameIDError,
    SignatureVerificationFailedError,
)
from nameid.keys import derive_public_key, public_key_to_address
from nameid.tokens import TokenSigner, TokenVerifier, decode_token
from nameid.utils import (
    is_same_origin_absolute_url,
    make_uuid4,
    next_hour,
    next_month,
    to_epoch_seconds,
    utcnow,
)

log = logging.getLogger(__name__)


def _issuer(private_key_hex: str) -> tuple[str, str]:
    """Return (public key hex, issuer DID) for a signing key."""
    public_key = derive_public_key(private_key_hex)
    return public_key, str(DecentralizedID.from_address(public_key_to_address(public_key)))


# ---------------------------------------------------------------------------
# Private key envelopes
# ---------------------------------------------------------------------------

def encrypt_private_key(public_key_hex: str, private_key: str) -> str:
    """ECIES-encrypt private_key to public_key_hex; hex of the cipher JSON."""
    return encrypt_ecies(public_key_hex, private_key).to_json().encode("utf-8").hex()


def decrypt_private_key(private_key_hex: str, hexed_encrypted: str) -> str | bytes:
    """Reverse encrypt_private_key. Raises MacValidationError on tampering."""
    try:
        text = binascii.unhexlify(hexed_encrypted).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise InvalidParameterError("hexedEncrypted", "not hex-encoded JSON") from e
    return decrypt_ecies(private_key_hex, CipherObject.from_json(text))


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

def make_auth_request(
    transit_private_key: str | None = None,
    redirect_uri: str | None = None,
    manifest_uri: str | None = None,
    scopes: list[str] | None = None,
    app_domain: str | None = None,
    expires_at: datetime | None = None,
    key_store: TransitKeyStore | None = None,
) -> str:
    """Build and sign an auth request.

    Without transit_private_key a fresh one is generated and persisted in
    key_store (default: the transit key file) before it is used.
    """
    if not app_domain:
        raise InvalidParameterError("appDomain", "must be the app origin", app_domain)
    app_domain = app_domain.rstrip("/")

    if transit_private_key is None:
        transit_private_key = (key_store or FileTransitKeyStore()).generate_and_store()

    public_key, issuer = _issuer(transit_private_key)
    payload = {
        "do_not_include_profile": True,
        "domain_name": app_domain,
        "exp": to_epoch_seconds(expires_at or next_hour()),
        "iat": to_epoch_seconds(utcnow()),
        "iss": issuer,
        "jti": make_uuid4(),
        "manifest_uri": manifest_uri or f"{app_domain}/manifest.json",
        "public_keys": [public_key],
        "redirect_uri": redirect_uri or f"{app_domain}/",
        "scopes": list(DEFAULT_SCOPES if scopes is None else scopes),
        "supports_hub_url": True,
        "version": AUTH_PROTOCOL_VERSION,
    }
    log.info('Generating a "v%s" auth request for %s', AUTH_PROTOCOL_VERSION, app_domain)
    return TokenSigner(SIGNING_ALGORITHM, transit_private_key).sign(payload)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

def make_auth_response(
    private_key_hex: str,
    profile: dict[str, Any] | None = None,
    username: str | None = None,
    metadata: dict[str, Any] | None = None,
    core_token: str | None = None,
    app_private_key: str | None = None,
    expires_at: datetime | None = None,
    transit_public_key: str | None = None,
    hub_url: str | None = None,
) -> str:
    """Build and sign an auth response with the user's identity key.

    With app_private_key this is a v1.1.0 response carrying email, hubUrl,
    profile_url and version; the app key (and core token) are encrypted
    to transit_public_key when given. Without it, the legacy shape is
    produced and none of the v1.1.0 fields appear.
    """
    public_key, issuer = _issuer(private_key_hex)
    metadata = metadata or {}

    private_key_payload = app_private_key
    core_token_payload = core_token
    additional: dict[str, Any] = {}
    if app_private_key is not None:
        log.info('Generating a "v%s" auth response', AUTH_PROTOCOL_VERSION)
        if transit_public_key is not None:
            private_key_payload = encrypt_private_key(transit_public_key, app_private_key)
            if core_token is not None:
                core_token_payload = encrypt_private_key(transit_public_key, core_token)
        additional = {
            "email": metadata.get("email") or None,
            "hubUrl": hub_url,
            "profile_url": metadata.get("profileUrl") or None,
            "version": AUTH_PROTOCOL_VERSION,
        }
    else:
        log.warning("Generating a legacy auth response")

    payload = {
        "core_token": core_token_payload,
        "exp": to_epoch_seconds(expires_at or next_month()),
        "iat": to_epoch_seconds(utcnow()),
        "iss": issuer,
        "jti": make_uuid4(),
        "private_key": private_key_payload,
        "profile": profile,
        "public_keys": [public_key],
        "username": username,
        **additional,
    }
    return TokenSigner(SIGNING_ALGORITHM, private_key_hex).sign(payload)


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------

def _check_signed_by_issuer(token: str) -> dict[str, Any]:
    """Decode token and require a valid signature from public_keys[0] whose
    address DID matches iss. Raises NameIDError subclasses on failure.
    """
    payload = decode_token(token)["payload"]
    public_keys = payload.get("public_keys")
    if not isinstance(public_keys, list) or len(public_keys) != 1:
        raise MalformedTokenError("Exactly one public key is supported")
    public_key = public_keys[0]

    expected = str(DecentralizedID.from_address(public_key_to_address(public_key)))
    if payload.get("iss") != expected:
        raise IssuerMismatchError("Issuer DID does not match public_keys[0]")
    if not TokenVerifier(SIGNING_ALGORITHM, public_key).verify(token):
        raise SignatureVerificationFailedError("Signature does not verify against public_keys[0]")

    now = to_epoch_seconds(utcnow())
    exp, iat = payload.get("exp"), payload.get("iat")
    if isinstance(exp, (int, float)) and exp and exp < now:
        raise MalformedTokenError("Token has expired")
    if isinstance(iat, (int, float)) and iat > now + 60:
        raise MalformedTokenError("Token was issued in the future")
    return payload


def verify_auth_request(token: str) -> bool:
    """True if the request is validly self-signed, unexpired and its
    manifest and redirect URIs share the origin of domain_name.
    """
    try:
        payload = _check_signed_by_issuer(token)
    except (NameIDError, ValueError) as e:
        log.warning("Auth request rejected: %s", e)
        return False
    domain = payload.get("domain_name") or ""
    for field in ("manifest_uri", "redirect_uri"):
        if not is_same_origin_absolute_url(domain, payload.get(field) or ""):
            log.warning("Auth request rejected: %s is not on %s", field, domain)
            return False
    return True


def verify_auth_response(token: str) -> bool:
    """True if the response is validly self-signed and unexpired."""
    try:
        _check_signed_by_issuer(token)
    except (NameIDError, ValueError) as e:
        log.warning("Auth response rejected: %s", e)
        return False
    return True
