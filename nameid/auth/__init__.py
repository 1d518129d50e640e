"""
Auth - sign-in request/response tokens.

Modules:
    messages  - Build, sign and verify auth requests and responses
    transit   - Transit key persistence
    provider  - Identity-provider helpers (manifest fetch, redirect URL)
"""

from nameid.auth.messages import (
    decrypt_private_key,
    encrypt_private_key,
    make_auth_request,
    make_auth_response,
    verify_auth_request,
    verify_auth_response,
)

__all__ = [
    "decrypt_private_key",
    "encrypt_private_key",
    "make_auth_request",
    "make_auth_response",
    "verify_auth_request",
    "verify_auth_response",
]
