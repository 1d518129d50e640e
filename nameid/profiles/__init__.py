"""
Profiles - signed schema.org documents attached to names.

Modules:
    tokens    - Sign, verify and unwrap profile tokens
    legacy    - Lift legacy flat person JSON into JSON-LD
    profile   - Profile / Person / Organization / CreativeWork value objects
    proofs    - Social proof statement matching and validation
    services  - Per-provider proof URL and page extraction rules
    lookup    - Name -> verified profile

Import submodules directly; this package re-exports the token codec only,
so nameid.zonefile can depend on it without import cycles.
"""

from nameid.profiles.tokens import (
    extract_profile,
    sign_profile_token,
    verify_profile_token,
    wrap_profile_token,
)

__all__ = [
    "extract_profile",
    "sign_profile_token",
    "verify_profile_token",
    "wrap_profile_token",
]
