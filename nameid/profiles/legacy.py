"""Lift the legacy flat person format into schema.org JSON-LD."""

from __future__ import annotations

from typing import Any

LEGACY_KEYS = frozenset({
    "name", "bio", "location", "avatar", "cover", "website",
    "bitcoin", "twitter", "facebook", "github", "auth", "pgp",
})

PROOF_SERVICES = ("twitter", "facebook", "github")


def _get(obj: Any, key: str) -> Any:
    return obj.get(key) if isinstance(obj, dict) else None


def _format_account(service: str, data: dict[str, Any]) -> dict[str, Any]:
    account = {
        "@type": "Account",
        "service": service,
        "identifier": data["username"],
        "proofType": "http",
    }
    proof_url = _get(data.get("proof"), "url")
    if proof_url is not None:
        account["proofUrl"] = proof_url
    return account


def is_legacy_profile(data: Any) -> bool:
    return isinstance(data, dict) and bool(LEGACY_KEYS & data.keys())


def get_person_from_legacy_format(legacy: dict[str, Any]) -> dict[str, Any]:
    """Map a legacy profile to a Person document. Raises ValueError if not legacy."""
    if not is_legacy_profile(legacy):
        raise ValueError("Not a legacy profile: no recognised legacy keys")

    person: dict[str, Any] = {
        "@context": "http://schema.org/",
        "@type": "Person",
        "@id": "",
    }

    formatted_name = _get(legacy.get("name"), "formatted")
    if formatted_name is not None:
        person["name"] = formatted_name
    if legacy.get("bio") is not None:
        person["description"] = legacy["bio"]

    locality = _get(legacy.get("location"), "formatted")
    if locality is not None:
        person["address"] = {"@type": "PostalAddress", "addressLocality": locality}

    images = []
    for kind in ("avatar", "cover"):
        url = _get(legacy.get(kind), "url")
        if url is not None:
            images.append({"@type": "ImageObject", "name": kind, "contentUrl": url})
    if images:
        person["image"] = images

    if legacy.get("website") is not None:
        person["website"] = [{"@type": "WebSite", "url": legacy["website"]}]

    accounts = []
    bitcoin_address = _get(legacy.get("bitcoin"), "address")
    if bitcoin_address is not None:
        accounts.append({
            "@type": "Account",
            "role": "payment",
            "service": "bitcoin",
            "identifier": bitcoin_address,
        })
    for service in PROOF_SERVICES:
        data = legacy.get(service)
        if _get(data, "username") is not None:
            accounts.append(_format_account(service, data))

    auth = legacy.get("auth")
    if isinstance(auth, list) and auth:
        keychain = _get(auth[0], "publicKeychain")
        if keychain is not None:
            accounts.append({
                "@type": "Account",
                "role": "key",
                "service": "bip32",
                "identifier": keychain,
            })

    pgp = legacy.get("pgp")
    if _get(pgp, "fingerprint") is not None and _get(pgp, "url") is not None:
        accounts.append({
            "@type": "Account",
            "role": "key",
            "service": "pgp",
            "identifier": pgp["fingerprint"],
            "contentUrl": pgp["url"],
        })

    person["account"] = accounts
    return person
