"""
Social proof validation.

A proof is valid when the page at its URL contains a statement tying the
account to the name ("verifying that alice.id is my blockstack id") or to
the owner address. Validation is fail-closed: unreachable pages, bad
status codes, foreign URLs and parse failures all yield valid=False.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Any

import httpx

from nameid import HTTP_TIMEOUT_SECS
from nameid.errors import InvalidParameterError, InvalidProofUrlError
from nameid.network import fetch_text, open_client
from nameid.profiles.services import PROFILE_SERVICES

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Proof:
    service: str
    identifier: str
    proof_url: str
    valid: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "service": self.service,
            "identifier": self.identifier,
            "proof_url": self.proof_url,
            "valid": self.valid,
        }


def contains_valid_proof_statement(search_text: str, name: str | None = None) -> bool:
    """True if search_text claims ownership of the fully qualified name."""
    if not name:
        return False
    if len(name.split(".")) != 2:
        raise InvalidParameterError("name", "must be a fully qualified name", name)

    search_text = search_text.lower()
    username = name[:-len(".id")] if name.endswith(".id") else None

    styles = [
        f'verifying that "{name}" is my blockstack id',
        f"verifying that {name} is my blockstack id",
        f"verifying that &quot;{name}&quot; is my blockstack id",
    ]
    if username is not None:
        # legacy .id proof wordings
        styles += [
            f"verifying myself: my bitcoin username is +{username}",
            f"verifying myself: my bitcoin username is {username}",
            f"verifying myself: my openname is {username}",
            f"verifying that +{username} is my bitcoin username",
            f"verifying that {username} is my bitcoin username",
            f"verifying that {username} is my openname",
            f"verifying that +{username} is my openname",
            f"verifying i am +{username} on my passcard",
            f"verifying that +{username} is my blockchain id",
        ]

    if any(style in search_text for style in styles):
        return True
    return (
        username is not None
        and "verifymyonename" in search_text
        and f"+{username}" in search_text
    )


def contains_valid_address_proof_statement(statement: str, address: str) -> bool:
    """True if statement says the blockstack id is secured with address.

    Only the text before the address is case-folded; the address itself is
    base58 and case-sensitive.
    """
    if not address:
        return False
    statement = statement.split(address)[0].lower() + address
    return f"verifying my blockstack id is secured with the address {address}" in statement


async def validate_proof(
    proof: Proof,
    owner_address: str,
    name: str | None = None,
    client: httpx.AsyncClient | None = None,
    timeout: float = HTTP_TIMEOUT_SECS,
) -> Proof:
    """Fetch and check one proof. Never raises; returns the proof with valid set."""
    service = PROFILE_SERVICES.get(proof.service)
    if service is None:
        return replace(proof, valid=False)

    try:
        url = service.get_proof_url(proof.identifier, proof.proof_url)
        resp = await fetch_text(url, client, timeout)
    except (InvalidProofUrlError, httpx.HTTPError) as e:
        log.warning("Error while requesting proof url %s: %s", proof.proof_url, e)
        return replace(proof, valid=False)

    if resp.status_code != 200:
        log.warning(
            "Proof url %s returned unexpected http status %d. Unable to validate proof.",
            url, resp.status_code,
        )
        return replace(proof, valid=False)

    try:
        text = resp.text
        if service.validates_identity_in_body and proof.identifier != service.get_proof_identity(text):
            return replace(proof, valid=False)
        statement = service.get_proof_statement(text)
        valid = (
            contains_valid_proof_statement(statement, name)
            or contains_valid_address_proof_statement(statement, owner_address)
        )
    except (InvalidParameterError, ValueError) as e:
        log.warning("Could not validate proof %s: %s", proof.proof_url, e)
        return replace(proof, valid=False)
    return replace(proof, valid=valid)


def proofs_to_validate(profile: dict[str, Any]) -> list[Proof]:
    """Accounts with a supported service and an http proof URL."""
    proofs = []
    for account in profile.get("account") or []:
        if not isinstance(account, dict):
            continue
        if account.get("service") not in PROFILE_SERVICES:
            continue
        if not account.get("identifier") or not account.get("proofUrl"):
            continue
        if account.get("proofType") != "http":
            continue
        proofs.append(Proof(account["service"], account["identifier"], account["proofUrl"]))
    return proofs


async def validate_proofs(
    profile: dict[str, Any],
    owner_address: str,
    name: str | None = None,
    client: httpx.AsyncClient | None = None,
    timeout: float = HTTP_TIMEOUT_SECS,
) -> list[Proof]:
    """Validate every social proof in profile concurrently."""
    if profile is None:
        raise InvalidParameterError("profile", "must not be None")
    proofs = proofs_to_validate(profile)
    if not proofs:
        return []
    async with open_client(client, timeout) as http:
        return list(await asyncio.gather(
            *(validate_proof(p, owner_address, name, http, timeout) for p in proofs)
        ))
