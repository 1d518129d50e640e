"""
Profile documents - schema.org JSON-LD value objects.

Profile holds the common @context/@type/@id triple; Person adds typed
accessors for the fields apps actually read. Unknown keys are preserved
in `extra` so to_json() round-trips documents written by newer clients.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, ClassVar

import httpx

from nameid.errors import InvalidParameterError, RemoteServiceError
from nameid.network import CoreClient
from nameid.profiles.legacy import get_person_from_legacy_format
from nameid.profiles.proofs import Proof, validate_proofs
from nameid.profiles.tokens import extract_profile, sign_profile_token

SCHEMA_CONTEXT = "http://schema.org"

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June", "July",
    "August", "September", "October", "November", "December",
)


@dataclass(frozen=True)
class Profile:
    id: str
    type: str = "Thing"
    context: str = SCHEMA_CONTEXT
    extra: dict[str, Any] = field(default_factory=dict)

    # JSON key -> attribute name, for typed subclass fields
    JSON_FIELDS: ClassVar[dict[str, str]] = {}

    def to_json(self) -> dict[str, Any]:
        doc: dict[str, Any] = {"@context": self.context, "@type": self.type, "@id": self.id}
        for key, attr in self.JSON_FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                doc[key] = value
        doc.update(self.extra)
        return doc

    @classmethod
    def from_json(cls, doc: dict[str, Any]) -> Profile:
        """Build a profile, picking the subclass from @type when called on Profile."""
        if not isinstance(doc, dict):
            raise InvalidParameterError("profile", "must be a JSON object", doc)
        if cls is Profile:
            cls = PROFILE_TYPES.get(doc.get("@type"), Profile)

        kwargs: dict[str, Any] = {
            "id": doc.get("@id", ""),
            "context": doc.get("@context", SCHEMA_CONTEXT),
        }
        if "@type" in doc:
            kwargs["type"] = doc["@type"]
        extra = {}
        for key, value in doc.items():
            if key in ("@context", "@type", "@id"):
                continue
            if key in cls.JSON_FIELDS:
                kwargs[cls.JSON_FIELDS[key]] = value
            else:
                extra[key] = value
        return cls(extra=extra, **kwargs)

    @classmethod
    def from_token(
        cls,
        token: str,
        public_key_or_address: str | None = None,
        *,
        allow_unverified: bool = False,
    ) -> Profile:
        profile = extract_profile(token, public_key_or_address, allow_unverified=allow_unverified)
        return cls.from_json(profile)

    @classmethod
    async def from_zone_file(
        cls,
        zone_file,
        public_key_or_address: str | None = None,
        core: CoreClient | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> Profile:
        """Fetch the profile a NameZoneFile points at.

        Without public_key_or_address the owner address is looked up on
        the core node, which is then trusted.
        """
        from nameid.zonefile import fetch_profile_token

        if not public_key_or_address:
            info = await (core or CoreClient()).get_name_info(zone_file.name)
            if not info.get("address"):
                raise RemoteServiceError(f"Core API returned no owner address for {zone_file.name}")
            public_key_or_address = info["address"]
        token = await fetch_profile_token(zone_file.token_file_url, client)
        return cls.from_token(token, public_key_or_address)

    def to_token(self, private_key_hex: str) -> str:
        return sign_profile_token(self.to_json(), private_key_hex)

    async def validate_proofs(
        self,
        owner_address: str,
        name: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> list[Proof]:
        return await validate_proofs(self.to_json(), owner_address, name, client)


@dataclass(frozen=True)
class Person(Profile):
    type: str = "Person"
    name: str | None = None
    given_name: str | None = None
    family_name: str | None = None
    description: str | None = None
    image: list[dict[str, Any]] | None = None
    website: list[dict[str, Any]] | None = None
    account: list[dict[str, Any]] | None = None
    works_for: list[dict[str, Any]] | None = None
    knows: list[dict[str, Any]] | None = None
    address: dict[str, Any] | None = None
    birth_date: str | None = None
    tax_id: str | None = None

    JSON_FIELDS: ClassVar[dict[str, str]] = {
        "name": "name",
        "givenName": "given_name",
        "familyName": "family_name",
        "description": "description",
        "image": "image",
        "website": "website",
        "account": "account",
        "worksFor": "works_for",
        "knows": "knows",
        "address": "address",
        "birthDate": "birth_date",
        "taxID": "tax_id",
    }

    @classmethod
    def from_legacy_format(cls, legacy: dict[str, Any]) -> Person:
        return cls.from_json(get_person_from_legacy_format(legacy))

    def get_name(self) -> str | None:
        if self.name is not None:
            return self.name
        if self.given_name is None and self.family_name is None:
            return None
        return " ".join(p for p in (self.given_name, self.family_name) if p)

    def get_given_name(self) -> str | None:
        if self.given_name:
            return self.given_name
        if self.name:
            return " ".join(self.name.split(" ")[:-1])
        return None

    def get_family_name(self) -> str | None:
        if self.family_name is not None:
            return self.family_name
        if self.name is not None:
            return self.name.split(" ")[-1]
        return None

    def get_description(self) -> str | None:
        return self.description

    def get_avatar_url(self) -> str | None:
        for image in self.image or []:
            if image.get("name") == "avatar":
                return image.get("contentUrl")
        return None

    def get_verified_accounts(self, verifications: list[Proof]) -> list[dict[str, Any]]:
        """Accounts backed by at least one valid matching proof."""
        verified = []
        for account in self.account or []:
            for proof in verifications:
                if (
                    proof.valid
                    and proof.service == account.get("service")
                    and proof.identifier == account.get("identifier")
                    and proof.proof_url == account.get("proofUrl")
                ):
                    verified.append(dict(account))
                    break
        return verified

    def get_address(self) -> str | None:
        if not self.address:
            return None
        parts = [
            self.address[key]
            for key in ("streetAddress", "addressLocality", "postalCode", "addressCountry")
            if self.address.get(key)
        ]
        return ", ".join(parts) if parts else None

    def get_formatted_birth_date(self) -> str | None:
        if not self.birth_date:
            return None
        try:
            born = date.fromisoformat(self.birth_date[:10])
        except ValueError:
            return None
        return f"{MONTH_NAMES[born.month - 1]} {born.day}, {born.year}"

    def get_connections(self) -> list[dict[str, Any]] | None:
        return self.knows

    def get_organizations(self) -> list[dict[str, Any]] | None:
        return self.works_for


@dataclass(frozen=True)
class Organization(Profile):
    type: str = "Organization"


@dataclass(frozen=True)
class CreativeWork(Profile):
    type: str = "CreativeWork"


PROFILE_TYPES: dict[str, type[Profile]] = {
    "Person": Person,
    "Organization": Organization,
    "CreativeWork": CreativeWork,
}
