"""
Social proof services.

Each provider is one ProofService record: how to turn a claimed proof URL
into the URL to fetch, how to pull the proof statement out of the fetched
page and, for providers whose URLs don't embed the username, how to read
the account identity from the page.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable

from bs4 import BeautifulSoup

from nameid.errors import InvalidProofUrlError

log = logging.getLogger(__name__)


def prefix_scheme(proof_url: str) -> str:
    """Force https, adding it when the URL has no scheme."""
    if proof_url.startswith("http://"):
        return "https://" + proof_url[len("http://"):]
    if not proof_url.startswith("https://"):
        return f"https://{proof_url}"
    return proof_url


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _meta_content(html: str, **attrs: str) -> str | None:
    tag = _soup(html).find("meta", attrs=attrs)
    if tag is None:
        return None
    return tag.get("content")


def _strip_quotes(text: str) -> str:
    return text.replace("“", "", 1).replace("”", "", 1)


@dataclass(frozen=True)
class ProofService:
    name: str
    base_urls: tuple[str, ...]
    statement: Callable[[str], str]
    identity: Callable[[str], str] | None = None
    url_resolver: Callable[[ProofService, str, str], str] | None = None

    @property
    def validates_identity_in_body(self) -> bool:
        return self.identity is not None

    def get_proof_url(self, identifier: str, proof_url: str) -> str:
        """Return the URL to fetch. Raises InvalidProofUrlError."""
        if self.url_resolver is not None:
            return self.url_resolver(self, identifier, proof_url)
        url = prefix_scheme(proof_url.lower())
        for base_url in self.base_urls:
            if url.startswith(f"{base_url}{identifier}".lower()):
                return url
        raise InvalidProofUrlError(f"Proof url {proof_url} is not valid for service {self.name}")

    def get_proof_statement(self, html: str) -> str:
        return self.statement(html)

    def get_proof_identity(self, html: str) -> str:
        return self.identity(html) if self.identity else html


# ---------------------------------------------------------------------------
# URL resolvers
# ---------------------------------------------------------------------------

def _github_url(service: ProofService, identifier: str, proof_url: str) -> str:
    url = prefix_scheme(proof_url.lower())
    for base_url in service.base_urls:
        if url.startswith(f"{base_url}{identifier}".lower()):
            return url + ("raw" if url.endswith("/") else "/raw")
    raise InvalidProofUrlError(f"Proof url {proof_url} is not valid for service {service.name}")


def _facebook_url(service: ProofService, identifier: str, proof_url: str) -> str:
    url = prefix_scheme(proof_url.lower())
    if url.startswith("https://facebook.com"):
        url = "https://www.facebook.com" + url[len("https://facebook.com"):]
    for base_url in service.base_urls:
        if url.startswith(f"{base_url}{identifier}".lower()):
            return url
    raise InvalidProofUrlError(f"Proof url {proof_url} is not valid for service {service.name}")


def _instagram_url(service: ProofService, identifier: str, proof_url: str) -> str:
    # Instagram post URLs carry no username; identity is checked in the page
    url = prefix_scheme(proof_url)
    if url.startswith("https://instagram.com"):
        url = "https://www.instagram.com" + url[len("https://instagram.com"):]
    if url.startswith(service.base_urls):
        return url
    raise InvalidProofUrlError(f"Proof url {proof_url} is not valid for service {service.name}")


def _linkedin_url(service: ProofService, identifier: str, proof_url: str) -> str:
    url = prefix_scheme(proof_url.lower())
    if url.startswith(service.base_urls):
        return url
    raise InvalidProofUrlError(f"Proof url {proof_url} is not valid for service {service.name}")


def _hackernews_url(service: ProofService, identifier: str, proof_url: str) -> str:
    url = prefix_scheme(proof_url.lower())
    if any(url == f"{base_url}{identifier}".lower() for base_url in service.base_urls):
        return url
    raise InvalidProofUrlError(f"Proof url {proof_url} is not valid for service {service.name}")


# ---------------------------------------------------------------------------
# Page extractors
# ---------------------------------------------------------------------------

def _og_description_statement(html: str) -> str:
    statement = _meta_content(html, property="og:description")
    return _strip_quotes(statement.strip()) if statement is not None else ""


def _facebook_statement(html: str) -> str:
    statement = _meta_content(html, name="description")
    return statement.strip() if statement is not None else ""


def _github_statement(text: str) -> str:
    return text


def _instagram_identity(html: str) -> str:
    description = _meta_content(html, property="og:description")
    if description is None:
        log.warning("Could not find the Instagram description")
        return ""
    match = re.search(r"\(([^)]+)\)", description.split(":")[0])
    if match is None:
        log.warning("Could not match an Instagram username in %r", description)
        return ""
    return match.group(1)[1:]


def _instagram_statement(html: str) -> str:
    statement = _meta_content(html, property="og:description")
    if statement is None or len(statement.split(":")) < 2:
        return ""
    return _strip_quotes(statement.split(":")[1].strip())


def _linkedin_article(html: str):
    return _soup(html).find("article")


def _linkedin_identity(html: str) -> str:
    article = _linkedin_article(html)
    link = article.select_one(".post-meta__profile-link") if article else None
    if link is None or not link.get("href"):
        return ""
    return link["href"].split("/")[0]


def _linkedin_statement(html: str) -> str:
    article = _linkedin_article(html)
    commentary = article.select_one(".commentary") if article else None
    return commentary.get_text() if commentary is not None else ""


def _hackernews_statement(html: str) -> str:
    main = _soup(html).find(id="hnmain")
    statement = ""
    if main is None:
        return statement
    for row in main.find_all("tr"):
        cells = row.find_all("td", recursive=False)
        if cells and cells[0].get_text().strip() == "about:":
            statement = cells[-1].get_text().strip()
    return statement


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

PROFILE_SERVICES: dict[str, ProofService] = {
    "facebook": ProofService(
        name="facebook",
        base_urls=("https://www.facebook.com/",),
        statement=_facebook_statement,
        url_resolver=_facebook_url,
    ),
    "github": ProofService(
        name="github",
        base_urls=("https://gist.github.com/",),
        statement=_github_statement,
        url_resolver=_github_url,
    ),
    "hackerNews": ProofService(
        name="hackerNews",
        base_urls=("https://news.ycombinator.com/user?id=",),
        statement=_hackernews_statement,
        url_resolver=_hackernews_url,
    ),
    "instagram": ProofService(
        name="instagram",
        base_urls=("https://www.instagram.com/",),
        statement=_instagram_statement,
        identity=_instagram_identity,
        url_resolver=_instagram_url,
    ),
    "linkedIn": ProofService(
        name="linkedIn",
        base_urls=("https://www.linkedin.com/feed/update/",),
        statement=_linkedin_statement,
        identity=_linkedin_identity,
        url_resolver=_linkedin_url,
    ),
    "twitter": ProofService(
        name="twitter",
        base_urls=("https://twitter.com/",),
        statement=_og_description_statement,
    ),
}
