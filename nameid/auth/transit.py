"""
Transit key storage.

An app signs its auth request with a throwaway transit key and must keep
that key until the auth response comes back, since the response's app
private key is encrypted to it.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from nameid.config import load_settings
from nameid.errors import InvalidKeyEncodingError
from nameid.keys import decode_private_key, make_ec_private_key

log = logging.getLogger(__name__)


class TransitKeyStore(Protocol):
    def generate_and_store(self) -> str:
        """Create a fresh transit private key, persist it and return its hex."""
        ...

    def load(self) -> str | None:
        """Return the persisted transit private key hex, or None."""
        ...


class FileTransitKeyStore:
    """Transit key kept as hex in a mode-600 file.

    Without a path, the configured transit_key_path is used.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path) if path else load_settings().transit_key_path

    def generate_and_store(self) -> str:
        key = make_ec_private_key()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(key)
        try:
            self.path.chmod(0o600)
        except OSError:
            pass  # Windows may not support chmod 600
        log.info("Stored new transit key at %s", self.path)
        return key

    def load(self) -> str | None:
        if not self.path.is_file():
            return None
        key = self.path.read_text().strip()
        try:
            decode_private_key(key)
        except InvalidKeyEncodingError:
            log.warning("Ignoring malformed transit key file %s", self.path)
            return None
        return key


class MemoryTransitKeyStore:
    """Transit key held in process memory. For tests and short-lived tools."""

    def __init__(self) -> None:
        self._key: str | None = None

    def generate_and_store(self) -> str:
        self._key = make_ec_private_key()
        return self._key

    def load(self) -> str | None:
        return self._key
