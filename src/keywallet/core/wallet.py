"""
Wallet store: the in-memory entry collection and its encrypted file.

Every save writes the complete collection; nothing is ever patched in place.
A missing file is treated as an empty wallet and created straight away with
the supplied password, which becomes the password for all later loads.

Single process only. Two processes saving the same file race and the last
writer wins.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, ItemsView, List, Mapping, Optional

from ..security.container import read_container, write_container
from .exceptions import EntryNotFoundError, InvalidEntryError
from .records import DEFAULT_ENCODING, ENCODINGS, decode_entries, encode_entries

logger = logging.getLogger(__name__)


def load(
    path: str | Path,
    password: bytes | str,
    strict: bool = False,
    encoding: str = DEFAULT_ENCODING,
) -> Dict[str, str]:
    """
    Load and decrypt the wallet at ``path``.

    If the file does not exist an empty wallet is saved there with
    ``password`` (using ``encoding``) and an empty dict is returned.

    Raises:
        ContainerFormatError: file too short to be a wallet.
        AuthenticationError: wrong password or corrupted ciphertext.
        MalformedRecordError: unparseable payload (strict or packed).
        OSError: the file could not be read.
    """
    p = Path(path).expanduser()
    if not p.exists():
        logger.debug("No wallet at %s; creating an empty one", p)
        save(p, password, {}, encoding=encoding)
        return {}

    plaintext = read_container(p, password)
    entries = decode_entries(plaintext, strict=strict)
    logger.debug("Loaded %d entries from %s", len(entries), p)
    return entries


def save(
    path: str | Path,
    password: bytes | str,
    entries: Mapping[str, str],
    encoding: str = DEFAULT_ENCODING,
) -> None:
    """Encrypt the full ``entries`` collection and replace the file at ``path``."""
    p = Path(path).expanduser()
    plaintext = encode_entries(entries, encoding=encoding)
    write_container(p, plaintext, password)
    logger.debug("Saved %d entries to %s", len(entries), p)


class Wallet:
    """
    A password-protected key/value collection bound to one file.

    The wallet owns its entries; callers mutate them only through
    :meth:`add`, :meth:`remove` and :meth:`clear`, then call :meth:`save`.
    """

    def __init__(
        self,
        path: str | Path,
        password: bytes | str,
        encoding: str = DEFAULT_ENCODING,
        strict: bool = False,
    ):
        if encoding not in ENCODINGS:
            raise ValueError(f"Unknown record encoding: {encoding!r}")
        self.path = Path(path).expanduser()
        self.encoding = encoding
        self.strict = strict
        self._password = password
        self._entries: Dict[str, str] = {}
        self.dirty = False

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> "Wallet":
        self._entries = load(
            self.path, self._password, strict=self.strict, encoding=self.encoding
        )
        self.dirty = False
        return self

    def save(self) -> None:
        save(self.path, self._password, self._entries, encoding=self.encoding)
        self.dirty = False

    @property
    def password(self) -> bytes | str:
        return self._password

    def change_password(self, new_password: bytes | str) -> None:
        """Use ``new_password`` for subsequent saves."""
        if not new_password:
            raise ValueError("Password must not be empty")
        self._password = new_password
        self.dirty = True

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    def add(self, key: str, value: str) -> bool:
        """Insert or overwrite ``key``. Returns True if a value was replaced."""
        if not key:
            raise InvalidEntryError("Key must not be empty")
        replaced = key in self._entries
        self._entries[key] = value
        self.dirty = True
        return replaced

    def get(self, key: str) -> Optional[str]:
        return self._entries.get(key)

    def remove(self, key: str) -> str:
        try:
            value = self._entries.pop(key)
        except KeyError:
            raise EntryNotFoundError(key) from None
        self.dirty = True
        return value

    def clear(self) -> None:
        if self._entries:
            self.dirty = True
        self._entries.clear()

    def keys(self) -> List[str]:
        return sorted(self._entries)

    def items(self) -> ItemsView[str, str]:
        return self._entries.items()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
