"""Password-protected wallet container: AES-256-GCM over the whole entry blob.

File layout (binary, no header or version byte):
- 16 bytes: salt, fresh per save
- 12 bytes: nonce, fresh per save
- rest:     AES-GCM ciphertext followed by the 16-byte tag

The key is derived from (password, salt) on every call and dropped afterwards.
A wrong password and a tampered file fail the same way, at tag verification;
there is no other password check.
"""
from __future__ import annotations

import os
import tempfile
from pathlib import Path

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from keywallet.core.exceptions import AuthenticationError, ContainerFormatError
from .kdf import SALT_LEN, derive_key, generate_salt

NONCE_LEN = 12
TAG_LEN = 16
HEADER_LEN = SALT_LEN + NONCE_LEN
# smallest file this module writes: empty plaintext still carries a tag
MIN_CONTAINER_LEN = HEADER_LEN + TAG_LEN


def encrypt_container(plaintext: bytes, password: bytes | str) -> bytes:
    """
    Encrypt ``plaintext`` and return the complete container bytes.

    The result is ``salt || nonce || ciphertext``; its length is always
    ``HEADER_LEN + len(plaintext) + TAG_LEN``.
    """
    salt = generate_salt(SALT_LEN)
    key = derive_key(password, salt)
    nonce = os.urandom(NONCE_LEN)
    ct = AESGCM(key).encrypt(nonce, plaintext, None)
    return salt + nonce + ct


def decrypt_container(blob: bytes, password: bytes | str) -> bytes:
    """
    Decrypt container bytes produced by :func:`encrypt_container`.

    Raises:
        ContainerFormatError: blob is shorter than salt + nonce. Checked
            before any key derivation.
        AuthenticationError: tag verification failed.
    """
    if len(blob) < HEADER_LEN:
        raise ContainerFormatError()

    salt = blob[:SALT_LEN]
    nonce = blob[SALT_LEN:HEADER_LEN]
    ct = blob[HEADER_LEN:]

    key = derive_key(password, salt)
    try:
        return AESGCM(key).decrypt(nonce, ct, None)
    except InvalidTag:
        raise AuthenticationError() from None


def read_container(path: str | Path, password: bytes | str) -> bytes:
    """Read the wallet file at ``path`` and return its decrypted plaintext."""
    data = Path(path).read_bytes()
    return decrypt_container(data, password)


def write_container(path: str | Path, plaintext: bytes, password: bytes | str) -> None:
    """
    Encrypt ``plaintext`` and replace the file at ``path`` with the result.

    The whole container is built in memory first, so a failing encryption
    never touches the destination. The bytes are then staged in a temporary
    file next to ``path``, fsynced, moved over it with :func:`os.replace`,
    and the parent directory is fsynced (POSIX) so the rename survives a
    power loss. A crash part way through leaves either the old file or the
    new one, never a truncated mix.
    """
    blob = encrypt_container(plaintext, password)

    destination = Path(path).expanduser()
    destination.parent.mkdir(parents=True, exist_ok=True)

    # NamedTemporaryFile creates the file with 0600 permissions
    with tempfile.NamedTemporaryFile(
        dir=destination.parent, prefix=f".{destination.name}.", delete=False
    ) as tmpf:
        tmp_path = Path(tmpf.name)
        try:
            tmpf.write(blob)
            tmpf.flush()
            os.fsync(tmpf.fileno())
        except BaseException:
            tmpf.close()
            tmp_path.unlink(missing_ok=True)
            raise

    try:
        os.replace(tmp_path, destination)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise

    _fsync_dir(destination.parent)


def _fsync_dir(directory: Path) -> None:
    # The rename itself is only durable once the directory entry is flushed.
    # Windows cannot open a directory for fsync.
    if os.name != "posix":
        return
    fd = os.open(directory, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)
