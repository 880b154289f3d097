"""Security helpers: key derivation and the encrypted wallet container.

This package provides:
- PBKDF2-HMAC-SHA256 key derivation from the master password
- AES-256-GCM container framing (salt || nonce || ciphertext) with atomic writes
- optional master-password storage in the OS keyring
"""

from .kdf import generate_salt, derive_key
from .container import (
    encrypt_container,
    decrypt_container,
    read_container,
    write_container,
)
from .keystore import save_password, load_password, delete_password

__all__ = [
    "generate_salt",
    "derive_key",
    "encrypt_container",
    "decrypt_container",
    "read_container",
    "write_container",
    "save_password",
    "load_password",
    "delete_password",
]
