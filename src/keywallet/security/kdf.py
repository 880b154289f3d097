"""Password-based key derivation for KeyWallet."""
import os
from typing import Dict

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

# Fixed for every wallet file; they are not recorded in the container, so
# changing any of them makes previously saved wallets unreadable.
PBKDF2_ITERATIONS = 100_000
KEY_LEN = 32
SALT_LEN = 16


def generate_salt(length: int = SALT_LEN) -> bytes:
    """Return a cryptographically secure random salt."""
    return os.urandom(length)


def derive_key(
    password: bytes | str,
    salt: bytes,
    iterations: int = PBKDF2_ITERATIONS,
    key_len: int = KEY_LEN,
) -> bytes:
    """
    Derive a symmetric key from a password using PBKDF2-HMAC-SHA256.
    Returns raw derived key bytes.
    """
    if isinstance(password, str):
        password = password.encode("utf-8")
    if not password:
        raise ValueError("Password must not be empty")

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=key_len,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(password)


def kdf_params_to_dict(
    iterations: int = PBKDF2_ITERATIONS,
    key_len: int = KEY_LEN,
    salt_len: int = SALT_LEN,
) -> Dict:
    return {
        "algo": "pbkdf2-hmac-sha256",
        "iterations": iterations,
        "key_len": key_len,
        "salt_len": salt_len,
    }
