"""OS keystore integration using keyring for optional master-password storage.

The password is stored under (service, account), where the CLI uses the
absolute wallet path as the account so several wallets can coexist. This is
opt-in convenience only; whether the backend is actually protected depends
on the platform.
"""
from typing import Optional

try:
    import keyring
    from keyring.errors import PasswordDeleteError
except ImportError:
    keyring = None
    PasswordDeleteError = None


def _require_keyring():
    if keyring is None:
        raise RuntimeError("keyring package is not available; install keyring to use keystore features")


def assess_keyring_backend() -> tuple[bool, str]:
    """Return (is_secure, message) describing the current keyring backend.

    Heuristics are used because the `keyring` package exposes different backends
    across platforms. If `keyring` is not available this returns (False, reason).

    A master password opens every entry in the wallet, so besides plaintext
    file backends the `null` and `fail` backends count as insecure too: the
    null backend silently drops what is stored, which looks like success
    while the password is lost, and the fail backend only means no real
    keystore was found. Both classes are called plain `Keyring`, so the
    match runs on the module-qualified class name.
    """
    if keyring is None:
        return False, "keyring package is not installed"

    try:
        backend = keyring.get_keyring()
    except Exception as e:
        return False, f"failed to get keyring backend: {e}"

    # keyring names most backends just "Keyring"; the module tells them apart
    cls = backend.__class__
    name = f"{cls.__module__}.{cls.__name__}"
    priority = getattr(backend, "priority", None)

    insecure_indicators = ("plaintext", "uncrypted", "null", "fail")
    if any(tok in name.lower() for tok in insecure_indicators):
        return False, f"insecure backend detected: {name}"

    if priority is not None and priority <= 0:
        return False, f"no suitable secure keyring backend available (priority={priority}, backend={name})"

    if "Win" in name or "Keychain" in name or "SecretService" in name or "KWallet" in name:
        return True, f"backend looks acceptable: {name} (priority={priority})"

    return True, f"unknown backend '{name}', treat with caution (priority={priority})"


def save_password(service: str, account: str, password: str, force: bool = False) -> None:
    """Persist ``password`` in the OS keystore under (service, account).

    Refuses backends that look insecure unless ``force`` is set.
    """
    _require_keyring()
    if not force:
        secure, msg = assess_keyring_backend()
        if not secure:
            raise RuntimeError(f"refusing to store master password in OS keystore: {msg}")
    keyring.set_password(service, account, password)


def load_password(service: str, account: str) -> Optional[str]:
    """Return the stored password or None."""
    _require_keyring()
    return keyring.get_password(service, account)


def delete_password(service: str, account: str) -> None:
    """Remove the stored password; a missing entry is not an error."""
    _require_keyring()
    try:
        keyring.delete_password(service, account)
    except PasswordDeleteError:
        pass
