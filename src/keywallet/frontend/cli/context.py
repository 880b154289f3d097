"""Small helper to build a KeyWallet app context for the CLI."""

from __future__ import annotations

import getpass
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from keywallet.config import WalletConfig
from keywallet.core.exceptions import ConfigurationError
from keywallet.core.wallet import Wallet
from keywallet.security.keystore import load_password

logger = logging.getLogger(__name__)

PromptFn = Callable[[str], str]


@dataclass
class AppContext:
    """Container for runtime objects the CLI needs."""

    config: WalletConfig
    wallet: Wallet
    password_source: str
    first_run: bool = False


def _password_from_keyring(cfg: WalletConfig) -> Optional[str]:
    # Keyring lookup is best-effort; any failure falls through to the prompt.
    try:
        return load_password(cfg.keyring_service, str(cfg.path))
    except Exception as e:
        logger.debug("Keyring lookup failed: %s", e)
        return None


def prompt_new_password(prompt: PromptFn = getpass.getpass) -> str:
    """Ask for a new password twice and return it."""
    first = prompt("New master password: ")
    if not first:
        raise ConfigurationError("Password must not be empty")
    if prompt("Repeat master password: ") != first:
        raise ConfigurationError("Passwords do not match")
    return first


def resolve_password(
    cfg: WalletConfig,
    first_run: bool,
    prompt: PromptFn = getpass.getpass,
) -> Tuple[str, str]:
    """
    Return ``(password, source)``.

    Lookup order: configuration (``KEYWALLET_PASSWORD``), OS keyring, then an
    interactive prompt. A wallet that does not exist yet asks for the
    password twice since it becomes the password for every later load.
    """
    if cfg.password:
        return cfg.password, "env"

    stored = _password_from_keyring(cfg)
    if stored:
        return stored, "keyring"

    if first_run:
        return prompt_new_password(prompt), "prompt"

    password = prompt(f"Master password for {cfg.path}: ")
    if not password:
        raise ConfigurationError("Password must not be empty")
    return password, "prompt"


def build_context(cfg: WalletConfig, prompt: PromptFn = getpass.getpass) -> AppContext:
    """
    Resolve the password and load the wallet described by ``cfg``.

    First-run behaviour: when the wallet file does not exist yet, loading
    creates it empty, encrypted with the resolved password, and the context
    is returned with ``first_run=True``.

    Load errors (wrong password, corrupted file) propagate to the caller.
    """
    first_run = not cfg.path.exists()
    password, source = resolve_password(cfg, first_run, prompt=prompt)

    wallet = Wallet(cfg.path, password, encoding=cfg.encoding, strict=cfg.strict)
    wallet.load()
    if first_run:
        logger.info("Created new wallet at %s", cfg.path)

    return AppContext(config=cfg, wallet=wallet, password_source=source, first_run=first_run)
