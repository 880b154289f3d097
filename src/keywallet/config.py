"""
Runtime settings for KeyWallet, read from the environment.

    KEYWALLET_PATH             wallet file (default: ~/.wallet)
    KEYWALLET_PASSWORD         master password; skips keyring and prompt
    KEYWALLET_ENCODING         record encoding for saves: packed | lines
    KEYWALLET_STRICT           fail on malformed records instead of skipping
    KEYWALLET_LOG_LEVEL        logging level name (default: WARNING)
    KEYWALLET_KEYRING_SERVICE  keyring service name (default: keywallet)

Command line flags override these values.

Security Note:
    The password is kept out of the dataclass repr.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Mapping, Optional

from .core.exceptions import ConfigurationError
from .core.records import DEFAULT_ENCODING, ENCODINGS

DEFAULT_WALLET_PATH = Path.home() / ".wallet"
DEFAULT_KEYRING_SERVICE = "keywallet"

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("", "0", "false", "no", "off")


@dataclass
class WalletConfig:
    path: Path = DEFAULT_WALLET_PATH
    password: Optional[str] = field(default=None, repr=False)
    encoding: str = DEFAULT_ENCODING
    strict: bool = False
    log_level: int = logging.WARNING
    keyring_service: str = DEFAULT_KEYRING_SERVICE


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


def _parse_level(name: str, raw: str) -> int:
    level = logging.getLevelName(raw.strip().upper())
    if not isinstance(level, int):
        raise ConfigurationError(f"{name} is not a logging level: {raw!r}")
    return level


def _check_encoding(name: str, raw: str) -> str:
    if raw not in ENCODINGS:
        raise ConfigurationError(
            f"{name} must be one of {', '.join(ENCODINGS)}, got {raw!r}"
        )
    return raw


def load_config(environ: Optional[Mapping[str, str]] = None, **overrides) -> WalletConfig:
    """
    Build a :class:`WalletConfig` from ``environ`` (default: ``os.environ``).

    Keyword overrides whose value is ``None`` are ignored, so parsed CLI
    arguments can be passed straight through.
    """
    env = os.environ if environ is None else environ
    cfg = WalletConfig()

    if env.get("KEYWALLET_PATH"):
        cfg.path = Path(env["KEYWALLET_PATH"])
    if env.get("KEYWALLET_PASSWORD"):
        cfg.password = env["KEYWALLET_PASSWORD"]
    if "KEYWALLET_ENCODING" in env:
        cfg.encoding = _check_encoding("KEYWALLET_ENCODING", env["KEYWALLET_ENCODING"])
    if "KEYWALLET_STRICT" in env:
        cfg.strict = _parse_bool("KEYWALLET_STRICT", env["KEYWALLET_STRICT"])
    if env.get("KEYWALLET_LOG_LEVEL"):
        cfg.log_level = _parse_level("KEYWALLET_LOG_LEVEL", env["KEYWALLET_LOG_LEVEL"])
    if env.get("KEYWALLET_KEYRING_SERVICE"):
        cfg.keyring_service = env["KEYWALLET_KEYRING_SERVICE"]

    changes = {k: v for k, v in overrides.items() if v is not None}
    if "encoding" in changes:
        _check_encoding("encoding", changes["encoding"])
    if "path" in changes:
        changes["path"] = Path(changes["path"])
    cfg = replace(cfg, **changes)
    cfg.path = cfg.path.expanduser()
    return cfg
