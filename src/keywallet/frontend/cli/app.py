"""Command line frontend for KeyWallet.

Start here with `wallet --help` or `python main.py --help`.

One invocation loads the wallet once, runs a single action and saves once if
that action changed anything.
"""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from typing import List, Optional

from keywallet.config import WalletConfig, load_config
from keywallet.core.exceptions import (
    AuthenticationError,
    ClipboardError,
    ContainerFormatError,
    EntryNotFoundError,
    WalletError,
)
from keywallet.core.records import ENCODINGS
from keywallet.frontend.cli.clipboard import copy_to_clipboard
from keywallet.frontend.cli.context import (
    AppContext,
    PromptFn,
    build_context,
    prompt_new_password,
)
from keywallet.frontend.cli.logging_config import configure_logging
from keywallet.security.container import HEADER_LEN, MIN_CONTAINER_LEN, NONCE_LEN, TAG_LEN
from keywallet.security.kdf import kdf_params_to_dict
from keywallet.security.keystore import delete_password, save_password

logger = logging.getLogger(__name__)


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wallet",
        description="wallet a command line key:value organizer!",
    )
    actions = parser.add_mutually_exclusive_group()
    actions.add_argument("-l", "--list", action="store_true", help="print stored keys")
    actions.add_argument(
        "-a", "--add", nargs=2, metavar=("KEY", "VALUE"), help="add new key pair"
    )
    actions.add_argument("-r", "--remove", metavar="KEY", help="delete key pair")
    actions.add_argument("-s", "--show", metavar="KEY", help="get key pair")
    actions.add_argument("-c", "--copy", metavar="KEY", help="copy value to clipboard")
    actions.add_argument("--clear", action="store_true", help="remove every key pair")
    actions.add_argument(
        "--passwd", action="store_true", help="re-encrypt the wallet under a new password"
    )
    actions.add_argument(
        "--info", action="store_true", help="show wallet file and format details"
    )
    actions.add_argument(
        "--remember",
        action="store_true",
        help="store the master password in the OS keyring",
    )
    actions.add_argument(
        "--forget",
        action="store_true",
        help="remove the master password from the OS keyring",
    )

    parser.add_argument(
        "-f",
        "--file",
        dest="path",
        default=None,
        help="wallet file (default: $KEYWALLET_PATH or ~/.wallet)",
    )
    parser.add_argument(
        "--encoding",
        choices=ENCODINGS,
        default=None,
        help="record encoding used when saving (default: packed)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="fail on malformed records instead of skipping them",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="with --remember, accept a keyring backend that looks insecure",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def _has_action(args: argparse.Namespace) -> bool:
    return bool(
        args.list
        or args.add
        or args.remove is not None
        or args.show is not None
        or args.copy is not None
        or args.clear
        or args.passwd
        or args.info
        or args.remember
        or args.forget
    )


def _print_info(cfg: WalletConfig) -> None:
    print(f"file: {cfg.path}")
    if cfg.path.exists():
        print(f"size: {cfg.path.stat().st_size} bytes")
    else:
        print("size: (not created yet)")
    params = kdf_params_to_dict()
    print(
        f"kdf: {params['algo']}, {params['iterations']} iterations, "
        f"{params['key_len'] * 8}-bit key"
    )
    print(f"cipher: aes-256-gcm, {NONCE_LEN * 8}-bit nonce, {TAG_LEN * 8}-bit tag")
    print(f"header: {HEADER_LEN} bytes (salt, nonce); minimum file: {MIN_CONTAINER_LEN} bytes")
    print(f"encoding for saves: {cfg.encoding}")


def _run_action(ctx: AppContext, args: argparse.Namespace, prompt: PromptFn) -> int:
    wallet = ctx.wallet
    cfg = ctx.config

    if args.list:
        for key in wallet.keys():
            print(key)
    elif args.add:
        key, value = args.add
        wallet.add(key, value)
        print(f"adding new {key}")
    elif args.remove is not None:
        key = args.remove.strip()
        wallet.remove(key)
        print(f"Deleting key: {key}")
    elif args.show is not None:
        value = wallet.get(args.show)
        if value is None:
            print(f"not found {args.show}")
            return 1
        print(f"{args.show}:\n{value}")
    elif args.copy is not None:
        value = wallet.get(args.copy)
        if value is None:
            print(f"not found {args.copy}")
            return 1
        copy_to_clipboard(value)
        print(f"copied {args.copy} to clipboard")
    elif args.clear:
        count = len(wallet)
        wallet.clear()
        print(f"removed {count} entries")
    elif args.passwd:
        new_password = prompt_new_password(prompt)
        wallet.change_password(new_password)
        if ctx.password_source == "keyring":
            save_password(cfg.keyring_service, str(cfg.path), new_password, force=True)
        elif ctx.password_source == "env":
            print("note: update KEYWALLET_PASSWORD to the new password", file=sys.stderr)
        print("password changed")
    elif args.remember:
        # reaching here means the wallet decrypted, so the password is correct
        save_password(cfg.keyring_service, str(cfg.path), wallet.password, force=args.force)
        print(f"password for {cfg.path} stored in OS keyring")

    if wallet.dirty:
        wallet.save()
    return 0


def main(argv: Optional[List[str]] = None, prompt: PromptFn = getpass.getpass) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)

    try:
        cfg = load_config(path=args.path, encoding=args.encoding, strict=args.strict)
    except WalletError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    configure_logging(logging.DEBUG if args.verbose else cfg.log_level)

    if not _has_action(args):
        parser.print_help()
        return 0

    try:
        if args.info:
            _print_info(cfg)
            return 0
        if args.forget:
            delete_password(cfg.keyring_service, str(cfg.path))
            print(f"password for {cfg.path} removed from OS keyring")
            return 0

        ctx = build_context(cfg, prompt=prompt)
        return _run_action(ctx, args, prompt)
    except ContainerFormatError:
        print(f"error: {cfg.path}: corrupted file", file=sys.stderr)
    except AuthenticationError:
        print("error: incorrect password or corrupted data", file=sys.stderr)
    except EntryNotFoundError as e:
        print(str(e), file=sys.stderr)
    except ClipboardError as e:
        print(f"warning: {e}", file=sys.stderr)
    except (WalletError, RuntimeError) as e:
        print(f"error: {e}", file=sys.stderr)
    except OSError as e:
        logger.debug("I/O failure", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
    except KeyboardInterrupt:
        print("\ncancelled", file=sys.stderr)
    return 1


if __name__ == "__main__":  # pragma: no cover - CLI entry
    sys.exit(main())
