"""Clipboard utilities for the CLI frontend.

Uses pyperclip for cross-platform clipboard access. Copying is
fire-and-forget: the wallet file is never involved.
"""

from __future__ import annotations

import pyperclip

from keywallet.core.exceptions import ClipboardError


def copy_to_clipboard(text: str) -> None:
    """Copy text to the system clipboard.

    Args:
        text: The text to copy.

    Raises:
        ClipboardError: If no clipboard mechanism is available or it fails.
    """
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        raise ClipboardError(f"Failed to copy to clipboard: {e}") from e
