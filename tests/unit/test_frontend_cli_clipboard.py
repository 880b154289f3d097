"""Unit tests for the clipboard helper."""

import pyperclip
import pytest
from unittest.mock import patch

from keywallet.core.exceptions import ClipboardError
from keywallet.frontend.cli.clipboard import copy_to_clipboard


def test_copy_passes_text_to_pyperclip():
    with patch("keywallet.frontend.cli.clipboard.pyperclip.copy") as mock_copy:
        copy_to_clipboard("xyz123")
    mock_copy.assert_called_once_with("xyz123")


def test_copy_failure_wrapped():
    err = pyperclip.PyperclipException("no copy/paste mechanism")
    with patch("keywallet.frontend.cli.clipboard.pyperclip.copy", side_effect=err):
        with pytest.raises(ClipboardError, match="no copy/paste mechanism"):
            copy_to_clipboard("xyz123")
