"""
Unit tests for the wallet container codec.
"""

import os

import pytest
from unittest.mock import patch

from keywallet.core.exceptions import AuthenticationError, ContainerFormatError
from keywallet.security import container
from keywallet.security.container import (
    HEADER_LEN,
    MIN_CONTAINER_LEN,
    decrypt_container,
    encrypt_container,
    read_container,
    write_container,
)
from keywallet.security.kdf import derive_key


# ==============================================================================
# Fixtures
# ==============================================================================

@pytest.fixture
def fast_kdf():
    """Swap in a single-iteration KDF for tests that decrypt many times."""
    def cheap(password, salt):
        return derive_key(password, salt, iterations=1)

    with patch("keywallet.security.container.derive_key", side_effect=cheap) as mock:
        yield mock


# ==============================================================================
# Tests: Layout
# ==============================================================================

def test_header_constants():
    assert HEADER_LEN == 28
    assert MIN_CONTAINER_LEN == 44


def test_encrypt_output_length():
    msg = b"email:a@b.com\n"
    blob = encrypt_container(msg, "pw")
    # salt (16) + nonce (12) + ciphertext (len(msg) + tag(16))
    assert len(blob) == 16 + 12 + len(msg) + 16


def test_encrypt_empty_plaintext_is_minimum_length():
    blob = encrypt_container(b"", "pw")
    assert len(blob) == MIN_CONTAINER_LEN
    assert decrypt_container(blob, "pw") == b""


def test_roundtrip():
    msg = b"hello world"
    assert decrypt_container(encrypt_container(msg, "pw"), "pw") == msg


def test_salt_and_nonce_fresh_every_time():
    a = encrypt_container(b"same", "same-password")
    b = encrypt_container(b"same", "same-password")

    assert a[:16] != b[:16]
    assert a[16:28] != b[16:28]
    assert a[28:] != b[28:]


def test_key_derived_from_stored_salt():
    blob = encrypt_container(b"data", "pw")
    with patch("keywallet.security.container.derive_key", wraps=derive_key) as spy:
        decrypt_container(blob, "pw")
    spy.assert_called_once_with("pw", blob[:16])


# ==============================================================================
# Tests: Failure modes
# ==============================================================================

def test_wrong_password_raises_authentication_error():
    blob = encrypt_container(b"secret", "right")
    with pytest.raises(AuthenticationError, match="incorrect password or corrupted data"):
        decrypt_container(blob, "wrong")


@pytest.mark.parametrize("size", [0, 1, 16, 27])
def test_short_blob_is_format_error_before_kdf(size):
    with patch("keywallet.security.container.derive_key") as kdf:
        with pytest.raises(ContainerFormatError, match="corrupted file"):
            decrypt_container(os.urandom(size), "pw")
    kdf.assert_not_called()


@pytest.mark.parametrize("size", [28, 30, 43])
def test_header_without_full_tag_fails_authentication(size, fast_kdf):
    blob = encrypt_container(b"", "pw")[:size]
    with pytest.raises(AuthenticationError):
        decrypt_container(blob, "pw")


def test_any_flipped_byte_is_detected(fast_kdf):
    blob = encrypt_container(b"token:xyz123\n", "pw")
    for i in range(len(blob)):
        tampered = bytearray(blob)
        tampered[i] ^= 0x01
        with pytest.raises(AuthenticationError):
            decrypt_container(bytes(tampered), "pw")


# ==============================================================================
# Tests: File I/O
# ==============================================================================

def test_write_then_read(tmp_path):
    path = tmp_path / "wallet"
    write_container(path, b"payload", "pw")

    assert path.stat().st_size == 28 + len(b"payload") + 16
    assert read_container(path, "pw") == b"payload"


def test_write_creates_parent_dirs(tmp_path):
    path = tmp_path / "nested" / "dir" / "wallet"
    write_container(path, b"x", "pw")
    assert path.exists()


def test_write_replaces_whole_file(tmp_path):
    path = tmp_path / "wallet"
    write_container(path, b"a much longer first payload" * 10, "pw")
    write_container(path, b"short", "pw")

    assert path.stat().st_size == 28 + 5 + 16
    assert read_container(path, "pw") == b"short"


@pytest.mark.skipif(os.name != "posix", reason="directory fsync is POSIX only")
def test_write_fsyncs_parent_directory_after_replace(tmp_path):
    path = tmp_path / "wallet"
    calls = []
    real_replace = os.replace

    def tracking_replace(src, dst):
        calls.append("replace")
        real_replace(src, dst)

    with patch("keywallet.security.container.os.replace", side_effect=tracking_replace), \
            patch("keywallet.security.container._fsync_dir",
                  side_effect=lambda d: calls.append(("fsync_dir", d))):
        write_container(path, b"x", "pw")

    assert calls == ["replace", ("fsync_dir", tmp_path)]


@pytest.mark.skipif(os.name != "posix", reason="directory fsync is POSIX only")
def test_fsync_dir_flushes_directory(tmp_path):
    with patch("keywallet.security.container.os.fsync") as mock_fsync:
        container._fsync_dir(tmp_path)
    mock_fsync.assert_called_once()


def test_write_leaves_no_temp_files(tmp_path):
    path = tmp_path / "wallet"
    write_container(path, b"x", "pw")
    write_container(path, b"y", "pw")
    assert [p.name for p in tmp_path.iterdir()] == ["wallet"]


@pytest.mark.skipif(os.name != "posix", reason="POSIX permissions only")
def test_written_file_is_private(tmp_path):
    path = tmp_path / "wallet"
    write_container(path, b"x", "pw")
    assert path.stat().st_mode & 0o777 == 0o600


def test_failed_encrypt_does_not_touch_file(tmp_path):
    path = tmp_path / "wallet"
    write_container(path, b"original", "pw")
    before = path.read_bytes()

    with patch.object(container, "encrypt_container", side_effect=RuntimeError("boom")):
        with pytest.raises(RuntimeError):
            write_container(path, b"replacement", "pw")

    assert path.read_bytes() == before


def test_failed_replace_keeps_original_and_cleans_up(tmp_path):
    path = tmp_path / "wallet"
    write_container(path, b"original", "pw")
    before = path.read_bytes()

    with patch("keywallet.security.container.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(OSError, match="disk full"):
            write_container(path, b"replacement", "pw")

    assert path.read_bytes() == before
    assert [p.name for p in tmp_path.iterdir()] == ["wallet"]


def test_read_missing_file_propagates_oserror(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_container(tmp_path / "nope", "pw")


def test_failed_decrypt_leaves_file_untouched(tmp_path):
    path = tmp_path / "wallet"
    write_container(path, b"data", "pw")
    before = path.read_bytes()

    with pytest.raises(AuthenticationError):
        read_container(path, "wrong")

    assert path.read_bytes() == before
