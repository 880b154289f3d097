"""
Entry collection <-> plaintext bytes.

Two encodings exist for the blob that goes inside the encrypted container:

lines   one ``key:value`` record per line, UTF-8, newline terminated.
        A key or value holding ``:``, NUL or a line break cannot be represented.
packed  ``MAGIC`` + u32 count, then per entry u32 length + UTF-8 key and
        u32 length + UTF-8 value (big-endian). Any string round-trips.

Decoding picks the encoding from the data itself, so wallets written in
either one load regardless of the configured default. An empty collection
is an empty byte string in both.
"""

from __future__ import annotations

import struct
from typing import Dict, Mapping

from .exceptions import InvalidEntryError, MalformedRecordError

DELIMITER = ":"
MAGIC = b"\x00KWP1"
ENCODINGS = ("packed", "lines")
DEFAULT_ENCODING = "packed"

_U32 = struct.Struct(">I")
# NUL also guards against a lines payload that starts with MAGIC
_LINES_FORBIDDEN = (DELIMITER, "\n", "\r", "\x00")


def encode_entries(entries: Mapping[str, str], encoding: str = DEFAULT_ENCODING) -> bytes:
    """Serialize ``entries`` into plaintext bytes using ``encoding``."""
    if not entries:
        return b""
    if encoding == "packed":
        return _encode_packed(entries)
    if encoding == "lines":
        return _encode_lines(entries)
    raise ValueError(f"Unknown record encoding: {encoding!r}")


def decode_entries(data: bytes, strict: bool = False) -> Dict[str, str]:
    """
    Parse plaintext bytes back into an entry dict.

    In the lines encoding a record that does not split into exactly two
    parts is skipped, unless ``strict`` is set, in which case it raises
    :class:`MalformedRecordError`. Packed data is all-or-nothing.
    """
    if not data:
        return {}
    if detect_encoding(data) == "packed":
        return _decode_packed(data)
    return _decode_lines(data, strict)


def detect_encoding(data: bytes) -> str:
    return "packed" if data.startswith(MAGIC) else "lines"


# ----------------------------------------------------------------------
# lines
# ----------------------------------------------------------------------


def _encode_lines(entries: Mapping[str, str]) -> bytes:
    out = []
    for key, value in entries.items():
        for label, text in (("key", key), ("value", value)):
            if any(ch in text for ch in _LINES_FORBIDDEN):
                raise InvalidEntryError(
                    f"{label} for {key!r} contains ':', a NUL or a line break; "
                    "use the packed encoding to store it"
                )
        out.append(f"{key}{DELIMITER}{value}\n")
    return "".join(out).encode("utf-8")


def _decode_lines(data: bytes, strict: bool) -> Dict[str, str]:
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedRecordError(f"Wallet payload is not valid UTF-8: {e}") from e

    entries: Dict[str, str] = {}
    for lineno, line in enumerate(text.split("\n"), start=1):
        line = line.removesuffix("\r")
        if not line:
            continue
        parts = line.split(DELIMITER)
        if len(parts) != 2:
            if strict:
                raise MalformedRecordError(f"Malformed record on line {lineno}")
            continue
        entries[parts[0]] = parts[1]
    return entries


# ----------------------------------------------------------------------
# packed
# ----------------------------------------------------------------------


def _encode_packed(entries: Mapping[str, str]) -> bytes:
    buf = bytearray()
    buf += MAGIC
    buf += _U32.pack(len(entries))
    for key, value in entries.items():
        for text in (key, value):
            raw = text.encode("utf-8")
            buf += _U32.pack(len(raw))
            buf += raw
    return bytes(buf)


def _decode_packed(data: bytes) -> Dict[str, str]:
    pos = len(MAGIC)

    def take(n: int) -> bytes:
        nonlocal pos
        if pos + n > len(data):
            raise MalformedRecordError("Packed wallet payload is truncated")
        chunk = data[pos:pos + n]
        pos += n
        return chunk

    def take_str() -> str:
        (length,) = _U32.unpack(take(_U32.size))
        try:
            return take(length).decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedRecordError(f"Wallet payload is not valid UTF-8: {e}") from e

    (count,) = _U32.unpack(take(_U32.size))
    entries: Dict[str, str] = {}
    for _ in range(count):
        key = take_str()
        entries[key] = take_str()

    if pos != len(data):
        raise MalformedRecordError("Unexpected trailing bytes in packed wallet payload")
    return entries
