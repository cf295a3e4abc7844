"""Reading files from "newc" CPIO archives."""

from __future__ import annotations

import string
from dataclasses import dataclass
from typing import Iterator

HEADER_LEN = 110
CPIO_MAGIC = b"070701"
CPIO_TRAILER = "TRAILER!!!"

_FIELD_LEN = 8
_FILESIZE_OFFSET = 6 + 6 * _FIELD_LEN
_NAMESIZE_OFFSET = 6 + 11 * _FIELD_LEN
_ZERO_WORD = b"\0\0\0\0"
_WHITESPACE = " \t\n\v\f\r"


class CpioError(ValueError):
    """Raised when an archive is malformed."""


@dataclass(frozen=True)
class CpioEntry:
    """A file found in an archive."""

    name: str
    data: bytes


def _align(length: int) -> int:
    return (length + 3) & ~3


def _field_value(raw: bytes) -> int:
    """Parse a hexadecimal header field the way strtoul(..., 16) does."""
    text = raw.split(b"\0", 1)[0].decode("latin-1").lstrip(_WHITESPACE)
    negative = False
    if text[:1] in ("+", "-"):
        negative = text[0] == "-"
        text = text[1:]
    if text[:2].lower() == "0x" and text[2:3] and text[2] in string.hexdigits:
        text = text[2:]
    count = 0
    while count < len(text) and text[count] in string.hexdigits:
        count += 1
    if count == 0:
        return 0
    value = int(text[:count], 16)
    return -value if negative else value


def iter_cpio(data) -> Iterator[CpioEntry]:
    """Yield each file in a CPIO archive, stopping at the trailer.

    Runs of zero dwords between entries are skipped, and the archive may
    end without a trailer.  Raises :class:`CpioError` on malformed input.
    """
    buf = data if isinstance(data, bytes) else bytes(data)
    pos = 0
    end = len(buf)

    while True:
        while end - pos >= 4 and buf[pos:pos + 4] == _ZERO_WORD:
            pos += 4

        remaining = end - pos
        if remaining == 0:
            return
        if remaining < HEADER_LEN:
            raise CpioError("Truncated CPIO header")
        if buf[pos:pos + len(CPIO_MAGIC)] != CPIO_MAGIC:
            raise CpioError("Bad CPIO magic")

        name_size = _field_value(
            buf[pos + _NAMESIZE_OFFSET:pos + _NAMESIZE_OFFSET + _FIELD_LEN]
        )
        file_size = _field_value(
            buf[pos + _FILESIZE_OFFSET:pos + _FILESIZE_OFFSET + _FIELD_LEN]
        )
        data_offset = _align(HEADER_LEN + name_size)
        entry_len = data_offset + file_size
        if entry_len < remaining:
            entry_len = _align(entry_len)
        if entry_len > remaining or data_offset < 0 or file_size < 0:
            raise CpioError("Truncated CPIO file")

        name_start = pos + HEADER_LEN
        name_end = buf.find(b"\0", name_start, end)
        if name_end < 0:
            name_end = end
        name = buf[name_start:name_end].decode("latin-1")
        if name == CPIO_TRAILER:
            return

        file_start = pos + data_offset
        yield CpioEntry(name, buf[file_start:file_start + file_size])
        pos += entry_len