"""A small printf-style formatter with the boot loader's conversion rules.

Supported: flags ``#`` and ``0``, a field width, length modifiers ``hh``,
``h``, ``l``, ``ll`` and ``z``, and conversions ``d``, ``i``, ``x``, ``X``,
``c``, ``s`` and ``p``.  Hexadecimal numbers are padded with zeroes or
spaces before any ``0x`` prefix is added; strings are never padded.  Any
other conversion character is copied to the output as is.
"""

from __future__ import annotations

import re

_CHAR_LEN, _SHORT_LEN, _INT_LEN, _LONG_LEN, _LONGLONG_LEN, _SIZE_T_LEN = range(6)
_TYPE_SIZES = (1, 2, 4, 8, 8, 8)
_LONG_SIZE = _TYPE_SIZES[_LONG_LEN]

_LCASE = 0x20
_ALT_FORM = 0x02
_ZPAD = 0x10

_DIRECTIVE = re.compile(r"%([#0]*)([0-9]*)([hlz]*)(.?)", re.DOTALL)
_MISSING = object()


def _to_signed(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    return value - (1 << bits) if value >> (bits - 1) else value


def _format_hex(num: int, width: int, flags: int) -> str:
    digits = f"{num:X}"
    if flags & _LCASE:
        digits = digits.lower()
    text = digits.rjust(width, "0" if flags & _ZPAD else " ")
    if flags & _ALT_FORM:
        text = ("0x" if flags & _LCASE else "0X") + text
    return text


def _format_decimal(num: int, width: int, flags: int) -> str:
    zpad = flags & _ZPAD
    negative = num < 0
    text = str(abs(num))
    if negative and not zpad:
        text = "-" + text
    text = text.rjust(width, "0" if zpad else " ")
    if negative and zpad:
        text = "-" + text[1:]
    return text


def _as_int(value) -> int:
    if value is None:
        return 0
    if isinstance(value, (str, bytes)):
        if len(value) != 1:
            raise TypeError(f"expected a single character, got {value!r}")
        return ord(value)
    return int(value)


def cformat(fmt: str, *args) -> str:
    """Format ``args`` according to the printf-style string ``fmt``.

    Raises :class:`TypeError` if there are fewer arguments than
    conversions that need one.
    """
    arg_iter = iter(args)

    def next_arg():
        value = next(arg_iter, _MISSING)
        if value is _MISSING:
            raise TypeError(f"not enough arguments for format {fmt!r}")
        return value

    def convert(match: re.Match) -> str:
        flag_chars, width_text, modifiers, conv = match.groups()
        flags = 0
        if "#" in flag_chars:
            flags |= _ALT_FORM
        if "0" in flag_chars:
            flags |= _ZPAD
        width = int(width_text) if width_text else 0

        length = _INT_LEN
        for modifier in modifiers:
            if modifier == "h":
                length -= 1
            elif modifier == "l":
                length += 1
            else:
                length = _SIZE_T_LEN
        length = min(max(length, _CHAR_LEN), _SIZE_T_LEN)
        size = _TYPE_SIZES[length]

        if conv == "c":
            code = _as_int(next_arg())
            return chr(code & 0xFF) if length < _LONG_LEN else chr(code)
        if conv == "s":
            value = next_arg()
            if value is None:
                return "<NULL>"
            if isinstance(value, (bytes, bytearray)):
                return bytes(value).decode("latin-1")
            return str(value)
        if conv == "p":
            pointer = _as_int(next_arg()) & ((1 << 64) - 1)
            return _format_hex(pointer, width, _ALT_FORM | _LCASE)
        if conv in ("x", "X"):
            flags |= ord(conv) & _LCASE
            bits = 64 if size >= _LONG_SIZE else 32
            value = _as_int(next_arg()) & ((1 << bits) - 1)
            return _format_hex(value, width, flags)
        if conv in ("d", "i"):
            bits = 64 if size >= _LONG_SIZE else 32
            value = _to_signed(_as_int(next_arg()), bits)
            return _format_decimal(value, width, flags)
        return conv

    return _DIRECTIVE.sub(convert, fmt)


def snprintf(size: int, fmt: str, *args) -> tuple[str, int]:
    """Format into a buffer of ``size`` characters including the terminator.

    Returns the text that fits (at most ``size - 1`` characters) and the
    length the full formatted text would have had.  A negative size is
    treated as zero.
    """
    text = cformat(fmt, *args)
    if size <= 0:
        return "", len(text)
    return text[:size - 1], len(text)