"""Boot loader command line parsing."""

from __future__ import annotations

import logging
import string
from dataclasses import dataclass

_log = logging.getLogger(__name__)

# Characters treated as whitespace by the C locale's isspace().
_WHITESPACE = " \t\n\v\f\r"

_ULONG_MAX = (1 << 64) - 1
_UINT_MASK = 0xFFFFFFFF


class CommandLineError(ValueError):
    """Raised when the command line holds an invalid argument."""


@dataclass
class CommandLine:
    """Options selected on the boot loader command line."""

    rawbcd: bool = False
    rawwim: bool = False
    quiet: bool = False
    gui: bool = False
    pause: bool = False
    pause_quiet: bool = False
    linear: bool = False
    index: int = 0


def _strtoul(text: str) -> tuple[int, str]:
    """Parse an unsigned integer with automatic base; return value and rest."""
    rest = text.lstrip(_WHITESPACE)
    negative = False
    if rest[:1] in ("+", "-"):
        negative = rest[0] == "-"
        rest = rest[1:]

    if rest[:2].lower() == "0x" and rest[2:3] and rest[2] in string.hexdigits:
        base, valid, rest = 16, string.hexdigits, rest[2:]
    elif rest[:1] == "0":
        base, valid = 8, string.octdigits
    else:
        base, valid = 10, string.digits

    count = 0
    while count < len(rest) and rest[count] in valid:
        count += 1
    if count == 0:
        # No conversion performed: the whole input is left unparsed
        return 0, text

    value = int(rest[:count], base)
    if value > _ULONG_MAX:
        value = _ULONG_MAX
    elif negative:
        value = (-value) & _ULONG_MAX
    return value, rest[count:]


def _tokens(cmdline: str):
    """Yield (start offset, key, value or None) for each argument."""
    pos = 0
    end = len(cmdline)
    while pos < end:
        while pos < end and cmdline[pos] in _WHITESPACE:
            pos += 1
        start = pos
        while pos < end and cmdline[pos] not in _WHITESPACE:
            pos += 1
        token = cmdline[start:pos]
        if pos < end:
            pos += 1
        key, sep, value = token.partition("=")
        yield start, key, (value if sep else None)


def parse_cmdline(cmdline: str | None) -> CommandLine:
    """Parse a command line into a :class:`CommandLine`.

    Unknown arguments raise :class:`CommandLineError`, except for an
    unknown first argument, which may be the program name.
    """
    result = CommandLine()
    if not cmdline:
        return result

    for start, key, value in _tokens(cmdline):
        if key == "rawbcd":
            result.rawbcd = True
        elif key == "rawwim":
            result.rawwim = True
        elif key == "gui":
            result.gui = True
        elif key == "linear":
            result.linear = True
        elif key == "quiet":
            result.quiet = True
        elif key == "pause":
            result.pause = True
            if value == "quiet":
                result.pause_quiet = True
        elif key == "index":
            if not value:
                raise CommandLineError('Argument "index" needs a value')
            number, rest = _strtoul(value)
            if rest:
                raise CommandLineError(f'Invalid index "{value}"')
            result.index = number & _UINT_MASK
        elif key == "initrdfile":
            # Accepted for compatibility with syslinux
            pass
        elif start == 0:
            # Unknown initial argument, probably the program name
            pass
        else:
            shown = key if value is None else f"{key}={value}"
            raise CommandLineError(f'Unrecognised argument "{shown}"')

    if not result.quiet:
        _log.debug('Command line: "%s"', cmdline)
    return result