"""LZX decompression as used for WIM resources."""

from __future__ import annotations

import enum
import logging
import struct
from itertools import accumulate
from typing import Callable

from .huffman import HUFFMAN_BITS, HuffmanAlphabet, HuffmanError

_log = logging.getLogger(__name__)

LZX_ALIGNOFFSET_CODES = 8
LZX_ALIGNOFFSET_BITS = 3
LZX_PRETREE_CODES = 20
LZX_PRETREE_BITS = 4
LZX_MAIN_LIT_CODES = 256
LZX_POSITION_SLOTS = 30
LZX_MAIN_CODES = LZX_MAIN_LIT_CODES + 8 * LZX_POSITION_SLOTS
LZX_LENGTH_CODES = 249
LZX_BLOCK_TYPE_BITS = 3
LZX_DEFAULT_BLOCK_LEN = 32768
LZX_REPEATED_OFFSETS = 3
LZX_WIM_MAGIC_FILESIZE = 12000000

_UINT32_MASK = 0xFFFFFFFF


class LzxError(ValueError):
    """Raised when LZX-compressed data is malformed."""


class BlockType(enum.IntEnum):
    """LZX block types."""

    VERBATIM = 1
    ALIGNOFFSET = 2
    UNCOMPRESSED = 3


def footer_bits(position_slot: int) -> int:
    """Return the number of footer bits for a position slot."""
    if position_slot < 2:
        return 0
    if position_slot < 38:
        return position_slot // 2 - 1
    return 17


_POSITION_BASE = tuple(
    accumulate(
        (1 << footer_bits(slot) for slot in range(LZX_POSITION_SLOTS - 1)),
        initial=0,
    )
)


class _Decompressor:
    """State of one LZX decompression run."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0
        self._acc = 0
        self._bits = 0
        self._out = bytearray()
        self._threshold = 0
        self._block_type = BlockType.VERBATIM
        self._repeated = [1] * LZX_REPEATED_OFFSETS
        self._main_literals = [0] * LZX_MAIN_LIT_CODES
        self._main_remainder = [0] * (LZX_MAIN_CODES - LZX_MAIN_LIT_CODES)
        self._length_lengths = [0] * LZX_LENGTH_CODES
        self._main: HuffmanAlphabet | None = None
        self._length: HuffmanAlphabet | None = None
        self._alignoffset: HuffmanAlphabet | None = None

    # Bitstream access

    def _overrun(self) -> LzxError:
        return LzxError(
            f"LZX input overrun in {self._pos:#x}/{len(self._data):#x} "
            f"out {len(self._out):#x}"
        )

    def _accumulate(self, bits: int) -> int:
        """Top up the accumulator if needed; return its top 16 bits."""
        if self._bits < bits and self._pos < len(self._data):
            word = int.from_bytes(self._data[self._pos:self._pos + 2], "little")
            self._pos += 2
            self._acc |= word << (16 - self._bits)
            self._bits += 16
        return self._acc >> 16

    def _consume(self, bits: int) -> None:
        if self._bits < bits:
            raise self._overrun()
        self._acc = (self._acc << bits) & _UINT32_MASK
        self._bits -= bits

    def _getbits(self, bits: int) -> int:
        value = self._accumulate(bits)
        self._consume(bits)
        return value >> (16 - bits)

    def _align(self, bits: int) -> None:
        self._getbits(bits)
        self._consume(self._bits)

    def _getbytes(self, length: int) -> bytes:
        if self._pos + length > len(self._data):
            raise self._overrun()
        chunk = self._data[self._pos:self._pos + length]
        self._pos += length
        return chunk

    def _decode(self, alphabet: HuffmanAlphabet) -> int:
        huf = self._accumulate(HUFFMAN_BITS)
        sym = alphabet.lookup(huf)
        self._consume(sym.bits)
        return sym.raw_symbol(huf)

    # Alphabets

    @staticmethod
    def _alphabet(lengths: list[int], what: str) -> HuffmanAlphabet:
        try:
            return HuffmanAlphabet(lengths)
        except HuffmanError as exc:
            raise LzxError(f"Could not generate {what} alphabet: {exc}") from exc

    def _raw_alphabet(self, count: int, bits: int, what: str) -> HuffmanAlphabet:
        lengths = [self._getbits(bits) for _ in range(count)]
        return self._alphabet(lengths, what)

    def _pretree(self, lengths: list[int]) -> None:
        """Update a list of code lengths in place from pretree-coded deltas."""
        pretree = self._raw_alphabet(LZX_PRETREE_CODES, LZX_PRETREE_BITS,
                                     "pretree")
        dup = 0
        last = 0
        for i, previous in enumerate(lengths):
            if dup:
                lengths[i] = last
                dup -= 1
                continue

            code = self._decode(pretree)
            if code <= 16:
                length = (previous - code + 17) % 17
            elif code == 17:
                length = 0
                dup = self._getbits(4) + 3
            elif code == 18:
                length = 0
                dup = self._getbits(5) + 19
            elif code == 19:
                dup = self._getbits(1) + 3
                code = self._decode(pretree)
                length = (previous - code + 17) % 17
            else:
                raise LzxError(f"Unrecognised pretree code {code}")
            lengths[i] = length
            last = length

        if dup:
            raise LzxError("Pretree duplicate overrun")

    def _main_alphabet(self) -> None:
        self._pretree(self._main_literals)
        self._pretree(self._main_remainder)
        self._main = self._alphabet(
            self._main_literals + self._main_remainder, "main"
        )

    def _length_alphabet(self) -> None:
        self._pretree(self._length_lengths)
        self._length = self._alphabet(self._length_lengths, "length")

    # Blocks and tokens

    def _block_header(self) -> None:
        raw_type = self._getbits(LZX_BLOCK_TYPE_BITS)
        if self._getbits(1):
            block_len = LZX_DEFAULT_BLOCK_LEN
        else:
            high = self._getbits(8)
            low = self._getbits(8)
            block_len = (high << 8) | low
        self._threshold = len(self._out) + block_len

        try:
            block_type = BlockType(raw_type)
        except ValueError:
            raise LzxError(f"Unrecognised block type {raw_type}") from None
        self._block_type = block_type

        if block_type is BlockType.UNCOMPRESSED:
            self._align(1)
            self._repeated = list(struct.unpack("<3I", self._getbytes(12)))
            return
        if block_type is BlockType.ALIGNOFFSET:
            self._alignoffset = self._raw_alphabet(
                LZX_ALIGNOFFSET_CODES, LZX_ALIGNOFFSET_BITS, "aligned offset"
            )
        self._main_alphabet()
        self._length_alphabet()

    def _uncompressed(self) -> None:
        length = self._threshold - len(self._out)
        self._out += self._getbytes(length)
        if length % 2:
            self._pos += 1

    def _token(self) -> None:
        main = self._decode(self._main)
        if main < LZX_MAIN_LIT_CODES:
            self._out.append(main)
            return
        main -= LZX_MAIN_LIT_CODES

        length_header = main & 7
        extra = self._decode(self._length) if length_header == 7 else 0
        match_length = length_header + 2 + extra

        position_slot = main >> 3
        repeated = self._repeated
        if position_slot < LZX_REPEATED_OFFSETS:
            match_offset = repeated[position_slot]
            repeated[position_slot] = repeated[0]
            repeated[0] = match_offset
        else:
            offset_bits = footer_bits(position_slot)
            if self._block_type is BlockType.ALIGNOFFSET and offset_bits >= 3:
                verbatim = self._getbits(offset_bits - 3) << 3
                aligned = self._decode(self._alignoffset)
            else:
                verbatim = self._getbits(offset_bits)
                aligned = 0
            match_offset = (_POSITION_BASE[position_slot] + verbatim
                            + aligned - 2)
            repeated[1:] = repeated[:-1]
            repeated[0] = match_offset

        out = self._out
        if match_offset > len(out) or match_offset == 0:
            raise LzxError(
                f"LZX match underrun out {len(out):#x} offset "
                f"{match_offset:#x} len {match_length:#x}"
            )
        start = len(out) - match_offset
        if match_length <= match_offset:
            out += out[start:start + match_length]
        else:
            pattern = out[start:]
            repeats = -(-match_length // match_offset)
            out += (pattern * repeats)[:match_length]

    def _translate_jumps(self) -> None:
        """Undo the E8 call-address translation."""
        out = self._out
        limit = len(out) - 10
        offset = 0
        while offset < limit:
            offset = out.find(b"\xe8", offset, limit)
            if offset < 0:
                break
            field = slice(offset + 1, offset + 5)
            target = int.from_bytes(out[field], "little", signed=True)
            if target >= 0:
                if target < LZX_WIM_MAGIC_FILESIZE:
                    target -= offset
            elif target >= -offset:
                target += LZX_WIM_MAGIC_FILESIZE
            out[field] = (target & _UINT32_MASK).to_bytes(4, "little")
            offset += 5

    def run(self) -> bytes:
        handlers: dict[bool, Callable[[], None]] = {
            True: self._uncompressed,
            False: self._tokens,
        }
        while self._pos < len(self._data):
            self._block_header()
            handlers[self._block_type is BlockType.UNCOMPRESSED]()
        self._translate_jumps()
        return bytes(self._out)

    def _tokens(self) -> None:
        while len(self._out) < self._threshold:
            self._token()


def lzx_decompress(data) -> bytes:
    """Decompress LZX-compressed data and return the decompressed bytes.

    Raises :class:`LzxError` if the data is malformed.
    """
    buf = bytes(data)
    if len(buf) % 2:
        raise LzxError("LZX cannot handle odd-length input data")
    return _Decompressor(buf).run()