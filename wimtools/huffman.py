"""Canonical Huffman alphabets with quick prefix lookup."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

# Maximum length of a Huffman code, in bits
HUFFMAN_BITS = 16
# Number of leading bits used by the quick lookup table
HUFFMAN_QL_BITS = 7
HUFFMAN_QL_SHIFT = HUFFMAN_BITS - HUFFMAN_QL_BITS


class HuffmanError(ValueError):
    """Raised when a set of code lengths does not form a valid alphabet."""


@dataclass(frozen=True)
class HuffmanSymbols:
    """All codes of one length, normalised to HUFFMAN_BITS bits."""

    bits: int
    shift: int
    freq: int
    start: int
    raw: tuple[int, ...]

    def raw_symbol(self, huf: int) -> int:
        """Return the raw symbol for a normalised input value of this length."""
        return self.raw[(huf >> self.shift) - (self.start >> self.shift)]


class HuffmanAlphabet:
    """A canonical Huffman alphabet built from per-symbol code lengths.

    A length of zero means the symbol is unused.  If every symbol is
    unused, a trivial alphabet of two one-bit codes (both decoding to
    symbol 0) is built instead.
    """

    def __init__(self, lengths: Iterable[int]) -> None:
        lengths = list(lengths)
        freqs = [0] * HUFFMAN_BITS
        raw_by_length: list[list[int]] = [[] for _ in range(HUFFMAN_BITS)]
        for raw, length in enumerate(lengths):
            if not length:
                continue
            if not 0 < length <= HUFFMAN_BITS:
                raise HuffmanError(f"Invalid Huffman code length {length}")
            freqs[length - 1] += 1
            raw_by_length[length - 1].append(raw)

        if not any(freqs):
            freqs[0] = 2
            raw_by_length[0] = [0, 0]

        symbols = []
        huf = 0
        for bits in range(1, HUFFMAN_BITS + 1):
            freq = freqs[bits - 1]
            shift = HUFFMAN_BITS - bits
            symbols.append(
                HuffmanSymbols(bits, shift, freq, huf << shift,
                               tuple(raw_by_length[bits - 1]))
            )
            huf += freq
            if huf > (1 << bits):
                raise HuffmanError(
                    "Huffman alphabet has too many symbols with "
                    f"lengths <={bits}"
                )
            huf <<= 1
        if huf != (1 << (HUFFMAN_BITS + 1)):
            raise HuffmanError("Huffman alphabet is incomplete")

        table = bytearray(1 << HUFFMAN_QL_BITS)
        for index, sym in enumerate(symbols):
            for prefix in range(sym.start >> HUFFMAN_QL_SHIFT, len(table)):
                table[prefix] = index

        self.symbols: tuple[HuffmanSymbols, ...] = tuple(symbols)
        self._quick = bytes(table)

    def lookup(self, huf: int) -> HuffmanSymbols:
        """Find the symbol set whose codes prefix the HUFFMAN_BITS-bit value."""
        if not 0 <= huf < (1 << HUFFMAN_BITS):
            raise ValueError(f"Huffman input {huf:#x} out of range")
        index = self._quick[huf >> HUFFMAN_QL_SHIFT]
        while huf < self.symbols[index].start:
            index -= 1
        return self.symbols[index]