"""LZNT1 decompression."""

from __future__ import annotations

_BLOCK_COMPRESSED = 0x8000
_BLOCK_LEN_MASK = 0x0FFF


class Lznt1Error(ValueError):
    """Raised when LZNT1-compressed data is malformed."""


def _block_len(header: int) -> int:
    return (header & _BLOCK_LEN_MASK) + 1


def _value_len(tuple_value: int, split: int) -> int:
    return (tuple_value & ((1 << split) - 1)) + 3


def _value_offset(tuple_value: int, split: int) -> int:
    return (tuple_value >> split) + 1


def _copy_match(out: bytearray, distance: int, length: int) -> None:
    """Append ``length`` bytes copied from ``distance`` bytes back."""
    start = len(out) - distance
    if length <= distance:
        out += out[start:start + length]
    else:
        pattern = out[start:]
        repeats = -(-length // distance)
        out += (pattern * repeats)[:length]


def _decompress_block(data: bytes, offset: int, limit: int,
                      out: bytearray) -> None:
    """Decompress one compressed block occupying ``data[offset:limit]``."""
    block_start = len(out)
    split = 12
    next_threshold = 16
    tag_bit = 0
    tag = 0

    while offset != limit:
        if tag_bit == 0:
            tag = data[offset]
            offset += 1
            if offset == limit:
                break

        if tag & 1:
            if offset + 2 > limit:
                raise Lznt1Error(
                    f"LZNT1 compressed value overrun at {offset:#x}"
                )
            value = int.from_bytes(data[offset:offset + 2], "little")
            offset += 2
            length = _value_len(value, split)
            distance = _value_offset(value, split)
            if distance > len(out):
                raise Lznt1Error(
                    f"LZNT1 back-reference underrun at {offset - 2:#x}"
                )
            _copy_match(out, distance, length)
        else:
            out.append(data[offset])
            offset += 1

        while len(out) - block_start > next_threshold:
            split -= 1
            next_threshold <<= 1
            if split < 0:
                raise Lznt1Error("LZNT1 block output too long")

        tag >>= 1
        tag_bit = (tag_bit + 1) % 8


def lznt1_decompress(data) -> bytes:
    """Decompress LZNT1-compressed data and return the decompressed bytes.

    A single trailing zero byte is treated as an end marker.  Raises
    :class:`Lznt1Error` if the data is malformed.
    """
    buf = bytes(data)
    end = len(buf)
    out = bytearray()
    offset = 0

    while offset != end:
        if offset + 1 == end and buf[offset] == 0:
            break

        if offset + 2 > end:
            raise Lznt1Error(f"LZNT1 block header overrun at {offset:#x}")
        header = int.from_bytes(buf[offset:offset + 2], "little")
        offset += 2

        length = _block_len(header)
        if offset + length > end:
            kind = ("compressed" if header & _BLOCK_COMPRESSED
                    else "uncompressed")
            raise Lznt1Error(
                f"LZNT1 {kind} block overrun at {offset:#x}+{length:#x}"
            )

        if header & _BLOCK_COMPRESSED:
            _decompress_block(buf, offset, offset + length, out)
        else:
            out += buf[offset:offset + length]
        offset += length

    return bytes(out)