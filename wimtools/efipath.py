"""EFI device path nodes."""

from __future__ import annotations

import struct

END_DEVICE_PATH_TYPE = 0x7F
END_ENTIRE_DEVICE_PATH_SUBTYPE = 0xFF

_HEADER = struct.Struct("<BBH")
HEADER_LEN = _HEADER.size


def devpath_node(type: int, subtype: int, payload: bytes = b"") -> bytes:
    """Build one device path node: type, subtype, length, then payload."""
    length = HEADER_LEN + len(payload)
    if length > 0xFFFF:
        raise ValueError(f"Device path node too long ({length} bytes)")
    return _HEADER.pack(type, subtype, length) + bytes(payload)


def devpath_end_node() -> bytes:
    """Build the node that ends an entire device path."""
    return devpath_node(END_DEVICE_PATH_TYPE, END_ENTIRE_DEVICE_PATH_SUBTYPE)


def devpath_end(data) -> int:
    """Return the offset of the end node within a device path.

    Raises :class:`ValueError` if the path runs past the end of the data
    or holds a node too short to move past.
    """
    buf = bytes(data)
    offset = 0
    while True:
        if offset + HEADER_LEN > len(buf):
            raise ValueError(f"Device path truncated at {offset:#x}")
        node_type, _subtype, length = _HEADER.unpack_from(buf, offset)
        if node_type == END_DEVICE_PATH_TYPE:
            return offset
        if length < HEADER_LEN:
            raise ValueError(
                f"Invalid device path node length {length} at {offset:#x}"
            )
        offset += length