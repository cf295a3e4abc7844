"""Generation of PE base relocation tables."""

from __future__ import annotations

import struct

PE_HEADER_LEN = 512
RELOC_SECTION_INDEX = 4

IMAGE_MACHINE_IA32 = 0x014C
IMAGE_MACHINE_X64 = 0x8664
IMAGE_DIRECTORY_ENTRY_BASERELOC = 5

_RELOC_TYPES = {8: 0xA000, 4: 0x3000, 2: 0x2000}

_RELOC_SIZES = {
    "R_X86_64_64": 8,
    "R_386_32": 4,
    "R_X86_64_32": 4,
    "R_X86_64_32S": 4,
    "R_386_16": 2,
    "R_X86_64_16": 2,
}
_PC_RELATIVE = frozenset({"R_386_PC32", "R_X86_64_PC32", "R_X86_64_PLT32"})

_BLOCK_HEADER = struct.Struct("<II")
_BLOCK_ALIGN = 16

# Offsets within the NT headers
_FILE_HEADER_OFFSET = 4
_OPTIONAL_HEADER_OFFSET = 24
_SIZE_OF_IMAGE = 56
# (NumberOfRvaAndSizes, DataDirectory) offsets within the optional header
_LAYOUTS = {
    IMAGE_MACHINE_IA32: (92, 96),
    IMAGE_MACHINE_X64: (108, 112),
}
_DATA_DIR_LEN = 8
_SECTION_LEN = 40
_SECTION_VIRTUAL_SIZE = 8
_SECTION_RAW_SIZE = 16


class RelocationError(ValueError):
    """Raised for relocations or images that cannot be handled."""


class PeRelocations:
    """Base relocations grouped into 4kB pages."""

    def __init__(self) -> None:
        self._blocks: dict[int, list[int]] = {}

    def __len__(self) -> int:
        return sum(len(relocs) for relocs in self._blocks.values())

    def add(self, rva: int, size: int) -> None:
        """Record a relocation of ``size`` bytes at ``rva``."""
        try:
            kind = _RELOC_TYPES[size]
        except KeyError:
            raise RelocationError(
                f"Unsupported relocation size {size}"
            ) from None
        start_rva = rva & ~0xFFF
        self._blocks.setdefault(start_rva, []).append(kind | (rva & 0xFFF))

    def add_reloc(self, howto_name: str, rva: int, absolute: bool = False) -> None:
        """Record an object-file relocation of the named type at ``rva``.

        Relocations against absolute symbols and PC-relative relocations
        need no base relocation and are skipped.
        """
        if absolute or howto_name in _PC_RELATIVE:
            return
        size = _RELOC_SIZES.get(howto_name)
        if size is None:
            raise RelocationError(f"Unrecognised relocation type {howto_name}")
        self.add(rva, size)

    def to_bytes(self) -> bytes:
        """Return the binary base relocation table.

        Pages appear with the most recently started page first; each block
        holds an even number of entries and is padded to 16 bytes.
        """
        out = bytearray()
        for start_rva, relocs in reversed(self._blocks.items()):
            entries = list(relocs)
            if len(entries) % 2:
                entries.append(0)
            size = _BLOCK_HEADER.size + 2 * len(entries)
            pad_len = (-size) & (_BLOCK_ALIGN - 1)
            size += pad_len
            out += _BLOCK_HEADER.pack(start_rva, size)
            out += struct.pack(f"<{len(entries)}H", *entries)
            out += bytes(pad_len)
        return bytes(out)


def _check_within(image: bytearray, offset: int, length: int) -> None:
    limit = min(len(image), PE_HEADER_LEN)
    if offset < 0 or offset + length > limit:
        raise RelocationError("PE header field lies outside the header")


def append_reloc_section(pe_image, relocs: PeRelocations) -> bytes:
    """Append the relocation table to a PE image and update its headers.

    The image size, the base relocation data directory entry and the
    size of the relocation section header are all adjusted.
    """
    image = bytearray(pe_image)
    _check_within(image, 0x3C, 4)
    (nt,) = struct.unpack_from("<I", image, 0x3C)

    _check_within(image, nt + _FILE_HEADER_OFFSET, 2)
    (machine,) = struct.unpack_from("<H", image, nt + _FILE_HEADER_OFFSET)
    layout = _LAYOUTS.get(machine)
    if layout is None:
        raise RelocationError("Unrecognised machine type")
    count_offset, dir_offset = layout

    optional = nt + _OPTIONAL_HEADER_OFFSET
    image_size_at = optional + _SIZE_OF_IMAGE
    _check_within(image, image_size_at, 4)
    _check_within(image, optional + count_offset, 4)
    (num_dirs,) = struct.unpack_from("<I", image, optional + count_offset)

    data_dir = optional + dir_offset
    reloc_dir_size_at = (data_dir + IMAGE_DIRECTORY_ENTRY_BASERELOC
                         * _DATA_DIR_LEN + 4)
    _check_within(image, reloc_dir_size_at, 4)
    section = (data_dir + num_dirs * _DATA_DIR_LEN
               + RELOC_SECTION_INDEX * _SECTION_LEN)
    _check_within(image, section, _SECTION_LEN)

    table = relocs.to_bytes()
    reloc_len = len(table)

    (image_size,) = struct.unpack_from("<I", image, image_size_at)
    struct.pack_into("<I", image, image_size_at,
                     (image_size + reloc_len) & 0xFFFFFFFF)
    struct.pack_into("<I", image, reloc_dir_size_at, reloc_len)
    struct.pack_into("<I", image, section + _SECTION_VIRTUAL_SIZE, reloc_len)
    struct.pack_into("<I", image, section + _SECTION_RAW_SIZE, reloc_len)

    return bytes(image) + table