"""LZX and LZNT1 decompression, CPIO reading, Huffman alphabets, command-line parsing, C-style formatting and EFI/PE helpers."""

__version__ = "0.1.0"

__all__ = [
    "cmdline",
    "cpio",
    "efipath",
    "efireloc",
    "huffman",
    "lznt1",
    "lzx",
    "vsprintf",
]