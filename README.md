# wimtools

Small, dependency-free building blocks for working with Windows Imaging
Format boot media. Everything works on in-memory `bytes`, and malformed
input raises an exception derived from `ValueError`.

## Modules

- `wimtools.lzx`: `lzx_decompress(data)` returns the decompressed bytes of
  an LZX stream as used in WIM resources, including undoing the E8
  call-address translation. It raises `LzxError` on malformed or
  odd-length input. `footer_bits(position_slot)` gives the number of
  footer bits for a position slot.
- `wimtools.lznt1`: `lznt1_decompress(data)` returns the decompressed bytes
  of LZNT1 data. A single trailing zero byte is taken as an end marker.
  Malformed input raises `Lznt1Error`.
- `wimtools.huffman`: `HuffmanAlphabet(lengths)` builds a canonical Huffman
  alphabet from per-symbol code lengths, where 0 means unused. If every
  length is 0, the result is a trivial alphabet of two one-bit codes.
  `HuffmanAlphabet.lookup(huf)` finds the `HuffmanSymbols` set for a
  16-bit normalised input value, and `HuffmanSymbols.raw_symbol(huf)`
  returns the decoded symbol. Alphabets that are over-full or incomplete
  raise `HuffmanError`.
- `wimtools.cpio`: `iter_cpio(data)` yields a `CpioEntry(name, data)` for
  each file in a "newc" (`070701`) archive. It skips zero padding between
  entries and stops at the `TRAILER!!!` entry or at the end of the data.
  A truncated header, a bad magic number or a truncated file raises
  `CpioError`.
- `wimtools.cmdline`: `parse_cmdline(text)` returns a `CommandLine` with the
  fields `rawbcd`, `rawwim`, `quiet`, `gui`, `pause`, `pause_quiet`,
  `linear` and `index`.
  - `pause=quiet` sets both `pause` and `pause_quiet`.
  - `index` accepts decimal, octal (`0` prefix) and hexadecimal (`0x`
    prefix) values.
  - `initrdfile` is accepted and ignored.
  - An unknown first word, such as a program name, is ignored.

  Any other unknown argument, a missing index value or an invalid index
  value raises `CommandLineError`.
- `wimtools.vsprintf`: `cformat(fmt, *args)` is a small printf-style
  formatter. It supports:
  - the flags `#` and `0`, and a field width;
  - the length modifiers `hh`, `h`, `l`, `ll` and `z`;
  - the conversions `d`, `i`, `x`, `X`, `c`, `s` and `p`.

  Hexadecimal numbers are padded before any `0x` prefix is added, and
  strings are never padded. Any other conversion character is copied to
  the output unchanged. Too few arguments raise `TypeError`.
  `snprintf(size, fmt, *args)` returns a pair: the text that fits in a
  buffer of `size` characters (a terminator included), and the length
  the full text would have had.
- `wimtools.efipath`: `devpath_node(type, subtype, payload)` and
  `devpath_end_node()` build EFI device path nodes.
  `devpath_end(data)` returns the offset of the end node in a device
  path.
- `wimtools.efireloc`: `PeRelocations` collects base relocations grouped
  by 4 kB page.
  - `add(rva, size)` records a relocation of 2, 4 or 8 bytes.
  - `add_reloc(name, rva, absolute=False)` records an ELF relocation type
    such as `R_X86_64_64` or `R_386_32`. PC-relative relocations and
    relocations against absolute symbols are skipped.
  - `to_bytes()` returns the binary `.reloc` table.

  `append_reloc_section(pe_image, relocs)` appends that table to an IA-32
  or x64 PE image. It also updates the image size, the base-relocation
  data directory and the sizes of the fifth section header. Unsupported
  input raises `RelocationError`.

## Examples

```python
from wimtools.lzx import lzx_decompress
from wimtools.lznt1 import lznt1_decompress

plain = lzx_decompress(compressed_chunk)
other = lznt1_decompress(lznt1_chunk)
```

```python
from wimtools.cpio import iter_cpio

with open("initrd.cpio", "rb") as fh:
    for entry in iter_cpio(fh.read()):
        print(entry.name, len(entry.data))
```

```python
from wimtools.cmdline import parse_cmdline

options = parse_cmdline("wimboot rawbcd index=0x2")
print(options.rawbcd, options.index)   # True 2
```

```python
from wimtools.vsprintf import cformat, snprintf

cformat("%#08x %s", 0x1234, "done")    # '0x00001234 done'
snprintf(4, "%d", 12345)               # ('123', 5)
```

## What this package does not do

This is a library only; it installs no command-line program. It does not
open WIM archives or locate resources inside them, patch BCD files, build
virtual disks, or load and start a boot manager. `wimtools.efireloc` does
not read ELF object files itself: the caller supplies each relocation's
type name, address and whether its symbol is absolute.

## Running the tests

From a checkout of the source tree:

```
pip install .[test]
pytest
```