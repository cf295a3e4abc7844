[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wimtools"
version = "0.1.0"
description = "Pure-Python LZX and LZNT1 decompression, CPIO reading, Huffman alphabets, C-style formatting and EFI/PE helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["lzx", "lznt1", "huffman", "cpio", "wim", "decompression", "efi", "pe", "relocations"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Archiving :: Compression",
    "Topic :: System :: Boot",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["wimtools"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"
