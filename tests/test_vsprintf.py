import pytest

from wimtools.vsprintf import cformat, snprintf


def test_plain_text_passes_through():
    assert cformat("hello world") == "hello world"


def test_decimal():
    assert cformat("%d", 42) == "42"
    assert cformat("%i", -7) == "-7"


def test_decimal_space_padded():
    assert cformat("%5d", 42) == f"{42:5d}"
    assert cformat("%5d", -42) == f"{-42:5d}"


def test_decimal_zero_padded_negative():
    assert cformat("%05d", -42) == f"{-42:05d}"


def test_decimal_zero_pad_narrow_width_overwrites_digit():
    assert cformat("%02d", -42) == "-2"


def test_decimal_int_wraps_but_long_does_not():
    assert cformat("%d", 2 ** 31) == str(-(2 ** 31))
    assert cformat("%ld", 2 ** 31) == str(2 ** 31)


def test_short_modifier_does_not_truncate():
    assert cformat("%hd", 70000) == "70000"


def test_hex_case():
    assert cformat("%x", 255) == f"{255:x}"
    assert cformat("%X", 255) == f"{255:X}"


def test_hex_padding():
    assert cformat("%08x", 0x1F) == f"{0x1F:08x}"
    assert cformat("%8x", 0x1F) == f"{0x1F:8x}"


def test_hex_alternate_form_prefix_outside_width():
    assert cformat("%#x", 0x1F) == f"{0x1F:#x}"
    assert cformat("%#08x", 0x1F) == "0x" + f"{0x1F:08x}"
    assert cformat("%#X", 0xAB) == "0X" + f"{0xAB:X}"


def test_hex_widths():
    assert cformat("%x", -1) == f"{0xFFFFFFFF:x}"
    assert cformat("%lx", -1) == f"{(1 << 64) - 1:x}"
    assert cformat("%llx", 2 ** 40) == f"{2 ** 40:x}"
    assert cformat("%zx", 2 ** 40) == f"{2 ** 40:x}"


def test_string():
    assert cformat("[%s]", "hello") == "[hello]"
    assert cformat("%ls", "wide") == "wide"
    assert cformat("%s", None) == "<NULL>"


def test_string_is_not_padded():
    assert cformat("%10s", "ab") == "ab"


def test_character():
    assert cformat("%c", 65) == chr(65)
    assert cformat("%c", "Z") == "Z"
    assert cformat("%lc", 0x263A) == "\u263a"


def test_pointer():
    assert cformat("%p", 0x1234) == f"{0x1234:#x}"
    assert cformat("%p", None) == f"{0:#x}"


def test_unknown_conversion_is_copied():
    assert cformat("100%%") == "100%"
    assert cformat("%q") == "q"


def test_trailing_percent_is_dropped():
    assert cformat("abc%") == "abc"


def test_missing_argument():
    with pytest.raises(TypeError):
        cformat("%d %d", 1)


def test_multiple_conversions():
    assert cformat("%s=%d (%#x)", "n", 16, 16) == f"n=16 ({16:#x})"


def test_snprintf_truncates():
    text, length = snprintf(5, "%s", "abcdefgh")
    assert text == "abcd"
    assert length == len("abcdefgh")


def test_snprintf_large_buffer():
    full = cformat("%d-%s", 12, "xy")
    assert snprintf(100, "%d-%s", 12, "xy") == (full, len(full))


@pytest.mark.parametrize("size", [0, -3])
def test_snprintf_no_room(size):
    text, length = snprintf(size, "%s", "abc")
    assert text == ""
    assert length == 3


@pytest.mark.parametrize("size", range(1, 10))
def test_snprintf_prefix_invariant(size):
    full = cformat("%08x|%s", 0xBEEF, "tail")
    text, length = snprintf(size, "%08x|%s", 0xBEEF, "tail")
    assert text == full[:size - 1]
    assert length == len(full)