import pytest

from wimtools.cmdline import CommandLine, CommandLineError, parse_cmdline


def test_empty_and_none_give_defaults():
    assert parse_cmdline(None) == CommandLine()
    assert parse_cmdline("") == CommandLine()


def test_flags_are_set():
    result = parse_cmdline("rawbcd rawwim gui linear quiet")
    assert result.rawbcd and result.rawwim and result.gui
    assert result.linear and result.quiet
    assert not result.pause
    assert result.index == 0


def test_pause_plain_and_quiet():
    plain = parse_cmdline("pause")
    assert plain.pause is True
    assert plain.pause_quiet is False
    quiet = parse_cmdline("pause=quiet")
    assert quiet.pause is True
    assert quiet.pause_quiet is True


def test_pause_with_other_value_is_not_quiet():
    result = parse_cmdline("pause=loud")
    assert result.pause is True
    assert result.pause_quiet is False


@pytest.mark.parametrize(
    "text, expected",
    [("index=5", 5), ("index=0x1f", 0x1F), ("index=017", 0o17), ("index=0", 0)],
)
def test_index_bases(text, expected):
    assert parse_cmdline(text).index == expected


def test_index_negative_wraps_to_unsigned():
    assert parse_cmdline("index=-1").index == 0xFFFFFFFF


@pytest.mark.parametrize("text", ["index", "index="])
def test_index_needs_value(text):
    with pytest.raises(CommandLineError, match="needs a value"):
        parse_cmdline(text)


@pytest.mark.parametrize("text", ["index=12abc", "index=0x", "index=09", "index=+"])
def test_index_invalid(text):
    with pytest.raises(CommandLineError, match="Invalid index"):
        parse_cmdline(text)


def test_unknown_first_argument_is_ignored():
    result = parse_cmdline("wimboot.efi gui")
    assert result.gui is True


def test_initrdfile_is_ignored():
    result = parse_cmdline("prog initrdfile=foo.wim rawwim")
    assert result.rawwim is True


def test_unknown_later_argument_raises_with_value():
    with pytest.raises(CommandLineError, match='"foo=bar"'):
        parse_cmdline("prog foo=bar")


def test_unknown_argument_after_leading_whitespace_raises():
    with pytest.raises(CommandLineError, match='"prog"'):
        parse_cmdline("  prog")


def test_single_trailing_space_is_accepted():
    assert parse_cmdline("gui ").gui is True


def test_double_trailing_space_yields_empty_argument():
    with pytest.raises(CommandLineError, match='""'):
        parse_cmdline("gui  ")


def test_value_split_on_first_equals_only():
    with pytest.raises(CommandLineError, match='"foo=a=b"'):
        parse_cmdline("prog foo=a=b")


def test_tabs_separate_arguments():
    result = parse_cmdline("prog\tgui\tindex=3")
    assert result.gui is True
    assert result.index == 3