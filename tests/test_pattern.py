from __future__ import annotations

import pytest

from core.mask.format_characters import merge_format_characters
from core.mask.pattern import compile_pattern
from core.utils.errors import DanglingEscapeError, InvalidPatternError, NoEditablePositionError


def test_compile_tracks_editable_positions() -> None:
    pattern = compile_pattern("00/00")

    assert pattern.positions == ("0", "0", "/", "0", "0")
    assert pattern.length == 5
    assert pattern.editable_indices == frozenset({0, 1, 3, 4})
    assert pattern.first_editable_index == 0
    assert pattern.last_editable_index == 4


def test_compile_escaped_tokens_are_literals() -> None:
    pattern = compile_pattern("\\0\\A 00")

    assert pattern.positions == ("0", "A", " ", "0", "0")
    assert pattern.editable_indices == frozenset({3, 4})
    assert pattern.first_editable_index == 3
    assert not pattern.is_editable_index(0)
    assert not pattern.is_editable_index(1)


def test_compile_escaped_backslash_is_literal() -> None:
    pattern = compile_pattern("0\\\\0")

    assert pattern.positions == ("0", "\\", "0")
    assert pattern.editable_indices == frozenset({0, 2})


@pytest.mark.parametrize("source", ["\\", "00\\"])
def test_compile_dangling_escape_raises(source: str) -> None:
    with pytest.raises(DanglingEscapeError) as exc_info:
        compile_pattern(source)

    assert exc_info.value.reason == "dangling_escape"
    assert exc_info.value.source == source


@pytest.mark.parametrize("source", ["", "--", "\\0\\0"])
def test_compile_without_editable_position_raises(source: str) -> None:
    with pytest.raises(NoEditablePositionError) as exc_info:
        compile_pattern(source)

    assert isinstance(exc_info.value, InvalidPatternError)
    assert isinstance(exc_info.value, ValueError)
    assert exc_info.value.reason == "no_editable_position"


def test_compile_uses_given_vocabulary() -> None:
    vocabulary = merge_format_characters({"0": None})

    with pytest.raises(NoEditablePositionError):
        compile_pattern("00", vocabulary)


def test_empty_placeholder_falls_back_to_default() -> None:
    pattern = compile_pattern("00", placeholder_char="")

    assert pattern.placeholder_char == "_"
    assert pattern.empty_value() == "__"


def test_empty_value_renders_literal_skeleton() -> None:
    pattern = compile_pattern("(000) 000-0000")

    assert pattern.empty_value() == "(___) ___-____"
    assert len(pattern.empty_value()) == pattern.length


def test_format_value_fills_valid_characters() -> None:
    pattern = compile_pattern("00/00")

    assert "".join(pattern.format_value(list("123"))) == "12/3_"
    assert "".join(pattern.format_value(list("1234"))) == "12/34"


def test_format_value_absorbs_matching_literals() -> None:
    pattern = compile_pattern("00/00")

    assert "".join(pattern.format_value(list("12/34"))) == "12/34"


def test_format_value_non_revealing_truncates_at_first_invalid() -> None:
    pattern = compile_pattern("00/00")

    assert "".join(pattern.format_value(list("1a34"))) == "1_/__"


def test_format_value_revealing_keeps_content_after_gap() -> None:
    pattern = compile_pattern("00/00", revealing_mask=True)

    assert "".join(pattern.format_value(list("1a34"))) == "1_/34"


def test_format_value_applies_transforms() -> None:
    assert "".join(compile_pattern("AA").format_value(list("ab"))) == "AB"
    assert "".join(compile_pattern("##").format_value(list("x9"))) == "X9"
    assert "".join(compile_pattern("aa").format_value(list("xY"))) == "xY"


def test_format_value_always_returns_full_length() -> None:
    pattern = compile_pattern("0000 0000")

    for candidates in ([], list("1"), list("123456789"), list("x")):
        assert len(pattern.format_value(candidates)) == pattern.length


def test_find_editable_index_before() -> None:
    pattern = compile_pattern("(00)")

    assert pattern.find_editable_index_before(3) == 2
    assert pattern.find_editable_index_before(2) == 1
    assert pattern.find_editable_index_before(1) == 0
    assert compile_pattern("00/00").find_editable_index_before(3) == 1


def test_find_editable_index_from() -> None:
    pattern = compile_pattern("00/00")

    assert pattern.find_editable_index_from(2) == 3
    assert pattern.find_editable_index_from(3) == 3
    assert compile_pattern("00/").find_editable_index_from(2) is None


def test_one_is_a_digit_token_alias() -> None:
    pattern = compile_pattern("111.111.111.111")

    assert len(pattern.editable_indices) == 12
    assert pattern.empty_value() == "___.___.___.___"
    assert "".join(pattern.format_value(list("192.168.001.005"))) == "192.168.001.005"
    assert "".join(compile_pattern("\\1 000").format_value(list("1 234"))) == "1 234"
