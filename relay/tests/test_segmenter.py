"""Tests for the segmenter."""

import pytest

from relay.core.segmenter import segment


def test_punctuation_stays_with_word():
    assert segment("Hello there!") == ["Hello ", "there!"]


def test_go_fast():
    assert segment("Go fast.") == ["Go ", "fast."]


def test_leading_delimiter_is_own_unit():
    assert segment(" there") == [" ", "there"]
    assert segment("!") == ["!"]


def test_consecutive_delimiters():
    assert segment("Wait... what?!") == ["Wait.", ".", ".", " ", "what?", "!"]


def test_colon_and_semicolon_close_units():
    assert segment("a:b;c") == ["a:", "b;", "c"]


def test_newline_is_whitespace():
    assert segment("one\ntwo") == ["one\n", "two"]


def test_empty():
    assert segment("") == []


@pytest.mark.parametrize(
    "text",
    [
        "",
        " ",
        "Hello",
        "Hello, world! How are you?",
        "  leading and trailing  ",
        "tabs\tand\nnewlines\r\n",
        "no-delimiters-at-all",
        "Unicode: naïve café, 東京!",
        "...,,,!!!???::;;",
    ],
)
def test_round_trip(text):
    assert "".join(segment(text)) == text


def test_no_empty_units():
    assert all(segment("a  b,, c. "))
