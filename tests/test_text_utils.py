"""Tests for whitespace normalization and text pattern matching."""

from __future__ import annotations

from html_entity_parser.text_utils import has_wildcard, join_texts, normalize_text, text_matches


def test_normalize_text_collapses_whitespace() -> None:
    assert normalize_text("  a \n\t b  ") == "a b"


def test_join_texts_skips_empty_fragments() -> None:
    assert join_texts(["one", "  ", "two\n three"]) == "one two three"


def test_plain_pattern_is_case_insensitive_prefix() -> None:
    assert text_matches("Email Address", ["email"]) is True
    assert text_matches("My Email", ["email"]) is False


def test_trailing_star_is_same_as_plain_prefix() -> None:
    assert text_matches("abcdef", ["a*"]) is True
    assert text_matches("abcdef", ["a"]) is True
    assert text_matches("bcdef", ["a*"]) is False


def test_leading_star_means_ends_with() -> None:
    assert text_matches("abcdef", ["*f"]) is True
    assert text_matches("abcdef", ["*e"]) is False


def test_question_mark_matches_exactly_one_character() -> None:
    assert text_matches("abcdef", ["a?????"]) is True
    assert text_matches("abcdef", ["a????"]) is False
    assert text_matches("abcdefg", ["a?????"]) is False


def test_exact_and_match_case_variants() -> None:
    assert text_matches("abc", ["ab"], exact=True) is False
    assert text_matches("ABC", ["abc"], exact=True) is True
    assert text_matches("ABC", ["abc"], exact=True, match_case=True) is False
    assert text_matches("ABC", ["AB"], match_case=True) is True


def test_alternatives_are_ored_and_text_is_normalized() -> None:
    assert text_matches("  Female \n", ["Male", "Female"]) is True
    assert text_matches("Other", ["Male", "Female"]) is False


def test_regex_characters_are_literal() -> None:
    assert text_matches("a.b", ["a.b"], exact=True) is True
    assert text_matches("axb", ["a.b"], exact=True) is False
    assert has_wildcard("a?") is True
    assert has_wildcard("a.b") is False
