import pytest

from newsfeed.core.similarity import edit_distance, similarity


def test_edit_distance_classic_example():
    assert edit_distance("kitten", "sitting") == 3
    assert edit_distance("sitting", "kitten") == 3


def test_edit_distance_against_empty():
    assert edit_distance("", "abc") == 3
    assert edit_distance("abc", "") == 3
    assert edit_distance("", "") == 0


def test_identical_and_empty_strings_score_one():
    assert similarity("Fed cuts rates", "Fed cuts rates") == 1.0
    assert similarity("", "") == 1.0
    assert similarity("   ", "") == 1.0


def test_similarity_ignores_case_and_surrounding_whitespace():
    assert similarity("  Fed Cuts Rates ", "fed cuts rates") == 1.0


def test_trailing_punctuation_is_near_duplicate():
    score = similarity("Fed cuts rates", "fed cuts rates.")
    assert score == pytest.approx(1 - 1 / 15)
    assert score > 0.9


def test_completely_different_strings():
    assert similarity("abc", "xyz") == 0.0
    assert similarity("", "abc") == 0.0


@pytest.mark.parametrize(
    "a, b",
    [
        ("Stocks rally on jobs data", "Stocks slump on jobs data"),
        ("Apple unveils iPhone", "Nvidia earnings beat"),
        ("short", "a much longer headline"),
    ],
)
def test_similarity_is_symmetric_and_bounded(a, b):
    assert similarity(a, b) == similarity(b, a)
    assert 0.0 <= similarity(a, b) <= 1.0
