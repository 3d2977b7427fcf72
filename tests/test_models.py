from __future__ import annotations

import pytest

from math_genius.quiz.models import (
    Category,
    Difficulty,
    GenerationRequest,
    Question,
    SessionSettings,
    clamp_question_count,
    clamp_time_limit,
)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("division", Category.DIVISION),
        ("word-problems", Category.WORD_PROBLEMS),
        ("wordProblems", Category.WORD_PROBLEMS),
        ("Word Problems", Category.WORD_PROBLEMS),
        ("Data-Analysis", Category.DATA_ANALYSIS),
        ("data  analysis", Category.DATA_ANALYSIS),
        ("DATA_ANALYSIS", Category.DATA_ANALYSIS),
        (Category.PATTERNS, Category.PATTERNS),
    ],
)
def test_category_parse_accepts_common_spellings(raw, expected):
    assert Category.parse(raw) is expected


def test_difficulty_parse_rejects_unknown_values():
    with pytest.raises(ValueError, match="Expected one of"):
        Difficulty.parse("impossible")
    with pytest.raises(ValueError):
        Difficulty.parse("")


def test_clamps():
    assert clamp_question_count(0) == 1
    assert clamp_question_count(51) == 50
    assert clamp_time_limit(1) == 5
    assert clamp_time_limit(301) == 300
    assert clamp_time_limit(45) == 45


def test_request_normalizes_fields():
    request = GenerationRequest("algebra", "genius", count=80)

    assert request.category is Category.ALGEBRA
    assert request.difficulty is Difficulty.GENIUS
    assert request.count == 50


def test_request_defaults():
    request = GenerationRequest()

    assert request.category is Category.ADDITION
    assert request.difficulty is Difficulty.NORMAL
    assert request.count == 10


def test_settings_clamp_time_limit():
    assert SessionSettings(GenerationRequest(), 0).time_limit_seconds == 5


def test_question_exposes_answer_and_serializes():
    question = Question(
        prompt="What is 2 + 2?",
        options=(5, 4, 3, 6),
        correct_option_index=1,
    )

    assert question.options == ("5", "4", "3", "6")
    assert question.answer == "4"
    assert question.is_correct(1)
    assert not question.is_correct(0)
    payload = question.to_dict()
    assert payload["answer"] == "4"
    assert payload["category"] == "addition"


@pytest.mark.parametrize(
    "options,index",
    [
        (("1", "2", "3"), 0),
        (("1", "1", "2", "3"), 0),
        (("1", "2", "3", "4"), 4),
        (("1", "2", "3", "4"), -1),
    ],
)
def test_question_rejects_invalid_shapes(options, index):
    with pytest.raises(ValueError):
        Question(prompt="?", options=options, correct_option_index=index)
