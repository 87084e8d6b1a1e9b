from __future__ import annotations

import pytest

from daily_quiz.quiz.parser import (
    ParseError,
    ParseStage,
    extract_payload,
    parse_quiz_response,
    validate_answer,
)
from fixtures.samples import answer_json, answer_payload


def test_fenced_json_is_extracted():
    raw = (
        "Here you go:\n```json\n"
        '{"question":"Q?","options":["w","x","y","z"],"correct":2,'
        '"explanation":"because"}\n```'
    )

    answer = parse_quiz_response(raw)

    assert answer.question == "Q?"
    assert answer.options == ("w", "x", "y", "z")
    assert answer.correct == 2
    assert answer.explanation == "because"


def test_unlabelled_fence_is_extracted():
    assert extract_payload("```\n{\"a\": 1}\n```") == '{"a": 1}'


def test_bare_object_is_extracted_from_prose():
    raw = f"Sure! {answer_json()} Hope that helps."

    assert parse_quiz_response(raw).options[0] == "Partitioning"


def test_plain_text_falls_through_stripped():
    assert extract_payload("  no json here  ") == "no json here"


def test_invalid_json_is_a_syntax_error():
    with pytest.raises(ParseError) as excinfo:
        parse_quiz_response("```json\n{\"question\": \"Q?\",}\n```")

    err = excinfo.value
    assert err.stage is ParseStage.SYNTAX
    assert str(err).startswith("Failed to parse JSON:")
    assert err.raw_text == '{"question": "Q?",}'


def test_wrong_option_count_is_a_schema_error():
    raw = answer_json(options=["a", "b", "c"])

    with pytest.raises(ParseError) as excinfo:
        parse_quiz_response(raw)

    err = excinfo.value
    assert err.stage is ParseStage.SCHEMA
    assert str(err).startswith("Invalid quiz response format:")
    assert err.value["options"] == ["a", "b", "c"]
    assert any(e.startswith("options:") for e in err.errors)


def test_schema_errors_are_collected_together():
    result = validate_answer(
        {"question": "", "options": ["a", "", "c", "d"], "correct": 7}
    )

    assert not result.ok
    fields = {e.split(":", 1)[0] for e in result.errors}
    assert fields == {"question", "options[1]", "correct", "explanation"}


@pytest.mark.parametrize("correct", [-1, 4, "1", None, True, 1.5])
def test_correct_must_be_an_index(correct):
    result = validate_answer(answer_payload(correct=correct))

    assert not result.ok
    assert result.errors[0].startswith("correct:")


def test_integral_float_index_is_accepted():
    answer = parse_quiz_response(answer_json(correct=3.0))

    assert answer.correct == 3
    assert isinstance(answer.correct, int)


def test_non_object_payload_is_rejected():
    with pytest.raises(ParseError) as excinfo:
        parse_quiz_response("[1, 2, 3]")

    assert excinfo.value.stage is ParseStage.SCHEMA


def test_documented_fenced_example_parses_exactly():
    raw = (
        '```json\n{"question":"Q","options":["1","2","3","4"],"correct":2,'
        '"explanation":"E"}\n```'
    )

    answer = parse_quiz_response(raw)

    assert answer.correct == 2
    assert answer.options == ("1", "2", "3", "4")


@pytest.mark.parametrize("raw", ["", "   \n "])
def test_blank_generation_is_a_syntax_error(raw):
    assert extract_payload(raw) == ""

    with pytest.raises(ParseError) as excinfo:
        parse_quiz_response(raw)

    assert excinfo.value.stage is ParseStage.SYNTAX


def test_markdown_and_newlines_in_options_are_kept_verbatim():
    options = ["`SELECT *`", "line one\nline two", "**bold**", "- item"]

    answer = parse_quiz_response(answer_json(options=options))

    assert answer.options == tuple(options)
