"""
Tests for survey question list editing and ordered-list helpers.
"""

from __future__ import annotations

import pytest

from backend_ldgrowth.core.exceptions import InvalidRequestError, NotFoundError


def _three():
    return [
        {"id": "q1", "text": "A", "type": "rating", "required": True, "rating_scale": {"min": 1, "max": 10}},
        {"id": "q2", "text": "B", "type": "text", "required": False},
        {"id": "q3", "text": "C", "type": "multiple_choice", "required": True, "options": ["x", "y"]},
    ]


def test_move_item_forward_and_back():
    """Dragging an item puts it at the destination index; the rest keep relative order."""
    from backend_ldgrowth.core.lists import move_item

    assert move_item(["a", "b", "c", "d"], 0, 2) == ["b", "c", "a", "d"]
    assert move_item(["a", "b", "c", "d"], 3, 0) == ["d", "a", "b", "c"]
    assert move_item(["a", "b", "c"], 1, 1) == ["a", "b", "c"]


def test_move_item_dropped_outside_is_noop():
    from backend_ldgrowth.core.lists import move_item

    items = ["a", "b"]
    result = move_item(items, 0, None)
    assert result == ["a", "b"]
    assert result is not items


def test_move_item_out_of_range():
    from backend_ldgrowth.core.lists import move_item

    with pytest.raises(InvalidRequestError):
        move_item(["a"], 2, 0)
    with pytest.raises(InvalidRequestError):
        move_item(["a", "b"], 0, 5)


def test_next_id_fills_smallest_gap():
    from backend_ldgrowth.core.lists import next_id

    assert next_id("q", []) == "q1"
    assert next_id("q", ["q1", "q3"]) == "q2"
    assert next_id("s", ["s1", "s2"]) == "s3"


def test_move_question_does_not_mutate_input():
    from backend_ldgrowth.surveys.builder import move_question

    questions = _three()
    moved = move_question(questions, 2, 0)
    assert [q["id"] for q in moved] == ["q3", "q1", "q2"]
    assert [q["id"] for q in questions] == ["q1", "q2", "q3"]


def test_add_question_defaults_per_type():
    from backend_ldgrowth.surveys.builder import add_question

    result = add_question(_three(), "rating")
    assert result[-1] == {
        "id": "q4",
        "text": "",
        "type": "rating",
        "required": True,
        "rating_scale": {"min": 1, "max": 10},
    }
    choice = add_question([], "multiple-choice")[0]
    assert choice["type"] == "multiple_choice"
    assert choice["options"] == ["Option 1", "Option 2"]
    with pytest.raises(InvalidRequestError):
        add_question([], "slider")


def test_update_question_type_change_normalizes_fields():
    """Switching rating -> multiple choice drops the scale and seeds two options."""
    from backend_ldgrowth.surveys.builder import update_question

    result = update_question(_three(), "q1", type="multiple_choice", text="Pick one")
    q1 = result[0]
    assert q1["type"] == "multiple_choice"
    assert q1["text"] == "Pick one"
    assert "rating_scale" not in q1
    assert q1["options"] == ["Option 1", "Option 2"]


def test_update_question_ignores_id_change():
    from backend_ldgrowth.surveys.builder import update_question

    result = update_question(_three(), "q2", id="zzz", required=True)
    assert result[1]["id"] == "q2"
    assert result[1]["required"] is True


def test_duplicate_question_inserted_after_source():
    from backend_ldgrowth.surveys.builder import duplicate_question

    result = duplicate_question(_three(), "q1")
    assert [q["id"] for q in result] == ["q1", "q4", "q2", "q3"]
    assert result[1]["text"] == "A (Copy)"
    assert result[1]["rating_scale"] == result[0]["rating_scale"]
    assert result[1]["rating_scale"] is not result[0]["rating_scale"]


def test_delete_unknown_question():
    from backend_ldgrowth.surveys.builder import delete_question

    assert [q["id"] for q in delete_question(_three(), "q2")] == ["q1", "q3"]
    with pytest.raises(NotFoundError):
        delete_question(_three(), "q9")


def test_options_editing():
    """Options: add numbered, edit in place, never fewer than two."""
    from backend_ldgrowth.surveys.builder import add_option, remove_option, update_option

    questions = add_option(_three(), "q3")
    assert questions[2]["options"] == ["x", "y", "Option 3"]
    questions = update_option(questions, "q3", 2, "z")
    assert questions[2]["options"] == ["x", "y", "z"]
    questions = remove_option(questions, "q3", 0)
    assert questions[2]["options"] == ["y", "z"]
    # At the minimum, removal is ignored
    assert remove_option(questions, "q3", 0)[2]["options"] == ["y", "z"]

    with pytest.raises(InvalidRequestError):
        add_option(_three(), "q1")
    with pytest.raises(InvalidRequestError):
        update_option(_three(), "q3", 7, "nope")


def test_validate_questions_reports_every_problem():
    from backend_ldgrowth.surveys.builder import validate_questions

    assert validate_questions(_three()) == []
    assert validate_questions([]) == ["At least one question is required"]

    errors = validate_questions([
        {"id": "q1", "text": "", "type": "rating", "rating_scale": {"min": 5, "max": 5}},
        {"id": "q1", "text": "Dup", "type": "multiple_choice", "options": ["only", " "]},
        {"id": "q3", "text": "Bad", "type": "slider"},
    ])
    assert "Question 1 text is required" in errors
    assert "Question 1 rating scale minimum must be below maximum" in errors
    assert "Duplicate question id: q1" in errors
    assert "Question 2 needs at least 2 options" in errors
    assert any(e.startswith("Question 3: Invalid question type") for e in errors)


def test_prepare_questions_raises_joined_errors():
    from backend_ldgrowth.surveys.builder import prepare_questions

    with pytest.raises(InvalidRequestError) as exc:
        prepare_questions([{"id": "q1", "text": "", "type": "text"}])
    assert "Question 1 text is required" in exc.value.message

    prepared = prepare_questions([{"id": "q1", "text": "Why?", "type": "text", "options": ["a"]}])
    assert prepared == [{"id": "q1", "text": "Why?", "type": "text", "required": True}]


def test_validate_questions_reports_malformed_fields():
    from backend_ldgrowth.surveys.builder import prepare_questions, validate_questions

    errors = validate_questions([
        {"id": "q1", "text": "Rate us", "type": "rating", "rating_scale": {"min": "a", "max": 5}},
        "not a question",
        {"id": "q3", "text": "Pick", "type": "multiple_choice", "options": "a,b"},
    ])
    assert len(errors) == 3
    assert errors[0].startswith("Question 1: Invalid question: rating_scale.min")
    assert errors[1].startswith("Question 2: Invalid question")
    assert errors[2].startswith("Question 3: Invalid question: options")
    assert validate_questions({"q1": {}}) == ["Questions must be an array"]

    with pytest.raises(InvalidRequestError, match="rating_scale.max"):
        prepare_questions([{"id": "q1", "text": "Rate", "rating_scale": {"max": [10]}}])


def test_numeric_text_fields_are_accepted():
    from backend_ldgrowth.surveys.builder import prepare_questions

    prepared = prepare_questions([{"id": 7, "text": 42, "type": "multiple_choice", "options": [1, 2]}])
    assert prepared == [{"id": "7", "text": "42", "type": "multiple_choice", "required": True, "options": ["1", "2"]}]
