"""
Survey question list editing.

Pure functions over a list of question dicts, matching what the survey
builder screen does locally before saving: add, edit, duplicate, drag to
reorder, and manage multiple-choice options. Inputs are never mutated.

Question shape:
    {"id": "q3", "text": "...", "type": "rating" | "text" | "multiple_choice",
     "required": True, "rating_scale": {"min": 1, "max": 10}, "options": [...]}
"""

from __future__ import annotations

import copy
from typing import Any, Optional

from pydantic import ConfigDict

from backend_ldgrowth.core.exceptions import InvalidRequestError
from backend_ldgrowth.core.lists import index_by_id, move_item, next_id
from backend_ldgrowth.core.validation import Payload, parse_item

QUESTION_TYPES = ("rating", "text", "multiple_choice")
DEFAULT_RATING_SCALE = {"min": 1, "max": 10}
MIN_OPTIONS = 2


def normalize_type(question_type: str) -> str:
    """Accept the client's 'multiple-choice' spelling."""
    value = (question_type or "").strip().lower().replace("-", "_")
    if value not in QUESTION_TYPES:
        raise InvalidRequestError(f"Invalid question type: {question_type}")
    return value


class RatingScale(Payload):
    min: int = DEFAULT_RATING_SCALE["min"]
    max: int = DEFAULT_RATING_SCALE["max"]


class Question(Payload):
    """One survey question as sent by the builder; extra keys are kept."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: Optional[str] = None
    text: Optional[str] = None
    type: Optional[str] = "rating"
    required: Optional[bool] = True
    rating_scale: Optional[RatingScale] = None
    options: Optional[list[str]] = None


def parse_question(question: Any) -> Question:
    return parse_item(Question, question, "question")


def normalize_question(question: dict[str, Any] | Question) -> dict[str, Any]:
    """Fill defaults and drop fields that do not apply to the question type."""
    q = parse_question(question)
    data = q.model_dump(exclude={"rating_scale", "options"})
    if data.get("id") is None:
        data.pop("id", None)
    data["type"] = normalize_type(q.type)
    data["text"] = q.text or ""
    data["required"] = bool(q.required)
    if data["type"] == "rating":
        data["rating_scale"] = (q.rating_scale or RatingScale()).model_dump()
    elif data["type"] == "multiple_choice":
        data["options"] = list(q.options or [])
    return data


def _copy(questions: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return copy.deepcopy(list(questions))


def add_question(questions: list[dict[str, Any]], question_type: str = "rating") -> list[dict[str, Any]]:
    result = _copy(questions)
    qtype = normalize_type(question_type)
    question: dict[str, Any] = {
        "id": next_id("q", (q.get("id") for q in result)),
        "text": "",
        "type": qtype,
        "required": True,
    }
    if qtype == "rating":
        question["rating_scale"] = dict(DEFAULT_RATING_SCALE)
    elif qtype == "multiple_choice":
        question["options"] = ["Option 1", "Option 2"]
    result.append(question)
    return result


def update_question(questions: list[dict[str, Any]], question_id: str, **changes: Any) -> list[dict[str, Any]]:
    """Apply field changes to one question; a type change re-normalizes its fields."""
    result = _copy(questions)
    idx = index_by_id(result, question_id, "Question")
    changes.pop("id", None)
    merged = {**result[idx], **changes}
    if "type" in changes and normalize_type(changes["type"]) == "multiple_choice" and not merged.get("options"):
        merged["options"] = ["Option 1", "Option 2"]
    result[idx] = normalize_question(merged)
    return result


def delete_question(questions: list[dict[str, Any]], question_id: str) -> list[dict[str, Any]]:
    result = _copy(questions)
    del result[index_by_id(result, question_id, "Question")]
    return result


def duplicate_question(questions: list[dict[str, Any]], question_id: str) -> list[dict[str, Any]]:
    """Insert a copy right after the source, with a fresh id and " (Copy)" appended to its text."""
    result = _copy(questions)
    idx = index_by_id(result, question_id, "Question")
    clone = copy.deepcopy(result[idx])
    clone["id"] = next_id("q", (q.get("id") for q in result))
    clone["text"] = f"{clone.get('text', '')} (Copy)"
    result.insert(idx + 1, clone)
    return result


def move_question(
    questions: list[dict[str, Any]],
    source_index: int,
    destination_index: int | None,
) -> list[dict[str, Any]]:
    return move_item(_copy(questions), source_index, destination_index)


def _choice_question(result: list[dict[str, Any]], question_id: str) -> dict[str, Any]:
    question = result[index_by_id(result, question_id, "Question")]
    if question.get("type") != "multiple_choice":
        raise InvalidRequestError("Options are only available on multiple choice questions")
    question.setdefault("options", [])
    return question


def add_option(questions: list[dict[str, Any]], question_id: str) -> list[dict[str, Any]]:
    result = _copy(questions)
    question = _choice_question(result, question_id)
    question["options"].append(f"Option {len(question['options']) + 1}")
    return result


def update_option(
    questions: list[dict[str, Any]],
    question_id: str,
    option_index: int,
    value: str,
) -> list[dict[str, Any]]:
    result = _copy(questions)
    question = _choice_question(result, question_id)
    if not 0 <= option_index < len(question["options"]):
        raise InvalidRequestError(f"option index {option_index} out of range")
    question["options"][option_index] = value
    return result


def remove_option(questions: list[dict[str, Any]], question_id: str, option_index: int) -> list[dict[str, Any]]:
    """Remove an option; a question keeps at least two, so removal below that is ignored."""
    result = _copy(questions)
    question = _choice_question(result, question_id)
    if len(question["options"]) <= MIN_OPTIONS:
        return result
    if not 0 <= option_index < len(question["options"]):
        raise InvalidRequestError(f"option index {option_index} out of range")
    del question["options"][option_index]
    return result


def validate_questions(questions: list[dict[str, Any]]) -> list[str]:
    """Return human-readable problems; an empty list means the questions can be saved."""
    errors: list[str] = []
    seen: set[str] = set()
    if not isinstance(questions, (list, tuple)):
        return ["Questions must be an array"]
    if not questions:
        errors.append("At least one question is required")
    for position, raw in enumerate(questions, start=1):
        try:
            q = parse_question(raw)
        except InvalidRequestError as e:
            errors.append(f"Question {position}: {e.message}")
            continue
        qid = q.id or ""
        if not qid:
            errors.append(f"Question {position} is missing an id")
        elif qid in seen:
            errors.append(f"Duplicate question id: {qid}")
        seen.add(qid)
        if not (q.text or "").strip():
            errors.append(f"Question {position} text is required")
        try:
            qtype = normalize_type(q.type)
        except InvalidRequestError as e:
            errors.append(f"Question {position}: {e.message}")
            continue
        if qtype == "rating":
            scale = q.rating_scale or RatingScale()
            if scale.min >= scale.max:
                errors.append(f"Question {position} rating scale minimum must be below maximum")
        elif qtype == "multiple_choice":
            options = [o for o in (q.options or []) if o.strip()]
            if len(options) < MIN_OPTIONS:
                errors.append(f"Question {position} needs at least {MIN_OPTIONS} options")
    return errors


def prepare_questions(questions: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Validate and normalize questions for storage; raises InvalidRequestError listing every problem."""
    errors = validate_questions(questions)
    if errors:
        raise InvalidRequestError("; ".join(errors))
    return [normalize_question(q) for q in questions]
