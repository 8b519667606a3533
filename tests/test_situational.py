"""
Situational leadership self-assessment scoring.
"""

from __future__ import annotations

import pytest

from backend_ldgrowth.core.exceptions import InvalidRequestError

BEST = {"q1": "Directing", "q2": "Supporting", "q3": "Coaching", "q4": "Delegating", "q5": "Directing"}


def test_public_questions_hide_answers():
    from backend_ldgrowth.leadership.situational import public_questions

    questions = public_questions()
    assert [q["id"] for q in questions] == ["q1", "q2", "q3", "q4", "q5"]
    first = questions[0]
    assert first["team_member"]["name"] == "Alex"
    assert set(first["options"][0]) == {"style", "approach"}
    assert "correct_style" not in first


def test_perfect_score():
    from backend_ldgrowth.leadership.situational import max_score, score_assessment

    result = score_assessment(BEST)
    assert max_score() == 20
    assert result["score"] == 20
    assert result["percentage"] == 100
    assert result["level"] == "Expert"
    assert result["most_used_style"] == "Directing"
    assert all(f["is_correct"] for f in result["feedback"])
    assert result["answered"] == 5


def test_single_style_scores():
    from backend_ldgrowth.leadership.situational import score_assessment

    result = score_assessment({qid: "Coaching" for qid in BEST})
    assert result["score"] == 14
    assert result["percentage"] == 70
    assert result["level"] == "Developing"
    assert result["style_counts"] == {"Directing": 0, "Coaching": 5, "Supporting": 0, "Delegating": 0}
    assert result["most_used_style"] == "Coaching"


def test_partial_answers_and_ties():
    from backend_ldgrowth.leadership.situational import score_assessment

    result = score_assessment({"q1": "Directing", "q2": "Supporting"})
    assert result["score"] == 8
    assert result["percentage"] == 40
    assert result["level"] == "Beginner"
    assert result["most_used_style"] == "Varied"
    assert result["feedback"][2]["chosen_style"] is None
    assert result["feedback"][2]["points"] == 0

    empty = score_assessment({})
    assert empty["score"] == 0
    assert empty["most_used_style"] == "Varied"


@pytest.mark.parametrize(
    "percentage,level",
    [(100, "Expert"), (90, "Expert"), (89, "Proficient"), (75, "Proficient"), (60, "Developing"), (59, "Beginner")],
)
def test_level_thresholds(percentage, level):
    from backend_ldgrowth.leadership.situational import score_level

    assert score_level(percentage)[0] == level


def test_unknown_question_or_style():
    from backend_ldgrowth.leadership.situational import score_assessment

    with pytest.raises(InvalidRequestError, match="Unknown question"):
        score_assessment({"q9": "Directing"})
    with pytest.raises(InvalidRequestError, match="Unknown leadership style"):
        score_assessment({"q1": "Commanding"})


def test_record_and_list_results(leader):
    from backend_ldgrowth.leadership.situational import list_assessment_results, record_assessment

    first = record_assessment(leader, {qid: "Coaching" for qid in BEST})
    second = record_assessment(leader, BEST)
    assert first["id"] != second["id"]
    history = list_assessment_results(leader)
    assert [r["id"] for r in history] == [second["id"], first["id"]]
    assert history[0]["level"] == "Expert"
    assert history[1]["answers"]["q1"] == "Coaching"
