"""
Situational leadership self-assessment.

Five restaurant scenarios; for each the leader picks one of the four
situational styles. Every style is worth 0-4 points per scenario and one
style is the recommended answer. Scoring:

  score       sum of chosen option points (unanswered scenarios score 0)
  max_score   sum of each scenario's best option (20)
  percentage  round(score / max_score * 100)
  level       Expert >= 90, Proficient >= 75, Developing >= 60, else Beginner
  most used   the single most chosen style, or "Varied" on a tie
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select

from backend_ldgrowth.core.exceptions import InvalidRequestError
from backend_ldgrowth.database import session_scope
from backend_ldgrowth.database.models import AssessmentResult
from backend_ldgrowth.ldgrowth_logging import get_logger

logger = get_logger(__name__)

ASSESSMENT_NAME = "situational_leadership"
STYLES = ("Directing", "Coaching", "Supporting", "Delegating")


@dataclass(frozen=True)
class Option:
    style: str
    approach: str
    points: int


@dataclass(frozen=True)
class Scenario:
    id: str
    title: str
    team_member: str
    situation: str
    competence: str
    commitment: str
    options: tuple[Option, ...]
    correct_style: str
    explanation: str

    def option(self, style: str) -> Option | None:
        for opt in self.options:
            if opt.style == style:
                return opt
        return None

    @property
    def max_points(self) -> int:
        return max(opt.points for opt in self.options)

    def public_dict(self) -> dict[str, Any]:
        """Scenario as shown to the leader: no points, no correct style."""
        return {
            "id": self.id,
            "scenario": self.title,
            "team_member": {
                "name": self.team_member,
                "situation": self.situation,
                "competence": self.competence,
                "commitment": self.commitment,
            },
            "options": [{"style": o.style, "approach": o.approach} for o in self.options],
        }


SCENARIOS: tuple[Scenario, ...] = (
    Scenario(
        id="q1",
        title="First Day Training",
        team_member="Alex",
        situation="Brand new team member, first day on the job, very excited but has no restaurant experience",
        competence="Low - Never worked in food service",
        commitment="High - Very enthusiastic and motivated",
        options=(
            Option("Directing", "Provide detailed step-by-step instructions and stay close to supervise every task", 4),
            Option("Coaching", "Explain the basics and ask for their thoughts on how to handle situations", 2),
            Option("Supporting", "Give them encouragement and let them figure things out with minimal guidance", 1),
            Option("Delegating", "Assign them tasks and check back at the end of the shift", 0),
        ),
        correct_style="Directing",
        explanation=(
            "New team members with high enthusiasm but low competence need clear direction and close "
            "supervision to build skills safely while maintaining their motivation."
        ),
    ),
    Scenario(
        id="q2",
        title="Experienced but Struggling",
        team_member="Jordan",
        situation=(
            "Has 6 months experience and usually performs well, but recently making mistakes "
            "and seems less motivated"
        ),
        competence="High - Knows the job well",
        commitment="Low - Recently disengaged",
        options=(
            Option("Directing", "Give detailed instructions and monitor closely to prevent more mistakes", 1),
            Option("Coaching", "Discuss performance expectations and explore what might be affecting their work", 3),
            Option("Supporting", "Listen to their concerns, provide encouragement, and collaborate on solutions", 4),
            Option("Delegating", "Trust them to work through their issues and maintain normal expectations", 2),
        ),
        correct_style="Supporting",
        explanation=(
            "Team members with high competence but low commitment need emotional support and "
            "encouragement to regain motivation, not more direction."
        ),
    ),
    Scenario(
        id="q3",
        title="Learning New Skills",
        team_member="Sam",
        situation=(
            "Experienced cashier learning to work in the kitchen, has some skills but feels "
            "uncertain about the new role"
        ),
        competence="Moderate - Some skills but learning new area",
        commitment="Moderate - Willing but uncertain",
        options=(
            Option("Directing", "Provide specific instructions for each kitchen task without asking for input", 2),
            Option(
                "Coaching",
                "Explain kitchen procedures, answer questions, and gradually increase their responsibility",
                4,
            ),
            Option("Supporting", "Encourage them to apply their existing skills and provide emotional support", 3),
            Option("Delegating", "Let them figure out the kitchen work based on their cashier experience", 1),
        ),
        correct_style="Coaching",
        explanation=(
            "Team members with moderate competence and commitment benefit from explanation and "
            "two-way communication to build both skills and confidence."
        ),
    ),
    Scenario(
        id="q4",
        title="High Performer",
        team_member="Taylor",
        situation=(
            "Top performer with 2+ years experience, consistently excellent work, takes initiative, "
            "and helps train others"
        ),
        competence="High - Expert level skills",
        commitment="High - Self-motivated and engaged",
        options=(
            Option("Directing", "Continue to provide detailed guidance to maintain their high standards", 1),
            Option("Coaching", "Explain decisions and ask for their input on improvements", 3),
            Option("Supporting", "Provide encouragement and collaborate on new challenges", 2),
            Option(
                "Delegating",
                "Give them autonomy to manage their work and make decisions within their expertise",
                4,
            ),
        ),
        correct_style="Delegating",
        explanation=(
            "High performers with both competence and commitment should be given autonomy and "
            "trusted to make decisions within their area of expertise."
        ),
    ),
    Scenario(
        id="q5",
        title="Crisis Situation",
        team_member="Casey",
        situation=(
            "Equipment malfunction during lunch rush, team member is competent but the situation "
            "is urgent and safety-critical"
        ),
        competence="High - Experienced team member",
        commitment="High - Wants to help resolve the crisis",
        options=(
            Option("Directing", "Take immediate control, give specific instructions for safety procedures", 4),
            Option("Coaching", "Explain the safety concerns and ask for their thoughts on solutions", 2),
            Option("Supporting", "Encourage them to handle the situation and offer assistance if needed", 1),
            Option("Delegating", "Trust them to handle the crisis independently", 0),
        ),
        correct_style="Directing",
        explanation=(
            "In crisis situations, especially those involving safety, leaders should use a directing "
            "style regardless of the team member's usual competence level."
        ),
    ),
)

_BY_ID = {s.id: s for s in SCENARIOS}

LEVELS: tuple[tuple[int, str, str], ...] = (
    (90, "Expert", "Excellent situational leadership skills"),
    (75, "Proficient", "Good understanding of situational leadership"),
    (60, "Developing", "Basic understanding, room for improvement"),
    (0, "Beginner", "Needs significant development in situational leadership"),
)


def max_score() -> int:
    return sum(s.max_points for s in SCENARIOS)


def score_level(percentage: int) -> tuple[str, str]:
    for threshold, level, description in LEVELS:
        if percentage >= threshold:
            return level, description
    return LEVELS[-1][1], LEVELS[-1][2]


def most_used_style(style_counts: dict[str, int]) -> str:
    top = max(style_counts.values(), default=0)
    leaders = [style for style, count in style_counts.items() if count == top]
    return leaders[0] if len(leaders) == 1 else "Varied"


def public_questions() -> list[dict[str, Any]]:
    return [s.public_dict() for s in SCENARIOS]


def score_assessment(answers: dict[str, str]) -> dict[str, Any]:
    """Score {scenario_id: style}. Unknown ids or styles are rejected."""
    for question_id, style in answers.items():
        if question_id not in _BY_ID:
            raise InvalidRequestError(f"Unknown question: {question_id}")
        if style not in STYLES:
            raise InvalidRequestError(f"Unknown leadership style: {style}")

    total = 0
    counts: Counter[str] = Counter({style: 0 for style in STYLES})
    feedback = []
    for scenario in SCENARIOS:
        chosen = answers.get(scenario.id)
        option = scenario.option(chosen) if chosen else None
        points = option.points if option else 0
        total += points
        if option:
            counts[option.style] += 1
        feedback.append({
            "question_id": scenario.id,
            "scenario": scenario.title,
            "chosen_style": chosen,
            "correct_style": scenario.correct_style,
            "is_correct": chosen == scenario.correct_style,
            "points": points,
            "max_points": scenario.max_points,
            "explanation": scenario.explanation,
        })

    best = max_score()
    percentage = round(total / best * 100) if best else 0
    level, description = score_level(percentage)
    style_counts = {style: counts[style] for style in STYLES}
    return {
        "score": total,
        "max_score": best,
        "percentage": percentage,
        "level": level,
        "level_description": description,
        "style_counts": style_counts,
        "most_used_style": most_used_style(style_counts),
        "feedback": feedback,
        "answered": sum(1 for s in SCENARIOS if answers.get(s.id)),
    }


def record_assessment(actor: dict[str, Any], answers: dict[str, str]) -> dict[str, Any]:
    """Score and persist a submission for the acting user."""
    result = score_assessment(answers)
    with session_scope() as session:
        row = AssessmentResult(
            user_id=actor["id"],
            store_id=actor["store_id"],
            assessment=ASSESSMENT_NAME,
            score=result["score"],
            max_score=result["max_score"],
            percentage=result["percentage"],
            level=result["level"],
            most_used_style=result["most_used_style"],
        )
        row.answers = dict(answers)
        session.add(row)
        session.flush()
        result["id"] = row.id
        result["created_at"] = row.created_at.isoformat() if row.created_at else None
    logger.info(
        "situational_assessment_recorded",
        user_id=actor["id"],
        score=result["score"],
        level=result["level"],
    )
    return result


def list_assessment_results(actor: dict[str, Any]) -> list[dict[str, Any]]:
    with session_scope() as session:
        rows = session.scalars(
            select(AssessmentResult)
            .where(AssessmentResult.user_id == actor["id"], AssessmentResult.assessment == ASSESSMENT_NAME)
            .order_by(AssessmentResult.created_at.desc(), AssessmentResult.id.desc())
        ).all()
        return [r.to_dict() for r in rows]
