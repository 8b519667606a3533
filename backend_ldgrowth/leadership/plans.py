"""
Leadership development plans: a fixed catalog plus per-user enrollments.

Enrolling copies the plan's learning tasks onto the enrollment so later
catalog edits never change work already in progress.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import select

from backend_ldgrowth.core.exceptions import ConflictError, InvalidRequestError, InvalidStateError, NotFoundError
from backend_ldgrowth.core.timeutil import iso, utcnow
from backend_ldgrowth.database import session_scope
from backend_ldgrowth.database.models import LeadershipEnrollment
from backend_ldgrowth.leadership.forms import dump_form_value, form_completion, validate_form_value
from backend_ldgrowth.ldgrowth_logging import get_logger

logger = get_logger(__name__)

TASK_TYPES = ("video", "reading", "activity", "reflection", "assessment", "task")
EVIDENCE_REQUIRED_TYPES = ("reading", "video", "reflection")
ENROLLMENT_STATUSES = ("enrolled", "in-progress", "completed")


@dataclass(frozen=True)
class LearningTask:
    id: str
    type: str
    title: str
    description: str
    estimated_time: str
    resource_url: str | None = None
    form_kind: str | None = None
    evidence_optional: bool = False

    def initial_state(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "estimated_time": self.estimated_time,
            "resource_url": self.resource_url,
            "form_kind": self.form_kind,
            "evidence_optional": self.evidence_optional,
            "completed": False,
            "completed_at": None,
            "notes": "",
            "evidence": "",
            "response": None,
        }


@dataclass(frozen=True)
class LeadershipPlan:
    id: str
    title: str
    description: str
    tasks: tuple[LearningTask, ...]

    def summary(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title, "description": self.description, "task_count": len(self.tasks)}


_HEART_BOOK = "https://www.amazon.com/Heart-Leadership-Becoming-People-Follow/dp/1609949641"

CATALOG: tuple[LeadershipPlan, ...] = (
    LeadershipPlan(
        id="heart-of-leadership",
        title="The Heart of Leadership",
        description=(
            "Build a foundation of character-based leadership focused on serving others first - the essential "
            "starting point for restaurant leaders."
        ),
        tasks=(
            LearningTask(
                "heart-task-1", "video", "Introduction to Servant Leadership",
                "Watch this video to understand the core principles of servant leadership and how it applies in a "
                "restaurant setting. Take notes on how you can apply these principles in your daily interactions "
                "with team members.",
                "15 minutes", resource_url="https://www.youtube.com/watch?v=vA8D-LGnpxk",
            ),
            LearningTask(
                "heart-task-2d", "reading", "The Heart of Leadership: Respond with Courage",
                "Read the chapter on \"Respond with Courage\" from \"The Heart of Leadership\" by Mark Miller. "
                "Identify a situation in your restaurant that requires a courageous response from you as a leader. "
                "What specific actions will you take?",
                "30-45 minutes", resource_url=_HEART_BOOK,
            ),
            LearningTask(
                "heart-task-2d-activity", "activity", "Courageous Conversation Plan",
                "Prepare for a courageous conversation you need to have with a team member or about a challenging "
                "situation. Outline what you will say, anticipate responses, and identify potential obstacles. Set "
                "a deadline for when you will have this conversation.",
                "30 minutes", form_kind="courageous_conversation",
            ),
            LearningTask(
                "heart-task-3", "activity", "Leadership Values Exercise",
                "Identify your top 5 leadership values (e.g., integrity, service, excellence) and write a brief "
                "statement about how each value influences your leadership approach. Then, create one specific "
                "action for each value that you will implement in your next shift.",
                "45 minutes",
            ),
            LearningTask(
                "heart-task-4", "reflection", "Leadership Self-Assessment",
                "Complete the leadership self-assessment worksheet to identify your strengths and areas for "
                "growth. Identify one specific leadership trait you want to develop further and create a plan for "
                "how you will develop it over the next 30 days.",
                "30 minutes",
                resource_url="https://www.purdue.edu/meercat/ldp/wp-content/uploads/sites/2/2018/08/LSA.pdf",
            ),
            LearningTask(
                "heart-task-5", "activity", "Active Listening Practice",
                "During your next three shifts, practice these active listening techniques with at least two team "
                "members per shift: 1) Maintain eye contact, 2) Ask clarifying questions, 3) Paraphrase what you "
                "heard, 4) Avoid interrupting. Record your observations and learnings in a journal.",
                "1 hour (across multiple shifts)", form_kind="active_listening",
            ),
            LearningTask(
                "heart-task-8", "reflection", "Leadership Legacy Statement",
                "Write a 1-page statement describing the impact you want to have as a leader. What do you want team "
                "members to say about your leadership when you're not in the room?",
                "45 minutes",
            ),
        ),
    ),
    LeadershipPlan(
        id="team-development",
        title="Team Development Expert",
        description=(
            "Build a high-performing restaurant team by mastering the art of hiring, training, and developing "
            "exceptional team members."
        ),
        tasks=(
            LearningTask(
                "team-task-1", "video", "Effective Coaching Techniques",
                "Watch this video on coaching techniques specifically designed for restaurant team development. "
                "Focus on the difference between directing, coaching, and mentoring approaches and when to use "
                "each one.",
                "25 minutes", resource_url="https://www.youtube.com/watch?v=R3sHXrjbT2s",
            ),
            LearningTask(
                "team-task-2", "reading", "The Art of Feedback",
                "Read this article on delivering effective feedback in fast-paced environments. Then practice the "
                "SBI (Situation-Behavior-Impact) feedback model by writing out 3 examples of feedback you need to "
                "deliver to team members.",
                "30 minutes",
                resource_url=(
                    "https://www.ccl.org/articles/leading-effectively-articles/"
                    "closing-the-gap-between-intent-vs-impact-sbii/"
                ),
                evidence_optional=True,
            ),
            LearningTask(
                "team-task-4", "activity", "GROW Coaching Conversation",
                "Conduct a coaching conversation with a team member using the GROW model (Goal, Reality, Options, "
                "Will/Way Forward). Document the conversation and reflect on what went well and what you would do "
                "differently next time.",
                "45 minutes",
            ),
            LearningTask(
                "team-task-5", "activity", "Development Plan Creation",
                "Create a detailed 90-day development plan for a high-potential team member. Include specific "
                "skills to develop, learning resources, on-the-job experiences, and regular check-in points. Share "
                "this plan with the team member and refine it based on their input.",
                "1 hour", form_kind="development_plan",
            ),
            LearningTask(
                "team-task-6", "activity", "Training Effectiveness Audit",
                "Observe 3 different team members who were recently trained on a procedure. Note variations in "
                "execution and identify potential gaps in the training approach. Create a plan to address these "
                "gaps and standardize training outcomes.",
                "2 hours (across multiple shifts)",
            ),
        ),
    ),
    LeadershipPlan(
        id="strategic-leadership",
        title="Strategic Leadership Mastery",
        description=(
            "Develop strategic thinking, vision-setting, and decision-making capabilities to drive organizational "
            "success."
        ),
        tasks=(
            LearningTask(
                "strategic-task-1", "video", "Introduction to Strategic Thinking",
                "Watch this comprehensive introduction to strategic thinking for leaders. Focus on understanding the "
                "difference between operational thinking and strategic thinking.",
                "20 minutes", resource_url="https://www.youtube.com/watch?v=iuYlGRnC7J8",
            ),
            LearningTask(
                "strategic-task-2", "reading", "Good Strategy Bad Strategy - Core Concepts",
                "Read the first three chapters of \"Good Strategy Bad Strategy\" by Richard Rumelt. Focus on the "
                "kernel of good strategy (diagnosis, guiding policy, coherent action).",
                "45-60 minutes",
                resource_url="https://www.amazon.com/Good-Strategy-Bad-Strategy-Difference/dp/0307886239",
            ),
            LearningTask(
                "strategic-task-6", "reading", "Competitive Analysis and Market Positioning",
                "Read this guide on competitive analysis for restaurants. Learn how to systematically analyze your "
                "competition and identify your unique positioning in the market.",
                "25 minutes",
                resource_url="https://www.restaurantowner.com/public/How-to-Analyze-Your-Restaurant-Competition.cfm",
            ),
            LearningTask(
                "strategic-task-6-activity", "activity", "Competitive Landscape Mapping",
                "Create a competitive analysis of the 5 restaurants that compete most directly with yours. For each "
                "competitor, analyze: menu offerings, pricing, service style, target customers, strengths, and "
                "weaknesses. Identify gaps in the market that your restaurant could fill.",
                "1.5 hours", form_kind="competitive_analysis",
            ),
        ),
    ),
    LeadershipPlan(
        id="customer-experience",
        title="Customer Experience Leader",
        description=(
            "Excel at creating exceptional customer experiences and building a hospitality-focused culture."
        ),
        tasks=(
            LearningTask(
                "cx-task-1", "video", "Customer Experience Excellence",
                "Watch this presentation on creating exceptional customer experiences. Learn how great leaders build "
                "service cultures that create lasting customer loyalty and team engagement.",
                "18 minutes", resource_url="https://www.youtube.com/watch?v=GH1TXfQSwUQ",
            ),
            LearningTask(
                "cx-task-2", "reading", "Service Recovery Strategies",
                "Read about effective service recovery techniques. Learn the LAST method (Listen, Apologize, Solve, "
                "Thank) and how to turn complaints into opportunities.",
                "25 minutes",
                resource_url="https://www.restaurantowner.com/public/Service-Recovery-in-Restaurants.cfm",
            ),
            LearningTask(
                "cx-task-2-activity", "activity", "Customer Journey Mapping",
                "Create a detailed customer journey map for your restaurant. Identify all touchpoints from arrival to "
                "departure and note opportunities to enhance the experience at each stage.",
                "45 minutes", form_kind="customer_journey_map",
            ),
            LearningTask(
                "cx-task-4", "reading", "Customer Feedback and Measurement",
                "Read about effective methods for collecting and analyzing customer feedback. Learn how to use "
                "feedback to drive continuous improvement.",
                "20 minutes", resource_url="https://blog.hubspot.com/service/how-to-collect-customer-feedback",
            ),
        ),
    ),
)

_PLANS = {plan.id: plan for plan in CATALOG}


def get_catalog_plan(plan_id: str) -> LeadershipPlan:
    plan = _PLANS.get(plan_id)
    if plan is None:
        raise NotFoundError("Plan not found")
    return plan


def _load_enrollment(session, actor: dict[str, Any], plan_id: str) -> LeadershipEnrollment:
    enrollment = session.scalars(
        select(LeadershipEnrollment).where(
            LeadershipEnrollment.user_id == actor["id"],
            LeadershipEnrollment.plan_id == plan_id,
        )
    ).first()
    if enrollment is None:
        raise NotFoundError("Enrollment not found")
    return enrollment


def progress_of(tasks: list[dict[str, Any]]) -> int:
    if not tasks:
        return 0
    return round(sum(1 for t in tasks if t.get("completed")) / len(tasks) * 100)


def _apply_progress(enrollment: LeadershipEnrollment, now: datetime) -> None:
    enrollment.progress = progress_of(enrollment.tasks)
    if enrollment.progress == 100:
        enrollment.status = "completed"
        enrollment.completed_at = enrollment.completed_at or now
        return
    enrollment.completed_at = None
    if enrollment.progress > 0 or enrollment.status == "completed":
        enrollment.status = "in-progress"


def _with_plan(enrollment: LeadershipEnrollment) -> dict[str, Any]:
    data = enrollment.to_dict()
    plan = _PLANS.get(enrollment.plan_id)
    data["plan"] = plan.summary() if plan else None
    return data


def list_catalog(actor: dict[str, Any]) -> list[dict[str, Any]]:
    """Catalog plans annotated with the acting user's enrollment state."""
    with session_scope() as session:
        rows = session.scalars(
            select(LeadershipEnrollment).where(LeadershipEnrollment.user_id == actor["id"])
        ).all()
        by_plan = {row.plan_id: row for row in rows}
        result = []
        for plan in CATALOG:
            item = plan.summary()
            enrollment = by_plan.get(plan.id)
            item.update({
                "enrolled": enrollment is not None,
                "status": enrollment.status if enrollment else None,
                "progress": enrollment.progress if enrollment else 0,
                "enrolled_at": iso(enrollment.enrolled_at) if enrollment else None,
                "completed_at": iso(enrollment.completed_at) if enrollment else None,
            })
            result.append(item)
        return result


def enroll(actor: dict[str, Any], plan_id: str, now: datetime | None = None) -> dict[str, Any]:
    plan = get_catalog_plan(plan_id)
    with session_scope() as session:
        existing = session.scalars(
            select(LeadershipEnrollment).where(
                LeadershipEnrollment.user_id == actor["id"],
                LeadershipEnrollment.plan_id == plan_id,
            )
        ).first()
        if existing is not None:
            raise ConflictError("Already enrolled in this plan")
        enrollment = LeadershipEnrollment(
            user_id=actor["id"],
            store_id=actor["store_id"],
            plan_id=plan.id,
            status="enrolled",
            progress=0,
            enrolled_at=now or utcnow(),
        )
        enrollment.tasks = [task.initial_state() for task in plan.tasks]
        session.add(enrollment)
        session.flush()
        logger.info("leadership_plan_enrolled", user_id=actor["id"], plan_id=plan.id)
        return _with_plan(enrollment)


def list_enrollments(actor: dict[str, Any]) -> list[dict[str, Any]]:
    with session_scope() as session:
        rows = session.scalars(
            select(LeadershipEnrollment)
            .where(LeadershipEnrollment.user_id == actor["id"])
            .order_by(LeadershipEnrollment.enrolled_at.desc())
        ).all()
        return [_with_plan(row) for row in rows]


def get_enrollment(actor: dict[str, Any], plan_id: str) -> dict[str, Any]:
    with session_scope() as session:
        return _with_plan(_load_enrollment(session, actor, plan_id))


def update_task(
    actor: dict[str, Any],
    plan_id: str,
    task_id: str,
    completed: bool,
    notes: str | None = None,
    evidence: str | None = None,
    response: str | dict[str, Any] | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Mark a learning task complete or incomplete.

    Completing a reading, video or reflection task needs evidence. A
    structured response is validated against the task's form and stored as
    its JSON string. Marking a task incomplete clears its completion data.
    """
    now = now or utcnow()
    with session_scope() as session:
        enrollment = _load_enrollment(session, actor, plan_id)
        tasks = enrollment.tasks
        task = next((t for t in tasks if t["id"] == task_id), None)
        if task is None:
            raise NotFoundError("Task not found")

        if completed:
            if (
                task["type"] in EVIDENCE_REQUIRED_TYPES
                and not (evidence or "").strip()
                and not task.get("evidence_optional")
            ):
                raise InvalidRequestError(f"Evidence of completion is required for {task['type']} tasks")
            task["completed"] = True
            task["completed_at"] = now.isoformat()
            if evidence:
                task["evidence"] = evidence
            if notes:
                task["notes"] = notes
        else:
            task.update({"completed": False, "completed_at": None, "evidence": "", "notes": ""})

        if response is not None:
            if not task.get("form_kind"):
                raise InvalidRequestError("This task does not take a structured response")
            form = validate_form_value(task["form_kind"], response)
            task["response"] = dump_form_value(form)
            task["response_completion"] = form_completion(form)

        enrollment.tasks = tasks
        _apply_progress(enrollment, now)
        logger.info(
            "leadership_task_updated",
            user_id=actor["id"],
            plan_id=plan_id,
            task_id=task_id,
            completed=completed,
            progress=enrollment.progress,
        )
        return {"task": task, "progress": enrollment.progress, "status": enrollment.status}


def update_status(actor: dict[str, Any], plan_id: str, status: str) -> dict[str, Any]:
    if status == "completed":
        raise InvalidStateError(
            "Plans can only be completed by finishing all required tasks. "
            "Please complete your tasks to finish the plan."
        )
    if status not in ENROLLMENT_STATUSES:
        raise InvalidRequestError(f"Invalid status: {status}")
    with session_scope() as session:
        enrollment = _load_enrollment(session, actor, plan_id)
        if enrollment.status == "completed":
            raise InvalidStateError("Plan is already completed")
        enrollment.status = status
        return _with_plan(enrollment)


def drop_enrollment(actor: dict[str, Any], plan_id: str) -> None:
    with session_scope() as session:
        session.delete(_load_enrollment(session, actor, plan_id))
    logger.info("leadership_plan_dropped", user_id=actor["id"], plan_id=plan_id)
