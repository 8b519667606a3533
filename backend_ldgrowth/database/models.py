"""
SQLAlchemy models for every store-scoped record.

Nested, form-shaped data (survey questions, training days, KPIs, template
sections, follow-ups) lives in *_json Text columns; each model exposes a
property that decodes/encodes it so services work with plain lists/dicts.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

from backend_ldgrowth.core.timeutil import iso, utcnow
from backend_ldgrowth.database.connection import dump_json, load_json

Base = declarative_base()


def _json_property(column: str, default_factory):
    """Property reading/writing a JSON Text column by attribute name."""

    def getter(self):
        return load_json(getattr(self, column), default_factory())

    def setter(self, value):
        setattr(self, column, dump_json(value))

    return property(getter, setter)


# -----------------------------------------------------------------------------
# Stores, users, notifications
# -----------------------------------------------------------------------------


class Store(Base):
    __tablename__ = "stores"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(128), nullable=False)
    store_number = Column(String(32), unique=True, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "store_number": self.store_number,
            "created_at": iso(self.created_at),
        }


class User(Base):
    """
    Store team member. position doubles as the role:
    Team Member, Trainer, Leader, Director.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True)
    name = Column(String(128), nullable=False)
    email = Column(String(256), unique=True, nullable=False, index=True)
    position = Column(String(32), nullable=False)
    department = Column(String(32), nullable=False, default="Front of House")
    employment_type = Column(String(16), nullable=False, default="Part-time")
    hire_date = Column(Date, nullable=True)
    supervisor_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    status = Column(String(16), nullable=False, default="active", index=True)
    api_token = Column(String(64), unique=True, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def to_dict(self, include_token: bool = False) -> dict[str, Any]:
        data = {
            "id": self.id,
            "store_id": self.store_id,
            "name": self.name,
            "email": self.email,
            "position": self.position,
            "department": self.department,
            "employment_type": self.employment_type,
            "hire_date": iso(self.hire_date),
            "supervisor_id": self.supervisor_id,
            "status": self.status,
            "created_at": iso(self.created_at),
        }
        if include_token:
            data["api_token"] = self.api_token
        return data


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True)
    type = Column(String(32), nullable=False)
    priority = Column(String(16), nullable=False, default="medium")
    title = Column(String(256), nullable=False)
    message = Column(Text, nullable=False)
    related_id = Column(Integer, nullable=True)
    related_model = Column(String(64), nullable=True)
    read = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "store_id": self.store_id,
            "type": self.type,
            "priority": self.priority,
            "title": self.title,
            "message": self.message,
            "related_id": self.related_id,
            "related_model": self.related_model,
            "read": self.read,
            "created_at": iso(self.created_at),
        }


# -----------------------------------------------------------------------------
# Team surveys
# -----------------------------------------------------------------------------


class Survey(Base):
    """Anonymous team survey. Lifecycle: draft -> active -> closed (-> archived)."""

    __tablename__ = "surveys"

    id = Column(Integer, primary_key=True, autoincrement=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    status = Column(String(16), nullable=False, default="draft", index=True)
    questions_json = Column(Text, nullable=False, default="[]")
    audience_json = Column(Text, nullable=False, default="{}")
    settings_json = Column(Text, nullable=False, default="{}")
    # schedule
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    frequency = Column(String(16), nullable=False, default="quarterly")
    auto_activate = Column(Boolean, nullable=False, default=False)
    is_recurring = Column(Boolean, nullable=False, default=False)
    next_scheduled_date = Column(DateTime, nullable=True, index=True)
    day_of_period = Column(Integer, nullable=False, default=1)
    duration_days = Column(Integer, nullable=False, default=14)
    auto_close = Column(Boolean, nullable=False, default=True)
    reminders_sent_json = Column(Text, nullable=False, default="[]")  # reminder day values already sent
    parent_survey_id = Column(Integer, ForeignKey("surveys.id"), nullable=True)
    # analytics snapshot
    total_invited = Column(Integer, nullable=False, default=0)
    total_responses = Column(Integer, nullable=False, default=0)
    response_rate = Column(Integer, nullable=False, default=0)
    last_calculated = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    questions = _json_property("questions_json", list)
    audience = _json_property("audience_json", dict)
    settings = _json_property("settings_json", dict)
    reminders_sent = _json_property("reminders_sent_json", list)

    def schedule_dict(self) -> dict[str, Any]:
        return {
            "start_date": iso(self.start_date),
            "end_date": iso(self.end_date),
            "frequency": self.frequency,
            "auto_activate": self.auto_activate,
            "is_recurring": self.is_recurring,
            "next_scheduled_date": iso(self.next_scheduled_date),
            "day_of_period": self.day_of_period,
            "duration_days": self.duration_days,
            "auto_close": self.auto_close,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "created_by": self.created_by,
            "title": self.title,
            "description": self.description or "",
            "status": self.status,
            "questions": self.questions,
            "target_audience": self.audience,
            "schedule": self.schedule_dict(),
            "settings": self.settings,
            "analytics": {
                "total_invited": self.total_invited,
                "total_responses": self.total_responses,
                "response_rate": self.response_rate,
                "last_calculated": iso(self.last_calculated),
            },
            "parent_survey_id": self.parent_survey_id,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }


class SurveyToken(Base):
    """One-time anonymous access token for an invited user."""

    __tablename__ = "survey_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    survey_id = Column(Integer, ForeignKey("surveys.id"), nullable=False, index=True)
    token = Column(String(64), unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    used = Column(Boolean, nullable=False, default=False)
    used_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "token": self.token,
            "user_id": self.user_id,
            "used": self.used,
            "used_at": iso(self.used_at),
            "expires_at": iso(self.expires_at),
        }


class SurveyResponse(Base):
    """Anonymous response: linked to the token, never to the user."""

    __tablename__ = "survey_responses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    survey_id = Column(Integer, ForeignKey("surveys.id"), nullable=False, index=True)
    token = Column(String(64), nullable=False, unique=True, index=True)
    department = Column(String(32), nullable=True)
    position = Column(String(32), nullable=True)
    experience_level = Column(String(16), nullable=True)
    employment_type = Column(String(16), nullable=True)
    answers_json = Column(Text, nullable=False, default="[]")
    status = Column(String(16), nullable=False, default="in_progress", index=True)
    completion_percentage = Column(Integer, nullable=False, default=0)
    average_rating = Column(Float, nullable=True)
    started_at = Column(DateTime, nullable=False, default=utcnow)
    completed_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    answers = _json_property("answers_json", list)

    def demographics(self) -> dict[str, Any]:
        return {
            "department": self.department,
            "position": self.position,
            "experience_level": self.experience_level,
            "employment_type": self.employment_type,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "survey_id": self.survey_id,
            "demographics": self.demographics(),
            "responses": self.answers,
            "status": self.status,
            "completion_percentage": self.completion_percentage,
            "average_rating": self.average_rating,
            "started_at": iso(self.started_at),
            "completed_at": iso(self.completed_at),
        }


# -----------------------------------------------------------------------------
# Training
# -----------------------------------------------------------------------------


class TrainingPlan(Base):
    __tablename__ = "training_plans"

    id = Column(Integer, primary_key=True, autoincrement=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    department = Column(String(8), nullable=False)
    position = Column(String(32), nullable=False)
    type = Column(String(16), nullable=False)
    self_paced = Column(Boolean, nullable=False, default=False)
    is_template = Column(Boolean, nullable=False, default=False)
    days_json = Column(Text, nullable=False, default="[]")
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    days = _json_property("days_json", list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "created_by": self.created_by,
            "name": self.name,
            "description": self.description or "",
            "department": self.department,
            "position": self.position,
            "type": self.type,
            "self_paced": self.self_paced,
            "is_template": self.is_template,
            "days": self.days,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }


class TrainingProgress(Base):
    """A trainee's run through one plan; modules_json holds per-task state."""

    __tablename__ = "training_progress"

    id = Column(Integer, primary_key=True, autoincrement=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True)
    trainee_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    plan_id = Column(Integer, ForeignKey("training_plans.id"), nullable=False, index=True)
    assigned_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    start_date = Column(Date, nullable=False)
    status = Column(String(16), nullable=False, default="IN_PROGRESS", index=True)
    modules_json = Column(Text, nullable=False, default="[]")
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    modules = _json_property("modules_json", list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "trainee_id": self.trainee_id,
            "plan_id": self.plan_id,
            "assigned_by": self.assigned_by,
            "start_date": iso(self.start_date),
            "status": self.status,
            "module_progress": self.modules,
            "completed_at": iso(self.completed_at),
            "created_at": iso(self.created_at),
        }


# -----------------------------------------------------------------------------
# Documentation
# -----------------------------------------------------------------------------


class DocumentRecord(Base):
    """Disciplinary, PIP or administrative record about one employee."""

    __tablename__ = "documentation"

    id = Column(Integer, primary_key=True, autoincrement=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    supervisor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    date = Column(Date, nullable=False)
    type = Column(String(40), nullable=False)
    category = Column(String(16), nullable=False, index=True)
    severity = Column(String(16), nullable=True)
    status = Column(String(32), nullable=False, index=True)
    description = Column(Text, nullable=False)
    witnesses_json = Column(Text, nullable=False, default="[]")
    action_taken = Column(Text, nullable=True)
    requires_follow_up = Column(Boolean, nullable=False, default=False)
    follow_up_date = Column(Date, nullable=True)
    follow_up_actions = Column(Text, nullable=True)
    acknowledged = Column(Boolean, nullable=False, default=False)
    acknowledged_at = Column(DateTime, nullable=True)
    acknowledgment_comments = Column(Text, nullable=True)
    acknowledgment_rating = Column(Integer, nullable=True)
    follow_ups_json = Column(Text, nullable=False, default="[]")
    attachments_json = Column(Text, nullable=False, default="[]")
    pip_json = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    witnesses = _json_property("witnesses_json", list)
    follow_ups = _json_property("follow_ups_json", list)
    attachments = _json_property("attachments_json", list)
    pip_details = _json_property("pip_json", dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "employee_id": self.employee_id,
            "created_by": self.created_by,
            "supervisor_id": self.supervisor_id,
            "date": iso(self.date),
            "type": self.type,
            "category": self.category,
            "severity": self.severity,
            "status": self.status,
            "description": self.description,
            "witnesses": self.witnesses,
            "action_taken": self.action_taken,
            "requires_follow_up": self.requires_follow_up,
            "follow_up_date": iso(self.follow_up_date),
            "follow_up_actions": self.follow_up_actions,
            "acknowledgment": {
                "acknowledged": self.acknowledged,
                "date": iso(self.acknowledged_at),
                "comments": self.acknowledgment_comments,
                "rating": self.acknowledgment_rating,
            },
            "follow_ups": self.follow_ups,
            "attachments": self.attachments,
            "pip_details": self.pip_details or None,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }


# -----------------------------------------------------------------------------
# Leadership
# -----------------------------------------------------------------------------


class AssessmentResult(Base):
    __tablename__ = "assessment_results"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False)
    assessment = Column(String(64), nullable=False)
    score = Column(Integer, nullable=False)
    max_score = Column(Integer, nullable=False)
    percentage = Column(Integer, nullable=False)
    level = Column(String(16), nullable=False)
    most_used_style = Column(String(16), nullable=False)
    answers_json = Column(Text, nullable=False, default="{}")
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    answers = _json_property("answers_json", dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "assessment": self.assessment,
            "score": self.score,
            "max_score": self.max_score,
            "percentage": self.percentage,
            "level": self.level,
            "most_used_style": self.most_used_style,
            "answers": self.answers,
            "created_at": iso(self.created_at),
        }


class LeadershipEnrollment(Base):
    """A leader's enrollment in one catalog development plan."""

    __tablename__ = "leadership_enrollments"
    __table_args__ = (UniqueConstraint("user_id", "plan_id", name="uq_enrollment_user_plan"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False)
    plan_id = Column(String(64), nullable=False)
    status = Column(String(16), nullable=False, default="enrolled")
    progress = Column(Integer, nullable=False, default=0)
    tasks_json = Column(Text, nullable=False, default="[]")
    enrolled_at = Column(DateTime, nullable=False, default=utcnow)
    completed_at = Column(DateTime, nullable=True)

    tasks = _json_property("tasks_json", list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "plan_id": self.plan_id,
            "status": self.status,
            "progress": self.progress,
            "learning_tasks": self.tasks,
            "enrolled_at": iso(self.enrolled_at),
            "completed_at": iso(self.completed_at),
        }


# -----------------------------------------------------------------------------
# Goals, kitchen, evaluation templates
# -----------------------------------------------------------------------------


class Goal(Base):
    __tablename__ = "goals"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    business_area = Column(String(64), nullable=False)
    goal_period = Column(String(32), nullable=False)
    kpis_json = Column(Text, nullable=False, default="[]")
    steps_json = Column(Text, nullable=False, default="[]")
    progress = Column(Integer, nullable=False, default=0)
    status = Column(String(16), nullable=False, default="not-started")
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    kpis = _json_property("kpis_json", list)
    steps = _json_property("steps_json", list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "description": self.description or "",
            "business_area": self.business_area,
            "goal_period": self.goal_period,
            "kpis": self.kpis,
            "steps": self.steps,
            "progress": self.progress,
            "status": self.status,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }


class WasteEntry(Base):
    __tablename__ = "waste_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    date = Column(DateTime, nullable=False, index=True)
    category = Column(String(16), nullable=False, index=True)
    item_name = Column(String(100), nullable=False)
    quantity = Column(Float, nullable=False)
    unit = Column(String(20), nullable=False)
    cost = Column(Float, nullable=False)
    reason = Column(String(500), nullable=False)
    action_taken = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "created_by": self.created_by,
            "date": iso(self.date),
            "category": self.category,
            "item_name": self.item_name,
            "quantity": self.quantity,
            "unit": self.unit,
            "cost": self.cost,
            "reason": self.reason,
            "action_taken": self.action_taken or "",
            "created_at": iso(self.created_at),
        }


class EvaluationTemplate(Base):
    __tablename__ = "evaluation_templates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    tags_json = Column(Text, nullable=False, default='["General"]')
    sections_json = Column(Text, nullable=False, default="[]")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    tags = _json_property("tags_json", list)
    sections = _json_property("sections_json", list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "created_by": self.created_by,
            "name": self.name,
            "description": self.description or "",
            "tags": self.tags,
            "sections": self.sections,
            "is_active": self.is_active,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }
