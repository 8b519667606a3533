"""
Structured answers for leadership activities.

Each activity form is stored as a single JSON string on the learning task.
The wire format uses camelCase keys (``menuOfferings``, ``thirtyDayGoals``)
so values written by older clients keep loading.

Parsing is lenient: empty, malformed or wrongly-shaped JSON yields the
form's blank default. ``validate_form_value`` is the strict variant used
when a client submits a response.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from backend_ldgrowth.core.exceptions import InvalidRequestError

COMPETITOR_SLOTS = 5


class FormModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class Competitor(FormModel):
    name: str = ""
    location: str = ""
    menu_offerings: str = ""
    pricing: str = ""
    service_style: str = ""
    target_customers: str = ""
    strengths: str = ""
    weaknesses: str = ""
    market_position: str = ""


class CompetitiveAnalysis(FormModel):
    competitors: list[Competitor] = Field(default_factory=lambda: [Competitor() for _ in range(COMPETITOR_SLOTS)])
    market_gaps: str = ""
    opportunities: str = ""
    threats: str = ""
    strategic_recommendations: str = ""

    @field_validator("competitors")
    @classmethod
    def _pad_competitors(cls, value: list[Competitor]) -> list[Competitor]:
        return value + [Competitor() for _ in range(COMPETITOR_SLOTS - len(value))]


class ActiveListening(FormModel):
    conversation1: str = ""
    insight1: str = ""
    conversation2: str = ""
    insight2: str = ""
    conversation3: str = ""
    insight3: str = ""
    challenges: str = ""
    improvements: str = ""


class CourageousConversation(FormModel):
    conversation_context: str = ""
    main_message: str = ""
    anticipated_responses: str = ""
    potential_obstacles: str = ""
    deadline: str = ""
    desired_outcome: str = ""


class DevelopmentPlan(FormModel):
    team_member_name: str = ""
    current_position: str = ""
    plan_created_date: str = ""
    skills_to_focus: str = ""
    learning_resources: str = ""
    on_job_experiences: str = ""
    thirty_day_goals: str = ""
    sixty_day_goals: str = ""
    ninety_day_goals: str = ""
    check_in_schedule: str = ""
    support_needed: str = ""
    team_member_feedback: str = ""
    plan_refinements: str = ""


class CustomerJourneyMap(FormModel):
    pre_arrival: str = ""
    arrival: str = ""
    ordering: str = ""
    service_dining: str = ""
    improvements: str = ""


FORM_KINDS: dict[str, type[FormModel]] = {
    "competitive_analysis": CompetitiveAnalysis,
    "active_listening": ActiveListening,
    "courageous_conversation": CourageousConversation,
    "development_plan": DevelopmentPlan,
    "customer_journey_map": CustomerJourneyMap,
}


def form_model(kind: str) -> type[FormModel]:
    try:
        return FORM_KINDS[kind]
    except KeyError:
        raise InvalidRequestError(f"Unknown form kind: {kind}") from None


def parse_form_value(kind: str, raw: str | None) -> FormModel:
    model = form_model(kind)
    if not raw:
        return model()
    try:
        return model.model_validate_json(raw)
    except ValidationError:
        return model()


def validate_form_value(kind: str, raw: str | dict[str, Any]) -> FormModel:
    """Strict parse of a submitted value; raises InvalidRequestError when it does not fit the form."""
    model = form_model(kind)
    try:
        if isinstance(raw, dict):
            return model.model_validate(raw)
        return model.model_validate_json(raw or "{}")
    except ValidationError as e:
        raise InvalidRequestError(f"Invalid {kind} response: {e.error_count()} problem(s)") from e


def dump_form_value(value: FormModel) -> str:
    return json.dumps(value.model_dump(by_alias=True))


def _text_fields(value: Any) -> list[str]:
    if isinstance(value, BaseModel):
        fields: list[str] = []
        for name in type(value).model_fields:
            fields.extend(_text_fields(getattr(value, name)))
        return fields
    if isinstance(value, list):
        return [text for item in value for text in _text_fields(item)]
    return [value] if isinstance(value, str) else []


def _percent_filled(fields: list[str]) -> int:
    if not fields:
        return 0
    return round(sum(1 for f in fields if f.strip()) / len(fields) * 100)


def form_completion(value: FormModel) -> int:
    """Percentage of text fields (nested ones included) that hold something."""
    return _percent_filled(_text_fields(value))


def competitor_completion(competitor: Competitor) -> int:
    return _percent_filled(_text_fields(competitor))
