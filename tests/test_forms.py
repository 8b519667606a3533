"""
Leadership activity forms stored as JSON strings.
"""

from __future__ import annotations

import json

import pytest

from backend_ldgrowth.core.exceptions import InvalidRequestError


def test_blank_competitive_analysis_has_five_competitors():
    from backend_ldgrowth.leadership.forms import COMPETITOR_SLOTS, parse_form_value

    form = parse_form_value("competitive_analysis", "")
    assert len(form.competitors) == COMPETITOR_SLOTS
    assert form.market_gaps == ""


def test_parse_camel_case_and_pad():
    from backend_ldgrowth.leadership.forms import parse_form_value

    raw = json.dumps({
        "competitors": [{"name": "Burger Barn", "menuOfferings": "Burgers", "marketPosition": "Value"}],
        "marketGaps": "Late night",
    })
    form = parse_form_value("competitive_analysis", raw)
    assert form.competitors[0].name == "Burger Barn"
    assert form.competitors[0].menu_offerings == "Burgers"
    assert len(form.competitors) == 5
    assert form.market_gaps == "Late night"


@pytest.mark.parametrize("raw", ["{not json", '{"competitors": "nope"}', "[1, 2]", None])
def test_parse_malformed_falls_back_to_default(raw):
    from backend_ldgrowth.leadership.forms import CompetitiveAnalysis, parse_form_value

    assert parse_form_value("competitive_analysis", raw) == CompetitiveAnalysis()


def test_dump_uses_camel_case_keys():
    from backend_ldgrowth.leadership.forms import DevelopmentPlan, dump_form_value

    raw = dump_form_value(DevelopmentPlan(team_member_name="Sam", thirty_day_goals="Learn grill"))
    data = json.loads(raw)
    assert data["teamMemberName"] == "Sam"
    assert data["thirtyDayGoals"] == "Learn grill"
    assert "planRefinements" in data


def test_parse_dumped_value_keeps_fields():
    from backend_ldgrowth.leadership.forms import (
        CustomerJourneyMap,
        dump_form_value,
        parse_form_value,
    )

    original = CustomerJourneyMap(pre_arrival="App order", service_dining="Table service")
    assert parse_form_value("customer_journey_map", dump_form_value(original)) == original


def test_validate_is_strict():
    from backend_ldgrowth.leadership.forms import validate_form_value

    form = validate_form_value("active_listening", {"conversation1": "Talked with Sam", "insight_1": "ignored"})
    assert form.conversation1 == "Talked with Sam"
    with pytest.raises(InvalidRequestError, match="Invalid active_listening response"):
        validate_form_value("active_listening", {"conversation1": 5})
    with pytest.raises(InvalidRequestError):
        validate_form_value("active_listening", "{broken")
    with pytest.raises(InvalidRequestError, match="Unknown form kind"):
        validate_form_value("swot", {})


def test_completion_percentages():
    from backend_ldgrowth.leadership.forms import ActiveListening, Competitor, competitor_completion, form_completion

    assert form_completion(ActiveListening()) == 0
    assert form_completion(ActiveListening(conversation1="a", insight1="b")) == 25
    assert competitor_completion(Competitor(name="x", location="y", pricing="$")) == 33
