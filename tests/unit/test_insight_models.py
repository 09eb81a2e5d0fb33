"""Unit tests for insights payload validation and reply parsing."""

import json

import pytest

from workhealth.insights.models import (
    InsightsPayload,
    MalformedResponse,
    UserContext,
    ValidInsights,
    parse_insights_response,
    validate_insights_document,
)

pytestmark = pytest.mark.unit


def _document(**overrides):
    document = {
        "insights": [
            {
                "category": "productivity",
                "title": "Protect your afternoon",
                "message": "You have a three-hour block after lunch.",
                "severity": "success",
                "actionable": True,
                "recommendation": "Use it for the design doc.",
                "timeframe": "today",
                "confidence": 88,
            }
        ],
        "summary": "A manageable day.",
        "overallScore": 72.5,
        "riskFactors": [],
        "opportunities": ["Deep work opportunities"],
        "predictiveAlerts": [],
    }
    document.update(overrides)
    return document


class TestParseInsightsResponse:
    """Tests for parse_insights_response."""

    def test_plain_json(self):
        """A bare JSON document parses."""
        result = parse_insights_response(json.dumps(_document()))

        assert isinstance(result, ValidInsights)
        assert result.payload.overall_score == 72.5
        assert result.payload.insights[0].title == "Protect your afternoon"

    def test_json_wrapped_in_prose(self):
        """Text around the JSON object is ignored."""
        text = "Here are your insights:\n```json\n" + json.dumps(_document()) + "\n```\nEnjoy!"

        assert isinstance(parse_insights_response(text), ValidInsights)

    @pytest.mark.parametrize("text", ["", "   \n"])
    def test_empty_reply(self, text):
        """Empty replies are malformed."""
        result = parse_insights_response(text)

        assert isinstance(result, MalformedResponse)
        assert result.reason == "empty response"

    def test_no_json_object(self):
        """Prose without braces is malformed and keeps the raw text."""
        result = parse_insights_response("I cannot help with that.")

        assert isinstance(result, MalformedResponse)
        assert result.reason == "no JSON object found"
        assert result.raw_text == "I cannot help with that."

    def test_invalid_json(self):
        """Broken JSON is malformed."""
        result = parse_insights_response('{"insights": [}')

        assert isinstance(result, MalformedResponse)
        assert result.reason.startswith("invalid JSON")

    def test_missing_field(self):
        """Documents missing required fields fail schema validation."""
        document = _document()
        del document["predictiveAlerts"]

        result = parse_insights_response(json.dumps(document))

        assert isinstance(result, MalformedResponse)
        assert result.reason.startswith("schema mismatch")

    @pytest.mark.parametrize(
        "insight_overrides",
        [
            {"severity": "catastrophic"},
            {"category": "mood"},
            {"actionable": "yes"},
            {"confidence": "high"},
            {"confidence": 150},
            {"title": 42},
        ],
    )
    def test_bad_insight_fields(self, insight_overrides):
        """Out-of-range enums, wrong types and out-of-range confidence are rejected."""
        document = _document()
        document["insights"][0].update(insight_overrides)

        assert isinstance(parse_insights_response(json.dumps(document)), MalformedResponse)

    def test_overall_score_must_be_number(self):
        """A numeric string is not a number."""
        result = parse_insights_response(json.dumps(_document(overallScore="72")))
        assert isinstance(result, MalformedResponse)

    def test_optional_fields_may_be_omitted(self):
        """recommendation and timeframe are optional."""
        document = _document()
        del document["insights"][0]["recommendation"]
        del document["insights"][0]["timeframe"]

        result = parse_insights_response(json.dumps(document))

        assert isinstance(result, ValidInsights)
        assert result.payload.insights[0].recommendation is None


def test_validate_rejects_non_object():
    """Top-level arrays are not insights documents."""
    result = validate_insights_document([_document()])

    assert isinstance(result, MalformedResponse)
    assert "expected object" in result.reason


def test_payload_round_trips_through_api_dict():
    """to_api_dict output validates back to an equal payload."""
    payload = InsightsPayload.model_validate(_document())

    data = payload.to_api_dict()

    assert "overallScore" in data
    assert "recommendation" in data["insights"][0]
    assert InsightsPayload.model_validate(data) == payload


def test_user_context_defaults():
    """A bare context has balanced 9-17 preferences."""
    context = UserContext()

    assert context.user_id is None
    assert context.preferences.work_start_time == 9
    assert context.preferences.work_end_time == 17
    assert context.preferences.meeting_preference == "balanced"


def test_user_context_accepts_camel_case():
    """Contexts can be built from client JSON."""
    context = UserContext.model_validate(
        {"userId": "u-1", "preferences": {"workStartTime": 8, "meetingPreference": "minimal"}}
    )

    assert context.user_id == "u-1"
    assert context.preferences.work_start_time == 8
    assert context.preferences.meeting_preference == "minimal"
