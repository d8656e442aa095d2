"""Tests for insights/services/focus_strategy_service.py"""

import json
from unittest.mock import Mock

import pytest

from insights.models import FocusStrategyRequest
from insights.services.focus_strategy_service import FALLBACK_STRATEGY, FocusStrategyService, coerce_strategy
from shared.services.llm_service import LLMServiceError
from shared.utils.exceptions import UpstreamUnavailableError


def _request():
    return FocusStrategyRequest.model_validate({
        "courses": [{"id": 1, "name": "Algebra II", "current_score": 72.5}, {"name": "Chemistry"}],
        "assignments_by_course": {"1": [{"name": "Vertex Form Quiz", "submission_score": 6, "points_possible": 10}]},
        "course_focus_context": [{
            "course_id": 1,
            "course_name": "Algebra II",
            "basis_type": "unit",
            "basis_label": "Unit 4: Quadratics",
            "assignment_titles": ["Vertex Form Quiz"],
        }],
        "selected_option": {"course": "Algebra II", "concept": "Vertex form"},
    })


def _option(**overrides):
    option = {
        "id": "alg-1",
        "title": "Vertex form",
        "course": "Algebra II",
        "concept": "Vertex form",
        "reason": "Quiz score 6/10",
        "priority": "high",
        "dive_prompt": "Walk me through vertex form",
    }
    option.update(overrides)
    return option


class TestCoerceStrategy:

    @pytest.mark.parametrize("raw", [None, "text", ["a"]])
    def test_non_object_is_canned_strategy(self, raw):
        result = coerce_strategy(raw)
        assert result == FALLBACK_STRATEGY
        assert result is not FALLBACK_STRATEGY

    def test_model_strategy_kept(self):
        result = coerce_strategy({
            "overview": " Algebra first. ",
            "options": [_option()],
            "deep_dive": {"title": "Vertex form", "plan": ["Rewrite y = x² + 4x", " "], "practice": ["5 conversions"]},
        })
        assert result.overview == "Algebra first."
        assert [o.id for o in result.options] == ["alg-1"]
        assert result.deep_dive.plan == ["Rewrite y = x² + 4x"]

    def test_invalid_options_dropped_and_priority_coerced(self):
        result = coerce_strategy({"options": [_option(concept=""), _option(id="alg-2", priority="urgent")]})
        assert [(o.id, o.priority) for o in result.options] == [("alg-2", "medium")]

    def test_missing_pieces_filled_from_canned_strategy(self):
        result = coerce_strategy({"options": [], "deep_dive": {"title": "", "plan": "none"}})
        assert result.overview == FALLBACK_STRATEGY.overview
        assert result.options == FALLBACK_STRATEGY.options
        assert result.deep_dive == FALLBACK_STRATEGY.deep_dive


class TestFocusStrategyService:

    def test_request_sent_as_json(self):
        llm = Mock()
        llm.generate_structured.return_value = {"overview": "ok", "options": [_option()]}

        result = FocusStrategyService(llm).build_strategy(_request())

        assert result.overview == "ok"
        system_prompt, user_prompt, fallback = llm.generate_structured.call_args.args
        assert "academic strategist" in system_prompt
        assert fallback is None
        payload = json.loads(user_prompt)
        assert payload["course_focus_context"][0]["basis_label"] == "Unit 4: Quadratics"
        assert payload["selected_option"]["concept"] == "Vertex form"

    def test_unparseable_output_is_canned_strategy(self):
        llm = Mock()
        llm.generate_structured.return_value = None
        assert FocusStrategyService(llm).build_strategy(_request()) == FALLBACK_STRATEGY

    def test_provider_failure_is_upstream_error(self):
        llm = Mock()
        llm.generate_structured.side_effect = LLMServiceError("down")
        with pytest.raises(UpstreamUnavailableError):
            FocusStrategyService(llm).build_strategy(_request())
