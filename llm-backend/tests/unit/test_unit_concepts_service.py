"""Tests for insights/services/unit_concepts_service.py"""

from unittest.mock import Mock

import pytest

from insights.models import UnitAssignment, UnitConceptsRequest
from insights.services.unit_concepts_service import UnitConceptsService, assignment_lines, is_low_signal
from shared.services.llm_service import LLMServiceError
from shared.utils.exceptions import UpstreamUnavailableError


def _request(names=("Unit 3 Quiz: Solving Linear Systems", "Graphing Inequalities Homework")):
    return UnitConceptsRequest(
        course="Algebra I",
        unit="Unit 3",
        assignments=[UnitAssignment(name=name) for name in names],
    )


def _service(result=None, side_effect=None):
    llm = Mock()
    llm.generate_structured.return_value = result
    if side_effect is not None:
        llm.generate_structured.side_effect = side_effect
    return UnitConceptsService(llm), llm


class TestPromptLines:

    def test_lines_include_hints_and_scores(self):
        lines = assignment_lines([
            UnitAssignment(name="Systems Quiz", concept_hint=" substitution ", submission_score=7.0),
            UnitAssignment(name="   "),
            UnitAssignment(name="Inequalities"),
        ])
        assert lines == "1. Systems Quiz | hint: substitution | score: 7.0\n2. Inequalities"

    def test_no_assignments(self):
        assert assignment_lines([]) == "No assignment titles provided."

    def test_low_signal_phrases(self):
        assert is_low_signal("Not enough data to tell")
        assert not is_low_signal("Elimination method")


class TestInfer:

    def test_model_concepts_used_when_three_or_more(self):
        service, llm = _service({"concepts": ["Substitution", " Elimination ", "Graphing systems", "A", "B", "C", "D"]})
        response = service.infer(_request())

        assert response.concepts == ["Substitution", "Elimination", "Graphing systems", "A", "B", "C"]
        user_prompt = llm.generate_structured.call_args.args[1]
        assert "Course: Algebra I" in user_prompt
        assert "1. Unit 3 Quiz: Solving Linear Systems" in user_prompt

    def test_with_shared_mock(self, mock_llm_service):
        response = UnitConceptsService(mock_llm_service).infer(_request())
        assert response.concepts == ["Balancing equations", "Mole ratios", "Limiting reagents"]
        mock_llm_service.generate_structured.assert_called_once()

    def test_low_signal_answers_fall_back_to_titles(self):
        service, _ = _service({"concepts": ["Not enough data", "Unknown", "Substitution"]})
        response = service.infer(_request())
        assert response.concepts == ["solving linear systems", "graphing inequalities homework"]

    def test_canned_list_when_no_titles(self):
        service, _ = _service({"concepts": []})
        response = service.infer(_request(names=()))
        assert response.concepts == ["Core definitions", "Worked examples", "Common mistakes"]

    def test_non_dict_result_treated_as_empty(self):
        service, _ = _service(["a", "b", "c"])
        assert service.infer(_request(names=("Cells Lab",))).concepts == ["cells"]

    def test_provider_failure_is_upstream_error(self):
        service, _ = _service(side_effect=LLMServiceError("down"))
        with pytest.raises(UpstreamUnavailableError):
            service.infer(_request())
