"""
Tests for the output normalizer.

The normalizer must always hand back a complete, valid document whatever the
model returned: nulls, garbage, partial objects or junk topics.
"""

import pytest

from study_guide.models.guide import (
    BADGE_LIKELY,
    BADGES,
    DiagnosticSection,
    UnknownSection,
    guide_to_json,
)
from study_guide.models.schemas import SelectedCourse, StudyGuideRequest
from study_guide.services.fallback_guide import build_fallback_guide
from study_guide.services.normalizer import normalize
from study_guide.services.topic_scope import build_topics_for_request


@pytest.fixture
def fallback():
    request = StudyGuideRequest(user_prompt="help with quadratics", selected_course=SelectedCourse(name="Algebra II"))
    topics, _ = build_topics_for_request(request)
    return build_fallback_guide(request, topics)


def _topic(label, badge="Likely on test"):
    return {"topic": label, "badge": badge, "why_included": "model", "evidence": [{"from": "quiz", "note": "n"}]}


# ---------------------------------------------------------------------------
# Non-object candidates
# ---------------------------------------------------------------------------

class TestNonObjectCandidate:

    @pytest.mark.parametrize("candidate", [None, "not json", 42, ["a"]])
    def test_returns_fallback_value(self, fallback, candidate):
        result = normalize(candidate, fallback)
        assert result == fallback
        assert result is not fallback

    def test_empty_object_equals_fallback(self, fallback):
        assert normalize({}, fallback) == fallback


# ---------------------------------------------------------------------------
# Scope invariants
# ---------------------------------------------------------------------------

class TestScope:

    def test_empty_topics_recovered_from_fallback(self, fallback):
        result = normalize({"scope_lock": {"topics": []}}, fallback)
        assert [t.topic for t in result.scope_lock.topics] == [t.topic for t in fallback.scope_lock.topics]

    def test_junk_only_topics_recovered_from_fallback(self, fallback):
        result = normalize({"scope_lock": {"topics": [_topic("What"), _topic("quiz")]}}, fallback)
        assert len(result.scope_lock.topics) == len(fallback.scope_lock.topics)

    def test_junk_filtered_from_model_topics(self, fallback):
        result = normalize({"scope_lock": {"topics": [_topic("Should"), _topic("Vertex form")]}}, fallback)
        assert [t.topic for t in result.scope_lock.topics] == ["Vertex form"]

    def test_unknown_badge_coerced_to_likely(self, fallback):
        result = normalize({"scope_lock": {"topics": [_topic("Vertex form", badge="Definitely")]}}, fallback)
        assert result.scope_lock.topics[0].badge == BADGE_LIKELY

    def test_blank_topic_labels_dropped(self, fallback):
        result = normalize({"scope_lock": {"topics": [_topic("   "), _topic("Roots")]}}, fallback)
        assert [t.topic for t in result.scope_lock.topics] == ["Roots"]

    def test_badges_stay_in_domain(self, fallback):
        candidate = {"scope_lock": {"topics": [_topic("A1", badge=None), _topic("B2", badge="Confirmed on test")]}}
        result = normalize(candidate, fallback)
        assert all(t.badge in BADGES for t in result.scope_lock.topics)

    def test_topic_without_badge_kept_as_likely(self, fallback):
        result = normalize({"scope_lock": {"topics": [{"topic": "Parabola vertex form"}]}}, fallback)
        [topic] = result.scope_lock.topics
        assert topic.topic == "Parabola vertex form"
        assert topic.badge == BADGE_LIKELY

    def test_unknown_evidence_source_keeps_topic(self, fallback):
        candidate = {"scope_lock": {"topics": [{
            "topic": "Completing the square",
            "badge": "Confirmed on test",
            "evidence": [{"from": "textbook", "note": "ch 4"}, "see notes", {"note": "no source"}],
        }]}}
        result = normalize(candidate, fallback)

        [topic] = result.scope_lock.topics
        assert topic.badge == "Confirmed on test"
        assert [(e.source, e.note) for e in topic.evidence] == [("inference", "ch 4"), ("inference", "no source")]


# ---------------------------------------------------------------------------
# UI hints
# ---------------------------------------------------------------------------

class TestUIHints:

    def test_chips_rederived_from_topics(self, fallback):
        candidate = {
            "scope_lock": {"topics": [_topic("Roots"), _topic("Vertex form")]},
            "ui_hints": {"topic_chips": ["Something else"]},
        }
        result = normalize(candidate, fallback)
        assert result.ui_hints.topic_chips == ["Roots", "Vertex form"]
        assert result.ui_hints.default_selected_topics == ["Roots", "Vertex form"]

    def test_supplied_default_selection_kept(self, fallback):
        candidate = {
            "scope_lock": {"topics": [_topic("Roots"), _topic("Vertex form")]},
            "ui_hints": {"default_selected_topics": ["Vertex form"]},
        }
        result = normalize(candidate, fallback)
        assert result.ui_hints.default_selected_topics == ["Vertex form"]

    def test_chips_match_topics_on_fallback_path(self, fallback):
        result = normalize({"ui_hints": {"topic_chips": []}}, fallback)
        assert result.ui_hints.topic_chips == [t.topic for t in result.scope_lock.topics]


# ---------------------------------------------------------------------------
# Other fields
# ---------------------------------------------------------------------------

class TestFieldRepair:

    def test_status_always_ready(self, fallback):
        assert normalize({"status": "error"}, fallback).status == "ready"

    def test_out_of_range_confidence_uses_fallback(self, fallback):
        assert normalize({"meta": {"scope_confidence": 250}}, fallback).meta.scope_confidence == 55
        assert normalize({"meta": {"scope_confidence": 91}}, fallback).meta.scope_confidence == 91

    def test_bool_format_flags_become_strings(self, fallback):
        result = normalize({"meta": {"assessment": {"format": {"mcq": True}}}}, fallback)
        assert result.meta.assessment.format.mcq == "true"
        assert result.meta.assessment.format.graphing == "unknown"

    def test_section_with_known_id_merges_onto_fallback_section(self, fallback):
        result = normalize({"study_guide": {"sections": [{"id": "diagnostic", "title": "Quick check"}]}}, fallback)
        assert len(result.study_guide.sections) == 1
        section = result.study_guide.sections[0]
        assert isinstance(section, DiagnosticSection)
        assert section.title == "Quick check"
        assert section.questions == fallback.study_guide.section("diagnostic").questions

    def test_unknown_sections_kept_and_invalid_dropped(self, fallback):
        sections = [{"id": "formula_sheet", "title": "Formulas", "rows": [1, 2]}, {"title": 5}]
        result = normalize({"study_guide": {"sections": sections}}, fallback)
        assert len(result.study_guide.sections) == 1
        assert isinstance(result.study_guide.sections[0], UnknownSection)
        assert result.study_guide.sections[0].model_dump()["rows"] == [1, 2]

    def test_evidence_serialized_with_wire_names(self, fallback):
        result = normalize({"scope_lock": {"topics": [_topic("Roots")]}}, fallback)
        data = guide_to_json(result)
        assert data["scope_lock"]["topics"][0]["evidence"][0]["from"] == "quiz"


# ---------------------------------------------------------------------------
# Purity
# ---------------------------------------------------------------------------

class TestPurity:

    def test_idempotent_output(self, fallback):
        candidate = {"scope_lock": {"topics": [_topic("Roots")]}, "meta": {"assumptions": ["x"]}}
        first = normalize(candidate, fallback).model_dump_json()
        second = normalize(candidate, fallback).model_dump_json()
        assert first == second

    def test_inputs_untouched(self, fallback):
        before = fallback.model_dump_json()
        candidate = {"scope_lock": {"topics": [_topic("Roots")]}}
        normalize(candidate, fallback)
        assert fallback.model_dump_json() == before
        assert candidate == {"scope_lock": {"topics": [_topic("Roots")]}}
