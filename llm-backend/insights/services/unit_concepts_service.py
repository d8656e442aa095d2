"""Infer the study concepts inside one course unit from its assignment titles."""
import logging
from typing import List

from insights.models import UnitAssignment, UnitConceptsRequest, UnitConceptsResponse
from shared.prompts.loader import PromptLoader
from shared.services.llm_service import LLMService, LLMServiceError
from shared.utils.constants import (
    DEFAULT_UNIT_CONCEPTS,
    LOW_SIGNAL_PHRASES,
    UNIT_ASSIGNMENT_LIMIT,
    UNIT_CONCEPT_MAX,
    UNIT_CONCEPT_MIN,
)
from shared.utils.exceptions import UpstreamUnavailableError
from shared.utils.text import dedupe_labels, infer_concept_from_title

logger = logging.getLogger(__name__)


def is_low_signal(concept: str) -> bool:
    lowered = concept.lower()
    return any(phrase in lowered for phrase in LOW_SIGNAL_PHRASES)


def assignment_lines(assignments: List[UnitAssignment]) -> str:
    lines = []
    usable = [item for item in assignments if item.name.strip()][:UNIT_ASSIGNMENT_LIMIT]
    for index, item in enumerate(usable, start=1):
        line = f"{index}. {item.name}"
        if item.concept_hint and item.concept_hint.strip():
            line += f" | hint: {item.concept_hint.strip()}"
        if item.submission_score is not None:
            line += f" | score: {item.submission_score:.1f}"
        lines.append(line)
    return "\n".join(lines) if lines else "No assignment titles provided."


def sanitize_concepts(raw) -> List[str]:
    if not isinstance(raw, list):
        return []
    concepts = [item.strip() for item in raw if isinstance(item, str)]
    return [item for item in concepts if item and not is_low_signal(item)]


def concepts_from_titles(assignments: List[UnitAssignment]) -> List[str]:
    inferred = [infer_concept_from_title(item.name) for item in assignments]
    return dedupe_labels([item for item in inferred if item and not is_low_signal(item)])[:UNIT_CONCEPT_MAX]


class UnitConceptsService:
    def __init__(self, llm_service: LLMService):
        self.llm_service = llm_service

    def infer(self, request: UnitConceptsRequest) -> UnitConceptsResponse:
        """
        Model concepts when at least three usable ones come back, else
        title-derived concepts, else a canned list.

        Raises:
            UpstreamUnavailableError: if the model provider is unreachable
        """
        fallback = {"concepts": list(DEFAULT_UNIT_CONCEPTS)}
        user_prompt = PromptLoader.format(
            "unit_concepts_user",
            course=request.course,
            unit=request.unit,
            assignment_lines=assignment_lines(request.assignments),
        )
        try:
            result = self.llm_service.generate_structured(
                PromptLoader.load("unit_concepts_system"), user_prompt, fallback
            )
        except LLMServiceError as e:
            raise UpstreamUnavailableError("LLM", str(e)) from e

        concepts = sanitize_concepts(result.get("concepts") if isinstance(result, dict) else None)
        if len(concepts) >= UNIT_CONCEPT_MIN:
            return UnitConceptsResponse(concepts=concepts[:UNIT_CONCEPT_MAX])

        from_titles = concepts_from_titles(request.assignments)
        if from_titles:
            logger.info(f"Unit '{request.unit}': model gave {len(concepts)} usable concepts, using titles")
            return UnitConceptsResponse(concepts=from_titles)
        return UnitConceptsResponse(concepts=list(DEFAULT_UNIT_CONCEPTS))
