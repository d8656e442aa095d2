"""
Guide Generation Orchestrator.

Builds the local fallback, asks the model for the full document once, and
normalizes whatever comes back. A failed or garbled model call degrades to the
fallback; it never fails the request.
"""

import json
import logging
import time
from typing import Any, Dict, Optional

from config import Settings, get_settings
from shared.prompts.loader import PromptLoader
from shared.services.llm_service import LLMService, LLMServiceError
from shared.utils.constants import MATERIAL_CONTENT_CHARS, MATERIAL_TITLE_CHARS, UPLOADED_MATERIAL_LIMIT
from study_guide.models.guide import GeneratedGuideDocument
from study_guide.models.schemas import StudyGuideRequest, StudyGuideResponse
from study_guide.models.scope import PipelineState
from study_guide.services.fallback_guide import build_fallback_guide
from study_guide.services.legacy_projection import to_legacy
from study_guide.services.normalizer import normalize
from study_guide.services.topic_scope import build_topics_for_request

logger = logging.getLogger(__name__)


def build_canvas_context(request: StudyGuideRequest) -> Dict[str, Any]:
    """Compact Canvas context for the model when the client sent none."""
    if request.canvas_context is not None:
        return request.canvas_context

    materials = [
        {
            "title": material.title[:MATERIAL_TITLE_CHARS],
            "content": material.content[:MATERIAL_CONTENT_CHARS],
        }
        for material in request.uploaded_materials[:UPLOADED_MATERIAL_LIMIT]
    ]
    return {
        "course": request.selected_course.model_dump() if request.selected_course else None,
        "assignments": [assignment.model_dump() for assignment in request.selected_assignments],
        "modules": list(request.selected_units),
        "gradebook_signals": [
            {
                "item_name": assignment.name,
                "score": assignment.submission_score,
                "points": assignment.points_possible,
            }
            for assignment in request.selected_assignments
            if assignment.submission_score is not None and assignment.points_possible is not None
        ],
        "uploaded_materials": materials,
        "focus_recommendations": [rec.model_dump() for rec in request.focus_recommendations],
    }


def build_model_input(request: StudyGuideRequest) -> Dict[str, Any]:
    return {
        "USER_QUESTION": request.user_prompt or "",
        "USER_TODAY": request.user_today.isoformat() if request.user_today else None,
        "CANVAS_CONTEXT": build_canvas_context(request),
        "LOCKED_SCOPE": request.locked_scope,
        "USER_PREFS": request.user_prefs if request.user_prefs is not None else {
            "goals": request.goals,
            "conversation_context": request.conversation_context or "",
        },
    }


class GuideGenerationOrchestrator:
    """Runs topic scoping, generation and normalization for one request."""

    def __init__(self, llm_service: LLMService, settings: Optional[Settings] = None):
        self.llm_service = llm_service
        self.settings = settings or get_settings()

    def _log_state(self, state: PipelineState, **extra: Any) -> None:
        logger.info(json.dumps({"step": "GUIDE_GENERATION", "status": state.value, **extra}))

    def generate(self, request: StudyGuideRequest) -> GeneratedGuideDocument:
        """Produce the canonical document. Always returns a complete document."""
        topics, _ = build_topics_for_request(request)
        fallback = build_fallback_guide(request, topics)

        self._log_state(PipelineState.GENERATING, topic_count=len(topics))
        start_time = time.time()
        try:
            candidate = self.llm_service.generate_structured(
                PromptLoader.load("study_guide_system"),
                json.dumps(build_model_input(request), default=str),
                None,
                image_urls=request.images,
                max_output_tokens=self.settings.guide_max_output_tokens,
                reasoning_effort=self.settings.guide_reasoning_effort,
            )
        except LLMServiceError as e:
            logger.warning(json.dumps({
                "step": "GUIDE_GENERATION",
                "status": "fallback",
                "error": str(e),
            }))
            candidate = None

        document = normalize(candidate, fallback)
        self._log_state(
            PipelineState.DONE,
            used_fallback=candidate is None,
            topic_count=len(document.scope_lock.topics),
            duration_ms=int((time.time() - start_time) * 1000),
        )
        return document

    def generate_with_legacy(self, request: StudyGuideRequest) -> StudyGuideResponse:
        """Canonical document plus its legacy projection."""
        document = self.generate(request)
        return StudyGuideResponse(
            study_guide=to_legacy(document, request.user_prompt),
            study_guide_structured=document,
        )
