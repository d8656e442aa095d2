"""
Flashcard and practice-quiz generation.

Both generators ask the model for JSON, keep the items that validate and fall
back to a canned set when nothing usable comes back.
"""

import json
import logging
from typing import Any, List, Type, TypeVar

from pydantic import BaseModel, ValidationError

from shared.prompts.loader import PromptLoader
from shared.services.llm_service import LLMService, LLMServiceError
from shared.utils.constants import EXISTING_QUESTION_LIMIT
from shared.utils.exceptions import UpstreamUnavailableError
from study_tools.models import (
    Flashcard,
    FlashcardsRequest,
    FlashcardsResponse,
    QuizQuestion,
    QuizRequest,
    QuizResponse,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

FALLBACK_FLASHCARDS = [
    Flashcard(
        question="What concept should I review first?",
        answer="Start with the weakest assignment topic and define key terms.",
    ),
]

FALLBACK_QUESTIONS = [
    QuizQuestion(
        prompt="Which study strategy improves retention the most?",
        options=["Passive rereading", "Spaced retrieval practice", "Skipping review", "Cramming once"],
        answer="Spaced retrieval practice",
        explanation="Frequent retrieval over time improves long-term recall.",
    ),
]


def _valid_items(raw: Any, key: str, model: Type[T]) -> List[T]:
    """Items under `raw[key]` that validate as `model`; the rest are dropped."""
    if not isinstance(raw, dict) or not isinstance(raw.get(key), list):
        return []
    items = []
    for item in raw[key]:
        try:
            items.append(model.model_validate(item))
        except ValidationError:
            logger.debug(f"Dropping invalid {model.__name__}")
    return items


class StudyToolsGenerator:
    """Generates flashcards and multiple-choice quizzes from study content."""

    def __init__(self, llm_service: LLMService):
        self.llm_service = llm_service

    def _generate(self, system_prompt: str, payload: dict) -> Any:
        try:
            return self.llm_service.generate_structured(system_prompt, json.dumps(payload), None)
        except LLMServiceError as e:
            raise UpstreamUnavailableError("LLM", str(e)) from e

    def generate_flashcards(self, request: FlashcardsRequest) -> FlashcardsResponse:
        """
        Raises:
            UpstreamUnavailableError: if the model provider is unreachable
        """
        raw = self._generate(
            PromptLoader.format("flashcards_system", count=request.count),
            {
                "subject": request.subject,
                "content": request.content,
                "count": request.count,
                "instructions": request.instructions or "",
                "existing_questions": request.existing_questions[:EXISTING_QUESTION_LIMIT],
            },
        )
        cards = _valid_items(raw, "flashcards", Flashcard)[:request.count]
        if not cards:
            logger.warning(json.dumps({"step": "FLASHCARDS", "status": "fallback", "subject": request.subject}))
            cards = [card.model_copy() for card in FALLBACK_FLASHCARDS]
        return FlashcardsResponse(flashcards=cards)

    def generate_quiz(self, request: QuizRequest) -> QuizResponse:
        """
        Questions whose answer is not one of their options are dropped.

        Raises:
            UpstreamUnavailableError: if the model provider is unreachable
        """
        raw = self._generate(
            PromptLoader.format("quiz_system", difficulty=request.difficulty, count=request.count),
            request.model_dump(),
        )
        questions = [
            question for question in _valid_items(raw, "questions", QuizQuestion)
            if question.answer in question.options
        ][:request.count]
        if not questions:
            logger.warning(json.dumps({"step": "QUIZ", "status": "fallback", "subject": request.subject}))
            questions = [question.model_copy(deep=True) for question in FALLBACK_QUESTIONS]
        return QuizResponse(questions=questions)
