"""
Tutor chat replies.

One text generation per student message, cleaned up for readable math and
chemistry notation. When the student asks to be quizzed (and did not ask for
a numbered problem set or a study plan) a second, structured call adds one
multiple-choice question.
"""
import json
import logging
from typing import Any, Optional

from shared.prompts.loader import PromptLoader
from shared.services.llm_service import LLMService, LLMServiceError
from shared.utils.constants import CHAT_REASONING_EFFORT, TUTOR_MCQ_OUTPUT_TOKENS
from shared.utils.exceptions import UpstreamUnavailableError
from tutor.models import MultipleChoice, TutorRequest, TutorResponse
from tutor.prompts.reply_prompts import (
    build_multiple_choice_prompt,
    build_system_prompt,
    build_user_prompt,
    detect_signals,
    output_token_budget,
)
from tutor.services.notation import normalize_notation

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "Tell me which exact step feels confusing, and I will walk through one example with you."

FALLBACK_MCQ = MultipleChoice(
    question="Which expression is equivalent to sqrt(-9)?",
    choices=["3", "-3", "3i", "-3i"],
    correct_index=2,
    explanation="sqrt(-9) = sqrt(9) * sqrt(-1) = 3i.",
)


def coerce_multiple_choice(raw: Any) -> Optional[MultipleChoice]:
    """
    Accept a model-written question only when it has four choices.

    An out-of-range or non-integer correct index points at the first choice;
    a blank question or explanation is taken from the canned question.
    """
    if not isinstance(raw, dict) or not isinstance(raw.get("choices"), list):
        return None
    choices = [str(choice) for choice in raw["choices"][:4]]
    if len(choices) != 4:
        return None

    index = raw.get("correct_index")
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(choices):
        index = 0
    question = str(raw.get("question") or "").strip()
    explanation = str(raw.get("explanation") or "").strip()
    return MultipleChoice(
        question=question or FALLBACK_MCQ.question,
        choices=choices,
        correct_index=index,
        explanation=explanation or FALLBACK_MCQ.explanation,
    )


class TutorService:
    """Answers one tutoring message."""

    def __init__(self, llm_service: LLMService):
        self.llm_service = llm_service

    def reply(self, request: TutorRequest) -> TutorResponse:
        """
        Raises:
            UpstreamUnavailableError: if the model provider is unreachable
        """
        signals = detect_signals(request)
        try:
            text = self.llm_service.generate_text(
                build_system_prompt(signals),
                build_user_prompt(request, signals),
                image_urls=request.images,
                max_output_tokens=output_token_budget(signals),
                reasoning_effort=CHAT_REASONING_EFFORT,
            )
            mcq = self._multiple_choice(request.question, text) if signals.wants_multiple_choice else None
        except LLMServiceError as e:
            raise UpstreamUnavailableError("LLM", str(e)) from e

        if not text:
            logger.warning(json.dumps({"step": "TUTOR", "status": "fallback", "subject": request.subject}))
            text = FALLBACK_REPLY

        logger.info(json.dumps({
            "step": "TUTOR",
            "status": "complete",
            "mode": "planning" if signals.planning else "concept",
            "practice_count": signals.practice_count,
            "mcq": mcq is not None,
        }))
        return TutorResponse(response=normalize_notation(text), mcq=mcq)

    def _multiple_choice(self, question: str, reply: str) -> Optional[MultipleChoice]:
        raw = self.llm_service.generate_structured(
            PromptLoader.load("tutor_mcq_system"),
            build_multiple_choice_prompt(question, reply),
            FALLBACK_MCQ.model_dump(),
            max_output_tokens=TUTOR_MCQ_OUTPUT_TOKENS,
            reasoning_effort=CHAT_REASONING_EFFORT,
        )
        return coerce_multiple_choice(raw)
