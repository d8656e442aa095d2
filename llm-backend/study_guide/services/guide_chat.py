"""Short conversational refinements of an existing study guide."""
import json
import logging

from shared.prompts.loader import PromptLoader
from shared.services.llm_service import LLMService, LLMServiceError
from shared.utils.constants import CHAT_REASONING_EFFORT, GUIDE_CHAT_OUTPUT_TOKENS
from shared.utils.exceptions import UpstreamUnavailableError
from study_guide.models.schemas import GuideChatRequest, GuideChatResponse

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "Tell me which concept should be prioritized and I will refine the guide."


def build_user_prompt(request: GuideChatRequest) -> str:
    return "\n".join([
        f"Question: {request.question}",
        f"Selected course: {request.selected_course or 'General'}",
        f"Current overview: {request.study_guide_overview or ''}",
        f"Current topic outline: {'; '.join(request.topic_outline)}",
        f"Current checklist: {'; '.join(request.checklist)}",
    ])


class GuideChatService:
    """Answers questions about a guide without regenerating it."""

    def __init__(self, llm_service: LLMService):
        self.llm_service = llm_service

    def reply(self, request: GuideChatRequest) -> GuideChatResponse:
        """
        Raises:
            UpstreamUnavailableError: if the model provider is unreachable
        """
        try:
            text = self.llm_service.generate_text(
                PromptLoader.load("study_guide_chat_system"),
                build_user_prompt(request),
                max_output_tokens=GUIDE_CHAT_OUTPUT_TOKENS,
                reasoning_effort=CHAT_REASONING_EFFORT,
            )
        except LLMServiceError as e:
            raise UpstreamUnavailableError("LLM", str(e)) from e

        if not text:
            logger.warning(json.dumps({"step": "GUIDE_CHAT", "status": "fallback", "course": request.selected_course}))
            text = FALLBACK_REPLY
        return GuideChatResponse(response=text)
