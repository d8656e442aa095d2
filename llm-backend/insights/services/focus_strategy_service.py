"""
Model-driven focus strategy.

Complements the rule-based scorer in `focus_scorer`: the model reads grades,
assignment signals and each course's unit or latest assignment, and proposes
clickable focus options plus a deep-dive plan. Whatever it returns is checked
piece by piece; missing or invalid pieces come from a canned strategy.
"""
import json
import logging
from typing import Any, List

from pydantic import ValidationError

from insights.models import DeepDive, FocusOption, FocusStrategyRequest, FocusStrategyResponse
from shared.prompts.loader import PromptLoader
from shared.services.llm_service import LLMService, LLMServiceError
from shared.utils.exceptions import UpstreamUnavailableError

logger = logging.getLogger(__name__)

FALLBACK_STRATEGY = FocusStrategyResponse(
    overview="Start with one weaker class, then reinforce one concept in a stronger class to keep momentum.",
    options=[
        FocusOption(
            id="focus-1",
            title="Strengthen weakest recent concept",
            course="General",
            concept="Recent assignment topics",
            reason="Assignment performance suggests gaps in recent concepts.",
            priority="high",
            dive_prompt="Give me a step-by-step plan for this concept.",
        ),
    ],
    deep_dive=DeepDive(
        title="Deep dive plan",
        plan=["Review concept definition", "Do 3 guided examples", "Do 3 independent problems"],
        practice=["Timed mini-quiz", "Error review checklist"],
    ),
)


def _clean_strings(raw: Any) -> List[str]:
    if not isinstance(raw, list):
        return []
    return [item.strip() for item in raw if isinstance(item, str) and item.strip()]


def _options(raw: Any) -> List[FocusOption]:
    if not isinstance(raw, list):
        return []
    options = []
    for item in raw:
        try:
            options.append(FocusOption.model_validate(item))
        except ValidationError:
            logger.debug("Dropping invalid focus option")
    return options


def _deep_dive(raw: Any) -> DeepDive:
    fallback = FALLBACK_STRATEGY.deep_dive
    if not isinstance(raw, dict):
        return fallback.model_copy(deep=True)
    title = raw.get("title")
    plan = _clean_strings(raw.get("plan"))
    practice = _clean_strings(raw.get("practice"))
    return DeepDive(
        title=title.strip() if isinstance(title, str) and title.strip() else fallback.title,
        plan=plan or list(fallback.plan),
        practice=practice or list(fallback.practice),
    )


def coerce_strategy(raw: Any) -> FocusStrategyResponse:
    """Turn whatever the model returned into a complete strategy."""
    if not isinstance(raw, dict):
        return FALLBACK_STRATEGY.model_copy(deep=True)
    overview = raw.get("overview")
    options = _options(raw.get("options"))
    return FocusStrategyResponse(
        overview=overview.strip() if isinstance(overview, str) and overview.strip() else FALLBACK_STRATEGY.overview,
        options=options or [option.model_copy() for option in FALLBACK_STRATEGY.options],
        deep_dive=_deep_dive(raw.get("deep_dive")),
    )


class FocusStrategyService:
    """Asks the model where a student should focus and how to dive deeper."""

    def __init__(self, llm_service: LLMService):
        self.llm_service = llm_service

    def build_strategy(self, request: FocusStrategyRequest) -> FocusStrategyResponse:
        """
        Raises:
            UpstreamUnavailableError: if the model provider is unreachable
        """
        try:
            raw = self.llm_service.generate_structured(
                PromptLoader.load("focus_strategy_system"),
                json.dumps(request.model_dump(mode="json")),
                None,
            )
        except LLMServiceError as e:
            raise UpstreamUnavailableError("LLM", str(e)) from e

        if raw is None:
            logger.warning(json.dumps({
                "step": "FOCUS_STRATEGY",
                "status": "fallback",
                "courses": len(request.courses),
            }))
        return coerce_strategy(raw)
