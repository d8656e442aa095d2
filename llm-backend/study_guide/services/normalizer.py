"""
Output Normalizer.

Repairs whatever the generative model returned against the canonical
document, using the local fallback as the merge base. The result is always a
complete, valid document with a non-empty scope.
"""

import json
import logging
from typing import Any

from study_guide.models.guide import GeneratedGuideDocument
from study_guide.services.curriculum import is_junk_topic
from study_guide.utils.merge import merge_with_default

logger = logging.getLogger(__name__)


def _candidate_supplied_defaults(candidate: dict) -> bool:
    ui_hints = candidate.get("ui_hints")
    if not isinstance(ui_hints, dict):
        return False
    selected = ui_hints.get("default_selected_topics")
    return isinstance(selected, list) and len(selected) > 0


def normalize(candidate: Any, fallback: GeneratedGuideDocument) -> GeneratedGuideDocument:
    """
    Merge `candidate` onto `fallback` and enforce the document invariants.

    Pure function of its inputs: no I/O, no randomness, inputs untouched.
    """
    if not isinstance(candidate, dict):
        return fallback.model_copy(deep=True)

    merged = merge_with_default(candidate, fallback)
    merged.status = "ready"

    topics = [topic for topic in merged.scope_lock.topics if not is_junk_topic(topic.topic)]
    if not topics:
        topics = [
            topic.model_copy(deep=True)
            for topic in fallback.scope_lock.topics
            if not is_junk_topic(topic.topic)
        ]
        logger.warning(json.dumps({
            "step": "GUIDE_NORMALIZE",
            "status": "topics_recovered_from_fallback",
            "topic_count": len(topics),
        }))
    merged.scope_lock.topics = topics

    chips = [topic.topic for topic in topics]
    merged.ui_hints.topic_chips = chips
    if not _candidate_supplied_defaults(candidate) or not merged.ui_hints.default_selected_topics:
        merged.ui_hints.default_selected_topics = chips[:3]

    return merged
