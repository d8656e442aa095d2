"""
Topic Scope Builder.

Reconciles explicit selections, the student's wording and curriculum patterns
into a capped, deduplicated topic list. Each topic carries a badge saying how
strongly the evidence ties it to the upcoming assessment.
"""

import json
import logging
from typing import List, Sequence, Tuple

from shared.utils.constants import GUIDE_STOP_WORDS, GUIDE_TOKEN_LIMIT, TOPIC_LIMIT
from shared.utils.text import dedupe_labels, tokenize
from study_guide.models.guide import (
    BADGE_CONFIRMED,
    BADGE_LIKELY,
    BADGE_MAY_NOT,
    Evidence,
    Topic,
)
from study_guide.models.schemas import StudyGuideRequest
from study_guide.models.scope import ScopeEvidence
from study_guide.services.curriculum import (
    extract_prompt_concepts,
    infer_curriculum_topics,
    is_junk_topic,
    residual_prompt_tokens,
)

logger = logging.getLogger(__name__)

# badge -> (why_included, evidence source, evidence note)
_BADGE_RATIONALE = {
    BADGE_CONFIRMED: (
        "Directly supported by selected assignments or explicit course evidence.",
        "assignment",
        "Matched assignment/concept naming from selected coursework.",
    ),
    BADGE_LIKELY: (
        "Strongly inferred from units/context near the assessment window.",
        "module",
        "Aligned with current units or user-requested topic wording.",
    ),
    BADGE_MAY_NOT: (
        "Included for complete prep based on common curriculum patterns.",
        "inference",
        "Commonly assessed in this course level even without explicit Canvas confirmation.",
    ),
}


def pick_badge(topic: str, explicit_concepts: Sequence[str], evidence: ScopeEvidence) -> str:
    """Confirmed on direct evidence, Likely on contextual evidence, else May not."""
    lowered = topic.lower()
    direct = (
        any(lowered in title.lower() for title in evidence.assignment_titles)
        or any(concept.strip().lower() == lowered for concept in explicit_concepts)
    )
    if direct:
        return BADGE_CONFIRMED
    contextual = (
        any(lowered in unit.lower() for unit in evidence.unit_labels)
        or any(token in lowered for token in evidence.prompt_tokens)
    )
    return BADGE_LIKELY if contextual else BADGE_MAY_NOT


def make_topic(label: str, badge: str) -> Topic:
    why, source, note = _BADGE_RATIONALE[badge]
    return Topic(topic=label, badge=badge, why_included=why, evidence=[Evidence(source=source, note=note)])


def build_topics(
    explicit_concepts: Sequence[str],
    unit_labels: Sequence[str],
    prompt_concepts: Sequence[str],
    inferred_topics: Sequence[str],
    evidence: ScopeEvidence,
) -> List[Topic]:
    """
    Rank candidate labels by source precedence and badge each one.

    Precedence: explicit concept hints, then selected units, then concepts
    from the prompt, then curriculum inference. Never returns an empty list
    while `inferred_topics` is non-empty.
    """
    candidates = dedupe_labels([*explicit_concepts, *unit_labels, *prompt_concepts, *inferred_topics])
    labels = [label for label in candidates if not is_junk_topic(label)][:TOPIC_LIMIT]
    if not labels:
        labels = dedupe_labels(label for label in inferred_topics if str(label).strip())[:TOPIC_LIMIT]
        logger.warning(json.dumps({
            "step": "TOPIC_SCOPE",
            "status": "fallback_to_curriculum",
            "topics": labels,
        }))

    return [make_topic(label, pick_badge(label, explicit_concepts, evidence)) for label in labels]


def prompt_tokens(prompt: str) -> List[str]:
    return tokenize(prompt, GUIDE_STOP_WORDS, GUIDE_TOKEN_LIMIT)


def build_topics_for_request(request: StudyGuideRequest) -> Tuple[List[Topic], List[str]]:
    """
    Topic scope for a guide request.

    Returns:
        (topics, prompt tokens)
    """
    tokens = prompt_tokens(request.prompt)
    course_name = request.selected_course.name if request.selected_course else ""
    explicit = [
        assignment.concept_hint or assignment.name
        for assignment in request.selected_assignments
        if assignment.concept_hint or assignment.name
    ]
    prompt_concepts = extract_prompt_concepts(request.prompt)
    if not prompt_concepts:
        prompt_concepts = [token.title() for token in tokens]

    evidence = ScopeEvidence(
        assignment_titles=[assignment.name for assignment in request.selected_assignments],
        unit_labels=list(request.selected_units),
        # Tokens the keyword table maps to concepts are not contextual evidence, so a
        # curriculum topic only rises above "May not be on test" through assignments or units.
        prompt_tokens=residual_prompt_tokens(tokens),
    )
    topics = build_topics(
        explicit,
        request.selected_units,
        prompt_concepts,
        infer_curriculum_topics(course_name, request.prompt),
        evidence,
    )
    return topics, tokens
