"""Flatten the canonical guide into the legacy weekly-plan shape."""
from typing import List, Optional

from shared.utils.constants import GENERIC_TOPIC_WORDS
from shared.utils.text import dedupe_labels
from study_guide.models.guide import (
    DiagnosticSection,
    FinalReviewSection,
    GeneratedGuideDocument,
    LegacyGuideDocument,
    PlanEntry,
    PracticeSetsSection,
    PriorityItem,
    TopicOutline,
)

DEFAULT_PRIMARY_TOPIC = "current quiz topic"
FALLBACK_CHECKLIST_TASK = "Complete one measurable practice set and pass its mastery check"


def is_specific_topic(label: str) -> bool:
    """False for blanks and for labels made only of generic words like "algebra"."""
    words = label.strip().lower().split()
    return bool(words) and any(word not in GENERIC_TOPIC_WORDS for word in words)


def specific_topics(document: GeneratedGuideDocument) -> List[str]:
    """Practice set, diagnostic and final review topics, then scope topics."""
    labels: List[str] = []
    for section in document.study_guide.sections:
        if isinstance(section, PracticeSetsSection):
            labels.extend(item.topic for item in section.sets)
    for section in document.study_guide.sections:
        if isinstance(section, DiagnosticSection):
            labels.extend(item.topic for item in section.questions)
    for section in document.study_guide.sections:
        if isinstance(section, FinalReviewSection):
            labels.extend(item.topic for item in section.timed_set)
    labels.extend(topic.topic for topic in document.scope_lock.topics)
    return [label for label in dedupe_labels(labels) if is_specific_topic(label)]


def to_legacy(document: GeneratedGuideDocument, user_prompt: Optional[str] = None) -> LegacyGuideDocument:
    """
    Project the canonical document for older consumers.

    Plan tasks interpolate up to three specific topics. With none available
    the trimmed prompt is used, then a generic placeholder.
    """
    prompt = (user_prompt or "").strip()
    topics = document.scope_lock.topics
    specific = specific_topics(document)

    primary = specific[0] if specific else (prompt or DEFAULT_PRIMARY_TOPIC)
    secondary = specific[1] if len(specific) > 1 else primary
    tertiary = specific[2] if len(specific) > 2 else secondary

    monday = [
        f"Run a 10-minute diagnostic on {primary} and mark each missed step.",
        f"Complete 6 targeted {primary} problems; write 1-line justification per solution.",
        f"Correct your top 2 recurring errors in {secondary} and re-solve those items.",
    ]
    wednesday = [
        f"Do a timed mixed set: 4 {secondary} + 4 {tertiary} questions (20 minutes).",
        f"Run a final-review simulation on {primary} and {secondary}; target >= 80% accuracy.",
        f"Create a mini cheat-sheet of 5 rules/formulas for {primary} and self-quiz without notes.",
    ]

    priorities = [
        PriorityItem(
            subject=f"{topic.topic} ({topic.badge})",
            reason=topic.why_included,
            action=f"Do the matching practice set and hit its mastery check for {topic.topic}.",
        )
        for topic in topics[:3]
    ]

    checklist = [item.task for item in document.checklist.items] or [FALLBACK_CHECKLIST_TASK]

    return LegacyGuideDocument(
        overview=document.study_guide.overview.test_ready_definition,
        clarification_question="",
        topic_outline=TopicOutline(
            topic=(topics[0].topic if topics else "") or prompt or "Selected topic",
            concepts=[topic.topic for topic in topics][:8],
        ),
        plan=[
            PlanEntry(day="Monday", tasks=monday, minutes=45),
            PlanEntry(day="Wednesday", tasks=wednesday, minutes=45),
        ],
        priorities=priorities,
        checklist=checklist,
    )
