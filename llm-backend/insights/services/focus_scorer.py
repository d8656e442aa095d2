"""Grade-driven focus recommendations and grade signals."""
import logging
from typing import List, Mapping, Sequence

from insights.models import FocusRecommendation, GradeSignal, Priority, Trend
from shared.models.canvas import AssignmentSnapshot, CourseSnapshot
from shared.utils.constants import (
    FOUNDATIONAL_CONCEPT,
    PRIORITY_MINUTES,
    PRIORITY_WEIGHTS,
    SCORE_HIGH_CUTOFF,
    SCORE_LOW_CUTOFF,
)
from shared.utils.text import infer_concept_from_title

logger = logging.getLogger(__name__)


def priority_weight(priority: str) -> int:
    return PRIORITY_WEIGHTS.get(priority, 1)


def course_score(course: CourseSnapshot) -> float:
    """Current score from the first enrollment, 0 when Canvas has none."""
    return float(course.current_score or 0)


def priority_for_score(score: float) -> Priority:
    if score < SCORE_LOW_CUTOFF:
        return "high"
    if score < SCORE_HIGH_CUTOFF:
        return "medium"
    return "low"


def trend_for_score(score: float) -> Trend:
    if score < SCORE_LOW_CUTOFF:
        return "declining"
    if score >= SCORE_HIGH_CUTOFF:
        return "improving"
    return "steady"


def build_grade_signals(courses: Sequence[CourseSnapshot]) -> List[GradeSignal]:
    signals = []
    for course in courses:
        score = course_score(course)
        signals.append(GradeSignal(
            subject=course.name,
            current_score=score,
            trend=trend_for_score(score),
            reason=(
                "Current score is below target band."
                if score < SCORE_LOW_CUTOFF
                else "Performance is stable."
            ),
        ))
    return signals


def _why(priority: Priority, score: float) -> str:
    if priority == "high":
        return f"Low current score ({score:.1f}%) and weaker assignment outcomes."
    if priority == "medium":
        return f"Moderate score ({score:.1f}%) needs reinforcement."
    return f"Strong score ({score:.1f}%) - maintain with light review."


def score(
    courses: Sequence[CourseSnapshot],
    assignments_by_course: Mapping[int, List[AssignmentSnapshot]],
) -> List[FocusRecommendation]:
    """
    One recommendation per course, highest priority first.

    The concept comes from the course's lowest-scored assignment; courses
    without any scored assignment get a foundational review. Ties keep the
    input course order.
    """
    recommendations = []
    for course in courses:
        current = course_score(course)
        scored = [
            assignment for assignment in assignments_by_course.get(course.id, [])
            if assignment.submission_score is not None
        ]
        weakest = min(scored, key=lambda a: a.submission_score) if scored else None
        priority = priority_for_score(current)

        recommendations.append(FocusRecommendation(
            subject=course.name,
            priority=priority,
            concept=infer_concept_from_title(weakest.name) if weakest else FOUNDATIONAL_CONCEPT,
            why=_why(priority, current),
            suggested_minutes_per_week=PRIORITY_MINUTES[priority],
        ))

    recommendations.sort(key=lambda rec: priority_weight(rec.priority), reverse=True)
    logger.debug(f"Scored {len(recommendations)} courses for focus")
    return recommendations

