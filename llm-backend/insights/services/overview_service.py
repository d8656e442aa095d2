"""
Dashboard overview.

Pulls active courses and every course's assignments from Canvas, then derives
the grade signals, focus recommendations and upcoming work the dashboard shows.
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence

from canvas.client import CanvasClient
from insights.models import (
    AssignmentListResponse,
    AssignmentRow,
    AssignmentSummary,
    CourseListResponse,
    CourseRow,
    OverviewResponse,
    UpcomingAssignment,
)
from insights.services import focus_scorer
from shared.models.canvas import AssignmentSnapshot, CourseSnapshot
from shared.utils.constants import UPCOMING_ASSIGNMENT_LIMIT
from shared.utils.text import infer_concept_from_title

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def assignment_url(base_url: str, course_id: int, assignment: AssignmentSnapshot) -> str:
    return assignment.html_url or f"{base_url}/courses/{course_id}/assignments/{assignment.id}"


def end_of_next_week(now: datetime) -> datetime:
    """
    End of the Sunday that closes next week.

    Weeks start on Sunday. From any day this lands on the Sunday after the
    coming one; from a Sunday it lands seven days out.
    """
    sunday_based_dow = (now.weekday() + 1) % 7
    days_ahead = (14 - sunday_based_dow) % 14 or 7
    target = now + timedelta(days=days_ahead)
    return target.replace(hour=23, minute=59, second=59, microsecond=999000)


def summarize_assignments(
    course_ids: Sequence[int],
    assignments_by_course: Dict[int, List[AssignmentSnapshot]],
    now: datetime,
) -> List[AssignmentSummary]:
    summaries = []
    for course_id in course_ids:
        assignments = assignments_by_course.get(course_id, [])
        upcoming = [a for a in assignments if a.due_at is not None and _as_utc(a.due_at) >= now]
        summaries.append(AssignmentSummary(
            course_id=course_id,
            total_assignments=len(assignments),
            upcoming_count=len(upcoming),
        ))
    return summaries


def upcoming_assignments(
    courses: Sequence[CourseSnapshot],
    assignments_by_course: Dict[int, List[AssignmentSnapshot]],
    base_url: str,
    now: datetime,
) -> List[UpcomingAssignment]:
    """Assignments due between `now` and the end of next week, soonest first."""
    window_end = end_of_next_week(now)
    rows = []
    for course in courses:
        for assignment in assignments_by_course.get(course.id, []):
            if assignment.due_at is None or not now <= _as_utc(assignment.due_at) <= window_end:
                continue
            rows.append(UpcomingAssignment(
                id=assignment.id,
                course_id=course.id,
                course_name=course.name or "Course",
                name=assignment.name,
                due_at=assignment.due_at,
                canvas_url=assignment_url(base_url, course.id, assignment),
                concept_hint=assignment.name,
                submission_score=assignment.submission_score,
                points_possible=assignment.points_possible,
            ))
    rows.sort(key=lambda row: _as_utc(row.due_at))
    return rows[:UPCOMING_ASSIGNMENT_LIMIT]


class OverviewService:
    """Canvas-backed reads for the dashboard."""

    def __init__(self, canvas_client: CanvasClient):
        self.canvas = canvas_client

    async def list_courses(self, search: Optional[str] = None) -> CourseListResponse:
        courses = await self.canvas.list_courses(search)
        return CourseListResponse(courses=[
            CourseRow(
                id=course.id,
                name=course.name,
                code=course.course_code,
                current_score=course.current_score,
                current_grade=course.current_grade,
            )
            for course in courses
        ])

    async def list_assignments(self, course_id: int) -> AssignmentListResponse:
        assignments = await self.canvas.list_assignments(course_id)
        return AssignmentListResponse(assignments=[
            AssignmentRow(
                id=assignment.id,
                name=assignment.name,
                concept_hint=infer_concept_from_title(assignment.name),
                due_at=assignment.due_at,
                canvas_url=assignment_url(self.canvas.base_url, course_id, assignment),
                points_possible=assignment.points_possible,
                submission_score=assignment.submission_score,
                submission_state=assignment.submission.workflow_state if assignment.submission else None,
            )
            for assignment in assignments
        ])

    async def build_overview(
        self, search: Optional[str] = None, now: Optional[datetime] = None
    ) -> OverviewResponse:
        """
        Build the dashboard payload.

        Raises:
            CanvasAPIError: if listing courses or any course's assignments fails
        """
        now = now or datetime.now(timezone.utc)
        courses = await self.canvas.list_courses(search)
        course_ids = [course.id for course in courses]
        assignments_by_course = await self.canvas.list_assignments_for_courses(course_ids)

        upcoming = upcoming_assignments(courses, assignments_by_course, self.canvas.base_url, now)
        logger.info(json.dumps({
            "step": "DASHBOARD_OVERVIEW",
            "status": "complete",
            "courses": len(courses),
            "upcoming": len(upcoming),
        }))
        return OverviewResponse(
            courses=courses,
            grade_signals=focus_scorer.build_grade_signals(courses),
            focus_recommendations=focus_scorer.score(courses, assignments_by_course),
            assignment_summary=summarize_assignments(course_ids, assignments_by_course, now),
            upcoming_assignments=upcoming,
        )
