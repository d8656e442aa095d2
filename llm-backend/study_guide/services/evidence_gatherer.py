"""
Evidence Gatherer.

Figures out which course and upcoming assessment a free-text question is about,
and collects the Canvas material around it. Thin evidence never raises: the
result just carries uncertainties, clarifying questions and
`ready_to_generate=False`.
"""

import asyncio
import json
import logging
import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, List, Optional, Sequence, Tuple

from canvas.client import CanvasClient
from shared.models.canvas import (
    AnnouncementSnapshot,
    AssignmentCandidate,
    AssignmentSnapshot,
    CourseSnapshot,
    FileSnapshot,
    ModuleItemSnapshot,
    ModuleSnapshot,
    PageSnapshot,
    QuizCandidate,
    QuizSnapshot,
)
from shared.utils.constants import (
    ANNOUNCEMENT_CUE_LIMIT,
    ANNOUNCEMENT_TOKENS,
    LIKELY_SCOPE_LIMIT,
    MATERIALS_CONTEXT_LIMIT,
    MATERIALS_RESPONSE_LIMIT,
    REVIEW_TOKENS,
    SCOPE_STOP_WORDS,
    SCOPE_TOKEN_LIMIT,
    WEAK_SIGNAL_LIMIT,
    WEAK_SIGNAL_THRESHOLD_PCT,
)
from shared.utils.text import match_score, tokenize
from study_guide.models.scope import (
    CourseSummary,
    MaterialsFound,
    Personalization,
    PipelineState,
    PlanAssessment,
    PlanSpec,
    ScopeGatherResult,
    WeakSignal,
)

logger = logging.getLogger(__name__)

NO_COURSE_QUESTION = "Which course should be used for this study guide?"
CLARIFYING_QUESTIONS = (
    "If multiple assessments appear in your class, should we target the earliest weekday due date? "
    "(A) Yes (B) No, I will pick manually",
    "What is the expected format if unclear? (A) Mostly MCQ (B) Mostly free response (C) Mixed",
)


def scope_tokens(question: str) -> List[str]:
    return tokenize(question, SCOPE_STOP_WORDS, SCOPE_TOKEN_LIMIT)


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class DateWindow:
    """[start of `today`, end of `today + days`] in UTC."""

    def __init__(self, today: date, days: int):
        self.start = datetime.combine(today, time.min, tzinfo=timezone.utc)
        self.end = datetime.combine(today + timedelta(days=days), time.max, tzinfo=timezone.utc)

    def contains_weekday(self, due_at: Optional[datetime]) -> bool:
        if due_at is None:
            return False
        due = _as_utc(due_at)
        return due.weekday() < 5 and self.start <= due <= self.end

    def days_from_start(self, due_at: datetime) -> float:
        return abs((_as_utc(due_at) - self.start).total_seconds()) / 86400


def select_course(
    courses: Sequence[CourseSnapshot], tokens: Sequence[str], course_hint: Optional[int] = None
) -> Optional[CourseSnapshot]:
    """The hinted course if present, else the best token match (first fetched wins ties)."""
    if course_hint is not None:
        hinted = next((course for course in courses if course.id == course_hint), None)
        if hinted is not None:
            return hinted
    ranked = sorted(
        courses,
        key=lambda course: match_score(f"{course.name} {course.course_code or ''}", tokens),
        reverse=True,
    )
    return ranked[0] if ranked else None


def select_quiz(
    quizzes: Sequence[QuizSnapshot], tokens: Sequence[str], window: DateWindow
) -> Optional[QuizSnapshot]:
    """Rank weekday quizzes in the window by 10 x token matches minus days away."""
    ranked = sorted(
        (quiz for quiz in quizzes if window.contains_weekday(quiz.due_at)),
        key=lambda quiz: (
            match_score(f"{quiz.title} {quiz.description or ''}", tokens) * 10
            - window.days_from_start(quiz.due_at)
        ),
        reverse=True,
    )
    return ranked[0] if ranked else None


def select_assignment(
    assignments: Sequence[AssignmentSnapshot], tokens: Sequence[str], window: DateWindow
) -> Optional[AssignmentSnapshot]:
    ranked = sorted(
        (assignment for assignment in assignments if window.contains_weekday(assignment.due_at)),
        key=lambda assignment: match_score(assignment.name, tokens),
        reverse=True,
    )
    return ranked[0] if ranked else None


def select_module(modules: Sequence[ModuleSnapshot], tokens: Sequence[str]) -> Optional[ModuleSnapshot]:
    ranked = sorted(modules, key=lambda module: match_score(module.name, tokens), reverse=True)
    return ranked[0] if ranked else None


def weak_signals(assignments: Iterable[AssignmentSnapshot]) -> List[WeakSignal]:
    """Scored assignments under 80%, weakest first, at most five."""
    signals = []
    for assignment in assignments:
        score = assignment.submission_score
        points = assignment.points_possible
        if score is None or not points or points <= 0:
            continue
        # Half-up, so 62.5% reports as 63
        pct = math.floor(score / points * 100 + 0.5)
        if pct < WEAK_SIGNAL_THRESHOLD_PCT:
            signals.append(WeakSignal(item_name=assignment.name, score_pct=pct))
    signals.sort(key=lambda signal: signal.score_pct)
    return signals[:WEAK_SIGNAL_LIMIT]


def _matching(labels: Iterable[Tuple[str, str]], tokens: Sequence[str], limit: int) -> List[str]:
    """Labels whose match text hits at least one token. Pairs are (label, match text)."""
    return [label for label, text in labels if match_score(text, tokens) > 0][:limit]


class EvidenceGatherer:
    """Locates the target course and assessment for a question."""

    def __init__(self, canvas_client: CanvasClient, lookahead_days: int = 10):
        self.canvas = canvas_client
        self.lookahead_days = lookahead_days

    async def locate_assessment(
        self, question: str, today: date, course_hint: Optional[int] = None
    ) -> ScopeGatherResult:
        """
        Gather scope evidence for `question` as of `today`.

        Raises:
            CanvasAPIError: if any Canvas read fails
        """
        tokens = scope_tokens(question)
        window = DateWindow(today, self.lookahead_days)
        logger.info(json.dumps({"step": "SCOPE_LOCK", "status": PipelineState.GATHERING.value, "tokens": tokens}))

        courses = await self.canvas.list_courses()
        course = select_course(courses, tokens, course_hint)
        if course is None:
            return self._no_course_result(tokens)

        quizzes, assignments = await asyncio.gather(
            self.canvas.list_quizzes(course.id),
            self.canvas.list_assignments(course.id),
        )

        assessment = None
        quiz = select_quiz(quizzes, tokens, window)
        if quiz is not None:
            assessment = QuizCandidate(
                id=quiz.id,
                title=quiz.title,
                due_at=quiz.due_at,
                course_id=course.id,
                description=quiz.description,
            )
        else:
            assignment = select_assignment(assignments, tokens, window)
            if assignment is not None:
                assessment = AssignmentCandidate(
                    id=assignment.id,
                    title=assignment.name,
                    due_at=assignment.due_at,
                    course_id=course.id,
                )

        modules, announcements, pages, files, quiz_details = await asyncio.gather(
            self.canvas.list_modules(course.id),
            self.canvas.list_announcements(course.id, window.start, window.end),
            self.canvas.list_pages(course.id),
            self.canvas.list_files(course.id),
            self._quiz_details(course.id, assessment),
        )
        if quiz_details is not None:
            assessment.time_limit = quiz_details.time_limit
            assessment.allowed_attempts = quiz_details.allowed_attempts
            assessment.question_count = quiz_details.question_count

        module = select_module(modules, tokens)
        module_items = await self.canvas.list_module_items(course.id, module.id) if module else []

        result = self._build_result(
            course, assessment, tokens, assignments, module_items, announcements, pages, files
        )
        logger.info(json.dumps({
            "step": "SCOPE_LOCK",
            "status": result.state.value,
            "course_id": course.id,
            "assessment": assessment.title if assessment else None,
            "uncertainties": len(result.uncertainties),
        }))
        return result

    async def _quiz_details(self, course_id: int, assessment) -> Optional[QuizSnapshot]:
        if isinstance(assessment, QuizCandidate):
            return await self.canvas.get_quiz(course_id, assessment.id)
        return None

    def _no_course_result(self, tokens: List[str]) -> ScopeGatherResult:
        logger.info(json.dumps({"step": "SCOPE_LOCK", "status": PipelineState.SCOPE_AMBIGUOUS.value, "reason": "no_course"}))
        return ScopeGatherResult(
            state=PipelineState.SCOPE_AMBIGUOUS,
            ready_to_generate=False,
            why_best_match="No active Canvas course could be identified.",
            uncertainties=["No active course found."],
            user_questions=[NO_COURSE_QUESTION],
            plan_spec=PlanSpec(topic_tokens=tokens),
        )

    def _build_result(
        self,
        course: CourseSnapshot,
        assessment,
        tokens: List[str],
        assignments: List[AssignmentSnapshot],
        module_items: List[ModuleItemSnapshot],
        announcements: List[AnnouncementSnapshot],
        pages: List[PageSnapshot],
        files: List[FileSnapshot],
    ) -> ScopeGatherResult:
        is_quiz = isinstance(assessment, QuizCandidate)

        likely_scope: List[str] = []
        for token in tokens + [t for item in module_items for t in scope_tokens(item.title or "")]:
            if token not in likely_scope:
                likely_scope.append(token)
        likely_scope = likely_scope[:LIKELY_SCOPE_LIMIT]

        uncertainties = []
        if assessment is None:
            uncertainties.append(
                f"No weekday assessment in the next {self.lookahead_days} days was found in the selected course."
            )
        if is_quiz and not assessment.time_limit:
            uncertainties.append("Quiz time limit is not clearly available.")
        if is_quiz and assessment.allowed_attempts is None:
            uncertainties.append("Allowed attempts are not clearly available.")
        user_questions = list(CLARIFYING_QUESTIONS[:2]) if uncertainties else []

        review_tokens = [*REVIEW_TOKENS, *tokens]
        announcement_tokens = [*ANNOUNCEMENT_TOKENS, *tokens]
        announcement_pairs = [(a.title, f"{a.title} {a.message or ''}") for a in announcements]

        style_signals = []
        if is_quiz and assessment.question_count:
            style_signals.append(f"Quiz has {assessment.question_count} questions.")
        if is_quiz and assessment.description:
            style_signals.append("Quiz description provides teacher expectations.")
        style_signals.extend(
            f"Announcement cue: {title}"
            for title in _matching(announcement_pairs, announcement_tokens, ANNOUNCEMENT_CUE_LIMIT)
        )

        constraints = []
        if is_quiz and assessment.time_limit:
            constraints.append(f"Time limit: {assessment.time_limit} minutes")
        if is_quiz and assessment.allowed_attempts is not None:
            constraints.append(f"Allowed attempts: {assessment.allowed_attempts}")
        if assessment is not None and assessment.due_at:
            constraints.append(f"Due at: {assessment.due_at.isoformat()}")

        materials = MaterialsFound(
            module_items=_matching(
                ((item.title or "Untitled", item.title or "") for item in module_items),
                tokens,
                MATERIALS_RESPONSE_LIMIT,
            ),
            files=_matching(
                ((f.display_name, f.display_name) for f in files), review_tokens, MATERIALS_RESPONSE_LIMIT
            ),
            pages=_matching(
                ((p.title, f"{p.title} {p.url}") for p in pages), review_tokens, MATERIALS_RESPONSE_LIMIT
            ),
            announcements=_matching(announcement_pairs, announcement_tokens, MATERIALS_RESPONSE_LIMIT),
        )
        context_materials = MaterialsFound(
            module_items=[item.title or "Untitled" for item in module_items][:MATERIALS_CONTEXT_LIMIT],
            files=[f.display_name for f in files][:MATERIALS_CONTEXT_LIMIT],
            pages=[p.title for p in pages][:MATERIALS_CONTEXT_LIMIT],
            announcements=[a.title for a in announcements][:MATERIALS_CONTEXT_LIMIT],
        )

        signals = weak_signals(assignments)
        ready = assessment is not None and not uncertainties
        plan_assessment = PlanAssessment(
            type=assessment.kind,
            id=str(assessment.id),
            title=assessment.title,
            due_at=assessment.due_at.isoformat() if assessment.due_at else None,
        ) if assessment is not None else PlanAssessment()

        return ScopeGatherResult(
            state=PipelineState.SCOPE_READY if ready else PipelineState.SCOPE_AMBIGUOUS,
            ready_to_generate=ready,
            course=CourseSummary(id=course.id, name=course.name, term=course.course_code),
            assessment=assessment,
            why_best_match=(
                f"Selected by weekday due date proximity in the {self.lookahead_days}-day window "
                "and topic-token title match."
                if assessment is not None
                else "No valid weekday assessment candidate found in the date window."
            ),
            likely_scope=likely_scope,
            teacher_style_signals=style_signals,
            constraints=constraints,
            materials=materials,
            weak_signals=signals,
            uncertainties=uncertainties,
            user_questions=user_questions,
            plan_spec=PlanSpec(
                course_id=course.id,
                assessment=plan_assessment,
                topic_tokens=tokens,
                in_scope_topics=likely_scope,
                materials=context_materials,
                personalization=Personalization(
                    weak_areas=[signal.item_name for signal in signals],
                    signals=[f"{signal.item_name}: {signal.score_pct}%" for signal in signals],
                ),
                ready_to_generate=ready,
            ),
        )
