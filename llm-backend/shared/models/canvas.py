"""Read-only snapshots of Canvas LMS records, fetched per request."""
from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class CanvasRecord(BaseModel):
    """Canvas returns far more fields than we read; ignore the rest."""
    model_config = ConfigDict(extra="ignore")


class Enrollment(CanvasRecord):
    computed_current_score: Optional[float] = None
    computed_current_grade: Optional[str] = None


class CourseSnapshot(CanvasRecord):
    """Course with the student's current enrollment scores."""
    id: int
    name: str
    course_code: Optional[str] = None
    workflow_state: Optional[str] = None
    enrollments: List[Enrollment] = Field(default_factory=list)

    @property
    def current_score(self) -> Optional[float]:
        return self.enrollments[0].computed_current_score if self.enrollments else None

    @property
    def current_grade(self) -> Optional[str]:
        return self.enrollments[0].computed_current_grade if self.enrollments else None


class Submission(CanvasRecord):
    score: Optional[float] = None
    submitted_at: Optional[datetime] = None
    workflow_state: Optional[str] = None


class AssignmentSnapshot(CanvasRecord):
    """Assignment with the student's own submission attached."""
    id: int
    course_id: Optional[int] = None
    name: str
    due_at: Optional[datetime] = None
    html_url: Optional[str] = None
    points_possible: Optional[float] = None
    submission: Optional[Submission] = None

    @property
    def submission_score(self) -> Optional[float]:
        return self.submission.score if self.submission else None


class QuizSnapshot(CanvasRecord):
    id: int
    title: str
    description: Optional[str] = None
    due_at: Optional[datetime] = None
    time_limit: Optional[int] = None
    allowed_attempts: Optional[int] = None
    question_count: Optional[int] = None


class ModuleSnapshot(CanvasRecord):
    id: int
    name: str


class ModuleItemSnapshot(CanvasRecord):
    id: int
    title: Optional[str] = None
    type: Optional[str] = None
    url: Optional[str] = None
    due_at: Optional[datetime] = None


class AnnouncementSnapshot(CanvasRecord):
    id: int
    title: str
    message: Optional[str] = None
    posted_at: Optional[datetime] = None


class PageSnapshot(CanvasRecord):
    page_id: Optional[int] = None
    url: str
    title: str
    updated_at: Optional[datetime] = None


class FileSnapshot(CanvasRecord):
    id: int
    display_name: str
    updated_at: Optional[datetime] = None
    url: Optional[str] = None


# ---------------------------------------------------------------------------
# Assessment candidates
# ---------------------------------------------------------------------------

class QuizCandidate(BaseModel):
    """A quiz selected as the target assessment."""
    kind: Literal["quiz"] = "quiz"
    id: int
    title: str
    due_at: Optional[datetime] = None
    course_id: int
    description: Optional[str] = None
    time_limit: Optional[int] = None
    allowed_attempts: Optional[int] = None
    question_count: Optional[int] = None


class AssignmentCandidate(BaseModel):
    """An assignment selected as the target assessment (no quiz was due)."""
    kind: Literal["assignment"] = "assignment"
    id: int
    title: str
    due_at: Optional[datetime] = None
    course_id: int
    description: Optional[str] = None


AssessmentCandidate = Annotated[
    Union[QuizCandidate, AssignmentCandidate],
    Field(discriminator="kind"),
]
