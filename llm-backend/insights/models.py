"""Dashboard insight models."""
from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, BeforeValidator, Field

from shared.models.canvas import AssignmentSnapshot, CourseSnapshot

Priority = Literal["high", "medium", "low"]
Trend = Literal["improving", "steady", "declining"]


class FocusRecommendation(BaseModel):
    """Where a student should spend study time next, per course."""
    subject: str
    priority: Priority
    concept: str
    why: str
    suggested_minutes_per_week: int


class GradeSignal(BaseModel):
    subject: str
    current_score: float
    trend: Trend
    reason: str


class FocusRequest(BaseModel):
    """Score already-fetched Canvas data without calling Canvas again."""
    courses: List[CourseSnapshot]
    assignments_by_course: Dict[int, List[AssignmentSnapshot]] = Field(default_factory=dict)


class FocusResponse(BaseModel):
    recommendations: List[FocusRecommendation]


class CourseRow(BaseModel):
    id: int
    name: str
    code: Optional[str] = None
    current_score: Optional[float] = None
    current_grade: Optional[str] = None


class CourseListResponse(BaseModel):
    courses: List[CourseRow]


class AssignmentRow(BaseModel):
    id: int
    name: str
    concept_hint: str
    due_at: Optional[datetime] = None
    canvas_url: str
    points_possible: Optional[float] = None
    submission_score: Optional[float] = None
    submission_state: Optional[str] = None


class AssignmentListResponse(BaseModel):
    assignments: List[AssignmentRow]


class AssignmentSummary(BaseModel):
    course_id: int
    total_assignments: int
    upcoming_count: int


class UpcomingAssignment(BaseModel):
    id: int
    course_id: int
    course_name: str
    name: str
    due_at: datetime
    canvas_url: str
    concept_hint: str
    submission_score: Optional[float] = None
    points_possible: Optional[float] = None
    type: str = "Assignment"


class OverviewResponse(BaseModel):
    """Everything the dashboard renders on load."""
    courses: List[CourseSnapshot]
    grade_signals: List[GradeSignal]
    focus_recommendations: List[FocusRecommendation]
    assignment_summary: List[AssignmentSummary]
    upcoming_assignments: List[UpcomingAssignment]


class UnitAssignment(BaseModel):
    name: str
    concept_hint: Optional[str] = None
    submission_score: Optional[float] = None
    due_at: Optional[str] = None


class UnitConceptsRequest(BaseModel):
    course: str
    unit: str
    assignments: List[UnitAssignment] = Field(default_factory=list)


class UnitConceptsResponse(BaseModel):
    concepts: List[str]


# ---------------------------------------------------------------------------
# Focus strategy (model-driven)
# ---------------------------------------------------------------------------

def coerce_priority(value: Any) -> Any:
    return value if value in ("high", "medium", "low") else "medium"


class StrategyCourse(BaseModel):
    id: Optional[int] = None
    name: str
    current_score: Optional[float] = None


class StrategyAssignment(BaseModel):
    name: str
    concept_hint: Optional[str] = None
    due_at: Optional[str] = None
    submission_score: Optional[float] = None
    points_possible: Optional[float] = None


class CourseFocusContext(BaseModel):
    """What each course's focus should be anchored on: its current unit or latest assignment."""
    course_id: int
    course_name: str
    basis_type: Literal["unit", "latest-assignment"]
    basis_label: str
    assignment_titles: List[str] = Field(default_factory=list)


class SelectedFocusOption(BaseModel):
    course: Optional[str] = None
    concept: str
    reason: Optional[str] = None
    dive_prompt: Optional[str] = None


class FocusStrategyRequest(BaseModel):
    courses: List[StrategyCourse] = Field(default_factory=list)
    assignments_by_course: Dict[str, List[StrategyAssignment]] = Field(default_factory=dict)
    course_focus_context: List[CourseFocusContext] = Field(default_factory=list)
    selected_option: Optional[SelectedFocusOption] = None


class FocusOption(BaseModel):
    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    course: str = "General"
    concept: str = Field(min_length=1)
    reason: str = ""
    priority: Annotated[Priority, BeforeValidator(coerce_priority)] = "medium"
    dive_prompt: str = ""


class DeepDive(BaseModel):
    title: str = Field(min_length=1)
    plan: List[str] = Field(default_factory=list)
    practice: List[str] = Field(default_factory=list)


class FocusStrategyResponse(BaseModel):
    overview: str
    options: List[FocusOption]
    deep_dive: DeepDive
