"""Pydantic API request/response schemas for the study guide endpoints."""
from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from insights.models import FocusRecommendation
from shared.utils.constants import MAX_GUIDE_IMAGES
from study_guide.models.guide import GeneratedGuideDocument, LegacyGuideDocument


class ScopeRequest(BaseModel):
    """Request to lock the scope of a study guide from a free-text question."""
    user_question: str = Field(..., min_length=2)
    user_today: date = Field(..., description="Student's local date, YYYY-MM-DD")
    course_id: Optional[int] = Field(None, description="Course to use instead of guessing")


class SelectedCourse(BaseModel):
    id: Optional[int] = None
    name: str
    current_score: Optional[float] = None


class SelectedAssignment(BaseModel):
    name: str
    submission_score: Optional[float] = None
    points_possible: Optional[float] = None
    concept_hint: Optional[str] = None


class CourseOption(BaseModel):
    id: int
    name: str
    current_score: Optional[float] = None


class UploadedMaterial(BaseModel):
    title: str
    content: str


class StudyGuideRequest(BaseModel):
    """Everything the client knows when asking for a guide."""
    student_name: Optional[str] = None
    user_today: Optional[date] = None
    goals: List[str] = Field(default_factory=list)
    user_prompt: Optional[str] = None
    conversation_context: Optional[str] = None
    selected_units: List[str] = Field(default_factory=list)
    selected_course: Optional[SelectedCourse] = None
    selected_assignments: List[SelectedAssignment] = Field(default_factory=list)
    courses: List[CourseOption] = Field(default_factory=list)
    focus_recommendations: List[FocusRecommendation] = Field(default_factory=list)
    uploaded_materials: List[UploadedMaterial] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list, max_length=MAX_GUIDE_IMAGES)
    canvas_context: Optional[Dict[str, Any]] = None
    locked_scope: Optional[Dict[str, Any]] = None
    user_prefs: Optional[Dict[str, Any]] = None

    @field_validator("images")
    @classmethod
    def images_are_data_urls(cls, value: List[str]) -> List[str]:
        for image in value:
            if not image.startswith("data:image/"):
                raise ValueError("images must be data:image/ URLs")
        return value

    @property
    def prompt(self) -> str:
        return (self.user_prompt or "").strip()


class StudyGuideResponse(BaseModel):
    study_guide: LegacyGuideDocument
    study_guide_structured: GeneratedGuideDocument


class GuideChatRequest(BaseModel):
    """A follow-up question about a guide the student already has."""
    question: str = Field(..., min_length=2)
    selected_course: Optional[str] = None
    study_guide_overview: Optional[str] = None
    topic_outline: List[str] = Field(default_factory=list)
    checklist: List[str] = Field(default_factory=list)


class GuideChatResponse(BaseModel):
    response: str
