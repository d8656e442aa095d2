"""Scope-lock models: what the evidence gatherer found and how sure it is."""
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from shared.models.canvas import AssessmentCandidate


class PipelineState(str, Enum):
    """
    Lifecycle of one study-guide request.

    GATHERING -> SCOPE_AMBIGUOUS | SCOPE_READY -> GENERATING -> DONE.
    An ambiguous scope can still be generated from; the caller decides.
    """
    GATHERING = "gathering"
    SCOPE_AMBIGUOUS = "scope_ambiguous"
    SCOPE_READY = "scope_ready"
    GENERATING = "generating"
    DONE = "done"


class CourseSummary(BaseModel):
    id: int
    name: str
    term: Optional[str] = None


class WeakSignal(BaseModel):
    item_name: str
    score_pct: int


class MaterialsFound(BaseModel):
    module_items: List[str] = Field(default_factory=list)
    files: List[str] = Field(default_factory=list)
    pages: List[str] = Field(default_factory=list)
    announcements: List[str] = Field(default_factory=list)


class PlanAssessment(BaseModel):
    type: Optional[Literal["quiz", "assignment"]] = None
    id: Optional[str] = None
    title: Optional[str] = None
    due_at: Optional[str] = None


class QuestionStyle(BaseModel):
    mcq: str = "unknown"
    free_response: str = "unknown"
    graphing: str = "unknown"


class Personalization(BaseModel):
    weak_areas: List[str] = Field(default_factory=list)
    signals: List[str] = Field(default_factory=list)


class PlanSpec(BaseModel):
    """Generation-context payload; can be passed back as the guide's locked scope."""
    course_id: Optional[int] = None
    assessment: PlanAssessment = Field(default_factory=PlanAssessment)
    topic_tokens: List[str] = Field(default_factory=list)
    in_scope_topics: List[str] = Field(default_factory=list)
    out_of_scope_topics: List[str] = Field(default_factory=list)
    question_style: QuestionStyle = Field(default_factory=QuestionStyle)
    materials: MaterialsFound = Field(default_factory=MaterialsFound)
    personalization: Personalization = Field(default_factory=Personalization)
    ready_to_generate: bool = False


class ScopeGatherResult(BaseModel):
    """Best-effort scope for a free-text question. Never an error when evidence is thin."""
    state: PipelineState
    ready_to_generate: bool
    course: Optional[CourseSummary] = None
    assessment: Optional[AssessmentCandidate] = None
    why_best_match: str
    likely_scope: List[str] = Field(default_factory=list)
    teacher_style_signals: List[str] = Field(default_factory=list)
    constraints: List[str] = Field(default_factory=list)
    materials: MaterialsFound = Field(default_factory=MaterialsFound)
    weak_signals: List[WeakSignal] = Field(default_factory=list)
    uncertainties: List[str] = Field(default_factory=list)
    user_questions: List[str] = Field(default_factory=list, max_length=2)
    plan_spec: PlanSpec = Field(default_factory=PlanSpec)


class ScopeEvidence(BaseModel):
    """Signals a topic label is checked against when assigning its badge."""
    assignment_titles: List[str] = Field(default_factory=list)
    unit_labels: List[str] = Field(default_factory=list)
    prompt_tokens: List[str] = Field(default_factory=list)
