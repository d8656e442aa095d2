"""
Study guide document models.

`GeneratedGuideDocument` is the canonical (structured) document returned to the
client and handed to the tutor. `LegacyGuideDocument` is the flattened shape
older screens render. Both are produced once per request and never persisted.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Discriminator, Field, Tag, field_validator

BADGE_CONFIRMED = "Confirmed on test"
BADGE_LIKELY = "Likely on test"
BADGE_MAY_NOT = "May not be on test"
BADGES = (BADGE_CONFIRMED, BADGE_LIKELY, BADGE_MAY_NOT)


def coerce_badge(value: Any) -> Any:
    """Unknown badge values collapse to the middle tier."""
    return value if value in BADGES else BADGE_LIKELY


def coerce_tri_state(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


Badge = Annotated[
    Literal["Confirmed on test", "Likely on test", "May not be on test"],
    BeforeValidator(coerce_badge),
]
TriState = Annotated[Literal["true", "false", "unknown"], BeforeValidator(coerce_tri_state)]
AssessmentType = Literal["quiz", "assignment", "unknown"]
EVIDENCE_SOURCES = ("quiz", "module", "assignment", "file", "announcement", "inference")


def coerce_evidence_source(value: Any) -> Any:
    """Sources outside the known set are treated as the model's own inference."""
    return value if value in EVIDENCE_SOURCES else "inference"


EvidenceSource = Annotated[
    Literal["quiz", "module", "assignment", "file", "announcement", "inference"],
    BeforeValidator(coerce_evidence_source),
]


# ---------------------------------------------------------------------------
# Scope
# ---------------------------------------------------------------------------

class Evidence(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source: EvidenceSource = Field(default="inference", alias="from")
    note: str = ""


class Topic(BaseModel):
    """A topic in the scope lock with its confidence badge."""
    topic: str = Field(..., min_length=1)
    badge: Badge = BADGE_LIKELY
    why_included: str = ""
    evidence: List[Evidence] = Field(default_factory=list)

    @field_validator("topic")
    @classmethod
    def strip_label(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("topic label must not be blank")
        return value

    @field_validator("evidence", mode="before")
    @classmethod
    def drop_malformed_evidence(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, (dict, Evidence))]


class ScopeLock(BaseModel):
    topics: List[Topic] = Field(default_factory=list)
    out_of_scope_topics: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Meta
# ---------------------------------------------------------------------------

class CourseRef(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None


class CourseMeta(CourseRef):
    teacher_names: List[str] = Field(default_factory=list)


class AssessmentFormat(BaseModel):
    mcq: TriState = "unknown"
    free_response: TriState = "unknown"
    graphing: TriState = "unknown"


class AssessmentMeta(BaseModel):
    type: AssessmentType = "unknown"
    id: Optional[str] = None
    title: Optional[str] = None
    due_at: Optional[str] = None
    time_limit_minutes: Optional[int] = None
    allowed_attempts: Optional[int] = None
    format: AssessmentFormat = Field(default_factory=AssessmentFormat)


class SourcesUsed(BaseModel):
    modules: List[str] = Field(default_factory=list)
    assignments: List[str] = Field(default_factory=list)
    quizzes: List[str] = Field(default_factory=list)
    pages: List[str] = Field(default_factory=list)
    files: List[str] = Field(default_factory=list)
    announcements: List[str] = Field(default_factory=list)
    grade_signals_used: bool = False


class GuideMeta(BaseModel):
    course: CourseMeta = Field(default_factory=CourseMeta)
    assessment: AssessmentMeta = Field(default_factory=AssessmentMeta)
    scope_confidence: int = Field(default=55, ge=0, le=100)
    assumptions: List[str] = Field(default_factory=list)
    sources_used: SourcesUsed = Field(default_factory=SourcesUsed)


# ---------------------------------------------------------------------------
# Study guide sections (one variant per section id)
# ---------------------------------------------------------------------------

class MustKnowItem(BaseModel):
    topic: str
    badge: Badge = BADGE_LIKELY
    key_ideas: List[str] = Field(default_factory=list)
    can_you_do: List[str] = Field(default_factory=list)
    common_mistake: str = ""
    fix: str = ""


class MustKnowMapSection(BaseModel):
    id: Literal["must_know_map"] = "must_know_map"
    title: str
    items: List[MustKnowItem] = Field(default_factory=list)


class DiagnosticQuestion(BaseModel):
    q: str
    topic: str
    badge: Badge = BADGE_LIKELY
    type: str = "free_response"
    choices: List[str] = Field(default_factory=list)
    answer: str = ""
    solution_steps: List[str] = Field(default_factory=list)
    if_wrong_then: str = ""


class DiagnosticSection(BaseModel):
    id: Literal["diagnostic"] = "diagnostic"
    title: str
    instructions: str = ""
    questions: List[DiagnosticQuestion] = Field(default_factory=list)
    routing_rule: str = ""


class PracticeProblem(BaseModel):
    prompt: str
    type: str = "free_response"
    choices: List[str] = Field(default_factory=list)
    answer: str = ""
    solution_steps: List[str] = Field(default_factory=list)
    common_trap: str = ""


class MasteryCheck(BaseModel):
    pass_rule: str
    if_fail_do_this: str


class PracticeSet(BaseModel):
    set_id: str
    topic: str
    badge: Badge = BADGE_LIKELY
    skills_tested: List[str] = Field(default_factory=list)
    difficulty_mix: str = ""
    problems: List[PracticeProblem] = Field(default_factory=list)
    mastery_check: Optional[MasteryCheck] = None


class PracticeSetsSection(BaseModel):
    id: Literal["practice_sets"] = "practice_sets"
    title: str
    sets: List[PracticeSet] = Field(default_factory=list)


class MinuteDrill(BaseModel):
    prompt: str
    answer: str


class MemoryItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    topic: str
    badge: Badge = BADGE_LIKELY
    memory_hook: str = ""
    speed_tip: str = ""
    one_min_drill: Optional[MinuteDrill] = Field(default=None, alias="1_min_drill")


class MemoryAndSpeedSection(BaseModel):
    id: Literal["memory_and_speed"] = "memory_and_speed"
    title: str
    items: List[MemoryItem] = Field(default_factory=list)


class TimedItem(BaseModel):
    prompt: str
    answer: str = ""
    solution_steps: List[str] = Field(default_factory=list)
    topic: str
    badge: Badge = BADGE_LIKELY


class FinalReviewSection(BaseModel):
    id: Literal["final_review"] = "final_review"
    title: str
    timed_set: List[TimedItem] = Field(default_factory=list)
    scoring: str = ""


class UnknownSection(BaseModel):
    """Sections the model invents; kept verbatim so newer clients can render them."""
    model_config = ConfigDict(extra="allow")

    id: str
    title: str = ""


KNOWN_SECTION_IDS = ("must_know_map", "diagnostic", "practice_sets", "memory_and_speed", "final_review")


def section_tag(value: Any) -> str:
    section_id = value.get("id") if isinstance(value, dict) else getattr(value, "id", None)
    return section_id if section_id in KNOWN_SECTION_IDS else "unknown"


GuideSection = Annotated[
    Union[
        Annotated[MustKnowMapSection, Tag("must_know_map")],
        Annotated[DiagnosticSection, Tag("diagnostic")],
        Annotated[PracticeSetsSection, Tag("practice_sets")],
        Annotated[MemoryAndSpeedSection, Tag("memory_and_speed")],
        Annotated[FinalReviewSection, Tag("final_review")],
        Annotated[UnknownSection, Tag("unknown")],
    ],
    Discriminator(section_tag),
]


class StudyOverview(BaseModel):
    test_ready_definition: str = ""
    estimated_total_minutes: int = 75
    if_you_have_20_min: List[str] = Field(default_factory=list)
    if_you_have_45_min: List[str] = Field(default_factory=list)
    if_you_have_75_min: List[str] = Field(default_factory=list)


class StudyGuideBody(BaseModel):
    overview: StudyOverview = Field(default_factory=StudyOverview)
    sections: List[GuideSection] = Field(default_factory=list)

    def section(self, section_id: str) -> Optional[BaseModel]:
        """First section with the given id, if any."""
        return next((s for s in self.sections if s.id == section_id), None)


# ---------------------------------------------------------------------------
# Checklist, tutor handoff, UI hints
# ---------------------------------------------------------------------------

class ChecklistItem(BaseModel):
    id: str
    task: str
    badge: Badge = BADGE_LIKELY
    done_when: str = ""
    linked_section_id: str = ""


class Checklist(BaseModel):
    items: List[ChecklistItem] = Field(default_factory=list)


class HandoffAssessment(BaseModel):
    type: AssessmentType = "unknown"
    id: Optional[str] = None
    title: Optional[str] = None
    due_at: Optional[str] = None


class TopicBadge(BaseModel):
    topic: str
    badge: Badge = BADGE_LIKELY


class QuizStyle(AssessmentFormat):
    time_limit_minutes: Optional[int] = None


class PracticeBlueprint(BaseModel):
    topic: str
    badge: Badge = BADGE_LIKELY
    difficulty_mix: str = ""
    common_traps: List[str] = Field(default_factory=list)
    preferred_question_types: List[str] = Field(default_factory=list)


class ModuleItemRef(BaseModel):
    title: str
    type: str = "module"
    url: str = ""


class FileRef(BaseModel):
    title: str
    id: str
    url: str = ""


class PageRef(BaseModel):
    title: str
    url: str = ""


class AnnouncementRef(BaseModel):
    title: str
    posted_at: str = ""


class HandoffMaterials(BaseModel):
    module_items: List[ModuleItemRef] = Field(default_factory=list)
    files: List[FileRef] = Field(default_factory=list)
    pages: List[PageRef] = Field(default_factory=list)
    announcements: List[AnnouncementRef] = Field(default_factory=list)


class HandoffContext(BaseModel):
    course: CourseRef = Field(default_factory=CourseRef)
    assessment: HandoffAssessment = Field(default_factory=HandoffAssessment)
    topics: List[TopicBadge] = Field(default_factory=list)
    quiz_style: QuizStyle = Field(default_factory=QuizStyle)
    practice_blueprints: List[PracticeBlueprint] = Field(default_factory=list)
    materials: HandoffMaterials = Field(default_factory=HandoffMaterials)


class QuickAction(BaseModel):
    id: str
    label: str
    prefill_user_message_template: str


class TutorHandoff(BaseModel):
    button_label: str = "Open Tutor with this guide"
    brief: str = ""
    context: HandoffContext = Field(default_factory=HandoffContext)
    suggested_quick_actions: List[QuickAction] = Field(default_factory=list)


class UIHints(BaseModel):
    topic_chips: List[str] = Field(default_factory=list)
    default_selected_topics: List[str] = Field(default_factory=list)
    recommended_time_buttons: List[int] = Field(default_factory=lambda: [20, 45, 75])


class GeneratedGuideDocument(BaseModel):
    """Canonical study guide document."""
    status: Literal["ready"] = "ready"
    meta: GuideMeta = Field(default_factory=GuideMeta)
    scope_lock: ScopeLock = Field(default_factory=ScopeLock)
    study_guide: StudyGuideBody = Field(default_factory=StudyGuideBody)
    checklist: Checklist = Field(default_factory=Checklist)
    tutor_handoff: TutorHandoff = Field(default_factory=TutorHandoff)
    ui_hints: UIHints = Field(default_factory=UIHints)


# ---------------------------------------------------------------------------
# Legacy projection
# ---------------------------------------------------------------------------

class TopicOutline(BaseModel):
    topic: str
    concepts: List[str]


class PlanEntry(BaseModel):
    day: str
    tasks: List[str]
    minutes: int


class PriorityItem(BaseModel):
    subject: str
    reason: str
    action: str


class LegacyGuideDocument(BaseModel):
    overview: str
    clarification_question: str = ""
    topic_outline: Optional[TopicOutline] = None
    plan: List[PlanEntry]
    priorities: List[PriorityItem] = Field(default_factory=list, max_length=3)
    checklist: List[str]


def guide_to_json(document: BaseModel) -> Dict[str, Any]:
    """Serialize with wire field names ("from", "1_min_drill")."""
    return document.model_dump(mode="json", by_alias=True)
