"""Study guide models."""
from study_guide.models.guide import GeneratedGuideDocument, LegacyGuideDocument, ScopeLock, Topic, Evidence
from study_guide.models.scope import PipelineState, ScopeGatherResult, ScopeEvidence, PlanSpec
from study_guide.models.schemas import ScopeRequest, StudyGuideRequest, StudyGuideResponse
