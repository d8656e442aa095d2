"""Study guide API endpoints."""
import logging

from fastapi import APIRouter, Depends

from canvas.client import CanvasClient
from canvas.dependencies import get_canvas_client
from config import get_settings
from shared.services.llm_service import LLMService, get_llm_service
from shared.utils.exceptions import BoringCourseException
from study_guide.models.schemas import (
    GuideChatRequest,
    GuideChatResponse,
    ScopeRequest,
    StudyGuideRequest,
    StudyGuideResponse,
)
from study_guide.models.scope import ScopeGatherResult
from study_guide.services.evidence_gatherer import EvidenceGatherer
from study_guide.services.guide_chat import GuideChatService
from study_guide.services.orchestrator import GuideGenerationOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/study-guide", tags=["study-guide"])


@router.post("/scope", response_model=ScopeGatherResult)
async def lock_scope(request: ScopeRequest, canvas: CanvasClient = Depends(get_canvas_client)):
    """Find the course and upcoming assessment a question is about."""
    try:
        gatherer = EvidenceGatherer(canvas, lookahead_days=get_settings().scope_lookahead_days)
        return await gatherer.locate_assessment(request.user_question, request.user_today, request.course_id)
    except BoringCourseException as e:
        logger.error(f"Scope lock failed: {e}")
        raise e.to_http_exception()


@router.post("", response_model=StudyGuideResponse)
def create_study_guide(request: StudyGuideRequest, llm_service: LLMService = Depends(get_llm_service)):
    """Generate a study guide plus its legacy weekly-plan projection."""
    try:
        orchestrator = GuideGenerationOrchestrator(llm_service)
        return orchestrator.generate_with_legacy(request)
    except BoringCourseException as e:
        raise e.to_http_exception()


@router.post("/chat", response_model=GuideChatResponse)
def refine_study_guide(request: GuideChatRequest, llm_service: LLMService = Depends(get_llm_service)):
    """Focused suggestions for an existing guide."""
    try:
        return GuideChatService(llm_service).reply(request)
    except BoringCourseException as e:
        raise e.to_http_exception()
