"""Dashboard and insight API endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from canvas.client import CanvasClient
from canvas.dependencies import get_canvas_client
from insights.models import (
    AssignmentListResponse,
    CourseListResponse,
    FocusRequest,
    FocusResponse,
    FocusStrategyRequest,
    FocusStrategyResponse,
    OverviewResponse,
    UnitConceptsRequest,
    UnitConceptsResponse,
)
from insights.services import focus_scorer
from insights.services.focus_strategy_service import FocusStrategyService
from insights.services.overview_service import OverviewService
from insights.services.unit_concepts_service import UnitConceptsService
from shared.services.llm_service import LLMService, get_llm_service
from shared.utils.exceptions import BoringCourseException

logger = logging.getLogger(__name__)

router = APIRouter(tags=["insights"])


@router.get("/courses", response_model=CourseListResponse)
async def list_courses(
    search: Optional[str] = Query(None),
    canvas: CanvasClient = Depends(get_canvas_client),
):
    """Active courses with current scores."""
    try:
        return await OverviewService(canvas).list_courses(search)
    except BoringCourseException as e:
        raise e.to_http_exception()


@router.get("/courses/{course_id}/assignments", response_model=AssignmentListResponse)
async def list_course_assignments(course_id: int, canvas: CanvasClient = Depends(get_canvas_client)):
    """A course's assignments with concept hints and the student's submission."""
    try:
        return await OverviewService(canvas).list_assignments(course_id)
    except BoringCourseException as e:
        raise e.to_http_exception()


@router.get("/overview", response_model=OverviewResponse)
async def get_overview(
    search: Optional[str] = Query(None),
    canvas: CanvasClient = Depends(get_canvas_client),
):
    """Dashboard payload: courses, grade signals, focus and upcoming work."""
    try:
        return await OverviewService(canvas).build_overview(search)
    except BoringCourseException as e:
        logger.error(f"Overview failed: {e}")
        raise e.to_http_exception()


@router.post("/insights/focus", response_model=FocusResponse)
def score_focus(request: FocusRequest):
    """Score already-fetched courses and assignments."""
    return FocusResponse(recommendations=focus_scorer.score(request.courses, request.assignments_by_course))


@router.post("/insights/focus-strategy", response_model=FocusStrategyResponse)
def build_focus_strategy(request: FocusStrategyRequest, llm_service: LLMService = Depends(get_llm_service)):
    """Model-proposed focus options and a deep-dive plan for the selected one."""
    try:
        return FocusStrategyService(llm_service).build_strategy(request)
    except BoringCourseException as e:
        raise e.to_http_exception()


@router.post("/insights/unit-concepts", response_model=UnitConceptsResponse)
def infer_unit_concepts(request: UnitConceptsRequest, llm_service: LLMService = Depends(get_llm_service)):
    """Study concepts for one unit, grounded in its assignment titles."""
    try:
        return UnitConceptsService(llm_service).infer(request)
    except BoringCourseException as e:
        raise e.to_http_exception()
