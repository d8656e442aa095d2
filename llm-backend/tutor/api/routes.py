"""Tutor chat API endpoint."""
from fastapi import APIRouter, Depends

from shared.services.llm_service import LLMService, get_llm_service
from shared.utils.exceptions import BoringCourseException
from tutor.models import TutorRequest, TutorResponse
from tutor.services.tutor_service import TutorService

router = APIRouter(prefix="/tutor", tags=["tutor"])


@router.post("", response_model=TutorResponse)
def ask_tutor(request: TutorRequest, llm_service: LLMService = Depends(get_llm_service)):
    """Reply to the student's latest message, with an optional practice question."""
    try:
        return TutorService(llm_service).reply(request)
    except BoringCourseException as e:
        raise e.to_http_exception()
