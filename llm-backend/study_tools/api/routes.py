"""Flashcard and practice-quiz API endpoints."""
from fastapi import APIRouter, Depends

from shared.services.llm_service import LLMService, get_llm_service
from shared.utils.exceptions import BoringCourseException
from study_tools.models import FlashcardsRequest, FlashcardsResponse, QuizRequest, QuizResponse
from study_tools.services.generators import StudyToolsGenerator

router = APIRouter(prefix="/study-tools", tags=["study-tools"])


@router.post("/flashcards", response_model=FlashcardsResponse)
def create_flashcards(request: FlashcardsRequest, llm_service: LLMService = Depends(get_llm_service)):
    try:
        return StudyToolsGenerator(llm_service).generate_flashcards(request)
    except BoringCourseException as e:
        raise e.to_http_exception()


@router.post("/quiz", response_model=QuizResponse)
def create_quiz(request: QuizRequest, llm_service: LLMService = Depends(get_llm_service)):
    try:
        return StudyToolsGenerator(llm_service).generate_quiz(request)
    except BoringCourseException as e:
        raise e.to_http_exception()
