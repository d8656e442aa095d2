"""History API endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session as DBSession

from config import get_settings
from database import get_db
from shared.models.schemas import HistoryItemCreate, HistoryItemResponse, HistoryListResponse
from shared.repositories.history_repository import HistoryRepository
from shared.utils.exceptions import BoringCourseException, ValidationFailureError

router = APIRouter(prefix="/history", tags=["history"])


def get_user_key(x_user_key: Optional[str] = Header(None)) -> str:
    """Opaque per-user key the client stores history under."""
    if not x_user_key or not x_user_key.strip():
        raise ValidationFailureError("x-user-key", "History requests need an x-user-key header.")
    return x_user_key.strip()


def get_history_repository(db: DBSession = Depends(get_db)) -> HistoryRepository:
    return HistoryRepository(db, limit=get_settings().history_limit)


@router.get("", response_model=HistoryListResponse)
def list_history(
    user_key: str = Depends(get_user_key),
    repo: HistoryRepository = Depends(get_history_repository),
):
    """History entries for the user, newest first."""
    return HistoryListResponse(items=[HistoryItemResponse.model_validate(item) for item in repo.list(user_key)])


@router.post("", response_model=HistoryItemResponse, status_code=201)
def append_history(
    request: HistoryItemCreate,
    user_key: str = Depends(get_user_key),
    repo: HistoryRepository = Depends(get_history_repository),
):
    try:
        item = repo.append(user_key, request.type, request.title, request.summary, request.path)
        return HistoryItemResponse.model_validate(item)
    except BoringCourseException as e:
        raise e.to_http_exception()


@router.delete("")
def clear_history(
    user_key: str = Depends(get_user_key),
    repo: HistoryRepository = Depends(get_history_repository),
):
    return {"removed": repo.clear(user_key)}
