"""
Canvas LMS client.

Async, read-only access to the endpoints the study pipeline needs. List
endpoints follow `Link: <...>; rel="next"` headers page by page; multi-course
reads fan out concurrently and fail as a unit.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from shared.models.canvas import (
    AnnouncementSnapshot,
    AssignmentSnapshot,
    CourseSnapshot,
    FileSnapshot,
    ModuleItemSnapshot,
    ModuleSnapshot,
    PageSnapshot,
    QuizSnapshot,
)
from shared.utils.constants import CANVAS_ANNOUNCEMENT_PAGE_SIZE, CANVAS_PAGE_SIZE
from shared.utils.exceptions import CanvasAPIError, ValidationFailureError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


@dataclass(frozen=True)
class CanvasAuth:
    base_url: str
    token: str


def normalize_base_url(url: str) -> str:
    return url.rstrip("/")


def resolve_canvas_auth(
    header_base_url: Optional[str],
    header_token: Optional[str],
    default_base_url: str = "",
    default_token: str = "",
) -> CanvasAuth:
    """
    Pick Canvas credentials: request headers first, then configured defaults.

    Raises:
        ValidationFailureError: if either value is missing
    """
    base_url = header_base_url or default_base_url
    token = header_token or default_token
    if not base_url:
        raise ValidationFailureError(
            "x-canvas-base-url",
            "Canvas base URL missing. Set CANVAS_BASE_URL or send the x-canvas-base-url header.",
        )
    if not token:
        raise ValidationFailureError(
            "x-canvas-token",
            "Canvas token missing. Set CANVAS_API_TOKEN or send the x-canvas-token header.",
        )
    return CanvasAuth(base_url=normalize_base_url(base_url), token=token)


def _validate_records(records: Sequence[Any], model: Type[T], path: str) -> List[T]:
    """Records Canvas returns in a shape we cannot read (e.g. date-restricted courses) are skipped."""
    validated = []
    for record in records:
        try:
            validated.append(model.model_validate(record))
        except ValidationError:
            logger.warning(json.dumps({
                "step": "CANVAS_CALL",
                "status": "record_skipped",
                "path": path,
                "model": model.__name__,
                "record_id": record.get("id") if isinstance(record, dict) else None,
            }))
    return validated


class CanvasClient:
    """Thin async wrapper over the Canvas REST API."""

    def __init__(
        self,
        auth: CanvasAuth,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.auth = auth
        self.base_url = normalize_base_url(auth.base_url)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "CanvasClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ─── Transport ────────────────────────────────────────────────────

    @property
    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.auth.token}",
            "Content-Type": "application/json",
        }

    def _url(self, path: str) -> str:
        return f"{self.base_url}/api/v1/{path.lstrip('/')}"

    async def _request(self, url: str, params: Optional[Any] = None) -> httpx.Response:
        try:
            response = await self._client.get(url, params=params, headers=self._headers)
        except httpx.HTTPError as e:
            logger.error(f"Canvas request failed: {url} ({e})")
            raise CanvasAPIError(str(e)) from e

        if response.status_code >= 400:
            logger.error(json.dumps({
                "step": "CANVAS_CALL",
                "status": "failed",
                "url": url,
                "status_code": response.status_code,
            }))
            raise CanvasAPIError(response.text, status_code=response.status_code)
        return response

    async def _fetch_page(self, url: str, params: Optional[Any] = None) -> Tuple[List[Any], Optional[str]]:
        response = await self._request(url, params)
        next_url = response.links.get("next", {}).get("url")
        return response.json(), next_url

    async def _fetch_all(self, path: str, model: Type[T], params: Optional[Any] = None) -> List[T]:
        """Follow rel="next" links until exhausted. Pages are fetched sequentially."""
        data, next_url = await self._fetch_page(self._url(path), params)
        records = list(data)
        while next_url:
            # The next link already carries the query string
            data, next_url = await self._fetch_page(next_url)
            records.extend(data)
        return _validate_records(records, model, path)

    async def _fetch_object(self, path: str, model: Type[T]) -> T:
        response = await self._request(self._url(path))
        try:
            return model.model_validate(response.json())
        except (ValidationError, ValueError) as e:
            raise CanvasAPIError(f"Unexpected {model.__name__} payload from {path}: {e}") from e

    # ─── Courses & assignments ────────────────────────────────────────

    async def list_courses(self, search: Optional[str] = None) -> List[CourseSnapshot]:
        """Active enrollments with current total scores."""
        params = {
            "per_page": CANVAS_PAGE_SIZE,
            "enrollment_state": "active",
            "include": "total_scores",
        }
        if search:
            params["search_term"] = search
        return await self._fetch_all("courses", CourseSnapshot, params)

    async def list_assignments(self, course_id: int) -> List[AssignmentSnapshot]:
        params = {"per_page": CANVAS_PAGE_SIZE, "include": "submission", "order_by": "due_at"}
        return await self._fetch_all(f"courses/{course_id}/assignments", AssignmentSnapshot, params)

    async def list_assignments_for_courses(
        self, course_ids: Sequence[int]
    ) -> Dict[int, List[AssignmentSnapshot]]:
        """Fetch assignments for several courses concurrently."""
        results = await asyncio.gather(*(self.list_assignments(course_id) for course_id in course_ids))
        return dict(zip(course_ids, results))

    # ─── Assessment evidence ──────────────────────────────────────────

    async def list_quizzes(self, course_id: int) -> List[QuizSnapshot]:
        return await self._fetch_all(
            f"courses/{course_id}/quizzes", QuizSnapshot, {"per_page": CANVAS_PAGE_SIZE}
        )

    async def get_quiz(self, course_id: int, quiz_id: int) -> QuizSnapshot:
        return await self._fetch_object(f"courses/{course_id}/quizzes/{quiz_id}", QuizSnapshot)

    async def list_modules(self, course_id: int) -> List[ModuleSnapshot]:
        return await self._fetch_all(
            f"courses/{course_id}/modules", ModuleSnapshot, {"per_page": CANVAS_PAGE_SIZE}
        )

    async def list_module_items(self, course_id: int, module_id: int) -> List[ModuleItemSnapshot]:
        return await self._fetch_all(
            f"courses/{course_id}/modules/{module_id}/items",
            ModuleItemSnapshot,
            {"per_page": CANVAS_PAGE_SIZE},
        )

    async def list_announcements(
        self, course_id: int, start: datetime, end: datetime
    ) -> List[AnnouncementSnapshot]:
        params = [
            ("context_codes[]", f"course_{course_id}"),
            ("start_date", start.isoformat()),
            ("end_date", end.isoformat()),
            ("per_page", CANVAS_ANNOUNCEMENT_PAGE_SIZE),
        ]
        return await self._fetch_all("announcements", AnnouncementSnapshot, params)

    async def list_pages(self, course_id: int) -> List[PageSnapshot]:
        return await self._fetch_all(
            f"courses/{course_id}/pages", PageSnapshot, {"per_page": CANVAS_PAGE_SIZE}
        )

    async def list_files(self, course_id: int) -> List[FileSnapshot]:
        return await self._fetch_all(
            f"courses/{course_id}/files", FileSnapshot, {"per_page": CANVAS_PAGE_SIZE}
        )
