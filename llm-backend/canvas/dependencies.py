"""FastAPI dependencies for Canvas access."""
from typing import AsyncIterator, Optional

from fastapi import Header

from canvas.client import CanvasClient, resolve_canvas_auth
from config import get_settings


async def get_canvas_client(
    x_canvas_base_url: Optional[str] = Header(None),
    x_canvas_token: Optional[str] = Header(None),
) -> AsyncIterator[CanvasClient]:
    """Yield a request-scoped Canvas client; headers override configured credentials."""
    settings = get_settings()
    auth = resolve_canvas_auth(
        x_canvas_base_url,
        x_canvas_token,
        default_base_url=settings.canvas_base_url,
        default_token=settings.canvas_api_token,
    )
    client = CanvasClient(auth, timeout=settings.canvas_timeout_seconds)
    try:
        yield client
    finally:
        await client.aclose()
