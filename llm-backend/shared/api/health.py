"""Health check API endpoints."""
from fastapi import APIRouter

from config import get_settings
from database import get_db_manager

router = APIRouter(tags=["health"])


@router.get("/")
def read_root():
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": "BoringCourse Backend",
        "version": "1.0.0"
    }


@router.get("/config/models")
def get_model_config():
    """Return the configured generative-model provider and model."""
    settings = get_settings()
    return {
        "provider": settings.llm_provider,
        "model_id": settings.llm_model,
        "guide_max_output_tokens": settings.guide_max_output_tokens,
        "guide_reasoning_effort": settings.guide_reasoning_effort,
    }


@router.get("/health/db")
def database_health():
    """Database health check."""
    try:
        if get_db_manager().health_check():
            return {"status": "ok", "database": "connected"}
        return {"status": "error", "database": "connection_failed"}
    except Exception as e:
        return {"status": "error", "database": f"error: {str(e)}"}
