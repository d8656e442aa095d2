"""
BoringCourse Backend - FastAPI Application

Entry point for the study API: Canvas-backed dashboard insights, scope locking
and study guide generation, flashcards, practice quizzes and history.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import get_settings, validate_required_settings
from database import get_db_manager
from insights.api import routes as insights_routes
from shared.api import health, history_routes
from shared.utils.exceptions import BoringCourseException
from study_guide.api import routes as study_guide_routes
from study_tools.api import routes as study_tools_routes
from tutor.api import routes as tutor_routes

# Validate configuration on startup
validate_required_settings()

logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="BoringCourse Backend",
    description="Canvas-aware study guides, flashcards and quizzes",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BoringCourseException)
async def boringcourse_exception_handler(request: Request, exc: BoringCourseException):
    """Errors raised outside a route body, e.g. while resolving Canvas credentials."""
    http_exc = exc.to_http_exception()
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


# Include routers
app.include_router(health.router)
app.include_router(history_routes.router)
app.include_router(insights_routes.router)
app.include_router(study_guide_routes.router)
app.include_router(study_tools_routes.router)
app.include_router(tutor_routes.router)


@app.on_event("startup")
async def startup_event():
    """Create tables and validate the database connection on startup."""
    logger.info("Starting BoringCourse Backend...")

    db_manager = get_db_manager()
    db_manager.create_tables()
    if not db_manager.health_check():
        logger.warning("Database health check failed on startup")
    else:
        logger.info("Database connection healthy")


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True
    )
