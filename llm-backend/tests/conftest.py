"""Pytest configuration and shared fixtures."""
import os
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from shared.models.entities import Base
from shared.models.canvas import AssignmentSnapshot, CourseSnapshot, Enrollment, Submission


@pytest.fixture(scope="function")
def db_session():
    """
    Create a test database session with in-memory SQLite.

    This fixture creates a fresh database for each test function,
    ensuring test isolation.
    """
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)

    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(engine)


@pytest.fixture
def client():
    """Create a test client for the FastAPI app."""
    from main import app

    return TestClient(app)


@pytest.fixture
def mock_llm_service(mocker):
    """Mock LLM service for testing without API calls."""
    mock_service = mocker.Mock()
    mock_service.generate_structured.return_value = {
        "concepts": ["Balancing equations", "Mole ratios", "Limiting reagents"],
    }
    return mock_service


def make_course(course_id=1, name="Algebra II", score=None, grade=None, code=None):
    enrollments = [Enrollment(computed_current_score=score, computed_current_grade=grade)] if score is not None else []
    return CourseSnapshot(id=course_id, name=name, course_code=code, enrollments=enrollments)


def make_assignment(assignment_id=1, name="Quiz", course_id=1, due_at=None, score=None, points=None, html_url=None):
    return AssignmentSnapshot(
        id=assignment_id,
        course_id=course_id,
        name=name,
        due_at=due_at,
        points_possible=points,
        html_url=html_url,
        submission=Submission(score=score) if score is not None else None,
    )


@pytest.fixture
def sample_courses():
    """Three courses across all priority bands, in fetch order."""
    return [
        make_course(1, "Algebra II", score=91.0, grade="A-"),
        make_course(2, "Chemistry", score=72.0, grade="C-"),
        make_course(3, "US History", score=80.5, grade="B-"),
    ]


@pytest.fixture
def sample_assignments():
    """Assignments keyed by course id, some with scores."""
    due = datetime(2026, 10, 20, 15, 0, tzinfo=timezone.utc)
    return {
        1: [make_assignment(10, "Quadratic Functions Quiz", 1, due, score=9, points=10)],
        2: [
            make_assignment(20, "Unit 4 Stoichiometry Lab", 2, due, score=11, points=20),
            make_assignment(21, "Gas Laws Worksheet", 2, due, score=18, points=20),
        ],
        3: [make_assignment(30, "Civil War Essay", 3, due)],
    }
