"""SQLAlchemy ORM database models."""
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, Index
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class HistoryItem(Base):
    """History table - one row per generated artifact a student chose to keep."""
    __tablename__ = "history_items"

    id = Column(String, primary_key=True)
    user_key = Column(String, nullable=False)  # Opaque per-user key supplied by the caller
    type = Column(String, nullable=False)  # 'study-guide', 'tutor', 'quiz', 'flashcards'
    title = Column(String, nullable=False)
    summary = Column(Text, nullable=False, default="")
    path = Column(String, nullable=False, default="")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("idx_history_user_created", "user_key", "created_at"),
    )
