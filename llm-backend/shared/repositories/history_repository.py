"""History data access layer."""
import logging
import uuid
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session as DBSession

from shared.models.entities import HistoryItem

logger = logging.getLogger(__name__)


class HistoryRepository:
    """Repository for per-user history of generated artifacts, newest first."""

    def __init__(self, db: DBSession, limit: int = 100):
        self.db = db
        self.limit = limit

    def list(self, user_key: str) -> List[HistoryItem]:
        """Return a user's history entries, newest first."""
        return (
            self.db.query(HistoryItem)
            .filter(HistoryItem.user_key == user_key)
            .order_by(HistoryItem.created_at.desc())
            .limit(self.limit)
            .all()
        )

    def append(
        self,
        user_key: str,
        type: str,
        title: str,
        summary: str = "",
        path: str = "",
        created_at: Optional[datetime] = None,
    ) -> HistoryItem:
        """
        Record a new entry and drop the oldest entries beyond the limit.

        Args:
            user_key: Opaque per-user key
            type: One of study-guide, tutor, quiz, flashcards
            title: Display title
            summary: Short description
            path: Client route that reopens the artifact
            created_at: Timestamp override, defaults to now (UTC)

        Returns:
            The stored HistoryItem
        """
        item = HistoryItem(
            id=str(uuid.uuid4()),
            user_key=user_key,
            type=type,
            title=title,
            summary=summary,
            path=path,
            created_at=created_at or datetime.utcnow(),
        )
        self.db.add(item)
        self.db.flush()

        overflow = (
            self.db.query(HistoryItem)
            .filter(HistoryItem.user_key == user_key)
            .order_by(HistoryItem.created_at.desc())
            .offset(self.limit)
            .all()
        )
        for stale in overflow:
            self.db.delete(stale)
        if overflow:
            logger.info(f"Trimmed {len(overflow)} history entries for user {user_key}")

        self.db.commit()
        self.db.refresh(item)
        return item

    def clear(self, user_key: str) -> int:
        """Delete every entry for a user. Returns the number removed."""
        removed = (
            self.db.query(HistoryItem)
            .filter(HistoryItem.user_key == user_key)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return removed
