"""Pydantic API request/response schemas shared across features."""
from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field

HistoryType = Literal["study-guide", "tutor", "quiz", "flashcards"]


class HistoryItemCreate(BaseModel):
    """Request to record a generated artifact in the user's history."""
    type: HistoryType
    title: str = Field(..., min_length=1, max_length=300)
    summary: str = Field(default="", max_length=2000)
    path: str = Field(default="", description="Client route that reopens the artifact")


class HistoryItemResponse(BaseModel):
    """A stored history entry."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: HistoryType
    title: str
    summary: str
    path: str
    created_at: datetime


class HistoryListResponse(BaseModel):
    """History entries, newest first."""
    items: List[HistoryItemResponse]
