"""Tutor chat request/response models."""
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from insights.models import FocusRecommendation
from shared.utils.constants import MAX_TUTOR_IMAGES


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class TutorRequest(BaseModel):
    """The student's latest message plus what the chat already knows."""
    question: str = Field(..., min_length=5)
    subject: str
    context: Optional[str] = None
    chat_history: List[ChatTurn] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list, max_length=MAX_TUTOR_IMAGES)
    focus_recommendations: List[FocusRecommendation] = Field(default_factory=list)

    @field_validator("images")
    @classmethod
    def images_are_data_urls(cls, value: List[str]) -> List[str]:
        for image in value:
            if not image.startswith("data:image/"):
                raise ValueError("images must be data:image/ URLs")
        return value


class MultipleChoice(BaseModel):
    question: str
    choices: List[str] = Field(min_length=4, max_length=4)
    correct_index: int = Field(ge=0, le=3)
    explanation: str


class TutorResponse(BaseModel):
    response: str
    mcq: Optional[MultipleChoice] = None
    next_steps: List[str] = Field(default_factory=list)
    focus_advice: str = ""
