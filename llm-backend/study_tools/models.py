"""Flashcard and practice-quiz request/response models."""
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

Difficulty = Literal["easy", "medium", "hard"]


class Flashcard(BaseModel):
    question: str = Field(min_length=1)
    answer: str = Field(min_length=1)


class FlashcardsRequest(BaseModel):
    subject: str
    content: str = Field(min_length=20)
    count: int = Field(default=15, ge=1, le=50)
    instructions: Optional[str] = None
    existing_questions: List[str] = Field(default_factory=list)


class FlashcardsResponse(BaseModel):
    flashcards: List[Flashcard]


class QuizQuestion(BaseModel):
    prompt: str = Field(min_length=1)
    options: List[str] = Field(min_length=2)
    answer: str
    explanation: str = ""


class QuizRequest(BaseModel):
    subject: str
    content: str = Field(min_length=20)
    count: int = Field(default=8, ge=1, le=20)
    difficulty: Difficulty = "medium"


class QuizResponse(BaseModel):
    questions: List[QuizQuestion]
