"""Tests for study_tools/services/generators.py"""

import json
from unittest.mock import Mock

import pytest
from pydantic import ValidationError

from shared.services.llm_service import LLMServiceError
from shared.utils.exceptions import UpstreamUnavailableError
from study_tools.models import FlashcardsRequest, QuizRequest
from study_tools.services.generators import FALLBACK_FLASHCARDS, FALLBACK_QUESTIONS, StudyToolsGenerator

CONTENT = "Photosynthesis converts light energy into chemical energy in chloroplasts."


def _generator(result=None, side_effect=None):
    llm = Mock()
    llm.generate_structured.return_value = result
    if side_effect is not None:
        llm.generate_structured.side_effect = side_effect
    return StudyToolsGenerator(llm), llm


# ---------------------------------------------------------------------------
# Request validation
# ---------------------------------------------------------------------------

class TestRequests:

    def test_defaults(self):
        assert FlashcardsRequest(subject="Bio", content=CONTENT).count == 15
        quiz = QuizRequest(subject="Bio", content=CONTENT)
        assert (quiz.count, quiz.difficulty) == (8, "medium")

    @pytest.mark.parametrize("count", [0, 51])
    def test_flashcard_count_bounds(self, count):
        with pytest.raises(ValidationError):
            FlashcardsRequest(subject="Bio", content=CONTENT, count=count)

    def test_quiz_bounds_and_difficulty(self):
        with pytest.raises(ValidationError):
            QuizRequest(subject="Bio", content=CONTENT, count=21)
        with pytest.raises(ValidationError):
            QuizRequest(subject="Bio", content=CONTENT, difficulty="brutal")

    def test_short_content_rejected(self):
        with pytest.raises(ValidationError):
            FlashcardsRequest(subject="Bio", content="too short")


# ---------------------------------------------------------------------------
# Flashcards
# ---------------------------------------------------------------------------

class TestFlashcards:

    def test_valid_cards_kept_invalid_dropped(self):
        generator, llm = _generator({"flashcards": [
            {"question": "Where does photosynthesis happen?", "answer": "Chloroplasts"},
            {"question": "", "answer": "blank question"},
            "not a card",
        ]})
        request = FlashcardsRequest(
            subject="Bio", content=CONTENT, count=5, existing_questions=[f"q{i}" for i in range(80)]
        )

        response = generator.generate_flashcards(request)

        assert [card.answer for card in response.flashcards] == ["Chloroplasts"]
        system_prompt, user_prompt, _ = llm.generate_structured.call_args.args
        assert "Return exactly 5 cards" in system_prompt
        assert len(json.loads(user_prompt)["existing_questions"]) == 60

    def test_trimmed_to_count(self):
        cards = [{"question": f"Q{i}", "answer": f"A{i}"} for i in range(10)]
        generator, _ = _generator({"flashcards": cards})
        response = generator.generate_flashcards(FlashcardsRequest(subject="Bio", content=CONTENT, count=3))
        assert len(response.flashcards) == 3

    def test_garbage_falls_back(self):
        generator, _ = _generator(None)
        response = generator.generate_flashcards(FlashcardsRequest(subject="Bio", content=CONTENT))
        assert response.flashcards == FALLBACK_FLASHCARDS

    def test_provider_failure(self):
        generator, _ = _generator(side_effect=LLMServiceError("down"))
        with pytest.raises(UpstreamUnavailableError):
            generator.generate_flashcards(FlashcardsRequest(subject="Bio", content=CONTENT))


# ---------------------------------------------------------------------------
# Quiz
# ---------------------------------------------------------------------------

class TestQuiz:

    def test_answer_must_be_an_option(self):
        generator, llm = _generator({"questions": [
            {"prompt": "Organelle?", "options": ["Nucleus", "Chloroplast"], "answer": "Chloroplast", "explanation": "x"},
            {"prompt": "Bad", "options": ["A", "B"], "answer": "C"},
        ]})
        response = generator.generate_quiz(QuizRequest(subject="Bio", content=CONTENT, difficulty="hard"))

        assert [q.prompt for q in response.questions] == ["Organelle?"]
        system_prompt = llm.generate_structured.call_args.args[0]
        assert "Target difficulty: hard" in system_prompt

    def test_no_usable_questions_falls_back(self):
        generator, _ = _generator({"questions": []})
        response = generator.generate_quiz(QuizRequest(subject="Bio", content=CONTENT))
        assert response.questions == FALLBACK_QUESTIONS
