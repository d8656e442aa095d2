"""
Tests for shared/prompts/loader.py

Covers: PromptLoader.load, format, caching, and the shipped templates.
"""

import pytest

from shared.prompts.loader import PromptLoader


# ===========================================================================
# Fixtures
# ===========================================================================

@pytest.fixture(autouse=True)
def clear_class_cache():
    """Clear class-level cache before each test to ensure isolation."""
    PromptLoader._cache.clear()
    yield
    PromptLoader._cache.clear()


@pytest.fixture
def templates_dir(tmp_path, monkeypatch):
    (tmp_path / "greeting.txt").write_text("  Hello, {name}! Welcome to {place}.\n", encoding="utf-8")
    monkeypatch.setattr("shared.prompts.loader.DEFAULT_PROMPTS_DIR", tmp_path)
    return tmp_path


# ===========================================================================
# load / format
# ===========================================================================

class TestLoad:

    def test_load_strips_whitespace(self, templates_dir):
        assert PromptLoader.load("greeting") == "Hello, {name}! Welcome to {place}."

    def test_load_is_cached(self, templates_dir):
        PromptLoader.load("greeting")
        (templates_dir / "greeting.txt").write_text("changed", encoding="utf-8")
        assert PromptLoader.load("greeting") == "Hello, {name}! Welcome to {place}."

    def test_missing_template(self, templates_dir):
        with pytest.raises(FileNotFoundError):
            PromptLoader.load("nope")


class TestFormat:

    def test_format_interpolates(self, templates_dir):
        assert PromptLoader.format("greeting", name="Ada", place="class") == "Hello, Ada! Welcome to class."

    def test_missing_variable(self, templates_dir):
        with pytest.raises(KeyError):
            PromptLoader.format("greeting", name="Ada")


# ===========================================================================
# Shipped templates
# ===========================================================================

class TestShippedTemplates:

    def test_flashcards_keeps_literal_braces(self):
        prompt = PromptLoader.format("flashcards_system", count=7)
        assert '{ "flashcards"' in prompt
        assert "Return exactly 7 cards" in prompt

    def test_unit_concepts_user(self):
        prompt = PromptLoader.format(
            "unit_concepts_user", course="Chemistry", unit="Unit 4", assignment_lines="1. Lab"
        )
        assert "Chemistry" in prompt
        assert "1. Lab" in prompt
