"""Prompt template loading and management."""
from pathlib import Path
from typing import Any, Dict

DEFAULT_PROMPTS_DIR = Path(__file__).parent / "templates"


class PromptLoader:
    """Load and format `.txt` prompt templates from the templates directory."""

    _cache: Dict[str, str] = {}

    @classmethod
    def load(cls, template_name: str) -> str:
        """
        Load a prompt template by name.

        Args:
            template_name: Name of template file (without .txt extension)

        Returns:
            Template content as string
        """
        if template_name not in cls._cache:
            template_path = DEFAULT_PROMPTS_DIR / f"{template_name}.txt"
            with open(template_path, 'r', encoding='utf-8') as f:
                cls._cache[template_name] = f.read().strip()
        return cls._cache[template_name]

    @classmethod
    def format(cls, template_name: str, **kwargs: Any) -> str:
        """
        Load and format a prompt template with variables.

        Args:
            template_name: Name of template file (without .txt extension)
            **kwargs: Variables to interpolate into template

        Returns:
            Formatted prompt string
        """
        template = cls.load(template_name)
        return template.format(**kwargs)
