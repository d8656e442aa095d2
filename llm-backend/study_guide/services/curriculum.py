"""Keyword-driven concept extraction and course-level curriculum inference."""
import re
from typing import List, Sequence, Tuple

from shared.utils.constants import JUNK_TOPIC_WORDS
from shared.utils.text import dedupe_labels

_QUADRATIC = r"\b(quadratic|quadratics|qudartic|qudratic)\b"

# (pattern, concept) in output order
PROMPT_CONCEPTS: Tuple[Tuple[re.Pattern, str], ...] = (
    (re.compile(_QUADRATIC), "Quadratic functions"),
    (re.compile(r"\bvertex\b"), "Vertex and axis of symmetry"),
    (re.compile(r"\bfactor(ing)?\b"), "Factoring quadratics"),
    (re.compile(r"\bcomplete(ing)? the square\b"), "Completing the square"),
    (re.compile(r"\bquadratic formula\b"), "Quadratic formula"),
    (re.compile(r"\bdiscriminant\b"), "Discriminant and number of roots"),
    (re.compile(r"\bcomplex\b"), "Complex roots"),
)

ALGEBRA_1_TOPICS = ["Linear equations", "Systems of equations", "Exponents and polynomials"]
ALGEBRA_2_QUADRATIC_TOPICS = [
    "Quadratic functions",
    "Graphing parabolas",
    "Factoring quadratics",
    "Completing the square",
    "Quadratic formula and discriminant",
]
ALGEBRA_2_TOPICS = ["Quadratic functions", "Polynomial operations", "Rational expressions"]
CHEMISTRY_TOPICS = ["Stoichiometry", "Chemical reactions", "Gas laws"]
BIOLOGY_TOPICS = ["Cell processes", "Genetics", "Ecology interactions"]
HUMANITIES_TOPICS = ["Key terms and events", "Cause and effect analysis", "Source evidence usage"]
DEFAULT_TOPICS = ["Core vocabulary", "Primary problem types", "Common assessment patterns"]


def is_junk_topic(label: str) -> bool:
    """Blank labels and bare interrogatives/instructional verbs are never topics."""
    normalized = (label or "").strip().lower()
    return not normalized or normalized in JUNK_TOPIC_WORDS


def extract_prompt_concepts(prompt: str) -> List[str]:
    text = (prompt or "").lower()
    return dedupe_labels(concept for pattern, concept in PROMPT_CONCEPTS if pattern.search(text))


def residual_prompt_tokens(tokens: Sequence[str]) -> List[str]:
    """Tokens the concept table did not already turn into a concept."""
    return [token for token in tokens if not extract_prompt_concepts(token)]


def infer_curriculum_topics(course_name: str, prompt: str) -> List[str]:
    """
    Typical assessed topics for a course level.

    Algebra 2 is checked before Algebra 1 so "algebra ii" is not read as
    "algebra i" followed by a stray letter.
    """
    text = f"{course_name} {prompt}".lower()
    if re.search(r"\balgebra (2|ii)\b", text):
        if re.search(_QUADRATIC, text):
            return list(ALGEBRA_2_QUADRATIC_TOPICS)
        return list(ALGEBRA_2_TOPICS)
    if re.search(r"\balgebra (1|i)\b", text):
        return list(ALGEBRA_1_TOPICS)
    if "chem" in text:
        return list(CHEMISTRY_TOPICS)
    if "bio" in text:
        return list(BIOLOGY_TOPICS)
    if any(word in text for word in ("history", "government", "civics")):
        return list(HUMANITIES_TOPICS)
    return list(DEFAULT_TOPICS)
