"""Rewrite caret exponents and chemical formulas in tutor replies as Unicode."""
import re

_SUBSCRIPT = str.maketrans("0123456789", "₀₁₂₃₄₅₆₇₈₉")
_SUPERSCRIPT = str.maketrans("0123456789+-", "⁰¹²³⁴⁵⁶⁷⁸⁹⁺⁻")
_ASCII_SIGNS = str.maketrans("⁺⁻", "+-")

_CARET = re.compile(r"\^([0-9+-]+)")
# ASCII word boundaries: superscript digits and signs are not word characters here
_TOKEN = re.compile(r"\b[A-Za-z][A-Za-z0-9()+\-⁺⁻]{0,24}\b", re.ASCII)
_UPPER = re.compile(r"[A-Z]")
_DIGIT = re.compile(r"[0-9]")
_SIGN = re.compile(r"[+\-⁺⁻]")
_TRAILING_CHARGE = re.compile(r"([0-9]*)([+\-⁺⁻])$")
_COUNT = re.compile(r"([A-Za-z)])([0-9]+)")


def _superscript(value: str) -> str:
    return value.translate(_SUPERSCRIPT)


def _chemical(match: re.Match) -> str:
    token = match.group(0)
    if not (_UPPER.search(token) and (_DIGIT.search(token) or _SIGN.search(token))):
        return token
    token = _TRAILING_CHARGE.sub(lambda m: _superscript((m.group(1) + m.group(2)).translate(_ASCII_SIGNS)), token)
    return _COUNT.sub(lambda m: m.group(1) + m.group(2).translate(_SUBSCRIPT), token)


def normalize_notation(text: str) -> str:
    """x^2 becomes x², CO2 becomes CO₂, SO4^2- becomes SO₄²⁻."""
    text = _CARET.sub(lambda m: _superscript(m.group(1)), text)
    return _TOKEN.sub(_chemical, text)
