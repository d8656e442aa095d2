"""
Prompt construction for tutor replies.

The system prompt is assembled line by line from what the student's message
asks for: a study plan or concept help, a set number of practice problems,
links for a student who keeps getting stuck, or clarifying questions when the
request is too broad to teach.
"""

import json
import re
from dataclasses import dataclass
from typing import List, Optional

from shared.utils.constants import (
    TUTOR_CONFUSED_TURNS,
    TUTOR_CONTEXT_CHARS,
    TUTOR_FOCUS_LIMIT,
    TUTOR_HISTORY_LIMIT,
    TUTOR_MCQ_CONTEXT_CHARS,
    TUTOR_OUTPUT_TOKENS,
    TUTOR_VAGUE_WORD_LIMIT,
)
from tutor.models import TutorRequest

_PRACTICE_COUNT = re.compile(r"\b(\d{1,2})\s+(?:practice\s+)?problems?\b", re.IGNORECASE)
_PLANNING = re.compile(r"\b(plan|schedule|week|deadline|due|focus on first|what should i focus)\b", re.IGNORECASE)
_CONFUSION = re.compile(
    r"\b(still|again|confused|don't get|do not get|stuck|wrong|incorrect|not working)\b", re.IGNORECASE
)
_MATH = re.compile(
    r"\b(math|algebra|quadratic|equation|function|graph|factor|formula|roots|vertex|discriminant|complex)\b",
    re.IGNORECASE,
)
_PRACTICE = re.compile(r"\b(practice|quiz|multiple choice|mcq|test me|question me)\b", re.IGNORECASE)
_HELP_WORDS = re.compile(r"\b(help|stuck|struggling|confused|need help)\b", re.IGNORECASE)
_SPECIFIC_MATH = re.compile(
    r"\b(vertex|factoring|quadratic formula|discriminant|roots|graph|complete the square|complex)\b", re.IGNORECASE
)


@dataclass(frozen=True)
class TutorSignals:
    """What the latest message asks for."""
    practice_count: Optional[int]
    planning: bool
    math: bool
    practice: bool
    vague: bool
    extra_help_links: bool

    @property
    def problem_set(self) -> bool:
        return self.practice_count is not None and self.practice_count >= 2

    @property
    def wants_multiple_choice(self) -> bool:
        return self.practice and not self.planning and not self.problem_set


def detect_signals(request: TutorRequest) -> TutorSignals:
    question = request.question
    count_match = _PRACTICE_COUNT.search(question)
    planning = bool(_PLANNING.search(question))
    user_turns = sum(1 for turn in request.chat_history if turn.role == "user")
    confused = bool(_CONFUSION.search(question))
    vague = (
        not planning
        and len(question.split()) <= TUTOR_VAGUE_WORD_LIMIT
        and bool(_HELP_WORDS.search(question))
        and not _SPECIFIC_MATH.search(question)
    )
    return TutorSignals(
        practice_count=int(count_match.group(1)) if count_match else None,
        planning=planning,
        math=bool(_MATH.search(question)),
        practice=bool(_PRACTICE.search(question)),
        vague=vague,
        extra_help_links=not planning and (user_turns >= TUTOR_CONFUSED_TURNS or confused),
    )


def output_token_budget(signals: TutorSignals) -> int:
    if signals.problem_set:
        return TUTOR_OUTPUT_TOKENS["problem_set"]
    return TUTOR_OUTPUT_TOKENS["math"] if signals.math else TUTOR_OUTPUT_TOKENS["default"]


def build_system_prompt(signals: TutorSignals) -> str:
    lines = [
        "You are a real tutor in a one-on-one chat.",
        "Respond directly to the student's latest message, not a template.",
        "Sound human and specific, not robotic.",
        "If student asks a concept question, teach that concept with concrete examples.",
        "If student asks for tips, give practical tips for that exact topic.",
        "Only mention class schedules/deadlines when explicitly asked for planning.",
        "Keep response medium length (120-220 words), clear and helpful.",
        "Use readable structure with bold section titles and bullet points when useful.",
        "For math responses, format clearly with short step-by-step bullets.",
        "For math responses, put each equation on its own bullet line.",
        "For math responses, always include a **Final Answer** section.",
        "For chemistry/math notation, prefer readable Unicode superscripts/subscripts (example: SO₄²⁻, x², NO₃⁻).",
        "Avoid caret notation like ^2 or ^- unless absolutely unavoidable.",
        "When solving quadratics, show both roots when they exist.",
        "If complex numbers are involved, explicitly show `i = sqrt(-1)` usage.",
        "Never leave formulas incomplete or cut off.",
    ]

    if signals.planning:
        lines.append("For planning requests use: **Top Priority**, **This Week Plan**, **How to Study**.")
    else:
        lines.append("For concept tutoring use: **What This Means**, **Try This**, **Your Next Step**.")

    if signals.extra_help_links:
        lines.append(
            "Include **1 to 2 helpful links** from reputable learning resources "
            "(for example Khan Academy or a relevant YouTube lesson)."
        )
    else:
        lines.append("Do not include external links unless the student clearly needs extra help or asks for resources.")

    if signals.vague:
        lines.append(
            "If the request is broad/vague, first ask 2-4 clarifying questions about the exact subtopic "
            "and preferred help type (tips, walkthrough, or practice)."
        )
        lines.append("For vague prompts, keep explanation brief and prioritize questions that narrow scope.")
    else:
        lines.append("If the request is specific, directly teach that exact subtopic.")
        lines.append("For specific prompts, include one concrete mini-example.")

    if signals.problem_set:
        count = signals.practice_count
        lines.append(
            f"The student asked for {count} practice problems. Provide exactly {count} complete problems, "
            f"numbered 1-{count}, each with a full answer and brief solution steps."
        )
    else:
        lines.append("If providing practice, include fully-formed questions and complete answers.")

    lines.append("Always include at least one check-in question tailored to the user's message.")
    lines.append("Do not output JSON. Return plain markdown text only.")
    return " ".join(lines)


def _yes_no(flag: bool) -> str:
    return "yes" if flag else "no"


def build_user_prompt(request: TutorRequest, signals: TutorSignals) -> str:
    history = [turn.model_dump() for turn in request.chat_history[-TUTOR_HISTORY_LIMIT:]]
    lines: List[str] = [
        f"Subject: {request.subject}",
        f"Student message: {request.question}",
        f"Mode: {'planning' if signals.planning else 'concept tutoring'}",
        f"Math question: {_yes_no(signals.math)}",
        f"Vague request: {_yes_no(signals.vague)}",
        f"Needs extra-help links: {_yes_no(signals.extra_help_links)}",
        f"Recent chat history: {json.dumps(history)}",
    ]
    # Schedule context and focus rankings only matter when the student asks for a plan
    if signals.planning:
        focus = [item.model_dump() for item in request.focus_recommendations[:TUTOR_FOCUS_LIMIT]]
        lines.append(f"Context: {(request.context or '')[:TUTOR_CONTEXT_CHARS]}")
        lines.append(f"Focus recommendations: {json.dumps(focus)}")
    lines.append(f"Image count: {len(request.images)}")
    return "\n".join(lines)


def build_multiple_choice_prompt(question: str, reply: str) -> str:
    return "\n".join([
        "Create one multiple-choice practice problem tailored to the student's exact topic.",
        "Return exactly 4 choices and one correct index.",
        "Keep wording clear for high school level unless user asks otherwise.",
        f"Student message: {question}",
        f"Tutor response context: {reply[:TUTOR_MCQ_CONTEXT_CHARS]}",
    ])
