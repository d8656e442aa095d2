"""Application constants - all magic numbers and word lists centralized."""

# Question tokenization (evidence gathering)
SCOPE_STOP_WORDS = frozenset({
    "i", "need", "help", "with", "the", "a", "an", "for", "to", "on", "and", "of", "my",
    "quiz", "test", "study", "guide",
})
SCOPE_TOKEN_LIMIT = 8
LIKELY_SCOPE_LIMIT = 10

# Prompt tokenization (guide generation) adds instructional verbs and interrogatives
GUIDE_STOP_WORDS = SCOPE_STOP_WORDS | frozenset({
    "make", "create", "build", "please", "me", "what", "should", "could", "would", "can",
    "how", "when", "where", "why", "which", "tell",
})
GUIDE_TOKEN_LIMIT = 10

# Labels that can never become a topic
JUNK_TOPIC_WORDS = frozenset({
    "what", "should", "could", "would", "can", "how", "when", "where", "why", "which",
    "make", "create", "build", "study", "guide", "quiz", "test",
})

# Words too broad to anchor a legacy plan on their own
GENERIC_TOPIC_WORDS = frozenset({"algebra", "math", "mathematics", "general", "topic", "concept"})

# Concept hints from assignment titles
CONCEPT_STOP_WORDS = frozenset({
    "the", "a", "an", "for", "to", "and", "of", "in", "on", "with",
    "unit", "chapter", "project", "assignment", "quiz", "test", "lab",
})
DEFAULT_CONCEPT = "Core course concepts"
FOUNDATIONAL_CONCEPT = "Foundational review"

# Evidence caps
MATERIALS_RESPONSE_LIMIT = 8
MATERIALS_CONTEXT_LIMIT = 12
WEAK_SIGNAL_LIMIT = 5
WEAK_SIGNAL_THRESHOLD_PCT = 80
ANNOUNCEMENT_CUE_LIMIT = 2
REVIEW_TOKENS = ("review", "study")
ANNOUNCEMENT_TOKENS = ("quiz", "review")

# Topic scope
TOPIC_LIMIT = 8
WEAK_TOPIC_LIMIT = 4
WEAK_TOPIC_RATIO = 0.8
SOURCES_USED_LIMIT = 12

# Guide context compaction
UPLOADED_MATERIAL_LIMIT = 8
MATERIAL_TITLE_CHARS = 120
MATERIAL_CONTENT_CHARS = 1500
MAX_GUIDE_IMAGES = 5

# Grade bands (focus scorer and grade signals)
SCORE_LOW_CUTOFF = 75
SCORE_HIGH_CUTOFF = 88
PRIORITY_WEIGHTS = {"high": 3, "medium": 2, "low": 1}
PRIORITY_MINUTES = {"high": 180, "medium": 120, "low": 75}

# Dashboard
UPCOMING_ASSIGNMENT_LIMIT = 20

# Unit concepts
LOW_SIGNAL_PHRASES = ("not enough data", "no assignment", "insufficient", "need more", "unknown")
UNIT_CONCEPT_MIN = 3
UNIT_CONCEPT_MAX = 6
UNIT_ASSIGNMENT_LIMIT = 20
DEFAULT_UNIT_CONCEPTS = ["Core definitions", "Worked examples", "Common mistakes"]

# Canvas
CANVAS_PAGE_SIZE = 100
CANVAS_ANNOUNCEMENT_PAGE_SIZE = 50

# Study tools
EXISTING_QUESTION_LIMIT = 60

# Tutor
MAX_TUTOR_IMAGES = 5
TUTOR_HISTORY_LIMIT = 6
TUTOR_CONTEXT_CHARS = 2200
TUTOR_FOCUS_LIMIT = 4
TUTOR_CONFUSED_TURNS = 3
TUTOR_VAGUE_WORD_LIMIT = 10
TUTOR_MCQ_CONTEXT_CHARS = 900
TUTOR_OUTPUT_TOKENS = {"problem_set": 1000, "math": 520, "default": 360}
TUTOR_MCQ_OUTPUT_TOKENS = 220

# Study guide refinement chat
GUIDE_CHAT_OUTPUT_TOKENS = 240

# Conversational replies (tutor and guide chat)
CHAT_REASONING_EFFORT = "low"
