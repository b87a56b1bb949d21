from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum


@dataclass
class ChatMessage:
    role: str  # "user", "assistant", "system"
    content: str
    timestamp: str  # HH:MM display format
    incomplete: bool = False  # stream failed before the reply finished


class ScoreBand(Enum):
    SIMPLE = "simple"
    MEDIUM = "medium"
    OVER_ENGINEERED = "over-engineered"


BAND_LABELS: dict[ScoreBand, str] = {
    ScoreBand.SIMPLE: "✅ Simple",
    ScoreBand.MEDIUM: "🟡 Medium",
    ScoreBand.OVER_ENGINEERED: "🔴 Over-engineered",
}

BAND_STYLES: dict[ScoreBand, str] = {
    ScoreBand.SIMPLE: "#5BD6A0",
    ScoreBand.MEDIUM: "#F2C14E",
    ScoreBand.OVER_ENGINEERED: "#FF6F59",
}


def score_band(score: int) -> ScoreBand:
    """0-3 simple, 4-6 medium, 7-10 over-engineered."""
    if score <= 3:
        return ScoreBand.SIMPLE
    if score <= 6:
        return ScoreBand.MEDIUM
    return ScoreBand.OVER_ENGINEERED


DEFAULT_SCORE = 5
MAX_TITLE_CHARS = 100
MAX_SUGGESTION_CHARS = 300
MAX_SUGGESTIONS = 3

DEFAULT_SUGGESTIONS = [
    "Start with a monolith on Vercel or Railway - simple deployment",
    "Use Postgres + Supabase instead of complex infrastructure",
    "Ship MVP first, optimize later when you have real users",
]


@dataclass
class ReviewResult:
    score: int
    title: str
    suggestions: list[str] = field(default_factory=list)

    @property
    def band(self) -> ScoreBand:
        return score_band(self.score)


@dataclass
class Review:
    id: int
    title: str
    code_snippet: str
    description: str
    score: int
    created_at: str  # ISO-8601, UTC

    @property
    def band(self) -> ScoreBand:
        return score_band(self.score)


@dataclass
class ReviewStats:
    total: int
    average: float
    trend: str  # "none" | "stable" | "improving" | "worsening"


def _coerce_score(value: object) -> int:
    if isinstance(value, bool):
        return DEFAULT_SCORE
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return DEFAULT_SCORE
    if not math.isfinite(number):
        return DEFAULT_SCORE
    # Half-up rounding: 4.5 → 5, not banker's 4.
    rounded = math.floor(number + 0.5)
    return max(0, min(10, rounded))


def sanitize_review(raw: object, description: str) -> ReviewResult:
    """Clamp and truncate a scorer payload into a displayable ReviewResult.

    Missing or junk fields fall back to defaults instead of raising:
    score → 5, title → start of the description, suggestions → garage-mode
    defaults.
    """
    data = raw if isinstance(raw, dict) else {}

    title_raw = data.get("title")
    title = str(title_raw) if title_raw else description[:50]

    suggestions_raw = data.get("suggestions")
    if isinstance(suggestions_raw, list):
        suggestions = [
            str(item)[:MAX_SUGGESTION_CHARS] for item in suggestions_raw[:MAX_SUGGESTIONS]
        ]
    else:
        suggestions = list(DEFAULT_SUGGESTIONS)

    return ReviewResult(
        score=_coerce_score(data.get("score")),
        title=title[:MAX_TITLE_CHARS],
        suggestions=suggestions,
    )


CODE_MIN_CHARS = 10
CODE_MAX_CHARS = 5000
DESCRIPTION_MIN_CHARS = 10
DESCRIPTION_MAX_CHARS = 1000


def validate_submission(code: str, description: str) -> dict[str, str]:
    """Return field → error message; empty dict when the submission is valid."""
    errors: dict[str, str] = {}

    code = code.strip()
    if len(code) < CODE_MIN_CHARS:
        errors["code"] = f"Code snippet must be at least {CODE_MIN_CHARS} characters"
    elif len(code) > CODE_MAX_CHARS:
        errors["code"] = f"Code snippet must be less than {CODE_MAX_CHARS} characters"

    description = description.strip()
    if len(description) < DESCRIPTION_MIN_CHARS:
        errors["description"] = (
            f"Description must be at least {DESCRIPTION_MIN_CHARS} characters"
        )
    elif len(description) > DESCRIPTION_MAX_CHARS:
        errors["description"] = (
            f"Description must be less than {DESCRIPTION_MAX_CHARS} characters"
        )

    return errors


def _mean(scores: list[int]) -> float:
    return sum(scores) / len(scores)


def compute_review_stats(reviews: list[Review]) -> ReviewStats:
    """Total, average score and trend for reviews ordered newest first.

    The trend compares the newer half against the older half; a drop of more
    than half a point counts as improving (less over-engineering).
    """
    if not reviews:
        return ReviewStats(total=0, average=0.0, trend="none")

    scores = [review.score for review in reviews]
    total = len(scores)
    average = _mean(scores)
    if total < 2:
        return ReviewStats(total=total, average=average, trend="none")

    mid = total // 2
    recent_avg = _mean(scores[:mid])
    older_avg = _mean(scores[mid:])

    trend = "stable"
    if recent_avg < older_avg - 0.5:
        trend = "improving"
    if recent_avg > older_avg + 0.5:
        trend = "worsening"
    return ReviewStats(total=total, average=average, trend=trend)
