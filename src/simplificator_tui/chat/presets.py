"""Scripted keyword responder used when the chat runs without the gateway."""
from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

Responder = Callable[[str], str]


@dataclass(frozen=True)
class PresetQA:
    keywords: tuple[str, ...]
    question: str
    answer: str


PRESET_QA: tuple[PresetQA, ...] = (
    PresetQA(
        keywords=("graphql", "graph", "rest", "api"),
        question="Should I use GraphQL?",
        answer=(
            "For your small app? REST is simpler. GraphQL adds complexity you "
            "don't need yet. Ship first, optimize later. 🚀"
        ),
    ),
    PresetQA(
        keywords=("kubernetes", "k8s", "docker", "container", "deploy"),
        question="Do I need Kubernetes?",
        answer=(
            "Probably not. Start with Vercel/Render. One-click deploy. K8s when "
            "you have the problem, not before. Easy, relax. 😎"
        ),
    ),
    PresetQA(
        keywords=("mvp", "minimum", "simple", "start", "begin"),
        question="What's the simplest MVP approach?",
        answer=(
            "Monolith + Postgres + Deploy. That's it. Add complexity when "
            "customers demand it, not sooner. Faut savoir rider la vague du "
            "simple. 🌊"
        ),
    ),
)

FALLBACK_RESPONSE = (
    "Great question! The simplest approach is usually the best. What problem "
    "are you really solving? Remember: YAGNI = You Ain't Gonna Need It. 😎"
)


def find_matching_response(
    user_text: str,
    presets: Sequence[PresetQA] = PRESET_QA,
    fallback: str = FALLBACK_RESPONSE,
) -> str:
    """Answer with the first preset whose keyword appears in the text."""
    lowered = user_text.lower()
    for qa in presets:
        if any(keyword in lowered for keyword in qa.keywords):
            return qa.answer
    return fallback


def make_responder(presets: Sequence[PresetQA], fallback: str = FALLBACK_RESPONSE) -> Responder:
    """Bind a custom preset table into a ``Responder``."""

    def respond(user_text: str) -> str:
        return find_matching_response(user_text, presets, fallback)

    return respond
