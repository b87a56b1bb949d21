from __future__ import annotations

from simplificator_tui.chat.presets import (
    FALLBACK_RESPONSE,
    PRESET_QA,
    PresetQA,
    find_matching_response,
    make_responder,
)


def test_keyword_match_is_case_insensitive():
    assert find_matching_response("Should we adopt GRAPHQL?") == PRESET_QA[0].answer


def test_kubernetes_keywords():
    assert find_matching_response("how do I deploy this") == PRESET_QA[1].answer
    assert find_matching_response("k8s or not") == PRESET_QA[1].answer


def test_first_matching_preset_wins():
    # "api" (GraphQL preset) and "docker" (Kubernetes preset) both match
    assert find_matching_response("docker for my api?") == PRESET_QA[0].answer


def test_fallback_when_nothing_matches():
    assert find_matching_response("hello there") == FALLBACK_RESPONSE


def test_preset_questions_answer_themselves():
    for qa in PRESET_QA:
        assert find_matching_response(qa.question) == qa.answer


def test_custom_table_via_make_responder():
    presets = (PresetQA(keywords=("monad",), question="Monads?", answer="Use a function."),)
    respond = make_responder(presets, fallback="No idea.")

    assert respond("what is a MONAD") == "Use a function."
    assert respond("graphql?") == "No idea."
