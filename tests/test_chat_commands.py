from __future__ import annotations

import pytest

from simplificator_tui.chat.commands import (
    COMMANDS,
    command_suggestions,
    format_command_hint,
    format_help,
    lookup,
    parse_input,
)


class TestParseInput:
    def test_plain_message(self):
        parsed = parse_input("is kafka overkill?")
        assert parsed.is_command is False
        assert parsed.name == ""
        assert parsed.raw == "is kafka overkill?"

    def test_command_with_args(self):
        parsed = parse_input("/mode scripted")
        assert parsed.is_command is True
        assert parsed.name == "mode"
        assert parsed.args == "scripted"

    def test_command_name_is_lowercased(self):
        assert parse_input("/HELP").name == "help"

    @pytest.mark.parametrize("raw", ["/exit", "/q", "/quit", "/Q"])
    def test_quit_aliases(self, raw):
        assert parse_input(raw).name == "quit"

    def test_slash_followed_by_space_has_no_name(self):
        parsed = parse_input("/ mode")
        assert parsed.is_command is True
        assert parsed.name == ""
        assert parsed.args == "mode"


class TestLookup:
    def test_alias_resolves_to_command(self):
        assert lookup("exit").name == "quit"

    def test_unknown(self):
        assert lookup("deploy") is None

    def test_usage_includes_args(self):
        assert lookup("presets").usage == "/presets [n]"
        assert lookup("stats").usage == "/stats"


class TestCommandHints:
    def test_non_command_has_no_hint(self):
        assert format_command_hint("hello") is None

    def test_bare_slash(self):
        assert "Slash command mode" in format_command_hint("/")

    def test_known_command_shows_summary(self):
        assert format_command_hint("/stats") == f"/stats — {lookup('stats').summary}"

    def test_usage_once_args_start(self):
        assert format_command_hint("/mode ") == "Usage: /mode [llm|scripted]"

    def test_prefix_lists_matches(self):
        hint = format_command_hint("/re")
        assert hint.startswith("Matches:")
        assert "/review" in hint
        assert "/reviews" in hint

    def test_unknown_command(self):
        assert "Unknown command" in format_command_hint("/zzz")


def test_suggestions_cover_commands_and_aliases():
    suggestions = command_suggestions()
    for command in COMMANDS:
        assert f"/{command.name}" in suggestions
    assert "/exit" in suggestions
    assert "/q" in suggestions


def test_help_lists_commands_and_keys():
    text = format_help()
    for name in ("help", "review", "reviews", "stats", "mode", "presets", "clear", "quit"):
        assert f"/{name}" in text
    assert r"\[llm|scripted]" in text
    assert "ctrl+n" in text
    assert "ctrl+t" in text
