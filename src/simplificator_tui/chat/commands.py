"""Slash commands understood by the chat input."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SlashCommand:
    name: str
    summary: str
    args: str = ""  # usage hint for arguments, e.g. "[llm|scripted]"
    aliases: tuple[str, ...] = ()

    @property
    def usage(self) -> str:
        return f"/{self.name} {self.args}".rstrip()


COMMANDS: tuple[SlashCommand, ...] = (
    SlashCommand("help", "Show commands and keys"),
    SlashCommand("review", "Submit code for an over-engineering review"),
    SlashCommand("reviews", "Reload the review list"),
    SlashCommand("stats", "Show review count, average score and trend"),
    SlashCommand("mode", "Switch chat mode (no argument toggles)", "[llm|scripted]"),
    SlashCommand("presets", "List quick questions, or ask one by number", "[n]"),
    SlashCommand("clear", "Clear the conversation"),
    SlashCommand("quit", "Exit the app", aliases=("exit", "q")),
)

_BY_NAME = {command.name: command for command in COMMANDS}
_ALIASES = {alias: command.name for command in COMMANDS for alias in command.aliases}


@dataclass
class ParsedInput:
    is_command: bool
    name: str  # canonical command name, lowercase; "" for chat messages
    args: str
    raw: str


def resolve_name(typed: str) -> str:
    """Map an alias to its command name; unknown names pass through lowercased."""
    typed = typed.lower()
    return _ALIASES.get(typed, typed)


def lookup(name: str) -> SlashCommand | None:
    return _BY_NAME.get(resolve_name(name))


def command_suggestions() -> tuple[str, ...]:
    """Every slash spelling, aliases included, for the input's autocomplete."""
    spellings: list[str] = []
    for command in COMMANDS:
        spellings.append(f"/{command.name}")
        spellings.extend(f"/{alias}" for alias in command.aliases)
    return tuple(spellings)


def parse_input(raw: str) -> ParsedInput:
    """Split ``/name args`` input; anything not starting with ``/`` is chat."""
    if not raw.startswith("/"):
        return ParsedInput(is_command=False, name="", args="", raw=raw)

    head, _, tail = raw[1:].partition(" ")
    if not head:
        return ParsedInput(is_command=True, name="", args=tail.strip(), raw=raw)
    return ParsedInput(is_command=True, name=resolve_name(head.strip()), args=tail.strip(), raw=raw)


def format_command_hint(raw: str) -> str | None:
    """Status-line hint while the user is typing a slash command."""
    if not raw.startswith("/"):
        return None
    body = raw[1:]
    if not body:
        return "Slash command mode. Press Tab to autocomplete, Enter to run."

    typed, space, _ = body.partition(" ")
    command = lookup(typed)
    if command is not None:
        if space:
            return f"Usage: {command.usage}"
        return f"{command.usage} — {command.summary}"

    prefix = typed.lower()
    matches = [f"/{c.name}" for c in COMMANDS if c.name.startswith(prefix)]
    if prefix and matches:
        return f"Matches: {', '.join(matches[:5])}"
    return "Unknown command. Type /help for all commands."


_KEYS = (
    ("ctrl+n", "New review"),
    ("ctrl+r", "Reload reviews"),
    ("ctrl+t", "Toggle llm / scripted chat"),
    ("ctrl+q", "Quit"),
)


def format_help() -> str:
    """Rich markup help panel listing commands and key bindings."""
    width = max(len(command.usage) for command in COMMANDS)
    rule = "[dim #6E8C99]" + "─" * (width + 24) + "[/]"

    lines = ["[bold #4FB3D9]Slash commands[/]", rule]
    for command in COMMANDS:
        aliases = ""
        if command.aliases:
            aliases = " [dim](" + ", ".join(f"/{a}" for a in command.aliases) + ")[/]"
        usage = command.usage.replace("[", r"\[")
        pad = " " * (width - len(command.usage))
        lines.append(f"  [bold #4FB3D9]{usage}[/]{pad}  [#9FC9C3]{command.summary}[/]{aliases}")

    lines += ["", "[bold #4FB3D9]Keys[/]", rule]
    lines += [f"  [bold #F2C14E]{key:<6}[/]  [#9FC9C3]{action}[/]" for key, action in _KEYS]
    return "\n".join(lines)
