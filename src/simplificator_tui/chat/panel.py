"""ChatPanel widget — conversation with the Simplificator Manager persona."""
from __future__ import annotations

from rich.console import RenderableType
from rich.markdown import Markdown
from rich.markup import escape as escape_markup
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.message import Message
from textual.suggester import SuggestFromList
from textual.widgets import Input, RichLog, Static

from .commands import command_suggestions
from simplificator_tui.models import ChatMessage

# role -> (speaker label, rail colour); anything else renders as a local notice
_SPEAKERS: dict[str, tuple[str, str]] = {
    "user": ("you", "#4FB3D9"),
    "assistant": ("simplificator", "#9FC9C3"),
}

# (substring, label) checked in order; first hit wins
_BUSY_LABELS: tuple[tuple[str, str], ...] = (
    ("waiting for response", "riding the wave..."),
    ("streaming", "streaming..."),
    ("analyzing", "analyzing code..."),
    ("loading", "loading..."),
)

_WAVE_FRAMES = ("▁", "▂", "▃", "▄", "▅", "▆", "▇", "▆", "▅", "▄", "▃", "▂")


def _esc(value: object) -> str:
    return escape_markup(str(value))


class ChatPanel(Vertical):
    """Header, scrolling message log, one-line status and the chat input.

    The app owns the message list. While a reply streams it calls
    ``show_messages`` after every delta, so the log always shows the reply
    as received so far.
    """

    DEFAULT_CSS = """
    ChatPanel {
        height: 100%;
        background: #0F2E44;
        padding: 0 1;
    }
    ChatPanel > #chat-header {
        height: 1;
        color: #4FB3D9;
        text-style: bold;
        padding: 0 1;
    }
    ChatPanel > #chat-log {
        height: 1fr;
        border: round #1D4A66;
        background: #0F2E44;
        padding: 0 1;
    }
    ChatPanel > #chat-status {
        height: 1;
        color: #9FC9C3;
        padding: 0 1;
    }
    ChatPanel > #chat-input {
        height: 3;
        border: round #1D4A66;
        background: #0B2233;
        color: #EAF6F6;
    }
    ChatPanel > #chat-input:focus {
        border: round #4FB3D9;
    }
    """

    class Submit(Message):
        """Posted when the user enters a non-blank line."""

        def __init__(self, text: str) -> None:
            super().__init__()
            self.text = text

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._wave_tick = 0

    def compose(self) -> ComposeResult:
        yield Static("🌊 Simplificator", id="chat-header")
        yield RichLog(id="chat-log", wrap=True, markup=True)
        yield Static("[dim #9FC9C3]● idle[/]", id="chat-status")
        yield Input(
            placeholder="Ask how to keep it simple, or type /help",
            id="chat-input",
            suggester=SuggestFromList(command_suggestions(), case_sensitive=False),
        )

    def on_mount(self) -> None:
        self.query_one("#chat-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "chat-input":
            return
        event.stop()
        value = event.input.value
        if not value.strip():
            return
        event.input.value = ""
        self.post_message(self.Submit(value))

    @property
    def _log(self) -> RichLog:
        return self.query_one("#chat-log", RichLog)

    def set_header(self, mode: str, model: str | None = None) -> None:
        """Show the chat mode and, in llm mode, which model answers."""
        parts = ["[bold #4FB3D9]🌊 Simplificator[/]", f"[#9FC9C3]{_esc(mode)}[/]"]
        if mode == "llm" and model:
            parts.append(f"[#F2C14E]{_esc(model)}[/]")
        self.query_one("#chat-header", Static).update(" [dim #6E8C99]•[/] ".join(parts))

    def set_status(self, text: str) -> None:
        """Render a status string as an error, idle, busy or plain line."""
        status = self.query_one("#chat-status", Static)
        lower = text.lower()

        if "error" in lower or "failed" in lower:
            status.update(f"[bold #FF6F59]⚠ {_esc(text.replace('●', '').strip())}[/]")
        elif "timed out" in lower or "timeout" in lower:
            status.update("[bold #FF6F59]⚠ Timed out waiting for response[/]")
        elif "idle" in lower:
            status.update("[dim #9FC9C3]● idle[/]")
        else:
            label = next((label for key, label in _BUSY_LABELS if key in lower), None)
            if label is None:
                status.update(f"[#9FC9C3]{_esc(text)}[/]")
                return
            frame = _WAVE_FRAMES[self._wave_tick % len(_WAVE_FRAMES)]
            self._wave_tick += 1
            status.update(f"[bold #4FB3D9]{frame}[/] [#9FC9C3]{label}[/]")

    def _write_block(self, lines: list[RenderableType]) -> None:
        rich_log = self._log
        for line in lines:
            rich_log.write(line)
        rich_log.write("")

    def append_message(self, msg: ChatMessage) -> None:
        """Write one message: a speaker rail, then Markdown body (or a dim notice)."""
        stamp = _esc(msg.timestamp)
        speaker = _SPEAKERS.get(msg.role)
        if speaker is None:
            self._write_block([
                f"[dim #6E8C99]≈ {_esc(msg.role)} {stamp}[/]",
                f"[dim #9FC9C3]{_esc(msg.content)}[/]",
            ])
            return

        name, colour = speaker
        block: list[RenderableType] = [
            f"[{colour}]╭─[/] [bold {colour}]{name}[/] [dim #6E8C99]{stamp}[/]",
            Markdown(msg.content, hyperlinks=True),
        ]
        if msg.incomplete:
            block.append("[bold #FF6F59]╰─ ⚠ incomplete reply[/]")
        self._write_block(block)

    def append_markup(self, markup: str) -> None:
        """Write pre-formatted Rich markup (the help panel) as its own block."""
        self._write_block([markup])

    def show_messages(self, messages: list[ChatMessage]) -> None:
        """Redraw the whole conversation."""
        self._log.clear()
        for msg in messages:
            self.append_message(msg)

    def clear_log(self) -> None:
        self._log.clear()
