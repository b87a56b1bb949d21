"""SimplificatorApp — main Textual TUI: review list, persona chat, stats footer."""
from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime
from functools import partial
import logging
import threading

from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.theme import Theme
from textual.widgets import Footer, Header, Input

from .chat import ChatState
from .chat.commands import format_command_hint, format_help, parse_input
from .chat.event_handlers import ChatReplyProcessor
from .chat.persona import GREETING
from .chat.presets import PRESET_QA, Responder, find_matching_response
from .chat.state import CHAT_MODES
from .chat.stream_assembler import ErrorKind
from .client import GatewayClient, GatewayError
from .config import GatewayConfig, load_config
from .models import BAND_LABELS, ChatMessage, Review, ReviewResult, compute_review_stats
from .reviews import ReviewStore, close_db, init_db
from .widgets import ChatPanel, ReviewModal, ReviewPanel, SummaryBar

logger = logging.getLogger(__name__)


class SimplificatorApp(App[None]):
    """Over-engineering reviews and the Simplificator Manager chat.

    Left: past reviews, newest first. Right: chat, streamed from the AI
    gateway in ``llm`` mode or answered from the keyword table in
    ``scripted`` mode. Footer: review count, average score and trend.
    """

    TITLE = "🌊 Simplificator"
    SCRIPTED_REPLY_DELAY_SECONDS = 0.5
    BINDINGS = [
        ("ctrl+n", "new_review", "New Review"),
        ("ctrl+r", "refresh", "Refresh"),
        ("ctrl+t", "toggle_mode", "Chat Mode"),
        ("ctrl+q", "quit", "Quit"),
    ]

    CSS = """
Screen {
    background: #0B2233;
    color: #EAF6F6;
}
Header {
    background: #0B2233;
    color: #4FB3D9;
    text-style: bold;
    border-bottom: solid #1D4A66;
}
#main-content {
    height: 1fr;
    padding: 1 1 0 1;
}
#left-panel {
    width: 2fr;
}
#right-panel {
    width: 3fr;
    border-left: solid #1D4A66;
    background: #0F2E44;
    padding: 0 0 0 1;
}
ReviewPanel {
    background: #0F2E44;
}
ChatPanel {
    background: #0F2E44;
}
SummaryBar {
    height: 3;
    background: #0F2E44;
    color: #EAF6F6;
    border-top: solid #1D4A66;
    padding: 0 2;
    dock: bottom;
}
Footer {
    background: #0B2233;
    color: #9FC9C3;
    border-top: solid #1D4A66;
}
"""

    def __init__(
        self,
        config: GatewayConfig | None = None,
        responder: Responder = find_matching_response,
    ) -> None:
        super().__init__()
        self._config_override = config
        self._responder = responder
        self._db = None
        self._store: ReviewStore | None = None
        self._reviews: list[Review] = []
        self._chat_state = ChatState()

    def compose(self) -> ComposeResult:
        """Layout: Header → Horizontal(ReviewPanel + ChatPanel) → SummaryBar → Footer."""
        yield Header()
        with Horizontal(id="main-content"):
            with Vertical(id="left-panel"):
                yield ReviewPanel()
            with Vertical(id="right-panel"):
                yield ChatPanel()
        yield SummaryBar()
        yield Footer()

    def on_mount(self) -> None:
        """Load config, create client, open the review store."""
        logger.info("SimplificatorApp mounted")
        self._ui_thread_id = threading.get_ident()
        self._config = self._config_override or load_config()
        self._client = GatewayClient(self._config)
        self._replies = ChatReplyProcessor(
            on_assistant_update=self._dispatch_ui(self._on_assistant_stream_update),
            on_assistant_final=self._dispatch_ui(self._on_assistant_stream_final),
            on_assistant_error=self._dispatch_ui(self._on_assistant_stream_error),
            on_status=self._dispatch_ui(self._on_chat_status),
        )
        self.register_theme(Theme(
            name="surf",
            primary="#4FB3D9",
            background="#0B2233",
            surface="#0F2E44",
            accent="#4FB3D9",
            warning="#F2C14E",
            error="#FF6F59",
            success="#5BD6A0",
            secondary="#F4E1C1",
            foreground="#EAF6F6",
            panel="#0F2E44",
        ))
        self.theme = "surf"

        if not self._config.api_key:
            logger.info("No API key configured — starting in scripted chat mode")
            self._chat_state.mode = "scripted"

        chat_panel = self.query_one(ChatPanel)
        chat_panel.set_header(self._chat_state.mode, self._config.model)
        self.query_one(SummaryBar).set_mode(self._chat_state.mode)
        greeting = ChatMessage(role="assistant", content=GREETING, timestamp=self._now_hhmm())
        self._chat_state.messages.append(greeting)
        chat_panel.show_messages(self._chat_state.messages)

        self.run_worker(self._open_review_store, exclusive=True, group="review_store")

    async def on_unmount(self) -> None:
        client = getattr(self, "_client", None)
        if client is not None:
            client.close()
        if self._db is not None:
            await close_db(self._db)
            self._db = None

    def _dispatch_ui(self, callback: Callable[..., None]) -> Callable[..., None]:
        """Wrap a UI callback so worker threads hop onto the app thread."""

        def dispatch(*args: object) -> None:
            if threading.get_ident() == self._ui_thread_id:
                callback(*args)
            else:
                self.call_from_thread(callback, *args)

        return dispatch

    @staticmethod
    def _now_hhmm() -> str:
        return datetime.now().strftime("%H:%M")

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    async def _open_review_store(self) -> None:
        try:
            self._db = await init_db(self._config.db_path)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Review database unavailable: %s", exc)
            self.query_one(SummaryBar).set_error(f"Review storage unavailable: {exc}")
            return
        self._store = ReviewStore(self._db)
        await self._refresh_reviews()

    async def _refresh_reviews(self) -> None:
        """Reload reviews, newest first, and recompute the footer stats."""
        if self._store is None:
            return
        try:
            reviews = await self._store.list_reviews()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to load reviews: %s", exc)
            self.query_one(ReviewPanel).show_error(f"Failed to load reviews: {exc}")
            return

        self._reviews = reviews
        self.query_one(ReviewPanel).show_reviews(reviews)
        self.query_one(SummaryBar).update_stats(compute_review_stats(reviews))

    def action_refresh(self) -> None:
        self.run_worker(self._refresh_reviews, exclusive=True, group="review_refresh")

    def action_new_review(self) -> None:
        self.push_screen(ReviewModal(), callback=self._on_review_submitted)

    def _on_review_submitted(self, submission: tuple[str, str] | None) -> None:
        if submission is None:
            return
        code, description = submission
        self.run_worker(
            partial(self._analyze_submission, code, description),
            exclusive=True,
            group="review_analyze",
        )

    async def _analyze_submission(self, code: str, description: str) -> None:
        """Score a submission, post the verdict in chat, then persist it."""
        chat_panel = self.query_one(ChatPanel)
        chat_panel.set_status("● analyzing code...")
        self._append_system_message("The Simplificator Manager is reviewing your code...")

        try:
            result = await asyncio.to_thread(self._client.review_code, code, description)
        except (GatewayError, ConnectionError) as exc:
            logger.warning("Review failed: %s", exc)
            self._append_system_message(f"Review failed: {exc}")
            chat_panel.set_status(f"error: {exc}")
            return

        self._append_assistant_message(self._format_review_result(result))

        if self._store is None:
            self._append_system_message("Analysis complete but review storage is unavailable.")
        else:
            try:
                await self._store.insert_review(
                    title=result.title,
                    code_snippet=code,
                    description=description,
                    score=result.score,
                )
            except Exception as exc:  # noqa: BLE001
                logger.warning("Failed to save review: %s", exc)
                self._append_system_message("Analysis complete but failed to save to database.")
            else:
                await self._refresh_reviews()
        chat_panel.set_status("● idle")

    @staticmethod
    def _format_review_result(result: ReviewResult) -> str:
        lines = [f"**{result.title}** — {result.score}/10 {BAND_LABELS[result.band]}", ""]
        lines.extend(
            f"{index}. {suggestion}" for index, suggestion in enumerate(result.suggestions, start=1)
        )
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id != "chat-input":
            return
        hint = format_command_hint(event.value)
        chat_panel = self.query_one(ChatPanel)
        if hint:
            chat_panel.set_status(hint)
        elif not self._chat_state.is_busy:
            chat_panel.set_status("● idle")

    def on_chat_panel_submit(self, event: ChatPanel.Submit) -> None:
        text = event.text.strip()
        if not text:
            return
        parsed = parse_input(text)
        if parsed.is_command:
            self._run_chat_command(parsed.name, parsed.args)
            return
        self._send_user_chat_message(text)

    def _send_user_chat_message(self, text: str) -> None:
        state = self._chat_state
        self._abandon_streaming_reply()
        message = ChatMessage(role="user", content=text, timestamp=self._now_hhmm())
        state.messages.append(message)
        self.query_one(ChatPanel).append_message(message)
        state.is_busy = True

        if state.mode == "scripted":
            self.run_worker(partial(self._scripted_reply, text), group="chat_reply")
        else:
            self.run_worker(self._stream_reply, exclusive=True, group="chat_reply")

    def _abandon_streaming_reply(self) -> None:
        """Stop a reply that is still streaming and mark what arrived as incomplete."""
        state = self._chat_state
        idx = state.stream_message_index
        self._replies.cancel()
        state.stream_message_index = None
        if idx is None:
            return
        state.messages[idx].incomplete = True
        self.query_one(ChatPanel).show_messages(state.messages)

    async def _scripted_reply(self, text: str) -> None:
        self._chat_state.is_busy = True
        self.query_one(ChatPanel).set_status("● waiting for response...")
        await asyncio.sleep(self.SCRIPTED_REPLY_DELAY_SECONDS)
        self._append_assistant_message(self._responder(text))
        self._chat_state.is_busy = False
        self.query_one(ChatPanel).set_status("● idle")

    async def _stream_reply(self) -> None:
        """Stream the persona reply for the current history in a worker thread."""
        state = self._chat_state
        history = state.history_for_gateway()
        state.is_busy = True
        state.error = None
        state.stream_message_index = None

        assembler = self._replies.begin_reply()
        try:
            await asyncio.to_thread(
                self._client.stream_chat,
                history,
                assembler,
                is_cancelled=lambda: not self._replies.is_active(assembler),
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("Chat stream crashed: %s", exc)
            assembler.fail(ErrorKind.TRANSPORT, str(exc) or type(exc).__name__)

    def _on_chat_status(self, status: str) -> None:
        if status == "error":
            detail = self._chat_state.error or "unknown"
            self.query_one(ChatPanel).set_status(f"error: {detail}")
            return
        self.query_one(ChatPanel).set_status(f"● {status}")

    def _on_assistant_stream_update(self, text: str) -> None:
        state = self._chat_state
        idx = state.stream_message_index
        if idx is None:
            state.messages.append(ChatMessage(role="assistant", content=text, timestamp=self._now_hhmm()))
            state.stream_message_index = len(state.messages) - 1
        else:
            state.messages[idx].content = text
        self.query_one(ChatPanel).show_messages(state.messages)

    def _on_assistant_stream_final(self, text: str) -> None:
        state = self._chat_state
        idx = state.stream_message_index
        state.stream_message_index = None
        state.is_busy = False
        if idx is None:
            if not text:
                self._append_system_message("The gateway returned an empty reply.")
                return
            state.messages.append(ChatMessage(role="assistant", content=text, timestamp=self._now_hhmm()))
        else:
            state.messages[idx].content = text
        self.query_one(ChatPanel).show_messages(state.messages)

    def _on_assistant_stream_error(self, text: str, kind: ErrorKind, detail: str) -> None:
        state = self._chat_state
        idx = state.stream_message_index
        state.stream_message_index = None
        state.is_busy = False
        state.error = detail
        if idx is not None:
            state.messages[idx].content = text
            state.messages[idx].incomplete = True

        if kind is ErrorKind.REQUEST:
            notice = f"Chat request failed: {detail}"
        else:
            notice = f"Connection lost mid-reply: {detail}"
        state.messages.append(ChatMessage(role="system", content=notice, timestamp=self._now_hhmm()))
        self.query_one(ChatPanel).show_messages(state.messages)

    def _append_system_message(self, content: str) -> None:
        """Append a local system message to the chat log/state."""
        message = ChatMessage(role="system", content=content, timestamp=self._now_hhmm())
        self._chat_state.messages.append(message)
        self.query_one(ChatPanel).append_message(message)

    def _append_assistant_message(self, content: str) -> None:
        message = ChatMessage(role="assistant", content=content, timestamp=self._now_hhmm())
        self._chat_state.messages.append(message)
        self.query_one(ChatPanel).append_message(message)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _run_chat_command(self, name: str, args: str) -> None:
        chat_panel = self.query_one(ChatPanel)

        if name == "help":
            chat_panel.append_markup(format_help())
        elif name == "review":
            self.action_new_review()
        elif name == "reviews":
            self.action_refresh()
        elif name == "stats":
            stats = compute_review_stats(self._reviews)
            self._append_system_message(
                f"{stats.total} reviews · average {stats.average:.1f}/10 · trend {stats.trend}"
            )
        elif name == "mode":
            self._set_chat_mode(args.strip().lower())
        elif name == "presets":
            self._run_presets_command(args.strip())
        elif name == "clear":
            self._replies.cancel()
            self._chat_state.messages.clear()
            self._chat_state.stream_message_index = None
            self._chat_state.is_busy = False
            chat_panel.clear_log()
            chat_panel.set_status("● idle")
        elif name == "quit":
            self.exit()
        else:
            self._append_system_message(f"Unknown command: /{name}. Type /help for all commands.")

    def _set_chat_mode(self, mode: str) -> None:
        if not mode:
            mode = "scripted" if self._chat_state.mode == "llm" else "llm"
        if mode not in CHAT_MODES:
            self._append_system_message("Usage: /mode [llm|scripted]")
            return
        if mode == "llm" and not self._config.api_key:
            self._append_system_message(
                "No API key configured. Set SIMPLIFICATOR_API_KEY to chat with the gateway."
            )
            return
        self._chat_state.mode = mode
        self.query_one(ChatPanel).set_header(mode, self._config.model)
        self.query_one(SummaryBar).set_mode(mode)
        self._append_system_message(f"Chat mode: {mode}")

    def action_toggle_mode(self) -> None:
        self._set_chat_mode("")

    def _run_presets_command(self, args: str) -> None:
        if args:
            try:
                index = int(args) - 1
            except ValueError:
                index = -1
            if not 0 <= index < len(PRESET_QA):
                self._append_system_message(f"Usage: /presets [1-{len(PRESET_QA)}]")
                return
            self._send_user_chat_message(PRESET_QA[index].question)
            return

        lines = ["Quick questions:"]
        lines.extend(f"{i}. {qa.question}" for i, qa in enumerate(PRESET_QA, start=1))
        lines.append("Ask one with /presets <n>.")
        self._append_system_message("\n".join(lines))
