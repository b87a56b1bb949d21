from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, Static, TextArea

from ..models import validate_submission


class ReviewModal(ModalScreen[tuple[str, str] | None]):
    """Submission form for an over-engineering review: description + code."""

    BINDINGS = [
        ("escape", "cancel", "Cancel"),
        ("ctrl+s", "submit", "Analyze"),
    ]

    DEFAULT_CSS = """
    ReviewModal {
        align: center middle;
    }
    #review-shell {
        width: 100;
        max-width: 96%;
        height: auto;
        max-height: 90%;
        border: round #1D4A66;
        background: #0F2E44;
        padding: 1 2;
    }
    #review-title {
        color: #4FB3D9;
        text-style: bold;
        margin-bottom: 1;
    }
    #review-description {
        margin-bottom: 1;
    }
    #review-code {
        height: 14;
        margin-bottom: 1;
    }
    #review-help {
        color: #9FC9C3;
    }
    #review-error {
        color: #FF6F59;
    }
    """

    def compose(self) -> ComposeResult:
        with Vertical(id="review-shell"):
            yield Static("AI Code Review", id="review-title")
            yield Input(
                placeholder="Describe your project (10-1000 chars)",
                id="review-description",
            )
            yield TextArea(id="review-code")
            yield Static("ctrl+s to analyze - Esc to cancel", id="review-help")
            yield Static("", id="review-error")

    def on_mount(self) -> None:
        self.query_one("#review-description", Input).focus()

    def on_input_submitted(self, _event: Input.Submitted) -> None:
        self.query_one("#review-code", TextArea).focus()

    def action_cancel(self) -> None:
        self.dismiss(None)

    def action_submit(self) -> None:
        description = self.query_one("#review-description", Input).value
        code = self.query_one("#review-code", TextArea).text
        errors = validate_submission(code, description)
        if errors:
            self._set_error("\n".join(errors.values()))
            return
        self.dismiss((code.strip(), description.strip()))

    def _set_error(self, text: str) -> None:
        self.query_one("#review-error", Static).update(text)
