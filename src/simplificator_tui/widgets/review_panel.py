"""ReviewPanel widget — left-side list of past reviews, newest first."""
from __future__ import annotations

from datetime import datetime

from rich.markup import escape as escape_markup
from textual.widgets import RichLog

from simplificator_tui.models import BAND_LABELS, BAND_STYLES, Review, score_band
from simplificator_tui.utils.time import relative_time


class ReviewPanel(RichLog):
    """Community review list.

    Default state: placeholder "No reviews yet. Be the first!"
    When populated: one block per review with score badge, title and age.
    """

    DEFAULT_CSS = """
    ReviewPanel {
        height: 1fr;
        border: round #1D4A66;
        background: #0F2E44;
        padding: 0 1;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        kwargs.setdefault("markup", True)
        kwargs.setdefault("wrap", True)
        super().__init__(*args, **kwargs)

    @staticmethod
    def _safe_markup_text(value: object) -> str:
        """Escape dynamic text before interpolating it into Rich markup."""
        return escape_markup(str(value))

    @staticmethod
    def format_badge(score: int) -> str:
        band = score_band(score)
        return f"[bold {BAND_STYLES[band]}]{score}/10 {BAND_LABELS[band]}[/]"

    def on_mount(self) -> None:
        self.show_placeholder()

    def show_reviews(self, reviews: list[Review], now: datetime | None = None) -> None:
        """Clear log and write one block per review."""
        self.clear()
        if not reviews:
            self.show_placeholder()
            return

        for review in reviews:
            safe_title = self._safe_markup_text(review.title)
            safe_age = self._safe_markup_text(relative_time(review.created_at, now))
            snippet = " ".join(review.description.split())
            if len(snippet) > 80:
                snippet = f"{snippet[:77]}..."
            self.write(f"{self.format_badge(review.score)} [bold #EAF6F6]{safe_title}[/]")
            self.write(
                f"[#9FC9C3 dim]╰─ {self._safe_markup_text(snippet)}[/] [dim #6E8C99]· {safe_age}[/]"
            )
            self.write("")

    def show_placeholder(self) -> None:
        self.clear()
        self.write("[#6E8C99 dim]┌─[/] [#9FC9C3 dim]No reviews yet. Be the first! (ctrl+n)[/]")

    def show_error(self, message: str) -> None:
        self.clear()
        safe_message = self._safe_markup_text(message)
        self.write(f"[bold #FF6F59]⚠ Error:[/bold #FF6F59] {safe_message}")
