"""SummaryBar — footer Static widget showing aggregate review stats."""
from __future__ import annotations

from rich.markup import escape as escape_markup
from textual.widgets import Static

from ..models import ReviewStats

_TREND_GLYPHS: dict[str, str] = {
    "improving": "[bold #5BD6A0]↘ improving[/]",
    "worsening": "[bold #FF6F59]↗ worsening[/]",
    "stable": "[#9FC9C3]→ stable[/]",
    "none": "[dim #6E8C99]· no trend yet[/]",
}


class SummaryBar(Static):
    """Footer widget showing review count, average score, trend and chat mode.

    Displays: "12 reviews  avg 4.3/10  ↘ improving  │ chat: llm"
    Shows "⚡ Loading reviews..." until the first stats arrive.

    The current display text is always stored in ``_display_text`` for easy
    introspection in tests.
    """

    DEFAULT_CSS = """
    SummaryBar {
        height: 3;
        background: #0F2E44;
        color: #EAF6F6;
        border-top: solid #1D4A66;
        padding: 0 2;
    }
    """

    def __init__(self, content: str = "⚡ Loading reviews...", **kwargs: object) -> None:
        super().__init__(content, **kwargs)
        self._display_text: str = str(content)
        self._mode = "llm"
        self._stats: ReviewStats | None = None

    def update_stats(self, stats: ReviewStats) -> None:
        """Render totals for the given stats.

        Args:
            stats: Aggregate of the currently listed reviews.
        """
        self._stats = stats
        self._refresh_text()

    def set_mode(self, mode: str) -> None:
        self._mode = mode
        if self._stats is not None:
            self._refresh_text()

    def _refresh_text(self) -> None:
        stats = self._stats
        if stats is None:
            return
        noun = "review" if stats.total == 1 else "reviews"
        trend = _TREND_GLYPHS.get(stats.trend, _TREND_GLYPHS["none"])
        text = (
            f"[bold #4FB3D9]●[/] {stats.total} {noun}  "
            f"[dim #9FC9C3]avg[/] {stats.average:.1f}/10  "
            f"{trend}  "
            f"[dim #6E8C99]│[/] [dim]chat: {self._mode}[/]"
        )
        self._display_text = text
        self.update(text)

    def set_error(self, message: str) -> None:
        """Display an error state in the summary bar.

        Args:
            message: Human-readable error description.
        """
        text = f"[bold #FF6F59]⚠[/] {escape_markup(message)}"
        self._display_text = text
        self.update(text)
