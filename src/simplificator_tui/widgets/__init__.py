"""Textual widgets for the Simplificator TUI."""
from __future__ import annotations

from .review_panel import ReviewPanel
from .summary_bar import SummaryBar
from .review_modal import ReviewModal
from ..chat import ChatPanel

__all__ = ["ReviewPanel", "SummaryBar", "ChatPanel", "ReviewModal"]
