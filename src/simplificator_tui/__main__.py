"""Entry point: python -m simplificator_tui"""
from __future__ import annotations

import logging

from .app import SimplificatorApp
from .config import SIMPLIFICATOR_DIR

LOG_FILE = SIMPLIFICATOR_DIR / "simplificator.log"


def configure_logging() -> None:
    """Send log records to a file; the terminal belongs to the TUI."""
    LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=LOG_FILE,
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    """Launch the Simplificator TUI."""
    configure_logging()
    app = SimplificatorApp()
    app.run()


if __name__ == "__main__":
    main()
