"""Simplificator: over-engineering reviews and a streaming persona chat in the terminal."""

__version__ = "0.1.0"
