from __future__ import annotations

from collections.abc import Callable

from .stream_assembler import ErrorKind, StreamingAssembler


class ChatReplyProcessor:
    """Route one streamed assistant reply at a time into UI callbacks.

    ``begin_reply()`` hands out a fresh assembler and makes it the active
    reply; events from an assembler that has since been superseded or
    cancelled are ignored. Callbacks may fire on whatever thread pushes into
    the assembler, so callers marshal to the UI thread themselves.
    """

    def __init__(
        self,
        *,
        on_assistant_update: Callable[[str], None],
        on_assistant_final: Callable[[str], None],
        on_assistant_error: Callable[[str, ErrorKind, str], None],
        on_status: Callable[[str], None],
    ) -> None:
        self._on_assistant_update = on_assistant_update
        self._on_assistant_final = on_assistant_final
        self._on_assistant_error = on_assistant_error
        self._on_status = on_status
        self._active: StreamingAssembler | None = None

    @property
    def active(self) -> StreamingAssembler | None:
        return self._active

    def is_active(self, assembler: StreamingAssembler) -> bool:
        return assembler is self._active

    def cancel(self) -> None:
        self._active = None

    def begin_reply(self) -> StreamingAssembler:
        text = ""
        assembler: StreamingAssembler

        def on_delta(delta: str) -> None:
            nonlocal text
            if not self.is_active(assembler):
                return
            first = not text
            text += delta
            if first:
                self._on_status("streaming")
            self._on_assistant_update(text)

        def on_complete() -> None:
            if not self.is_active(assembler):
                return
            self._active = None
            self._on_assistant_final(text)
            self._on_status("idle")

        def on_error(kind: ErrorKind, detail: str) -> None:
            if not self.is_active(assembler):
                return
            self._active = None
            self._on_assistant_error(text, kind, detail)
            self._on_status("error")

        assembler = StreamingAssembler(
            on_delta=on_delta,
            on_complete=on_complete,
            on_error=on_error,
        )
        self._active = assembler
        self._on_status("waiting for response")
        return assembler
