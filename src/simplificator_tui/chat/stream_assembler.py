"""Incremental assembler for SSE-framed chat completion streams.

The gateway answers a ``stream: true`` request with newline-delimited frames::

    data: {"choices":[{"delta":{"content":"Hel"}}]}
    : keep-alive
    data: [DONE]

Transport chunks have no alignment with lines, JSON objects, or even UTF-8
characters. ``StreamingAssembler`` buffers only the undecoded remainder and
reports each text fragment through ``on_delta`` as soon as its frame is
complete. The full reply text is the caller's to keep.
"""
from __future__ import annotations

import codecs
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class AssemblerState(Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"


class ErrorKind(Enum):
    REQUEST = "request"  # non-success status before any chunk was read
    TRANSPORT = "transport"  # connection drop, timeout or undecodable bytes mid-stream


class FrameKind(Enum):
    COMMENT = "comment"
    BLANK = "blank"
    DATA = "data"
    OTHER = "other"


@dataclass(frozen=True)
class Frame:
    kind: FrameKind
    payload: str = ""


DeltaCallback = Callable[[str], None]
CompleteCallback = Callable[[], None]
ErrorCallback = Callable[[ErrorKind, str], None]


def classify_line(line: str) -> Frame:
    """Classify one line (without its ``\\n``) of the event stream."""
    if line.endswith("\r"):
        line = line[:-1]
    if not line:
        return Frame(FrameKind.BLANK)
    if line.startswith(":"):
        return Frame(FrameKind.COMMENT)
    if line.startswith(DATA_PREFIX):
        return Frame(FrameKind.DATA, line[len(DATA_PREFIX):].strip())
    return Frame(FrameKind.OTHER)


def extract_delta_content(chunk: object) -> str | None:
    """Return ``choices[0].delta.content`` when it is a non-empty string."""
    if not isinstance(chunk, dict):
        return None
    choices = chunk.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    if isinstance(content, str) and content:
        return content
    return None


def _starts_new_frame(line: str) -> bool:
    return line.startswith("data:") or line.startswith(":")


class StreamingAssembler:
    """Turn an arbitrarily chunked SSE body into ordered text deltas.

    One instance serves one logical stream. After ``[DONE]``, ``finish()`` or
    ``fail()`` the instance is terminal and ignores further input, so at most
    one of ``on_complete`` / ``on_error`` ever fires.

    A data line whose JSON does not parse is kept as a pending frame instead
    of being dropped: producers that put a literal newline inside a JSON
    string split one frame over several lines. Each following line is joined
    back onto it (with the newline and any carriage return restored) and the
    join is parsed first. Only when the join still fails and the line is a
    frame start on its own is the pending frame dropped; the line is then
    handled as a new frame. The stream ending also drops it.
    """

    def __init__(
        self,
        on_delta: DeltaCallback | None = None,
        on_complete: CompleteCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        self._on_delta = on_delta
        self._on_complete = on_complete
        self._on_error = on_error
        self._state = AssemblerState.IDLE
        self._decoder = codecs.getincrementaldecoder("utf-8")()
        self._buffer = ""
        self._pending: str | None = None
        self._dropped_frames = 0

    @property
    def state(self) -> AssemblerState:
        return self._state

    @property
    def is_terminal(self) -> bool:
        return self._state in (AssemblerState.COMPLETED, AssemblerState.FAILED)

    @property
    def buffered(self) -> int:
        """Number of characters held back waiting for more input."""
        pending = len(self._pending) + 1 if self._pending is not None else 0
        return len(self._buffer) + pending

    @property
    def dropped_frames(self) -> int:
        return self._dropped_frames

    def push(self, chunk: str | bytes) -> None:
        """Feed one transport chunk and emit every delta it completes."""
        if self.is_terminal:
            logger.debug("Ignoring chunk pushed after stream %s", self._state.value)
            return
        if self._state is AssemblerState.IDLE:
            self._state = AssemblerState.STREAMING

        if isinstance(chunk, (bytes, bytearray)):
            try:
                text = self._decoder.decode(bytes(chunk))
            except UnicodeDecodeError as exc:
                self.fail(ErrorKind.TRANSPORT, f"Invalid UTF-8 in stream: {exc}")
                return
        else:
            text = chunk

        if not text:
            return
        self._buffer += text
        self._drain()

    def finish(self) -> None:
        """Flush buffered input after the transport ended without ``[DONE]``.

        Trailing data that still does not parse is discarded; a missing
        terminator is not an error.
        """
        if self.is_terminal:
            return

        try:
            self._buffer += self._decoder.decode(b"", final=True)
        except UnicodeDecodeError:
            logger.debug("Dropping truncated UTF-8 sequence at end of stream")

        if self._buffer:
            self._buffer += "\n"
            self._drain()
        if self.is_terminal:
            return

        if self._pending is not None:
            self._drop_pending("stream ended")
        self._complete()

    def fail(self, kind: ErrorKind, detail: str) -> None:
        """Mark the stream failed and report it once."""
        if self.is_terminal:
            return
        logger.debug("Stream failed (%s): %s", kind.value, detail)
        self._state = AssemblerState.FAILED
        self._buffer = ""
        self._pending = None
        if self._on_error is not None:
            self._on_error(kind, detail)

    def _drain(self) -> None:
        while not self.is_terminal:
            newline = self._buffer.find("\n")
            if newline < 0:
                return
            line = self._buffer[:newline]
            self._buffer = self._buffer[newline + 1:]
            self._consume_line(line)

    def _consume_line(self, raw: str) -> None:
        # raw keeps any trailing "\r"; classify_line strips only the last one
        if self._pending is not None:
            joined = f"{self._pending}\n{raw}"
            try:
                chunk = json.loads(classify_line(joined).payload, strict=False)
            except ValueError:
                if not _starts_new_frame(raw):
                    self._pending = joined
                    return
                self._drop_pending("superseded by a new frame")
            else:
                self._pending = None
                self._emit(chunk)
                return

        frame = classify_line(raw)
        if frame.kind is not FrameKind.DATA:
            return

        if frame.payload == DONE_SENTINEL:
            self._complete()
            return

        try:
            chunk = json.loads(frame.payload, strict=False)
        except ValueError:
            self._pending = raw
            return
        self._emit(chunk)

    def _emit(self, chunk: object) -> None:
        content = extract_delta_content(chunk)
        if content and self._on_delta is not None:
            self._on_delta(content)

    def _drop_pending(self, reason: str) -> None:
        self._dropped_frames += 1
        logger.debug(
            "Dropping malformed data frame (%s): %.80r",
            reason,
            self._pending,
        )
        self._pending = None

    def _complete(self) -> None:
        if self._pending is not None:
            self._drop_pending("terminator received")
        self._state = AssemblerState.COMPLETED
        self._buffer = ""
        if self._on_complete is not None:
            self._on_complete()
