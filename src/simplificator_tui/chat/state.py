from __future__ import annotations

from dataclasses import dataclass, field

from simplificator_tui.models import ChatMessage

CHAT_MODES = ("llm", "scripted")


@dataclass
class ChatState:
    messages: list[ChatMessage] = field(default_factory=list)
    mode: str = "llm"
    is_busy: bool = False
    error: str | None = None
    stream_message_index: int | None = None

    def history_for_gateway(self) -> list[dict[str, str]]:
        """Role/content history for the gateway.

        System notices and replies that never finished streaming are left out.
        """
        return [
            {"role": msg.role, "content": msg.content}
            for msg in self.messages
            if msg.role in ("user", "assistant") and not msg.incomplete and msg.content
        ]
