"""
Headless chat widget state.

Holds the visible message list and loading flag, drives a
ChatStreamConsumer for each turn, and notifies subscribers with an
immutable snapshot after every change. A UI (terminal, notebook, GUI)
only renders snapshots.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Tuple

from supportchat.client.stream_consumer import ChatStreamConsumer
from supportchat.services.pricing_intent import IntentDetector, is_pricing_query

logger = logging.getLogger(__name__)

ERROR_MESSAGE = "Sorry, I encountered an error. Please try again."


@dataclass(frozen=True)
class WidgetMessage:
    role: str
    content: str
    show_contact_form: bool = False


@dataclass(frozen=True)
class WidgetSnapshot:
    messages: Tuple[WidgetMessage, ...]
    is_loading: bool


Subscriber = Callable[[WidgetSnapshot], None]


class ChatWidget:
    """One conversation. Not safe for concurrent `send` calls."""

    def __init__(
        self,
        consumer: ChatStreamConsumer,
        intent_detector: IntentDetector = is_pricing_query,
    ):
        self.consumer = consumer
        self.intent_detector = intent_detector
        self.messages: List[WidgetMessage] = []
        self.is_loading = False
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register an observer; returns a function that unregisters it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def snapshot(self) -> WidgetSnapshot:
        return WidgetSnapshot(messages=tuple(self.messages), is_loading=self.is_loading)

    def _publish(self) -> None:
        snap = self.snapshot()
        for callback in list(self._subscribers):
            callback(snap)

    def _set_assistant_text(self, text: str) -> None:
        """Replace the trailing assistant message in place, or start one."""
        if self.messages and self.messages[-1].role == "assistant":
            self.messages[-1] = replace(self.messages[-1], content=text)
        else:
            self.messages.append(WidgetMessage(role="assistant", content=text))
        self._publish()

    def _flag_contact_form(self) -> None:
        if self.messages and self.messages[-1].role == "assistant":
            self.messages[-1] = replace(self.messages[-1], show_contact_form=True)

    async def send(self, text: str) -> Optional[WidgetMessage]:
        """
        Send one user turn and stream the reply into `messages`.

        Blank input or a send while a turn is in flight is ignored.
        Returns the final assistant message, or None when ignored.
        """
        user_text = text.strip()
        if not user_text or self.is_loading:
            return None

        self.messages.append(WidgetMessage(role="user", content=user_text))
        transcript = [{"role": m.role, "content": m.content} for m in self.messages]
        self.is_loading = True
        self._publish()

        # Decided once per turn, from the user's own text
        is_pricing = self.intent_detector(user_text)

        try:
            await self.consumer.stream_chat(transcript, self._set_assistant_text)
            if is_pricing:
                self._flag_contact_form()
        except Exception as e:
            logger.error("Chat error: %s", e)
            self.messages.append(WidgetMessage(role="assistant", content=ERROR_MESSAGE))
        finally:
            self.is_loading = False
            self._publish()

        return self.messages[-1] if self.messages[-1].role == "assistant" else None
