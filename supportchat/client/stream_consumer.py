"""
HTTP client for the chat widget backend.

ChatStreamConsumer posts the transcript, reassembles the normalized
stream with a DeltaAssembler and reports the running assistant text to
a callback as fragments arrive.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Union

import httpx

from supportchat.client.assembler import DeltaAssembler
from supportchat.config import settings
from supportchat.models.chat import ContactFormResponse, ContactFormSubmission

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[str], None]


class ChatClientError(Exception):
    """The backend answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


class StreamStartError(ChatClientError):
    """The chat stream could not be started."""


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.reason_phrase


def _turn_dict(turn: Any) -> Dict[str, str]:
    if isinstance(turn, Mapping):
        return {"role": turn["role"], "content": turn["content"]}
    return {"role": turn.role, "content": turn.content}


class ChatStreamConsumer:
    """Talks to `/api/chat` and `/api/contact`."""

    def __init__(
        self,
        chat_url: Optional[str] = None,
        widget_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        contact_url: Optional[str] = None,
    ):
        self.chat_url = chat_url or settings.chat_url
        self.widget_key = widget_key if widget_key is not None else settings.widget_key
        self.contact_url = contact_url or self.chat_url.rstrip("/").rsplit("/", 1)[0] + "/contact"
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(settings.upstream_timeout_s, connect=settings.upstream_connect_timeout_s),
            )
        return self._client

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.widget_key:
            headers["Authorization"] = f"Bearer {self.widget_key}"
        return headers

    async def stream_chat(
        self,
        transcript: Iterable[Union[Mapping[str, str], Any]],
        on_update: Optional[UpdateCallback] = None,
    ) -> str:
        """
        Send the transcript and stream the reply.

        Returns the full assistant text. If the connection drops after some
        bytes arrived, returns what was received so far.

        Raises:
            StreamStartError: the backend answered non-2xx
            httpx.HTTPError: transport failure before any byte arrived
        """
        payload = {"messages": [_turn_dict(turn) for turn in transcript]}
        request = self.client.build_request("POST", self.chat_url, json=payload, headers=self._headers())
        response = await self.client.send(request, stream=True)

        try:
            if not response.is_success:
                await response.aread()
                raise StreamStartError(response.status_code, _error_message(response))

            assembler = DeltaAssembler()
            text = ""
            received = False
            try:
                async for chunk in response.aiter_bytes():
                    received = True
                    for fragment in assembler.feed(chunk):
                        text += fragment
                        if on_update is not None:
                            on_update(text)
            except httpx.HTTPError as e:
                if not received:
                    raise
                logger.warning("Chat stream truncated after %d chars: %s", len(text), e)

            for fragment in assembler.finish():
                text += fragment
                if on_update is not None:
                    on_update(text)

            if assembler.dropped_lines:
                logger.info("Chat stream finished with %d dropped lines", assembler.dropped_lines)
            return text
        finally:
            await response.aclose()

    async def submit_contact(self, form: Union[ContactFormSubmission, Mapping[str, Any]]) -> ContactFormResponse:
        """POST the lead form. Raises ChatClientError on a non-2xx answer."""
        if not isinstance(form, ContactFormSubmission):
            form = ContactFormSubmission.model_validate(form)
        response = await self.client.post(
            self.contact_url,
            json=form.model_dump(by_alias=True),
            headers=self._headers(),
        )
        if not response.is_success:
            raise ChatClientError(response.status_code, _error_message(response))
        return ContactFormResponse.model_validate(response.json())

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
