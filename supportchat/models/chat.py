"""
Request/response models for the chat, embeddings and contact endpoints.
"""

import re
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ChatTurn(BaseModel):
    """One transcript entry. Order in the list is significant."""
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """Full transcript, re-sent on every turn (the server keeps no state)."""
    messages: List[ChatTurn] = Field(..., min_length=1)

    def last_user_message(self) -> Optional[str]:
        for turn in reversed(self.messages):
            if turn.role == "user":
                return turn.content
        return None


class KnowledgeSnippet(BaseModel):
    """A snippet returned by the similarity store, already ranked and thresholded."""
    id: str
    content: str
    similarity: float
    metadata: Dict[str, Any] = Field(default_factory=dict)


class EmbeddingsRequest(BaseModel):
    action: Literal["store", "search"]
    content: Optional[str] = None
    query: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class EmbeddingsStoreResponse(BaseModel):
    success: bool = True
    id: str


class EmbeddingsSearchResponse(BaseModel):
    results: List[KnowledgeSnippet]


class ContactFormSubmission(BaseModel):
    """Lead-capture form shown under pricing answers."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=100)
    company_name: str = Field(..., alias="companyName", min_length=1, max_length=100)
    email: str = Field(..., max_length=255)
    phone: str = Field(..., min_length=1, max_length=20)

    @field_validator("email")
    @classmethod
    def _valid_email(cls, value: str) -> str:
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email")
        return value


class ContactFormResponse(BaseModel):
    success: bool = True
    message: str
