"""
Embedding service using the OpenAI embeddings API.
One async client is created lazily and reused for all requests.
"""

import logging
from typing import List, Optional

from openai import AsyncOpenAI

from supportchat.config import settings

logger = logging.getLogger(__name__)


class EmbeddingError(Exception):
    """Raised when the embeddings API call fails or returns nothing."""


class EmbeddingService:
    """
    Generates text embeddings for knowledge-base storage and lookup.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        api_key = api_key or settings.openai_api_key
        if not api_key and client is None:
            raise ValueError("OpenAI API key is required for embeddings")
        self._client = client or AsyncOpenAI(api_key=api_key)
        self._model_name = model_name or settings.embedding_model

    async def embed_text(self, text: str) -> List[float]:
        """
        Generate an embedding for a single text string.

        Raises:
            EmbeddingError: on API failure or an empty response
        """
        logger.debug("Generating embedding for text: %.100s...", text)
        try:
            response = await self._client.embeddings.create(model=self._model_name, input=text)
        except Exception as e:
            raise EmbeddingError(f"OpenAI embedding error: {e}") from e

        if not response.data:
            raise EmbeddingError("OpenAI embedding response contained no vectors")
        return list(response.data[0].embedding)

    async def close(self) -> None:
        await self._client.close()


# Singleton instance
_embedding_service: Optional[EmbeddingService] = None


def get_embedding_service() -> EmbeddingService:
    """Get the singleton embedding service instance."""
    global _embedding_service
    if _embedding_service is None:
        _embedding_service = EmbeddingService()
    return _embedding_service


def reset_embedding_service() -> None:
    """Reset singleton (for testing)."""
    global _embedding_service
    _embedding_service = None


async def close_embedding_service() -> None:
    """Close the OpenAI client if one was created, then drop the singleton."""
    if _embedding_service is not None:
        await _embedding_service.close()
    reset_embedding_service()
