"""
Knowledge Service
=================

Vector similarity store for website content, backed by Qdrant.

Flow (enrichment):
1. Latest user turn -> EmbeddingService -> query vector
2. Vector -> Qdrant similarity query (score_threshold, limit) -> ranked snippets
3. Snippets -> labeled context block appended to the system prompt

Ranking and thresholding are the store's job; snippets are used as returned.
Enrichment is best-effort: any failure degrades to the base prompt.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from qdrant_client import AsyncQdrantClient
from qdrant_client.http import models

from supportchat.config import settings
from supportchat.models.chat import KnowledgeSnippet
from supportchat.prompts.website_chat import build_knowledge_context
from supportchat.services.embedding_service import EmbeddingService, get_embedding_service

logger = logging.getLogger(__name__)

DISTANCE_METRIC = models.Distance.COSINE


class KnowledgeService:
    """Stores and retrieves website content snippets by semantic similarity."""

    def __init__(
        self,
        client: Optional[AsyncQdrantClient] = None,
        embedding_service: Optional[EmbeddingService] = None,
        collection_name: Optional[str] = None,
    ):
        self._client = client
        self._embedding_service = embedding_service
        self.collection_name = collection_name or settings.knowledge_collection

    @property
    def client(self) -> AsyncQdrantClient:
        """Get or create the Qdrant client connection."""
        if self._client is None:
            if not settings.qdrant_url:
                raise RuntimeError("SUPPORTCHAT_QDRANT_URL is not configured")
            self._client = AsyncQdrantClient(
                url=settings.qdrant_url,
                api_key=settings.qdrant_api_key,
                timeout=30,
            )
        return self._client

    @property
    def embedding_service(self) -> EmbeddingService:
        if self._embedding_service is None:
            self._embedding_service = get_embedding_service()
        return self._embedding_service

    async def ensure_collection(self) -> None:
        """Create the collection on first store."""
        if await self.client.collection_exists(self.collection_name):
            return
        await self.client.create_collection(
            collection_name=self.collection_name,
            vectors_config=models.VectorParams(
                size=settings.embedding_dimensions,
                distance=DISTANCE_METRIC,
            ),
        )
        logger.info("Created knowledge collection %s", self.collection_name)

    async def match(self, vector: List[float], threshold: float, count: int) -> List[KnowledgeSnippet]:
        """Top-`count` snippets scoring at least `threshold`, in store order."""
        if count <= 0:
            return []
        if not await self.client.collection_exists(self.collection_name):
            return []

        result = await self.client.query_points(
            collection_name=self.collection_name,
            query=vector,
            limit=count,
            score_threshold=threshold,
            with_payload=True,
        )

        snippets: List[KnowledgeSnippet] = []
        for point in result.points:
            payload = point.payload or {}
            snippets.append(
                KnowledgeSnippet(
                    id=str(point.id),
                    content=str(payload.get("content", "")),
                    similarity=float(point.score),
                    metadata=payload.get("metadata") or {},
                )
            )
        return snippets

    async def search(self, query: str, threshold: float, count: int) -> List[KnowledgeSnippet]:
        vector = await self.embedding_service.embed_text(query)
        return await self.match(vector, threshold=threshold, count=count)

    async def store(self, content: str, metadata: Optional[Dict[str, Any]] = None) -> str:
        """Embed `content` and upsert it. Returns the new point id."""
        vector = await self.embedding_service.embed_text(content)
        await self.ensure_collection()

        point_id = str(uuid.uuid4())
        await self.client.upsert(
            collection_name=self.collection_name,
            points=[
                models.PointStruct(
                    id=point_id,
                    vector=vector,
                    payload={"content": content, "metadata": metadata or {}},
                )
            ],
        )
        logger.info("Stored content with id: %s", point_id)
        return point_id

    async def search_context(self, query: str) -> str:
        """
        Retrieval block for the system prompt, or "" on any failure.

        Never raises: embedding errors, store errors and empty results all
        fall back to the unaugmented prompt.
        """
        try:
            snippets = await self.search(
                query,
                threshold=settings.rag_match_threshold,
                count=settings.rag_match_count,
            )
        except Exception as e:
            logger.warning("RAG search error: %s", e)
            return ""

        if not snippets:
            return ""

        logger.info("Found %d relevant documents for RAG", len(snippets))
        return build_knowledge_context(snippets)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None


# Singleton instance
_knowledge_service: Optional[KnowledgeService] = None


def get_knowledge_service() -> KnowledgeService:
    """Get the singleton knowledge service instance."""
    global _knowledge_service
    if _knowledge_service is None:
        _knowledge_service = KnowledgeService()
    return _knowledge_service


def reset_knowledge_service() -> None:
    """Reset singleton (for testing)."""
    global _knowledge_service
    _knowledge_service = None


async def close_knowledge_service() -> None:
    """Close the Qdrant client if one was created, then drop the singleton."""
    if _knowledge_service is not None:
        await _knowledge_service.close()
    reset_knowledge_service()
