"""
Tests for the Qdrant-backed knowledge service and the embedding service.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from supportchat.prompts.website_chat import KNOWLEDGE_CONTEXT_HEADER, SNIPPET_SEPARATOR
from supportchat.services.embedding_service import EmbeddingError, EmbeddingService
from supportchat.services.knowledge_service import KnowledgeService


def _point(point_id, score, content, metadata=None):
    return SimpleNamespace(id=point_id, score=score, payload={"content": content, "metadata": metadata or {}})


@pytest.fixture
def qdrant():
    client = MagicMock()
    client.collection_exists = AsyncMock(return_value=True)
    client.create_collection = AsyncMock()
    client.upsert = AsyncMock()
    client.query_points = AsyncMock(return_value=SimpleNamespace(points=[]))
    client.close = AsyncMock()
    return client


@pytest.fixture
def embeddings():
    service = MagicMock()
    service.embed_text = AsyncMock(return_value=[0.5] * 4)
    return service


@pytest.fixture
def service(qdrant, embeddings):
    return KnowledgeService(client=qdrant, embedding_service=embeddings, collection_name="test_content")


class TestMatch:

    @pytest.mark.asyncio
    async def test_threshold_and_limit_passed_to_store(self, service, qdrant):
        qdrant.query_points.return_value = SimpleNamespace(
            points=[_point("a", 0.9, "first", {"url": "/about"}), _point("b", 0.6, "second")]
        )
        snippets = await service.match([0.1, 0.2], threshold=0.5, count=3)

        qdrant.query_points.assert_awaited_once_with(
            collection_name="test_content",
            query=[0.1, 0.2],
            limit=3,
            score_threshold=0.5,
            with_payload=True,
        )
        assert [s.id for s in snippets] == ["a", "b"]
        assert snippets[0].metadata == {"url": "/about"}
        assert snippets[1].similarity == 0.6

    @pytest.mark.asyncio
    async def test_missing_collection_returns_empty(self, service, qdrant):
        qdrant.collection_exists.return_value = False
        assert await service.match([0.1], threshold=0.5, count=3) == []
        qdrant.query_points.assert_not_called()

    @pytest.mark.asyncio
    async def test_zero_count_returns_empty(self, service, qdrant):
        assert await service.match([0.1], threshold=0.5, count=0) == []
        qdrant.query_points.assert_not_called()


class TestStore:

    @pytest.mark.asyncio
    async def test_creates_collection_once_and_upserts(self, service, qdrant, embeddings):
        qdrant.collection_exists.return_value = False
        point_id = await service.store("We automate FP&A.", {"source": "home"})

        embeddings.embed_text.assert_awaited_once_with("We automate FP&A.")
        qdrant.create_collection.assert_awaited_once()
        kwargs = qdrant.upsert.await_args.kwargs
        assert kwargs["collection_name"] == "test_content"
        point = kwargs["points"][0]
        assert str(point.id) == point_id
        assert point.payload == {"content": "We automate FP&A.", "metadata": {"source": "home"}}

    @pytest.mark.asyncio
    async def test_existing_collection_not_recreated(self, service, qdrant):
        await service.store("x")
        qdrant.create_collection.assert_not_called()


class TestSearchContext:

    @pytest.mark.asyncio
    async def test_renders_labeled_block(self, service, qdrant):
        qdrant.query_points.return_value = SimpleNamespace(
            points=[_point("a", 0.876, "Alpha"), _point("b", 0.5, "Beta")]
        )
        context = await service.search_context("question")

        assert context == (
            KNOWLEDGE_CONTEXT_HEADER
            + "[Relevance: 88%]\nAlpha"
            + SNIPPET_SEPARATOR
            + "[Relevance: 50%]\nBeta"
        )

    @pytest.mark.asyncio
    async def test_no_results_is_empty_string(self, service):
        assert await service.search_context("question") == ""

    @pytest.mark.asyncio
    async def test_embedding_failure_is_swallowed(self, service, embeddings):
        embeddings.embed_text.side_effect = EmbeddingError("down")
        assert await service.search_context("question") == ""

    @pytest.mark.asyncio
    async def test_store_failure_is_swallowed(self, service, qdrant):
        qdrant.query_points.side_effect = ConnectionError("qdrant unreachable")
        assert await service.search_context("question") == ""


class TestEmbeddingService:

    @pytest.mark.asyncio
    async def test_returns_first_vector(self):
        client = MagicMock()
        client.embeddings.create = AsyncMock(
            return_value=SimpleNamespace(data=[SimpleNamespace(embedding=[0.1, 0.2])])
        )
        service = EmbeddingService(model_name="text-embedding-3-small", client=client)

        assert await service.embed_text("hello") == [0.1, 0.2]
        client.embeddings.create.assert_awaited_once_with(model="text-embedding-3-small", input="hello")

    @pytest.mark.asyncio
    async def test_api_error_wrapped(self):
        client = MagicMock()
        client.embeddings.create = AsyncMock(side_effect=RuntimeError("401"))
        service = EmbeddingService(client=client)

        with pytest.raises(EmbeddingError):
            await service.embed_text("hello")

    def test_missing_key_rejected(self, monkeypatch):
        from supportchat.config import settings

        monkeypatch.setattr(settings, "openai_api_key", None)
        with pytest.raises(ValueError):
            EmbeddingService()
