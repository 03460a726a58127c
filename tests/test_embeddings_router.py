"""
Tests for POST /api/embeddings (store / search).
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from supportchat.config import settings
from supportchat.models.chat import KnowledgeSnippet
from supportchat.services.embedding_service import EmbeddingError


@pytest.fixture
def knowledge(monkeypatch):
    monkeypatch.setattr(settings, "openai_api_key", "sk-openai")
    monkeypatch.setattr(settings, "qdrant_url", "http://qdrant.test:6333")

    service = MagicMock()
    service.store = AsyncMock(return_value="3f1c0c1e-0000-4000-8000-000000000001")
    service.search = AsyncMock(return_value=[])
    monkeypatch.setattr("supportchat.routers.embeddings.get_knowledge_service", lambda: service)
    return service


class TestStore:

    def test_store_returns_id(self, client, knowledge):
        response = client.post(
            "/api/embeddings",
            json={"action": "store", "content": "About us", "metadata": {"page": "about"}},
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "id": "3f1c0c1e-0000-4000-8000-000000000001"}
        knowledge.store.assert_awaited_once_with("About us", {"page": "about"})

    def test_store_without_content_is_400(self, client, knowledge):
        response = client.post("/api/embeddings", json={"action": "store"})
        assert response.status_code == 400
        assert response.json()["code"] == "SC-API-001"


class TestSearch:

    def test_search_uses_threshold_and_count(self, client, knowledge):
        knowledge.search.return_value = [
            KnowledgeSnippet(id="a", content="Power BI", similarity=0.8, metadata={"page": "services"}),
        ]
        response = client.post("/api/embeddings", json={"action": "search", "query": "dashboards"})

        assert response.status_code == 200
        assert response.json() == {
            "results": [
                {"id": "a", "content": "Power BI", "similarity": 0.8, "metadata": {"page": "services"}}
            ]
        }
        knowledge.search.assert_awaited_once_with("dashboards", threshold=0.5, count=5)

    def test_search_without_query_is_400(self, client, knowledge):
        response = client.post("/api/embeddings", json={"action": "search"})
        assert response.status_code == 400


class TestErrors:

    def test_unknown_action_is_400(self, client, knowledge):
        response = client.post("/api/embeddings", json={"action": "delete", "query": "x"})
        assert response.status_code == 400
        assert response.json()["code"] == "SC-API-001"

    def test_not_configured(self, client):
        response = client.post("/api/embeddings", json={"action": "search", "query": "x"})
        assert response.status_code == 500
        assert response.json() == {"error": "Knowledge base is not configured.", "code": "SC-CFG-002"}

    def test_embedding_failure(self, client, knowledge):
        knowledge.search.side_effect = EmbeddingError("quota exceeded")
        response = client.post("/api/embeddings", json={"action": "search", "query": "x"})
        assert response.status_code == 500
        assert response.json()["code"] == "SC-EMB-001"

    def test_store_failure(self, client, knowledge):
        knowledge.store.side_effect = ConnectionError("qdrant unreachable")
        response = client.post("/api/embeddings", json={"action": "store", "content": "x"})
        assert response.status_code == 500
        assert response.json() == {"error": "Knowledge base error", "code": "SC-QDR-001"}

    def test_requires_widget_key_when_set(self, client, knowledge, widget_key):
        response = client.post("/api/embeddings", json={"action": "search", "query": "x"})
        assert response.status_code == 401
