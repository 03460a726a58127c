"""
Embeddings Router
=================

Admin/ingest endpoint for the knowledge store backing chat enrichment.

- action "store":  embed `content` and upsert it with `metadata`
- action "search": embed `query` and return the top matches
"""

import logging
from typing import Union

from fastapi import APIRouter, Depends

from supportchat.config import settings
from supportchat.core.auth import verify_widget_key
from supportchat.core.errors import SupportChatError
from supportchat.models.chat import (
    EmbeddingsRequest,
    EmbeddingsSearchResponse,
    EmbeddingsStoreResponse,
)
from supportchat.services.embedding_service import EmbeddingError
from supportchat.services.knowledge_service import KnowledgeService, get_knowledge_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _knowledge_service() -> KnowledgeService:
    if not settings.knowledge_enabled:
        raise SupportChatError("SC-CFG-002", detail="OpenAI key or Qdrant URL missing")
    return get_knowledge_service()


@router.post(
    "",
    response_model=Union[EmbeddingsStoreResponse, EmbeddingsSearchResponse],
    dependencies=[Depends(verify_widget_key)],
)
async def embeddings(request: EmbeddingsRequest):
    if request.action == "store" and not request.content:
        raise SupportChatError("SC-API-001", detail="content is required for store")
    if request.action == "search" and not request.query:
        raise SupportChatError("SC-API-001", detail="query is required for search")

    service = _knowledge_service()

    try:
        if request.action == "store":
            point_id = await service.store(request.content, request.metadata)
            return EmbeddingsStoreResponse(success=True, id=point_id)

        results = await service.search(
            request.query,
            threshold=settings.rag_match_threshold,
            count=settings.search_match_count,
        )
        return EmbeddingsSearchResponse(results=results)
    except EmbeddingError as e:
        raise SupportChatError("SC-EMB-001", detail=str(e), context={"action": request.action})
    except SupportChatError:
        raise
    except Exception as e:
        logger.error("Knowledge store error: %s", e, exc_info=True)
        raise SupportChatError("SC-QDR-001", detail=str(e), context={"action": request.action})
