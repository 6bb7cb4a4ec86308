"""Lambda handler for bulk document ingestion — triggered by API Gateway.

Thin wrapper around IngestPipeline. All business logic lives in src/technodog/.

Request body::

    {"documents": [{"title": ..., "content": ..., "source": ..., "metadata": {...}}]}
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from technodog.config import Settings, load_settings
from technodog.embeddings.base import EmbeddingProvider
from technodog.exceptions import TechnoDogError
from technodog.pipeline.ingest import IngestPipeline
from technodog.storage.factory import get_document_store

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv("LOG_LEVEL", "INFO"))

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

# Initialize outside handler for Lambda warm-start reuse
_pipeline: IngestPipeline | None = None


def _get_embedding_provider(settings: Settings) -> EmbeddingProvider | None:
    if not settings.embedding.enabled or not settings.embedding.api_key:
        return None

    from technodog.embeddings.openai_provider import OpenAIEmbeddingProvider

    return OpenAIEmbeddingProvider(
        model=settings.embedding.model,
        api_key=settings.embedding.api_key,
        dimensions=settings.embedding.dimension,
    )


def _get_pipeline() -> IngestPipeline:
    global _pipeline
    if _pipeline is not None:
        return _pipeline

    settings = load_settings()
    # Always the Supabase table: SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required.
    store = get_document_store(
        "supabase",
        url=settings.storage.supabase_url,
        service_key=settings.storage.supabase_key,
        table=settings.storage.table,
    )

    _pipeline = IngestPipeline(
        store=store,
        embedding_provider=_get_embedding_provider(settings),
        chunk_size=settings.chunking.chunk_size,
        overlap=settings.chunking.overlap,
    )
    return _pipeline


def _response(status_code: int, body: dict[str, Any] | None = None) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {**CORS_HEADERS, "Content-Type": "application/json"},
        "body": json.dumps(body) if body is not None else "",
    }


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Handle API Gateway request — chunk and store each document, report counts."""
    if event.get("httpMethod") == "OPTIONS":
        return _response(200)

    try:
        body = json.loads(event.get("body") or "{}")
        documents = body.get("documents") if isinstance(body, dict) else None
        if not isinstance(documents, list):
            raise ValueError("Request body must contain a 'documents' list")

        result = _get_pipeline().ingest_documents(documents)
    except (ValueError, TypeError, TechnoDogError) as exc:
        logger.error("Ingest request failed: %s", exc)
        return _response(500, {"error": str(exc)})

    logger.info("Ingest request stored %d chunks", result.ingested)
    return _response(200, result.to_dict())
