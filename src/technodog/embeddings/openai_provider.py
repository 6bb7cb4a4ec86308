"""OpenAI embedding provider — text-embedding-3-small at 768 dimensions.

Requires the ``openai`` extra and an API key (``OPENAI_API_KEY``).
The ``documents`` table stores ``vector(768)``, so the model is asked for
shortened embeddings rather than its native size.
"""

from __future__ import annotations

import logging
from typing import Any

from technodog.embeddings.base import EmbeddingProvider

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "text-embedding-3-small"
DEFAULT_DIMENSIONS = 768
MAX_INPUT_CHARS = 8000
BATCH_SIZE = 2048  # OpenAI max batch size


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """Embed text via the OpenAI Embeddings API."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        dimensions: int = DEFAULT_DIMENSIONS,
        client: Any = None,
    ):
        self.model = model
        self._dimensions = dimensions

        if client is None:
            try:
                import openai
            except ImportError as exc:
                raise ImportError(
                    "openai package required: pip install technodog[openai]"
                ) from exc
            client = openai.OpenAI(api_key=api_key)
        self._client: Any = client

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        all_embeddings: list[list[float]] = []

        for i in range(0, len(texts), BATCH_SIZE):
            batch = [t[:MAX_INPUT_CHARS] for t in texts[i : i + BATCH_SIZE]]
            resp = self._client.embeddings.create(
                model=self.model,
                input=batch,
                dimensions=self._dimensions,
            )
            # Sort by index to guarantee order
            sorted_data = sorted(resp.data, key=lambda x: x.index)
            all_embeddings.extend([d.embedding for d in sorted_data])

        logger.debug("Embedded %d texts with %s", len(texts), self.model)
        return all_embeddings

    @property
    def dimension(self) -> int:
        return self._dimensions
