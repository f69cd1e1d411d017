"""Local sentence-transformers embedding provider adapter.

Wraps the ``sentence-transformers`` library to implement
:class:`IEmbeddingProvider` with any HuggingFace embedding model.  Heavier
than the fastembed backend (it pulls in PyTorch) but runs on GPU when one is
present.

Default model: ``sentence-transformers/all-MiniLM-L6-v2`` (384 dimensions).
"""

from __future__ import annotations

import asyncio

import structlog

from emergency_kb.interfaces.embedding_provider import IEmbeddingProvider
from emergency_kb.utils.errors import EmbeddingError

logger = structlog.get_logger(logger_name=__name__)

_MODEL_DIMENSIONS: dict[str, int] = {
    "sentence-transformers/all-MiniLM-L6-v2": 384,
    "sentence-transformers/distiluse-base-multilingual-cased-v2": 512,
    "BAAI/bge-small-en-v1.5": 384,
    "BAAI/bge-base-en-v1.5": 768,
    "intfloat/multilingual-e5-large-instruct": 1024,
}

_DEFAULT_MODEL = "sentence-transformers/all-MiniLM-L6-v2"
_BATCH_LIMIT = 64  # Conservative batch size for CPU inference


class SentenceTransformerEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by a local sentence-transformers model.

    Vectors are L2-normalised, so cosine similarity reduces to a dot product.
    """

    def __init__(self, model_name: str | None = None, device: str | None = None) -> None:
        self._model_name = model_name or _DEFAULT_MODEL
        self._device = device
        self._dimension = _MODEL_DIMENSIONS.get(self._model_name, 384)
        self._model = None

    def load(self) -> None:
        if self._model is not None:
            return
        try:
            from sentence_transformers import SentenceTransformer

            logger.info("loading_sentence_transformer", model=self._model_name)
            self._model = SentenceTransformer(self._model_name, device=self._device)
            # The model knows its own output size; trust it over the lookup table.
            reported = self._model.get_sentence_embedding_dimension()
            if reported:
                self._dimension = int(reported)
            logger.info(
                "sentence_transformer_loaded",
                model=self._model_name,
                dimension=self._dimension,
            )
        except Exception as exc:
            raise EmbeddingError(
                message=f"Failed to load sentence-transformers model '{self._model_name}': {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def unload(self) -> None:
        self._model = None

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors, splitting into memory-safe batches."""
        if not texts:
            return []

        self.load()
        return await asyncio.to_thread(self._encode, texts)

    async def embed_single(self, text: str) -> list[float]:
        result = await self.embed([text])
        return result[0]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return f"sentence_transformer_{self._model_name.split('/')[-1]}"

    def is_available(self) -> bool:
        try:
            import sentence_transformers  # noqa: F401

            return True
        except ImportError:
            return False

    def _encode(self, texts: list[str]) -> list[list[float]]:
        try:
            all_embeddings: list[list[float]] = []
            for start in range(0, len(texts), _BATCH_LIMIT):
                batch = texts[start : start + _BATCH_LIMIT]
                vectors = self._model.encode(
                    batch,
                    normalize_embeddings=True,
                    show_progress_bar=False,
                )
                all_embeddings.extend(vectors.tolist())
            logger.debug(
                "sentence_transformer_embedding_batch",
                model=self._model_name,
                texts=len(texts),
            )
            return all_embeddings
        except Exception as exc:
            raise EmbeddingError(
                message=f"Sentence-transformers embedding error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
