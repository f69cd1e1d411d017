"""Local ONNX-based embedding provider using fastembed.

Wraps the ``fastembed`` library to implement :class:`IEmbeddingProvider`
using ONNX Runtime, with no PyTorch dependency.  Runs on CPU with a small
memory footprint, which suits a field laptop or a small edge box.

Default model: ``BAAI/bge-small-en-v1.5`` (384 dimensions).  Weights are
downloaded once and then served from the local cache, so ingestion and
search work offline afterwards.
"""

from __future__ import annotations

import asyncio

import structlog

from emergency_kb.interfaces.embedding_provider import IEmbeddingProvider
from emergency_kb.utils.errors import EmbeddingError

logger = structlog.get_logger(logger_name=__name__)

# Known model dimensions for fastembed-supported models.
_MODEL_DIMENSIONS: dict[str, int] = {
    "BAAI/bge-small-en-v1.5": 384,
    "BAAI/bge-base-en-v1.5": 768,
    "sentence-transformers/all-MiniLM-L6-v2": 384,
    "intfloat/multilingual-e5-large": 1024,
}

_DEFAULT_MODEL = "BAAI/bge-small-en-v1.5"
_BATCH_LIMIT = 64


class FastEmbedEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by fastembed (ONNX Runtime).

    Parameters
    ----------
    model_name:
        fastembed model identifier.
    cache_dir:
        Optional directory holding downloaded weights, for fully offline use.
    """

    def __init__(self, model_name: str | None = None, cache_dir: str | None = None) -> None:
        self._model_name = model_name or _DEFAULT_MODEL
        self._cache_dir = cache_dir
        self._dimension = _MODEL_DIMENSIONS.get(self._model_name, 384)
        self._model = None

    def load(self) -> None:
        if self._model is not None:
            return
        try:
            from fastembed import TextEmbedding

            logger.info("loading_fastembed_model", model=self._model_name)
            self._model = TextEmbedding(model_name=self._model_name, cache_dir=self._cache_dir)
            logger.info(
                "fastembed_model_loaded",
                model=self._model_name,
                dimension=self._dimension,
            )
        except Exception as exc:
            raise EmbeddingError(
                message=f"Failed to load fastembed model '{self._model_name}': {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def unload(self) -> None:
        self._model = None

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts."""
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
        return f"fastembed_{self._model_name.split('/')[-1]}"

    def is_available(self) -> bool:
        try:
            import fastembed  # noqa: F401

            return True
        except ImportError:
            return False

    def _encode(self, texts: list[str]) -> list[list[float]]:
        try:
            all_embeddings: list[list[float]] = []
            for start in range(0, len(texts), _BATCH_LIMIT):
                batch = texts[start : start + _BATCH_LIMIT]
                # fastembed yields one numpy array per input text
                all_embeddings.extend(v.tolist() for v in self._model.embed(batch))
            return all_embeddings
        except Exception as exc:
            raise EmbeddingError(
                message=f"Fastembed embedding error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
