"""Guarded, lazily initialized text embedder.

:class:`Embedder` wraps an :class:`IEmbeddingProvider` and gives the rest of
the system the contract it relies on:

* ``embed(text)`` returns a vector, or an **empty list on any failure**.
  Callers check for emptiness instead of catching exceptions.
* The model loads on first use behind an ``asyncio.Lock``.  Concurrent first
  callers wait for the single load; the outcome (model or error) is cached
  until :meth:`Embedder.release`.
* Input longer than ``max_text_length`` characters is truncated before
  encoding.
* Vectors of the wrong dimension or containing NaN/infinity are treated as
  failures.

One instance is built at the composition root and injected into both the
ingestion pipeline and the retrieval engine.
"""

from __future__ import annotations

import asyncio
from enum import Enum

import structlog

from emergency_kb.interfaces.embedding_provider import IEmbeddingProvider
from emergency_kb.utils.vector_math import is_finite_vector

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_MAX_TEXT_LENGTH = 1000


class EmbedderStatus(str, Enum):  # noqa: UP042
    NOT_INITIALIZED = "not_initialized"
    READY = "ready"
    FAILED = "failed"


class Embedder:
    """Text-to-vector capability with a one-time initialization guard.

    Parameters
    ----------
    provider:
        The embedding backend.
    max_text_length:
        Characters of input kept before encoding (default 1000).
    """

    def __init__(
        self,
        provider: IEmbeddingProvider,
        max_text_length: int = DEFAULT_MAX_TEXT_LENGTH,
    ) -> None:
        self._provider = provider
        self._max_text_length = max_text_length
        self._init_lock = asyncio.Lock()
        self._initialized = False
        self._init_error: Exception | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def initialize(self) -> bool:
        """Load the model once.  Returns ``True`` when the embedder is usable."""
        if self._initialized:
            return self._init_error is None

        async with self._init_lock:
            if not self._initialized:
                try:
                    await asyncio.to_thread(self._provider.load)
                    logger.info("embedder_ready", provider=self._provider.get_provider_name())
                except Exception as exc:
                    self._init_error = exc
                    logger.error(
                        "embedder_init_failed",
                        provider=self._provider.get_provider_name(),
                        error=str(exc),
                    )
                self._initialized = True
        return self._init_error is None

    async def embed(self, text: str) -> list[float]:
        """Return the embedding of *text*, or ``[]`` if it cannot be produced."""
        if not text.strip():
            return []
        if not await self.initialize():
            return []

        try:
            vector = await self._provider.embed_single(text[: self._max_text_length])
        except Exception as exc:
            logger.warning(
                "embedding_failed",
                provider=self._provider.get_provider_name(),
                text_length=len(text),
                error=str(exc),
            )
            return []

        if not self.is_valid_embedding(vector):
            logger.warning(
                "embedding_invalid",
                provider=self._provider.get_provider_name(),
                length=len(vector),
                expected=self.dimension,
            )
            return []
        return list(vector)

    def is_valid_embedding(self, vector: list[float]) -> bool:
        """Return ``True`` if *vector* has the declared dimension and is fully finite."""
        return len(vector) == self.dimension and is_finite_vector(vector)

    @property
    def dimension(self) -> int:
        return self._provider.get_dimension()

    @property
    def provider_name(self) -> str:
        return self._provider.get_provider_name()

    def get_status(self) -> tuple[EmbedderStatus, Exception | None]:
        """Return the initialization status and the cached error, if any."""
        if not self._initialized:
            return EmbedderStatus.NOT_INITIALIZED, None
        if self._init_error is not None:
            return EmbedderStatus.FAILED, self._init_error
        return EmbedderStatus.READY, None

    async def release(self) -> None:
        """Unload the model; the next :meth:`embed` initializes again."""
        async with self._init_lock:
            self._provider.unload()
            self._initialized = False
            self._init_error = None
        logger.info("embedder_released", provider=self._provider.get_provider_name())
