"""Abstract base class for text-embedding backends.

Defines the contract for turning text into fixed-length vectors.
Implementations wrap local models (fastembed ONNX, sentence-transformers)
so the knowledge base keeps working fully offline once weights are cached.

Backends raise :class:`~emergency_kb.utils.errors.EmbeddingError` on failure.
The empty-vector-on-failure convention the pipeline relies on is applied one
level up, by :class:`~emergency_kb.services.embedder.Embedder`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations (emergency_kb/providers/embedding/):
#   FastEmbedEmbeddingProvider           -- ONNX Runtime, no PyTorch, default
#   SentenceTransformerEmbeddingProvider -- PyTorch, any HuggingFace model
class IEmbeddingProvider(ABC):
    """Contract for the embedding model consumed by ingestion and retrieval."""

    @abstractmethod
    def load(self) -> None:
        """Load model weights into memory.

        Blocking; callers run it off the event loop.  Calling it again after
        a successful load is a no-op.

        Raises
        ------
        emergency_kb.utils.errors.EmbeddingError
            If the model cannot be loaded.
        """

    @abstractmethod
    def unload(self) -> None:
        """Drop the loaded model so the next :meth:`load` starts fresh."""

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            One or more text strings to embed.

        Returns
        -------
        list[list[float]]
            Vectors aligned positionally with *texts*, each of length
            :meth:`get_dimension`.

        Raises
        ------
        emergency_kb.utils.errors.EmbeddingError
            If encoding fails.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string."""

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the produced vectors.

        Constant for the lifetime of the provider; every persisted entry's
        embedding must have exactly this length.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"fastembed_bge-small-en-v1.5"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the backing library is importable."""
