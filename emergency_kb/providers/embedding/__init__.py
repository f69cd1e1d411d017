"""Embedding provider implementations.

Two local implementations of IEmbeddingProvider:
    1. FastEmbedEmbeddingProvider -- ONNX Runtime, no PyTorch.  Default.
    2. SentenceTransformerEmbeddingProvider -- PyTorch-based, GPU capable.

Both import their backing library lazily inside ``load()``, so importing
this package never requires either library to be installed.
"""

from emergency_kb.providers.embedding.fastembed_embedding_provider import (
    FastEmbedEmbeddingProvider,
)
from emergency_kb.providers.embedding.sentence_transformer_embedding_provider import (
    SentenceTransformerEmbeddingProvider,
)

__all__ = ["FastEmbedEmbeddingProvider", "SentenceTransformerEmbeddingProvider"]
