"""Unit tests for the guarded Embedder."""

from __future__ import annotations

import asyncio
import math

from emergency_kb.services.embedder import Embedder, EmbedderStatus
from tests.conftest import EMBEDDING_DIM, KeyedEmbeddingProvider, unit


class TestInitialization:
    async def test_concurrent_first_calls_load_once(self) -> None:
        provider = KeyedEmbeddingProvider(load_delay=0.05)
        embedder = Embedder(provider)

        results = await asyncio.gather(*(embedder.embed(f"text {i}") for i in range(10)))

        assert provider.load_calls == 1
        assert all(len(v) == EMBEDDING_DIM for v in results)
        assert embedder.get_status() == (EmbedderStatus.READY, None)

    async def test_load_failure_is_cached(self) -> None:
        provider = KeyedEmbeddingProvider(fail_load=True)
        embedder = Embedder(provider)

        assert await embedder.embed("one") == []
        assert await embedder.embed("two") == []
        assert provider.load_calls == 1

        status, error = embedder.get_status()
        assert status is EmbedderStatus.FAILED
        assert "model weights missing" in str(error)

    async def test_release_allows_reinitialization(self) -> None:
        provider = KeyedEmbeddingProvider()
        embedder = Embedder(provider)
        await embedder.embed("one")

        await embedder.release()
        assert provider.unload_calls == 1
        assert embedder.get_status()[0] is EmbedderStatus.NOT_INITIALIZED

        await embedder.embed("two")
        assert provider.load_calls == 2


class TestEmbed:
    async def test_blank_text_returns_empty(self) -> None:
        provider = KeyedEmbeddingProvider()
        assert await Embedder(provider).embed("  ") == []
        assert provider.embedded == []

    async def test_truncates_long_input(self) -> None:
        provider = KeyedEmbeddingProvider()
        await Embedder(provider, max_text_length=20).embed("x" * 100)
        assert provider.embedded == ["x" * 20]

    async def test_backend_exception_returns_empty(self) -> None:
        embedder = Embedder(KeyedEmbeddingProvider(fail_texts=("boom",)))
        assert await embedder.embed("boom") == []

    async def test_wrong_dimension_returns_empty(self) -> None:
        embedder = Embedder(KeyedEmbeddingProvider(vectors={"short": [1.0, 0.0]}))
        assert await embedder.embed("short") == []

    async def test_non_finite_returns_empty(self) -> None:
        vector = unit(1.0)
        vector[3] = math.inf
        embedder = Embedder(KeyedEmbeddingProvider(vectors={"inf": vector}))
        assert await embedder.embed("inf") == []


class TestValidation:
    def test_is_valid_embedding(self) -> None:
        embedder = Embedder(KeyedEmbeddingProvider())
        assert embedder.is_valid_embedding(unit(1.0))
        assert not embedder.is_valid_embedding([])
        assert not embedder.is_valid_embedding([1.0])
        assert not embedder.is_valid_embedding(unit(math.nan))
