"""Shared pytest fixtures for the emergency knowledge-base test suite."""

from __future__ import annotations

import hashlib
import struct
import time
from pathlib import Path

import pytest

from emergency_kb.config.settings import Settings
from emergency_kb.interfaces.embedding_provider import IEmbeddingProvider
from emergency_kb.main import build_knowledge_base
from emergency_kb.models.knowledge import DocumentFormat, DocumentMetadata, KnowledgeEntry
from emergency_kb.providers.knowledge_store import InMemoryKnowledgeStore
from emergency_kb.services.embedder import Embedder
from emergency_kb.services.knowledge_base import KnowledgeBase
from emergency_kb.utils.errors import EmbeddingError

# ---------------------------------------------------------------------------
# Deterministic embedding providers
# ---------------------------------------------------------------------------

EMBEDDING_DIM = 8


def hash_to_vector(text: str, dim: int = EMBEDDING_DIM) -> list[float]:
    """Generate a deterministic unit vector by hashing *text*.

    Same text always produces the same vector; different texts are nearly
    orthogonal in expectation, so they rarely clear the 0.6 threshold.
    """
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    raw = digest
    while len(raw) < dim * 4:
        raw += hashlib.sha256(raw).digest()
    # Unsigned ints keep every component finite.
    values = [v - 2**31 for v in struct.unpack(f"<{dim}I", raw[: dim * 4])]
    magnitude = max(sum(v * v for v in values) ** 0.5, 1e-10)
    return [v / magnitude for v in values]


def unit(*components: float, dim: int = EMBEDDING_DIM) -> list[float]:
    """Pad *components* with zeros up to *dim*."""
    return list(components) + [0.0] * (dim - len(components))


class KeyedEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider returning preset vectors per text.

    Texts without a preset fall back to :func:`hash_to_vector`.  Texts in
    ``fail_texts`` raise :class:`EmbeddingError`; ``fail_load`` makes
    :meth:`load` raise.
    """

    def __init__(
        self,
        vectors: dict[str, list[float]] | None = None,
        dim: int = EMBEDDING_DIM,
        fail_texts: tuple[str, ...] = (),
        fail_load: bool = False,
        load_delay: float = 0.0,
    ) -> None:
        self.vectors = dict(vectors or {})
        self.dim = dim
        self.fail_texts = set(fail_texts)
        self.fail_load = fail_load
        self.load_delay = load_delay
        self.load_calls = 0
        self.unload_calls = 0
        self.embedded: list[str] = []

    def load(self) -> None:
        self.load_calls += 1
        if self.load_delay:
            time.sleep(self.load_delay)
        if self.fail_load:
            raise EmbeddingError("model weights missing", provider_name="keyed")

    def unload(self) -> None:
        self.unload_calls += 1

    async def embed(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed_single(t) for t in texts]

    async def embed_single(self, text: str) -> list[float]:
        self.embedded.append(text)
        if text in self.fail_texts:
            raise EmbeddingError(f"cannot embed {text!r}", provider_name="keyed")
        if text in self.vectors:
            return list(self.vectors[text])
        return hash_to_vector(text, self.dim)

    def get_dimension(self) -> int:
        return self.dim

    def get_provider_name(self) -> str:
        return "keyed-mock"

    def is_available(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Entry and metadata helpers
# ---------------------------------------------------------------------------


def make_entry(
    title: str = "Severe Bleeding Control",
    text: str = "Apply direct pressure to the wound with a clean cloth.",
    embedding: list[float] | None = None,
    category: str = "medical",
    priority: int = 1,
    **kwargs,
) -> KnowledgeEntry:
    return KnowledgeEntry(
        title=title,
        text=text,
        embedding=embedding if embedding is not None else hash_to_vector(text),
        category=category,
        priority=priority,
        **kwargs,
    )


def make_metadata(
    source: str = "test-doc",
    fmt: DocumentFormat = DocumentFormat.TEXT,
    **kwargs,
) -> DocumentMetadata:
    return DocumentMetadata(source=source, format=fmt, **kwargs)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def keyed_provider() -> KeyedEmbeddingProvider:
    return KeyedEmbeddingProvider()


@pytest.fixture
def embedder(keyed_provider: KeyedEmbeddingProvider) -> Embedder:
    return Embedder(keyed_provider)


@pytest.fixture
def memory_store() -> InMemoryKnowledgeStore:
    return InMemoryKnowledgeStore()


def make_settings(tmp_path: Path, **overrides) -> Settings:
    """Settings pointing every file at *tmp_path*, with no YAML config or source manifest."""
    values = {
        "knowledge_store": "memory",
        "state_db_path": str(tmp_path / "kb_state.db"),
        "knowledge_db_path": str(tmp_path / "knowledge.db"),
        "sources_manifest_path": str(tmp_path / "sources.yaml"),
        "config_path": str(tmp_path / "config.yaml"),
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
async def knowledge_base(tmp_path: Path, keyed_provider: KeyedEmbeddingProvider) -> KnowledgeBase:
    """A fully wired KnowledgeBase over an in-memory store and the keyed embedder."""
    kb = build_knowledge_base(make_settings(tmp_path), embedding_provider=keyed_provider)
    await kb.initialize_storage()
    return kb
