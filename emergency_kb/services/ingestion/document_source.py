"""Readable sources handed to the ingestion pipeline."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from emergency_kb.models.knowledge import DocumentMetadata
from emergency_kb.utils.errors import SourceUnavailableError


@dataclass(frozen=True)
class DocumentSource:
    """A lazily opened document plus the metadata describing how to parse it.

    Attributes
    ----------
    opener:
        Zero-argument callable returning the raw document bytes.  It runs in
        a worker thread; an ``OSError`` (missing file, permission denied)
        marks the source as unavailable.
    metadata:
        Parsing instructions and entry defaults for this document.
    location:
        Human-readable origin used in logs, e.g. a file path.
    """

    opener: Callable[[], bytes]
    metadata: DocumentMetadata
    location: str = ""

    @classmethod
    def from_path(cls, path: str | Path, metadata: DocumentMetadata) -> DocumentSource:
        file_path = Path(path)
        return cls(opener=file_path.read_bytes, metadata=metadata, location=str(file_path))

    @classmethod
    def from_bytes(cls, data: bytes, metadata: DocumentMetadata) -> DocumentSource:
        return cls(opener=lambda: data, metadata=metadata, location=f"<{metadata.source}>")

    @property
    def name(self) -> str:
        return self.metadata.source

    async def read(self) -> bytes:
        """Open the source off the event loop.

        Raises
        ------
        SourceUnavailableError
            If the opener raises ``OSError``.
        """
        try:
            return await asyncio.to_thread(self.opener)
        except OSError as exc:
            raise SourceUnavailableError(
                f"Cannot open {self.location or self.name}: {exc.strerror or exc}"
            ) from exc
