"""Embed-and-validate stage shared by bootstrap ingestion and batch adds.

Candidates with an empty embedding and non-blank text are sent to the
:class:`~emergency_kb.services.embedder.Embedder`; precomputed embeddings
are kept as they are.  Every candidate is then checked against the
persisted-entry invariant (non-blank text; non-empty, correctly sized,
finite embedding).  Rejections are returned with their input index, never
raised.

Embedding runs through :func:`throttled_gather`: ``concurrency=1`` keeps the
calls strictly sequential in input order, larger values form a bounded
worker pool.  Output order always follows input order.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import structlog

from emergency_kb.models.knowledge import KnowledgeEntry
from emergency_kb.services.embedder import Embedder
from emergency_kb.utils.concurrency import CancellationToken, throttled_gather

logger = structlog.get_logger(logger_name=__name__)

BLANK_TEXT_REASON = "Text content cannot be empty"
INVALID_EMBEDDING_REASON = "Invalid embedding"


@dataclass
class PreparedEntries:
    """Outcome of :func:`embed_and_validate`.

    Attributes
    ----------
    valid:
        Entries ready to persist, in input order.
    rejected:
        ``(input_index, reason)`` for every dropped candidate, in input order.
    """

    valid: list[KnowledgeEntry] = field(default_factory=list)
    rejected: list[tuple[int, str]] = field(default_factory=list)


async def embed_and_validate(
    entries: list[KnowledgeEntry],
    embedder: Embedder,
    concurrency: int = 1,
    cancel_token: CancellationToken | None = None,
) -> PreparedEntries:
    """Fill in missing embeddings and drop candidates that cannot be persisted.

    Raises
    ------
    IngestionCancelledError
        If *cancel_token* is cancelled before every candidate was processed.
    """
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def _prepare(entry: KnowledgeEntry) -> KnowledgeEntry | str:
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        if not entry.text.strip():
            return BLANK_TEXT_REASON
        if not entry.embedding:
            vector = await embedder.embed(entry.text)
            if not vector:
                return INVALID_EMBEDDING_REASON
            entry = entry.model_copy(update={"embedding": vector})
        if not embedder.is_valid_embedding(entry.embedding):
            return INVALID_EMBEDDING_REASON
        return entry

    outcomes = await throttled_gather([_prepare(e) for e in entries], semaphore)

    prepared = PreparedEntries()
    for index, outcome in enumerate(outcomes):
        # IngestionCancelledError, or a bug: Embedder.embed itself never raises.
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, str):
            prepared.rejected.append((index, outcome))
            logger.warning(
                "entry_rejected",
                index=index,
                title=entries[index].title,
                reason=outcome,
            )
        else:
            prepared.valid.append(outcome)
    return prepared
