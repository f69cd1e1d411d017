"""Tagged result variants returned by the knowledge-base operations.

Every exposed operation returns exactly one of a small closed set of frozen
Pydantic models, discriminated by the ``kind`` literal.  Callers branch with
``isinstance`` or on ``result.kind``; nothing in this module is ever raised.

    initialize_if_needed / force_reinitialize
        -> InitializationSuccess | AlreadyInitialized | InitializationError
    add_document_at_runtime  -> DocumentAddSuccess | DocumentAddError
    search                   -> SearchSuccess | NoResults | SearchError
    add_entry                -> AddSuccess | AddError
    add_entry_batch          -> BatchAddSuccess | BatchAddError

The ingestion orchestrator itself reports through
``IngestSummary | IngestFailure``; the version manager maps those onto the
initialization variants.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from emergency_kb.models.knowledge import KnowledgeEntry, SearchEntry


def describe_cause(exc: BaseException | None) -> str | None:
    """Render an exception as ``"TypeName: message"`` for the ``cause`` fields."""
    if exc is None:
        return None
    return f"{type(exc).__name__}: {exc}"


# ---------------------------------------------------------------------------
# Parsing and ingestion
# ---------------------------------------------------------------------------

class ParseOutcome(BaseModel):
    """Candidate entries parsed from one source plus its per-record errors."""

    model_config = ConfigDict(frozen=True)

    entries: list[KnowledgeEntry] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class IngestSummary(BaseModel):
    """Aggregate counts for one ingestion run.

    ``errors`` holds per-source parse errors, per-record parse errors and
    per-entry storage failures, in the order they occurred.  ``skipped_count``
    counts entries dropped because embedding failed or validation rejected
    them.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["success"] = "success"
    added_count: int = Field(default=0, ge=0)
    source_count: int = Field(default=0, ge=0)
    skipped_count: int = Field(default=0, ge=0)
    elapsed_ms: int = Field(default=0, ge=0)
    errors: list[str] = Field(default_factory=list)
    used_fallback: bool = False
    cancelled: bool = False


class IngestFailure(BaseModel):
    """A run that could not produce any usable knowledge base."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["error"] = "error"
    message: str
    cause: str | None = None


IngestResult = Annotated[Union[IngestSummary, IngestFailure], Field(discriminator="kind")]


# ---------------------------------------------------------------------------
# Initialization
# ---------------------------------------------------------------------------

class InitializationSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["success"] = "success"
    entries_added: int = Field(default=0, ge=0)
    sources_processed: int = Field(default=0, ge=0)
    elapsed_ms: int = Field(default=0, ge=0)
    skipped_count: int = Field(default=0, ge=0)
    errors: list[str] = Field(default_factory=list)


class AlreadyInitialized(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["already_initialized"] = "already_initialized"
    message: str = "Knowledge base is already initialized"


class InitializationError(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["error"] = "error"
    message: str
    cause: str | None = None


InitializationResult = Annotated[
    Union[InitializationSuccess, AlreadyInitialized, InitializationError],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Runtime document add
# ---------------------------------------------------------------------------

class DocumentAddSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["success"] = "success"
    entries_added: int = Field(default=0, ge=0)
    source: str
    skipped_count: int = Field(default=0, ge=0)
    errors: list[str] = Field(default_factory=list)


class DocumentAddError(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["error"] = "error"
    message: str
    cause: str | None = None


DocumentAddResult = Annotated[
    Union[DocumentAddSuccess, DocumentAddError], Field(discriminator="kind")
]


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

class SearchSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["success"] = "success"
    matches: list[SearchEntry] = Field(default_factory=list)


class NoResults(BaseModel):
    """The query ran fine but nothing cleared the filters and threshold."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["no_results"] = "no_results"
    message: str


class SearchError(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["error"] = "error"
    message: str
    cause: str | None = None


SearchResult = Annotated[
    Union[SearchSuccess, NoResults, SearchError], Field(discriminator="kind")
]


# ---------------------------------------------------------------------------
# Single and batch entry add
# ---------------------------------------------------------------------------

class AddSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["success"] = "success"
    id: int


class AddError(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["error"] = "error"
    message: str
    cause: str | None = None


AddResult = Annotated[Union[AddSuccess, AddError], Field(discriminator="kind")]


class BatchAddSuccess(BaseModel):
    """``len(ids) + len(failures)`` always equals the number of submitted entries."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["success"] = "success"
    ids: list[int] = Field(default_factory=list)
    failures: list[str] = Field(default_factory=list)


class BatchAddError(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["error"] = "error"
    message: str
    cause: str | None = None


BatchAddResult = Annotated[Union[BatchAddSuccess, BatchAddError], Field(discriminator="kind")]
