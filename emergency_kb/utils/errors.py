"""Custom exception hierarchy for the emergency knowledge base.

All application exceptions inherit from :class:`KnowledgeBaseError`, which
carries an optional ``provider_name`` so error handlers can identify which
backend (e.g. "fastembed", "sqlite_knowledge_store") caused the failure.

The hierarchy is organized by pipeline stage:

    KnowledgeBaseError  (base -- catch-all for any knowledge-base error)
    +-- ValidationError          (blank query/text, missing mandatory column)
    +-- ParseError               (a source opened but yielded nothing usable)
    +-- SourceUnavailableError   (an optional source could not be opened)
    +-- EmbeddingError           (embedding backend failed to load or encode)
    +-- StorageError             (knowledge store or version-state failure)
    +-- ConfigurationError       (invalid settings or source manifest)
    +-- IngestionCancelledError  (cooperative cancellation was requested)

Per-entry failures never travel as exceptions past their stage: they are
collected as strings into result objects.  Only the exposed operations in
:mod:`emergency_kb.services.knowledge_base` turn a stray exception into a
top-level ``Error`` result.
"""


class KnowledgeBaseError(Exception):
    """Base exception for all knowledge-base errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which backend triggered the error.  The
    ``__str__`` method prefixes the provider name in brackets for structured
    log output, e.g. ``[fastembed] Model failed to load``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Input errors
# ---------------------------------------------------------------------------

class ValidationError(KnowledgeBaseError):
    """Raised for invalid caller input: blank query or text, bad limit, missing column."""

    def __init__(
        self,
        message: str = "Invalid input",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ParseError(KnowledgeBaseError):
    """Raised when a source opens but nothing extractable can be parsed from it."""

    def __init__(
        self,
        message: str = "Document could not be parsed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class SourceUnavailableError(KnowledgeBaseError):
    """Raised when a source cannot be opened.

    The ingestion orchestrator treats this as a silent skip: configured
    sources are allowed to be absent.
    """

    def __init__(
        self,
        message: str = "Source is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Backend errors
# ---------------------------------------------------------------------------

class EmbeddingError(KnowledgeBaseError):
    """Raised when an embedding backend fails to load its model or encode text."""

    def __init__(
        self,
        message: str = "Embedding generation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StorageError(KnowledgeBaseError):
    """Raised when the knowledge store or the version-state store fails."""

    def __init__(
        self,
        message: str = "Storage operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Orchestration / configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(KnowledgeBaseError):
    """Raised when configuration or the source manifest is invalid."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class IngestionCancelledError(KnowledgeBaseError):
    """Raised inside an ingestion run once its cancellation token is set."""

    def __init__(
        self,
        message: str = "Ingestion was cancelled",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
