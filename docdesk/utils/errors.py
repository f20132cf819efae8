"""Custom exception hierarchy for docdesk.

All application exceptions inherit from :class:`DocDeskError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai", "openrouter", "sqlite") caused the failure.

The hierarchy is organized by where the failure surfaces:

    DocDeskError  (base -- catch-all for any docdesk error)
    +-- ValidationError        (bad upload type/size, blank message)
    +-- NotFoundError          (unknown conversation / document id)
    +-- ProviderError          (embedding or generation backend failure)
    +-- ExtractionError        (unsupported or unreadable document)
    +-- ChunkProcessingError   (one chunk could not be embedded or stored)
    +-- StorageError           (storage integrity failure)
    +-- ConfigurationError     (startup / invalid config)

Callers handle errors at the right level -- e.g. the chat service degrades
to keyword search on ProviderError during retrieval, while the API layer
maps ValidationError to HTTP 400 and NotFoundError to HTTP 404.
"""


class DocDeskError(Exception):
    """Base exception for all docdesk errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[openai] Rate limit exceeded``.
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
# Caller-facing errors
# ---------------------------------------------------------------------------

class ValidationError(DocDeskError):
    """Raised when caller input is rejected (file type, file size, blank text)."""

    def __init__(
        self,
        message: str = "Invalid input",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class NotFoundError(DocDeskError):
    """Raised when a referenced record does not exist."""

    def __init__(
        self,
        message: str = "Record not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# External capability errors
# ---------------------------------------------------------------------------

class ProviderError(DocDeskError):
    """Raised when an embedding or generation backend call fails.

    Covers API errors, timeouts, empty responses, and the case where no
    backend is configured for the capability at all.
    """

    def __init__(
        self,
        message: str = "Provider call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Ingestion errors
# ---------------------------------------------------------------------------

class ExtractionError(DocDeskError):
    """Raised when text cannot be extracted from an uploaded document."""

    def __init__(
        self,
        message: str = "Text extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ChunkProcessingError(DocDeskError):
    """Raised when a single chunk cannot be embedded or persisted.

    Carries the ``chunk_index`` so the ingestion log identifies which
    window of the document was affected.
    """

    def __init__(
        self,
        message: str = "Chunk processing failed",
        provider_name: str | None = None,
        chunk_index: int | None = None,
    ) -> None:
        self._chunk_index = chunk_index
        super().__init__(message=message, provider_name=provider_name)

    @property
    def chunk_index(self) -> int | None:
        return self._chunk_index


# ---------------------------------------------------------------------------
# Infrastructure errors
# ---------------------------------------------------------------------------

class StorageError(DocDeskError):
    """Raised when the storage layer detects an integrity problem."""

    def __init__(
        self,
        message: str = "Storage operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(DocDeskError):
    """Raised when required configuration is missing or invalid at startup."""

    def __init__(
        self,
        message: str = "Invalid configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
