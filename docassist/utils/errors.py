"""Custom exception hierarchy for docassist.

All application exceptions inherit from :class:`DocAssistError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "chromadb", "llamacpp", "sentence-transformers")
caused the failure.

The hierarchy is organized by pipeline domain:

    DocAssistError  (base -- catch-all for any docassist error)
    +-- ConfigurationError         (startup / missing config)
    |   +-- InvalidConfigurationError  (values present but inconsistent)
    +-- UnsupportedFormatError     (ingestion: unknown file extension)
    +-- DocumentNotFoundError      (ingestion: missing file or document id)
    +-- RetrievalError             (embedding or vector-store failure)
    +-- InferenceError             (inference server timeout / non-2xx)
    +-- UnknownConversationError   (conversation id not in the store)
    +-- UnknownEscalationError     (escalation id not recorded)

Query-time errors (``RetrievalError``, ``InferenceError``) are caught at the
orchestrator boundary and turned into an apology answer.  Everything else
propagates to the caller; the API middleware maps them to HTTP statuses.
"""


class DocAssistError(Exception):
    """Base exception for all docassist errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[llamacpp] Inference request timed out``.
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
# Configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(DocAssistError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class InvalidConfigurationError(ConfigurationError):
    """Raised when configured values contradict each other.

    The canonical case is a chunker built with ``chunk_overlap >= chunk_size``,
    which would never advance through the text.
    """

    def __init__(
        self,
        message: str = "Configuration values are inconsistent",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Ingestion errors
# ---------------------------------------------------------------------------

class UnsupportedFormatError(DocAssistError):
    """Raised when a file extension has no registered source processor."""

    def __init__(
        self,
        message: str = "Unsupported document format",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DocumentNotFoundError(DocAssistError):
    """Raised when a file path or processed-document id does not exist."""

    def __init__(
        self,
        message: str = "Document not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Query-time errors
# ---------------------------------------------------------------------------

class RetrievalError(DocAssistError):
    """Raised when an embedding or vector-store operation fails."""

    def __init__(
        self,
        message: str = "Retrieval operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class InferenceError(DocAssistError):
    """Raised when the inference server times out, refuses the connection,
    or answers with a non-2xx status.  Never retried.
    """

    def __init__(
        self,
        message: str = "Inference call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# State lookup errors
# ---------------------------------------------------------------------------

class UnknownConversationError(DocAssistError):
    """Raised when an operation references a conversation id that is not
    held by the conversation store.
    """

    def __init__(
        self,
        message: str = "Conversation not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UnknownEscalationError(DocAssistError):
    """Raised when an escalation id does not match any recorded ticket."""

    def __init__(
        self,
        message: str = "Escalation not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
