"""Custom exceptions for DocChat."""

from typing import Optional


class DocChatError(Exception):
    """Base exception for everything raised by DocChat."""

    pass


class ChunkingPreconditionError(DocChatError, ValueError):
    """Raised when the window size / overlap combination is invalid."""

    pass


class DocumentProcessingError(DocChatError):
    """Base exception for upload and extraction errors."""

    pass


class UnsupportedFormatError(DocumentProcessingError):
    """Raised when an uploaded file is not PDF, DOCX or plain text."""

    pass


class ExtractionError(DocumentProcessingError):
    """Raised when text cannot be read from a file (corrupt, encrypted...)."""

    pass


class DocumentEmptyError(DocumentProcessingError):
    """Raised when a document has too little extractable text."""

    pass


class FileTooLargeError(DocumentProcessingError):
    """Raised when an upload exceeds the configured size limit."""

    pass


class DocumentNotFoundError(DocChatError):
    """Raised when a document id does not exist in the store."""

    pass


class CredentialsNotConfiguredError(DocChatError):
    """Raised when no API key is configured for the language model."""

    pass


class SummarizationError(DocChatError):
    """
    Raised when a call to the language model fails terminally.

    Carries the HTTP status and upstream error code (when there was a
    response) and whether retrying the call may succeed.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.retryable = retryable


class NoAnswerError(DocChatError):
    """Raised when the model returns no answer for a document question."""

    pass
