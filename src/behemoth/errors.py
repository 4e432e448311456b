"""Error types raised by the load generator."""


class BehemothError(Exception):
    """Base class for all load generator errors."""


class ConfigurationError(BehemothError):
    """Invalid configuration or failed session setup; raised before streaming starts."""


class IngestionError(BehemothError):
    """Failure reported by the ingestion session."""


class SubmissionError(IngestionError):
    """A flow could not be delivered. The streaming loop does not resend it."""

    def __init__(self, message: str):
        super().__init__(message)
        self.close_error: BaseException | None = None


class SessionCloseError(IngestionError):
    """Flushing or finalizing the ingestion session failed."""
