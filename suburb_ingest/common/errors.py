"""Domain errors and failure typing."""


class IngestError(Exception):
    """Base class for ingestion failures."""

    error_code = "INGEST_ERROR"


class ConfigError(IngestError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class UpstreamError(IngestError):
    """Raised when a caller opts to turn a failed fetch into an exception."""

    error_code = "UPSTREAM_ERROR"

    def __init__(self, failure) -> None:
        super().__init__(f"Upstream {failure.status}: {failure.message}")
        self.failure = failure
        self.error_code = failure.kind.value
