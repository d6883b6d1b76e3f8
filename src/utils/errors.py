"""Error handling utilities."""


class ListingsEngineError(Exception):
    """Base exception for the listings engine."""
    pass


class ConfigurationError(ListingsEngineError):
    """Required configuration is missing or invalid."""
    pass


class SourceUnavailableError(ListingsEngineError):
    """A data source is not configured or its client could not be created."""
    pass


class SourceQueryError(ListingsEngineError):
    """A query against a data source failed to execute."""

    def __init__(self, source: str, operation: str, error: Exception):
        self.source = source
        self.operation = operation
        self.error = error
        super().__init__(f"{source} query '{operation}' failed: {error}")
