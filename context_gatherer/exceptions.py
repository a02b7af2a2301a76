"""Custom exceptions for context-gatherer."""


class ContextGathererError(Exception):
    """Base exception for all context-gatherer errors."""


class ConfigError(ContextGathererError):
    """Configuration-related errors."""


class SourceGatherError(ContextGathererError):
    """A context source failed while gathering."""

    def __init__(self, source_name: str, message: str):
        super().__init__(f"Source '{source_name}' failed: {message}")
        self.source_name = source_name


class SourceTimeoutError(SourceGatherError):
    """A context source did not finish within the configured timeout."""

    def __init__(self, source_name: str, timeout: float):
        super().__init__(source_name, f"timed out after {timeout:g}s")
        self.timeout = timeout
