"""Custom exception hierarchy for marble-lexicon."""


class MarbleLexiconError(Exception):
    """Base exception for all marble-lexicon errors."""


class ConfigError(MarbleLexiconError):
    """Invalid or unreadable conversion configuration."""

    def __init__(self, message: str, line: int | None = None):
        self.line = line
        super().__init__(message)


class DataImportError(MarbleLexiconError):
    """Failed to read a source document (malformed XML, etc.)."""


class DuplicateIdError(MarbleLexiconError):
    """Entry or sense id collides with another one in the same language."""


class LoadError(MarbleLexiconError):
    """A normalized document could not be loaded into the database."""


class DatabaseError(MarbleLexiconError):
    """Schema version mismatch, connection failure."""


class ExportError(MarbleLexiconError):
    """Failed to write a normalized lexicon document."""
