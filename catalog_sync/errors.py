"""
Exceptions raised by the catalog synchronization pipeline.

Translation validation errors are retried per chunk; everything else aborts
the run immediately.
"""


class CatalogSyncError(Exception):
    """Base class for all pipeline errors."""


class ConfigError(CatalogSyncError):
    """Invalid configuration, e.g. an unknown language filter."""


class FetchError(CatalogSyncError):
    """The live source catalog could not be retrieved."""


class CatalogFormatError(CatalogSyncError):
    """A catalog file does not hold an object of strings and nested objects."""


class TranslationValidationError(CatalogSyncError):
    """The translation backend returned something unusable."""


class ParseError(TranslationValidationError):
    """The backend response is not valid JSON."""


class ShapeError(TranslationValidationError):
    """The backend response is not a JSON array of strings."""


class LengthMismatchError(TranslationValidationError):
    """The backend returned a different number of strings than it was given."""

    def __init__(self, message: str, expected: int, actual: int):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class PlaceholderMismatchError(TranslationValidationError):
    """A translated string lost, gained or altered a placeholder."""

    def __init__(self, message: str, index: int, source: str, candidate: str):
        super().__init__(message)
        self.index = index
        self.source = source
        self.candidate = candidate
