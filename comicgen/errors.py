# comicgen/errors.py
"""
Error taxonomy for comic generation.

Fatal errors carry the HTTP status the API answers with; the exception
handlers in ``comicgen.main`` render them as ``{"error": "..."}``.
``ScriptCountMismatch`` and ``CharacterAnalysisError`` never reach the
client: the first is only logged, the second is absorbed by the
continuity resolver.
"""


class ComicError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ConfigurationError(ComicError):
    """Required backend credentials are missing."""
    status_code = 500


class BadRequestError(ComicError):
    status_code = 400


class TextBackendError(ComicError):
    """The text-generation backend failed on every attempt."""
    status_code = 502


class ScriptStructureError(ComicError):
    """The model never produced a parseable script with a panel array."""
    status_code = 502


class ImageGenerationError(ComicError):
    """Primary and fallback image backends were both exhausted for one panel."""
    status_code = 502


class CharacterAnalysisError(ComicError):
    pass


class ScriptCountMismatch(ComicError):
    """Accepted script whose panel count differs from the requested count."""

    def __init__(self, requested: int, actual: int):
        super().__init__(
            f"Failed to generate correct panel count after retries. "
            f"Requested {requested}, returning {actual} panels."
        )
        self.requested = requested
        self.actual = actual
