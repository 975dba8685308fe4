"""
------------------------------------------------------------------------------
Project:        DeweyFlux
File:           core/errors.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Exception hierarchy for the operation boundary. Every error
                here is recoverable: the failing document or import is
                skipped and the current library stays untouched.
------------------------------------------------------------------------------
"""

from typing import Optional


class DeweyFluxError(Exception):
    """Base class for all recoverable DeweyFlux errors."""


class ClassificationError(DeweyFluxError):
    """A document could not be turned into a classification record."""

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        super().__init__(message)
        self.details = details

    def __str__(self) -> str:
        base = super().__str__()
        if self.details:
            return f"{base} ({self.details})"
        return base


class ServiceError(ClassificationError):
    """Network, authentication or model failure of the AI backend."""


class MalformedResponseError(ClassificationError):
    """The AI backend answered, but not with a parsable JSON object."""


class MissingFieldError(ClassificationError):
    """The AI response parsed but lacks required fields."""


class LibraryImportError(DeweyFluxError):
    """A serialized library could not be read. Nothing was imported."""
