"""Domain error hierarchy for clean exception handling."""
from __future__ import annotations


class DomainError(Exception):
    """Base for all domain errors."""


class NotFoundError(DomainError):
    """Resource not found."""


class ValidationError(DomainError):
    """Invalid input or state."""


class NoArtifactProducedError(ValidationError):
    """The conversion engine ran but produced nothing to store."""


class ConflictError(DomainError):
    """Resource conflict (e.g., identifier already taken)."""


class ConversionFailedError(DomainError):
    """The conversion engine raised, rejected the input or timed out."""


class PersistenceError(DomainError):
    """Artifact storage could not be initialized or written."""
