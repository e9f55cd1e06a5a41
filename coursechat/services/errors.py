from __future__ import annotations


class ChatServiceError(Exception):
    """Base error for the chat pipeline. Carries the HTTP status it maps to."""

    status_code = 500


class InvalidRequest(ChatServiceError):
    """Raised when required request fields are missing."""

    status_code = 400


class NoMaterialFound(ChatServiceError):
    """Raised when a valid filter matches no course material."""

    status_code = 404


class NotFound(ChatServiceError):
    """Raised when no session matches the requested id (and owner)."""

    status_code = 404


class MaterialLookupFailed(ChatServiceError):
    status_code = 502


class EmbeddingFailed(ChatServiceError):
    status_code = 502


class GenerationFailed(ChatServiceError):
    status_code = 502


class ExtractionFailed(ChatServiceError):
    """Raised by the extractor for a single document. Never surfaced to callers."""

    status_code = 502
