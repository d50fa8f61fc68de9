"""Exception hierarchy for the aggregation engine.

Only InvalidQueryError is meant to reach the boundary layer. Provider,
classifier and enrichment errors are raised by collaborators and absorbed
by the gateway / orchestrator with a fallback.
"""

from typing import Any, Optional


class NeuroShopError(Exception):
    """Base exception for all NeuroShop errors."""

    def __init__(
        self,
        message: str,
        code: str = "NEUROSHOP_ERROR",
        details: Optional[dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        result: dict[str, Any] = {
            "error": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message} (caused by: {self.cause})"
        return self.message


class InvalidQueryError(NeuroShopError):
    """Malformed or missing query reached the engine."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class ProviderError(NeuroShopError):
    """A single source failed to return offers."""

    def __init__(
        self,
        provider: str,
        message: str,
        cause: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            code="PROVIDER_ERROR",
            details={"provider": provider},
            cause=cause,
        )
        self.provider = provider


class ClassifierError(NeuroShopError):
    """Search term rewriting or category detection failed."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message, code="CLASSIFIER_ERROR", cause=cause)


class EnrichmentError(NeuroShopError):
    """Descriptive product info could not be generated."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message, code="ENRICHMENT_ERROR", cause=cause)
