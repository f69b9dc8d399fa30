"""
Custom exception hierarchy for Geomark.

Every condition the engine reports derives from GeomarkException. Conditions
flagged ``recoverable`` are absorbed by the caller (parse fallback, rejected
draw tool, empty search results); the rest are contract violations.
"""

from typing import Any, Dict, List, Optional


class GeomarkException(Exception):
    """
    Base exception for all Geomark-specific errors.

    Attributes:
        error_code: String identifier for the error type
        message: User-friendly error message
        details: Technical details for logging/debugging
        recoverable: Whether callers are expected to absorb the error locally
        suggestions: Optional list of resolution suggestions
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        recoverable: bool = False,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize GeomarkException.

        Args:
            message: User-friendly error message
            error_code: String identifier for the error type
            recoverable: Whether the error is absorbed locally by callers
            details: Technical details for logging
            suggestions: List of suggestions for resolution
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.recoverable = recoverable
        self.details = details or {}
        self.suggestions = suggestions or []

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for logging or UI display.

        Returns:
            Dictionary representation of the error
        """
        return {
            "error_code": self.error_code,
            "message": self.message,
            "recoverable": self.recoverable,
            "details": self.details,
            "suggestions": self.suggestions,
        }

    def __str__(self) -> str:
        """String representation of the exception."""
        return f"{self.error_code}: {self.message}"

    def __repr__(self) -> str:
        """Detailed string representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"error_code='{self.error_code}', "
            f"message='{self.message}', "
            f"recoverable={self.recoverable})"
        )


def _merge_details(details: Optional[Dict[str, Any]], **named: Any) -> Dict[str, Any]:
    """Copy ``details`` and add the named fields that were given."""
    merged = dict(details or {})
    merged.update((key, value) for key, value in named.items() if value is not None)
    return merged


class ValidationError(GeomarkException):
    """
    Raised when input validation fails.

    Used for malformed shape payloads or values handed to the engine by
    application code.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        super().__init__(
            message,
            "VALIDATION_ERROR",
            details=_merge_details(details, field=field),
            suggestions=suggestions or ["Check the input format and try again"],
        )


class CoordinateNotRecognized(GeomarkException):
    """
    Raised when free text matches none of the coordinate grammars.

    Recoverable: the search box falls back to a geocoding lookup.
    """

    SUGGESTIONS = [
        "Use decimal degrees such as '30.3557, 120.0240'",
        "Use degrees-minutes-seconds such as 30°21'20\"N 120°1'26\"E",
    ]

    def __init__(
        self,
        message: str,
        text: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message,
            "COORDINATE_NOT_RECOGNIZED",
            recoverable=True,
            details=_merge_details(details, text=text),
            suggestions=list(self.SUGGESTIONS),
        )


class InvalidShapeError(GeomarkException):
    """
    Raised when a shape's geometry cannot be measured or committed.

    A contract violation: the draw tool must never commit degenerate
    geometry (too few vertices, self-intersecting rings where forbidden).
    """

    SUGGESTIONS = [
        "Polylines need at least 2 points and polygons at least 3",
        "Check for self-intersecting rings",
    ]

    def __init__(
        self,
        message: str,
        shape_kind: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message,
            "INVALID_SHAPE",
            details=_merge_details(details, shape_kind=shape_kind),
            suggestions=list(self.SUGGESTIONS),
        )


class ShapeKindDisabledError(GeomarkException):
    """
    Raised when a draw attempt targets a shape kind the toolbar disables.

    Recoverable: the draw tool simply does not activate.
    """

    def __init__(self, message: str, shape_kind: Optional[str] = None):
        super().__init__(
            message,
            "SHAPE_KIND_DISABLED",
            recoverable=True,
            details=_merge_details(None, shape_kind=shape_kind),
        )


class ShapeNotFoundError(GeomarkException):
    """Raised when an event references a shape id that is not live."""

    def __init__(self, message: str, shape_id: Optional[int] = None):
        super().__init__(
            message,
            "SHAPE_NOT_FOUND",
            recoverable=True,
            details=_merge_details(None, shape_id=shape_id),
        )


class InvalidTransitionError(GeomarkException):
    """Raised when an event is not allowed in the shape's current state."""

    def __init__(
        self,
        message: str,
        shape_id: Optional[int] = None,
        state: Optional[str] = None,
        event: Optional[str] = None,
    ):
        super().__init__(
            message,
            "INVALID_TRANSITION",
            details=_merge_details(None, shape_id=shape_id, state=state, event=event),
        )


class GeocodingError(GeomarkException):
    """Raised when the geocoding service fails or returns a malformed payload."""

    def __init__(
        self,
        message: str,
        service_name: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        super().__init__(
            message,
            "GEOCODING_ERROR",
            recoverable=True,
            details=_merge_details(details, service_name=service_name),
            suggestions=suggestions
            or ["Try again in a few moments", "Check network access to the geocoding service"],
        )


class SearchFailedError(GeomarkException):
    """
    Describes a location search that could not be completed.

    Never raised out of the resolver: it is logged, stored and handed to
    failure listeners while the caller receives an empty result list.
    """

    def __init__(
        self,
        message: str,
        query: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message,
            "SEARCH_FAILED",
            recoverable=True,
            details=_merge_details(details, query=query),
            suggestions=["Try again in a few moments", "Refine the search text"],
        )


class ConfigurationError(GeomarkException):
    """Raised when application configuration is invalid."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message,
            "CONFIGURATION_ERROR",
            details=_merge_details(details, config_key=config_key),
            suggestions=["Check the GEOMARK_* environment variables", "Verify .env file syntax"],
        )
