"""
Tests for custom exception hierarchy.
"""

import pytest

from geomark.core.errors import (
    ConfigurationError,
    CoordinateNotRecognized,
    GeocodingError,
    GeomarkException,
    InvalidShapeError,
    InvalidTransitionError,
    SearchFailedError,
    ShapeKindDisabledError,
    ShapeNotFoundError,
    ValidationError,
)


class TestGeomarkException:
    """Tests for base GeomarkException class."""

    def test_basic_exception(self) -> None:
        """Test basic exception creation."""
        exc = GeomarkException(message="Test error", error_code="TEST_ERROR")

        assert str(exc) == "TEST_ERROR: Test error"
        assert exc.message == "Test error"
        assert exc.error_code == "TEST_ERROR"
        assert exc.recoverable is False
        assert exc.details == {}
        assert exc.suggestions == []

    def test_to_dict(self) -> None:
        """Test conversion to dictionary."""
        exc = GeomarkException(
            message="Test error",
            error_code="TEST_ERROR",
            recoverable=True,
            details={"key": "value"},
            suggestions=["Suggestion 1"],
        )

        assert exc.to_dict() == {
            "error_code": "TEST_ERROR",
            "message": "Test error",
            "recoverable": True,
            "details": {"key": "value"},
            "suggestions": ["Suggestion 1"],
        }

    def test_repr(self) -> None:
        """Test repr includes the class and recoverability."""
        exc = GeomarkException(message="Oops", error_code="TEST_ERROR")

        assert repr(exc) == (
            "GeomarkException(error_code='TEST_ERROR', message='Oops', recoverable=False)"
        )


class TestSubclasses:
    """Tests for the concrete error types."""

    @pytest.mark.parametrize(
        "exc,code,recoverable",
        [
            (ValidationError("bad", field="lat"), "VALIDATION_ERROR", False),
            (CoordinateNotRecognized("nope", text="abc"), "COORDINATE_NOT_RECOGNIZED", True),
            (InvalidShapeError("bad", shape_kind="polygon"), "INVALID_SHAPE", False),
            (ShapeKindDisabledError("off", shape_kind="circle"), "SHAPE_KIND_DISABLED", True),
            (ShapeNotFoundError("gone", shape_id=3), "SHAPE_NOT_FOUND", True),
            (InvalidTransitionError("no", shape_id=3), "INVALID_TRANSITION", False),
            (GeocodingError("down", service_name="nominatim"), "GEOCODING_ERROR", True),
            (SearchFailedError("failed", query="x"), "SEARCH_FAILED", True),
            (ConfigurationError("bad", config_key="k"), "CONFIGURATION_ERROR", False),
        ],
    )
    def test_codes_and_recoverability(self, exc: GeomarkException, code: str, recoverable: bool) -> None:
        """Test each error carries its code and recoverability."""
        assert isinstance(exc, GeomarkException)
        assert exc.error_code == code
        assert exc.recoverable is recoverable

    def test_validation_error_field(self) -> None:
        """Test the field lands in details with a default suggestion."""
        exc = ValidationError("Latitude out of range", field="lat")

        assert exc.details["field"] == "lat"
        assert exc.suggestions == ["Check the input format and try again"]

    def test_coordinate_not_recognized_suggestions(self) -> None:
        """Test the parser error suggests both notations."""
        exc = CoordinateNotRecognized("nope", text="West Lake")

        assert exc.details["text"] == "West Lake"
        assert len(exc.suggestions) == 2

    def test_shape_not_found_zero_id(self) -> None:
        """Test falsy ids are still recorded."""
        assert ShapeNotFoundError("gone", shape_id=0).details["shape_id"] == 0

    def test_invalid_transition_details(self) -> None:
        """Test transition errors record state and event."""
        exc = InvalidTransitionError("no", shape_id=1, state="drawing", event="ShapeCreated")

        assert exc.details == {"shape_id": 1, "state": "drawing", "event": "ShapeCreated"}

    def test_custom_suggestions(self) -> None:
        """Test default suggestions can be replaced."""
        exc = GeocodingError("down", suggestions=["Use a self-hosted instance"])

        assert exc.suggestions == ["Use a self-hosted instance"]

    def test_details_are_merged(self) -> None:
        """Test explicit details are kept alongside the named fields."""
        exc = ConfigurationError("bad", config_key="geocoder_user_agent", details={"value": ""})

        assert exc.details == {"value": "", "config_key": "geocoder_user_agent"}
