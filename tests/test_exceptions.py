"""Tests for the domain exception taxonomy and its error codes."""
import pytest

from cycleplan.core.exceptions import (
    BusinessRuleError,
    ConflictError,
    DomainError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)


class TestDomainErrorExceptions:
    """Test domain exception classes and their error codes."""

    def test_domain_error_base(self):
        """Test base DomainError class."""
        error = DomainError(
            code="TEST_001",
            message="Test error message",
            details={"key": "value"}
        )

        assert error.code == "TEST_001"
        assert error.message == "Test error message"
        assert error.details == {"key": "value"}
        assert str(error) == "Test error message"

    def test_not_found_error(self):
        """Test NotFoundError generates correct error code."""
        error = NotFoundError("cycle", "Cycle c-9 not found", {"cycle_id": "c-9"})

        assert error.code == "NF_CYCLE_001"
        assert error.message == "Cycle c-9 not found"
        assert error.details == {"cycle_id": "c-9"}

    def test_not_found_error_default_message(self):
        """Test NotFoundError generates default message when none provided."""
        error = NotFoundError("program")

        assert error.code == "NF_PROGRAM_001"
        assert error.message == "program not found"
        assert error.details == {}

    def test_validation_error(self):
        """Test ValidationError generates correct error code."""
        error = ValidationError("date_range", "cycle date range overlaps with an existing cycle")

        assert error.code == "VAL_DATE_RANGE_001"
        assert error.message == (
            "Validation failed for date_range: cycle date range overlaps with an existing cycle"
        )
        assert error.details == {"field": "date_range"}

    def test_validation_error_with_details(self):
        """Test ValidationError with custom details."""
        error = ValidationError(
            "as_of",
            "cycle cannot be started outside its valid date range",
            {"as_of": "2026-03-01", "start_date": "2026-01-05"}
        )

        assert error.code == "VAL_AS_OF_001"
        assert "outside its valid date range" in error.message
        assert error.details == {"as_of": "2026-03-01", "start_date": "2026-01-05"}

    def test_business_rule_error_default(self):
        """Test BusinessRuleError with default code."""
        error = BusinessRuleError("Cannot reuse a cycle number")

        assert error.code == "BR_001"
        assert error.details == {}

    def test_business_rule_error_custom_code(self):
        """Test BusinessRuleError with custom code."""
        error = BusinessRuleError(
            "Another cycle is already active",
            code="BR_SINGLE_ACTIVE_CYCLE",
            details={"program_id": "p-1"}
        )

        assert error.code == "BR_SINGLE_ACTIVE_CYCLE"
        assert error.details == {"program_id": "p-1"}

    def test_invalid_transition_is_business_rule(self):
        """Test InvalidTransitionError is caught as a BusinessRuleError."""
        error = InvalidTransitionError("Cannot start a completed cycle", {"cycle_id": "c-1"})

        assert isinstance(error, BusinessRuleError)
        assert error.code == "BR_INVALID_TRANSITION"
        assert error.details == {"cycle_id": "c-1"}

        with pytest.raises(BusinessRuleError):
            raise error

    def test_conflict_error_default(self):
        """Test ConflictError with default code."""
        error = ConflictError("Resource already exists")

        assert error.code == "CF_001"
        assert error.message == "Resource already exists"
        assert error.details == {}

    def test_conflict_error_custom(self):
        """Test ConflictError with custom code and details."""
        error = ConflictError(
            "Program p-1 already exists",
            code="CF_PROGRAM_EXISTS",
            details={"program_id": "p-1"}
        )

        assert error.code == "CF_PROGRAM_EXISTS"
        assert error.details == {"program_id": "p-1"}

    @pytest.mark.parametrize(
        "error",
        [
            NotFoundError("cycle"),
            ValidationError("as_of", "bad"),
            BusinessRuleError("rule"),
            InvalidTransitionError("transition"),
            ConflictError("conflict"),
        ],
    )
    def test_all_are_domain_errors(self, error):
        assert isinstance(error, DomainError)
