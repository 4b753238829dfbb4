"""Tests for correlation IDs and their use in domain exceptions."""

import re

import pytest

from core.correlation import (
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from models.exceptions import (
    DomainException,
    InvalidTransitionException,
    ReportNotFoundException,
    ValidationException,
)


class TestCorrelationIds:
    def test_format(self) -> None:
        """Short enough to read out over the phone."""
        assert re.match(r"^[0-9a-f]{8}$", generate_correlation_id())

    def test_generates_unique_ids(self) -> None:
        ids = {generate_correlation_id() for _ in range(1000)}
        assert len(ids) == 1000

    def test_set_and_get(self) -> None:
        set_correlation_id("abc12345")
        assert get_correlation_id() == "abc12345"

        set_correlation_id("")
        assert get_correlation_id() == ""


class TestExceptionCorrelation:
    def setup_method(self) -> None:
        set_correlation_id("")

    @pytest.mark.parametrize(
        "factory",
        [
            lambda: DomainException("boom"),
            lambda: ValidationException("Latitude must be between -90 and 90"),
            lambda: ReportNotFoundException(7),
            lambda: InvalidTransitionException(7, "verified", "rejected"),
        ],
    )
    def test_uses_request_correlation_id(self, factory) -> None:
        set_correlation_id("req00001")
        assert factory().correlation_id == "req00001"

    def test_generates_id_outside_a_request(self) -> None:
        exc = DomainException("boom")
        assert re.match(r"^[0-9a-f]{8}$", exc.correlation_id)

    def test_explicit_id_wins(self) -> None:
        set_correlation_id("context1")
        exc = DomainException("boom", correlation_id="override")
        assert exc.correlation_id == "override"

    def test_transition_error_carries_both_statuses(self) -> None:
        exc = InvalidTransitionException(12, "rejected", "resolved")

        assert exc.report_id == 12
        assert exc.current_status == "rejected"
        assert exc.target_status == "resolved"
        assert "rejected" in exc.message and "resolved" in exc.message
