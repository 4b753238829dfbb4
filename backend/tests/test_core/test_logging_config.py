"""Tests for loguru configuration."""

from loguru import logger

from core.correlation import set_correlation_id
from core.logging_config import configure_logging, correlation_filter


def test_filter_stamps_correlation_id():
    set_correlation_id("feedbeef")
    record = {"extra": {}}

    assert correlation_filter(record) is True  # type: ignore[arg-type]
    assert record["extra"]["correlation_id"] == "feedbeef"


def test_filter_uses_placeholder_outside_requests():
    set_correlation_id("")
    record = {"extra": {}}

    correlation_filter(record)  # type: ignore[arg-type]

    assert record["extra"]["correlation_id"] == "-"


def test_file_sink_receives_records(tmp_path):
    configure_logging("test", log_dir=str(tmp_path))
    logger.info("Report 3 submitted")

    content = (tmp_path / "bantaydalan.log").read_text()
    assert "Report 3 submitted" in content
