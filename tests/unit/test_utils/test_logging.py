"""Tests for structured logging helpers."""

import pytest
from unittest.mock import MagicMock, patch

from src.utils.logging import (
    StructuredLogger,
    correlation_context,
    get_correlation_id,
    log_timing,
    mask_email,
    mask_sensitive_data,
)


@pytest.mark.unit
def test_mask_email():
    masked = mask_email("jane.doe@example.com")
    assert masked.startswith("j***")
    assert masked.endswith("@example.com")
    assert "jane.doe" not in masked
    assert mask_email("not-an-email") == "[REDACTED_EMAIL]"
    assert mask_email(None) is None


@pytest.mark.unit
def test_mask_email_disabled():
    with patch("src.utils.logging.LoggingConfig.LOG_MASK_SENSITIVE", False):
        assert mask_email("jane@example.com") == "jane@example.com"


@pytest.mark.unit
def test_mask_sensitive_data():
    text = "lead for jane@example.com with key eyJhbGciOi.eyJyb2xlIjoi.c2lnbmF0dXJl"
    masked = mask_sensitive_data(text)
    assert "[REDACTED_EMAIL]" in masked
    assert "[REDACTED_KEY]" in masked


@pytest.mark.unit
def test_correlation_context_restores_previous_id():
    assert get_correlation_id() is None
    with correlation_context("req_abc") as correlation_id:
        assert correlation_id == "req_abc"
        assert get_correlation_id() == "req_abc"
    assert get_correlation_id() is None


@pytest.mark.unit
def test_structured_logger_adds_extra_fields():
    base = MagicMock()
    logger = StructuredLogger(base)

    with correlation_context("req_123"):
        logger.info("Search done", page=2)

    extra = base.info.call_args.kwargs["extra"]
    assert extra["page"] == 2
    assert extra["correlation_id"] == "req_123"
    assert "timestamp" in extra


@pytest.mark.unit
def test_log_timing_warns_on_slow_operations():
    logger = MagicMock()
    with patch("src.utils.logging.LoggingConfig.LOG_SLOW_OPERATION_THRESHOLD_MS", -1):
        with log_timing("listing_search", logger, page=1):
            pass

    assert logger.debug.call_count == 2
    logger.warning.assert_called_once()
    assert logger.warning.call_args.kwargs["operation"] == "listing_search"


@pytest.mark.unit
def test_structured_logger_renames_reserved_fields():
    base = MagicMock()
    StructuredLogger(base).warning("Lookup failed", name="Aspen", filename="x.csv")

    extra = base.warning.call_args.kwargs["extra"]
    assert extra["field_name"] == "Aspen"
    assert extra["field_filename"] == "x.csv"
    assert "name" not in extra


@pytest.mark.unit
def test_json_formatter_adds_service_and_level():
    import json
    import logging

    from src.utils.logging_config import ListingsJsonFormatter

    record = logging.LogRecord("src.test", logging.WARNING, __file__, 1, "hello", (), None)
    payload = json.loads(ListingsJsonFormatter("%(name)s %(message)s").format(record))

    assert payload["service"] == "listings-engine"
    assert payload["level"] == "warning"
    assert payload["message"] == "hello"
