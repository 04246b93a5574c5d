"""Tests for lxquery.shared.logging and diagnostics."""

import logging

import pytest
from lxml import etree

from lxquery.shared.logging import CorrelationLogger, get_logger, new_correlation_id
from lxquery.shared.result import DiagnosticEntry, DiagnosticSeverity


class TestCorrelationLogger:
    """Test correlation-aware logging."""

    def test_records_carry_context(self, caplog):
        """Test component and correlation ID are attached to records."""
        logger = get_logger("lxquery.test", "abc123", "Component")
        with caplog.at_level(logging.INFO, logger="lxquery.test"):
            logger.info("hello", extra={"count": 2})
        record = caplog.records[-1]
        assert record.getMessage() == "hello"
        assert record.correlation_id == "abc123"
        assert record.component == "Component"
        assert record.count == 2

    def test_default_component(self):
        """Test the component defaults to the last part of the name."""
        assert CorrelationLogger("lxquery.api.matchset").component == "matchset"

    def test_correlation_ids_are_unique(self):
        """Test generated IDs are short and distinct."""
        first, second = new_correlation_id(), new_correlation_id()
        assert len(first) == 12
        assert first != second


class TestDiagnosticEntry:
    """Test diagnostic entries."""

    def test_validation(self):
        """Test message and component are required."""
        with pytest.raises(ValueError, match="message"):
            DiagnosticEntry(DiagnosticSeverity.ERROR, "", "Loader")
        with pytest.raises(ValueError, match="component"):
            DiagnosticEntry(DiagnosticSeverity.ERROR, "msg", "")

    def test_from_log_entry(self):
        """Test conversion of lxml error log entries."""
        parser = etree.XMLParser(recover=True)
        etree.fromstring(b"<r><a></r>", parser)
        entry = DiagnosticEntry.from_log_entry(parser.error_log[0], "Loader", "cid")
        assert entry.is_error
        assert entry.component == "Loader"
        assert entry.correlation_id == "cid"
        assert entry.position["line"] == 1
        assert "line 1" in str(entry)

    def test_warning_is_not_error(self):
        """Test warnings are not counted as errors."""
        entry = DiagnosticEntry(DiagnosticSeverity.WARNING, "careful", "Loader")
        assert not entry.is_error
        assert str(entry) == "careful"
