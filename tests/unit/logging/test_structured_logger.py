"""
Tests unitaires pour Logging - Structured Logger

- Format JSON structuré
- Champs: timestamp, level, correlation_id, component, message
- Timestamp ISO 8601 UTC
- Niveaux DEBUG, INFO, WARN, ERROR, CRITICAL
- Données sensibles masquées
"""

import json
import re
from datetime import datetime

import pytest

from src.logging import (
    StructuredLogger,
    ContextualLogger,
    LogConfig,
    LogEntry,
    LogLevel,
    MissingRequiredFieldError,
    InvalidLogLevelError,
    IStructuredLogger,
)


ISO_UTC_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


class TestJsonFormat:
    """Format JSON structuré."""

    def test_output_is_valid_json(self) -> None:
        logger = StructuredLogger("test")

        entry = logger.info("Test message")
        assert entry is not None

        parsed = json.loads(entry.to_json())
        assert isinstance(parsed, dict)

    def test_json_contains_required_fields(self) -> None:
        logger = StructuredLogger("attempt-ledger")

        entry = logger.info("Attempt recorded")
        assert entry is not None

        parsed = json.loads(entry.to_json())
        for field_name in ("timestamp", "level", "correlation_id", "component", "message"):
            assert field_name in parsed
        assert parsed["component"] == "attempt-ledger"
        assert parsed["logger"] == "attempt-ledger"

    def test_json_includes_extra(self) -> None:
        logger = StructuredLogger("test")

        entry = logger.info("Attempt recorded", identity="alice@corp.com", count=3)
        assert entry is not None

        parsed = json.loads(entry.to_json())
        assert parsed["extra"] == {"identity": "alice@corp.com", "count": 3}

    def test_no_extra_key_when_empty(self) -> None:
        logger = StructuredLogger("test")

        entry = logger.info("Nothing else")
        assert entry is not None

        assert "extra" not in entry.to_dict()

    def test_extra_excluded_by_config(self) -> None:
        logger = StructuredLogger("test", config=LogConfig(include_extra=False))

        entry = logger.info("msg", count=3)
        assert entry is not None

        assert entry.extra == {}

    def test_output_handler_receives_json(self) -> None:
        lines = []
        logger = StructuredLogger("test", output_handler=lines.append)

        logger.warn("Account locked", identity="bob")

        assert len(lines) == 1
        assert json.loads(lines[0])["level"] == "WARN"


class TestRequiredFields:
    """Champs obligatoires."""

    def test_empty_message_raises(self) -> None:
        logger = StructuredLogger("test")

        with pytest.raises(MissingRequiredFieldError) as exc_info:
            logger.info("")

        assert exc_info.value.field_name == "message"

    def test_empty_name_raises(self) -> None:
        with pytest.raises(ValueError):
            StructuredLogger("  ")

    def test_correlation_id_generated(self) -> None:
        logger = StructuredLogger("test")

        first = logger.info("one")
        second = logger.info("two")
        assert first is not None and second is not None

        assert first.correlation_id
        assert first.correlation_id != second.correlation_id

    def test_explicit_correlation_and_component(self) -> None:
        logger = StructuredLogger("test")

        entry = logger.log(LogLevel.INFO, "msg", correlation_id="corr-1", component="responder")
        assert entry is not None

        assert entry.correlation_id == "corr-1"
        assert entry.component == "responder"

    def test_default_correlation(self) -> None:
        logger = StructuredLogger("test")
        logger.set_default_correlation("corr-default")

        entry = logger.info("msg")
        assert entry is not None

        assert entry.correlation_id == "corr-default"

    def test_default_correlation_from_config(self) -> None:
        logger = StructuredLogger("test", config=LogConfig(default_correlation_id="corr-cfg"))

        entry = logger.info("msg")
        assert entry is not None

        assert entry.correlation_id == "corr-cfg"


class TestTimestamp:
    """Timestamp ISO 8601 UTC."""

    def test_timestamp_format(self) -> None:
        logger = StructuredLogger("test")

        entry = logger.info("msg")
        assert entry is not None

        assert ISO_UTC_PATTERN.match(entry.timestamp)

    def test_timestamp_parseable(self) -> None:
        logger = StructuredLogger("test")

        entry = logger.info("msg")
        assert entry is not None

        parsed = datetime.strptime(entry.timestamp, "%Y-%m-%dT%H:%M:%S.%fZ")
        assert parsed.year >= 2024


class TestLevels:
    """Niveaux de log."""

    @pytest.mark.parametrize(
        "method,level",
        [
            ("debug", LogLevel.DEBUG),
            ("info", LogLevel.INFO),
            ("warn", LogLevel.WARN),
            ("error", LogLevel.ERROR),
            ("critical", LogLevel.CRITICAL),
        ],
    )
    def test_level_methods(self, method: str, level: LogLevel) -> None:
        logger = StructuredLogger("test", config=LogConfig(min_level=LogLevel.DEBUG))

        entry = getattr(logger, method)("msg")

        assert entry is not None
        assert entry.level == level

    def test_min_level_filters(self) -> None:
        logger = StructuredLogger("test", config=LogConfig(min_level=LogLevel.WARN))

        assert logger.info("filtered") is None
        assert logger.error("kept") is not None
        assert len(logger.get_entries()) == 1

    def test_invalid_level_raises(self) -> None:
        logger = StructuredLogger("test")

        with pytest.raises(InvalidLogLevelError):
            logger.log("INFO", "msg")  # type: ignore[arg-type]

    def test_priority_order(self) -> None:
        priorities = [LogLevel.get_priority(level) for level in LogLevel]

        assert priorities == sorted(priorities)

    @pytest.mark.parametrize(
        "name,level",
        [("info", LogLevel.INFO), ("WARNING", LogLevel.WARN), (" error ", LogLevel.ERROR)],
    )
    def test_from_name(self, name: str, level: LogLevel) -> None:
        assert LogLevel.from_name(name) == level

    def test_from_name_unknown(self) -> None:
        with pytest.raises(ValueError):
            LogLevel.from_name("verbose")


class TestMasking:
    """Masquage dans les logs."""

    def test_password_masked_in_entry(self) -> None:
        lines = []
        logger = StructuredLogger("test", output_handler=lines.append)

        logger.info("Login failed", identity="alice@corp.com", password="hunter2")

        assert "hunter2" not in lines[0]
        assert json.loads(lines[0])["extra"]["password"] == "***MASKED***"

    def test_masking_disabled(self) -> None:
        logger = StructuredLogger("test", config=LogConfig(mask_sensitive=False))

        entry = logger.info("msg", password="visible")
        assert entry is not None

        assert entry.extra["password"] == "visible"

    def test_identities_masked_when_configured(self) -> None:
        logger = StructuredLogger("test", config=LogConfig(mask_identities=True))

        entry = logger.info("Account locked", identity="alice@corp.com")
        assert entry is not None

        assert entry.extra["identity"] == "a****@corp.com"


class TestEntriesBuffer:
    """Tampon d'entrées."""

    def test_buffer_bounded(self) -> None:
        logger = StructuredLogger("test", config=LogConfig(max_entries=3))

        for i in range(5):
            logger.info(f"msg {i}")

        entries = logger.get_entries()
        assert len(entries) == 3
        assert entries[0].message == "msg 2"

    def test_filters(self) -> None:
        logger = StructuredLogger("test")
        logger.log(LogLevel.INFO, "a", correlation_id="c1")
        logger.log(LogLevel.ERROR, "b", correlation_id="c2")
        logger.log(LogLevel.ERROR, "c", correlation_id="c1")

        assert [e.message for e in logger.get_entries_by_level(LogLevel.ERROR)] == ["b", "c"]
        assert [e.message for e in logger.get_entries_by_correlation("c1")] == ["a", "c"]

    def test_clear_entries(self) -> None:
        logger = StructuredLogger("test")
        logger.info("msg")

        logger.clear_entries()

        assert logger.get_entries() == []


class TestContextualLogger:
    """Logger contextuel."""

    def test_context_applied(self) -> None:
        logger = StructuredLogger("test")
        ctx = logger.with_context(correlation_id="login-42", component="responder")

        entry = ctx.warn("Threshold reached", count=3)
        assert entry is not None

        assert isinstance(ctx, ContextualLogger)
        assert entry.correlation_id == "login-42"
        assert entry.component == "responder"
        assert entry.extra == {"count": 3}

    def test_context_generates_correlation(self) -> None:
        logger = StructuredLogger("test")
        ctx = logger.with_context()

        first = ctx.info("one")
        second = ctx.error("two")
        assert first is not None and second is not None

        assert ctx.correlation_id is not None
        assert first.correlation_id == second.correlation_id == ctx.correlation_id
        assert first.component == "test"


class TestInterface:
    def test_implements_interface(self) -> None:
        assert isinstance(StructuredLogger("test"), IStructuredLogger)

    def test_entry_type(self) -> None:
        entry = StructuredLogger("test").info("msg")

        assert isinstance(entry, LogEntry)
