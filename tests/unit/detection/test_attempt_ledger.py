"""
Tests unitaires pour AttemptLedger

- Fenêtre glissante inclusive (entrée à now - fenêtre conservée)
- Ajout + purge atomiques par identité
- Balayage des identités au-delà de la rétention
"""

import threading

import pytest

from src.core.interfaces import DetectionSettings
from src.detection import AttemptLedger, IAttemptLedger, LoginAttempt
from src.logging import LogConfig, LogLevel, StructuredLogger


# ════════════════════════════════════════════════════════════
# FIXTURES
# ════════════════════════════════════════════════════════════


@pytest.fixture
def logger() -> StructuredLogger:
    return StructuredLogger("attempt-ledger", config=LogConfig(min_level=LogLevel.DEBUG))


@pytest.fixture
def ledger(clock, logger) -> AttemptLedger:
    return AttemptLedger(clock=clock, logger=logger)


# ════════════════════════════════════════════════════════════
# ENREGISTREMENT
# ════════════════════════════════════════════════════════════


class TestRecordAttempt:
    """Tests de record_attempt."""

    def test_implements_interface(self, ledger) -> None:
        assert isinstance(ledger, IAttemptLedger)

    def test_returns_count_in_window(self, ledger, clock) -> None:
        assert ledger.record_attempt("alice@corp.com", "10.0.0.1", "curl/8.0") == 1
        clock.advance(10)
        assert ledger.record_attempt("alice@corp.com", "10.0.0.1", "curl/8.0") == 2
        clock.advance(10)
        assert ledger.record_attempt("alice@corp.com", "10.0.0.2", "curl/8.0") == 3

    def test_identities_are_independent(self, ledger) -> None:
        ledger.record_attempt("alice@corp.com", "10.0.0.1", "ua")
        ledger.record_attempt("alice@corp.com", "10.0.0.1", "ua")

        assert ledger.record_attempt("bob@corp.com", "10.0.0.1", "ua") == 1
        assert ledger.identity_count == 2

    def test_attempt_fields(self, ledger, clock) -> None:
        ledger.record_attempt("alice@corp.com", "10.0.0.1", "Mozilla/5.0")

        (attempt,) = ledger.get_history("alice@corp.com")

        assert isinstance(attempt, LoginAttempt)
        assert attempt.identity == "alice@corp.com"
        assert attempt.source_address == "10.0.0.1"
        assert attempt.agent == "Mozilla/5.0"
        assert attempt.timestamp == clock.now()
        assert attempt.attempt_id

    def test_empty_identity_raises(self, ledger) -> None:
        with pytest.raises(ValueError):
            ledger.record_attempt("", "10.0.0.1", "ua")

    def test_logs_debug_entry(self, ledger, logger) -> None:
        ledger.record_attempt("alice@corp.com", "10.0.0.1", "ua")

        entries = logger.get_entries_by_level(LogLevel.DEBUG)
        assert entries[-1].message == "Attempt recorded"
        assert entries[-1].extra["count"] == 1


# ════════════════════════════════════════════════════════════
# FENÊTRE GLISSANTE
# ════════════════════════════════════════════════════════════


class TestSlidingWindow:
    """La fenêtre de 5 minutes borne l'historique."""

    def test_entry_at_window_boundary_kept(self, ledger, clock) -> None:
        ledger.record_attempt("alice@corp.com", "10.0.0.1", "ua")
        clock.advance(300)

        assert ledger.record_attempt("alice@corp.com", "10.0.0.1", "ua") == 2

    def test_entry_past_window_excluded(self, ledger, clock) -> None:
        ledger.record_attempt("alice@corp.com", "10.0.0.1", "ua")
        clock.advance(301)

        assert ledger.record_attempt("alice@corp.com", "10.0.0.1", "ua") == 1

    def test_history_filtered_at_read_time(self, ledger, clock) -> None:
        ledger.record_attempt("alice@corp.com", "10.0.0.1", "ua")
        clock.advance(200)
        ledger.record_attempt("alice@corp.com", "10.0.0.2", "ua")
        clock.advance(150)

        history = ledger.get_history("alice@corp.com")

        assert [a.source_address for a in history] == ["10.0.0.2"]

    def test_history_chronological_and_read_only(self, ledger, clock) -> None:
        for source in ("10.0.0.1", "10.0.0.2", "10.0.0.3"):
            ledger.record_attempt("alice@corp.com", source, "ua")
            clock.advance(1)

        history = ledger.get_history("alice@corp.com")

        assert isinstance(history, tuple)
        assert [a.source_address for a in history] == ["10.0.0.1", "10.0.0.2", "10.0.0.3"]

    def test_unknown_identity_has_empty_history(self, ledger) -> None:
        assert ledger.get_history("ghost@corp.com") == ()

    def test_custom_window(self, clock) -> None:
        ledger = AttemptLedger(settings=DetectionSettings(window_seconds=60), clock=clock)
        ledger.record_attempt("alice@corp.com", "10.0.0.1", "ua")
        clock.advance(61)

        assert ledger.record_attempt("alice@corp.com", "10.0.0.1", "ua") == 1


# ════════════════════════════════════════════════════════════
# EFFACEMENT ET BALAYAGE
# ════════════════════════════════════════════════════════════


class TestClearAndSweep:
    """Effacement et balayage."""

    def test_clear_identity(self, ledger) -> None:
        ledger.record_attempt("alice@corp.com", "10.0.0.1", "ua")
        ledger.record_attempt("bob@corp.com", "10.0.0.1", "ua")

        ledger.clear("alice@corp.com")

        assert ledger.get_history("alice@corp.com") == ()
        assert len(ledger.get_history("bob@corp.com")) == 1
        assert ledger.record_attempt("alice@corp.com", "10.0.0.1", "ua") == 1

    def test_clear_unknown_identity_is_noop(self, ledger) -> None:
        ledger.clear("ghost@corp.com")

        assert ledger.identity_count == 0

    def test_clear_all(self, ledger) -> None:
        ledger.record_attempt("alice@corp.com", "10.0.0.1", "ua")
        ledger.record_attempt("bob@corp.com", "10.0.0.1", "ua")

        ledger.clear_all()

        assert ledger.identity_count == 0
        assert ledger.snapshot() == {}

    def test_sweep_removes_identities_past_retention(self, ledger, clock) -> None:
        ledger.record_attempt("alice@corp.com", "10.0.0.1", "ua")
        clock.advance(400)
        ledger.record_attempt("bob@corp.com", "10.0.0.1", "ua")
        clock.advance(201)

        removed = ledger.sweep()

        assert removed == 1
        assert ledger.identity_count == 1
        assert len(ledger.get_history("bob@corp.com")) == 1

    def test_sweep_keeps_entries_within_retention(self, ledger, clock) -> None:
        ledger.record_attempt("alice@corp.com", "10.0.0.1", "ua")
        clock.advance(500)

        assert ledger.sweep() == 0
        assert ledger.identity_count == 1
        assert ledger.get_history("alice@corp.com") == ()

    def test_record_triggers_periodic_sweep(self, ledger, clock) -> None:
        ledger.record_attempt("alice@corp.com", "10.0.0.1", "ua")
        clock.advance(601)

        ledger.record_attempt("bob@corp.com", "10.0.0.1", "ua")

        assert ledger.identity_count == 1

    def test_periodic_sweep_disabled(self, clock) -> None:
        ledger = AttemptLedger(settings=DetectionSettings(sweep_interval_seconds=0), clock=clock)
        ledger.record_attempt("alice@corp.com", "10.0.0.1", "ua")
        clock.advance(601)

        ledger.record_attempt("bob@corp.com", "10.0.0.1", "ua")

        assert ledger.identity_count == 2


# ════════════════════════════════════════════════════════════
# LECTURES AGRÉGÉES
# ════════════════════════════════════════════════════════════


class TestAggregateReads:
    def test_active_identities(self, ledger, clock) -> None:
        ledger.record_attempt("carol@corp.com", "10.0.0.1", "ua")
        clock.advance(200)
        ledger.record_attempt("bob@corp.com", "10.0.0.1", "ua")
        ledger.record_attempt("alice@corp.com", "10.0.0.1", "ua")

        assert ledger.get_active_identities() == ["alice@corp.com", "bob@corp.com"]
        assert ledger.get_active_identities(recent_seconds=300) == [
            "alice@corp.com",
            "bob@corp.com",
            "carol@corp.com",
        ]

    def test_snapshot_skips_empty_histories(self, ledger, clock) -> None:
        ledger.record_attempt("alice@corp.com", "10.0.0.1", "ua")
        clock.advance(400)
        ledger.record_attempt("bob@corp.com", "10.0.0.1", "ua")

        snapshot = ledger.snapshot()

        assert list(snapshot.keys()) == ["bob@corp.com"]


# ════════════════════════════════════════════════════════════
# CONCURRENCE
# ════════════════════════════════════════════════════════════


class TestConcurrency:
    """Ajouts concurrents sur une même identité."""

    def test_concurrent_records_never_lost(self, clock) -> None:
        ledger = AttemptLedger(clock=clock)
        counts = []
        counts_lock = threading.Lock()

        def worker() -> None:
            for _ in range(50):
                count = ledger.record_attempt("alice@corp.com", "10.0.0.1", "ua")
                with counts_lock:
                    counts.append(count)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(ledger.get_history("alice@corp.com")) == 400
        assert sorted(counts) == list(range(1, 401))

    def test_concurrent_clear_and_record(self, clock) -> None:
        ledger = AttemptLedger(clock=clock)

        def recorder() -> None:
            for _ in range(100):
                ledger.record_attempt("alice@corp.com", "10.0.0.1", "ua")

        def clearer() -> None:
            for _ in range(20):
                ledger.clear("alice@corp.com")

        threads = [threading.Thread(target=recorder), threading.Thread(target=clearer)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(ledger.get_history("alice@corp.com")) <= 100
        assert ledger.record_attempt("alice@corp.com", "10.0.0.1", "ua") >= 1
