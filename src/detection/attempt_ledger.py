"""
Détection - Attempt Ledger

Historique en mémoire des tentatives d'authentification échouées, par
identité, borné à une fenêtre glissante (5 minutes par défaut).

Concurrence:
    - verrou de registre pour la table des identités
    - verrou par identité pour ajout + purge
"""

import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Tuple

from src.core.interfaces import DetectionSettings
from src.detection.interfaces import IAttemptLedger, LoginAttempt
from src.logging.structured_logger import StructuredLogger


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class _IdentityRecord:
    """Tentatives d'une identité et leur verrou."""

    __slots__ = ("lock", "attempts", "retired")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.attempts: List[LoginAttempt] = []
        # Retiré du registre par sweep/clear: ne plus y écrire
        self.retired = False


class AttemptLedger(IAttemptLedger):
    """
    Ledger des tentatives échouées en fenêtre glissante.

    Une entrée dont le timestamp vaut exactement now - fenêtre est
    conservée. Le balayage (sweep) est déclenché opportunément par
    record_attempt quand sweep_interval_seconds est écoulé.

    Example:
        ledger = AttemptLedger()
        count = ledger.record_attempt("alice@corp.com", "10.0.0.1", "curl/8.0")
    """

    def __init__(
        self,
        settings: Optional[DetectionSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        """
        Args:
            settings: Fenêtre, rétention et intervalle de balayage
            clock: Horloge injectable (UTC), utile aux tests
            logger: Logger structuré (défaut: "attempt-ledger")
        """
        self._settings = settings or DetectionSettings()
        self._clock = clock or _utc_now
        self._logger = logger or StructuredLogger("attempt-ledger")
        self._window = timedelta(seconds=self._settings.window_seconds)
        self._retention = timedelta(seconds=self._settings.retention_seconds)

        self._registry_lock = threading.Lock()
        self._records: Dict[str, _IdentityRecord] = {}
        self._last_sweep = self._clock()

    @property
    def settings(self) -> DetectionSettings:
        return self._settings

    @property
    def identity_count(self) -> int:
        """Nombre d'identités suivies (fenêtre ou rétention)."""
        with self._registry_lock:
            return len(self._records)

    def now(self) -> datetime:
        """Heure courante selon l'horloge injectée."""
        return self._clock()

    def record_attempt(self, identity: str, source_address: str, agent: str) -> int:
        if not identity:
            raise ValueError("identity cannot be empty")

        self._maybe_sweep()

        while True:
            record = self._get_or_create(identity)
            with record.lock:
                if record.retired:
                    continue
                now = self._clock()
                record.attempts.append(
                    LoginAttempt(
                        attempt_id=str(uuid.uuid4()),
                        identity=identity,
                        source_address=source_address,
                        agent=agent,
                        timestamp=now,
                    )
                )
                window_start = now - self._window
                record.attempts = [a for a in record.attempts if a.timestamp >= window_start]
                count = len(record.attempts)
                break

        self._logger.debug(
            "Attempt recorded",
            identity=identity,
            source_address=source_address,
            count=count,
        )
        return count

    def get_history(self, identity: str) -> Tuple[LoginAttempt, ...]:
        with self._registry_lock:
            record = self._records.get(identity)
        if record is None:
            return ()

        with record.lock:
            window_start = self._clock() - self._window
            return tuple(a for a in record.attempts if a.timestamp >= window_start)

    def clear(self, identity: str) -> None:
        with self._registry_lock:
            record = self._records.pop(identity, None)
            if record is not None:
                with record.lock:
                    record.retired = True

    def clear_all(self) -> None:
        with self._registry_lock:
            for record in self._records.values():
                with record.lock:
                    record.retired = True
            self._records.clear()
        self._logger.info("Attempt ledger cleared")

    def sweep(self) -> int:
        cutoff = self._clock() - self._retention
        removed = 0

        with self._registry_lock:
            for identity in list(self._records.keys()):
                record = self._records[identity]
                with record.lock:
                    record.attempts = [a for a in record.attempts if a.timestamp >= cutoff]
                    if not record.attempts:
                        record.retired = True
                        del self._records[identity]
                        removed += 1
            self._last_sweep = self._clock()

        if removed:
            self._logger.debug("Ledger sweep", identities_removed=removed)
        return removed

    def get_active_identities(self, recent_seconds: float = 120) -> List[str]:
        """
        Identités ayant au moins une tentative récente.

        Args:
            recent_seconds: Ancienneté maximale de la dernière tentative

        Returns:
            Identités triées
        """
        threshold = self._clock() - timedelta(seconds=recent_seconds)
        active: List[str] = []
        for identity, attempts in self.snapshot().items():
            if attempts and attempts[-1].timestamp >= threshold:
                active.append(identity)
        return sorted(active)

    def snapshot(self) -> Dict[str, Tuple[LoginAttempt, ...]]:
        """Copie en fenêtre de l'historique de toutes les identités non vides."""
        with self._registry_lock:
            identities = list(self._records.keys())

        result: Dict[str, Tuple[LoginAttempt, ...]] = {}
        for identity in identities:
            history = self.get_history(identity)
            if history:
                result[identity] = history
        return result

    def _get_or_create(self, identity: str) -> _IdentityRecord:
        with self._registry_lock:
            record = self._records.get(identity)
            if record is None:
                record = _IdentityRecord()
                self._records[identity] = record
            return record

    def _maybe_sweep(self) -> None:
        interval = self._settings.sweep_interval_seconds
        if interval <= 0:
            return
        if (self._clock() - self._last_sweep).total_seconds() >= interval:
            self.sweep()
