"""
Détection - Pattern Analyzer

Transforme l'historique en fenêtre d'une identité en hypothèse d'attaque.

Règles (première correspondance):
    1. fréquence > 0.5 tentative/s           → brute_force (0.9)
    2. plus de 2 adresses sources distinctes → credential_stuffing (0.85)
    3. sinon                                 → password_spray (0.8)
"""

from typing import Dict, Optional, Sequence

from src.detection.attempt_ledger import AttemptLedger
from src.detection.interfaces import (
    AttackHypothesis,
    AttackPatternType,
    DetectionStatistics,
    IPatternAnalyzer,
    LoginAttempt,
    ThreatLevel,
)
from src.logging.structured_logger import StructuredLogger


class PatternAnalyzer(IPatternAnalyzer):
    """
    Analyseur de patterns d'attaque sur le ledger de tentatives.

    Seuils et confiances proviennent de DetectionSettings (ceux du ledger).
    """

    def __init__(self, ledger: AttemptLedger, logger: Optional[StructuredLogger] = None) -> None:
        self._ledger = ledger
        self._settings = ledger.settings
        self._logger = logger or StructuredLogger("pattern-analyzer")

    def analyze_pattern(self, identity: str) -> Optional[AttackHypothesis]:
        """
        Analyse les tentatives en fenêtre d'une identité.

        Args:
            identity: Identité ciblée

        Returns:
            AttackHypothesis, ou None si moins de min_attempts_for_pattern
            tentatives en fenêtre
        """
        history = self._ledger.get_history(identity)
        hypothesis = self._analyze(history)

        if hypothesis is not None:
            self._logger.info(
                "Attack pattern detected",
                identity=identity,
                pattern=hypothesis.pattern_type.value,
                confidence=hypothesis.confidence,
            )
        return hypothesis

    def get_threat_level(self, attempt_count: int) -> ThreatLevel:
        if attempt_count >= self._settings.critical_threshold:
            return ThreatLevel.HIGH
        if attempt_count >= self._settings.warning_threshold:
            return ThreatLevel.MEDIUM
        return ThreatLevel.LOW

    def get_statistics(self) -> DetectionStatistics:
        """
        Statistiques globales sur les tentatives en fenêtre.

        Returns:
            Totaux, identités et sources distinctes, décompte par pattern
        """
        snapshot = self._ledger.snapshot()

        total = 0
        sources = set()
        patterns: Dict[str, int] = {}

        for history in snapshot.values():
            total += len(history)
            sources.update(a.source_address for a in history)
            hypothesis = self._analyze(history)
            if hypothesis is not None:
                key = hypothesis.pattern_type.value
                patterns[key] = patterns.get(key, 0) + 1

        return DetectionStatistics(
            total_attempts=total,
            unique_identities=len(snapshot),
            unique_sources=len(sources),
            patterns=patterns,
            window_minutes=self._settings.window_minutes,
            last_updated=self._ledger.now(),
        )

    def _analyze(self, history: Sequence[LoginAttempt]) -> Optional[AttackHypothesis]:
        if len(history) < self._settings.min_attempts_for_pattern:
            return None

        count = len(history)
        unique_sources = len({a.source_address for a in history})
        span = (history[-1].timestamp - history[0].timestamp).total_seconds()
        timespan = max(span, 1.0)
        frequency = count / timespan
        window_minutes = self._settings.window_minutes

        if frequency > self._settings.brute_force_frequency:
            return AttackHypothesis(
                pattern_type=AttackPatternType.BRUTE_FORCE,
                confidence=self._settings.brute_force_confidence,
                indicators={
                    "attempts_per_second": frequency,
                    "total_attempts": count,
                    "unique_ips": unique_sources,
                    "time_window_minutes": window_minutes,
                },
            )

        if unique_sources > self._settings.distributed_source_threshold:
            return AttackHypothesis(
                pattern_type=AttackPatternType.CREDENTIAL_STUFFING,
                confidence=self._settings.credential_stuffing_confidence,
                indicators={
                    "failed_attempts": count,
                    "unique_ips": unique_sources,
                    "time_window_minutes": window_minutes,
                    "distributed_attack": True,
                },
            )

        return AttackHypothesis(
            pattern_type=AttackPatternType.PASSWORD_SPRAY,
            confidence=self._settings.password_spray_confidence,
            indicators={
                "failed_attempts": count,
                "unique_ips": unique_sources,
                "time_window_minutes": window_minutes,
                "primary_ip": history[0].source_address,
            },
        )
