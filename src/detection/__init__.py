"""
Détection

- Ledger des tentatives échouées en fenêtre glissante
- Analyse de patterns: brute force, credential stuffing, password spray
- Niveau de menace par nombre de tentatives
"""

from .interfaces import (
    # Enums
    ThreatLevel,
    AttackPatternType,
    # Data classes
    LoginAttempt,
    AttackHypothesis,
    DetectionStatistics,
    # Interfaces
    IAttemptLedger,
    IPatternAnalyzer,
)
from .attempt_ledger import AttemptLedger
from .pattern_analyzer import PatternAnalyzer

__all__ = [
    # Enums
    "ThreatLevel",
    "AttackPatternType",
    # Data classes
    "LoginAttempt",
    "AttackHypothesis",
    "DetectionStatistics",
    # Interfaces
    "IAttemptLedger",
    "IPatternAnalyzer",
    # Implementations
    "AttemptLedger",
    "PatternAnalyzer",
]
