"""
Détection - Interfaces

Contrats du ledger de tentatives d'authentification (fenêtre glissante)
et de l'analyseur de patterns d'attaque.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


# ══════════════════════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════════════════════


class ThreatLevel(Enum):
    """Niveau de menace dérivé du nombre de tentatives en fenêtre."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AttackPatternType(Enum):
    """Familles d'attaque reconnues par l'analyseur."""

    BRUTE_FORCE = "brute_force"
    CREDENTIAL_STUFFING = "credential_stuffing"
    PASSWORD_SPRAY = "password_spray"


# ══════════════════════════════════════════════════════════════════════════════
# DATA CLASSES
# ══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class LoginAttempt:
    """Tentative d'authentification échouée, horodatée à l'enregistrement."""

    attempt_id: str
    identity: str
    source_address: str
    agent: str
    timestamp: datetime


@dataclass(frozen=True)
class AttackHypothesis:
    """
    Hypothèse d'attaque produite par l'analyseur.

    Attributes:
        pattern_type: Famille d'attaque retenue
        confidence: Confiance fixe associée à la famille (0-1)
        indicators: Mesures ayant conduit à l'hypothèse
    """

    pattern_type: AttackPatternType
    confidence: float
    indicators: Dict[str, Any] = field(default_factory=dict)


@dataclass
class DetectionStatistics:
    """Statistiques agrégées sur l'ensemble des identités suivies."""

    total_attempts: int
    unique_identities: int
    unique_sources: int
    patterns: Dict[str, int]
    window_minutes: float
    last_updated: datetime


# ══════════════════════════════════════════════════════════════════════════════
# INTERFACES
# ══════════════════════════════════════════════════════════════════════════════


class IAttemptLedger(ABC):
    """
    Interface du ledger de tentatives.

    Responsabilités:
        - Historique par identité borné à la fenêtre glissante
        - Ajout + purge atomiques par identité
        - Balayage périodique des identités inactives
    """

    @abstractmethod
    def record_attempt(self, identity: str, source_address: str, agent: str) -> int:
        """
        Enregistre une tentative échouée.

        Args:
            identity: Identité ciblée (email, login)
            source_address: Adresse IP source
            agent: User agent client

        Returns:
            Nombre de tentatives dans la fenêtre, celle-ci incluse
        """
        pass

    @abstractmethod
    def get_history(self, identity: str) -> Tuple[LoginAttempt, ...]:
        """
        Retourne les tentatives en fenêtre pour une identité.

        Returns:
            Copie en lecture seule, ordre chronologique
        """
        pass

    @abstractmethod
    def clear(self, identity: str) -> None:
        """Efface l'historique d'une identité."""
        pass

    @abstractmethod
    def clear_all(self) -> None:
        """Efface tout l'historique."""
        pass

    @abstractmethod
    def sweep(self) -> int:
        """
        Supprime les entrées au-delà de l'horizon de rétention.

        Returns:
            Nombre d'identités retirées
        """
        pass


class IPatternAnalyzer(ABC):
    """Interface de l'analyseur de patterns d'attaque."""

    @abstractmethod
    def analyze_pattern(self, identity: str) -> Optional[AttackHypothesis]:
        """
        Analyse l'historique en fenêtre d'une identité.

        Returns:
            Hypothèse d'attaque, None si historique insuffisant
        """
        pass

    @abstractmethod
    def get_threat_level(self, attempt_count: int) -> ThreatLevel:
        """Niveau de menace pour un nombre de tentatives."""
        pass
