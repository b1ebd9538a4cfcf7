"""
Incident & Réponse - Interfaces

Contrats de la réponse aux échecs de connexion: état des comptes,
agrégat incident, évaluation d'une tentative et dépôt d'incidents.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from src.classification.interfaces import Indicator, IncidentSeverity, Recommendation
from src.detection.interfaces import AttackHypothesis, ThreatLevel
from src.enrichment.interfaces import EnhancedRecommendation
from src.workflow.interfaces import IncidentState, IncidentStep


# ══════════════════════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════════════════════


class AccountState(Enum):
    """États d'un compte utilisateur."""

    ACTIVE = "active"
    LOCKED = "locked"
    SUSPENDED = "suspended"


class LoginOutcome(Enum):
    """Issue du traitement d'une tentative échouée."""

    REJECTED = "rejected"  # échec simple, tentatives restantes
    ALERTED = "alerted"  # activité suspecte, incident d'alerte créé
    LOCKED = "locked"  # compte verrouillé, incident créé
    BLOCKED = "blocked"  # compte déjà verrouillé ou suspendu


# ══════════════════════════════════════════════════════════════════════════════
# DATA CLASSES
# ══════════════════════════════════════════════════════════════════════════════


@dataclass
class AccountStatus:
    """
    État d'un compte.

    Les appelants reçoivent des copies: modifier une instance retournée
    n'affecte pas la table des comptes.
    """

    identity: str
    status: AccountState = AccountState.ACTIVE
    locked_at: Optional[datetime] = None
    lock_reason: Optional[str] = None
    unlock_at: Optional[datetime] = None
    last_login_attempt: Optional[datetime] = None
    failed_attempts: int = 0


@dataclass
class AccountStatistics:
    """Statistiques de la table des comptes."""

    total_accounts: int
    active_accounts: int
    locked_accounts: int
    suspended_accounts: int
    recent_activity: int
    last_updated: datetime


@dataclass
class Incident:
    """
    Incident de sécurité créé par la réponse automatique.

    status et current_step reflètent le workflow; le journal des
    transitions fait foi (IncidentWorkflow.history).
    """

    incident_id: str
    incident_type: str
    severity: IncidentSeverity
    identity: str
    source: str
    status: IncidentState
    current_step: Optional[IncidentStep]
    created_at: datetime
    indicators: List[Indicator] = field(default_factory=list)
    recommendations: List[Recommendation] = field(default_factory=list)
    enhanced_recommendations: List[EnhancedRecommendation] = field(default_factory=list)
    classification_confidence: Optional[float] = None


@dataclass
class LoginAssessment:
    """Résultat du traitement d'un échec de connexion."""

    identity: str
    outcome: LoginOutcome
    attempt_count: int
    remaining_attempts: int
    message: str
    threat_level: Optional[ThreatLevel] = None
    hypothesis: Optional[AttackHypothesis] = None
    incident: Optional[Incident] = None


# ══════════════════════════════════════════════════════════════════════════════
# INTERFACES
# ══════════════════════════════════════════════════════════════════════════════


class IIncidentRepository(ABC):
    """
    Dépôt des incidents (collaborateur, persistance hors périmètre).
    """

    @abstractmethod
    async def save(self, incident: Incident) -> None:
        """
        Enregistre ou met à jour un incident.

        Raises:
            Exception: Toute erreur de persistance (convertie en
                IncidentCreationError par le responder)
        """
        pass

    @abstractmethod
    async def get(self, incident_id: str) -> Optional[Incident]:
        """Récupère un incident, None si inconnu."""
        pass


class IAccountLockController(ABC):
    """
    Interface de gestion de l'état des comptes.

    Responsabilités:
        - Verrouillage avec échéance (24h par défaut)
        - Expiration paresseuse à la lecture
        - Compteur d'échecs par compte
    """

    @abstractmethod
    def lock_account(self, identity: str, reason: str) -> AccountStatus:
        """
        Verrouille un compte jusqu'à locked_at + durée de verrouillage.

        Returns:
            Copie de l'état après verrouillage
        """
        pass

    @abstractmethod
    def unlock_account(self, identity: str) -> AccountStatus:
        """Déverrouille et remet à zéro le compteur d'échecs."""
        pass

    @abstractmethod
    def is_account_locked(self, identity: str) -> bool:
        """
        Vérifie le verrouillage.

        Un verrou expiré est levé à cette occasion (retour False).
        """
        pass

    @abstractmethod
    def record_failed_attempt(self, identity: str) -> AccountStatus:
        """Incrémente failed_attempts et horodate last_login_attempt."""
        pass

    @abstractmethod
    def reset_all_accounts(self) -> None:
        pass


# ══════════════════════════════════════════════════════════════════════════════
# EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════════════


class IncidentCreationError(Exception):
    """Échec d'enregistrement d'un incident."""

    pass
