"""
Incident & Réponse

- Verrouillage des comptes avec échéance (24h) et expiration paresseuse
- Réponse automatique aux échecs de connexion (alerte, verrouillage)
- Création d'incidents classifiés avec recommandations priorisées
- Racine de composition (build_response_core)
"""

from .interfaces import (
    # Enums
    AccountState,
    LoginOutcome,
    # Data classes
    AccountStatus,
    AccountStatistics,
    Incident,
    LoginAssessment,
    # Interfaces
    IIncidentRepository,
    IAccountLockController,
    # Exceptions
    IncidentCreationError,
)
from .account_lock_controller import AccountLockController
from .incident_repository import InMemoryIncidentRepository
from .incident_responder import IncidentResponder, map_pattern_to_incident_type
from .bootstrap import ResponseCore, build_response_core

__all__ = [
    # Enums
    "AccountState",
    "LoginOutcome",
    # Data classes
    "AccountStatus",
    "AccountStatistics",
    "Incident",
    "LoginAssessment",
    "ResponseCore",
    # Interfaces
    "IIncidentRepository",
    "IAccountLockController",
    # Implementations
    "AccountLockController",
    "InMemoryIncidentRepository",
    "IncidentResponder",
    "map_pattern_to_incident_type",
    "build_response_core",
    # Exceptions
    "IncidentCreationError",
]
