"""
Audit - Interfaces

Contrats de l'émetteur d'événements d'audit signés: chaque action de
réponse (verrouillage, création d'incident, transition) laisse une
trace hachée et signée.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class AuditEventType(Enum):
    """Types d'événements d'audit."""
    # Détection
    LOGIN_FAILED = "login_failed"
    LOGIN_BLOCKED = "login_blocked"
    ATTACK_DETECTED = "attack_detected"

    # Comptes
    ACCOUNT_LOCKED = "account_locked"
    ACCOUNT_UNLOCKED = "account_unlocked"
    ACCOUNT_SUSPENDED = "account_suspended"
    ACCOUNTS_RESET = "accounts_reset"

    # Incidents
    INCIDENT_CREATED = "incident_created"
    INCIDENT_TRANSITION = "incident_transition"
    TRANSITION_REJECTED = "transition_rejected"


@dataclass(frozen=True)
class AuditEvent:
    """
    Événement d'audit signé.

    Immutable pour garantir l'intégrité après signature.
    """
    event_id: str
    event_type: AuditEventType
    timestamp: datetime
    actor: str
    action: str
    resource_id: Optional[str]
    metadata: Dict[str, Any]
    ip_address: Optional[str]
    user_agent: Optional[str]
    signature: Optional[str] = None  # ECDSA-P384, base64
    hash_value: Optional[str] = None  # SHA-384


class IAuditEmitter(ABC):
    """
    Interface émetteur d'événements d'audit.

    Responsabilités:
        - Création événements audit
        - Signature cryptographique
        - Hachage SHA-384
    """

    @abstractmethod
    async def emit_event(
        self,
        event_type: AuditEventType,
        actor: str,
        action: str,
        resource_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AuditEvent:
        """
        Émet un événement d'audit signé.

        Args:
            event_type: Type d'événement
            actor: Acteur (identité, analyste ou "system")
            action: Action effectuée
            resource_id: Ressource affectée (incident, compte)
            metadata: Métadonnées additionnelles
            ip_address: Adresse IP source
            user_agent: User agent client

        Returns:
            Événement signé et haché

        Raises:
            AuditEmitterError: Erreur création/signature
        """
        pass

    @abstractmethod
    def verify_event_signature(self, event: AuditEvent) -> bool:
        """
        Vérifie la signature cryptographique d'un événement.

        Returns:
            True si signature valide
        """
        pass

    @abstractmethod
    def compute_event_hash(self, event: AuditEvent) -> str:
        """
        Calcule le hash SHA-384 d'un événement.

        Returns:
            Hash SHA-384 hexadécimal
        """
        pass
