"""
Audit - Audit Emitter

Émetteur d'événements d'audit avec signature ECDSA-P384 et hash SHA-384.
Les événements émis sont conservés dans un journal en mémoire borné
(les plus anciens sont évincés), consultable par type ou par ressource.
"""

import base64
import json
import uuid
from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional

from .interfaces import IAuditEmitter, AuditEvent, AuditEventType
from ..core.crypto_provider import CryptoProvider


class AuditEmitterError(Exception):
    """Erreur émission événement audit."""

    pass


class AuditEmitter(IAuditEmitter):
    """
    Émetteur d'événements d'audit signés.

    Example:
        emitter = AuditEmitter(CryptoProvider())
        event = await emitter.emit_event(
            AuditEventType.ACCOUNT_LOCKED,
            "system",
            "account_locked",
            resource_id="alice@corp.com",
        )
    """

    MAX_STRING_LENGTH: int = 1000
    MAX_LIST_ITEMS: int = 50
    DEFAULT_MAX_EVENTS: int = 10000

    def __init__(
        self,
        crypto_provider: CryptoProvider,
        key_id: str = CryptoProvider.AUDIT_KEY_ID,
        max_events: int = DEFAULT_MAX_EVENTS,
    ):
        """
        Args:
            crypto_provider: Fournisseur cryptographique pour signature
            key_id: Clé de signature utilisée
            max_events: Taille du journal en mémoire

        Raises:
            ValueError: Si max_events < 1
        """
        if max_events < 1:
            raise ValueError("max_events must be >= 1")
        self.crypto_provider = crypto_provider
        self._key_id = key_id
        self._events: Deque[AuditEvent] = deque(maxlen=max_events)

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

        Returns:
            Événement signé et haché

        Raises:
            AuditEmitterError: Champs obligatoires manquants ou type invalide
        """
        if not actor or not action:
            raise AuditEmitterError("actor et action sont obligatoires")

        if not isinstance(event_type, AuditEventType):
            raise AuditEmitterError(f"Type événement invalide: {event_type}")

        preliminary_event = AuditEvent(
            event_id=str(uuid.uuid4()),
            event_type=event_type,
            timestamp=datetime.now(timezone.utc),
            actor=actor,
            action=action,
            resource_id=resource_id,
            metadata=self._sanitize_metadata(metadata or {}),
            ip_address=ip_address,
            user_agent=user_agent,
        )

        canonical = self._canonical_event_data(preliminary_event)
        event_hash = self.crypto_provider.hash(canonical.encode("utf-8"))
        signature_bytes = self.crypto_provider.sign(canonical.encode("utf-8"), self._key_id)

        signed_event = AuditEvent(
            event_id=preliminary_event.event_id,
            event_type=preliminary_event.event_type,
            timestamp=preliminary_event.timestamp,
            actor=preliminary_event.actor,
            action=preliminary_event.action,
            resource_id=preliminary_event.resource_id,
            metadata=preliminary_event.metadata,
            ip_address=preliminary_event.ip_address,
            user_agent=preliminary_event.user_agent,
            signature=base64.b64encode(signature_bytes).decode("utf-8"),
            hash_value=event_hash,
        )

        self._events.append(signed_event)
        return signed_event

    def verify_event_signature(self, event: AuditEvent) -> bool:
        """Vérifie la signature d'un événement (False si absente ou illisible)."""
        if not event.signature:
            return False

        try:
            signature_bytes = base64.b64decode(event.signature, validate=True)
        except ValueError:
            return False

        canonical = self._canonical_event_data(event)
        return self.crypto_provider.verify_signature(canonical.encode("utf-8"), signature_bytes, self._key_id)

    def compute_event_hash(self, event: AuditEvent) -> str:
        """Calcule hash SHA-384 de la représentation canonique."""
        return self.crypto_provider.hash(self._canonical_event_data(event).encode("utf-8"))

    def get_events(
        self,
        event_type: Optional[AuditEventType] = None,
        resource_id: Optional[str] = None,
    ) -> List[AuditEvent]:
        """
        Retourne les événements émis, filtrés optionnellement.

        Args:
            event_type: Filtre par type
            resource_id: Filtre par ressource

        Returns:
            Événements dans l'ordre d'émission
        """
        return [
            e
            for e in self._events
            if (event_type is None or e.event_type == event_type)
            and (resource_id is None or e.resource_id == resource_id)
        ]

    def _sanitize_metadata(self, metadata: Dict[str, Any], max_depth: int = 2) -> Dict[str, Any]:
        """
        Nettoie métadonnées: clés string, scalaires tronqués, listes bornées.

        Les valeurs non sérialisables (enum, datetime) sont converties en str.
        """
        clean: Dict[str, Any] = {}

        for key, value in metadata.items():
            if not isinstance(key, str) or len(key) > 100:
                continue

            if isinstance(value, (bool, int, float)) or value is None:
                clean[key] = value
            elif isinstance(value, str):
                clean[key] = value[: self.MAX_STRING_LENGTH]
            elif isinstance(value, dict):
                if max_depth > 0:
                    clean[key] = self._sanitize_metadata(value, max_depth - 1)
            elif isinstance(value, (list, tuple)):
                clean[key] = [
                    item if isinstance(item, (bool, int, float, str)) else str(item)
                    for item in list(value)[: self.MAX_LIST_ITEMS]
                ]
            else:
                clean[key] = str(value)[: self.MAX_STRING_LENGTH]

        return clean

    def _canonical_event_data(self, event: AuditEvent) -> str:
        """Représentation canonique (clés triées, hors signature et hash)."""
        data = {
            "event_id": event.event_id,
            "event_type": event.event_type.value,
            "timestamp": event.timestamp.isoformat(),
            "actor": event.actor,
            "action": event.action,
            "resource_id": event.resource_id,
            "metadata": event.metadata,
            "ip_address": event.ip_address,
            "user_agent": event.user_agent,
        }
        return json.dumps(data, sort_keys=True, separators=(",", ":"))
