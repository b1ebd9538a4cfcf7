"""
Audit

Événements d'audit signés (ECDSA-P384) et hachés (SHA-384) pour les
actions de détection et de réponse.
"""

from .interfaces import AuditEvent, AuditEventType, IAuditEmitter
from .audit_emitter import AuditEmitter, AuditEmitterError

__all__ = [
    "AuditEvent",
    "AuditEventType",
    "IAuditEmitter",
    "AuditEmitter",
    "AuditEmitterError",
]
