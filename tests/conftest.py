"""
Pytest Configuration
Fixtures partagées pour tous les tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

from src.audit.interfaces import AuditEvent, AuditEventType, IAuditEmitter
from src.core.interfaces import DetectionSettings, LockSettings
from src.incident.interfaces import IIncidentRepository, Incident


class FakeClock:
    """Horloge contrôlable (UTC)."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.current = start or datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> datetime:
        self.current = self.current + timedelta(seconds=seconds)
        return self.current

    def __call__(self) -> datetime:
        return self.current


class MockAuditEmitter(IAuditEmitter):
    """Mock de l'émetteur d'audit: mémorise les événements."""

    def __init__(self) -> None:
        self.events: List[Dict[str, Any]] = []

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
        self.events.append({
            "event_type": event_type,
            "actor": actor,
            "action": action,
            "resource_id": resource_id,
            "metadata": metadata or {},
        })
        return AuditEvent(
            event_id=f"evt-{len(self.events)}",
            event_type=event_type,
            timestamp=datetime.now(timezone.utc),
            actor=actor,
            action=action,
            resource_id=resource_id,
            metadata=metadata or {},
            ip_address=ip_address,
            user_agent=user_agent,
        )

    def verify_event_signature(self, event: AuditEvent) -> bool:
        return True

    def compute_event_hash(self, event: AuditEvent) -> str:
        return "hash-123"

    def of_type(self, event_type: AuditEventType) -> List[Dict[str, Any]]:
        return [e for e in self.events if e["event_type"] == event_type]


class FailingIncidentRepository(IIncidentRepository):
    """Dépôt dont l'enregistrement échoue toujours."""

    async def save(self, incident: Incident) -> None:
        raise ConnectionError("database unavailable")

    async def get(self, incident_id: str) -> Optional[Incident]:
        return None


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def audit_emitter() -> MockAuditEmitter:
    return MockAuditEmitter()


@pytest.fixture
def detection_settings() -> DetectionSettings:
    return DetectionSettings()


@pytest.fixture
def lock_settings() -> LockSettings:
    return LockSettings()


@pytest.fixture
def failing_repository() -> FailingIncidentRepository:
    return FailingIncidentRepository()
