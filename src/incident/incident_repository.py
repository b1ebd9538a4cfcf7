"""
Incident & Réponse - In-memory Incident Repository

Dépôt d'incidents en mémoire (démonstration, tests).
"""

import asyncio
import copy
from typing import Dict, List, Optional

from src.incident.interfaces import IIncidentRepository, Incident


class InMemoryIncidentRepository(IIncidentRepository):
    """Dépôt d'incidents en mémoire; retourne des copies."""

    def __init__(self) -> None:
        self._incidents: Dict[str, Incident] = {}
        self._lock = asyncio.Lock()

    async def save(self, incident: Incident) -> None:
        async with self._lock:
            self._incidents[incident.incident_id] = copy.deepcopy(incident)

    async def get(self, incident_id: str) -> Optional[Incident]:
        async with self._lock:
            incident = self._incidents.get(incident_id)
            return copy.deepcopy(incident) if incident else None

    async def list_all(self) -> List[Incident]:
        """Incidents par date de création."""
        async with self._lock:
            incidents = [copy.deepcopy(i) for i in self._incidents.values()]
        return sorted(incidents, key=lambda i: i.created_at)

    async def clear(self) -> None:
        async with self._lock:
            self._incidents.clear()
