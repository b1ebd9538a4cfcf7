#!/usr/bin/env python3
"""
Incident & Réponse - Simulation d'attaque
Rejoue une force brute puis une pulvérisation lente contre le noyau
en mémoire et affiche les décisions prises.
"""

import asyncio
import sys
from datetime import datetime, timedelta, timezone

from src.incident import LoginOutcome, build_response_core
from src.workflow import IncidentStep


class SteppingClock:
    """Horloge simulée avancée manuellement."""

    def __init__(self):
        self.current = datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


def print_assessment(index: int, assessment) -> None:
    level = assessment.threat_level.value if assessment.threat_level else "-"
    print(f"  #{index:<2} {assessment.outcome.value:<9} niveau={level:<7} {assessment.message}")


def print_incident(incident) -> None:
    print(f"\n  Incident {incident.incident_id}")
    print(f"    type     : {incident.incident_type}")
    print(f"    sévérité : {incident.severity.value}")
    print(f"    statut   : {incident.status.value}")
    for rec in incident.recommendations:
        print(f"    [{rec.category.value:<9}] p{rec.priority} {rec.action}")


async def replay(core, clock, identity: str, sources, interval: float) -> None:
    incident = None
    for i, source in enumerate(sources, start=1):
        assessment = await core.responder.handle_failed_login(identity, source, "simulate_attack/1.0")
        print_assessment(i, assessment)
        if assessment.incident is not None:
            incident = assessment.incident
        if assessment.outcome == LoginOutcome.BLOCKED:
            break
        clock.advance(interval)

    if incident is not None:
        print_incident(incident)


async def run() -> int:
    clock = SteppingClock()
    core = build_response_core(clock=clock)

    print("=" * 60)
    print("FORCE BRUTE: 8 tentatives, une source, 1 par seconde")
    print("=" * 60)
    await replay(core, clock, "alice@example.com", ["203.0.113.7"] * 8, 1)

    print("\n" + "=" * 60)
    print("STUFFING: 6 tentatives, 4 sources, 1 toutes les 10 secondes")
    print("=" * 60)
    sources = ["198.51.100.1", "198.51.100.2", "198.51.100.3", "198.51.100.4"] * 2
    await replay(core, clock, "bob@example.com", sources[:6], 10)

    incidents = await core.repository.list_all()
    last = incidents[-1]
    print(f"\nTraitement opérateur de {last.incident_id}")
    for step in (IncidentStep.CONFIRM, IncidentStep.CLASSIFY, IncidentStep.CONTAIN):
        incident = await core.responder.transition_incident(last.incident_id, step, "analyst", "simulation")
        print(f"  → {incident.status.value}")

    print(f"\nJournal intègre: {core.workflow.verify_history(last.incident_id)}")
    stats = core.accounts.get_account_statistics()
    print(f"Comptes verrouillés: {stats.locked_accounts}/{stats.total_accounts}")
    print(f"Événements d'audit: {len(core.audit_emitter.get_events())}")
    return 0


def main():
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
