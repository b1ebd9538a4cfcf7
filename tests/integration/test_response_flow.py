"""
Tests d'intégration: chaîne complète détection → réponse.

Tentative → ledger → analyse → verrouillage + classification → incident
→ transitions opérateur, avec audit signé réel.
"""

import asyncio

import pytest

from src.audit.audit_emitter import AuditEmitter
from src.audit.interfaces import AuditEventType
from src.core.crypto_provider import CryptoProvider
from src.core.interfaces import CoreSettings, EnrichmentSettings
from src.detection import AttackPatternType, ThreatLevel
from src.enrichment import ITextGenerator
from src.incident import LoginOutcome, build_response_core
from src.workflow import IncidentState, IncidentStep, InvalidTransitionError


AGENT = "Mozilla/5.0"


class EchoGenerator(ITextGenerator):
    async def generate(self, prompt: str, system_prompt: str) -> str:
        return '{"detailed_explanation": "ok", "implementation_steps": ["step"], "estimated_time": "1h"}'


@pytest.fixture
def audit() -> AuditEmitter:
    return AuditEmitter(CryptoProvider())


@pytest.fixture
def core(clock, audit):
    return build_response_core(audit_emitter=audit, clock=clock)


class TestDetectionScenarios:
    """Scénarios de bout en bout sur le ledger et l'analyseur."""

    def test_three_slow_attempts_same_source(self, core, clock):
        """a@x.com: 3 tentatives même IP à t=0, 60, 120s."""
        for i in range(3):
            if i:
                clock.advance(60)
            count = core.ledger.record_attempt("a@x.com", "1.2.3.4", AGENT)

        hypothesis = core.analyzer.analyze_pattern("a@x.com")

        assert count == 3
        assert core.analyzer.get_threat_level(count) == ThreatLevel.MEDIUM
        assert hypothesis.pattern_type == AttackPatternType.PASSWORD_SPRAY
        assert hypothesis.confidence == 0.8

    def test_three_rapid_attempts_same_source(self, core, clock):
        """a@x.com: 3 tentatives même IP à t=0, 1, 2s (1.5 tentative/s)."""
        for i in range(3):
            if i:
                clock.advance(1)
            count = core.ledger.record_attempt("a@x.com", "1.2.3.4", AGENT)

        assert count == 3
        assert core.analyzer.analyze_pattern("a@x.com").pattern_type == AttackPatternType.BRUTE_FORCE

    def test_ten_attempts_in_five_seconds(self, core, clock):
        """b@x.com: 10 tentatives en 5s depuis une IP."""
        for i in range(10):
            if i:
                clock.advance(5 / 9)
            count = core.ledger.record_attempt("b@x.com", "5.6.7.8", AGENT)

        hypothesis = core.analyzer.analyze_pattern("b@x.com")

        assert core.analyzer.get_threat_level(count) == ThreatLevel.HIGH
        assert hypothesis.pattern_type == AttackPatternType.BRUTE_FORCE
        assert hypothesis.confidence == 0.9
        assert hypothesis.indicators["attempts_per_second"] == pytest.approx(2.0, rel=1e-3)


class TestResponseFlow:
    """Réponse automatique complète."""

    @pytest.mark.asyncio
    async def test_brute_force_locks_and_creates_incident(self, core, clock, audit):
        outcomes = []
        for i in range(6):
            if i:
                clock.advance(1)
            assessment = await core.responder.handle_failed_login("b@x.com", "5.6.7.8", AGENT)
            outcomes.append(assessment.outcome)

        assert outcomes == [
            LoginOutcome.REJECTED,
            LoginOutcome.REJECTED,
            LoginOutcome.ALERTED,
            LoginOutcome.ALERTED,
            LoginOutcome.LOCKED,
            LoginOutcome.BLOCKED,
        ]
        assert core.accounts.is_account_locked("b@x.com") is True

        incidents = await core.repository.list_all()
        assert [i.incident_type for i in incidents] == [
            "suspicious_login_activity",
            "suspicious_login_activity",
            "brute_force_attack",
        ]

        events = audit.get_events(resource_id="b@x.com")
        assert all(audit.verify_event_signature(e) for e in events)
        assert len(audit.get_events(event_type=AuditEventType.ACCOUNT_LOCKED)) == 1
        assert len(audit.get_events(event_type=AuditEventType.LOGIN_BLOCKED)) == 1

    @pytest.mark.asyncio
    async def test_incident_lifecycle(self, core, clock):
        for i in range(5):
            if i:
                clock.advance(1)
            assessment = await core.responder.handle_failed_login("c@x.com", "9.9.9.9", AGENT)
        incident_id = assessment.incident.incident_id

        for step in (IncidentStep.CONFIRM, IncidentStep.CLASSIFY, IncidentStep.CONTAIN, IncidentStep.RECOVER):
            clock.advance(60)
            incident = await core.responder.transition_incident(incident_id, step, "analyst", f"{step.value} done")

        assert incident.status == IncidentState.RECOVERED
        assert incident.current_step == IncidentStep.RECOVER
        core.workflow.transition(incident_id, "documented", actor="analyst", reason="Report written")
        core.workflow.transition(incident_id, "closed", actor="analyst", reason="Done")

        history = core.workflow.history(incident_id)
        assert [r.to_state for r in history][-1] == IncidentState.CLOSED
        assert len(history) == 7
        assert core.workflow.verify_history(incident_id) is True

        with pytest.raises(InvalidTransitionError):
            await core.responder.transition_incident(incident_id, IncidentStep.CONFIRM, "analyst", "reopen")

    @pytest.mark.asyncio
    async def test_false_positive_closure(self, core, clock):
        for i in range(3):
            if i:
                clock.advance(60)
            assessment = await core.responder.handle_failed_login("d@x.com", "1.1.1.1", AGENT)

        incident_id = assessment.incident.incident_id
        core.workflow.transition(incident_id, IncidentState.CLOSED, actor="analyst", reason="User typo")

        assert core.workflow.current_state(incident_id) == IncidentState.CLOSED
        assert core.workflow.current_step(incident_id) is None

    @pytest.mark.asyncio
    async def test_concurrent_identities(self, core):
        """Tâches concurrentes sur des identités distinctes."""

        async def attack(identity: str):
            results = []
            for _ in range(5):
                results.append(await core.responder.handle_failed_login(identity, "10.0.0.1", AGENT))
            return results

        identities = [f"user{i}@x.com" for i in range(5)]
        all_results = await asyncio.gather(*(attack(identity) for identity in identities))

        for results in all_results:
            assert results[-1].outcome == LoginOutcome.LOCKED
        assert len(core.accounts.get_locked_accounts()) == 5

    @pytest.mark.asyncio
    async def test_enrichment_enabled(self, clock, audit):
        settings = CoreSettings(enrichment=EnrichmentSettings(enabled=True))
        core = build_response_core(settings, audit_emitter=audit, text_generator=EchoGenerator(), clock=clock)

        for i in range(3):
            if i:
                clock.advance(60)
            assessment = await core.responder.handle_failed_login("e@x.com", "1.1.1.1", AGENT)

        assert core.enhancer is not None
        assert [e.enhanced for e in assessment.incident.enhanced_recommendations] == [True, True]

    def test_enrichment_disabled_by_default(self, clock):
        core = build_response_core(text_generator=EchoGenerator(), clock=clock)

        assert core.enhancer is None
