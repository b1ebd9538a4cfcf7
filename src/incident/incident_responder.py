"""
Incident & Réponse - Incident Responder

Orchestration de la réponse à un échec de connexion:

    1. Compte verrouillé/suspendu     → BLOCKED (rien n'est enregistré)
    2. Enregistrement ledger + compte → niveau de menace + hypothèse
    3. LOW    → REJECTED (tentatives restantes)
    4. MEDIUM → incident suspicious_login_activity → ALERTED
    5. HIGH   → verrouillage + classification + incident → LOCKED

Création d'incident: recommandations (enrichies si disponible), dépôt,
ouverture du workflow, événements d'audit.
"""

import asyncio
import uuid
from typing import Dict, List, Optional, Sequence, Tuple

from src.audit.interfaces import AuditEventType, IAuditEmitter
from src.classification.interfaces import (
    Classification,
    IncidentSeverity,
    Indicator,
    Recommendation,
)
from src.classification.threat_classifier import ThreatClassifier
from src.detection.attempt_ledger import AttemptLedger
from src.detection.interfaces import AttackHypothesis, AttackPatternType, ThreatLevel
from src.detection.pattern_analyzer import PatternAnalyzer
from src.enrichment.interfaces import EnhancedRecommendation, IncidentContext
from src.enrichment.recommendation_enhancer import RecommendationEnhancer
from src.incident.account_lock_controller import AccountLockController
from src.incident.interfaces import (
    AccountStatus,
    IIncidentRepository,
    Incident,
    IncidentCreationError,
    LoginAssessment,
    LoginOutcome,
)
from src.logging.structured_logger import StructuredLogger
from src.workflow.incident_workflow import IncidentWorkflow
from src.workflow.interfaces import (
    IncidentState,
    IncidentStep,
    InvalidTransitionError,
    StepLike,
)


SUSPICIOUS_ACTIVITY_TYPE = "suspicious_login_activity"
LOGIN_MONITOR_SOURCE = "login_monitor"
LOCK_REASON = "Multiple failed login attempts detected - potential security threat"

_PATTERN_TO_INCIDENT_TYPE = {
    AttackPatternType.BRUTE_FORCE: "brute_force_attack",
    AttackPatternType.CREDENTIAL_STUFFING: "credential_stuffing",
    AttackPatternType.PASSWORD_SPRAY: "password_spray_attack",
}


def map_pattern_to_incident_type(
    pattern: Optional[AttackPatternType],
    attempt_count: int,
    unique_sources: int,
) -> str:
    """
    Type d'incident pour un pattern détecté.

    Sans pattern reconnu: >= 10 tentatives → brute_force_attack,
    plus de 2 sources → credential_stuffing, sinon password_spray_attack.
    """
    if pattern in _PATTERN_TO_INCIDENT_TYPE:
        return _PATTERN_TO_INCIDENT_TYPE[pattern]
    if attempt_count >= 10:
        return "brute_force_attack"
    if unique_sources > 2:
        return "credential_stuffing"
    return "password_spray_attack"


class IncidentResponder:
    """
    Réponse automatique aux échecs de connexion.

    Les composants sont injectés (voir bootstrap.build_response_core).
    Une panne de l'enrichisseur n'empêche jamais la création d'un
    incident; une panne du dépôt lève IncidentCreationError.
    """

    def __init__(
        self,
        ledger: AttemptLedger,
        analyzer: PatternAnalyzer,
        classifier: ThreatClassifier,
        accounts: AccountLockController,
        workflow: IncidentWorkflow,
        repository: IIncidentRepository,
        audit_emitter: IAuditEmitter,
        enhancer: Optional[RecommendationEnhancer] = None,
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        self._ledger = ledger
        self._analyzer = analyzer
        self._classifier = classifier
        self._accounts = accounts
        self._workflow = workflow
        self._repository = repository
        self._audit = audit_emitter
        self._enhancer = enhancer
        self._logger = logger or StructuredLogger("incident-responder")
        self._incident_locks: Dict[str, asyncio.Lock] = {}

    async def handle_failed_login(
        self,
        identity: str,
        source_address: str,
        agent: str,
    ) -> LoginAssessment:
        """
        Traite un échec de connexion.

        Args:
            identity: Identité ciblée
            source_address: Adresse IP source
            agent: User agent client

        Returns:
            Évaluation de la tentative (issue, niveau, incident éventuel)

        Raises:
            IncidentCreationError: Si le dépôt d'incidents échoue
        """
        log = self._logger.with_context(component="login-monitor")
        max_attempts = self._ledger.settings.critical_threshold

        if self._accounts.is_login_blocked(identity):
            status = self._accounts.get_account_status(identity)
            log.info("Blocked login attempt", identity=identity, status=status.status.value)
            await self._audit.emit_event(
                AuditEventType.LOGIN_BLOCKED,
                actor=identity,
                action="login_blocked",
                resource_id=identity,
                metadata={"status": status.status.value},
                ip_address=source_address,
                user_agent=agent,
            )
            return LoginAssessment(
                identity=identity,
                outcome=LoginOutcome.BLOCKED,
                attempt_count=len(self._ledger.get_history(identity)),
                remaining_attempts=0,
                message=(
                    "Account has been locked due to security concerns. "
                    "Contact IT support for assistance."
                ),
            )

        count = self._ledger.record_attempt(identity, source_address, agent)
        self._accounts.record_failed_attempt(identity)
        threat_level = self._analyzer.get_threat_level(count)
        hypothesis = self._analyzer.analyze_pattern(identity)

        log.info(
            "Failed login attempt",
            identity=identity,
            source_address=source_address,
            attempt_count=count,
            threat_level=threat_level.value,
            pattern=hypothesis.pattern_type.value if hypothesis else None,
        )
        await self._audit.emit_event(
            AuditEventType.LOGIN_FAILED,
            actor=identity,
            action="login_failed",
            resource_id=identity,
            metadata={"attempt_count": count, "threat_level": threat_level.value},
            ip_address=source_address,
            user_agent=agent,
        )

        if threat_level == ThreatLevel.HIGH:
            return await self._respond_high(identity, source_address, agent, count, hypothesis)

        if threat_level == ThreatLevel.MEDIUM:
            incident = await self.create_incident(
                incident_type=SUSPICIOUS_ACTIVITY_TYPE,
                severity=IncidentSeverity.MEDIUM,
                identity=identity,
                indicators=[
                    Indicator("failed_login_attempts", count, 1.0),
                    Indicator("source_ip", source_address, 1.0),
                    Indicator("time_window", "5_minutes", 1.0),
                    Indicator("user_agent", agent, 0.8),
                ],
            )
            return LoginAssessment(
                identity=identity,
                outcome=LoginOutcome.ALERTED,
                attempt_count=count,
                remaining_attempts=max(0, max_attempts - count),
                message=(
                    "Invalid email or password. Security team has been notified "
                    "of suspicious activity."
                ),
                threat_level=threat_level,
                hypothesis=hypothesis,
                incident=incident,
            )

        return LoginAssessment(
            identity=identity,
            outcome=LoginOutcome.REJECTED,
            attempt_count=count,
            remaining_attempts=max(0, max_attempts - count),
            message="Invalid email or password. Please check your credentials and try again.",
            threat_level=threat_level,
            hypothesis=hypothesis,
        )

    async def create_incident(
        self,
        incident_type: str,
        severity: IncidentSeverity,
        identity: str,
        indicators: Sequence[Indicator],
        source: str = LOGIN_MONITOR_SOURCE,
        classification_confidence: Optional[float] = None,
    ) -> Incident:
        """
        Crée, enregistre et ouvre un incident.

        Raises:
            IncidentCreationError: Si le dépôt échoue (workflow non ouvert)
        """
        incident_id = str(uuid.uuid4())
        recommendations = self._classifier.get_recommendations(incident_type)
        enhanced = await self._enhance(recommendations, incident_type, severity, indicators)

        incident = Incident(
            incident_id=incident_id,
            incident_type=incident_type,
            severity=severity,
            identity=identity,
            source=source,
            status=IncidentState.TRIGGERED,
            current_step=IncidentStep.TRIGGER,
            created_at=self._ledger.now(),
            indicators=list(indicators),
            recommendations=recommendations,
            enhanced_recommendations=enhanced,
            classification_confidence=classification_confidence,
        )

        try:
            await self._repository.save(incident)
        except Exception as e:
            self._logger.error(
                "Incident persistence failed",
                incident_type=incident_type,
                identity=identity,
                error=str(e),
            )
            raise IncidentCreationError(f"Failed to create security incident: {e}")

        self._workflow.open(incident_id, actor=source, reason=IncidentWorkflow.OPENING_REASON)

        self._logger.info(
            "Incident created",
            incident_id=incident_id,
            incident_type=incident_type,
            severity=severity.value,
            identity=identity,
            recommendations=len(recommendations),
        )
        await self._audit.emit_event(
            AuditEventType.INCIDENT_CREATED,
            actor=source,
            action="incident_created",
            resource_id=incident_id,
            metadata={
                "incident_type": incident_type,
                "severity": severity.value,
                "identity": identity,
                "indicator_count": len(incident.indicators),
            },
        )
        return incident

    async def transition_incident(
        self,
        incident_id: str,
        step: StepLike,
        actor: str,
        reason: str,
    ) -> Incident:
        """
        Fait avancer un incident vers l'état d'une étape.

        Lecture, transition et enregistrement sont sérialisés par incident;
        le statut enregistré est celui du journal du workflow.

        Raises:
            IncidentCreationError: Incident absent du dépôt
            InvalidTransitionError: Transition illégale (incident inchangé)
        """
        lock = self._incident_locks.setdefault(incident_id, asyncio.Lock())
        async with lock:
            incident = await self._repository.get(incident_id)
            if incident is None:
                raise IncidentCreationError(f"Unknown incident: {incident_id}")

            try:
                record = self._workflow.advance_to_step(incident_id, step, actor=actor, reason=reason)
            except InvalidTransitionError as e:
                await self._audit.emit_event(
                    AuditEventType.TRANSITION_REJECTED,
                    actor=actor,
                    action="transition_rejected",
                    resource_id=incident_id,
                    metadata={"from_state": str(e.from_state), "to_state": str(e.to_state)},
                )
                raise

            incident.status = self._workflow.current_state(incident_id)
            incident.current_step = self._workflow.current_step(incident_id)
            await self._repository.save(incident)

        await self._audit.emit_event(
            AuditEventType.INCIDENT_TRANSITION,
            actor=actor,
            action="incident_transition",
            resource_id=incident_id,
            metadata={
                "from_state": record.from_state.value if record.from_state else None,
                "to_state": record.to_state.value,
                "sequence": record.sequence,
                "reason": reason,
            },
        )
        return incident

    async def unlock_account(self, identity: str, actor: str) -> AccountStatus:
        """Déverrouillage manuel (analyste) avec trace d'audit."""
        status = self._accounts.unlock_account(identity)
        self._ledger.clear(identity)
        await self._audit.emit_event(
            AuditEventType.ACCOUNT_UNLOCKED,
            actor=actor,
            action="account_unlocked",
            resource_id=identity,
        )
        return status

    async def reset_all(self, actor: str) -> None:
        """Réinitialise comptes et historique des tentatives."""
        self._accounts.reset_all_accounts()
        self._ledger.clear_all()
        await self._audit.emit_event(
            AuditEventType.ACCOUNTS_RESET,
            actor=actor,
            action="accounts_reset",
        )

    async def _respond_high(
        self,
        identity: str,
        source_address: str,
        agent: str,
        count: int,
        hypothesis: Optional[AttackHypothesis],
    ) -> LoginAssessment:
        self._accounts.lock_account(identity, LOCK_REASON)
        await self._audit.emit_event(
            AuditEventType.ACCOUNT_LOCKED,
            actor="system",
            action="account_locked",
            resource_id=identity,
            metadata={"reason": LOCK_REASON, "attempt_count": count},
            ip_address=source_address,
            user_agent=agent,
        )

        unique_sources = hypothesis.indicators.get("unique_ips", 1) if hypothesis else 1
        if hypothesis is not None:
            await self._audit.emit_event(
                AuditEventType.ATTACK_DETECTED,
                actor="system",
                action="attack_detected",
                resource_id=identity,
                metadata={
                    "pattern": hypothesis.pattern_type.value,
                    "confidence": hypothesis.confidence,
                    "unique_ips": unique_sources,
                },
                ip_address=source_address,
            )

        indicators = self._build_indicators(count, source_address, agent, hypothesis)
        classification = self._classifier.classify(indicators)

        incident_type, severity = self._resolve_incident_type(
            classification, hypothesis, count, unique_sources
        )
        incident = await self.create_incident(
            incident_type=incident_type,
            severity=severity,
            identity=identity,
            indicators=indicators,
            classification_confidence=classification.confidence if classification else None,
        )

        return LoginAssessment(
            identity=identity,
            outcome=LoginOutcome.LOCKED,
            attempt_count=count,
            remaining_attempts=0,
            message=(
                "Account has been locked due to multiple failed login attempts. "
                "Security incident has been created and IT support has been notified."
            ),
            threat_level=ThreatLevel.HIGH,
            hypothesis=hypothesis,
            incident=incident,
        )

    @staticmethod
    def _build_indicators(
        count: int,
        source_address: str,
        agent: str,
        hypothesis: Optional[AttackHypothesis],
    ) -> List[Indicator]:
        pattern = hypothesis.pattern_type if hypothesis else AttackPatternType.PASSWORD_SPRAY
        pattern_confidence = hypothesis.confidence if hypothesis else 0.8
        details = hypothesis.indicators if hypothesis else {}

        return [
            Indicator("failed_login_attempts", count, 1.0),
            Indicator("failed_logins", count, 0.8),
            Indicator("attack_pattern", pattern.value, pattern_confidence),
            Indicator("source_ip", source_address, 1.0),
            Indicator("automatic_response", "account_locked", 1.0),
            Indicator("unique_ips", details.get("unique_ips", 1), 1.0),
            Indicator(
                "distributed_attempts",
                pattern == AttackPatternType.CREDENTIAL_STUFFING,
                pattern_confidence,
            ),
            Indicator("user_agent", agent, 0.8),
            Indicator("attempts_per_second", details.get("attempts_per_second", 0), 0.9),
        ]

    @staticmethod
    def _resolve_incident_type(
        classification: Optional[Classification],
        hypothesis: Optional[AttackHypothesis],
        count: int,
        unique_sources: int,
    ) -> Tuple[str, IncidentSeverity]:
        if classification is not None:
            return classification.type, classification.severity
        pattern = hypothesis.pattern_type if hypothesis else None
        return (
            map_pattern_to_incident_type(pattern, count, unique_sources),
            IncidentSeverity.HIGH,
        )

    async def _enhance(
        self,
        recommendations: List[Recommendation],
        incident_type: str,
        severity: IncidentSeverity,
        indicators: Sequence[Indicator],
    ) -> List[EnhancedRecommendation]:
        if self._enhancer is None or not recommendations:
            return []
        context = IncidentContext(
            incident_type=incident_type,
            severity=severity.value,
            indicators=tuple(indicators),
        )
        return await self._enhancer.enhance(recommendations, context)
