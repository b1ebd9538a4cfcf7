"""
Incident & Réponse - Bootstrap

Racine de composition: construit et relie explicitement tous les
composants du noyau. Aucun singleton de module.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from src.audit.audit_emitter import AuditEmitter
from src.audit.interfaces import IAuditEmitter
from src.classification.rule_table import (
    load_attack_patterns,
    load_default_attack_patterns,
    load_default_recommendations,
    load_recommendations,
)
from src.classification.threat_classifier import ThreatClassifier
from src.core.crypto_provider import CryptoProvider
from src.core.interfaces import CoreSettings
from src.detection.attempt_ledger import AttemptLedger
from src.detection.pattern_analyzer import PatternAnalyzer
from src.enrichment.interfaces import ITextGenerator
from src.enrichment.recommendation_enhancer import RecommendationEnhancer
from src.incident.account_lock_controller import AccountLockController
from src.incident.incident_repository import InMemoryIncidentRepository
from src.incident.incident_responder import IncidentResponder
from src.incident.interfaces import IIncidentRepository
from src.logging.interfaces import LogConfig, LogLevel
from src.logging.structured_logger import StructuredLogger
from src.workflow.incident_workflow import IncidentWorkflow
from src.workflow.workflow_controller import WorkflowController


@dataclass
class ResponseCore:
    """Ensemble des composants câblés."""

    settings: CoreSettings
    ledger: AttemptLedger
    analyzer: PatternAnalyzer
    classifier: ThreatClassifier
    controller: WorkflowController
    workflow: IncidentWorkflow
    accounts: AccountLockController
    responder: IncidentResponder
    repository: IIncidentRepository
    audit_emitter: IAuditEmitter
    enhancer: Optional[RecommendationEnhancer] = None


def build_response_core(
    settings: Optional[CoreSettings] = None,
    repository: Optional[IIncidentRepository] = None,
    audit_emitter: Optional[IAuditEmitter] = None,
    text_generator: Optional[ITextGenerator] = None,
    clock: Optional[Callable[[], datetime]] = None,
    logger: Optional[StructuredLogger] = None,
) -> ResponseCore:
    """
    Construit le noyau détection & réponse.

    Args:
        settings: Configuration (défaut: CoreSettings())
        repository: Dépôt d'incidents (défaut: dépôt en mémoire)
        audit_emitter: Émetteur d'audit (défaut: AuditEmitter signé)
        text_generator: Générateur pour l'enrichissement, utilisé si
            settings.enrichment.enabled
        clock: Horloge partagée par tous les composants
        logger: Logger partagé (défaut: un logger par composant)

    Returns:
        ResponseCore câblé

    Raises:
        RuleTableError: Table de règles configurée invalide
    """
    settings = settings or CoreSettings()

    repository = repository or InMemoryIncidentRepository()

    crypto = CryptoProvider()
    audit = audit_emitter or AuditEmitter(crypto, max_events=settings.audit.max_events)

    log_config = LogConfig(
        min_level=LogLevel.from_name(settings.logging.level),
        mask_identities=settings.logging.mask_identities,
        max_entries=settings.logging.max_entries,
    )

    def component_logger(name: str) -> StructuredLogger:
        return logger or StructuredLogger(name, config=log_config)

    definitions = (
        load_attack_patterns(settings.attack_patterns_path)
        if settings.attack_patterns_path
        else load_default_attack_patterns()
    )
    recommendations = (
        load_recommendations(settings.recommendations_path)
        if settings.recommendations_path
        else load_default_recommendations()
    )

    controller = WorkflowController()
    ledger = AttemptLedger(settings.detection, clock=clock, logger=component_logger("attempt-ledger"))
    analyzer = PatternAnalyzer(ledger, logger=component_logger("pattern-analyzer"))
    classifier = ThreatClassifier(definitions, recommendations, controller=controller)
    workflow = IncidentWorkflow(
        controller,
        crypto_provider=crypto,
        clock=clock,
        logger=component_logger("incident-workflow"),
    )
    accounts = AccountLockController(
        settings.lock, clock=clock, logger=component_logger("account-lock-controller")
    )

    enhancer: Optional[RecommendationEnhancer] = None
    if settings.enrichment.enabled and text_generator is not None:
        enhancer = RecommendationEnhancer(
            text_generator,
            timeout_seconds=settings.enrichment.timeout_seconds,
            logger=component_logger("recommendation-enhancer"),
        )

    responder = IncidentResponder(
        ledger=ledger,
        analyzer=analyzer,
        classifier=classifier,
        accounts=accounts,
        workflow=workflow,
        repository=repository,
        audit_emitter=audit,
        enhancer=enhancer,
        logger=component_logger("incident-responder"),
    )

    return ResponseCore(
        settings=settings,
        ledger=ledger,
        analyzer=analyzer,
        classifier=classifier,
        controller=controller,
        workflow=workflow,
        accounts=accounts,
        responder=responder,
        repository=repository,
        audit_emitter=audit,
        enhancer=enhancer,
    )
