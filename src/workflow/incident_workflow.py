"""
Workflow - Incident Workflow

Point d'intégration unique entre les décisions du WorkflowController et
le journal append-only des transitions.

Garanties:
    - une transition acceptée = exactement un StateTransition immuable
    - transition refusée = état et journal inchangés
    - transitions sérialisées par incident (verrou par incident)
    - journal chaîné par hash SHA-384 (vérifiable par verify_history)
"""

import dataclasses
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from src.core.crypto_provider import CryptoProvider
from src.logging.structured_logger import StructuredLogger
from src.workflow.interfaces import (
    ConcurrentTransitionError,
    IIncidentWorkflow,
    IncidentAlreadyOpenError,
    IncidentState,
    IncidentStep,
    InvalidTransitionError,
    StateLike,
    StateTransition,
    StepLike,
    UnknownIncidentError,
)
from src.workflow.workflow_controller import WorkflowController


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class _IncidentJournal:
    __slots__ = ("lock", "transitions")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.transitions: List[StateTransition] = []


class IncidentWorkflow(IIncidentWorkflow):
    """
    Workflow d'incident: écrivain unique du journal de transitions.

    La version d'un incident est le nombre d'enregistrements du journal
    (1 après ouverture). expected_version permet un contrôle optimiste.

    Example:
        workflow = IncidentWorkflow()
        workflow.open("inc-1", actor="system", reason="Detected")
        workflow.transition("inc-1", "confirmed", actor="analyst", reason="Verified")
    """

    OPENING_REASON: str = "Incident automatically created by security monitoring system"

    def __init__(
        self,
        controller: Optional[WorkflowController] = None,
        crypto_provider: Optional[CryptoProvider] = None,
        clock: Optional[Callable[[], datetime]] = None,
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        self._controller = controller or WorkflowController()
        self._crypto = crypto_provider or CryptoProvider()
        self._clock = clock or _utc_now
        self._logger = logger or StructuredLogger("incident-workflow")

        self._registry_lock = threading.Lock()
        self._journals: Dict[str, _IncidentJournal] = {}

    @property
    def controller(self) -> WorkflowController:
        return self._controller

    def open(self, incident_id: str, actor: str, reason: str = OPENING_REASON) -> StateTransition:
        if not incident_id:
            raise ValueError("incident_id cannot be empty")

        with self._registry_lock:
            if incident_id in self._journals:
                raise IncidentAlreadyOpenError(f"Incident already open: {incident_id}")
            journal = _IncidentJournal()
            self._journals[incident_id] = journal

        with journal.lock:
            record = self._append(journal, incident_id, None, IncidentState.TRIGGERED, actor, reason)

        self._logger.info("Incident opened", incident_id=incident_id, actor=actor)
        return record

    def transition(
        self,
        incident_id: str,
        to_state: StateLike,
        actor: str,
        reason: str,
        expected_version: Optional[int] = None,
    ) -> StateTransition:
        journal = self._get_journal(incident_id)

        with journal.lock:
            version = len(journal.transitions)
            if expected_version is not None and expected_version != version:
                self._logger.warn(
                    "Stale transition rejected",
                    incident_id=incident_id,
                    expected_version=expected_version,
                    version=version,
                )
                raise ConcurrentTransitionError(incident_id, expected_version, version)

            current = journal.transitions[-1].to_state
            try:
                edge = self._controller.validate_transition(current, to_state)
            except InvalidTransitionError:
                self._logger.warn(
                    "Invalid transition rejected",
                    incident_id=incident_id,
                    from_state=current.value,
                    to_state=str(getattr(to_state, "value", to_state)),
                )
                raise

            record = self._append(journal, incident_id, current, edge.to_state, actor, reason)

        self._logger.info(
            "Incident transition",
            incident_id=incident_id,
            from_state=current.value,
            to_state=edge.to_state.value,
            actor=actor,
        )
        return record

    def advance_to_step(
        self,
        incident_id: str,
        step: StepLike,
        actor: str,
        reason: str,
        expected_version: Optional[int] = None,
    ) -> StateTransition:
        """
        Transition vers l'état associé à une étape.

        Raises:
            ValueError: Étape inconnue
            InvalidTransitionError: Étape non atteignable depuis l'état courant
        """
        target = self._controller.get_state_for_step(step)
        return self.transition(incident_id, target, actor, reason, expected_version)

    def current_state(self, incident_id: str) -> IncidentState:
        journal = self._get_journal(incident_id)
        with journal.lock:
            return journal.transitions[-1].to_state

    def current_step(self, incident_id: str) -> Optional[IncidentStep]:
        return self._controller.get_step_for_state(self.current_state(incident_id))

    def version(self, incident_id: str) -> int:
        journal = self._get_journal(incident_id)
        with journal.lock:
            return len(journal.transitions)

    def history(self, incident_id: str) -> Tuple[StateTransition, ...]:
        journal = self._get_journal(incident_id)
        with journal.lock:
            return tuple(journal.transitions)

    def is_open(self, incident_id: str) -> bool:
        with self._registry_lock:
            return incident_id in self._journals

    def verify_history(self, incident_id: str) -> bool:
        """
        Recalcule la chaîne de hash du journal.

        Returns:
            True si chaque enregistrement est intact et chaîné au précédent
        """
        previous_hash: Optional[str] = None
        for record in self.history(incident_id):
            if record.previous_hash != previous_hash:
                return False
            if self._hash(self._payload(record)) != record.hash_value:
                return False
            previous_hash = record.hash_value
        return True

    def _get_journal(self, incident_id: str) -> _IncidentJournal:
        with self._registry_lock:
            journal = self._journals.get(incident_id)
        if journal is None:
            raise UnknownIncidentError(f"Unknown incident: {incident_id}")
        return journal

    def _append(
        self,
        journal: _IncidentJournal,
        incident_id: str,
        from_state: Optional[IncidentState],
        to_state: IncidentState,
        actor: str,
        reason: str,
    ) -> StateTransition:
        previous_hash = journal.transitions[-1].hash_value if journal.transitions else None
        unsigned = StateTransition(
            incident_id=incident_id,
            from_state=from_state,
            to_state=to_state,
            reason=reason,
            actor=actor,
            timestamp=self._clock(),
            sequence=len(journal.transitions),
            previous_hash=previous_hash,
            hash_value="",
        )
        record = dataclasses.replace(unsigned, hash_value=self._hash(self._payload(unsigned)))
        journal.transitions.append(record)
        return record

    @staticmethod
    def _payload(record: StateTransition) -> Dict[str, Any]:
        return {
            "incident_id": record.incident_id,
            "from_state": record.from_state.value if record.from_state else None,
            "to_state": record.to_state.value,
            "reason": record.reason,
            "actor": record.actor,
            "timestamp": record.timestamp.isoformat(),
            "sequence": record.sequence,
            "previous_hash": record.previous_hash,
        }

    def _hash(self, payload: Dict[str, Any]) -> str:
        return self._crypto.hash_record(payload)
