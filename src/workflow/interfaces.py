"""
Workflow - Interfaces

Machine à états du cycle de vie d'un incident et journal des transitions.

Chaîne canonique:
    triggered → confirmed → classified → contained → recovered
    → documented → closed
plus la fermeture directe depuis tout état non terminal.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple, Union


# ══════════════════════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════════════════════


class IncidentState(Enum):
    """États du cycle de vie d'un incident."""

    TRIGGERED = "triggered"
    CONFIRMED = "confirmed"
    CLASSIFIED = "classified"
    CONTAINED = "contained"
    RECOVERED = "recovered"
    DOCUMENTED = "documented"
    CLOSED = "closed"


class IncidentStep(Enum):
    """Étapes opérateur du cycle de vie d'un incident."""

    TRIGGER = "trigger"
    CONFIRM = "confirm"
    CLASSIFY = "classify"
    CONTAIN = "contain"
    RECOVER = "recover"


StateLike = Union[IncidentState, str]
StepLike = Union[IncidentStep, str]


# ══════════════════════════════════════════════════════════════════════════════
# DATA CLASSES
# ══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class TransitionEdge:
    """Arête légale de la machine à états."""

    from_state: IncidentState
    to_state: IncidentState
    step: Optional[IncidentStep] = None


@dataclass(frozen=True)
class StateTransition:
    """
    Enregistrement immuable d'une transition acceptée.

    from_state vaut None uniquement pour l'enregistrement d'ouverture.
    Chaque enregistrement est chaîné au précédent par son hash.
    """

    incident_id: str
    from_state: Optional[IncidentState]
    to_state: IncidentState
    reason: str
    actor: str
    timestamp: datetime
    sequence: int
    previous_hash: Optional[str]
    hash_value: str


# ══════════════════════════════════════════════════════════════════════════════
# EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════════════


class WorkflowError(Exception):
    """Erreur de base du workflow d'incident."""

    pass


class InvalidTransitionError(WorkflowError):
    """Transition absente de la table des arêtes."""

    def __init__(self, from_state: object, to_state: object) -> None:
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Invalid transition: {from_state} -> {to_state}")


class ConcurrentTransitionError(WorkflowError):
    """Version attendue différente de la version courante."""

    def __init__(self, incident_id: str, expected_version: int, actual_version: int) -> None:
        self.incident_id = incident_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Incident {incident_id}: expected version {expected_version}, "
            f"found {actual_version}"
        )


class UnknownIncidentError(WorkflowError):
    """Incident absent du journal."""

    pass


class IncidentAlreadyOpenError(WorkflowError):
    """Incident déjà ouvert dans le journal."""

    pass


# ══════════════════════════════════════════════════════════════════════════════
# INTERFACES
# ══════════════════════════════════════════════════════════════════════════════


class IIncidentWorkflow(ABC):
    """
    Interface du workflow d'incident (écrivain unique par incident).

    Responsabilités:
        - Validation des transitions par le contrôleur
        - Journal append-only des transitions
        - Sérialisation des transitions concurrentes
    """

    @abstractmethod
    def open(self, incident_id: str, actor: str, reason: str) -> StateTransition:
        """
        Ouvre un incident à l'état triggered.

        Raises:
            IncidentAlreadyOpenError: Si l'incident est déjà ouvert
        """
        pass

    @abstractmethod
    def transition(
        self,
        incident_id: str,
        to_state: StateLike,
        actor: str,
        reason: str,
        expected_version: Optional[int] = None,
    ) -> StateTransition:
        """
        Applique une transition.

        Raises:
            UnknownIncidentError: Incident inconnu
            ConcurrentTransitionError: Version attendue périmée
            InvalidTransitionError: Arête illégale (état inchangé)
        """
        pass

    @abstractmethod
    def current_state(self, incident_id: str) -> IncidentState:
        pass

    @abstractmethod
    def history(self, incident_id: str) -> Tuple[StateTransition, ...]:
        pass
