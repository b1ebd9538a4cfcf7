"""
Workflow - Workflow Controller

Table statique des transitions légales d'un incident et correspondance
étapes ↔ états. Sans état, idempotent, sans effet de bord.
"""

from typing import Dict, List, Optional, Tuple

from src.workflow.interfaces import (
    IncidentState,
    IncidentStep,
    InvalidTransitionError,
    StateLike,
    StepLike,
    TransitionEdge,
)


STEP_SEQUENCE: Tuple[IncidentStep, ...] = (
    IncidentStep.TRIGGER,
    IncidentStep.CONFIRM,
    IncidentStep.CLASSIFY,
    IncidentStep.CONTAIN,
    IncidentStep.RECOVER,
)

TERMINAL_STATES = frozenset({IncidentState.CLOSED})

EDGES: Tuple[TransitionEdge, ...] = (
    # Chaîne canonique
    TransitionEdge(IncidentState.TRIGGERED, IncidentState.CONFIRMED, IncidentStep.CONFIRM),
    TransitionEdge(IncidentState.CONFIRMED, IncidentState.CLASSIFIED, IncidentStep.CLASSIFY),
    TransitionEdge(IncidentState.CLASSIFIED, IncidentState.CONTAINED, IncidentStep.CONTAIN),
    TransitionEdge(IncidentState.CONTAINED, IncidentState.RECOVERED, IncidentStep.RECOVER),
    TransitionEdge(IncidentState.RECOVERED, IncidentState.DOCUMENTED),
    TransitionEdge(IncidentState.DOCUMENTED, IncidentState.CLOSED),
    # Fermeture directe (faux positif, clôture d'urgence)
    TransitionEdge(IncidentState.TRIGGERED, IncidentState.CLOSED),
    TransitionEdge(IncidentState.CONFIRMED, IncidentState.CLOSED),
    TransitionEdge(IncidentState.CLASSIFIED, IncidentState.CLOSED),
    TransitionEdge(IncidentState.CONTAINED, IncidentState.CLOSED),
    TransitionEdge(IncidentState.RECOVERED, IncidentState.CLOSED),
)

_STEP_TO_STATE: Dict[IncidentStep, IncidentState] = {
    IncidentStep.TRIGGER: IncidentState.TRIGGERED,
    IncidentStep.CONFIRM: IncidentState.CONFIRMED,
    IncidentStep.CLASSIFY: IncidentState.CLASSIFIED,
    IncidentStep.CONTAIN: IncidentState.CONTAINED,
    IncidentStep.RECOVER: IncidentState.RECOVERED,
}

_STATE_TO_STEP: Dict[IncidentState, IncidentStep] = {
    state: step for step, state in _STEP_TO_STATE.items()
}


def _to_state(value: StateLike) -> Optional[IncidentState]:
    if isinstance(value, IncidentState):
        return value
    try:
        return IncidentState(value)
    except ValueError:
        return None


def _to_step(value: StepLike) -> Optional[IncidentStep]:
    if isinstance(value, IncidentStep):
        return value
    try:
        return IncidentStep(value)
    except ValueError:
        return None


class WorkflowController:
    """
    Contrôleur de la machine à états des incidents.

    Accepte membres d'enum ou leurs valeurs texte; toute valeur
    inconnue est traitée comme absente de la table.

    Example:
        controller = WorkflowController()
        controller.can_transition("triggered", "closed")  # True
    """

    @property
    def edges(self) -> Tuple[TransitionEdge, ...]:
        return EDGES

    def can_transition(self, from_state: StateLike, to_state: StateLike) -> bool:
        """
        Vérifie l'appartenance d'une arête à la table.

        Returns:
            True si la transition est légale
        """
        source = _to_state(from_state)
        target = _to_state(to_state)
        if source is None or target is None:
            return False
        return any(e.from_state is source and e.to_state is target for e in EDGES)

    def validate_transition(self, from_state: StateLike, to_state: StateLike) -> TransitionEdge:
        """
        Retourne l'arête correspondante.

        Raises:
            InvalidTransitionError: Si l'arête n'existe pas
        """
        source = _to_state(from_state)
        target = _to_state(to_state)
        for edge in EDGES:
            if edge.from_state is source and edge.to_state is target:
                return edge
        raise InvalidTransitionError(from_state, to_state)

    def get_next_states(self, state: StateLike) -> List[IncidentState]:
        source = _to_state(state)
        return [e.to_state for e in EDGES if e.from_state is source]

    def get_step_for_transition(
        self, from_state: StateLike, to_state: StateLike
    ) -> Optional[IncidentStep]:
        source = _to_state(from_state)
        target = _to_state(to_state)
        for edge in EDGES:
            if edge.from_state is source and edge.to_state is target:
                return edge.step
        return None

    def get_step_for_state(self, state: StateLike) -> Optional[IncidentStep]:
        """Étape associée à un état (None pour documented/closed)."""
        source = _to_state(state)
        if source is None:
            return None
        return _STATE_TO_STEP.get(source)

    def get_state_for_step(self, step: StepLike) -> IncidentState:
        """
        État atteint par une étape.

        Raises:
            ValueError: Étape inconnue
        """
        resolved = _to_step(step)
        if resolved is None:
            raise ValueError(f"Unknown incident step: {step}")
        return _STEP_TO_STATE[resolved]

    def get_next_step(self, step: StepLike) -> Optional[IncidentStep]:
        index = self.get_step_index(step)
        if index < 0 or index >= len(STEP_SEQUENCE) - 1:
            return None
        return STEP_SEQUENCE[index + 1]

    def get_previous_step(self, step: StepLike) -> Optional[IncidentStep]:
        index = self.get_step_index(step)
        if index <= 0:
            return None
        return STEP_SEQUENCE[index - 1]

    def get_all_steps(self) -> List[IncidentStep]:
        return list(STEP_SEQUENCE)

    def get_step_index(self, step: StepLike) -> int:
        """Position de l'étape dans la séquence, -1 si inconnue."""
        resolved = _to_step(step)
        if resolved is None:
            return -1
        return STEP_SEQUENCE.index(resolved)

    def is_valid_state(self, value: str) -> bool:
        return _to_state(value) is not None

    def is_valid_step(self, value: str) -> bool:
        return _to_step(value) is not None

    def is_terminal(self, state: StateLike) -> bool:
        return _to_state(state) in TERMINAL_STATES
