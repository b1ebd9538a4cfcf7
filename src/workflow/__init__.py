"""
Workflow d'incident

- Table des transitions légales (triggered → ... → closed)
- Correspondance étapes opérateur ↔ états
- Journal append-only chaîné par hash
"""

from .interfaces import (
    # Enums
    IncidentState,
    IncidentStep,
    # Data classes
    TransitionEdge,
    StateTransition,
    # Interfaces
    IIncidentWorkflow,
    # Exceptions
    WorkflowError,
    InvalidTransitionError,
    ConcurrentTransitionError,
    UnknownIncidentError,
    IncidentAlreadyOpenError,
)
from .workflow_controller import WorkflowController, EDGES, STEP_SEQUENCE
from .incident_workflow import IncidentWorkflow

__all__ = [
    # Enums
    "IncidentState",
    "IncidentStep",
    # Data classes
    "TransitionEdge",
    "StateTransition",
    # Interfaces
    "IIncidentWorkflow",
    # Implementations
    "WorkflowController",
    "IncidentWorkflow",
    "EDGES",
    "STEP_SEQUENCE",
    # Exceptions
    "WorkflowError",
    "InvalidTransitionError",
    "ConcurrentTransitionError",
    "UnknownIncidentError",
    "IncidentAlreadyOpenError",
]
