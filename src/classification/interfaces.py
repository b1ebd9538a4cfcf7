"""
Classification - Interfaces

Modèle de données du classifieur déclaratif: indicateurs typés, règles
de patterns (prédicats en données), classification et recommandations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from src.workflow.interfaces import IncidentStep


# ══════════════════════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════════════════════


class IncidentSeverity(Enum):
    """Niveaux de sévérité des incidents."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class PredicateOperator(Enum):
    """Opérateurs de comparaison des prédicats d'indicateurs."""

    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    EQ = "eq"
    NE = "ne"
    IN = "in"


class RecommendationCategory(Enum):
    """Catégories de recommandations."""

    IMMEDIATE = "immediate"
    FOLLOW_UP = "follow_up"
    OPTIONAL = "optional"


# ══════════════════════════════════════════════════════════════════════════════
# DATA CLASSES
# ══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Indicator:
    """
    Observation typée soumise au classifieur.

    Attributes:
        type: Nom de l'indicateur (ex: failed_logins)
        value: Valeur observée
        confidence: Confiance dans l'observation, 0.5 si absente

    Raises:
        ValueError: Si confidence hors de [0, 1]
    """

    type: str
    value: Any
    confidence: Optional[float] = 0.5

    def __post_init__(self) -> None:
        if self.confidence is None:
            object.__setattr__(self, "confidence", 0.5)
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Indicator confidence out of range: {self.confidence}")


@dataclass(frozen=True)
class IndicatorPredicate:
    """Prédicat sérialisable: opérateur + opérande."""

    operator: PredicateOperator
    operand: Any


@dataclass(frozen=True)
class AttackPatternDefinition:
    """
    Règle de classification d'un pattern d'attaque.

    Raises:
        ValueError: Si confidence_threshold hors de (0, 1]
    """

    name: str
    display_name: str
    predicates: Mapping[str, IndicatorPredicate]
    confidence_threshold: float
    severity: IncidentSeverity
    external_reference_id: Optional[str] = None  # MITRE ATT&CK

    def __post_init__(self) -> None:
        if not 0.0 < self.confidence_threshold <= 1.0:
            raise ValueError(
                f"Threshold out of range for {self.name}: {self.confidence_threshold}"
            )


@dataclass(frozen=True)
class Classification:
    """Résultat de classification."""

    type: str
    confidence: float
    severity: IncidentSeverity
    indicators: Tuple[Indicator, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Recommendation:
    """Action de réponse recommandée, avec sa référence."""

    action: str
    reason: str
    citation: str
    priority: int
    category: RecommendationCategory


# ══════════════════════════════════════════════════════════════════════════════
# INTERFACES
# ══════════════════════════════════════════════════════════════════════════════


class IThreatClassifier(ABC):
    """
    Interface du classifieur de menaces.

    Responsabilités:
        - Classification d'indicateurs par table de règles
        - Recommandations priorisées par type d'incident
        - Navigation dans la séquence d'étapes
    """

    @abstractmethod
    def classify(self, indicators: Sequence[Indicator]) -> Optional[Classification]:
        """
        Classifie un ensemble d'indicateurs.

        Returns:
            Meilleure classification, None si aucun pattern n'atteint son seuil
        """
        pass

    @abstractmethod
    def get_recommendations(
        self,
        incident_type: str,
        category: Optional[RecommendationCategory] = None,
    ) -> List[Recommendation]:
        """
        Recommandations pour un type d'incident.

        Returns:
            Liste triée par priorité (toutes catégories) ou liste d'une catégorie
        """
        pass

    @abstractmethod
    def get_next_step(self, step: IncidentStep) -> Optional[IncidentStep]:
        pass

    @abstractmethod
    def get_previous_step(self, step: IncidentStep) -> Optional[IncidentStep]:
        pass
