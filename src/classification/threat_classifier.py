"""
Classification - Threat Classifier

Classifieur déclaratif: confronte des indicateurs typés à la table des
patterns d'attaque et fournit les recommandations priorisées.

Sélection:
    - pour chaque pattern, indicateurs dont le prédicat est satisfait
    - moyenne des confiances des indicateurs retenus
    - candidat si au moins un indicateur retenu et moyenne >= seuil
    - meilleure moyenne; à égalité, premier pattern de la table
"""

from typing import Dict, List, Optional, Sequence, Tuple

from src.classification.interfaces import (
    AttackPatternDefinition,
    Classification,
    IThreatClassifier,
    Indicator,
    Recommendation,
    RecommendationCategory,
)
from src.classification.predicates import evaluate
from src.classification.rule_table import (
    RecommendationTable,
    load_default_attack_patterns,
    load_default_recommendations,
)
from src.workflow.interfaces import IncidentStep, StepLike
from src.workflow.workflow_controller import WorkflowController


FALLBACK_RECOMMENDATIONS: Tuple[Recommendation, ...] = (
    Recommendation(
        action="investigate_further",
        reason="Unable to classify incident automatically",
        citation="NIST SP 800-61r2 - Initial Assessment",
        priority=1,
        category=RecommendationCategory.IMMEDIATE,
    ),
    Recommendation(
        action="collect_additional_data",
        reason="More information needed for classification",
        citation="SANS Incident Response Process",
        priority=2,
        category=RecommendationCategory.IMMEDIATE,
    ),
    Recommendation(
        action="escalate_to_senior_analyst",
        reason="Unknown attack pattern detected",
        citation="Internal Escalation Procedures",
        priority=3,
        category=RecommendationCategory.FOLLOW_UP,
    ),
)


class ThreatClassifier(IThreatClassifier):
    """
    Classifieur de menaces sur tables de règles.

    Les tables sont chargées une fois à la construction et ne sont
    plus modifiées: classify est pure et sans verrou.

    Example:
        classifier = ThreatClassifier()
        result = classifier.classify([
            Indicator("unique_ips", 15, 0.9),
            Indicator("distributed_attempts", True, 0.9),
        ])
        result.type  # "credential_stuffing"
    """

    def __init__(
        self,
        definitions: Optional[Sequence[AttackPatternDefinition]] = None,
        recommendations: Optional[RecommendationTable] = None,
        controller: Optional[WorkflowController] = None,
    ) -> None:
        """
        Args:
            definitions: Patterns d'attaque (défaut: table embarquée)
            recommendations: Table de recommandations (défaut: table embarquée)
            controller: Séquence d'étapes (défaut: WorkflowController)
        """
        self._definitions: Tuple[AttackPatternDefinition, ...] = tuple(
            definitions if definitions is not None else load_default_attack_patterns()
        )
        self._recommendations: RecommendationTable = (
            recommendations if recommendations is not None else load_default_recommendations()
        )
        self._controller = controller or WorkflowController()
        self._by_name: Dict[str, AttackPatternDefinition] = {d.name: d for d in self._definitions}

    @property
    def definitions(self) -> Tuple[AttackPatternDefinition, ...]:
        return self._definitions

    def get_definition(self, name: str) -> Optional[AttackPatternDefinition]:
        return self._by_name.get(name)

    def known_incident_types(self) -> List[str]:
        """Types d'incident disposant de recommandations dédiées."""
        return list(self._recommendations.keys())

    def classify(self, indicators: Sequence[Indicator]) -> Optional[Classification]:
        candidates: List[Tuple[float, int, Classification]] = []

        for position, definition in enumerate(self._definitions):
            matched = [
                indicator
                for indicator in indicators
                if indicator.type in definition.predicates
                and evaluate(definition.predicates[indicator.type], indicator.value)
            ]
            if not matched:
                continue

            average = sum(i.confidence for i in matched) / len(matched)
            if average < definition.confidence_threshold:
                continue

            candidates.append(
                (
                    -average,
                    position,
                    Classification(
                        type=definition.name,
                        confidence=average,
                        severity=definition.severity,
                        indicators=tuple(matched),
                    ),
                )
            )

        if not candidates:
            return None

        # Confiance décroissante puis position dans la table
        candidates.sort(key=lambda c: (c[0], c[1]))
        return candidates[0][2]

    def get_recommendations(
        self,
        incident_type: str,
        category: Optional[RecommendationCategory] = None,
    ) -> List[Recommendation]:
        table = self._recommendations.get(incident_type)
        if table is None:
            return list(FALLBACK_RECOMMENDATIONS)

        if category is not None:
            return list(table.get(category, ()))

        combined: List[Recommendation] = []
        for cat in RecommendationCategory:
            combined.extend(table.get(cat, ()))
        return sorted(combined, key=lambda r: r.priority)

    def get_next_step(self, step: StepLike) -> Optional[IncidentStep]:
        return self._controller.get_next_step(step)

    def get_previous_step(self, step: StepLike) -> Optional[IncidentStep]:
        return self._controller.get_previous_step(step)
