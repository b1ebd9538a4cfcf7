"""
Enrichissement - Interfaces

Contrats du service optionnel d'enrichissement des recommandations par
un générateur de texte externe.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple

from src.classification.interfaces import Recommendation


@dataclass(frozen=True)
class IncidentContext:
    """Contexte d'incident transmis au générateur."""

    incident_type: str
    severity: str
    indicators: Tuple[Any, ...] = field(default_factory=tuple)
    affected_users: int = 1


@dataclass(frozen=True)
class EnhancedRecommendation:
    """
    Recommandation éventuellement enrichie.

    enhanced vaut False quand la recommandation de base est retournée
    telle quelle (service indisponible, timeout, réponse illisible).
    """

    recommendation: Recommendation
    detailed_explanation: Optional[str] = None
    implementation_steps: Tuple[str, ...] = field(default_factory=tuple)
    estimated_time: Optional[str] = None
    enhanced: bool = False


class ITextGenerator(ABC):
    """Générateur de texte externe (modèle de langage, service HTTP...)."""

    @abstractmethod
    async def generate(self, prompt: str, system_prompt: str) -> str:
        """
        Génère une réponse textuelle.

        Args:
            prompt: Requête utilisateur
            system_prompt: Consignes système

        Returns:
            Texte généré (JSON attendu par l'enrichisseur)
        """
        pass


class IRecommendationEnhancer(ABC):
    """Interface de l'enrichisseur de recommandations."""

    @abstractmethod
    async def enhance(
        self,
        recommendations: Sequence[Recommendation],
        context: IncidentContext,
    ) -> List[EnhancedRecommendation]:
        """
        Enrichit chaque recommandation; ne lève jamais pour une panne
        du générateur.

        Returns:
            Une entrée par recommandation, dans le même ordre
        """
        pass
