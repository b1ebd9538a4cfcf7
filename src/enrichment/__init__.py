"""
Enrichissement des recommandations (optionnel)

Dégradation systématique vers les recommandations de base en cas de
panne, timeout ou réponse illisible du générateur.
"""

from .interfaces import (
    # Data classes
    IncidentContext,
    EnhancedRecommendation,
    # Interfaces
    ITextGenerator,
    IRecommendationEnhancer,
)
from .recommendation_enhancer import (
    RecommendationEnhancer,
    EnhancementParseError,
    SYSTEM_PROMPT,
)

__all__ = [
    # Data classes
    "IncidentContext",
    "EnhancedRecommendation",
    # Interfaces
    "ITextGenerator",
    "IRecommendationEnhancer",
    # Implementations
    "RecommendationEnhancer",
    "SYSTEM_PROMPT",
    # Exceptions
    "EnhancementParseError",
]
