"""
Classification des menaces

- Indicateurs typés confrontés à une table de patterns (YAML)
- Prédicats en données: opérateur + opérande
- Recommandations priorisées par type d'incident
"""

from .interfaces import (
    # Enums
    IncidentSeverity,
    PredicateOperator,
    RecommendationCategory,
    # Data classes
    Indicator,
    IndicatorPredicate,
    AttackPatternDefinition,
    Classification,
    Recommendation,
    # Interfaces
    IThreatClassifier,
)
from .predicates import evaluate
from .rule_table import (
    RuleTableError,
    parse_attack_patterns,
    parse_recommendations,
    load_attack_patterns,
    load_recommendations,
    load_default_attack_patterns,
    load_default_recommendations,
)
from .threat_classifier import ThreatClassifier, FALLBACK_RECOMMENDATIONS

__all__ = [
    # Enums
    "IncidentSeverity",
    "PredicateOperator",
    "RecommendationCategory",
    # Data classes
    "Indicator",
    "IndicatorPredicate",
    "AttackPatternDefinition",
    "Classification",
    "Recommendation",
    # Interfaces
    "IThreatClassifier",
    # Implementations
    "ThreatClassifier",
    "evaluate",
    "parse_attack_patterns",
    "parse_recommendations",
    "load_attack_patterns",
    "load_recommendations",
    "load_default_attack_patterns",
    "load_default_recommendations",
    "FALLBACK_RECOMMENDATIONS",
    # Exceptions
    "RuleTableError",
]
