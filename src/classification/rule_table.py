"""
Classification - Rule Table

Chargement des tables de règles YAML (patterns d'attaque et
recommandations) en dataclasses immuables.

Les tables sont validées par RuleTableValidator avant parsing: une
table invalide lève RuleTableError avec toutes les erreurs trouvées.
"""

from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Tuple, Union

import yaml

from src.classification.interfaces import (
    AttackPatternDefinition,
    IncidentSeverity,
    IndicatorPredicate,
    PredicateOperator,
    Recommendation,
    RecommendationCategory,
)
from src.core.config_validator import RuleTableValidator


RULES_DIR = Path(__file__).parent / "rules"
DEFAULT_ATTACK_PATTERNS_PATH = RULES_DIR / "attack_patterns.yaml"
DEFAULT_RECOMMENDATIONS_PATH = RULES_DIR / "recommendations.yaml"

RecommendationTable = Dict[str, Dict[RecommendationCategory, Tuple[Recommendation, ...]]]


class RuleTableError(Exception):
    """Table de règles absente, illisible ou invalide."""

    pass


def _read_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    rule_file = Path(path)
    if not rule_file.exists():
        raise RuleTableError(f"Table de règles non trouvée: {rule_file}")

    try:
        with open(rule_file, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise RuleTableError(f"Erreur de parsing YAML ({rule_file}): {e}")

    if not isinstance(raw, dict):
        raise RuleTableError(f"Table de règles doit être un objet YAML: {rule_file}")
    return raw


def _check(raw: Dict[str, Any]) -> None:
    result = RuleTableValidator().validate(raw)
    if not result.valid:
        details = "; ".join(f"{e.location}: {e.message}" for e in result.errors)
        raise RuleTableError(f"Table de règles invalide: {details}")


def parse_attack_patterns(raw: Dict[str, Any]) -> Tuple[AttackPatternDefinition, ...]:
    """
    Convertit la section attack_patterns en définitions, dans l'ordre.

    Args:
        raw: Contenu YAML ({"attack_patterns": [...]})

    Returns:
        Définitions dans l'ordre de la table

    Raises:
        RuleTableError: Structure invalide
    """
    patterns = raw.get("attack_patterns")
    if not isinstance(patterns, list):
        raise RuleTableError("Section 'attack_patterns' manquante ou invalide")
    _check({"attack_patterns": patterns})

    definitions: List[AttackPatternDefinition] = []
    seen = set()
    for entry in patterns:
        if not isinstance(entry, dict):
            raise RuleTableError(f"Pattern invalide: {entry!r}")
        name = entry.get("name")
        if not name:
            raise RuleTableError("Pattern sans nom")
        if name in seen:
            raise RuleTableError(f"Pattern en double: {name}")
        seen.add(name)

        predicates = {
            indicator_type: IndicatorPredicate(
                operator=PredicateOperator(rule["op"]),
                operand=rule.get("value"),
            )
            for indicator_type, rule in entry["indicators"].items()
        }
        definitions.append(
            AttackPatternDefinition(
                name=name,
                display_name=entry.get("display_name", name),
                predicates=MappingProxyType(predicates),
                confidence_threshold=float(entry["confidence_threshold"]),
                severity=IncidentSeverity(entry["severity"]),
                external_reference_id=entry.get("external_reference_id"),
            )
        )
    return tuple(definitions)


def parse_recommendations(raw: Dict[str, Any]) -> RecommendationTable:
    """
    Convertit la section recommendations en table par type et catégorie.

    Chaque type expose les trois catégories (tuples vides si absentes).

    Raises:
        RuleTableError: Structure invalide
    """
    recommendations = raw.get("recommendations")
    if not isinstance(recommendations, dict):
        raise RuleTableError("Section 'recommendations' manquante ou invalide")
    _check({"recommendations": recommendations})

    table: RecommendationTable = {}
    for incident_type, categories in recommendations.items():
        if not isinstance(categories, dict):
            raise RuleTableError(f"Recommandations invalides pour {incident_type}")

        by_category: Dict[RecommendationCategory, Tuple[Recommendation, ...]] = {}
        for category in RecommendationCategory:
            entries = categories.get(category.value) or []
            try:
                by_category[category] = tuple(
                    Recommendation(
                        action=e["action"],
                        reason=e.get("reason", ""),
                        citation=e.get("citation", ""),
                        priority=int(e["priority"]),
                        category=category,
                    )
                    for e in entries
                )
            except (KeyError, TypeError, ValueError) as e:
                raise RuleTableError(
                    f"Recommandation invalide pour {incident_type}/{category.value}: {e}"
                )
        table[incident_type] = by_category
    return table


def load_attack_patterns(path: Union[str, Path]) -> Tuple[AttackPatternDefinition, ...]:
    """Charge les patterns d'attaque depuis un fichier YAML."""
    return parse_attack_patterns(_read_yaml(path))


def load_recommendations(path: Union[str, Path]) -> RecommendationTable:
    """Charge les recommandations depuis un fichier YAML."""
    return parse_recommendations(_read_yaml(path))


def load_default_attack_patterns() -> Tuple[AttackPatternDefinition, ...]:
    return load_attack_patterns(DEFAULT_ATTACK_PATTERNS_PATH)


def load_default_recommendations() -> RecommendationTable:
    return load_recommendations(DEFAULT_RECOMMENDATIONS_PATH)
