"""
Core - Rule Table Validator
Valide les tables de règles (patterns d'attaque, recommandations)
avant leur chargement par le classifieur.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from .interfaces import IRuleTableValidator, ValidationError, ValidationResult, ValidationSeverity

KNOWN_OPERATORS = {"gt", "gte", "lt", "lte", "eq", "ne", "in"}
KNOWN_SEVERITIES = {"low", "medium", "high", "critical"}
KNOWN_CATEGORIES = {"immediate", "follow_up", "optional"}


class RuleTableValidator(IRuleTableValidator):
    """Validation structurelle des tables de règles YAML."""

    def __init__(self) -> None:
        self._validators: Dict[str, Callable[[Dict[str, Any]], List[ValidationError]]] = {
            "PATTERN_ENTRY": self._validate_pattern_entries,
            "PATTERN_THRESHOLD": self._validate_thresholds,
            "PATTERN_OPERATOR": self._validate_operators,
            "PATTERN_SEVERITY": self._validate_severities,
            "RECO_ENTRY": self._validate_recommendation_entries,
            "RECO_CATEGORY": self._validate_categories,
            "RECO_PRIORITY": self._validate_priorities,
        }

    def validate(self, table: Dict[str, Any]) -> ValidationResult:
        """
        Valide une table contre toutes les règles.
        Retourne TOUTES les erreurs (pas fail-fast).
        """
        errors: List[ValidationError] = []
        warnings: List[ValidationError] = []

        for rule_id in self._validators:
            for error in self.validate_rule(rule_id, table):
                if error.severity == ValidationSeverity.BLOCKING:
                    errors.append(error)
                elif error.severity == ValidationSeverity.WARNING:
                    warnings.append(error)

        return ValidationResult(
            valid=len(errors) == 0,
            errors=errors,
            warnings=warnings,
            checked_at=datetime.now(timezone.utc),
        )

    def validate_rule(self, rule_id: str, table: Dict[str, Any]) -> List[ValidationError]:
        """Valide UNE règle spécifique."""
        if rule_id not in self._validators:
            return [
                ValidationError(
                    rule_id=rule_id,
                    message=f"Règle inconnue: {rule_id}",
                    location="table",
                )
            ]
        return self._validators[rule_id](table)

    def _patterns(self, table: Dict[str, Any]) -> List[Dict[str, Any]]:
        patterns = table.get("attack_patterns", [])
        return [p for p in patterns if isinstance(p, dict)] if isinstance(patterns, list) else []

    def _validate_pattern_entries(self, table: Dict[str, Any]) -> List[ValidationError]:
        """Chaque pattern est un mapping, ses indicateurs aussi."""
        errors: List[ValidationError] = []
        patterns = table.get("attack_patterns", [])
        if not isinstance(patterns, list):
            return [
                ValidationError(
                    rule_id="PATTERN_ENTRY",
                    message="attack_patterns doit être une liste",
                    location="attack_patterns",
                    value=type(patterns).__name__,
                )
            ]
        for index, pattern in enumerate(patterns):
            if not isinstance(pattern, dict):
                errors.append(
                    ValidationError(
                        rule_id="PATTERN_ENTRY",
                        message="Pattern invalide (mapping attendu)",
                        location=f"attack_patterns[{index}]",
                        value=str(pattern),
                    )
                )
            elif not isinstance(pattern.get("indicators") or {}, dict):
                errors.append(
                    ValidationError(
                        rule_id="PATTERN_ENTRY",
                        message="indicators doit être un mapping",
                        location=f"attack_patterns[{pattern.get('name', index)}].indicators",
                    )
                )
        return errors

    def _validate_thresholds(self, table: Dict[str, Any]) -> List[ValidationError]:
        """Seuil de confiance dans ]0, 1]."""
        errors: List[ValidationError] = []
        for pattern in self._patterns(table):
            name = pattern.get("name", "unknown")
            threshold = pattern.get("confidence_threshold")
            if not isinstance(threshold, (int, float)) or isinstance(threshold, bool) or not 0 < threshold <= 1:
                errors.append(
                    ValidationError(
                        rule_id="PATTERN_THRESHOLD",
                        message="confidence_threshold doit être dans ]0, 1]",
                        location=f"attack_patterns[{name}].confidence_threshold",
                        value=str(threshold),
                    )
                )
        return errors

    def _validate_operators(self, table: Dict[str, Any]) -> List[ValidationError]:
        """Opérateurs de prédicats connus, et au moins un prédicat."""
        errors: List[ValidationError] = []
        for pattern in self._patterns(table):
            name = pattern.get("name", "unknown")
            indicators = pattern.get("indicators") or {}
            if not isinstance(indicators, dict):
                continue
            if not indicators:
                errors.append(
                    ValidationError(
                        rule_id="PATTERN_OPERATOR",
                        message="Aucun prédicat d'indicateur défini",
                        location=f"attack_patterns[{name}].indicators",
                    )
                )
                continue
            for indicator_type, predicate in indicators.items():
                operator = predicate.get("op") if isinstance(predicate, dict) else None
                if operator not in KNOWN_OPERATORS:
                    errors.append(
                        ValidationError(
                            rule_id="PATTERN_OPERATOR",
                            message=f"Opérateur inconnu pour {indicator_type}",
                            location=f"attack_patterns[{name}].indicators.{indicator_type}",
                            value=str(operator),
                        )
                    )
        return errors

    def _validate_severities(self, table: Dict[str, Any]) -> List[ValidationError]:
        errors: List[ValidationError] = []
        for pattern in self._patterns(table):
            name = pattern.get("name", "unknown")
            severity = pattern.get("severity")
            if severity not in KNOWN_SEVERITIES:
                errors.append(
                    ValidationError(
                        rule_id="PATTERN_SEVERITY",
                        message="Sévérité inconnue",
                        location=f"attack_patterns[{name}].severity",
                        value=str(severity),
                    )
                )
        return errors

    def _validate_recommendation_entries(self, table: Dict[str, Any]) -> List[ValidationError]:
        """Chaque catégorie est une liste de mappings."""
        errors: List[ValidationError] = []
        for incident_type, categories in self._recommendations(table).items():
            for category, entries in categories.items():
                location = f"recommendations[{incident_type}].{category}"
                if entries is None:
                    continue
                if not isinstance(entries, list):
                    errors.append(
                        ValidationError(
                            rule_id="RECO_ENTRY",
                            message="Liste de recommandations attendue",
                            location=location,
                            value=str(entries),
                        )
                    )
                    continue
                for entry in entries:
                    if not isinstance(entry, dict):
                        errors.append(
                            ValidationError(
                                rule_id="RECO_ENTRY",
                                message="Recommandation invalide (mapping attendu)",
                                location=location,
                                value=str(entry),
                            )
                        )
        return errors

    def _validate_categories(self, table: Dict[str, Any]) -> List[ValidationError]:
        errors: List[ValidationError] = []
        for incident_type, categories in self._recommendations(table).items():
            for category in categories:
                if category not in KNOWN_CATEGORIES:
                    errors.append(
                        ValidationError(
                            rule_id="RECO_CATEGORY",
                            message="Catégorie de recommandation inconnue",
                            location=f"recommendations[{incident_type}]",
                            value=str(category),
                        )
                    )
        return errors

    def _validate_priorities(self, table: Dict[str, Any]) -> List[ValidationError]:
        """Priorités en double pour un même type: avertissement (ordre instable)."""
        warnings: List[ValidationError] = []
        for incident_type, categories in self._recommendations(table).items():
            seen: Dict[Any, Optional[str]] = {}
            for entries in categories.values():
                if not isinstance(entries, list):
                    continue
                for entry in entries:
                    if not isinstance(entry, dict):
                        continue
                    priority = entry.get("priority")
                    if priority in seen:
                        warnings.append(
                            ValidationError(
                                rule_id="RECO_PRIORITY",
                                message="Priorité dupliquée",
                                location=f"recommendations[{incident_type}]",
                                value=str(priority),
                                severity=ValidationSeverity.WARNING,
                            )
                        )
                    seen[priority] = entry.get("action")
        return warnings

    def _recommendations(self, table: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
        recommendations = table.get("recommendations", {})
        if not isinstance(recommendations, dict):
            return {}
        return {k: v for k, v in recommendations.items() if isinstance(v, dict)}
