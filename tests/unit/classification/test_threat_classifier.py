"""
Tests unitaires pour ThreatClassifier

- Classification par confiance moyenne des indicateurs retenus
- Départage explicite par position dans la table
- Recommandations priorisées et repli générique
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from src.classification import (
    AttackPatternDefinition,
    Classification,
    FALLBACK_RECOMMENDATIONS,
    IThreatClassifier,
    Indicator,
    IncidentSeverity,
    IndicatorPredicate,
    PredicateOperator,
    RecommendationCategory,
    ThreatClassifier,
)
from src.workflow.interfaces import IncidentStep


@pytest.fixture(scope="module")
def classifier() -> ThreatClassifier:
    return ThreatClassifier()


def definition(name: str, threshold: float = 0.5, **predicates) -> AttackPatternDefinition:
    return AttackPatternDefinition(
        name=name,
        display_name=name.title(),
        predicates={
            key: IndicatorPredicate(PredicateOperator(op), value)
            for key, (op, value) in predicates.items()
        },
        confidence_threshold=threshold,
        severity=IncidentSeverity.MEDIUM,
    )


# ════════════════════════════════════════════════════════════
# INDICATEURS
# ════════════════════════════════════════════════════════════


class TestIndicator:
    def test_default_confidence(self) -> None:
        assert Indicator("failed_logins", 3).confidence == 0.5

    def test_none_confidence_defaults(self) -> None:
        assert Indicator("failed_logins", 3, None).confidence == 0.5

    def test_zero_confidence_kept(self) -> None:
        assert Indicator("failed_logins", 3, 0.0).confidence == 0.0

    @pytest.mark.parametrize("confidence", [-0.1, 1.01])
    def test_out_of_range_confidence(self, confidence: float) -> None:
        with pytest.raises(ValueError):
            Indicator("failed_logins", 3, confidence)

    def test_definition_threshold_validated(self) -> None:
        with pytest.raises(ValueError):
            definition("broken", threshold=0)


# ════════════════════════════════════════════════════════════
# CLASSIFICATION
# ════════════════════════════════════════════════════════════


class TestClassify:
    """Tests de classify sur la table embarquée."""

    def test_implements_interface(self, classifier) -> None:
        assert isinstance(classifier, IThreatClassifier)

    def test_credential_stuffing(self, classifier) -> None:
        result = classifier.classify([
            Indicator("unique_ips", 15, 0.9),
            Indicator("distributed_attempts", True, 0.9),
        ])

        assert isinstance(result, Classification)
        assert result.type == "credential_stuffing"
        assert result.confidence == pytest.approx(0.9)
        assert result.severity == IncidentSeverity.CRITICAL
        assert [i.type for i in result.indicators] == ["unique_ips", "distributed_attempts"]

    def test_classify_is_pure(self, classifier) -> None:
        """Même entrée, même sortie, y compris depuis plusieurs threads."""
        indicators = [
            Indicator("unique_ips", 15, 0.9),
            Indicator("distributed_attempts", True, 0.9),
            Indicator("failed_logins", 40, 0.7),
        ]
        expected = classifier.classify(indicators)

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: classifier.classify(list(indicators)), range(64)))

        assert classifier.classify(indicators) == expected
        assert all(result == expected for result in results)
        assert [i.type for i in indicators] == ["unique_ips", "distributed_attempts", "failed_logins"]

    def test_no_matching_predicate(self, classifier) -> None:
        assert classifier.classify([Indicator("failed_logins", 3, 0.9)]) is None

    def test_empty_indicators(self, classifier) -> None:
        assert classifier.classify([]) is None

    def test_below_threshold(self, classifier) -> None:
        """25 échecs mais confiance 0.5 < seuils 0.75 et 0.85."""
        assert classifier.classify([Indicator("failed_logins", 25, 0.5)]) is None

    def test_average_at_threshold_accepted(self, classifier) -> None:
        result = classifier.classify([Indicator("failed_logins", 11, 0.75)])

        assert result.type == "password_spray"

    def test_tie_resolved_by_table_order(self, classifier) -> None:
        """password_spray (1 indicateur) et credential_stuffing (2) à 0.9."""
        result = classifier.classify([
            Indicator("failed_logins", 25, 0.9),
            Indicator("unique_ips", 15, 0.9),
        ])

        assert result.type == "password_spray"
        assert [i.type for i in result.indicators] == ["failed_logins"]

    def test_highest_average_wins(self, classifier) -> None:
        result = classifier.classify([
            Indicator("failed_logins", 25, 0.8),
            Indicator("unique_ips", 15, 1.0),
        ])

        assert result.type == "credential_stuffing"
        assert result.confidence == pytest.approx(0.9)

    def test_travel_tie(self, classifier) -> None:
        result = classifier.classify([
            Indicator("impossible_travel", True, 0.8),
            Indicator("vpn_detected", False, 0.8),
        ])

        assert result.type == "suspicious_travel"
        assert result.severity == IncidentSeverity.MEDIUM

    def test_legitimate_travel(self, classifier) -> None:
        """suspicious_travel ne retient que impossible_travel (0.9)."""
        result = classifier.classify([
            Indicator("impossible_travel", True, 0.9),
            Indicator("vpn_detected", True, 0.9),
            Indicator("user_confirmed", True, 1.0),
        ])

        assert result.type == "false_positive_travel"
        assert result.severity == IncidentSeverity.LOW

    def test_type_mismatch_does_not_match(self, classifier) -> None:
        """Une chaîne n'est pas comparée numériquement."""
        assert classifier.classify([Indicator("failed_logins", "25", 1.0)]) is None

    def test_custom_definitions(self) -> None:
        classifier = ThreatClassifier(
            definitions=[
                definition("first", failed_logins=("gte", 5)),
                definition("second", failed_logins=("gte", 3), unique_ips=("eq", 1)),
            ],
            recommendations={},
        )

        result = classifier.classify([
            Indicator("failed_logins", 5, 0.6),
            Indicator("unique_ips", 1, 1.0),
        ])

        assert result.type == "second"
        assert result.confidence == pytest.approx(0.8)

    def test_definition_lookup(self, classifier) -> None:
        assert classifier.get_definition("mfa_fatigue").external_reference_id == "T1621"
        assert classifier.get_definition("unknown") is None
        assert len(classifier.definitions) == 5


# ════════════════════════════════════════════════════════════
# RECOMMANDATIONS
# ════════════════════════════════════════════════════════════


class TestRecommendations:
    """Tests de get_recommendations."""

    def test_all_categories_sorted_by_priority(self, classifier) -> None:
        recommendations = classifier.get_recommendations("password_spray")

        assert [r.priority for r in recommendations] == [1, 2, 3, 4, 5, 6]
        assert recommendations[0].action == "reset_all_passwords"
        assert recommendations[-1].category == RecommendationCategory.OPTIONAL

    def test_filter_by_category(self, classifier) -> None:
        follow_up = classifier.get_recommendations("password_spray", RecommendationCategory.FOLLOW_UP)

        assert [r.action for r in follow_up] == ["enforce_mfa", "implement_account_lockout"]

    def test_brute_force_attack(self, classifier) -> None:
        actions = [r.action for r in classifier.get_recommendations("brute_force_attack")]

        assert actions == [
            "block_source_ips",
            "disable_user_account",
            "revoke_user_tokens",
            "implement_captcha",
            "reset_user_mfa",
        ]

    def test_empty_category(self, classifier) -> None:
        assert classifier.get_recommendations("suspicious_login_activity", RecommendationCategory.OPTIONAL) == []

    def test_unknown_type_falls_back(self, classifier) -> None:
        recommendations = classifier.get_recommendations("alien_invasion")

        assert [r.action for r in recommendations] == [
            "investigate_further",
            "collect_additional_data",
            "escalate_to_senior_analyst",
        ]
        assert recommendations == list(FALLBACK_RECOMMENDATIONS)

    def test_unknown_type_ignores_category(self, classifier) -> None:
        recommendations = classifier.get_recommendations("alien_invasion", RecommendationCategory.OPTIONAL)

        assert len(recommendations) == 3

    def test_returned_list_is_a_copy(self, classifier) -> None:
        first = classifier.get_recommendations("alien_invasion")
        first.clear()

        assert len(classifier.get_recommendations("alien_invasion")) == 3

    def test_known_incident_types(self, classifier) -> None:
        assert "suspicious_login_activity" in classifier.known_incident_types()


# ════════════════════════════════════════════════════════════
# ÉTAPES
# ════════════════════════════════════════════════════════════


class TestStepNavigation:
    def test_next_step(self, classifier) -> None:
        assert classifier.get_next_step(IncidentStep.TRIGGER) == IncidentStep.CONFIRM
        assert classifier.get_next_step("contain") == IncidentStep.RECOVER
        assert classifier.get_next_step(IncidentStep.RECOVER) is None

    def test_previous_step(self, classifier) -> None:
        assert classifier.get_previous_step(IncidentStep.CLASSIFY) == IncidentStep.CONFIRM
        assert classifier.get_previous_step(IncidentStep.TRIGGER) is None
        assert classifier.get_previous_step("unknown") is None
