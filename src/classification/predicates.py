"""
Classification - Predicates

Évaluation des prédicats d'indicateurs (opérateur + opérande).

Une incompatibilité de types donne False, jamais d'exception:
    - comparaisons numériques: nombres non booléens uniquement
    - eq/ne contre un booléen: valeur booléenne exigée
"""

from numbers import Real
from typing import Any

from src.classification.interfaces import IndicatorPredicate, PredicateOperator


_NUMERIC_OPERATORS = {
    PredicateOperator.GT,
    PredicateOperator.GTE,
    PredicateOperator.LT,
    PredicateOperator.LTE,
}


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def evaluate(predicate: IndicatorPredicate, value: Any) -> bool:
    """
    Évalue un prédicat contre la valeur d'un indicateur.

    Args:
        predicate: Opérateur et opérande
        value: Valeur observée

    Returns:
        True si la valeur satisfait le prédicat
    """
    operator = predicate.operator
    operand = predicate.operand

    if operator in _NUMERIC_OPERATORS:
        if not (_is_number(value) and _is_number(operand)):
            return False
        if operator is PredicateOperator.GT:
            return value > operand
        if operator is PredicateOperator.GTE:
            return value >= operand
        if operator is PredicateOperator.LT:
            return value < operand
        return value <= operand

    if operator in (PredicateOperator.EQ, PredicateOperator.NE):
        if isinstance(operand, bool) and not isinstance(value, bool):
            return False
        if isinstance(value, bool) and not isinstance(operand, bool):
            return False
        equal = value == operand
        return equal if operator is PredicateOperator.EQ else not equal

    if operator is PredicateOperator.IN:
        if not isinstance(operand, (list, tuple, set, frozenset)):
            return False
        try:
            return value in operand
        except TypeError:
            # valeur non hashable contre un set
            return False

    return False
