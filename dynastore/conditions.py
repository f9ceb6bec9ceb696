"""Scan conditions and options.

A ScanCondition is a predicate (attribute name, comparison operator,
comparison values) applied to every item visited by a table scan. A list of
conditions is combined with a logical AND into a single boto3 filter
expression.

Example:
    from dynastore.conditions import ScanCondition, ScanOperator

    red = ScanCondition("color", ScanOperator.EQ, "red")
    small = ScanCondition("size", ScanOperator.BETWEEN, 1, 10)
    store.search_items([red, small])

"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from functools import reduce
from operator import and_
from typing import Any

from boto3.dynamodb.conditions import Attr, ConditionBase

from dynastore.exceptions import InvalidScanConditionError
from dynastore.keys import to_dynamodb_value


class ScanOperator(str, Enum):
    """Comparison operators supported by scan conditions."""

    EQ = "EQ"
    NE = "NE"
    LT = "LT"
    LE = "LE"
    GT = "GT"
    GE = "GE"
    BETWEEN = "BETWEEN"
    IN = "IN"
    BEGINS_WITH = "BEGINS_WITH"
    CONTAINS = "CONTAINS"
    NOT_CONTAINS = "NOT_CONTAINS"
    IS_NULL = "IS_NULL"
    IS_NOT_NULL = "IS_NOT_NULL"


_NO_VALUES = frozenset({ScanOperator.IS_NULL, ScanOperator.IS_NOT_NULL})


def _check_arity(op: ScanOperator, count: int) -> None:
    if op in _NO_VALUES:
        if count != 0:
            raise InvalidScanConditionError(operator=op.value, expected="no values", count=count)
    elif op is ScanOperator.BETWEEN:
        if count != 2:
            raise InvalidScanConditionError(
                operator=op.value, expected="exactly 2 values", count=count
            )
    elif op is ScanOperator.IN:
        if count < 1:
            raise InvalidScanConditionError(
                operator=op.value, expected="at least 1 value", count=count
            )
    elif count != 1:
        raise InvalidScanConditionError(operator=op.value, expected="exactly 1 value", count=count)


@dataclass(frozen=True, init=False)
class ScanCondition:
    """A single filter predicate for a table scan.

    Attributes:
        attribute: The attribute name the predicate applies to.
        operator: The comparison operator.
        values: The comparison values; their number depends on the operator.

    Raises:
        InvalidScanConditionError: If the number of values does not match the
            operator (BETWEEN takes 2, IN at least 1, IS_NULL/IS_NOT_NULL none,
            every other operator exactly 1).

    """

    attribute: str
    operator: ScanOperator
    values: tuple[Any, ...]

    def __init__(self, attribute: str, operator: ScanOperator | str, *values: Any) -> None:
        op = ScanOperator(operator)
        _check_arity(op, len(values))
        object.__setattr__(self, "attribute", attribute)
        object.__setattr__(self, "operator", op)
        object.__setattr__(self, "values", values)

    def to_expression(self) -> ConditionBase:
        """Translate this condition into a boto3 condition expression."""
        attr = Attr(self.attribute)
        values = [to_dynamodb_value(v) for v in self.values]

        match self.operator:
            case ScanOperator.EQ:
                return attr.eq(values[0])
            case ScanOperator.NE:
                return attr.ne(values[0])
            case ScanOperator.LT:
                return attr.lt(values[0])
            case ScanOperator.LE:
                return attr.lte(values[0])
            case ScanOperator.GT:
                return attr.gt(values[0])
            case ScanOperator.GE:
                return attr.gte(values[0])
            case ScanOperator.BETWEEN:
                return attr.between(values[0], values[1])
            case ScanOperator.IN:
                return attr.is_in(values)
            case ScanOperator.BEGINS_WITH:
                return attr.begins_with(values[0])
            case ScanOperator.CONTAINS:
                return attr.contains(values[0])
            case ScanOperator.NOT_CONTAINS:
                return ~attr.contains(values[0])
            case ScanOperator.IS_NULL:
                return attr.not_exists()
            case ScanOperator.IS_NOT_NULL:
                return attr.exists()


def build_filter_expression(conditions: Iterable[ScanCondition]) -> ConditionBase | None:
    """Combine conditions with a logical AND.

    Returns:
        The combined boto3 condition, or None when no conditions are given.

    """
    expressions = [condition.to_expression() for condition in conditions]
    if not expressions:
        return None
    return reduce(and_, expressions)


@dataclass(frozen=True)
class ScanOptions:
    """Backend options for scan-based reads.

    Attributes:
        limit: Maximum number of entities to return. Scanning stops once this
            many matching entities were collected.
        projection: Attribute names to fetch. The table's key attributes are
            always included. Fetched attributes are validated; fields that
            were not fetched take their declared default or are left unset
            on the returned (partial) entities.
        index_name: Scan a secondary index instead of the base table.
        consistent_read: Use strongly consistent reads for the scan.
        page_size: Number of items DynamoDB evaluates per scan request.

    """

    limit: int | None = None
    projection: Sequence[str] | None = None
    index_name: str | None = None
    consistent_read: bool = False
    page_size: int | None = None


__all__ = [
    "ScanCondition",
    "ScanOperator",
    "ScanOptions",
    "build_filter_expression",
]
