"""Typed attribute access for building scan conditions.

This module provides the AttributePath and ScanField classes that enable
attribute access via attr(Model).field_name patterns. Comparing a ScanField
produces a ScanCondition, so filters can be written against the entity type
instead of raw attribute name strings.

Example:
    class Widget(BaseModel):
        id: str
        color: str
        size: int

    store.search_items([attr(Widget).color == "red", attr(Widget).size > 3])

"""

import dataclasses
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from dynastore.conditions import ScanCondition, ScanOperator

ItemT = TypeVar("ItemT")


class ScanField:
    """A reference to one stored attribute, used to build scan conditions."""

    __hash__ = None  # type: ignore[assignment]

    def __init__(self, path: str) -> None:
        self.path = path

    def __eq__(self, value: object) -> ScanCondition:  # type: ignore[override]
        return ScanCondition(self.path, ScanOperator.EQ, value)

    def __ne__(self, value: object) -> ScanCondition:  # type: ignore[override]
        return ScanCondition(self.path, ScanOperator.NE, value)

    def __lt__(self, value: Any) -> ScanCondition:
        return ScanCondition(self.path, ScanOperator.LT, value)

    def __le__(self, value: Any) -> ScanCondition:
        return ScanCondition(self.path, ScanOperator.LE, value)

    def __gt__(self, value: Any) -> ScanCondition:
        return ScanCondition(self.path, ScanOperator.GT, value)

    def __ge__(self, value: Any) -> ScanCondition:
        return ScanCondition(self.path, ScanOperator.GE, value)

    def between(self, low: Any, high: Any) -> ScanCondition:
        return ScanCondition(self.path, ScanOperator.BETWEEN, low, high)

    def is_in(self, *values: Any) -> ScanCondition:
        return ScanCondition(self.path, ScanOperator.IN, *values)

    def begins_with(self, prefix: str) -> ScanCondition:
        return ScanCondition(self.path, ScanOperator.BEGINS_WITH, prefix)

    def contains(self, value: Any) -> ScanCondition:
        return ScanCondition(self.path, ScanOperator.CONTAINS, value)

    def not_contains(self, value: Any) -> ScanCondition:
        return ScanCondition(self.path, ScanOperator.NOT_CONTAINS, value)

    def exists(self) -> ScanCondition:
        return ScanCondition(self.path, ScanOperator.IS_NOT_NULL)

    def not_exists(self) -> ScanCondition:
        return ScanCondition(self.path, ScanOperator.IS_NULL)

    def __repr__(self) -> str:
        return f"ScanField({self.path!r})"


def stored_field_names(item_type: type[Any]) -> dict[str, str] | None:
    """Map field names of an entity type to the attribute names they are stored under.

    Pydantic models store a field under its alias when one is declared.
    Returns None for types whose fields cannot be introspected.
    """
    if isinstance(item_type, type) and issubclass(item_type, BaseModel):
        return {
            name: info.alias or name
            for name, info in item_type.model_fields.items()
        }
    if dataclasses.is_dataclass(item_type):
        return {field.name: field.name for field in dataclasses.fields(item_type)}
    return None


class AttributePath(Generic[ItemT]):
    """Provides attribute access for building scan conditions.

    When accessed via attr(Model).field_name, returns a ScanField for the
    attribute the field is stored under.

    Example:
        attr(Widget).color
        Returns ScanField('color').

        attr(Widget).colour
        Raises AttributeError: 'Widget' has no field 'colour'

    """

    _item_type: type[ItemT]

    def __init__(self, item_type: type[ItemT]) -> None:
        object.__setattr__(self, "_item_type", item_type)

    def __getattr__(self, name: str) -> ScanField:
        item_type: type[Any] = object.__getattribute__(self, "_item_type")

        if name.startswith("_"):
            raise AttributeError(f"Cannot access private attribute '{name}'")

        fields = stored_field_names(item_type)
        if fields is None:
            return ScanField(name)
        if name not in fields:
            raise AttributeError(f"'{item_type.__name__}' has no field '{name}'")
        return ScanField(fields[name])

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("AttributePath is read-only")

    def __repr__(self) -> str:
        item_type = object.__getattribute__(self, "_item_type")
        return f"AttributePath({item_type.__name__})"


def attr(item_type: type[ItemT]) -> AttributePath[ItemT]:
    """Return an AttributePath for building scan conditions on item_type."""
    return AttributePath(item_type)


__all__ = [
    "AttributePath",
    "ScanField",
    "attr",
    "stored_field_names",
]
