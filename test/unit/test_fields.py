"""Tests for AttributePath and ScanField."""

from dataclasses import dataclass

import pytest
from pydantic import BaseModel, Field

from dynastore.conditions import ScanCondition, ScanOperator
from dynastore.fields import AttributePath, ScanField, attr, stored_field_names


class User(BaseModel):
    id: str
    name: str
    age: int = 0
    tags: list[str] = Field(default_factory=list)


@dataclass
class Point:
    x: int
    y: int


class TestAttributePathPrivateAttributeAccess:
    """Test that private attribute access raises AttributeError."""

    def test_private_attribute_raises_error(self) -> None:
        with pytest.raises(AttributeError) as exc_info:
            _ = attr(User)._private

        assert "private" in str(exc_info.value)
        assert "_private" in str(exc_info.value)

    def test_dunder_attribute_raises_error(self) -> None:
        with pytest.raises(AttributeError) as exc_info:
            _ = attr(User).__something__

        assert "private" in str(exc_info.value)


class TestAttributePathNonExistentField:
    """Test that non-existent field access raises AttributeError."""

    def test_nonexistent_field_raises_error(self) -> None:
        with pytest.raises(AttributeError) as exc_info:
            _ = attr(User).nonexistent_field

        assert "User" in str(exc_info.value)
        assert "nonexistent_field" in str(exc_info.value)

    def test_dataclass_fields_are_checked(self) -> None:
        assert attr(Point).x.path == "x"
        with pytest.raises(AttributeError):
            _ = attr(Point).z

    def test_uninspectable_type_accepts_any_name(self) -> None:
        assert attr(dict).anything.path == "anything"


class TestAttributePathAliasResolution:
    """Test that field aliases are used as attribute names."""

    def test_field_with_alias_uses_alias(self) -> None:
        class Item(BaseModel):
            pk: str = Field(alias="PK")
            sort_key: str = Field(alias="SK")
            title: str

        assert attr(Item).pk.path == "PK"
        assert attr(Item).sort_key.path == "SK"
        assert attr(Item).title.path == "title"

    def test_stored_field_names(self) -> None:
        class Item(BaseModel):
            pk: str = Field(alias="PK")
            title: str

        assert stored_field_names(Item) == {"pk": "PK", "title": "title"}
        assert stored_field_names(Point) == {"x": "x", "y": "y"}
        assert stored_field_names(dict) is None


class TestAttributePathReadOnly:
    """Test that AttributePath cannot be mutated."""

    def test_setattr_raises_error(self) -> None:
        path = attr(User)
        with pytest.raises(AttributeError, match="read-only"):
            path.name = "x"  # type: ignore[misc]

    def test_repr(self) -> None:
        assert repr(attr(User)) == "AttributePath(User)"
        assert isinstance(attr(User), AttributePath)


class TestScanFieldConditions:
    """Test that ScanField operators build ScanConditions."""

    def test_comparison_operators(self) -> None:
        name = attr(User).name
        age = attr(User).age

        assert isinstance(name, ScanField)
        assert (name == "alice") == ScanCondition("name", ScanOperator.EQ, "alice")
        assert (name != "alice") == ScanCondition("name", ScanOperator.NE, "alice")
        assert (age < 18) == ScanCondition("age", ScanOperator.LT, 18)
        assert (age <= 18) == ScanCondition("age", ScanOperator.LE, 18)
        assert (age > 18) == ScanCondition("age", ScanOperator.GT, 18)
        assert (age >= 18) == ScanCondition("age", ScanOperator.GE, 18)

    def test_methods(self) -> None:
        fields = attr(User)

        assert fields.age.between(18, 65) == ScanCondition("age", ScanOperator.BETWEEN, 18, 65)
        assert fields.name.is_in("a", "b") == ScanCondition("name", ScanOperator.IN, "a", "b")
        assert fields.name.begins_with("al") == ScanCondition(
            "name", ScanOperator.BEGINS_WITH, "al"
        )
        assert fields.tags.contains("x") == ScanCondition("tags", ScanOperator.CONTAINS, "x")
        assert fields.tags.not_contains("x") == ScanCondition(
            "tags", ScanOperator.NOT_CONTAINS, "x"
        )
        assert fields.name.exists() == ScanCondition("name", ScanOperator.IS_NOT_NULL)
        assert fields.name.not_exists() == ScanCondition("name", ScanOperator.IS_NULL)

    def test_scan_field_is_unhashable(self) -> None:
        with pytest.raises(TypeError):
            hash(attr(User).name)
