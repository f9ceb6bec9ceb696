"""Table definitions and table lifecycle results.

A TableDefinition describes the physical table backing a store: its name,
provisioned throughput, and hash (plus optional range) key. The table
managers in sync_store and async_store consume it once, at provisioning
time.

Creating a table that already exists or deleting one that is absent is not
an error. Both return an explicit "nothing happened" result instead:

    result = manager.create_table(definition)
    if isinstance(result, TableAlreadyExists):
        ...

"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing_extensions import Self

from dynastore.exceptions import InvalidTableDefinitionError


class KeyType(str, Enum):
    HASH = "HASH"
    RANGE = "RANGE"


class AttributeType(str, Enum):
    STRING = "S"
    NUMBER = "N"
    BINARY = "B"


class KeySchemaElement(BaseModel):
    """One element of a table's key schema."""

    model_config = ConfigDict(frozen=True)

    attribute_name: str = Field(min_length=1)
    key_type: KeyType

    def to_request(self) -> dict[str, str]:
        return {"AttributeName": self.attribute_name, "KeyType": self.key_type.value}


class AttributeDefinition(BaseModel):
    """The scalar type of a key attribute."""

    model_config = ConfigDict(frozen=True)

    attribute_name: str = Field(min_length=1)
    attribute_type: AttributeType

    def to_request(self) -> dict[str, str]:
        return {"AttributeName": self.attribute_name, "AttributeType": self.attribute_type.value}


class TableDefinition(BaseModel):
    """Description of a physical DynamoDB table.

    The range key is optional, but its schema element and attribute
    definition must be given together. Every key element must name the same
    attribute as its definition and sit in the slot matching its key type.

    Attributes:
        table_name: The DynamoDB table name.
        read_capacity_units: Provisioned read throughput.
        write_capacity_units: Provisioned write throughput.
        hash_key_schema_element: The HASH element of the key schema.
        hash_attribute_definition: The type of the hash key attribute.
        range_key_schema_element: The RANGE element of the key schema, if any.
        range_attribute_definition: The type of the range key attribute, if any.

    Raises:
        InvalidTableDefinitionError: If the key invariants are violated.
        pydantic.ValidationError: If a field has an invalid value, such as a
            non-positive capacity.

    Example:
        definition = TableDefinition.for_keys("Widgets", hash_key="id")

    """

    model_config = ConfigDict(frozen=True)

    table_name: str = Field(min_length=3, max_length=255)
    read_capacity_units: int = Field(default=5, gt=0)
    write_capacity_units: int = Field(default=5, gt=0)
    hash_key_schema_element: KeySchemaElement
    hash_attribute_definition: AttributeDefinition
    range_key_schema_element: KeySchemaElement | None = None
    range_attribute_definition: AttributeDefinition | None = None

    @model_validator(mode="after")
    def _check_key_elements(self) -> Self:
        if self.hash_key_schema_element.key_type is not KeyType.HASH:
            raise InvalidTableDefinitionError(
                "hash key schema element must have key type HASH",
                table_name=self.table_name,
            )
        if (
            self.hash_key_schema_element.attribute_name
            != self.hash_attribute_definition.attribute_name
        ):
            raise InvalidTableDefinitionError(
                "hash key schema element and attribute definition name different attributes",
                table_name=self.table_name,
            )

        range_element = self.range_key_schema_element
        range_definition = self.range_attribute_definition
        if (range_element is None) != (range_definition is None):
            raise InvalidTableDefinitionError(
                "range key schema element and range attribute definition "
                "must be provided together",
                table_name=self.table_name,
            )
        if range_element is not None and range_definition is not None:
            if range_element.key_type is not KeyType.RANGE:
                raise InvalidTableDefinitionError(
                    "range key schema element must have key type RANGE",
                    table_name=self.table_name,
                )
            if range_element.attribute_name != range_definition.attribute_name:
                raise InvalidTableDefinitionError(
                    "range key schema element and attribute definition "
                    "name different attributes",
                    table_name=self.table_name,
                )
            if range_element.attribute_name == self.hash_key_schema_element.attribute_name:
                raise InvalidTableDefinitionError(
                    "hash and range key must be different attributes",
                    table_name=self.table_name,
                )
        return self

    @classmethod
    def for_keys(
        cls,
        table_name: str,
        *,
        hash_key: str,
        hash_key_type: AttributeType | str = AttributeType.STRING,
        range_key: str | None = None,
        range_key_type: AttributeType | str = AttributeType.STRING,
        read_capacity_units: int = 5,
        write_capacity_units: int = 5,
    ) -> Self:
        """Build a definition from attribute names and types."""
        range_element = None
        range_definition = None
        if range_key is not None:
            range_element = KeySchemaElement(attribute_name=range_key, key_type=KeyType.RANGE)
            range_definition = AttributeDefinition(
                attribute_name=range_key, attribute_type=AttributeType(range_key_type)
            )

        return cls(
            table_name=table_name,
            read_capacity_units=read_capacity_units,
            write_capacity_units=write_capacity_units,
            hash_key_schema_element=KeySchemaElement(
                attribute_name=hash_key, key_type=KeyType.HASH
            ),
            hash_attribute_definition=AttributeDefinition(
                attribute_name=hash_key, attribute_type=AttributeType(hash_key_type)
            ),
            range_key_schema_element=range_element,
            range_attribute_definition=range_definition,
        )

    def key_schema(self) -> list[dict[str, str]]:
        """Return the key schema in the format used by the DynamoDB API."""
        elements = [self.hash_key_schema_element.to_request()]
        if self.range_key_schema_element is not None:
            elements.append(self.range_key_schema_element.to_request())
        return elements

    def attribute_definitions(self) -> list[dict[str, str]]:
        definitions = [self.hash_attribute_definition.to_request()]
        if self.range_attribute_definition is not None:
            definitions.append(self.range_attribute_definition.to_request())
        return definitions

    def to_create_table_request(self) -> dict[str, Any]:
        """Build the keyword arguments for a CreateTable call."""
        return {
            "TableName": self.table_name,
            "KeySchema": self.key_schema(),
            "AttributeDefinitions": self.attribute_definitions(),
            "ProvisionedThroughput": {
                "ReadCapacityUnits": self.read_capacity_units,
                "WriteCapacityUnits": self.write_capacity_units,
            },
        }


@dataclass(frozen=True)
class TableCreated:
    """The table did not exist and a CreateTable request was issued."""

    table_name: str
    response: dict[str, Any]

    @property
    def changed(self) -> bool:
        return True


@dataclass(frozen=True)
class TableAlreadyExists:
    """The table already existed; nothing was done."""

    table_name: str

    @property
    def changed(self) -> bool:
        return False


@dataclass(frozen=True)
class TableDeleted:
    """The table existed and a DeleteTable request was issued."""

    table_name: str
    response: dict[str, Any]

    @property
    def changed(self) -> bool:
        return True


@dataclass(frozen=True)
class TableNotPresent:
    """The table did not exist; nothing was done."""

    table_name: str

    @property
    def changed(self) -> bool:
        return False


CreateTableResult: TypeAlias = TableCreated | TableAlreadyExists
DeleteTableResult: TypeAlias = TableDeleted | TableNotPresent


__all__ = [
    "AttributeDefinition",
    "AttributeType",
    "CreateTableResult",
    "DeleteTableResult",
    "KeySchemaElement",
    "KeyType",
    "TableAlreadyExists",
    "TableCreated",
    "TableDefinition",
    "TableDeleted",
    "TableNotPresent",
]
