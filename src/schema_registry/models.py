"""
Data model for schema documents and per-name metadata
Location: src/schema_registry/models.py

Schema documents stay plain dictionaries on disk and across the public API.
Compatibility checks and payload validation work on the typed view built by
parse_type_expr / parse_fields, so key-presence checks live in one place.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Tuple, Union


class CompatibilityMode(str, Enum):
    """Compatibility policies, serialised by their exact upper-case name"""
    NONE = "NONE"
    BACKWARD = "BACKWARD"
    BACKWARD_TRANSITIVE = "BACKWARD_TRANSITIVE"
    FORWARD = "FORWARD"
    FORWARD_TRANSITIVE = "FORWARD_TRANSITIVE"
    FULL = "FULL"
    FULL_TRANSITIVE = "FULL_TRANSITIVE"

    @property
    def is_transitive(self) -> bool:
        return self.value.endswith("_TRANSITIVE")

    @property
    def base(self) -> "CompatibilityMode":
        """Non-transitive counterpart (NONE/BACKWARD/FORWARD/FULL)"""
        return CompatibilityMode(self.value.replace("_TRANSITIVE", ""))


COMPATIBILITY_TYPES: Tuple[str, ...] = tuple(mode.value for mode in CompatibilityMode)


class _NoDefault:
    """Marker for a field declaration without a 'default' key"""

    def __repr__(self) -> str:
        return "NO_DEFAULT"


NO_DEFAULT = _NoDefault()


@dataclass(frozen=True)
class PrimitiveType:
    name: str


@dataclass(frozen=True)
class ComplexType:
    """Nested non-record definition (array, map, enum, fixed...) compared as a whole"""
    kind: str
    definition: Any


@dataclass(frozen=True)
class UnionType:
    alternatives: Tuple["TypeExpr", ...]


@dataclass(frozen=True)
class RecordType:
    name: str
    fields: Tuple["Field", ...]


TypeExpr = Union[PrimitiveType, ComplexType, UnionType, RecordType]


@dataclass(frozen=True)
class Field:
    """A single record field declaration"""
    name: str
    type: TypeExpr
    default: Any = NO_DEFAULT

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT

    @property
    def is_required(self) -> bool:
        return not self.has_default


def parse_type_expr(value: Any) -> TypeExpr:
    """
    Build the typed view of a field type declaration

    Args:
        value: A primitive name, a union list or a nested definition object

    Returns:
        The matching TypeExpr variant

    Raises:
        ValueError: If the declaration is none of the supported shapes
    """
    if isinstance(value, str):
        return PrimitiveType(value)

    if isinstance(value, list):
        return UnionType(tuple(parse_type_expr(alternative) for alternative in value))

    if isinstance(value, dict):
        if 'type' not in value:
            raise ValueError(f"Nested type definition without 'type': {value!r}")
        if value['type'] == 'record':
            return RecordType(
                name=str(value.get('name', '')),
                fields=tuple(parse_fields(value.get('fields', [])))
            )
        return ComplexType(kind=str(value['type']), definition=value)

    raise ValueError(f"Unsupported type declaration: {value!r}")


def parse_field(declaration: Dict[str, Any]) -> Field:
    """Build a Field from its document form; raises ValueError when malformed"""
    if not isinstance(declaration, dict):
        raise ValueError(f"Field declaration must be an object: {declaration!r}")
    if 'name' not in declaration or 'type' not in declaration:
        raise ValueError(f"Field declaration requires 'name' and 'type': {declaration!r}")

    return Field(
        name=str(declaration['name']),
        type=parse_type_expr(declaration['type']),
        default=declaration['default'] if 'default' in declaration else NO_DEFAULT
    )


def parse_fields(declarations: Any) -> List[Field]:
    if not isinstance(declarations, list):
        raise ValueError("Record 'fields' must be a list")
    return [parse_field(declaration) for declaration in declarations]


def is_record(schema: Dict[str, Any]) -> bool:
    return schema.get('type') == 'record'


def validate_schema_structure(schema: Any) -> bool:
    """
    Basic Avro document check: a 'type' is required, and records also need
    a non-empty 'name' and a 'fields' list. Field syntax is not inspected.
    """
    if not isinstance(schema, dict) or 'type' not in schema:
        return False

    if schema['type'] == 'record':
        name = schema.get('name')
        return isinstance(name, str) and name != "" and isinstance(schema.get('fields'), list)

    return True


def _parse_timestamp(value: Any) -> datetime:
    # YAML loaders turn unquoted ISO timestamps into datetime objects already
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


@dataclass(frozen=True)
class SchemaMetadata:
    """Descriptive metadata kept once per schema name"""
    name: str
    description: str
    compatibility: CompatibilityMode
    created_at: datetime
    updated_at: datetime
    version: int
    tags: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SchemaMetadata":
        """
        Build metadata from its YAML mapping

        Raises:
            KeyError: If a mandatory key is missing
            ValueError: If the compatibility mode or a timestamp is invalid
        """
        return cls(
            name=str(data['name']),
            description=str(data.get('description') or ""),
            compatibility=CompatibilityMode(data['compatibility']),
            created_at=_parse_timestamp(data['created_at']),
            updated_at=_parse_timestamp(data['updated_at']),
            version=int(data['version']),
            tags=[str(tag) for tag in (data.get('tags') or [])]
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'description': self.description,
            'compatibility': self.compatibility.value,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat(),
            'version': self.version,
            'tags': list(self.tags)
        }

    def with_updated_timestamp(self) -> "SchemaMetadata":
        return replace(self, updated_at=datetime.now())

    def with_version(self, version: int) -> "SchemaMetadata":
        return replace(self, version=version, updated_at=datetime.now())

    def with_compatibility(self, compatibility: CompatibilityMode) -> "SchemaMetadata":
        return replace(self, compatibility=compatibility, updated_at=datetime.now())

    def with_description(self, description: str) -> "SchemaMetadata":
        return replace(self, description=description, updated_at=datetime.now())

    def with_tags(self, tags: List[str]) -> "SchemaMetadata":
        return replace(self, tags=list(tags), updated_at=datetime.now())
