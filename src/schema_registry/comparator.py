"""
Schema comparison logic for detecting changes between schema versions
Location: src/schema_registry/comparator.py
"""

from typing import Any, Dict
import logging

from .models import Field, TypeExpr, UnionType, is_record, parse_fields

logger = logging.getLogger(__name__)


def types_compatible(old_type: TypeExpr, new_type: TypeExpr) -> bool:
    """
    Shallow type compatibility: structurally equal, or two unions sharing at
    least one alternative. No promotion rules (int -> long etc.) are applied.
    """
    if old_type == new_type:
        return True

    if isinstance(old_type, UnionType) and isinstance(new_type, UnionType):
        return any(
            old_alternative == new_alternative
            for old_alternative in old_type.alternatives
            for new_alternative in new_type.alternatives
        )

    return False


class SchemaComparator:
    """Compares two schema documents and reports field-level changes"""

    def compare_schemas(self, old_schema: Dict[str, Any], new_schema: Dict[str, Any]) -> Dict[str, Any]:
        """
        Compare two schemas and detect all changes

        Args:
            old_schema: Previous schema version
            new_schema: Candidate schema version

        Returns:
            Dictionary containing detected changes

        Raises:
            ValueError: If a record's field declarations are malformed
        """
        changes = {
            'has_changes': False,
            'change_summary': {
                'type_changed': False,
                'fields_added': 0,
                'fields_removed': 0,
                'fields_modified': 0
            },
            'detailed_changes': []
        }

        if old_schema.get('type') != new_schema.get('type'):
            changes['detailed_changes'].append(self._create_kind_change(old_schema, new_schema))
            changes['change_summary']['type_changed'] = True
            changes['has_changes'] = True
            return changes

        if not is_record(old_schema):
            return changes

        old_fields = {f.name: f for f in parse_fields(old_schema.get('fields', []))}
        new_fields = {f.name: f for f in parse_fields(new_schema.get('fields', []))}

        for field_name, old_field in old_fields.items():
            if field_name not in new_fields:
                changes['detailed_changes'].append(self._create_field_removal_change(old_field))
                changes['change_summary']['fields_removed'] += 1
            elif old_field.type != new_fields[field_name].type:
                changes['detailed_changes'].append(
                    self._create_field_type_change(old_field, new_fields[field_name])
                )
                changes['change_summary']['fields_modified'] += 1

        for field_name, new_field in new_fields.items():
            if field_name not in old_fields:
                changes['detailed_changes'].append(self._create_field_addition_change(new_field))
                changes['change_summary']['fields_added'] += 1

        changes['has_changes'] = bool(changes['detailed_changes'])
        logger.debug(f"🔍 Schema comparison complete: {len(changes['detailed_changes'])} changes detected")
        return changes

    def _create_kind_change(self, old_schema: Dict[str, Any], new_schema: Dict[str, Any]) -> Dict[str, Any]:
        return {
            'change_type': 'change_kind',
            'field_name': None,
            'description': f"Changed schema type from {old_schema.get('type')!r} to {new_schema.get('type')!r}",
            'details': {},
            'from_value': old_schema.get('type'),
            'to_value': new_schema.get('type')
        }

    def _create_field_addition_change(self, new_field: Field) -> Dict[str, Any]:
        return {
            'change_type': 'add_field',
            'field_name': new_field.name,
            'description': f"Added field '{new_field.name}'",
            'details': {'has_default': new_field.has_default},
            'from_value': None,
            'to_value': new_field.type
        }

    def _create_field_removal_change(self, old_field: Field) -> Dict[str, Any]:
        return {
            'change_type': 'remove_field',
            'field_name': old_field.name,
            'description': f"Removed field '{old_field.name}'",
            'details': {'had_default': old_field.has_default},
            'from_value': old_field.type,
            'to_value': None
        }

    def _create_field_type_change(self, old_field: Field, new_field: Field) -> Dict[str, Any]:
        return {
            'change_type': 'change_field_type',
            'field_name': old_field.name,
            'description': f"Changed type of field '{old_field.name}'",
            'details': {'types_compatible': types_compatible(old_field.type, new_field.type)},
            'from_value': old_field.type,
            'to_value': new_field.type
        }
