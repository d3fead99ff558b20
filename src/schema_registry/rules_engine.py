"""
Compatibility rules engine for evaluating schema changes
Location: src/schema_registry/rules_engine.py
"""

from typing import Any, Dict, List, Optional
import logging

from .comparator import SchemaComparator
from .models import CompatibilityMode

logger = logging.getLogger(__name__)


class CompatibilityRulesEngine:
    """Maps a compatibility mode onto the backward rule applied in one or both directions"""

    def __init__(self, comparator: Optional[SchemaComparator] = None):
        self.comparator = comparator or SchemaComparator()

    def find_violations(self, old_schema: Dict[str, Any], new_schema: Dict[str, Any],
                        mode: CompatibilityMode) -> List[Dict[str, Any]]:
        """
        Evaluate a candidate schema against the previous one

        Args:
            old_schema: Currently stored schema
            new_schema: Candidate schema
            mode: Compatibility mode; transitive modes use their base rule

        Returns:
            List of violating change records, each tagged with its 'direction'
        """
        base_mode = mode.base

        if base_mode == CompatibilityMode.NONE:
            return []

        violations = []

        if base_mode in (CompatibilityMode.BACKWARD, CompatibilityMode.FULL):
            violations.extend(self._backward_violations(old_schema, new_schema, 'backward'))

        if base_mode in (CompatibilityMode.FORWARD, CompatibilityMode.FULL):
            # Forward compatibility is the backward rule with the operands swapped
            violations.extend(self._backward_violations(new_schema, old_schema, 'forward'))

        return violations

    def is_compatible(self, old_schema: Dict[str, Any], new_schema: Dict[str, Any],
                      mode: CompatibilityMode) -> bool:
        return not self.find_violations(old_schema, new_schema, mode)

    def _backward_violations(self, old_schema: Dict[str, Any], new_schema: Dict[str, Any],
                             direction: str) -> List[Dict[str, Any]]:
        changes = self.comparator.compare_schemas(old_schema, new_schema)

        violations = []
        for change in changes['detailed_changes']:
            if self._is_breaking(change):
                violations.append(dict(change, direction=direction))

        return violations

    def _is_breaking(self, change: Dict[str, Any]) -> bool:
        change_type = change['change_type']
        details = change.get('details', {})

        if change_type == 'change_kind':
            return True
        if change_type == 'remove_field':
            # Removal is safe only when the old declaration carried a default
            return not details.get('had_default', False)
        if change_type == 'add_field':
            # Old readers need a default to fill the new field
            return not details.get('has_default', False)
        if change_type == 'change_field_type':
            return not details.get('types_compatible', False)

        logger.warning(f"⚠️ Unknown change type '{change_type}' treated as breaking")
        return True


def summarise_violations(violations: List[Dict[str, Any]]) -> str:
    """Human-readable one-line summary of violations"""
    if not violations:
        return "no violations"
    return "; ".join(f"[{v['direction']}] {v['description']}" for v in violations)
