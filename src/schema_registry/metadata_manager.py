"""
Metadata lifecycle and compatibility gatekeeping
Location: src/schema_registry/metadata_manager.py
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union
import logging

from .exceptions import CompatibilityError, InvalidArgumentError, SchemaValidationError
from .models import COMPATIBILITY_TYPES, CompatibilityMode, SchemaMetadata
from .rules_engine import CompatibilityRulesEngine
from .store import SchemaStore

logger = logging.getLogger(__name__)


def parse_compatibility_mode(value: Union[str, CompatibilityMode]) -> CompatibilityMode:
    """Resolve a case-sensitive mode name; raises InvalidArgumentError when unknown"""
    if isinstance(value, CompatibilityMode):
        return value
    if value not in COMPATIBILITY_TYPES:
        raise InvalidArgumentError(f"Invalid compatibility type: {value}")
    return CompatibilityMode(value)


class SchemaMetadataManager:
    """Decides whether a candidate may become the next version and maintains metadata"""

    def __init__(self, schema_store: SchemaStore, rules_engine: Optional[CompatibilityRulesEngine] = None,
                 strict_transitive: bool = False,
                 default_compatibility: Union[str, CompatibilityMode] = CompatibilityMode.BACKWARD):
        """
        Args:
            schema_store: Store holding versions and metadata
            rules_engine: Engine mapping modes onto structural rules
            strict_transitive: When True, *_TRANSITIVE modes check every stored
                version instead of only the latest one
            default_compatibility: Mode assigned to brand-new schema names
        """
        self.schema_store = schema_store
        self.rules_engine = rules_engine or CompatibilityRulesEngine()
        self.strict_transitive = strict_transitive
        self.default_compatibility = parse_compatibility_mode(default_compatibility)

    def get_metadata(self, name: str) -> SchemaMetadata:
        return self.schema_store.load_metadata(name)

    def update_compatibility(self, name: str, compatibility: Union[str, CompatibilityMode]) -> SchemaMetadata:
        """
        Change the compatibility mode recorded for a name

        Raises:
            InvalidArgumentError: If the mode is not one of the seven known names
            CompatibilityError: If the name has no metadata
        """
        mode = parse_compatibility_mode(compatibility)
        metadata = self._require_metadata(name)

        updated = metadata.with_compatibility(mode)
        self.schema_store.save_metadata(name, updated)
        logger.info(f"⚖️ Compatibility for {name} set to {mode.value}")
        return updated

    def update_description(self, name: str, description: str) -> SchemaMetadata:
        updated = self._require_metadata(name).with_description(description)
        self.schema_store.save_metadata(name, updated)
        return updated

    def update_tags(self, name: str, tags: List[str]) -> SchemaMetadata:
        updated = self._require_metadata(name).with_tags(tags)
        self.schema_store.save_metadata(name, updated)
        return updated

    def validate_compatibility(self, new_schema: Dict[str, Any], name: str) -> bool:
        """
        Check a candidate schema against what is stored for `name`.
        Names without metadata or without versions are compatible by definition.
        """
        return not self.check_compatibility(new_schema, name)

    def check_compatibility(self, new_schema: Dict[str, Any], name: str) -> List[Dict[str, Any]]:
        """
        Same decision as validate_compatibility, returning the violations found

        Raises:
            SchemaValidationError: If a stored version cannot be loaded or its
                field declarations are malformed
        """
        metadata = self.schema_store.find_metadata(name)
        if metadata is None:
            logger.debug(f"📋 No metadata for {name} - treating as initial registration")
            return []

        mode = metadata.compatibility
        if mode == CompatibilityMode.NONE:
            return []

        versions = self.schema_store.list_versions(name) if self.schema_store.exists(name) else []
        if not versions:
            return []

        if self.strict_transitive and mode.is_transitive:
            targets = versions
        else:
            targets = [max(versions)]

        violations = []
        for version in targets:
            current_schema = self.schema_store.load(name, version)
            try:
                found = self.rules_engine.find_violations(current_schema, new_schema, mode)
            except ValueError as e:
                raise SchemaValidationError(f"Cannot compare {name} v{version}: {e}") from e

            for violation in found:
                violations.append(dict(violation, version=version))

        if violations:
            logger.warning(f"⚠️ Candidate for {name} violates {mode.value}: {len(violations)} issue(s)")
        return violations

    def create_metadata_for_new_schema(self, name: str, description: str = "",
                                       tags: Optional[List[str]] = None) -> SchemaMetadata:
        now = datetime.now()
        return SchemaMetadata(
            name=name,
            description=description,
            compatibility=self.default_compatibility,
            created_at=now,
            updated_at=now,
            version=1,
            tags=list(tags or [])
        )

    def increment_version(self, name: str) -> SchemaMetadata:
        """Copy of the stored metadata with version + 1, or fresh metadata for an unknown name"""
        metadata = self.schema_store.find_metadata(name)
        if metadata is None:
            return self.create_metadata_for_new_schema(name)
        return metadata.with_version(metadata.version + 1)

    def get_compatibility_types(self) -> Tuple[str, ...]:
        return COMPATIBILITY_TYPES

    def _require_metadata(self, name: str) -> SchemaMetadata:
        metadata = self.schema_store.find_metadata(name)
        if metadata is None:
            raise CompatibilityError(name, 'Schema metadata not found')
        return metadata
