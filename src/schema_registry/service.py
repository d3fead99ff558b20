"""
Schema service facade used by application code
Location: src/schema_registry/service.py
"""

import threading
from typing import Any, Dict, List, Mapping, Optional
import logging

from .exceptions import SchemaNotFoundError, SchemaRegistryException, SchemaValidationError
from .metadata_manager import SchemaMetadataManager
from .models import is_record, parse_fields
from .rules_engine import summarise_violations
from .store import SchemaStore

logger = logging.getLogger(__name__)


class SchemaService:
    """Single entry point over store and metadata manager, with schema-ID bookkeeping"""

    def __init__(self, schema_store: SchemaStore, metadata_manager: Optional[SchemaMetadataManager] = None):
        self.schema_store = schema_store
        self.metadata_manager = metadata_manager or SchemaMetadataManager(schema_store)

        self._schema_id_map: Dict[str, int] = {}
        self._next_schema_id = 1
        self._id_lock = threading.Lock()
        self._registration_locks: Dict[str, threading.Lock] = {}
        self._registration_locks_guard = threading.Lock()

        self._initialise_schema_id_map()

    def get_schema(self, name: str) -> Dict[str, Any]:
        """Latest version of a schema; SchemaNotFoundError propagates"""
        try:
            logger.debug(f"🔍 Loading schema for message type: {name}")
            return self.schema_store.load(name)
        except SchemaNotFoundError as e:
            logger.error(f"❌ Schema not found for message type: {name} ({e})")
            raise
        except SchemaValidationError as e:
            logger.error(f"❌ Stored schema for {name} is invalid: {e}")
            raise

    def get_schema_by_id(self, schema_id: int) -> Dict[str, Any]:
        name = self._get_name_by_schema_id(schema_id)
        return self.get_schema(name)

    def get_schema_by_version(self, name: str, version: int) -> Dict[str, Any]:
        try:
            return self.schema_store.load(name, version)
        except SchemaNotFoundError:
            logger.error(f"❌ Schema not found for {name} version {version}")
            raise

    def get_schema_for_message_type(self, name: str, version: Optional[int] = None) -> Dict[str, Any]:
        """Schema document for serializer adapters; latest version when none is given"""
        if version is None:
            return self.get_schema(name)
        return self.get_schema_by_version(name, version)

    def get_schema_id(self, name: str) -> Optional[int]:
        with self._id_lock:
            return self._schema_id_map.get(name)

    def validate_data(self, data: Mapping[str, Any], name: str) -> bool:
        """
        Plausibility check of a payload against the latest schema: every field
        without a default must be present. Extra keys are ignored.

        Returns:
            False when the schema is missing or the payload fails the check
        """
        try:
            schema = self.get_schema(name)
        except SchemaNotFoundError:
            logger.error(f"❌ Cannot validate data - schema not found: {name}")
            return False
        except SchemaRegistryException as e:
            logger.error(f"❌ Cannot validate data - schema unreadable: {name} ({e})")
            return False

        return self._perform_schema_validation(data, schema)

    def get_all_schemas(self) -> Dict[str, Dict[int, Dict[str, Any]]]:
        try:
            logger.debug("🔍 Loading all schemas")
            return self.schema_store.list_all()
        except (SchemaRegistryException, OSError) as e:
            logger.error(f"❌ Error loading all schemas: {e}")
            return {}

    def get_schema_versions(self, name: str) -> List[int]:
        """Stored versions, or an empty list for an unknown or unreadable name"""
        try:
            if not self.schema_store.exists(name):
                logger.warning(f"⚠️ No versions found for message type: {name}")
                return []
            return self.schema_store.list_versions(name)
        except (SchemaRegistryException, OSError) as e:
            logger.warning(f"⚠️ Could not list versions for message type {name}: {e}")
            return []

    def get_latest_schema_version(self, name: str) -> int:
        try:
            return self.schema_store.latest_version(name)
        except SchemaNotFoundError:
            logger.error(f"❌ No schema versions found for message type: {name}")
            raise

    def get_schema_metadata(self, name: str) -> Dict[str, Any]:
        """Metadata as a plain mapping, empty when the name has none"""
        metadata = self.schema_store.find_metadata(name)
        if metadata is None:
            logger.warning(f"⚠️ Metadata not found for message type: {name}")
            return {}
        return metadata.to_dict()

    def register_schema(self, name: str, schema: Dict[str, Any], description: str = "",
                        tags: Optional[List[str]] = None) -> int:
        """
        Register a schema as the next version of `name`

        Args:
            name: Schema (message type) name
            schema: Candidate schema document
            description: Description used when the name gets fresh metadata
            tags: Tags used when the name gets fresh metadata

        Returns:
            The integer ID assigned to `name`

        Raises:
            SchemaValidationError: If the candidate is incompatible or any
                persistence step fails; the original error is chained
        """
        with self._registration_lock(name):
            try:
                if not isinstance(schema, dict):
                    raise SchemaValidationError(f"Schema must be an object, got {type(schema).__name__}")

                violations = self.metadata_manager.check_compatibility(schema, name)
                if violations:
                    raise SchemaValidationError(
                        f"Schema is not compatible with existing versions: {summarise_violations(violations)}"
                    )

                versions = self.schema_store.list_versions(name) if self.schema_store.exists(name) else []
                next_version = max(versions) + 1 if versions else 1

                self.schema_store.save(name, schema, next_version)

                metadata = self.schema_store.find_metadata(name)
                if metadata is None:
                    metadata = self.metadata_manager.create_metadata_for_new_schema(name, description, tags)
                self.schema_store.save_metadata(name, metadata.with_version(next_version))

            except Exception as e:
                logger.error(f"❌ Error registering schema for {name}: {e}")
                detail = e.detail if isinstance(e, SchemaValidationError) else str(e)
                raise SchemaValidationError(f"Cannot register schema: {detail}") from e

            schema_id = self._assign_schema_id(name)

        logger.info(f"📝 Registered schema for {name} version {next_version} with ID {schema_id}")
        return schema_id

    def _initialise_schema_id_map(self) -> None:
        try:
            names = list(self.schema_store.list_all().keys())
        except (SchemaRegistryException, OSError) as e:
            logger.warning(f"⚠️ Could not initialise schema ID map: {e}")
            return

        for name in names:
            self._assign_schema_id(name)

        logger.debug(f"🆔 Schema ID map initialised with {len(self._schema_id_map)} names")

    def _assign_schema_id(self, name: str) -> int:
        with self._id_lock:
            if name not in self._schema_id_map:
                self._schema_id_map[name] = self._next_schema_id
                self._next_schema_id += 1
            return self._schema_id_map[name]

    def _get_name_by_schema_id(self, schema_id: int) -> str:
        with self._id_lock:
            for name, assigned_id in self._schema_id_map.items():
                if assigned_id == schema_id:
                    return name

        raise SchemaNotFoundError(str(schema_id), message=f"No message type found for schema ID: {schema_id}")

    def _registration_lock(self, name: str) -> threading.Lock:
        with self._registration_locks_guard:
            return self._registration_locks.setdefault(name, threading.Lock())

    def _perform_schema_validation(self, data: Mapping[str, Any], schema: Dict[str, Any]) -> bool:
        try:
            if not isinstance(data, Mapping):
                logger.debug("Validation failed: payload is not a mapping")
                return False

            if is_record(schema):
                for field in parse_fields(schema.get('fields', [])):
                    if field.is_required and field.name not in data:
                        logger.debug(f"Validation failed: missing required field {field.name}")
                        return False

            return True

        except Exception as e:
            logger.error(f"❌ Schema validation error: {e}")
            return False
