"""
Filesystem persistence for schema versions and per-name metadata
Location: src/schema_registry/store.py

Layout:
    <root>/<name>/v<N>.avsc          JSON schema document for version N
    <root>/<name>/schema.meta.yaml   YAML metadata for the name
"""

import copy
import json
import logging
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .cache_manager import CacheManager
from .exceptions import InvalidArgumentError, SchemaNotFoundError, SchemaValidationError
from .models import SchemaMetadata, validate_schema_structure

logger = logging.getLogger(__name__)


@dataclass
class SkippedEntry:
    """A version file that could not be loaded during a bulk scan"""
    name: str
    version: int
    error: Exception


@dataclass
class SchemaListing:
    """Result of enumerating the registry: loaded documents plus what was skipped"""
    schemas: Dict[str, Dict[int, Dict[str, Any]]] = field(default_factory=dict)
    skipped: List[SkippedEntry] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


class SchemaStore:
    """Reads and writes schema documents and metadata under a root directory"""

    def __init__(self, schemas_directory: Union[str, Path] = "schemas", cache_enabled: bool = True,
                 schema_extension: str = "avsc", metadata_filename: str = "schema.meta.yaml"):
        self.schemas_directory = Path(schemas_directory)
        if not self.schemas_directory.is_dir():
            raise InvalidArgumentError(f"Schemas directory '{self.schemas_directory}' does not exist")

        self.cache_enabled = cache_enabled
        self.schema_extension = schema_extension.lstrip('.')
        self.metadata_filename = metadata_filename
        self._version_pattern = re.compile(rf"^v([1-9]\d*)\.{re.escape(self.schema_extension)}$")

        self._schema_cache = CacheManager(enabled=cache_enabled)
        self._metadata_cache = CacheManager(enabled=cache_enabled)

    def load(self, name: str, version: Optional[int] = None) -> Dict[str, Any]:
        """
        Load a schema document

        Args:
            name: Schema (message type) name
            version: Version to load; the latest stored version when omitted

        Returns:
            The parsed schema document

        Raises:
            SchemaNotFoundError: If the name or the requested version does not exist
            SchemaValidationError: If the file is unreadable, not JSON or structurally invalid
        """
        if version is None:
            version = self.latest_version(name)

        cache_key = (name, version)
        cached = self._schema_cache.get(cache_key)
        if cached is not None:
            return copy.deepcopy(cached)

        schema_path = self.schema_path(name, version)
        if not schema_path.is_file():
            raise SchemaNotFoundError(name, version)

        schema = self._read_document(schema_path)

        if not isinstance(schema, dict):
            raise SchemaValidationError(f"Schema must be an object in {schema_path}")

        if not validate_schema_structure(schema):
            raise SchemaValidationError(f"Invalid Avro schema structure in {schema_path}")

        self._schema_cache.store(cache_key, schema)
        return copy.deepcopy(schema)

    def save(self, name: str, schema: Dict[str, Any], version: int = 1) -> None:
        """
        Validate and write a schema document as <root>/<name>/v<version>.<ext>

        Raises:
            SchemaValidationError: On a structural failure, a bad version number
                or when the directory/file cannot be written
        """
        if not validate_schema_structure(schema):
            raise SchemaValidationError("Invalid Avro schema structure")

        if not isinstance(version, int) or isinstance(version, bool) or version < 1:
            raise SchemaValidationError(f"Version must be a positive integer, got {version!r}")

        schema_dir = self._schema_dir(name)
        try:
            schema_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SchemaValidationError(f"Cannot create directory: {schema_dir}") from e

        schema_path = self.schema_path(name, version)
        try:
            schema_path.write_text(json.dumps(schema, indent=4, ensure_ascii=False), encoding='utf-8')
        except (OSError, TypeError, ValueError) as e:
            raise SchemaValidationError(f"Cannot write schema file: {schema_path}") from e

        self._schema_cache.invalidate((name, version))
        logger.debug(f"💾 Saved schema {name} v{version} to {schema_path}")

    def scan(self) -> SchemaListing:
        """
        Enumerate every name directory and every version file, loading each.
        Entries that fail to load are recorded in `skipped` instead of aborting.
        """
        listing = SchemaListing()

        for name in self.list_names():
            for version in self._versions_in(self._schema_dir(name)):
                try:
                    schema = self.load(name, version)
                except (SchemaNotFoundError, SchemaValidationError) as e:
                    listing.skipped.append(SkippedEntry(name=name, version=version, error=e))
                    continue
                listing.schemas.setdefault(name, {})[version] = schema

        return listing

    def list_all(self) -> Dict[str, Dict[int, Dict[str, Any]]]:
        """Best-effort mapping name -> {version -> schema}; unreadable entries are left out"""
        listing = self.scan()

        for entry in listing.skipped:
            logger.warning(f"⚠️ Skipping schema {entry.name} v{entry.version}: {entry.error}")

        if listing.skipped:
            logger.warning(f"⚠️ {listing.skipped_count} schema file(s) skipped while listing registry")

        return listing.schemas

    def list_names(self) -> List[str]:
        """Names of all schema directories under the root"""
        return sorted(
            entry.name for entry in self.schemas_directory.iterdir()
            if entry.is_dir() and not entry.name.startswith('.')
        )

    def exists(self, name: str) -> bool:
        """Whether a directory exists for the name"""
        return self._schema_dir(name).is_dir()

    def list_versions(self, name: str) -> List[int]:
        """
        Stored versions for a name, ascending

        Raises:
            SchemaNotFoundError: If the name's directory does not exist
        """
        schema_dir = self._schema_dir(name)
        if not schema_dir.is_dir():
            raise SchemaNotFoundError(name)

        return self._versions_in(schema_dir)

    def latest_version(self, name: str) -> int:
        versions = self.list_versions(name)
        if not versions:
            raise SchemaNotFoundError(name)
        return max(versions)

    def validate_file(self, file_path: Union[str, Path]) -> bool:
        """Structural check of an arbitrary file; never raises"""
        try:
            schema = self._read_document(Path(file_path))
        except SchemaValidationError:
            return False

        return validate_schema_structure(schema)

    def load_metadata(self, name: str) -> SchemaMetadata:
        """
        Load the metadata file for a name

        Raises:
            SchemaNotFoundError: If no metadata file exists
            SchemaValidationError: If the file cannot be parsed into SchemaMetadata
        """
        cached = self._metadata_cache.get(name)
        if cached is not None:
            return replace(cached, tags=list(cached.tags))

        metadata_path = self.metadata_path(name)
        if not metadata_path.is_file():
            raise SchemaNotFoundError(name)

        try:
            with open(metadata_path, 'r', encoding='utf-8') as f:
                metadata_data = yaml.safe_load(f)
            if not isinstance(metadata_data, dict):
                raise SchemaValidationError(f"Metadata file must contain mapping data: {metadata_path}")
            metadata = SchemaMetadata.from_dict(metadata_data)
        except SchemaValidationError:
            raise
        except (OSError, yaml.YAMLError, KeyError, ValueError, TypeError) as e:
            raise SchemaValidationError(f"Invalid metadata file {metadata_path}: {e}") from e

        self._metadata_cache.store(name, metadata)
        return replace(metadata, tags=list(metadata.tags))

    def find_metadata(self, name: str) -> Optional[SchemaMetadata]:
        """Metadata for a name, or None when the name has no metadata file"""
        try:
            return self.load_metadata(name)
        except SchemaNotFoundError:
            return None

    def save_metadata(self, name: str, metadata: SchemaMetadata) -> None:
        metadata_path = self.metadata_path(name)

        try:
            metadata_path.parent.mkdir(parents=True, exist_ok=True)
            with open(metadata_path, 'w', encoding='utf-8') as f:
                yaml.safe_dump(metadata.to_dict(), f, default_flow_style=False,
                               sort_keys=False, allow_unicode=True, indent=2)
        except (OSError, yaml.YAMLError) as e:
            raise SchemaValidationError(f"Cannot save metadata: {e}") from e

        self._metadata_cache.invalidate(name)
        logger.debug(f"💾 Saved metadata for {name} (version {metadata.version})")

    def clear_cache(self) -> None:
        self._schema_cache.clear()
        self._metadata_cache.clear()

    def schema_path(self, name: str, version: int) -> Path:
        return self._schema_dir(name) / f"v{version}.{self.schema_extension}"

    def metadata_path(self, name: str) -> Path:
        return self._schema_dir(name) / self.metadata_filename

    def _schema_dir(self, name: str) -> Path:
        if not name or name in ('.', '..') or '/' in name or '\\' in name:
            raise InvalidArgumentError(f"Invalid schema name: {name!r}")
        return self.schemas_directory / name

    def _versions_in(self, schema_dir: Path) -> List[int]:
        versions = []
        for schema_file in schema_dir.iterdir():
            match = self._version_pattern.match(schema_file.name)
            if match and schema_file.is_file():
                versions.append(int(match.group(1)))
        return sorted(versions)

    def _read_document(self, path: Path) -> Any:
        """Read and JSON-decode a file, mapping every failure to SchemaValidationError"""
        try:
            with open(path, 'rb') as f:
                raw = f.read()
        except OSError as e:
            raise SchemaValidationError(f"Cannot read schema file: {path}") from e

        try:
            return json.loads(raw.decode('utf-8'))
        except UnicodeDecodeError as e:
            raise SchemaValidationError(f"Schema file {path} is not valid UTF-8: {e.reason}") from e
        except json.JSONDecodeError as e:
            raise SchemaValidationError(f"Invalid JSON in schema file {path}: {e.msg}") from e
