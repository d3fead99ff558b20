"""
Filesystem-backed schema registry
Location: src/schema_registry/__init__.py

Stores versioned Avro-style record schemas with per-name metadata, enforces
compatibility rules between versions and assigns integer IDs to schema names.
"""

from .store import SchemaStore, SchemaListing, SkippedEntry
from .metadata_manager import SchemaMetadataManager
from .service import SchemaService
from .comparator import SchemaComparator
from .rules_engine import CompatibilityRulesEngine
from .cache_manager import CacheManager
from .config import ConfigManager, SchemaRegistryConfig
from .models import CompatibilityMode, SchemaMetadata, Field
from .exceptions import (
    SchemaRegistryException,
    SchemaNotFoundError,
    SchemaValidationError,
    CompatibilityError,
    InvalidArgumentError
)

__version__ = "1.0.0"
__all__ = [
    "SchemaStore",
    "SchemaListing",
    "SkippedEntry",
    "SchemaMetadataManager",
    "SchemaService",
    "SchemaComparator",
    "CompatibilityRulesEngine",
    "CacheManager",
    "ConfigManager",
    "SchemaRegistryConfig",
    "CompatibilityMode",
    "SchemaMetadata",
    "Field",
    "SchemaRegistryException",
    "SchemaNotFoundError",
    "SchemaValidationError",
    "CompatibilityError",
    "InvalidArgumentError"
]
