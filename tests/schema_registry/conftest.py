"""
Shared fixtures for schema registry tests
"""

import json
from datetime import datetime
from pathlib import Path

import pytest
import yaml

from schema_registry.metadata_manager import SchemaMetadataManager
from schema_registry.models import CompatibilityMode, SchemaMetadata
from schema_registry.store import SchemaStore


BASE_SCHEMA = {
    'type': 'record',
    'name': 'Test',
    'fields': [
        {'name': 'id', 'type': 'string'},
        {'name': 'optional', 'type': 'string', 'default': ''}
    ]
}


@pytest.fixture
def schemas_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "schemas"
    directory.mkdir()
    return directory


@pytest.fixture
def store(schemas_dir: Path) -> SchemaStore:
    return SchemaStore(schemas_dir)


@pytest.fixture
def metadata_manager(store: SchemaStore) -> SchemaMetadataManager:
    return SchemaMetadataManager(store)


@pytest.fixture
def base_schema() -> dict:
    return json.loads(json.dumps(BASE_SCHEMA))


def write_schema_file(schemas_dir: Path, name: str, version: int, content) -> Path:
    """Write a version file directly, bypassing the store"""
    schema_dir = schemas_dir / name
    schema_dir.mkdir(parents=True, exist_ok=True)
    path = schema_dir / f"v{version}.avsc"
    path.write_text(content if isinstance(content, str) else json.dumps(content), encoding='utf-8')
    return path


def write_metadata_file(schemas_dir: Path, name: str, compatibility: str = "BACKWARD", version: int = 1) -> Path:
    schema_dir = schemas_dir / name
    schema_dir.mkdir(parents=True, exist_ok=True)
    path = schema_dir / "schema.meta.yaml"
    path.write_text(yaml.safe_dump({
        'name': name,
        'description': f"{name} schema",
        'compatibility': compatibility,
        'created_at': '2024-01-01T00:00:00',
        'updated_at': '2024-01-01T00:00:00',
        'version': version,
        'tags': ['test']
    }), encoding='utf-8')
    return path


def make_metadata(name: str, compatibility: CompatibilityMode = CompatibilityMode.BACKWARD,
                  version: int = 1) -> SchemaMetadata:
    now = datetime(2024, 1, 1, 12, 0, 0)
    return SchemaMetadata(
        name=name,
        description="Test schema",
        compatibility=compatibility,
        created_at=now,
        updated_at=now,
        version=version,
        tags=['test']
    )
