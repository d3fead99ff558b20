#!/usr/bin/env python3
"""
Standalone Schema Registry Runner
Location: src/schema_registry/run_schema_registry.py

List, validate, register and migrate schemas from the command line.
Every command goes through SchemaService / SchemaStore / SchemaMetadataManager.
"""

import sys
import json
import argparse
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import ConfigManager
from .exceptions import SchemaRegistryException
from .metadata_manager import SchemaMetadataManager
from .models import CompatibilityMode, SchemaMetadata
from .service import SchemaService
from .store import SchemaStore

logger = logging.getLogger(__name__)


BUILTIN_SCHEMAS: Dict[str, Dict[str, Any]] = {
    'message': {
        'type': 'record',
        'name': 'Message',
        'namespace': 'com.example.kafka',
        'fields': [
            {'name': 'id', 'type': 'string'},
            {'name': 'timestamp', 'type': 'long'},
            {'name': 'payload', 'type': 'string'},
            {'name': 'metadata', 'type': ['null', {'type': 'map', 'values': 'string'}], 'default': None}
        ]
    },
    'user_event': {
        'type': 'record',
        'name': 'UserEvent',
        'namespace': 'com.example.kafka',
        'fields': [
            {'name': 'user_id', 'type': 'string'},
            {'name': 'event_type', 'type': 'string'},
            {'name': 'timestamp', 'type': 'long'},
            {'name': 'properties', 'type': ['null', {'type': 'map', 'values': 'string'}], 'default': None}
        ]
    },
    'order_created': {
        'type': 'record',
        'name': 'OrderCreated',
        'namespace': 'com.example.kafka',
        'fields': [
            {'name': 'order_id', 'type': 'string'},
            {'name': 'customer_id', 'type': 'string'},
            {'name': 'total_amount', 'type': 'double'},
            {'name': 'currency', 'type': 'string'},
            {'name': 'created_at', 'type': 'long'},
            {'name': 'items', 'type': {'type': 'array', 'items': {
                'type': 'record',
                'name': 'OrderItem',
                'fields': [
                    {'name': 'product_id', 'type': 'string'},
                    {'name': 'quantity', 'type': 'int'},
                    {'name': 'price', 'type': 'double'}
                ]
            }}}
        ]
    },
    'order_updated': {
        'type': 'record',
        'name': 'OrderUpdated',
        'namespace': 'com.example.kafka',
        'fields': [
            {'name': 'order_id', 'type': 'string'},
            {'name': 'customer_id', 'type': 'string'},
            {'name': 'total_amount', 'type': 'double'},
            {'name': 'currency', 'type': 'string'},
            {'name': 'updated_at', 'type': 'long'},
            {'name': 'status', 'type': 'string'},
            {'name': 'changes', 'type': {'type': 'map', 'values': 'string'}}
        ]
    }
}


def format_field_type(field_type: Any) -> str:
    """Short rendering of a field type for tables"""
    if isinstance(field_type, str):
        return field_type
    if isinstance(field_type, dict):
        return str(field_type.get('type', 'unknown'))
    if isinstance(field_type, list):
        return 'union[' + '|'.join(format_field_type(alternative) for alternative in field_type) + ']'
    return 'unknown'


def print_table(headers: List[str], rows: List[List[Any]]) -> None:
    widths = [len(header) for header in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(str(cell)))

    print("  ".join(header.ljust(widths[i]) for i, header in enumerate(headers)))
    print("  ".join("-" * width for width in widths))
    for row in rows:
        print("  ".join(str(cell).ljust(widths[i]) for i, cell in enumerate(row)))


class SchemaRegistryRunner:
    """Standalone runner wiring store, metadata manager and service from configuration"""

    def __init__(self, config_path: str = None, schemas_directory: str = None):
        """
        Initialise the standalone runner

        Args:
            config_path: Path to schema registry YAML/TOML config
            schemas_directory: Overrides the configured schemas directory
        """
        self.config_manager = ConfigManager(config_path)
        self.config = self.config_manager.config

        if schemas_directory:
            self.config.schemas_directory = schemas_directory

        logger.info(f"🔧 Initialising schema registry runner")
        logger.info(f"Config: {self.config_manager.config_path}")
        logger.info(f"Schemas directory: {self.config.schemas_directory}")

        self.schema_store = SchemaStore(
            self.config.schemas_directory,
            cache_enabled=self.config.cache_enabled,
            schema_extension=self.config.schema_extension,
            metadata_filename=self.config.metadata_filename
        )
        self.metadata_manager = SchemaMetadataManager(
            self.schema_store,
            strict_transitive=self.config.strict_transitive,
            default_compatibility=self.config.default_compatibility
        )
        self.schema_service = SchemaService(self.schema_store, self.metadata_manager)

    def list_schemas(self) -> int:
        """Print one row per schema name"""
        all_schemas = self.schema_service.get_all_schemas()

        print("\nSCHEMA REGISTRY CONTENTS")
        print("=" * 60)

        if not all_schemas:
            print("No schemas found in the registry.")
            return 0

        rows = []
        for name, versions in all_schemas.items():
            version_list = sorted(versions.keys())
            metadata = self._readable_metadata(name)
            rows.append([
                name,
                ", ".join(str(v) for v in version_list),
                max(version_list),
                metadata.compatibility.value if metadata else 'Unknown',
                metadata.description if metadata else 'No metadata'
            ])

        print_table(['Message Type', 'Versions', 'Latest', 'Compatibility', 'Description'], rows)
        print(f"\nTotal schemas: {len(all_schemas)}")
        return 0

    def show_schema_details(self, name: str) -> int:
        """Print metadata, versions and the latest field layout for one name"""
        versions = self.schema_service.get_schema_versions(name)
        if not versions:
            print(f"Schema '{name}' not found.")
            return 1

        print(f"\nSCHEMA DETAILS: {name}")
        print("=" * 60)

        metadata = self._readable_metadata(name)
        if metadata:
            print(f"Name: {metadata.name}")
            print(f"Description: {metadata.description}")
            print(f"Compatibility: {metadata.compatibility.value}")
            print(f"Current Version: {metadata.version}")
            print(f"Created: {metadata.created_at:%Y-%m-%d %H:%M:%S}")
            print(f"Updated: {metadata.updated_at:%Y-%m-%d %H:%M:%S}")
            print(f"Tags: {', '.join(metadata.tags) or 'None'}")
        else:
            print("Metadata not available")

        print("\nAvailable Versions:")
        for version in versions:
            try:
                schema = self.schema_store.load(name, version)
                print(f"  Version {version}: {len(schema.get('fields', []))} fields")
            except SchemaRegistryException as e:
                print(f"  Version {version}: Error loading - {e}")

        schema = self.schema_service.get_schema(name)
        if 'fields' in schema:
            print("\nLatest Schema Structure:")
            rows = [
                [
                    field.get('name'),
                    format_field_type(field.get('type')),
                    json.dumps(field['default']) if 'default' in field else 'Required'
                ]
                for field in schema['fields']
            ]
            print_table(['Field', 'Type', 'Default'], rows)

        return 0

    def validate_payload(self, name: str, data_input: str, is_file: bool = False) -> int:
        """Validate JSON data (inline or from a file) against the latest schema"""
        if is_file:
            data_path = Path(data_input)
            if not data_path.exists():
                print(f"File not found: {data_input}")
                return 1
            json_data = data_path.read_text(encoding='utf-8')
        else:
            json_data = data_input

        try:
            data = json.loads(json_data)
        except json.JSONDecodeError as e:
            print(f"Invalid JSON: {e.msg}")
            return 1

        if not isinstance(data, dict):
            print("JSON data must be an object")
            return 1

        logger.info(f"🔍 Validating data against schema: {name}")

        if self.schema_service.validate_data(data, name):
            print("✓ Data is valid according to the schema")
            return 0

        print("✗ Data validation failed")
        return 1

    def register_schema_file(self, name: str, schema_file: str) -> int:
        schema_path = Path(schema_file)
        if not schema_path.exists():
            print(f"File not found: {schema_file}")
            return 1

        try:
            schema = json.loads(schema_path.read_text(encoding='utf-8'))
        except json.JSONDecodeError as e:
            print(f"Invalid JSON: {e.msg}")
            return 1

        schema_id = self.schema_service.register_schema(name, schema)
        version = self.schema_service.get_latest_schema_version(name)
        print(f"Registered {name} version {version} with schema ID {schema_id}")
        return 0

    def update_compatibility(self, name: str, mode: str) -> int:
        metadata = self.metadata_manager.update_compatibility(name, mode)
        print(f"Compatibility for {name} set to {metadata.compatibility.value}")
        return 0

    def export_builtin_schemas(self, dry_run: bool = False) -> int:
        """Write the built-in starter schemas as version 1 with 'migrated' metadata"""
        print("\nEXPORTING BUILT-IN SCHEMAS TO FILESYSTEM")
        print("=" * 60)
        print(f"Found {len(BUILTIN_SCHEMAS)} built-in schemas to export:")
        for name in BUILTIN_SCHEMAS:
            print(f"- {name}")

        if dry_run:
            print("\nDry run mode - no files will be created.")
            return 0

        exported = 0
        errors = 0

        for name, schema in BUILTIN_SCHEMAS.items():
            try:
                self.schema_store.save(name, schema, 1)
                metadata = self.metadata_manager.create_metadata_for_new_schema(
                    name,
                    description='Migrated from built-in schema',
                    tags=['migrated']
                )
                self.schema_store.save_metadata(name, metadata)
                exported += 1
                print(f"✓ Exported {name}")
            except SchemaRegistryException as e:
                errors += 1
                logger.error(f"❌ Failed to export {name}: {e}")
                print(f"✗ Failed to export {name}: {e}")

        if exported:
            print(f"\nSuccessfully exported {exported} schemas.")

        if errors:
            print(f"{errors} schemas failed to export.")
            return 1

        return 0

    def validate_stored_schemas(self) -> int:
        """Run the structural check over every stored version and load every metadata file"""
        print("\nVALIDATING SCHEMAS")
        print("=" * 60)

        names = self.schema_store.list_names()
        if not names:
            print("No schemas found to validate.")
            return 0

        total = 0
        valid = 0
        invalid = 0

        for name in names:
            print(f"\n{name}:")
            for version in self.schema_store.list_versions(name):
                total += 1
                if self.schema_store.validate_file(self.schema_store.schema_path(name, version)):
                    valid += 1
                    print(f"  ✓ Version {version} is valid")
                else:
                    invalid += 1
                    print(f"  ✗ Version {version} is invalid")

            try:
                self.metadata_manager.get_metadata(name)
                print("  ✓ Metadata is valid")
            except SchemaRegistryException as e:
                invalid += 1
                print(f"  ✗ Metadata is invalid: {e}")

        print(f"\nValidation complete: {valid}/{total} schemas are valid")
        return 1 if invalid else 0

    def _readable_metadata(self, name: str) -> Optional[SchemaMetadata]:
        """Metadata for display; None when absent or unreadable"""
        try:
            return self.schema_store.find_metadata(name)
        except SchemaRegistryException as e:
            logger.warning(f"⚠️ Metadata for {name} is unreadable: {e}")
            return None


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI interface for the schema registry"""
    parser = argparse.ArgumentParser(
        description="Filesystem Schema Registry",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List all schemas, or show one in detail
  python -m schema_registry.run_schema_registry list
  python -m schema_registry.run_schema_registry list message

  # Validate a payload against the latest schema
  python -m schema_registry.run_schema_registry validate message '{"id": "1", "timestamp": 1, "payload": "x"}'
  python -m schema_registry.run_schema_registry validate message data.json --file

  # Register a new version / change compatibility
  python -m schema_registry.run_schema_registry register message message_v2.avsc
  python -m schema_registry.run_schema_registry compatibility message FULL

  # Export built-in schemas or check stored files
  python -m schema_registry.run_schema_registry migrate --export-builtin --dry-run
  python -m schema_registry.run_schema_registry migrate --validate
        """
    )

    parser.add_argument(
        'command',
        choices=['list', 'validate', 'register', 'compatibility', 'migrate'],
        help='Command to execute'
    )

    parser.add_argument(
        'name',
        nargs='?',
        help='Schema (message type) name'
    )

    parser.add_argument(
        'value',
        nargs='?',
        help='JSON data, data/schema file path or compatibility mode, depending on command'
    )

    parser.add_argument(
        '--file', '-f',
        action='store_true',
        help='Read validation data from a file instead of the argument'
    )

    parser.add_argument(
        '--config',
        help='Path to schema registry config YAML/TOML file'
    )

    parser.add_argument(
        '--schemas-dir',
        help='Path to the schemas directory'
    )

    parser.add_argument(
        '--export-builtin',
        action='store_true',
        help='Export built-in schemas to the filesystem (migrate)'
    )

    parser.add_argument(
        '--validate',
        action='store_true',
        help='Validate stored schemas and metadata (migrate)'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Show what would be migrated without writing files'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )

    args = parser.parse_args(argv)

    # Validate required arguments
    if args.command in ['validate', 'register', 'compatibility'] and not (args.name and args.value):
        parser.error(f"Command '{args.command}' requires name and value")

    if args.command == 'compatibility' and args.value not in CompatibilityMode.__members__:
        parser.error(f"Unknown compatibility mode '{args.value}'")

    try:
        runner = SchemaRegistryRunner(config_path=args.config, schemas_directory=args.schemas_dir)
    except SchemaRegistryException as e:
        _configure_logging("INFO")
        logger.error(f"Command failed: {e}")
        return 1

    _configure_logging("DEBUG" if args.verbose else runner.config.log_level)

    try:
        if args.command == 'list':
            if args.name:
                return runner.show_schema_details(args.name)
            return runner.list_schemas()

        elif args.command == 'validate':
            return runner.validate_payload(args.name, args.value, is_file=args.file)

        elif args.command == 'register':
            return runner.register_schema_file(args.name, args.value)

        elif args.command == 'compatibility':
            return runner.update_compatibility(args.name, args.value)

        elif args.command == 'migrate':
            if args.export_builtin:
                return runner.export_builtin_schemas(dry_run=args.dry_run)
            if args.validate:
                return runner.validate_stored_schemas()
            print("No operation specified. Use --help to see available options.")
            return 0

    except SchemaRegistryException as e:
        logger.error(f"Command failed: {e}")
        print(f"Error: {e}")
        return 1

    return 0


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


if __name__ == "__main__":
    sys.exit(main())
