"""
Test suite for SchemaMetadataManager compatibility gate and metadata lifecycle
Following TDD approach with AAA pattern and descriptive naming
"""

from unittest.mock import Mock

import pytest

from schema_registry.exceptions import CompatibilityError, InvalidArgumentError, SchemaValidationError
from schema_registry.metadata_manager import SchemaMetadataManager, parse_compatibility_mode
from schema_registry.models import COMPATIBILITY_TYPES, CompatibilityMode
from schema_registry.store import SchemaStore

from conftest import make_metadata, write_schema_file


def _with_field(schema, field_declaration):
    return dict(schema, fields=schema['fields'] + [field_declaration])


class TestCompatibilityGate:
    """Test suite for validate_compatibility / check_compatibility"""

    def test_validate_compatibility_with_defaulted_addition_under_backward_returns_true(
            self, store, metadata_manager, base_schema):
        # Arrange
        store.save('test', base_schema, 1)
        store.save_metadata('test', make_metadata('test', CompatibilityMode.BACKWARD))
        candidate = _with_field(base_schema, {'name': 'new_field', 'type': 'string', 'default': 'default'})

        # Act & Assert
        assert metadata_manager.validate_compatibility(candidate, 'test') is True

    def test_validate_compatibility_with_required_addition_under_backward_returns_false(
            self, store, metadata_manager, base_schema):
        # Arrange
        store.save('test', base_schema, 1)
        store.save_metadata('test', make_metadata('test', CompatibilityMode.BACKWARD))
        candidate = _with_field(base_schema, {'name': 'new_field', 'type': 'string'})

        # Act & Assert
        assert metadata_manager.validate_compatibility(candidate, 'test') is False

    def test_validate_compatibility_under_none_returns_true_for_any_candidate(
            self, store, metadata_manager, base_schema):
        # Arrange
        store.save('test', base_schema, 1)
        store.save_metadata('test', make_metadata('test', CompatibilityMode.NONE))

        # Act & Assert
        assert metadata_manager.validate_compatibility({'type': 'string'}, 'test') is True

    def test_validate_compatibility_without_metadata_returns_true(self, store, metadata_manager, base_schema):
        """
        Test that a name with versions but no metadata is treated as a first registration
        """
        # Arrange
        store.save('test', base_schema, 1)

        # Act & Assert
        assert metadata_manager.validate_compatibility({'type': 'string'}, 'test') is True

    def test_validate_compatibility_without_versions_returns_true(self, store, metadata_manager):
        # Arrange
        store.save_metadata('test', make_metadata('test', CompatibilityMode.FULL))

        # Act & Assert
        assert metadata_manager.validate_compatibility({'type': 'string'}, 'test') is True

    def test_validate_compatibility_for_unknown_name_returns_true(self, metadata_manager, base_schema):
        # Act & Assert
        assert metadata_manager.validate_compatibility(base_schema, 'brand_new') is True

    def test_check_compatibility_compares_against_latest_version_only(
            self, store, metadata_manager, schemas_dir, base_schema):
        """
        Test that older versions are ignored under the default non-strict setting
        """
        # Arrange
        write_schema_file(schemas_dir, 'test', 1, {'type': 'record', 'name': 'Old', 'fields': [
            {'name': 'legacy', 'type': 'int'}
        ]})
        store.save('test', base_schema, 2)
        store.save_metadata('test', make_metadata('test', CompatibilityMode.BACKWARD_TRANSITIVE))

        # Act
        violations = metadata_manager.check_compatibility(base_schema, 'test')

        # Assert
        assert violations == []

    def test_check_compatibility_with_strict_transitive_checks_every_version(
            self, store, schemas_dir, base_schema):
        # Arrange
        write_schema_file(schemas_dir, 'test', 1, {'type': 'record', 'name': 'Old', 'fields': [
            {'name': 'legacy', 'type': 'int'}
        ]})
        store.save('test', base_schema, 2)
        store.save_metadata('test', make_metadata('test', CompatibilityMode.BACKWARD_TRANSITIVE))
        manager = SchemaMetadataManager(store, strict_transitive=True)

        # Act
        violations = manager.check_compatibility(base_schema, 'test')

        # Assert
        assert violations
        assert {v['version'] for v in violations} == {1}

    def test_check_compatibility_with_strict_flag_and_plain_mode_checks_latest_only(
            self, store, schemas_dir, base_schema):
        # Arrange
        write_schema_file(schemas_dir, 'test', 1, {'type': 'record', 'name': 'Old', 'fields': [
            {'name': 'legacy', 'type': 'int'}
        ]})
        store.save('test', base_schema, 2)
        store.save_metadata('test', make_metadata('test', CompatibilityMode.BACKWARD))
        manager = SchemaMetadataManager(store, strict_transitive=True)

        # Act & Assert
        assert manager.check_compatibility(base_schema, 'test') == []

    def test_check_compatibility_with_malformed_stored_fields_raises_validation_error(
            self, store, metadata_manager, schemas_dir, base_schema):
        # Arrange
        write_schema_file(schemas_dir, 'test', 1, {'type': 'record', 'name': 'Bad', 'fields': [{'name': 'x'}]})
        store.save_metadata('test', make_metadata('test'))

        # Act & Assert
        with pytest.raises(SchemaValidationError):
            metadata_manager.check_compatibility(base_schema, 'test')

    def test_check_compatibility_uses_injected_rules_engine(self, base_schema):
        """
        Test that the gate delegates the structural decision to its rules engine
        """
        # Arrange
        store = Mock(spec=SchemaStore)
        store.find_metadata.return_value = make_metadata('test', CompatibilityMode.FULL)
        store.exists.return_value = True
        store.list_versions.return_value = [1, 3]
        store.load.return_value = base_schema
        engine = Mock()
        engine.find_violations.return_value = []
        manager = SchemaMetadataManager(store, rules_engine=engine)

        # Act
        result = manager.validate_compatibility(base_schema, 'test')

        # Assert
        assert result is True
        store.load.assert_called_once_with('test', 3)
        engine.find_violations.assert_called_once_with(base_schema, base_schema, CompatibilityMode.FULL)


class TestMetadataLifecycle:
    """Test suite for metadata creation and updates"""

    def test_update_compatibility_with_valid_mode_persists_change(self, store, metadata_manager):
        # Arrange
        original = make_metadata('test', CompatibilityMode.BACKWARD)
        store.save_metadata('test', original)

        # Act
        updated = metadata_manager.update_compatibility('test', 'FULL_TRANSITIVE')

        # Assert
        assert updated.compatibility == CompatibilityMode.FULL_TRANSITIVE
        assert updated.updated_at > original.updated_at
        assert updated.created_at == original.created_at
        assert store.load_metadata('test').compatibility == CompatibilityMode.FULL_TRANSITIVE

    def test_update_compatibility_with_unknown_mode_raises_invalid_argument(self, store, metadata_manager):
        # Arrange
        store.save_metadata('test', make_metadata('test'))

        # Act & Assert
        with pytest.raises(InvalidArgumentError):
            metadata_manager.update_compatibility('test', 'SIDEWAYS')

    def test_update_compatibility_is_case_sensitive(self, store, metadata_manager):
        # Arrange
        store.save_metadata('test', make_metadata('test'))

        # Act & Assert
        with pytest.raises(InvalidArgumentError):
            metadata_manager.update_compatibility('test', 'full')

    def test_update_compatibility_without_metadata_raises_compatibility_error(self, metadata_manager):
        # Act & Assert
        with pytest.raises(CompatibilityError) as exc_info:
            metadata_manager.update_compatibility('missing', 'FULL')
        assert 'Schema metadata not found' in str(exc_info.value)

    def test_update_description_and_tags_persist(self, store, metadata_manager):
        # Arrange
        store.save_metadata('test', make_metadata('test'))

        # Act
        metadata_manager.update_description('test', 'Order events')
        metadata_manager.update_tags('test', ['orders', 'v2'])

        # Assert
        stored = store.load_metadata('test')
        assert stored.description == 'Order events'
        assert stored.tags == ['orders', 'v2']

    def test_create_metadata_for_new_schema_defaults_to_backward_version_one(self, metadata_manager):
        # Act
        metadata = metadata_manager.create_metadata_for_new_schema('orders', 'Order events', ['orders'])

        # Assert
        assert metadata.name == 'orders'
        assert metadata.description == 'Order events'
        assert metadata.compatibility == CompatibilityMode.BACKWARD
        assert metadata.version == 1
        assert metadata.tags == ['orders']
        assert metadata.created_at == metadata.updated_at

    def test_create_metadata_for_new_schema_uses_configured_default(self, store):
        # Arrange
        manager = SchemaMetadataManager(store, default_compatibility='FULL')

        # Act & Assert
        assert manager.create_metadata_for_new_schema('orders').compatibility == CompatibilityMode.FULL

    def test_increment_version_with_existing_metadata_returns_next_version(self, store, metadata_manager):
        # Arrange
        store.save_metadata('test', make_metadata('test', version=4))

        # Act
        incremented = metadata_manager.increment_version('test')

        # Assert
        assert incremented.version == 5
        assert store.load_metadata('test').version == 4

    def test_increment_version_without_metadata_returns_fresh_metadata(self, metadata_manager):
        # Act
        metadata = metadata_manager.increment_version('unknown')

        # Assert
        assert metadata.version == 1
        assert metadata.compatibility == CompatibilityMode.BACKWARD

    def test_get_compatibility_types_returns_seven_modes_in_order(self, metadata_manager):
        # Act
        modes = metadata_manager.get_compatibility_types()

        # Assert
        assert modes == COMPATIBILITY_TYPES
        assert list(modes) == [
            'NONE', 'BACKWARD', 'BACKWARD_TRANSITIVE', 'FORWARD',
            'FORWARD_TRANSITIVE', 'FULL', 'FULL_TRANSITIVE'
        ]

    def test_parse_compatibility_mode_accepts_enum_members(self):
        # Act & Assert
        assert parse_compatibility_mode(CompatibilityMode.FORWARD) is CompatibilityMode.FORWARD
        assert parse_compatibility_mode('FORWARD') is CompatibilityMode.FORWARD
