"""
Configuration management for schema registry
Location: src/schema_registry/config.py
"""

import yaml
import tomllib
from pathlib import Path
from typing import Dict, Any
from dataclasses import dataclass, asdict

from .exceptions import InvalidArgumentError
from .models import COMPATIBILITY_TYPES


@dataclass
class SchemaRegistryConfig:
    """Main configuration for schema registry"""
    schemas_directory: str = "schemas"
    cache_enabled: bool = True
    schema_extension: str = "avsc"
    metadata_filename: str = "schema.meta.yaml"
    default_compatibility: str = "BACKWARD"
    strict_transitive: bool = False
    log_level: str = "INFO"
    repository_hints_file: str = "registry.yaml"


class ConfigManager:
    def __init__(self, config_path: str = None):
        self.config_path = config_path or "config/schema_registry_config.yml"
        self.config = self._load_config()

    def _load_config(self) -> SchemaRegistryConfig:
        """Load configuration from YAML or TOML file"""
        config_file = Path(self.config_path)

        if config_file.exists():
            if config_file.suffix.lower() == '.toml':
                return self._load_toml_config(config_file)
            else:
                return self._load_yaml_config(config_file)
        else:
            return self._create_default_config()

    def _load_toml_config(self, config_file: Path) -> SchemaRegistryConfig:
        """Load TOML configuration"""
        with open(config_file, 'rb') as f:
            config_data = tomllib.load(f)
        return self._parse_config(config_data)

    def _load_yaml_config(self, config_file: Path) -> SchemaRegistryConfig:
        """Load YAML configuration"""
        with open(config_file, 'r') as f:
            config_data = yaml.safe_load(f) or {}
            return self._parse_config(config_data)

    def _create_default_config(self) -> SchemaRegistryConfig:
        """Create default configuration"""
        return SchemaRegistryConfig()

    def _parse_config(self, config_data: Dict[str, Any]) -> SchemaRegistryConfig:
        """Parse configuration from dictionary"""
        # Settings may sit at the top level or under a [schema_registry] section
        section = config_data.get("schema_registry", {})
        if isinstance(section, dict):
            config_data = {**config_data, **section}

        defaults = SchemaRegistryConfig()

        default_compatibility = str(config_data.get("default_compatibility", defaults.default_compatibility))
        if default_compatibility not in COMPATIBILITY_TYPES:
            raise InvalidArgumentError(f"Invalid compatibility type in config: {default_compatibility}")

        return SchemaRegistryConfig(
            schemas_directory=str(config_data.get("schemas_directory", defaults.schemas_directory)),
            cache_enabled=bool(config_data.get("cache_enabled", defaults.cache_enabled)),
            schema_extension=str(config_data.get("schema_extension", defaults.schema_extension)),
            metadata_filename=str(config_data.get("metadata_filename", defaults.metadata_filename)),
            default_compatibility=default_compatibility,
            strict_transitive=bool(config_data.get("strict_transitive", defaults.strict_transitive)),
            log_level=str(config_data.get("log_level", defaults.log_level)).upper(),
            repository_hints_file=str(config_data.get("repository_hints_file", defaults.repository_hints_file))
        )

    def save_config(self) -> None:
        """Save current configuration to YAML file"""
        config_file = Path(self.config_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w') as f:
            yaml.dump(asdict(self.config), f, default_flow_style=False, indent=2)

    def load_repository_hints(self) -> Dict[str, Any]:
        """Repository-wide hints from <schemas_directory>/registry.yaml; empty when absent"""
        hints_file = Path(self.config.schemas_directory) / self.config.repository_hints_file

        if not hints_file.exists():
            return {}

        with open(hints_file, 'r') as f:
            hints = yaml.safe_load(f)

        return hints if isinstance(hints, dict) else {}
