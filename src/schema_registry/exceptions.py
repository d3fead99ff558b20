"""
Exception hierarchy for the filesystem schema registry
Location: src/schema_registry/exceptions.py
"""

from typing import Optional


class SchemaRegistryException(Exception):
    """Base exception for schema registry operations"""
    pass


class SchemaNotFoundError(SchemaRegistryException):
    """Raised when a schema name or a (name, version) pair does not exist"""

    def __init__(self, name: str, version: Optional[int] = None, message: Optional[str] = None):
        self.name = name
        self.version = version
        version_info = f" (version {version})" if version is not None else ""
        super().__init__(message or f"Schema not found for message type '{name}'{version_info}")


class SchemaValidationError(SchemaRegistryException):
    """Raised for malformed documents, failed structural checks and I/O failures"""

    def __init__(self, message: str):
        self.detail = message
        super().__init__(f"Schema validation failed: {message}")


class CompatibilityError(SchemaRegistryException):
    """Raised when a compatibility operation targets a name with no metadata"""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Schema compatibility violation for '{name}': {reason}")


class InvalidArgumentError(SchemaRegistryException, ValueError):
    """Raised for unknown compatibility modes or a missing schemas directory"""
    pass
