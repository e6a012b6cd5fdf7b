"""
Settings registry: typed configuration variables over pluggable storage.

Declare variables once, then read, write and validate them through a
Registry (or a Settings subclass) regardless of where the values live.
"""

from settings_registry.accessors import Accessors, Settings, Var, accessors_for, build_accessors
from settings_registry.coercion import coerce
from settings_registry.errors import (
    ReadOnlyError,
    RuleDeclarationError,
    SettingsError,
    UnknownVariableError,
    ValidationError,
)
from settings_registry.pydantic_validation import PydanticValidator
from settings_registry.registry import Registry
from settings_registry.schema import declare_schema, load_settings
from settings_registry.storage import (
    StorageChain,
    dotenv_reader,
    environ_reader,
    environ_writer,
    mapping_reader,
    mapping_writer,
)
from settings_registry.tags import Default, Kind, Reader, Required, Tag, Validates, Writer
from settings_registry.validation import BuiltinValidator, Validator
from settings_registry.variables import VariableSpec, VarType

__all__ = [
    "Registry",
    "VariableSpec",
    "VarType",
    "coerce",
    "Validator",
    "BuiltinValidator",
    "PydanticValidator",
    "StorageChain",
    "environ_reader",
    "environ_writer",
    "mapping_reader",
    "mapping_writer",
    "dotenv_reader",
    "Settings",
    "Var",
    "Accessors",
    "accessors_for",
    "build_accessors",
    "declare_schema",
    "load_settings",
    "Tag",
    "Default",
    "Required",
    "Validates",
    "Kind",
    "Reader",
    "Writer",
    "SettingsError",
    "UnknownVariableError",
    "ReadOnlyError",
    "ValidationError",
    "RuleDeclarationError",
]
