"""
Data model for declared variables.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Union


class VarType(Enum):
    """Value shapes a variable can be declared with"""
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    ARRAY = "array"
    MAP = "map"
    SYMBOL = "symbol"

    @classmethod
    def parse(cls, value: Union["VarType", str]) -> "VarType":
        """Accept a member or its lowercase name ('hash' is an alias for MAP)."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        if key == "hash":
            return cls.MAP
        try:
            return cls(key)
        except ValueError:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(f"Unknown variable type {value!r} (expected one of: {choices})") from None


Reader = Callable[[str, "VariableSpec"], Any]
Writer = Callable[[str, Any, "VariableSpec"], None]


def storage_key_for(name: str) -> str:
    """Derive the backend lookup key: field_name -> FIELD_NAME."""
    return name.upper()


def display_name_for(name: str) -> str:
    """database_url -> 'Database url'"""
    words = name.replace("_", " ").strip()
    return words[:1].upper() + words[1:]


@dataclass(frozen=True)
class VariableSpec:
    """Everything the registry knows about one declared variable."""
    name: str
    type: VarType = VarType.STRING
    default: Any = None
    validates: Optional[Mapping[str, Any]] = None
    reader: Optional[Reader] = field(default=None, compare=False)
    writer: Optional[Writer] = field(default=None, compare=False)

    @property
    def storage_key(self) -> str:
        return storage_key_for(self.name)

    @property
    def display_name(self) -> str:
        return display_name_for(self.name)

    @property
    def has_rules(self) -> bool:
        return bool(self.validates)
