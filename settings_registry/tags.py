"""
Tag types for dataclass settings schemas.
Used inside Annotated[type, ...]; each tag folds its part of the
declaration into the keyword arguments passed to Registry.declare.
"""

from typing import Any, Dict, Mapping

from settings_registry.variables import Reader as ReaderFn
from settings_registry.variables import VarType, Writer as WriterFn


class Tag:
    """Base for schema tags."""

    def apply(self, options: Dict[str, Any]) -> None:
        raise NotImplementedError


class Default(Tag):
    """Value returned when the backend has nothing; wins over the dataclass default."""

    def __init__(self, value: object):
        self.value = value

    def apply(self, options: Dict[str, Any]) -> None:
        options["default"] = self.value


class Validates(Tag):
    """Validation rules, in the order given. Later tags extend earlier ones."""

    def __init__(self, rules: Mapping[str, Any] = None, **kwargs: Any):
        self.rules = dict(rules or {}, **kwargs)

    def apply(self, options: Dict[str, Any]) -> None:
        merged = dict(options.get("validates") or {})
        merged.update(self.rules)
        options["validates"] = merged


class Required(Validates):
    """The field must resolve to a non-blank value: Validates(presence=True)."""

    def __init__(self):
        super().__init__(presence=True)


class Kind(Tag):
    """Override the variable type inferred from the annotation (e.g. VarType.SYMBOL)."""

    def __init__(self, var_type: VarType):
        self.var_type = VarType.parse(var_type)

    def apply(self, options: Dict[str, Any]) -> None:
        options["type"] = self.var_type


class Reader(Tag):
    """Per-field reader callback: (storage_key, spec) -> raw."""

    def __init__(self, fn: ReaderFn):
        self.fn = fn

    def apply(self, options: Dict[str, Any]) -> None:
        options["reader"] = self.fn


class Writer(Tag):
    """Per-field writer callback: (storage_key, value, spec) -> None."""

    def __init__(self, fn: WriterFn):
        self.fn = fn

    def apply(self, options: Dict[str, Any]) -> None:
        options["writer"] = self.fn
