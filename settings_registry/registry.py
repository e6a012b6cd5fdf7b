"""
Variable registry: declares typed settings and answers get/set/validate.
"""

import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

from settings_registry.coercion import coerce
from settings_registry.errors import UnknownVariableError, ValidationError
from settings_registry.storage import StorageChain
from settings_registry.validation import BuiltinValidator, Validator
from settings_registry.variables import Reader, VariableSpec, VarType, Writer

logger = logging.getLogger(__name__)


class Registry:
    """
    Catalog of declared variables and the entry point for reading,
    writing and validating them.

    Nothing is cached: every get goes back to its backend.

    Usage:
        >>> registry = Registry()
        >>> registry.declare("port", type="integer", default=3000)
        >>> registry.get("port")
        3000
    """

    def __init__(self, validator: Optional[Validator] = None, env: Optional[Mapping[str, str]] = None):
        """
        Args:
            validator: Validation engine; BuiltinValidator when omitted
            env: Mapping used as the implicit backend (default: os.environ)
        """
        self.validator = validator or BuiltinValidator()
        self.specs: Dict[str, VariableSpec] = {}
        self.storage = StorageChain(env)

    def declare(
        self,
        name: str,
        type: Union[VarType, str] = VarType.STRING,
        default: Any = None,
        validates: Optional[Mapping[str, Any]] = None,
        reader: Optional[Reader] = None,
        writer: Optional[Writer] = None,
    ) -> VariableSpec:
        """Register (or replace) a variable. Unknown rule names are rejected here."""
        spec = VariableSpec(
            name=name,
            type=VarType.parse(type),
            default=default,
            validates=dict(validates) if validates else None,
            reader=reader,
            writer=writer,
        )
        self.validator.check_rules(spec)
        if name in self.specs:
            logger.debug("redeclaring %s, previous declaration replaced", name)
        self.specs[name] = spec
        logger.debug("declared %s (%s) as %s", name, spec.type.value, spec.storage_key)
        return spec

    @property
    def default_reader(self) -> Optional[Reader]:
        return self.storage.default_reader

    @default_reader.setter
    def default_reader(self, reader: Reader) -> None:
        self.storage.default_reader = reader

    @property
    def default_writer(self) -> Optional[Writer]:
        return self.storage.default_writer

    @default_writer.setter
    def default_writer(self, writer: Writer) -> None:
        self.storage.default_writer = writer

    def set_default_reader(self, reader: Reader) -> Reader:
        """Assign the fallback reader; returns it so this doubles as a decorator."""
        self.default_reader = reader
        return reader

    def set_default_writer(self, writer: Writer) -> Writer:
        self.default_writer = writer
        return writer

    def spec(self, name: str) -> VariableSpec:
        try:
            return self.specs[name]
        except KeyError:
            raise UnknownVariableError(name) from None

    def get(self, name: str) -> Any:
        spec = self.spec(name)
        raw = self.storage.read(spec)
        if raw is None:
            return spec.default
        return coerce(raw, spec.type)

    def set(self, name: str, value: Any) -> None:
        """Validate value against the variable's rules, then hand it to the writer."""
        spec = self.spec(name)
        # Resolve first so a read-only variable fails before any validation work
        self.storage.resolve_writer(spec)
        if spec.has_rules:
            messages = self.validator.validate(spec, value, self.get)
            if messages:
                raise ValidationError(messages)
        self.storage.write(spec, value)

    def errors(self) -> Dict[str, List[str]]:
        """Violations per variable, for every declared variable with rules."""
        found: Dict[str, List[str]] = {}
        for name, spec in self.specs.items():
            if not spec.has_rules:
                continue
            messages = self.validator.validate(spec, self.get(name), self.get)
            if messages:
                found[name] = messages
        return found

    def validate_all(self) -> None:
        messages = [msg for per_variable in self.errors().values() for msg in per_variable]
        if messages:
            raise ValidationError(messages)
        logger.debug("all %d settings valid", len(self.specs))

    def all(self) -> Dict[str, Any]:
        return {name: self.get(name) for name in self.specs}

    to_dict = all

    def is_present(self, name: str) -> bool:
        value = self.get(name)
        return value is not None and str(value) != ""

    def is_enabled(self, name: str) -> bool:
        """Truthiness check for boolean variables."""
        spec = self.spec(name)
        if spec.type is not VarType.BOOLEAN:
            raise TypeError(f"'{name}' is declared as {spec.type.value}, not boolean")
        return bool(self.get(name))

    def __contains__(self, name: object) -> bool:
        return name in self.specs

    def __iter__(self) -> Iterator[str]:
        return iter(self.specs)

    def __len__(self) -> int:
        return len(self.specs)
