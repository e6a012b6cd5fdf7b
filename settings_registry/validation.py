"""
Validation engine interface and the built-in rule set.

A validator turns (spec, value) into an ordered list of human readable
messages. An empty list means the value is valid.
"""

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Collection, Sequence
from typing import Any, Callable, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from settings_registry.errors import RuleDeclarationError
from settings_registry.variables import VariableSpec

logger = logging.getLogger(__name__)

Lookup = Callable[[str], Any]


def is_blank(value: Any) -> bool:
    return value is None or str(value) == ""


def length_bounds(params: Mapping[str, Any]) -> Tuple[Optional[int], Optional[int]]:
    """Resolve minimum/maximum, letting an inclusive `in` range stand in for both."""
    minimum = params.get("minimum")
    maximum = params.get("maximum")
    bounds = params.get("in", params.get("within"))
    if bounds is not None:
        if isinstance(bounds, range):
            minimum, maximum = bounds.start, bounds.stop - 1
        else:
            minimum, maximum = bounds
    return minimum, maximum


def format_params(params: Any) -> Tuple[Any, str]:
    """Returns (pattern, message) from either a bare pattern or {with|pattern, message}."""
    if isinstance(params, Mapping):
        pattern = params.get("with", params.get("pattern"))
        return pattern, params.get("message", "is invalid")
    return params, "is invalid"


def members(params: Any) -> Any:
    if isinstance(params, Mapping):
        return params.get("in", params.get("set", ()))
    return params


def contains(collection: Iterable[Any], value: Any) -> bool:
    """Membership by equality; works for unhashable values such as lists."""
    return any(value == member for member in collection)


def _malformed(rule: str, params: Any) -> bool:
    if rule == "length":
        if not isinstance(params, Mapping):
            return True
        bounds = params.get("in", params.get("within"))
        if bounds is None or isinstance(bounds, range):
            return False
        return not (isinstance(bounds, Sequence) and len(bounds) == 2)
    if rule == "comparison":
        return not isinstance(params, Mapping)
    if rule == "numericality":
        return not (params is True or isinstance(params, Mapping))
    if rule == "format":
        pattern, _ = format_params(params)
        return not isinstance(pattern, (str, re.Pattern))
    if rule in ("inclusion", "exclusion"):
        collection = members(params)
        return isinstance(collection, (str, bytes)) or not isinstance(collection, Collection)
    return False


class Validator(ABC):
    """
    Capability interface for validation engines.

    The registry asks `check_rules` at declare time and `validate` on every
    set/validate_all call.
    """

    @abstractmethod
    def supported_rules(self) -> FrozenSet[str]:
        """Rule names this engine can evaluate"""
        pass

    @abstractmethod
    def validate(self, spec: VariableSpec, value: Any, lookup: Optional[Lookup] = None) -> List[str]:
        """
        Evaluate every rule declared on spec against value.

        Args:
            spec: The variable whose `validates` mapping is applied
            value: Already typed value
            lookup: Resolves other variables by name, for cross-field rules

        Returns:
            One message per violation, in rule declaration order
        """
        pass

    def check_rules(self, spec: VariableSpec) -> None:
        if not spec.validates:
            return
        unknown = set(spec.validates) - self.supported_rules()
        if unknown:
            raise RuleDeclarationError(spec.name, unknown)
        builtin = self.builtin_rules()
        malformed = [
            rule for rule, params in spec.validates.items()
            if rule in builtin and _malformed(rule, params)
        ]
        if malformed:
            raise RuleDeclarationError(spec.name, malformed, reason="Malformed parameters")

    def builtin_rules(self) -> FrozenSet[str]:
        """Rules whose parameters have a fixed shape checked at declare time"""
        return self.supported_rules()

    def get_engine_name(self) -> str:
        return self.__class__.__name__.replace("Validator", "").lower()


class BuiltinValidator(Validator):
    """presence, length, format and inclusion without third-party help."""

    RULES = frozenset({"presence", "length", "format", "inclusion"})

    def supported_rules(self) -> FrozenSet[str]:
        return self.RULES

    def validate(self, spec: VariableSpec, value: Any, lookup: Optional[Lookup] = None) -> List[str]:
        messages: List[str] = []
        for rule, params in (spec.validates or {}).items():
            check = getattr(self, f"_check_{rule}")
            for phrase in check(value, params):
                messages.append(f"{spec.display_name} {phrase}")
        logger.debug("validated %s with %d violation(s)", spec.name, len(messages))
        return messages

    def _check_presence(self, value: Any, params: Any) -> List[str]:
        if params and is_blank(value):
            return ["can't be blank"]
        return []

    def _check_length(self, value: Any, params: Mapping[str, Any]) -> List[str]:
        if value is None:
            return []
        length = len(str(value))
        exact = params.get("is")
        if exact is not None and length != exact:
            return [f"is the wrong length (should be {exact} characters)"]
        minimum, maximum = length_bounds(params)
        errors = []
        if minimum is not None and length < minimum:
            errors.append(f"is too short (minimum is {minimum} characters)")
        if maximum is not None and length > maximum:
            errors.append(f"is too long (maximum is {maximum} characters)")
        return errors

    def _check_format(self, value: Any, params: Any) -> List[str]:
        if value is None:
            return []
        pattern, message = format_params(params)
        if re.search(pattern, str(value)) is None:
            return [message]
        return []

    def _check_inclusion(self, value: Any, params: Any) -> List[str]:
        if value is None:
            return []
        if not contains(members(params), value):
            return ["is not included in the list"]
        return []
