"""
Validation engine backed by pydantic.

Each declared rule is compiled into an `Annotated` type and run through a
`TypeAdapter`, one adapter per rule so that every violation is reported
instead of stopping at the first failing constraint. Error messages come out
of pydantic's error list and are handed to the registry unchanged.
"""

import logging
import operator
import re
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional

from pydantic import AfterValidator, Field, TypeAdapter, ValidationInfo
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticCustomError
from typing_extensions import Annotated

from settings_registry.errors import RuleDeclarationError, UnknownVariableError
from settings_registry.validation import (
    Lookup,
    Validator,
    contains,
    format_params,
    is_blank,
    length_bounds,
    members,
)
from settings_registry.variables import VariableSpec

logger = logging.getLogger(__name__)

CustomRule = Callable[[Any, Any], Optional[str]]

COMPARISONS = {
    "greater_than": (operator.gt, "must be greater than {count}"),
    "greater_than_or_equal_to": (operator.ge, "must be greater than or equal to {count}"),
    "less_than": (operator.lt, "must be less than {count}"),
    "less_than_or_equal_to": (operator.le, "must be less than or equal to {count}"),
    "equal_to": (operator.eq, "must be equal to {count}"),
    "other_than": (operator.ne, "must be other than {count}"),
}

# pydantic error type -> message template rendered with the error's ctx
ERROR_MESSAGES = {
    "greater_than": "must be greater than {gt}",
    "greater_than_equal": "must be greater than or equal to {ge}",
    "less_than": "must be less than {lt}",
    "less_than_equal": "must be less than or equal to {le}",
    "string_too_short": "is too short (minimum is {min_length} characters)",
    "string_too_long": "is too long (maximum is {max_length} characters)",
    "int_from_float": "must be an integer",
    "int_parsing": "must be an integer",
    "int_type": "must be an integer",
    "float_parsing": "is not a number",
    "float_type": "is not a number",
}


def _number(value: Any) -> Any:
    # float constraints come back as floats: 0.0 -> 0
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _message(error: Mapping[str, Any]) -> str:
    template = ERROR_MESSAGES.get(error["type"])
    if template is None:
        return error["msg"]
    ctx = {key: _number(value) for key, value in (error.get("ctx") or {}).items()}
    return template.format(**ctx)


def _field(**constraints: Any):
    """pydantic.Field with unset (None) constraints dropped."""
    return Field(**{key: value for key, value in constraints.items() if value is not None})


def _resolve(reference: Any, info: ValidationInfo) -> Any:
    """Turn a comparison operand into a value: variable name, callable or literal."""
    if callable(reference):
        return reference()
    lookup = (info.context or {}).get("lookup")
    if isinstance(reference, str) and lookup is not None:
        try:
            return lookup(reference)
        except UnknownVariableError:
            return reference
    return reference


class PydanticValidator(Validator):
    """
    Adapter exposing pydantic as the registry's validation engine.

    Understands the base rules (presence, length, format, inclusion) plus
    numericality, comparison, exclusion, absence and any rule registered
    through `custom_rules`.
    """

    RULES = frozenset({
        "presence", "length", "format", "inclusion",
        "numericality", "comparison", "exclusion", "absence",
    })

    def __init__(self, custom_rules: Optional[Dict[str, CustomRule]] = None):
        """
        Args:
            custom_rules: rule name -> fn(value, params) returning an error
                phrase or None
        """
        self.custom_rules: Dict[str, CustomRule] = dict(custom_rules or {})

    def supported_rules(self) -> FrozenSet[str]:
        return self.RULES | frozenset(self.custom_rules)

    def register_rule(self, name: str, fn: CustomRule) -> CustomRule:
        self.custom_rules[name] = fn
        return fn

    def builtin_rules(self) -> FrozenSet[str]:
        # a custom rule registered under a built-in name replaces it
        return self.RULES - frozenset(self.custom_rules)

    def check_rules(self, spec: VariableSpec) -> None:
        super().check_rules(spec)
        comparison = (spec.validates or {}).get("comparison")
        if comparison and "comparison" in self.builtin_rules():
            unknown = set(comparison) - set(COMPARISONS)
            if unknown:
                raise RuleDeclarationError(spec.name, {f"comparison.{option}" for option in unknown})

    def validate(self, spec: VariableSpec, value: Any, lookup: Optional[Lookup] = None) -> List[str]:
        messages: List[str] = []
        for rule, params in (spec.validates or {}).items():
            for phrase in self._run_rule(rule, params, value, lookup):
                messages.append(f"{spec.display_name} {phrase}")
        logger.debug("pydantic validated %s with %d violation(s)", spec.name, len(messages))
        return messages

    def _run_rule(self, rule: str, params: Any, value: Any, lookup: Optional[Lookup]) -> List[str]:
        if rule in self.custom_rules:
            annotation = self._custom(rule, params)
        else:
            annotation = getattr(self, f"_{rule}")(params, value)
        if annotation is None:
            return []
        if rule == "length":
            value = str(value)
        try:
            TypeAdapter(annotation).validate_python(value, context={"lookup": lookup})
        except PydanticValidationError as exc:
            return [_message(error) for error in exc.errors()]
        return []

    # Each builder returns the Annotated type for one rule, or None to skip it.

    def _presence(self, params: Any, value: Any):
        if not params:
            return None

        def check(v):
            if is_blank(v):
                raise PydanticCustomError("blank", "can't be blank")
            return v

        return Annotated[Any, AfterValidator(check)]

    def _absence(self, params: Any, value: Any):
        if not params:
            return None

        def check(v):
            if not is_blank(v):
                raise PydanticCustomError("present", "must be blank")
            return v

        return Annotated[Any, AfterValidator(check)]

    def _length(self, params: Mapping[str, Any], value: Any):
        if value is None:
            return None
        exact = params.get("is")
        if exact is not None:
            def check(v):
                if len(v) != exact:
                    raise PydanticCustomError(
                        "wrong_length",
                        "is the wrong length (should be {count} characters)",
                        {"count": exact},
                    )
                return v

            return Annotated[str, AfterValidator(check)]
        minimum, maximum = length_bounds(params)
        return Annotated[str, _field(min_length=minimum, max_length=maximum)]

    def _format(self, params: Any, value: Any):
        if value is None:
            return None
        pattern, message = format_params(params)

        def check(v):
            if re.search(pattern, str(v)) is None:
                raise PydanticCustomError("invalid_format", message)
            return v

        return Annotated[Any, AfterValidator(check)]

    def _inclusion(self, params: Any, value: Any):
        if value is None:
            return None
        allowed = members(params)

        def check(v):
            if not contains(allowed, v):
                raise PydanticCustomError("inclusion", "is not included in the list")
            return v

        return Annotated[Any, AfterValidator(check)]

    def _exclusion(self, params: Any, value: Any):
        if value is None:
            return None
        reserved = members(params)

        def check(v):
            if contains(reserved, v):
                raise PydanticCustomError("exclusion", "is reserved")
            return v

        return Annotated[Any, AfterValidator(check)]

    def _numericality(self, params: Any, value: Any):
        options = params if isinstance(params, Mapping) else {}
        if value is None:
            if options.get("allow_nil"):
                return None

            def missing(v):
                raise PydanticCustomError("not_a_number", "is not a number")

            return Annotated[Any, AfterValidator(missing)]

        base = int if options.get("only_integer") else float
        constraints = _field(
            gt=options.get("greater_than"),
            ge=options.get("greater_than_or_equal_to"),
            lt=options.get("less_than"),
            le=options.get("less_than_or_equal_to"),
        )

        def check(v):
            if "equal_to" in options and v != options["equal_to"]:
                raise PydanticCustomError(
                    "numericality_equal_to", "must be equal to {count}", {"count": options["equal_to"]}
                )
            if "other_than" in options and v == options["other_than"]:
                raise PydanticCustomError(
                    "numericality_other_than", "must be other than {count}", {"count": options["other_than"]}
                )
            if options.get("odd") and int(v) % 2 == 0:
                raise PydanticCustomError("numericality_odd", "must be odd")
            if options.get("even") and int(v) % 2 != 0:
                raise PydanticCustomError("numericality_even", "must be even")
            return v

        return Annotated[base, constraints, AfterValidator(check)]

    def _comparison(self, params: Mapping[str, Any], value: Any):
        if value is None:
            return None

        def check(v, info: ValidationInfo):
            for option, reference in params.items():
                compare, template = COMPARISONS[option]
                other = _resolve(reference, info)
                try:
                    ok = compare(v, other)
                except TypeError:
                    raise PydanticCustomError(
                        "comparison_type", "can't be compared to {count}", {"count": other}
                    ) from None
                if not ok:
                    raise PydanticCustomError(f"comparison_{option}", template, {"count": other})
            return v

        return Annotated[Any, AfterValidator(check)]

    def _custom(self, rule: str, params: Any):
        fn = self.custom_rules[rule]

        def check(v):
            message = fn(v, params)
            if message:
                raise PydanticCustomError(rule, message)
            return v

        return Annotated[Any, AfterValidator(check)]
