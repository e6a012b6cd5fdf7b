"""
Reflection-based schema declaration.
Introspects a dataclass, declares one registry variable per field, and builds
populated instances from resolved values.
"""

from dataclasses import MISSING, Field, fields
from typing import Annotated, Any, Dict, List, Union, get_args, get_origin

from settings_registry.registry import Registry
from settings_registry.tags import Tag
from settings_registry.variables import VariableSpec, VarType

_TYPE_MAP = {
    str: VarType.STRING,
    int: VarType.INTEGER,
    float: VarType.FLOAT,
    bool: VarType.BOOLEAN,
    list: VarType.ARRAY,
    tuple: VarType.ARRAY,
    dict: VarType.MAP,
}


def _split_annotated(hint: Any) -> tuple[Any, list[Any]]:
    """Annotated[X, tag, ...] -> (X, [tag, ...])"""
    if get_origin(hint) is Annotated:
        inner, *metadata = get_args(hint)
        return inner, metadata
    return hint, []


def _resolve_inner_type(hint: Any) -> Any:
    """Strip Optional[T] / T | None down to T."""
    args = get_args(hint)
    if get_origin(hint) is Union or (args and type(None) in args):
        non_none = [a for a in args if a is not type(None)]
        return non_none[0] if len(non_none) == 1 else str
    return hint


def _inferred_type(hint: Any) -> VarType:
    inner = _resolve_inner_type(hint)
    origin = get_origin(inner) or inner
    try:
        return _TYPE_MAP[origin]
    except (KeyError, TypeError):
        raise TypeError(f"No variable type for annotation {hint!r}; add a Kind(...) tag") from None


def _dataclass_default(f: Field) -> Any | None:
    if f.default is not MISSING:
        return f.default
    if f.default_factory is not MISSING:
        return f.default_factory()
    return None


def _field_options(f: Field) -> Dict[str, Any]:
    """Keyword arguments for Registry.declare, folded from the field's tags."""
    hint, metadata = _split_annotated(f.type)
    options: Dict[str, Any] = {"default": _dataclass_default(f)}
    for m in metadata:
        if isinstance(m, Tag):
            m.apply(options)
    if "type" not in options:
        options["type"] = _inferred_type(hint)
    return options


def declare_schema(registry: Registry, schema_class: type) -> List[VariableSpec]:
    """
    Declare every field of a dataclass schema on the registry.

    - schema_class: a dataclass with type-annotated fields, optionally
      Annotated with tags from settings_registry.tags
    - Returns: the declared specs, in field order
    - Raises: TypeError for non-dataclasses or unmappable annotations
    """
    if not hasattr(schema_class, "__dataclass_fields__"):
        raise TypeError("Schema must be a dataclass")

    return [registry.declare(f.name, **_field_options(f)) for f in fields(schema_class)]


def load_settings(registry: Registry, schema_class: type, validate: bool = True) -> Any:
    """
    Build an instance of schema_class from the registry's current values.

    Declares the schema first if any of its fields is missing, then runs
    validate_all so configuration errors surface at startup.

    - Raises: ValidationError listing every violation
    """
    names = [f.name for f in fields(schema_class)]
    if any(name not in registry for name in names):
        declare_schema(registry, schema_class)
    if validate:
        registry.validate_all()
    return schema_class(**{name: registry.get(name) for name in names})
