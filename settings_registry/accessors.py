"""
Accessor surface built on top of a Registry.

Two ways in:
    - build_accessors(registry): name -> Accessors dispatch table
    - Settings subclasses with Var descriptors, one Registry per subclass
"""

from typing import Any, Callable, Dict, Mapping, NamedTuple, Optional, Union

from settings_registry.registry import Registry
from settings_registry.validation import Validator
from settings_registry.variables import Reader, VarType, Writer


class Accessors(NamedTuple):
    get: Callable[[], Any]
    set: Callable[[Any], None]
    is_present: Callable[[], bool]
    # Only built for boolean variables
    is_enabled: Optional[Callable[[], bool]] = None


def accessors_for(registry: Registry, name: str) -> Accessors:
    spec = registry.spec(name)
    is_enabled = None
    if spec.type is VarType.BOOLEAN:
        def is_enabled() -> bool:
            return registry.is_enabled(name)

    return Accessors(
        get=lambda: registry.get(name),
        set=lambda value: registry.set(name, value),
        is_present=lambda: registry.is_present(name),
        is_enabled=is_enabled,
    )


def build_accessors(registry: Registry) -> Dict[str, Accessors]:
    return {name: accessors_for(registry, name) for name in registry}


class Var:
    """
    Declares one variable on a Settings subclass.

    Reading the attribute on an instance resolves the value; assigning to
    it goes through validation and the writer.
    """

    def __init__(
        self,
        type: Union[VarType, str] = VarType.STRING,
        default: Any = None,
        validates: Optional[Mapping[str, Any]] = None,
        reader: Optional[Reader] = None,
        writer: Optional[Writer] = None,
    ):
        self.type = type
        self.default = default
        self.validates = validates
        self.reader = reader
        self.writer = writer
        self.name: Optional[str] = None

    def __set_name__(self, owner, name):
        self.name = name

    def __get__(self, instance, owner):
        if instance is None:
            return self
        return owner.registry.get(self.name)

    def __set__(self, instance, value):
        type(instance).registry.set(self.name, value)

    def declare_on(self, registry: Registry) -> None:
        registry.declare(
            self.name,
            type=self.type,
            default=self.default,
            validates=self.validates,
            reader=self.reader,
            writer=self.writer,
        )


class Settings:
    """
    Base class for declarative settings.

    Each subclass gets its own Registry when the class is created:

        class AppSettings(Settings, validator=PydanticValidator()):
            port = Var("integer", default=3000)
            debug = Var("boolean", default=False)

        settings = AppSettings()
        settings.port            # 3000 unless PORT is set
        settings.enabled("debug")
    """

    registry: Registry

    def __init_subclass__(
        cls,
        validator: Optional[Validator] = None,
        env: Optional[Mapping[str, str]] = None,
        **kwargs,
    ):
        super().__init_subclass__(**kwargs)
        cls.registry = Registry(validator=validator, env=env)
        # Walk the MRO base-first so overrides in subclasses win
        for klass in reversed(cls.__mro__):
            for attr in vars(klass).values():
                if isinstance(attr, Var):
                    attr.declare_on(cls.registry)

    @classmethod
    def default_reader(cls, reader: Reader) -> Reader:
        return cls.registry.set_default_reader(reader)

    @classmethod
    def default_writer(cls, writer: Writer) -> Writer:
        return cls.registry.set_default_writer(writer)

    @classmethod
    def validate(cls) -> None:
        cls.registry.validate_all()

    @classmethod
    def accessors(cls) -> Dict[str, Accessors]:
        return build_accessors(cls.registry)

    def present(self, name: str) -> bool:
        return self.registry.is_present(name)

    def enabled(self, name: str) -> bool:
        return self.registry.is_enabled(name)

    def to_dict(self) -> Dict[str, Any]:
        return self.registry.all()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({', '.join(self.registry)})"
