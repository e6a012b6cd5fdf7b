"""
Exception types raised by the settings registry.
"""

from typing import Iterable, List


class SettingsError(Exception):
    """Base class for all registry errors."""


class UnknownVariableError(SettingsError, KeyError):
    """Raised when get/set references a name that was never declared."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown setting '{name}': declare it before use")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class ReadOnlyError(SettingsError):
    """Raised when a write has no writer to resolve to."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Cannot write to '{name}': variable is read-only. "
            "Provide a writer callback to enable writing."
        )


class ValidationError(SettingsError):
    """Raised when one or more values violate their declared rules."""

    def __init__(self, messages: Iterable[str]):
        self.messages: List[str] = list(messages)
        lines = [f"  {msg}" for msg in self.messages]
        super().__init__("Validation failed:\n" + "\n".join(lines))


class RuleDeclarationError(SettingsError):
    """Raised at declare time for rules the active validator cannot evaluate or whose parameters are malformed."""

    def __init__(self, name: str, rules: Iterable[str], reason: str = "Unsupported validation rule(s)"):
        self.name = name
        self.rules = sorted(rules)
        super().__init__(f"{reason} for '{name}': {', '.join(self.rules)}")
