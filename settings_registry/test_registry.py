"""
Tests for declaring, reading, writing and validating through a Registry
"""

import pytest

from settings_registry.errors import (
    ReadOnlyError,
    RuleDeclarationError,
    UnknownVariableError,
    ValidationError,
)
from settings_registry.registry import Registry
from settings_registry.storage import mapping_reader, mapping_writer
from settings_registry.variables import VarType


def _app_registry(env):
    registry = Registry(env=env)
    registry.declare("app_name", type="string", default="TestApp")
    registry.declare("port", type="integer", default=3000)
    registry.declare("debug", type="boolean", default=False)
    registry.declare("allowed_hosts", type="array", default=[])
    registry.declare("config", type="hash", default={})
    return registry


def test_declare_returns_spec():
    registry = Registry(env={})
    spec = registry.declare("database_url", validates={"presence": True})
    assert spec.type is VarType.STRING
    assert spec.storage_key == "DATABASE_URL"
    assert spec.display_name == "Database url"
    assert "database_url" in registry
    assert len(registry) == 1


def test_get_coerces_or_defaults():
    env = {}
    registry = _app_registry(env)
    assert registry.get("port") == 3000
    assert registry.get("app_name") == "TestApp"

    env.update({
        "PORT": "5000",
        "DEBUG": "yes",
        "ALLOWED_HOSTS": "host1, host2 , host3",
        "CONFIG": '{"timeout": 30}',
    })
    assert registry.get("port") == 5000
    assert isinstance(registry.get("port"), int)
    assert registry.get("debug") is True
    assert registry.get("allowed_hosts") == ["host1", "host2", "host3"]
    assert registry.get("config") == {"timeout": 30}


def test_default_is_not_coerced():
    registry = Registry(env={})
    registry.declare("port", type="integer", default="not-a-number")
    assert registry.get("port") == "not-a-number"


def test_environment_is_default_backend(monkeypatch):
    registry = Registry()
    registry.declare("registry_test_port", type="integer", default=1)
    monkeypatch.delenv("REGISTRY_TEST_PORT", raising=False)
    assert registry.get("registry_test_port") == 1
    monkeypatch.setenv("REGISTRY_TEST_PORT", "8080")
    assert registry.get("registry_test_port") == 8080


def test_unknown_variable():
    registry = Registry(env={})
    with pytest.raises(UnknownVariableError, match="port"):
        registry.get("port")
    with pytest.raises(UnknownVariableError):
        registry.set("port", 1)
    with pytest.raises(KeyError):
        registry.get("port")


def test_redeclare_last_wins():
    registry = Registry(env={})
    registry.declare("port", type="integer", default=3000)
    registry.declare("port", type="string", default="3001")
    assert registry.get("port") == "3001"
    assert len(registry) == 1


def test_read_only_by_default():
    env = {}
    registry = Registry(env=env)
    registry.declare("database_url", default="default_db")
    with pytest.raises(ReadOnlyError, match="Cannot write to 'database_url': variable is read-only"):
        registry.set("database_url", "new_url")
    assert env == {}


def test_variable_reader_takes_total_precedence():
    storage = {"API_KEY": "from_default"}
    registry = Registry(env={"API_KEY": "from_env", "TIMEOUT": "10"})
    registry.set_default_reader(mapping_reader(storage))
    registry.declare("api_key", default="fallback", reader=lambda key, spec: None)
    registry.declare("special_key", reader=lambda key, spec: "always_special")
    registry.declare("timeout", type="integer", default=30)

    # The variable reader answered None: default, no fallback to the default reader
    assert registry.get("api_key") == "fallback"
    assert registry.get("special_key") == "always_special"
    # Default reader replaces the environment entirely
    assert registry.get("timeout") == 30
    storage["TIMEOUT"] = "60"
    assert registry.get("timeout") == 60


def test_reader_receives_key_and_spec():
    seen = []

    def reader(key, spec):
        seen.append((key, spec.name, spec.type))
        return "1"

    registry = Registry(env={})
    registry.declare("feature_flag", type="boolean", reader=reader)
    assert registry.get("feature_flag") is True
    assert seen == [("FEATURE_FLAG", "feature_flag", VarType.BOOLEAN)]


def test_writers_precedence_and_raw_value():
    storage = {}
    registry = Registry(env={})
    registry.default_reader = mapping_reader(storage)
    registry.default_writer = mapping_writer(storage)
    registry.declare("feature_flag", type="boolean", default=False)
    registry.declare("special_key", writer=lambda key, value, spec: storage.__setitem__(f"CUSTOM_{key}", value))

    registry.set("feature_flag", True)
    assert storage["FEATURE_FLAG"] is True
    assert registry.get("feature_flag") is True

    registry.set("special_key", "special_value")
    assert storage["CUSTOM_SPECIAL_KEY"] == "special_value"
    assert "SPECIAL_KEY" not in storage


def test_invalid_set_never_reaches_writer():
    calls = []
    registry = Registry(env={})
    registry.declare("username", validates={"presence": True, "length": {"minimum": 3, "maximum": 20}},
                     writer=lambda key, value, spec: calls.append(value))

    with pytest.raises(ValidationError, match="can't be blank"):
        registry.set("username", "")
    with pytest.raises(ValidationError, match="Username can't be blank"):
        registry.set("username", None)
    with pytest.raises(ValidationError, match="too short"):
        registry.set("username", "ab")
    with pytest.raises(ValidationError, match="too long"):
        registry.set("username", "a" * 21)
    assert calls == []

    registry.set("username", "john")
    assert calls == ["john"]


def test_set_then_get_round_trip():
    storage = {}
    registry = Registry(env={})
    registry.declare("username", validates={"presence": True, "length": {"minimum": 3, "maximum": 20}},
                     reader=mapping_reader(storage), writer=mapping_writer(storage))
    registry.set("username", "john")
    assert registry.get("username") == "john"


def test_validation_with_default_writer():
    storage = {}
    registry = Registry(env={})
    registry.default_writer = mapping_writer(storage)
    registry.declare("username", validates={"presence": True, "length": {"minimum": 3}})
    with pytest.raises(ValidationError, match="too short"):
        registry.set("username", "ab")
    registry.set("username", "john")
    assert storage == {"USERNAME": "john"}


def test_no_rules_accepts_anything():
    storage = {}
    registry = Registry(env={})
    registry.declare("free_text", writer=mapping_writer(storage))
    for value in (None, "", "anything"):
        registry.set("free_text", value)
    assert storage["FREE_TEXT"] == "anything"


def test_validate_all_reports_every_variable():
    env = {"EMAIL": "invalid-email", "ENVIRONMENT": "staging"}
    registry = Registry(env=env)
    registry.declare("username", validates={"presence": True, "length": {"minimum": 3}})
    registry.declare("email", validates={"format": {"with": r"^[^@\s]+@[^@\s]+$"}})
    registry.declare("environment", validates={"inclusion": {"in": ["development", "test", "production"]}})
    registry.declare("port", type="integer", default=3000)

    with pytest.raises(ValidationError) as excinfo:
        registry.validate_all()
    assert excinfo.value.messages == [
        "Username can't be blank",
        "Email is invalid",
        "Environment is not included in the list",
    ]
    assert "Environment is not included in the list" in str(excinfo.value)
    assert list(registry.errors()) == ["username", "email", "environment"]

    env.update({"USERNAME": "john", "EMAIL": "test@example.com", "ENVIRONMENT": "production"})
    registry.validate_all()
    assert registry.errors() == {}


def test_all_snapshot():
    registry = _app_registry({"PORT": "8000"})
    assert registry.all() == {
        "app_name": "TestApp",
        "port": 8000,
        "debug": False,
        "allowed_hosts": [],
        "config": {},
    }
    assert registry.to_dict() == registry.all()


def test_presence_and_enabled_checks():
    env = {"APP_NAME": "", "DEBUG": "on"}
    registry = _app_registry(env)
    registry.declare("database_url")
    assert registry.is_present("app_name") is False
    assert registry.is_present("port") is True
    assert registry.is_present("database_url") is False
    assert registry.is_enabled("debug") is True
    with pytest.raises(TypeError):
        registry.is_enabled("port")


def test_unknown_rule_rejected_at_declare():
    registry = Registry(env={})
    with pytest.raises(RuleDeclarationError, match="uniqueness"):
        registry.declare("username", validates={"uniqueness": True})
    assert "username" not in registry


def test_unknown_type_rejected():
    registry = Registry(env={})
    with pytest.raises(ValueError, match="Unknown variable type"):
        registry.declare("port", type="decimal")


def test_malformed_rule_rejected_at_declare():
    registry = Registry(env={})
    with pytest.raises(RuleDeclarationError, match="Malformed parameters for 'username': length"):
        registry.declare("username", validates={"length": 5})
    assert "username" not in registry


def test_array_inclusion_validates_without_crashing():
    env = {"ALLOWED_HOSTS": "x"}
    registry = Registry(env=env)
    registry.declare("allowed_hosts", type="array", default=[], validates={"inclusion": {"in": {"x"}}})
    with pytest.raises(ValidationError, match="Allowed hosts is not included in the list"):
        registry.validate_all()
