"""
Storage resolution chain and ready-made backends.

Reads: variable reader > registry default reader > environment lookup.
Writes: variable writer > registry default writer > ReadOnlyError.
Exactly one source is consulted per operation.
"""

import json
import logging
import os
from typing import Any, MutableMapping, Mapping, Optional, Tuple

from dotenv import dotenv_values, find_dotenv

from settings_registry.errors import ReadOnlyError
from settings_registry.variables import Reader, VariableSpec, Writer

logger = logging.getLogger(__name__)


class StorageChain:
    """Picks and runs the read/write source for a variable."""

    def __init__(self, env: Optional[Mapping[str, str]] = None):
        self.env = env
        self.default_reader: Optional[Reader] = None
        self.default_writer: Optional[Writer] = None

    @property
    def environ(self) -> Mapping[str, str]:
        # Resolved lazily so monkeypatched os.environ is honoured
        return os.environ if self.env is None else self.env

    def resolve_reader(self, spec: VariableSpec) -> Tuple[str, Reader]:
        if spec.reader is not None:
            return "variable", spec.reader
        if self.default_reader is not None:
            return "default", self.default_reader
        return "environment", environ_reader(self.environ)

    def resolve_writer(self, spec: VariableSpec) -> Tuple[str, Writer]:
        if spec.writer is not None:
            return "variable", spec.writer
        if self.default_writer is not None:
            return "default", self.default_writer
        raise ReadOnlyError(spec.name)

    def read(self, spec: VariableSpec) -> Any:
        """Raw value from the winning reader, None when absent"""
        source, reader = self.resolve_reader(spec)
        logger.debug("reading %s via %s reader", spec.storage_key, source)
        return reader(spec.storage_key, spec)

    def write(self, spec: VariableSpec, value: Any) -> None:
        source, writer = self.resolve_writer(spec)
        logger.debug("writing %s via %s writer", spec.storage_key, source)
        writer(spec.storage_key, value, spec)


def serialize(value: Any) -> str:
    """Render a typed value as text that coercion will read back."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value)
    return str(value)


def environ_reader(env: Optional[Mapping[str, str]] = None) -> Reader:
    def read(key: str, spec: VariableSpec) -> Optional[str]:
        source = os.environ if env is None else env
        return source.get(key)

    return read


def environ_writer(env: Optional[MutableMapping[str, str]] = None) -> Writer:
    """Explicit opt-in writer for the process environment; deleting on None."""
    def write(key: str, value: Any, spec: VariableSpec) -> None:
        target = os.environ if env is None else env
        if value is None:
            target.pop(key, None)
        else:
            target[key] = serialize(value)

    return write


def mapping_reader(mapping: Mapping[str, Any]) -> Reader:
    def read(key: str, spec: VariableSpec) -> Any:
        return mapping.get(key)

    return read


def mapping_writer(mapping: MutableMapping[str, Any]) -> Writer:
    """Stores the value as given, without serialization."""
    def write(key: str, value: Any, spec: VariableSpec) -> None:
        mapping[key] = value

    return write


def dotenv_reader(path: Optional[str] = None, override_environ: bool = False) -> Reader:
    """
    Reader backed by a .env file, re-read on every access.

    Args:
        path: .env file to read; found with find_dotenv() when omitted
        override_environ: prefer the file over os.environ when both define a key
    """
    def read(key: str, spec: VariableSpec) -> Optional[str]:
        values = dotenv_values(path or find_dotenv(usecwd=True))
        from_file = values.get(key)
        from_env = os.environ.get(key)
        if override_environ:
            return from_file if from_file is not None else from_env
        return from_env if from_env is not None else from_file

    return read
