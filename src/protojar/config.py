"""Configuration for a protojar run.

Settings come from three places, later ones winning:

1. ``protojar.ini`` in the project root, section ``[protojar]``
2. The ``PROTOJAR_PROTOC`` environment variable (compiler executable only)
3. Explicit overrides, normally the command-line flags

Example protojar.ini:

    [protojar]
    sources =
        src/main/proto/orders.proto
        src/main/proto/customers.proto
    include_paths = src/main/proto, target/protos
    language = java
    clear = true
"""

import configparser
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional

from .runner import DEFAULT_PROTOC

CONFIG_FILENAME = "protojar.ini"
CONFIG_SECTION = "protojar"
PROTOC_ENV_VAR = "PROTOJAR_PROTOC"


class ConfigError(Exception):
    """Raised when configuration values are malformed."""

    pass


@dataclass(frozen=True)
class ProtocConfig:
    """All options of a run.

    Attributes:
        clear: Clear the staging directory before the first extraction
        verbose: Emit informational/diagnostic messages
        always_extract: Scan and stage archives even with no sources configured
        output: Output directory, project-relative (None = src/main/<language>/)
        protoc: Compiler executable name or path
        sources: Project-relative schema source files
        include_paths: Project-relative include directories (empty = defaults)
        language: Code generator, selects the --<language>_out flag
        timeout: Seconds before the compiler is killed (None = no limit)
    """

    clear: bool = True
    verbose: bool = False
    always_extract: bool = False
    output: Optional[str] = None
    protoc: str = DEFAULT_PROTOC
    sources: tuple[str, ...] = ()
    include_paths: tuple[str, ...] = ()
    language: str = "java"
    timeout: Optional[float] = None

    @property
    def output_directory(self) -> str:
        """Configured output directory, or the language default."""
        if self.output:
            return self.output
        return f"src/main/{self.language}/"


_BOOL_KEYS = {"clear", "verbose", "always_extract"}
_LIST_KEYS = {"sources", "include_paths"}
_KNOWN_KEYS = {f.name for f in fields(ProtocConfig)}


def split_list(value: str) -> tuple[str, ...]:
    """Split a newline and/or comma separated ini value."""
    items = []
    for line in value.splitlines():
        items.extend(part.strip() for part in line.split(","))
    return tuple(item for item in items if item)


def _parse_timeout(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"timeout must be a number of seconds, got {value!r}")
    if timeout <= 0:
        raise ConfigError(f"timeout must be positive, got {value!r}")
    return timeout


def read_ini(ini_path: Path) -> dict[str, Any]:
    """Read the [protojar] section of an ini file.

    Args:
        ini_path: Path to the ini file

    Returns:
        Parsed values keyed by ProtocConfig field name (missing file = empty)

    Raises:
        ConfigError: If the file is malformed or holds unknown/invalid keys
    """
    if not ini_path.is_file():
        return {}

    # Paths may legitimately contain '%'
    parser = configparser.ConfigParser(interpolation=None)
    try:
        parser.read(ini_path, encoding="utf-8")
    except configparser.Error as e:
        raise ConfigError(f"Could not parse {ini_path}: {e}")

    if not parser.has_section(CONFIG_SECTION):
        return {}

    section = parser[CONFIG_SECTION]
    values: dict[str, Any] = {}
    for key in section:
        if key not in _KNOWN_KEYS:
            raise ConfigError(f"Unknown option '{key}' in {ini_path}")
        if key in _BOOL_KEYS:
            try:
                values[key] = section.getboolean(key)
            except ValueError:
                raise ConfigError(f"Option '{key}' in {ini_path} must be a boolean, got {section[key]!r}")
        elif key in _LIST_KEYS:
            values[key] = split_list(section[key])
        elif key == "timeout":
            values[key] = _parse_timeout(section[key])
        else:
            values[key] = section[key].strip() or None
    return values


def load_config(project_dir: Path, overrides: Optional[dict[str, Any]] = None) -> ProtocConfig:
    """Build the effective configuration for a project.

    Args:
        project_dir: Project root holding the optional protojar.ini
        overrides: Field values taking precedence; None values are ignored

    Returns:
        Effective ProtocConfig

    Raises:
        ConfigError: If any value is invalid
    """
    values = read_ini(project_dir / CONFIG_FILENAME)

    env_protoc = os.environ.get(PROTOC_ENV_VAR)
    if env_protoc:
        values["protoc"] = env_protoc

    for key, value in (overrides or {}).items():
        if key not in _KNOWN_KEYS:
            raise ConfigError(f"Unknown option '{key}'")
        if value is None:
            continue
        if key in _LIST_KEYS:
            value = tuple(value)
        elif key == "timeout":
            value = _parse_timeout(value)
        values[key] = value

    config = replace(ProtocConfig(), **{k: v for k, v in values.items() if v is not None})
    if not config.language.isidentifier():
        raise ConfigError(f"language must be a plain generator name, got {config.language!r}")
    return config
