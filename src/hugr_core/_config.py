"""Configuration loading from pyproject.toml."""

import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, cast

from ._errors import HugrError

logger = logging.getLogger(__name__)

type SerializationFormat = Literal["json", "toml"]

_SECTION = "hugr-core"
_FORMATS: tuple[SerializationFormat, ...] = ("json", "toml")


class ConfigError(HugrError):
    """Error in hugr-core configuration."""


@dataclass(slots=True, frozen=True)
class HugrConfig:
    """Configuration loaded from `[tool.hugr-core]` in pyproject.toml.

    Attributes:
        extension_inference: Run extension inference in `finalize`.
        check_extensions: Check declared extension requirements when validating.
        serialization_format: Default format for `save_hugr` when the path
            suffix does not decide it.
        project_root: Directory containing the pyproject.toml, if any.

    """

    extension_inference: bool = True
    check_extensions: bool = True
    serialization_format: SerializationFormat = "json"
    project_root: Path | None = None


def find_pyproject_toml(start_dir: Path | None = None) -> Path | None:
    """Find pyproject.toml by walking up from start_dir.

    Args:
        start_dir: Starting directory. Defaults to current working directory.

    Returns:
        Path to pyproject.toml if found, None otherwise.

    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()

    while True:
        candidate = current / "pyproject.toml"
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            # Reached filesystem root
            return None
        current = parent


def _parse_bool(table: dict[str, object], key: str, default: bool) -> bool:  # noqa: FBT001
    if key not in table:
        return default
    value = table[key]
    if not isinstance(value, bool):
        msg = f"Invalid [tool.{_SECTION}].{key}: expected boolean, got {value!r}"
        raise ConfigError(msg)
    return value


def parse_config(table: dict[str, object], project_root: Path | None = None) -> HugrConfig:
    """Build a HugrConfig from the contents of a `[tool.hugr-core]` table.

    Raises:
        ConfigError: If a value has the wrong type or an unknown key is present.

    """
    known = {"extension-inference", "check-extensions", "serialization-format"}
    unknown = sorted(set(table) - known)
    if unknown:
        msg = f"Unknown keys in [tool.{_SECTION}]: {', '.join(unknown)}"
        raise ConfigError(msg)

    fmt = table.get("serialization-format", "json")
    if fmt not in _FORMATS:
        msg = f"Invalid [tool.{_SECTION}].serialization-format: expected one of {_FORMATS}, got {fmt!r}"
        raise ConfigError(msg)

    return HugrConfig(
        extension_inference=_parse_bool(table, "extension-inference", default=True),
        check_extensions=_parse_bool(table, "check-extensions", default=True),
        serialization_format=cast("SerializationFormat", fmt),
        project_root=project_root,
    )


def load_config(pyproject_path: Path) -> HugrConfig:
    """Load and validate [tool.hugr-core] config from pyproject.toml.

    Args:
        pyproject_path: Path to pyproject.toml

    Returns:
        Parsed HugrConfig

    Raises:
        ConfigError: If the configuration is invalid

    """
    project_root = pyproject_path.parent

    with pyproject_path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {pyproject_path}: {e}"
            raise ConfigError(msg) from e

    section = data.get("tool", {}).get(_SECTION, {})
    if not isinstance(section, dict):
        msg = f"Invalid [tool.{_SECTION}]: expected a table"
        raise ConfigError(msg)
    if not section:
        # No [tool.hugr-core] section - defaults
        return HugrConfig(project_root=project_root)

    config = parse_config(section, project_root)
    logger.debug("Loaded config from %s: %s", pyproject_path, config)
    return config


def get_config(start_dir: Path | None = None) -> HugrConfig:
    """Get config from pyproject.toml in start_dir (default: cwd) or its parents.

    Returns:
        HugrConfig (defaults if no pyproject.toml or no [tool.hugr-core] section)

    """
    pyproject_path = find_pyproject_toml(start_dir)
    if pyproject_path is None:
        return HugrConfig()
    return load_config(pyproject_path)
