"""Saving and loading encoded Hugrs to and from files."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any

import tomli_w

from ._config import ConfigError, HugrConfig
from ._errors import DeserializationError
from ._serialization import from_dict, from_json, to_dict, to_json

if TYPE_CHECKING:
    from ._config import SerializationFormat
    from ._extension import ExtensionRegistry
    from ._hugr import Hugr

logger = logging.getLogger(__name__)

_SUFFIXES: dict[str, SerializationFormat] = {".json": "json", ".toml": "toml"}


def _strip_none(value: Any) -> Any:  # noqa: ANN401
    """Drop None entries recursively (TOML has no null)."""
    if isinstance(value, dict):
        return {k: _strip_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, list | tuple):
        return [_strip_none(item) for item in value]
    return value


def _resolve_format(path: Path, fmt: SerializationFormat | None, config: HugrConfig | None) -> SerializationFormat:
    if fmt is not None:
        return fmt
    suffix_fmt = _SUFFIXES.get(path.suffix.lower())
    if suffix_fmt is not None:
        return suffix_fmt
    return (config or HugrConfig()).serialization_format


def save_hugr(
    hugr: Hugr,
    path: Path | str,
    fmt: SerializationFormat | None = None,
    config: HugrConfig | None = None,
) -> Path:
    """Write the encoded form of `hugr` to `path`.

    Args:
        hugr: The Hugr to save. It need not be valid.
        path: Output file.
        fmt: "json" or "toml". Defaults to the path suffix, then to the
            configured serialization format.
        config: Configuration supplying the fallback format.

    Returns:
        The path written.

    Raises:
        ConfigError: If `fmt` is not a known format.

    """
    path = Path(path)
    resolved = _resolve_format(path, fmt, config)
    match resolved:
        case "json":
            path.write_text(to_json(hugr, indent=2), encoding="utf-8")
        case "toml":
            with path.open("wb") as f:
                tomli_w.dump(_strip_none(to_dict(hugr)), f)
        case _:
            msg = f"Unknown serialization format: {resolved!r}"
            raise ConfigError(msg)
    logger.debug("Saved Hugr (%d nodes) to %s as %s", hugr.node_count, path, resolved)
    return path


def load_hugr(path: Path | str, registry: ExtensionRegistry) -> Hugr:
    """Read an encoded Hugr from `path`.

    Files ending in `.toml` are parsed as TOML; everything else as JSON.

    Raises:
        DeserializationError: If the file is not a valid encoded Hugr.
        UnsupportedVersion: If the file has an unknown format version.
        ExtensionNotFound: If it uses an extension not in `registry`.

    """
    path = Path(path)
    if path.suffix.lower() == ".toml":
        with path.open("rb") as f:
            try:
                data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                msg = f"Invalid TOML in {path}: {e}"
                raise DeserializationError(msg) from e
        hugr = from_dict(data, registry)
    else:
        hugr = from_json(path.read_bytes(), registry)
    logger.debug("Loaded Hugr (%d nodes) from %s", hugr.node_count, path)
    return hugr
