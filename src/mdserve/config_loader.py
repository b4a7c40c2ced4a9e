"""Load ServeConfig from mdserve.toml / mdserve.yaml if present.

Merges file config with CLI kwargs. CLI overrides file.
"""

from __future__ import annotations

import dataclasses
from pathlib import Path

from mdserve._errors import ConfigError
from mdserve.config import ServeConfig

_KNOWN_KEYS = frozenset(
    f.name for f in dataclasses.fields(ServeConfig) if f.name != "root"
)


def load_config(root: Path, **overrides: object) -> ServeConfig:
    """Load ServeConfig for root, optionally merging mdserve.toml/yaml.

    Overrides whose value is ``None`` are ignored so that unset CLI flags
    do not mask file settings.

    Raises:
        ConfigError: If root is not an existing directory, or the config
            file is unreadable or names unknown keys.

    """
    root = Path(root)
    if not root.is_dir():
        msg = f"Directory does not exist: {root}"
        raise ConfigError(msg)

    file_config = _read_file_config(root)
    # Paths in the config file are relative to the served root.
    if isinstance(file_config.get("template_dir"), str):
        file_config["template_dir"] = root / str(file_config["template_dir"])
    merged = {**file_config, **{k: v for k, v in overrides.items() if v is not None}}

    unknown = sorted(set(merged) - _KNOWN_KEYS)
    if unknown:
        msg = f"Unknown config keys: {', '.join(unknown)}"
        raise ConfigError(msg)

    if "template_dir" in merged and not isinstance(merged["template_dir"], Path):
        merged["template_dir"] = Path(str(merged["template_dir"]))
    if "tracked_suffixes" in merged:
        value = merged["tracked_suffixes"]
        merged["tracked_suffixes"] = (value,) if isinstance(value, str) else tuple(value)

    try:
        return ServeConfig(root=root, **merged)
    except TypeError as exc:
        msg = f"Invalid configuration: {exc}"
        raise ConfigError(msg) from exc


def _read_file_config(root: Path) -> dict[str, object]:
    """Read config from toml/yaml if present. Returns empty dict otherwise."""
    toml_path = root / "mdserve.toml"
    if toml_path.is_file():
        return _parse_toml(toml_path)
    for name in ("mdserve.yaml", "mdserve.yml"):
        path = root / name
        if path.is_file():
            return _parse_yaml(path)
    return {}


def _parse_toml(path: Path) -> dict[str, object]:
    import tomllib

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        msg = f"Failed to read {path}: {exc}"
        raise ConfigError(msg) from exc
    return _flatten_section(data)


def _parse_yaml(path: Path) -> dict[str, object]:
    import yaml

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        msg = f"Failed to read {path}: {exc}"
        raise ConfigError(msg) from exc
    if not isinstance(data, dict):
        msg = f"{path}: expected a mapping at top level"
        raise ConfigError(msg)
    return _flatten_section(data)


def _flatten_section(data: dict[str, object]) -> dict[str, object]:
    """Extract mdserve.* keys into top-level config."""
    result: dict[str, object] = {}
    for k, v in data.items():
        if k != "mdserve":
            result[k] = v
    section = data.get("mdserve")
    if isinstance(section, dict):
        result.update(section)
    return result
