"""Engine settings loading and merging with built-in defaults."""

from __future__ import annotations

import yaml
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any


class EngineConfigError(Exception):
    """Raised when the engine settings file cannot be loaded or is invalid."""

    pass


@dataclass(frozen=True)
class EngineConfig:
    """Merged engine settings (built-in defaults + optional YAML overrides).

    Attributes:
        export_version: Version string written into export envelopes.
        export_description: Default description for export envelopes.
        known_implementations: Implementation tags the executor can run.
        template_variables: Placeholder names recognized in path templates.
        warn_self_loops: Warn when a step routes to itself.
        warn_missing_default_route: Warn when a routing step has no "default".
        warn_unused_models: Warn when a model config is never referenced.
        warn_empty_api_keys: Warn when a model config has no API key.
    """

    export_version: str = "1.2"
    export_description: str = "Content Pipeline Configuration"
    known_implementations: tuple[str, ...] = ("whisper", "chatgpt", "claude")
    template_variables: tuple[str, ...] = (
        "category",
        "filename",
        "timestamp",
        "date",
        "stepId",
    )
    warn_self_loops: bool = True
    warn_missing_default_route: bool = True
    warn_unused_models: bool = True
    warn_empty_api_keys: bool = True


def _load_yaml(path: Path) -> dict:
    """Load a YAML file; return empty dict if file missing, raise on invalid YAML."""
    if not path.exists():
        return {}
    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise EngineConfigError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise EngineConfigError(f"Error reading {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise EngineConfigError(f"Engine settings must be a YAML mapping: {path}")
    return data


def default_settings_path(base_dir: Path | None = None) -> Path:
    """Path to config/engine.yaml under base_dir (default: cwd)."""
    base_dir = base_dir or Path.cwd()
    return base_dir.resolve() / "config" / "engine.yaml"


def _str_tuple(value: Any, key: str) -> tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise EngineConfigError(f"Engine setting '{key}' must be a list of strings")
    return tuple(value)


def load_engine_config(path: Path | None = None) -> EngineConfig:
    """Load engine settings: built-in defaults plus overrides from YAML.

    Keys may be written with hyphens or underscores
    (``export-version`` or ``export_version``).

    Args:
        path: Settings file. If None, uses config/engine.yaml under cwd.
            A missing file yields the built-in defaults.

    Returns:
        EngineConfig with overrides applied.

    Raises:
        EngineConfigError: If the file is not valid YAML, not a mapping, or
            a value has the wrong type.
    """
    if path is None:
        path = default_settings_path()
    raw = _load_yaml(path)

    # Shallow merge; overrides with null values keep the default
    overrides = {
        str(key).replace("-", "_"): value
        for key, value in raw.items()
        if value is not None
    }
    defaults = EngineConfig()
    known_keys = set(EngineConfig.__dataclass_fields__)
    unknown = sorted(set(overrides) - known_keys)
    if unknown:
        raise EngineConfigError(f"Unknown engine settings: {', '.join(unknown)}")

    values: dict[str, Any] = {}
    for key, value in overrides.items():
        default = getattr(defaults, key)
        if isinstance(default, tuple):
            values[key] = _str_tuple(value, key)
        elif isinstance(default, bool):
            if not isinstance(value, bool):
                raise EngineConfigError(f"Engine setting '{key}' must be true or false")
            values[key] = value
        else:
            values[key] = str(value)

    return replace(defaults, **values)
