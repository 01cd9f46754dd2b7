# infra_diagram/config.py
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional

from .constants import (
    ARTIFACT_PREFIX,
    HOSTED_COMPUTE_TYPES,
    IMAGES_DIR,
    INFRA_DIR,
    INFRA_SUFFIX,
    LATEST_ARTIFACT,
    MAIN_INFRA_FILE,
    MMDC_TIMEOUT_DEFAULT,
    PLAN_ID,
    README_FILE,
    SERVER_FARM_PROPERTY,
    SERVICE_TAG_KEY,
)
from .io import _load_yaml_mapping


@dataclass(frozen=True)
class DiagramConfig:
    """Conventions used by extraction, inference, rendering and insertion.

    Defaults match the azd template layout; a YAML file can override any of
    them (see `load_config`).
    """

    infra_dir: str = INFRA_DIR
    main_file: str = MAIN_INFRA_FILE
    source_suffix: str = INFRA_SUFFIX
    readme_file: str = README_FILE
    images_dir: str = IMAGES_DIR
    latest_artifact: str = LATEST_ARTIFACT
    artifact_prefix: str = ARTIFACT_PREFIX

    plan_id: str = PLAN_ID
    server_farm_property: str = SERVER_FARM_PROPERTY
    hosted_compute_types: tuple[str, ...] = HOSTED_COMPUTE_TYPES
    service_tag_key: str = SERVICE_TAG_KEY

    # Real renderer (mermaid-cli) is opt-in; the copy/placeholder fallbacks
    # always run.
    use_mmdc: bool = False
    mmdc_timeout: int = MMDC_TIMEOUT_DEFAULT


def _coerce(name: str, value: Any, default: Any) -> Any:
    if isinstance(default, bool):
        if not isinstance(value, bool):
            raise ValueError(f"config key {name!r} must be a boolean, got {value!r}")
        return value
    if isinstance(default, int):
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValueError(f"config key {name!r} must be a positive integer, got {value!r}")
        return value
    if isinstance(default, tuple):
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list) or not all(isinstance(v, str) and v for v in value):
            raise ValueError(f"config key {name!r} must be a list of strings")
        return tuple(value)
    if not isinstance(value, str) or not value:
        raise ValueError(f"config key {name!r} must be a non-empty string, got {value!r}")
    return value


def config_from_mapping(data: dict[str, Any], base: Optional[DiagramConfig] = None) -> DiagramConfig:
    """Build a config from a mapping, rejecting unknown keys."""
    base = base or DiagramConfig()
    known = {f.name for f in fields(DiagramConfig)}

    unknown = sorted(k for k in data if k not in known)
    if unknown:
        raise ValueError(f"Unknown config key(s): {', '.join(unknown)}")

    overrides = {k: _coerce(k, v, getattr(base, k)) for k, v in data.items()}
    return replace(base, **overrides)


def load_config(path: Optional[Path]) -> DiagramConfig:
    """Load a YAML config file; `None` yields the defaults."""
    if path is None:
        return DiagramConfig()
    if not path.exists():
        raise FileNotFoundError(str(path))

    data = _load_yaml_mapping(path)
    # Allow the settings to live under a top-level `diagram:` key.
    section = data["diagram"] if set(data) == {"diagram"} else data
    if not isinstance(section, dict):
        raise TypeError(f"`diagram` section must be a mapping in {path}")
    return config_from_mapping(section)
