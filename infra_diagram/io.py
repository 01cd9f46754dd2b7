# infra_diagram/io.py
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Optional

import yaml

from .constants import TEMPLATE_CONFIG_FILES

logger = logging.getLogger(__name__)


def _sanitize_yaml_for_pyyaml(raw: str) -> tuple[str, list[tuple[int, str, str]]]:
    """Return (sanitized_yaml, changes).

    Each change is (line_number_1_based, original_line, new_line).
    """
    changes: list[tuple[int, str, str]] = []
    out_lines: list[str] = []

    for i, line in enumerate(raw.splitlines(), start=1):
        match = re.match(
            r"^(\s*(?:-\s*)?(?:name|description|displayName|title|label|summary):\s*)(.+)$",
            line,
        )
        if not match:
            out_lines.append(line)
            continue

        prefix, value = match.group(1), match.group(2)

        # Already quoted or a block scalar.
        if value.startswith(("'", '"', "|", ">")):
            out_lines.append(line)
            continue

        # PyYAML rejects plain scalars containing ":" followed by whitespace or EOL.
        # Preserve any trailing inline comment (space-# ...).
        body, comment = value, ""
        m = re.match(r"^(.*?)(\s+#.*)$", value)
        if m:
            body, comment = m.group(1), m.group(2)

        if re.search(r":(?=\s|$)", body):
            escaped = body.replace("\\", "\\\\").replace('"', '\\"')
            new_line = f'{prefix}"{escaped}"{comment}'
            out_lines.append(new_line)
            if new_line != line:
                changes.append((i, line, new_line))
        else:
            out_lines.append(line)

    sanitized = "\n".join(out_lines) + ("\n" if raw.endswith("\n") else "")
    return sanitized, changes


def _load_yaml_mapping(path: Path) -> dict[str, Any]:
    raw = path.read_text(encoding="utf-8")

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError:
        sanitized, changes = _sanitize_yaml_for_pyyaml(raw)
        try:
            data = yaml.safe_load(sanitized)
        except yaml.YAMLError as e2:
            raise ValueError(f"Failed to parse YAML {path}: {e2}") from e2

        if changes:
            logger.warning(
                "parsed %s after sanitizing %d line(s); consider quoting values "
                "containing ':' followed by whitespace",
                path,
                len(changes),
            )
            for (ln, old, new) in changes[:10]:
                logger.warning("%s:%d: %s -> %s", path, ln, old.strip(), new.strip())

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise TypeError(
            f"Top-level YAML must be a mapping in {path}, got {type(data).__name__}"
        )

    return data


def find_template_config(template_path: Path) -> Optional[Path]:
    """Return azure.yaml (or the legacy azure-dev.yaml) if the template has one."""
    for filename in TEMPLATE_CONFIG_FILES:
        candidate = template_path / filename
        if candidate.is_file():
            return candidate
    return None


def load_template_config(template_path: Path) -> Optional[dict[str, Any]]:
    """Load the template's azure.yaml as a mapping.

    Returns None when the file is absent or unreadable; the problem is logged.
    """
    path = find_template_config(template_path)
    if path is None:
        return None

    try:
        return _load_yaml_mapping(path)
    except (OSError, UnicodeDecodeError, ValueError, TypeError) as e:
        logger.warning("could not load template config %s: %s", path, e)
        return None


def template_services(config: Optional[dict[str, Any]]) -> list[str]:
    """Service names declared under `services:` in azure.yaml, in file order."""
    if not config:
        return []
    services = config.get("services") or {}
    if not isinstance(services, dict):
        return []
    return [name for name in services if isinstance(name, str) and name]


def read_text(path: Path) -> Optional[str]:
    """Read a UTF-8 text file, logging and returning None on failure."""
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error("could not read %s: %s", path, e)
        return None
