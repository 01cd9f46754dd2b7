# infra_diagram/analyze.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from .config import DiagramConfig
from .constants import APP_DIRS
from .diagram import generate_mermaid_from_infra
from .io import find_template_config, read_text

logger = logging.getLogger(__name__)


def _has_app_code(template_path: Path) -> bool:
    return any((template_path / d).is_dir() for d in APP_DIRS)


def analyze_template(
    template_path: Path, cfg: Optional[DiagramConfig] = None
) -> dict[str, Any]:
    """Summarise an azd template: layout, config text, advice and diagram.

    Returns `{"error": ...}` when the directory has no azure.yaml.
    """
    cfg = cfg or DiagramConfig()
    config_path = find_template_config(template_path)
    config_text = read_text(config_path) if config_path else None
    if config_text is None:
        return {"error": "Invalid template directory or missing azure.yaml file"}

    has_infra = (template_path / cfg.infra_dir).is_dir()
    has_app = _has_app_code(template_path)

    recommendations: list[str] = []
    if not has_infra:
        recommendations.append(
            f'Consider adding infrastructure as code in an "{cfg.infra_dir}/" directory'
        )
    if not has_app:
        recommendations.append('Consider adding application code in a "src/" or "app/" directory')

    result = generate_mermaid_from_infra(template_path, cfg)
    if has_infra and result.is_default:
        recommendations.append(
            f"No resources found in {cfg.infra_dir}/; the architecture diagram is a placeholder"
        )

    return {
        "has_infra": has_infra,
        "has_app": has_app,
        "config_file": config_text,
        "recommendations": recommendations,
        "diagram": result.diagram,
    }
