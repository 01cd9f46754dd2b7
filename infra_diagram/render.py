# infra_diagram/render.py
"""Mermaid diagram rendering: source text -> PNG artifact on disk.

Strategies are tried in order until one produces the target file:
1. mmdc (mermaid-cli), when enabled and installed
2. copy of an existing full-resolution `diagram.png`
3. a fixed 1x1 placeholder PNG

The Mermaid source is always saved next to the artifact as `<name>.mmd`.
"""
from __future__ import annotations

import base64
import json
import logging
import shutil
import subprocess
import tempfile
import time
from functools import partial
from pathlib import Path
from typing import Callable, Optional, Sequence

from .config import DiagramConfig
from .constants import ARTIFACT_SUFFIX, PLACEHOLDER_PNG_B64, SOURCE_SUFFIX

logger = logging.getLogger(__name__)

# (diagram, output_dir, target) -> True if `target` was written.
Strategy = Callable[[str, Path, Path], bool]

PLACEHOLDER_PNG = base64.b64decode(PLACEHOLDER_PNG_B64)

_mmdc_path: Optional[str] = None
_mmdc_checked = False


def _find_mmdc() -> Optional[str]:
    """Find mmdc binary, caching the result."""
    global _mmdc_path, _mmdc_checked
    if not _mmdc_checked:
        _mmdc_path = shutil.which("mmdc")
        _mmdc_checked = True
    return _mmdc_path


def render_with_mmdc(diagram: str, output_dir: Path, target: Path, *, timeout: int = 30) -> bool:
    """Render using mermaid-cli (mmdc) in a scratch directory."""
    mmdc = _find_mmdc()
    if mmdc is None:
        return False

    with tempfile.TemporaryDirectory(prefix="infra_diagram_") as tmpdir:
        tmp = Path(tmpdir)
        input_path = tmp / "input.mmd"
        output_path = tmp / "output.png"
        config_path = tmp / "puppeteer.json"

        input_path.write_text(diagram, encoding="utf-8")
        # no-sandbox for containers
        config_path.write_text(
            json.dumps({"args": ["--no-sandbox", "--disable-setuid-sandbox"]}),
            encoding="utf-8",
        )

        cmd = [
            mmdc,
            "-i", str(input_path),
            "-o", str(output_path),
            "-b", "white",
            "-p", str(config_path),
            "--quiet",
        ]
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
        except (subprocess.TimeoutExpired, OSError) as e:
            logger.debug("mmdc execution error: %s", e)
            return False

        if proc.returncode != 0 or not output_path.exists():
            logger.debug("mmdc failed: %s", proc.stderr)
            return False

        shutil.copyfile(output_path, target)
    return True


def copy_latest_artifact(
    diagram: str, output_dir: Path, target: Path, *, latest_name: str = "diagram.png"
) -> bool:
    """Duplicate a previously rendered `diagram.png` under the new name."""
    latest = output_dir / latest_name
    if not latest.is_file():
        return False
    try:
        shutil.copyfile(latest, target)
    except OSError as e:
        logger.warning("failed to copy existing diagram %s: %s; creating a placeholder", latest, e)
        return False
    logger.info("copied %s to %s", latest.name, target.name)
    return True


def write_placeholder_artifact(diagram: str, output_dir: Path, target: Path) -> bool:
    try:
        target.write_bytes(PLACEHOLDER_PNG)
    except OSError as e:
        logger.warning("failed to write placeholder PNG %s: %s", target, e)
        return False
    logger.info("created placeholder PNG %s", target.name)
    return True


def default_strategies(cfg: DiagramConfig) -> tuple[Strategy, ...]:
    strategies: list[Strategy] = []
    if cfg.use_mmdc:
        strategies.append(partial(render_with_mmdc, timeout=cfg.mmdc_timeout))
    strategies.append(partial(copy_latest_artifact, latest_name=cfg.latest_artifact))
    strategies.append(write_placeholder_artifact)
    return tuple(strategies)


def unique_artifact_name(output_dir: Path, prefix: str) -> str:
    """`<prefix>-<epoch ms>.png`, bumped until it does not collide."""
    stamp = time.time_ns() // 1_000_000
    while True:
        name = f"{prefix}-{stamp}{ARTIFACT_SUFFIX}"
        if not (output_dir / name).exists() and not (
            output_dir / f"{prefix}-{stamp}{SOURCE_SUFFIX}"
        ).exists():
            return name
        stamp += 1


def save_diagram_source(diagram: str, artifact: Path) -> Optional[Path]:
    source_path = artifact.with_suffix(SOURCE_SUFFIX)
    try:
        source_path.write_text(diagram, encoding="utf-8")
    except (OSError, ValueError) as e:
        logger.warning("failed to save mermaid text file %s: %s", source_path, e)
        return None
    return source_path


def render_mermaid_to_png(
    diagram: str,
    output_dir: Path,
    cfg: Optional[DiagramConfig] = None,
    strategies: Optional[Sequence[Strategy]] = None,
) -> Optional[str]:
    """Produce a PNG artifact for `diagram` inside `output_dir`.

    Returns the artifact's file name (not a path), or None if the output
    directory cannot be created or no strategy succeeded. Never raises for
    I/O or encoding problems.
    """
    cfg = cfg or DiagramConfig()
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error("cannot create output directory %s: %s", output_dir, e)
        return None

    name = unique_artifact_name(output_dir, cfg.artifact_prefix)
    target = output_dir / name

    chain = default_strategies(cfg) if strategies is None else tuple(strategies)
    for strategy in chain:
        try:
            if strategy(diagram, output_dir, target):
                break
        except (OSError, ValueError) as e:
            logger.warning("render strategy failed: %s", e)
    else:
        logger.error("no render strategy produced %s", target)
        return None

    save_diagram_source(diagram, target)
    return name


def generate_png_for_document(
    diagram: str, document_path: Path, cfg: Optional[DiagramConfig] = None
) -> Optional[str]:
    """Render into the `images/` directory next to a README."""
    cfg = cfg or DiagramConfig()
    return render_mermaid_to_png(diagram, document_path.parent / cfg.images_dir, cfg)
