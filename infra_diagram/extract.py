# infra_diagram/extract.py
"""Heuristic extraction of `resource` declarations from Bicep source.

This is not a Bicep parser. Declarations are found with a regex and their
property blocks with a brace scan that tolerates unbalanced input.
"""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional

from .config import DiagramConfig
from .model import ResourceNode, Resources

logger = logging.getLogger(__name__)

RESOURCE_DECL_RE = re.compile(r"\bresource\s+(\w+)\s+'([^']+)'")
NEXT_DECL_RE = re.compile(r"^[ \t]*resource\s", re.MULTILINE)


def find_infra_file(template_path: Path, cfg: Optional[DiagramConfig] = None) -> Optional[Path]:
    """Locate the infrastructure source file for a template.

    Prefers `infra/main.bicep`; otherwise the first `*.bicep` in `infra/`
    (sorted by name so the choice is deterministic).
    """
    cfg = cfg or DiagramConfig()
    infra_dir = template_path / cfg.infra_dir

    main = infra_dir / cfg.main_file
    try:
        if main.is_file():
            return main

        candidates = sorted(
            p for p in infra_dir.iterdir() if p.is_file() and p.name.endswith(cfg.source_suffix)
        )
    except OSError as e:
        logger.warning("could not scan %s: %s", infra_dir, e)
        return None

    return candidates[0] if candidates else None


def _next_declaration(text: str, start: int) -> int:
    """Offset of the next line-start `resource` declaration after `start`."""
    m = NEXT_DECL_RE.search(text, start + 1)
    return m.start() if m else len(text)


def _scan_block(text: str, start: int, end: int) -> Optional[str]:
    """Return the text inside the brace-balanced block opening at `start`.

    Braces inside quoted strings and `//` or `/* */` comments are ignored.
    Returns None if the block does not close before `end`.
    """
    depth = 0
    quote: Optional[str] = None
    i = start
    while i < end:
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif text.startswith("//", i):
            newline = text.find("\n", i, end)
            i = end if newline == -1 else newline
            continue
        elif text.startswith("/*", i):
            close = text.find("*/", i + 2, end)
            i = end if close == -1 else close + 2
            continue
        elif ch in ("'", '"'):
            quote = ch
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start + 1 : i]
        i += 1
    return None


def extract_body(text: str, resource_id: str) -> Optional[str]:
    """Property block of the first declaration of `resource_id`, if any."""
    # The header may not run into the next declaration.
    header = re.search(
        rf"\bresource\s+{re.escape(resource_id)}\s+'[^']+'(?:(?!\bresource\s)[^{{])*\{{", text
    )
    if header is None:
        return None

    open_at = header.end() - 1
    end = _next_declaration(text, open_at)
    body = _scan_block(text, open_at, end)
    if body is not None:
        return body

    # Unbalanced: settle for everything up to the first closing brace, never
    # past the next declaration.
    segment = text[open_at + 1 : end]
    close = segment.find("}")
    return segment if close == -1 else segment[:close]


def extract_resources(text: str) -> Resources:
    """Map resource id -> node with `resource_type` and `body` populated."""
    nodes: Resources = {}
    for match in RESOURCE_DECL_RE.finditer(text):
        resource_id, resource_type = match.group(1), match.group(2)
        if resource_id in nodes or not resource_type.strip():
            continue
        nodes[resource_id] = ResourceNode(id=resource_id, resource_type=resource_type)

    for resource_id, node in nodes.items():
        node.body = extract_body(text, resource_id)

    return nodes


def load_resources(
    template_path: Path, cfg: Optional[DiagramConfig] = None
) -> tuple[Optional[Path], Resources]:
    """Find, read and extract the template's infrastructure file.

    Never raises: a missing file or I/O error yields an empty node set.
    """
    source = find_infra_file(template_path, cfg)
    if source is None:
        logger.info("no infrastructure file found under %s", template_path)
        return None, {}

    try:
        text = source.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("could not read %s: %s", source, e)
        return source, {}

    nodes = extract_resources(text)
    logger.debug("extracted %d resource(s) from %s", len(nodes), source)
    return source, nodes
