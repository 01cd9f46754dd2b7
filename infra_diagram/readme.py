# infra_diagram/readme.py
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional

from .config import DiagramConfig
from .constants import DIAGRAM_HEADING, GENERATED_NOTE
from .diagram import generate_mermaid_from_infra
from .io import read_text
from .mermaid_fmt import has_mermaid_fence, mermaid_block
from .render import generate_png_for_document

logger = logging.getLogger(__name__)

ARCHITECTURE_HEADING_RE = re.compile(
    r"^#{1,6}[ \t]+Architecture(?:[ \t]+Diagram)?[ \t]*(?:\n|\Z)", re.IGNORECASE | re.MULTILINE
)
REQUIREMENTS_HEADING_RE = re.compile(
    r"^#{1,6}[ \t]+Requirements[ \t]*(?:\n|\Z)", re.IGNORECASE | re.MULTILINE
)


def diagram_section(diagram: str, image_name: Optional[str] = None, images_dir: str = "images") -> str:
    """Markdown body placed under the architecture heading."""
    fenced = mermaid_block(diagram)
    if image_name:
        body = (
            f"![Architecture Diagram]({images_dir}/{image_name})\n\n"
            "<details>\n"
            "<summary>Mermaid source</summary>\n\n"
            f"{fenced}\n"
            "</details>\n"
        )
    else:
        body = fenced
    return f"\n{body}\n{GENERATED_NOTE}\n\n"


def insert_diagram_text(
    content: str,
    diagram: str,
    image_name: Optional[str] = None,
    images_dir: str = "images",
) -> Optional[str]:
    """Return `content` with the diagram inserted, or None if one is present.

    Placement, first match wins: after the first Architecture heading; as a
    new section before the first Requirements heading; at the end.
    """
    if has_mermaid_fence(content):
        return None

    section = diagram_section(diagram, image_name, images_dir)

    heading = ARCHITECTURE_HEADING_RE.search(content)
    if heading:
        end = heading.end()
        prefix = content[:end] if content[:end].endswith("\n") else content[:end] + "\n"
        return prefix + section + content[end:].lstrip("\n")

    requirements = REQUIREMENTS_HEADING_RE.search(content)
    if requirements:
        start = requirements.start()
        return content[:start] + f"## {DIAGRAM_HEADING}\n" + section + content[start:]

    if content and not content.endswith("\n"):
        content += "\n"
    return content + f"\n## {DIAGRAM_HEADING}\n" + section.rstrip("\n") + "\n"


def check_for_mermaid_diagram(readme_path: Path) -> bool:
    """True if the README already contains a Mermaid block; False on read errors."""
    content = read_text(readme_path)
    return content is not None and has_mermaid_fence(content)


def insert_mermaid_diagram(
    readme_path: Path,
    diagram: str,
    cfg: Optional[DiagramConfig] = None,
    *,
    render: bool = True,
) -> bool:
    """Insert `diagram` into the README at most once.

    Returns True if the file was rewritten. An existing diagram or any I/O
    error yields False; nothing is written in either case.
    """
    cfg = cfg or DiagramConfig()
    content = read_text(readme_path)
    if content is None:
        return False

    if has_mermaid_fence(content):
        logger.info("%s already contains a mermaid diagram; skipping", readme_path)
        return False

    image_name = generate_png_for_document(diagram, readme_path, cfg) if render else None
    updated = insert_diagram_text(content, diagram, image_name, cfg.images_dir)
    if updated is None:
        return False

    try:
        readme_path.write_text(updated, encoding="utf-8")
    except OSError as e:
        logger.error("error inserting mermaid diagram into %s: %s", readme_path, e)
        return False
    return True


def ensure_architecture_diagram(
    template_path: Path, cfg: Optional[DiagramConfig] = None, *, render: bool = True
) -> bool:
    """Add a generated diagram to the template README if it lacks one."""
    cfg = cfg or DiagramConfig()
    readme_path = template_path / cfg.readme_file
    if not readme_path.is_file():
        logger.warning("missing %s in %s", cfg.readme_file, template_path)
        return False
    if check_for_mermaid_diagram(readme_path):
        return False

    result = generate_mermaid_from_infra(template_path, cfg)
    return insert_mermaid_diagram(readme_path, result.diagram, cfg, render=render)
