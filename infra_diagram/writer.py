from __future__ import annotations

from pathlib import Path
from typing import Optional

from .mermaid_fmt import mermaid_block


def write_md(path: Path, title: str, diagram_code: str, source: Optional[Path] = None) -> None:
    """Write a titled Markdown page holding one Mermaid diagram.

    `source` (the infrastructure file the diagram came from) is noted under
    the title when given.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    provenance = f"Generated from `{source.as_posix()}`.\n\n" if source else ""
    path.write_text(f"# {title}\n\n{provenance}{mermaid_block(diagram_code)}", encoding="utf-8")
