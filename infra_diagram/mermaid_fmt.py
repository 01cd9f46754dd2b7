from __future__ import annotations

import html
import re

from .constants import MERMAID_FENCES

# Mermaid node IDs must be alphanumeric/underscore and must not start with a
# digit.
MERMAID_ID_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

FLOWCHART_HEADER = "graph TD"
LABEL_BREAK = "<br/>"


def mermaid_block(code: str) -> str:
    """Wrap Mermaid source in a Markdown Mermaid code fence."""
    return "```mermaid\n" + code.rstrip() + "\n```\n"


def has_mermaid_fence(text: str) -> bool:
    """True if the Markdown text already contains a Mermaid code fence."""
    return any(fence in text for fence in MERMAID_FENCES)


def mm_text(text: str) -> str:
    """Escape text for Mermaid labels."""
    normalized = re.sub(r"\s+", " ", html.unescape(str(text))).strip()
    return (
        normalized.replace("&", "#amp;")
        .replace("<", "#lt;")
        .replace(">", "#gt;")
        .replace('"', "#quot;")
        .replace("|", "#124;")
    )


def mm_label(*lines: str) -> str:
    """Escape each line and join them with Mermaid's HTML line break."""
    return LABEL_BREAK.join(mm_text(line) for line in lines if line)


def mm_flow_node(node_id: str, label: str) -> str:
    """Node line; `label` must already be escaped (see `mm_label`)."""
    return f'    {node_id}["{label}"]'


def mm_flow_edge(src: str, dst: str) -> str:
    return f"    {src} --> {dst}"
