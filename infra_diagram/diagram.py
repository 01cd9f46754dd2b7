# infra_diagram/diagram.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .config import DiagramConfig
from .extract import load_resources
from .infer import infer_dependencies, is_hosted_compute, references
from .mermaid_fmt import FLOWCHART_HEADER, mm_flow_edge, mm_flow_node, mm_label
from .model import DiagramResult, ResourceNode, Resources

logger = logging.getLogger(__name__)

# First match wins; keep the order (e.g. anything under Microsoft.Network must
# not shadow a more specific rule above it).
ICON_RULES: tuple[tuple[str, str], ...] = (
    ("Microsoft.Web/sites", "🌐"),
    ("Microsoft.App/containerApps", "🐳"),
    ("Microsoft.Functions/functionApps", "⚡"),
    ("Microsoft.KeyVault/vaults", "🔐"),
    ("Microsoft.Storage/storageAccounts", "💾"),
    ("Microsoft.Sql/servers", "🗄️"),
    ("Microsoft.DocumentDB", "🔄"),
    ("Microsoft.Insights/components", "📊"),
    ("Microsoft.Network", "🔌"),
)
DEFAULT_ICON = "📦"

DEFAULT_DIAGRAM = """graph TD
    User[👤 User] --> FrontEnd[🌐 Frontend]
    FrontEnd --> API[🔌 API Service]
    API --> Database[(🗄️ Database)]
    API --> Storage[💾 Storage]
    API --> KeyVault[🔐 Key Vault]
    note[This is a placeholder diagram. Replace with actual architecture.]"""


def icon_for(resource_type: str) -> str:
    for needle, icon in ICON_RULES:
        if needle in resource_type:
            return icon
    return DEFAULT_ICON


def create_default_mermaid_diagram() -> str:
    """Placeholder diagram used when no resources could be extracted."""
    return DEFAULT_DIAGRAM


def node_label(node: ResourceNode) -> str:
    first = f"{icon_for(node.resource_type)} {node.display_name}"
    second = node.short_type
    service = node.properties.get("service")
    if service:
        second = f"{second} ({service})"
    return mm_label(first, second)


def _connected(
    source: ResourceNode, serialized: str, target: ResourceNode, cfg: DiagramConfig
) -> bool:
    if target.id in source.connections:
        return True
    if references(serialized, target.id):
        return True
    if target.id == cfg.plan_id:
        if is_hosted_compute(source.resource_type, cfg):
            return True
        if cfg.server_farm_property in serialized:
            return True
    return False


def generate_mermaid_diagram(nodes: Resources, cfg: Optional[DiagramConfig] = None) -> str:
    """Render a node set as a `graph TD` flowchart.

    Pure and deterministic for a given insertion order. Edges are emitted at
    most once per ordered pair; connections to unknown ids are ignored.
    """
    cfg = cfg or DiagramConfig()
    lines: list[str] = [FLOWCHART_HEADER]

    for node_id, node in nodes.items():
        lines.append(mm_flow_node(node_id, node_label(node)))

    emitted: set[tuple[str, str]] = set()
    for source_id, source in nodes.items():
        serialized = source.serialize()
        for target_id, target in nodes.items():
            pair = (source_id, target_id)
            if source_id == target_id or pair in emitted:
                continue
            if _connected(source, serialized, target, cfg):
                emitted.add(pair)
                lines.append(mm_flow_edge(source_id, target_id))

    return "\n".join(lines) + "\n"


def generate_mermaid_from_infra(
    template_path: Path, cfg: Optional[DiagramConfig] = None
) -> DiagramResult:
    """Extract, infer and render the template's resource graph.

    Always returns a diagram; the placeholder is used when nothing was found.
    """
    cfg = cfg or DiagramConfig()
    source, nodes = load_resources(template_path, cfg)
    if not nodes:
        return DiagramResult(diagram=create_default_mermaid_diagram(), source=source)

    infer_dependencies(nodes, cfg)
    return DiagramResult(
        diagram=generate_mermaid_diagram(nodes, cfg), source=source, resources=nodes
    )
