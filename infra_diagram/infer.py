# infra_diagram/infer.py
from __future__ import annotations

import re
from typing import Optional

from .config import DiagramConfig
from .model import ResourceNode, Resources

DEPENDS_ON_RE = re.compile(r"dependsOn\s*:\s*\[([^\]]*)\]", re.DOTALL)
NAME_RE = re.compile(r"name:\s*['\"]([^'\"]+)['\"]")
LINE_COMMENT_RE = re.compile(r"//[^\n]*")
BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)

REFERENCE_SUFFIXES: tuple[str, ...] = (".id", ".name", ".properties")


def _service_tag_re(tag_key: str) -> re.Pattern[str]:
    return re.compile(
        rf"tags:[\s\S]*?['\"]?{re.escape(tag_key)}['\"]?\s*:\s*['\"]([^'\"]+)['\"]"
    )


def parse_depends_on(body: str) -> list[str]:
    """Identifier tokens listed in every `dependsOn: [...]` of a block."""
    tokens: list[str] = []
    for match in DEPENDS_ON_RE.finditer(body):
        inner = BLOCK_COMMENT_RE.sub("", match.group(1))
        inner = LINE_COMMENT_RE.sub("", inner)
        for raw in re.split(r"[,\n]", inner):
            token = raw.strip().rstrip(",;")
            if token:
                tokens.append(token)
    return tokens


def references(body: str, other_id: str) -> bool:
    """True if the text mentions `<other_id>.id|.name|.properties`."""
    return any(f"{other_id}{suffix}" in body for suffix in REFERENCE_SUFFIXES)


def is_hosted_compute(resource_type: str, cfg: DiagramConfig) -> bool:
    return any(t in resource_type for t in cfg.hosted_compute_types)


def _infer_node(node: ResourceNode, nodes: Resources, cfg: DiagramConfig) -> None:
    body = node.body
    if body is None:
        return

    node.connections.extend(parse_depends_on(body))

    for other_id in nodes:
        if other_id != node.id and references(body, other_id):
            node.connections.append(other_id)

    if cfg.plan_id in nodes and node.id != cfg.plan_id:
        if is_hosted_compute(node.resource_type, cfg) or cfg.server_farm_property in body:
            node.connections.append(cfg.plan_id)

    name_match = NAME_RE.search(body)
    if name_match:
        node.properties["name"] = name_match.group(1)

    tag_match = _service_tag_re(cfg.service_tag_key).search(body)
    if tag_match:
        node.properties["service"] = tag_match.group(1)


def infer_dependencies(nodes: Resources, cfg: Optional[DiagramConfig] = None) -> Resources:
    """Populate `connections` and display properties of every node in place.

    Heuristics are additive; duplicates are left for the generator to drop.
    """
    cfg = cfg or DiagramConfig()
    for node in nodes.values():
        _infer_node(node, nodes, cfg)
    return nodes
