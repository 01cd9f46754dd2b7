# infra_diagram/model.py
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass
class ResourceNode:
    """One `resource` declaration extracted from an infrastructure file.

    `connections` is filled by the inference pass and may contain duplicates
    or ids that are not in the node set; the diagram generator handles both.
    """

    id: str
    resource_type: str
    properties: dict[str, str] = field(default_factory=dict)
    connections: list[str] = field(default_factory=list)
    # Raw property-block text, or None when no `{...}` followed the header.
    body: Optional[str] = None

    @property
    def short_type(self) -> str:
        """Last path segment of the type, API version included."""
        return self.resource_type.split("/")[-1] or self.resource_type

    @property
    def display_name(self) -> str:
        return self.properties.get("name") or self.id

    def serialize(self) -> str:
        """Stable JSON view of the node used for textual reference checks."""
        return json.dumps(
            {
                "id": self.id,
                "type": self.resource_type,
                "properties": self.properties,
                "connections": self.connections,
                "body": self.body or "",
            },
            sort_keys=True,
            ensure_ascii=False,
        )


Resources = dict[str, ResourceNode]


@dataclass(frozen=True)
class DiagramResult:
    diagram: str
    source: Optional[Path] = None
    resources: Resources = field(default_factory=dict)

    @property
    def is_default(self) -> bool:
        return not self.resources

    def as_dict(self) -> dict[str, str]:
        return {"diagram": self.diagram}
