# infra_diagram/validate.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional, Sequence, Tuple

from .mermaid_fmt import MERMAID_ID_RE
from .model import Resources

Severity = Literal["error", "warning"]


@dataclass(frozen=True)
class ValidationIssue:
    """Structured validation issue for callers that want more than strings."""

    severity: Severity
    code: str
    message: str
    path: str = ""
    hint: Optional[str] = None


@dataclass(frozen=True)
class ValidateConfig:
    """Validation configuration.

    The CLI uses the `validate_resources()` wrapper, which returns
    `(errors, warnings)` as lists of strings; richer callers can use
    `validate_resources_issues()` directly.
    """

    ignore: set[str] = field(default_factory=set)
    escalate: set[str] = field(default_factory=set)

    # Cross-check azd-service-name tags against azure.yaml services.
    check_service_tags: bool = True


def validate_resources_issues(
    nodes: Resources,
    services: Sequence[str] = (),
    cfg: Optional[ValidateConfig] = None,
) -> list[ValidationIssue]:
    """Return structured issues for an inferred resource graph.

    `services` are the service names declared in azure.yaml; pass an empty
    sequence to skip the tag cross-check.
    """

    cfg = cfg or ValidateConfig()
    issues: list[ValidationIssue] = []

    def emit(
        severity: Severity,
        code: str,
        message: str,
        path: str = "",
        hint: Optional[str] = None,
    ) -> None:
        if code in cfg.ignore:
            return
        final_severity: Severity = (
            "error" if (severity == "warning" and code in cfg.escalate) else severity
        )
        issues.append(
            ValidationIssue(
                severity=final_severity,
                code=code,
                message=message,
                path=path,
                hint=hint,
            )
        )

    if not nodes:
        emit(
            "warning",
            "W_NO_RESOURCES",
            "no resource declarations found; the placeholder diagram will be used",
            hint="Add resources to infra/main.bicep",
        )
        return issues

    for resource_id, node in nodes.items():
        if not MERMAID_ID_RE.match(resource_id):
            emit(
                "error",
                "E_RESOURCE_ID_NOT_MERMAID_SAFE",
                f"resource id {resource_id!r} is not Mermaid-safe (use [A-Za-z0-9_] "
                "and cannot start with a digit)",
                path=f"/resources/{resource_id}",
            )

        if node.body is None:
            emit(
                "warning",
                "W_RESOURCE_NO_BODY",
                f"resource {resource_id!r} has no property block; no connections inferred",
                path=f"/resources/{resource_id}",
            )

        reported: set[str] = set()
        for target in node.connections:
            if target in nodes or target in reported:
                continue
            reported.add(target)
            emit(
                "warning",
                "W_CONNECTION_UNKNOWN_RESOURCE",
                f"resource {resource_id!r} depends on unknown resource {target!r} "
                "(edge not rendered)",
                path=f"/resources/{resource_id}/connections",
            )

    if cfg.check_service_tags and services:
        tagged = {
            node.properties["service"]: rid
            for rid, node in nodes.items()
            if node.properties.get("service")
        }
        for service in services:
            if service not in tagged:
                emit(
                    "warning",
                    "W_SERVICE_UNTAGGED",
                    f"service {service!r} from azure.yaml has no resource tagged "
                    "'azd-service-name'",
                    path=f"/services/{service}",
                    hint=f"Add tags: {{ 'azd-service-name': '{service}' }} to the hosting resource",
                )
        for tag, rid in tagged.items():
            if tag not in services:
                emit(
                    "warning",
                    "W_TAG_UNKNOWN_SERVICE",
                    f"resource {rid!r} is tagged with service {tag!r}, which azure.yaml "
                    "does not declare",
                    path=f"/resources/{rid}/properties/service",
                )

    return issues


def validate_resources(
    nodes: Resources, services: Sequence[str] = ()
) -> Tuple[list[str], list[str]]:
    """Lightweight structural validation of the resource graph."""
    issues = validate_resources_issues(nodes, services)
    errors = [iss.message for iss in issues if iss.severity == "error"]
    warnings = [iss.message for iss in issues if iss.severity == "warning"]
    return errors, warnings
