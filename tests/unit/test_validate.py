from infra_diagram.diagram import generate_mermaid_from_infra
from infra_diagram.model import ResourceNode
from infra_diagram.validate import ValidateConfig, validate_resources, validate_resources_issues


def _codes(issues):
    return [iss.code for iss in issues]


def test_empty_graph_warns():
    assert _codes(validate_resources_issues({})) == ["W_NO_RESOURCES"]


def test_dangling_connection_reported_once(template_dir):
    nodes = generate_mermaid_from_infra(template_dir).resources
    issues = validate_resources_issues(nodes)

    dangling = [iss for iss in issues if iss.code == "W_CONNECTION_UNKNOWN_RESOURCE"]
    assert len(dangling) == 1
    assert "missingThing" in dangling[0].message
    assert dangling[0].path == "/resources/keyVault/connections"


def test_service_tags_cross_checked(template_dir):
    nodes = generate_mermaid_from_infra(template_dir).resources
    issues = validate_resources_issues(nodes, services=["web", "api"])

    untagged = [iss for iss in issues if iss.code == "W_SERVICE_UNTAGGED"]
    assert [iss.path for iss in untagged] == ["/services/api"]
    assert "W_TAG_UNKNOWN_SERVICE" not in _codes(issues)


def test_tag_for_undeclared_service():
    nodes = {"web": ResourceNode("web", "T/x", properties={"service": "frontend"}, body="")}
    assert "W_TAG_UNKNOWN_SERVICE" in _codes(validate_resources_issues(nodes, services=["api"]))


def test_ignore_and_escalate():
    nodes = {"a": ResourceNode("a", "T/x", connections=["ghost"], body="")}
    cfg = ValidateConfig(escalate={"W_CONNECTION_UNKNOWN_RESOURCE"})
    issues = validate_resources_issues(nodes, cfg=cfg)
    assert [(i.severity, i.code) for i in issues] == [("error", "W_CONNECTION_UNKNOWN_RESOURCE")]

    cfg = ValidateConfig(ignore={"W_CONNECTION_UNKNOWN_RESOURCE"})
    assert validate_resources_issues(nodes, cfg=cfg) == []


def test_missing_body_and_unsafe_id():
    nodes = {"1st": ResourceNode("1st", "T/x")}
    errors, warnings = validate_resources(nodes)
    assert len(errors) == 1 and "not Mermaid-safe" in errors[0]
    assert len(warnings) == 1 and "no property block" in warnings[0]
