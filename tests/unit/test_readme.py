from pathlib import Path

import pytest

from infra_diagram import readme, render
from infra_diagram.constants import GENERATED_NOTE
from infra_diagram.readme import (
    check_for_mermaid_diagram,
    ensure_architecture_diagram,
    insert_diagram_text,
    insert_mermaid_diagram,
)

DIAGRAM = "graph TD\n    A --> B"


@pytest.fixture(autouse=True)
def fixed_clock(monkeypatch):
    monkeypatch.setattr(render.time, "time_ns", lambda: 12_345_000_000)


def test_inserts_after_architecture_heading():
    content = "# My Project\n\n## Architecture\n\nThis is the architecture section.\n"
    updated = insert_diagram_text(content, DIAGRAM)

    assert updated is not None
    head, tail = updated.split("```mermaid\n", 1)
    assert head == "# My Project\n\n## Architecture\n\n"
    assert tail.startswith("graph TD\n    A --> B\n```\n")
    assert updated.endswith(f"{GENERATED_NOTE}\n\nThis is the architecture section.\n")


def test_heading_match_is_case_insensitive_and_first_wins():
    content = "## ARCHITECTURE DIAGRAM\n\ntext\n\n## Architecture\n"
    updated = insert_diagram_text(content, DIAGRAM)
    assert updated.index("```mermaid") < updated.index("text")
    assert updated.count("```mermaid") == 1


def test_inserts_image_and_collapsible_source():
    content = "# P\n\n## Architecture\n"
    updated = insert_diagram_text(content, DIAGRAM, "architecture-diagram-1.png")

    assert "![Architecture Diagram](images/architecture-diagram-1.png)" in updated
    assert "<details>" in updated and "</details>" in updated
    assert updated.index("![Architecture Diagram]") < updated.index("```mermaid")


def test_falls_back_to_before_requirements_heading():
    content = "# P\n\nIntro\n\n## Requirements\n\n- azd\n"
    updated = insert_diagram_text(content, DIAGRAM)

    assert updated.index("## Architecture Diagram") < updated.index("```mermaid")
    assert updated.index("```mermaid") < updated.index("## Requirements")
    assert updated.endswith("## Requirements\n\n- azd\n")


def test_falls_back_to_end_of_document():
    content = "# P\n\nIntro"
    updated = insert_diagram_text(content, DIAGRAM)

    assert updated.startswith("# P\n\nIntro\n\n## Architecture Diagram\n")
    assert updated.endswith(f"{GENERATED_NOTE}\n")


@pytest.mark.parametrize("fence", ["```mermaid", "~~~mermaid"])
def test_existing_block_is_not_touched(fence):
    content = f"# P\n\n## Architecture\n\n{fence}\ngraph LR\n  X --> Y\n```\n"
    assert insert_diagram_text(content, DIAGRAM) is None


def test_insert_twice_is_a_no_op(tmp_path: Path):
    path = tmp_path / "README.md"
    path.write_text("# P\n\n## Architecture\n\nText\n", encoding="utf-8")

    assert insert_mermaid_diagram(path, DIAGRAM, render=False) is True
    after_first = path.read_bytes()
    assert check_for_mermaid_diagram(path) is True

    assert insert_mermaid_diagram(path, DIAGRAM, render=False) is False
    assert path.read_bytes() == after_first


def test_existing_diagram_means_zero_writes(tmp_path: Path, monkeypatch):
    path = tmp_path / "README.md"
    path.write_text("# P\n\n```mermaid\ngraph TD\n```\n", encoding="utf-8")

    writes: list[Path] = []
    monkeypatch.setattr(Path, "write_text", lambda self, *a, **k: writes.append(self))
    monkeypatch.setattr(Path, "write_bytes", lambda self, *a, **k: writes.append(self))

    assert insert_mermaid_diagram(path, DIAGRAM) is False
    assert writes == []
    assert not (tmp_path / "images").exists()


def test_insert_with_rendered_artifact(tmp_path: Path):
    path = tmp_path / "README.md"
    path.write_text("# P\n\n## Architecture\n", encoding="utf-8")

    assert insert_mermaid_diagram(path, DIAGRAM) is True
    content = path.read_text(encoding="utf-8")
    assert "![Architecture Diagram](images/architecture-diagram-12345.png)" in content
    assert (tmp_path / "images" / "architecture-diagram-12345.png").is_file()
    assert (tmp_path / "images" / "architecture-diagram-12345.mmd").is_file()


def test_render_failure_inserts_source_only(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(readme, "generate_png_for_document", lambda *a, **k: None)
    path = tmp_path / "README.md"
    path.write_text("# P\n\n## Architecture\n", encoding="utf-8")

    assert insert_mermaid_diagram(path, DIAGRAM) is True
    content = path.read_text(encoding="utf-8")
    assert "![Architecture Diagram]" not in content
    assert "```mermaid" in content


def test_missing_readme_returns_false(tmp_path: Path):
    assert insert_mermaid_diagram(tmp_path / "README.md", DIAGRAM) is False
    assert check_for_mermaid_diagram(tmp_path / "README.md") is False


def test_ensure_architecture_diagram(make_template, tmp_path: Path):
    root = make_template(tmp_path / "t", readme="# T\n\n## Architecture Diagram\n")

    assert ensure_architecture_diagram(root, render=False) is True
    content = (root / "README.md").read_text(encoding="utf-8")
    assert "webApp --> appServicePlan" in content
    assert ensure_architecture_diagram(root, render=False) is False


def test_ensure_architecture_diagram_uses_placeholder(make_template, tmp_path: Path):
    root = make_template(tmp_path / "t", bicep=None, readme="# T\n")

    assert ensure_architecture_diagram(root, render=False) is True
    assert "API Service" in (root / "README.md").read_text(encoding="utf-8")
