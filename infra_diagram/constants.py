# infra_diagram/constants.py
from __future__ import annotations

# Template layout (azd conventions).
INFRA_DIR = "infra"
MAIN_INFRA_FILE = "main.bicep"
INFRA_SUFFIX = ".bicep"
README_FILE = "README.md"
IMAGES_DIR = "images"

# azure.yaml is canonical; azure-dev.yaml is the legacy name.
TEMPLATE_CONFIG_FILES: tuple[str, ...] = ("azure.yaml", "azure-dev.yaml")

APP_DIRS: tuple[str, ...] = ("src", "app")

# Rendering artifacts.
LATEST_ARTIFACT = "diagram.png"
ARTIFACT_PREFIX = "architecture-diagram"
ARTIFACT_SUFFIX = ".png"
SOURCE_SUFFIX = ".mmd"

# 1x1 transparent PNG used when no real renderer output is available.
PLACEHOLDER_PNG_B64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)

# Compute-on-plan convention.
PLAN_ID = "appServicePlan"
SERVER_FARM_PROPERTY = "serverFarmId"
HOSTED_COMPUTE_TYPES: tuple[str, ...] = ("Microsoft.Web/sites",)

SERVICE_TAG_KEY = "azd-service-name"

# Markdown fence openers recognised as an existing diagram.
MERMAID_FENCES: tuple[str, ...] = ("```mermaid", "~~~mermaid")

DIAGRAM_HEADING = "Architecture Diagram"
GENERATED_NOTE = "_This diagram was automatically generated from your infrastructure code._"

MMDC_TIMEOUT_DEFAULT = 30
