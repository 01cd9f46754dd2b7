from __future__ import annotations

from pathlib import Path

import pytest

WEB_APP_BICEP = """\
param location string = resourceGroup().location

resource appServicePlan 'Microsoft.Web/serverfarms@2022-03-01' = {
  name: 'myplan'
  location: location
  sku: {
    name: 'B1'
  }
}

resource webApp 'Microsoft.Web/sites@2022-03-01' = {
  name: 'myweb'
  location: location
  tags: {
    'azd-service-name': 'web'
  }
  properties: {
    serverFarmId: appServicePlan.id
  }
}

resource keyVault 'Microsoft.KeyVault/vaults@2022-07-01' = {
  name: 'mykv'
  location: location
  dependsOn: [
    webApp // needs the identity first
    missingThing
  ]
}
"""


def make_template(root: Path, bicep: str | None = WEB_APP_BICEP, readme: str | None = None) -> Path:
    infra = root / "infra"
    infra.mkdir(parents=True, exist_ok=True)
    if bicep is not None:
        (infra / "main.bicep").write_text(bicep, encoding="utf-8")
    if readme is not None:
        (root / "README.md").write_text(readme, encoding="utf-8")
    return root


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    return make_template(tmp_path / "template")


@pytest.fixture(name="make_template")
def make_template_fixture():
    return make_template
