"""Tests for the command line interface."""
import json
import textwrap
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from armgraph.arm.models import PostDeployOutcome
from main import app

runner = CliRunner()

MANIFEST = """
metadata:
  name: shop
  version: "1.0"
subscription: sub-id
resourceGroup:
  name: shop-rg
location: westeurope
resources:
  - type: webApp
    name: shop-web
    sku:
      tier: Basic
      code: B1
    secretSettings:
      - db-password
  - type: keyVault
    name: shop-vault
    secrets:
      - key: db-password
"""


@pytest.fixture
def manifest_path(tmp_path):
    path = tmp_path / "infra.yaml"
    path.write_text(textwrap.dedent(MANIFEST))
    return path


def test_validate(manifest_path):
    result = runner.invoke(app, ["validate", "--config", str(manifest_path)])

    assert result.exit_code == 0
    assert "Manifest is valid" in result.stdout
    assert "shop-web-plan" in result.stdout


def test_validate_missing_file(tmp_path):
    result = runner.invoke(app, ["validate", "--config", str(tmp_path / "missing.yaml")])
    assert result.exit_code == 1


def test_generate_writes_template_and_parameters(manifest_path, tmp_path):
    out = tmp_path / "out"
    result = runner.invoke(app, ["generate", "--config", str(manifest_path), "--output-dir", str(out)])

    assert result.exit_code == 0
    template = json.loads((out / "azuredeploy.json").read_text())
    assert [r["name"] for r in template["resources"]] == [
        "shop-web-plan", "shop-web", "shop-vault", "shop-vault/db-password",
    ]
    assert template["parameters"] == {"db-password": {"type": "securestring"}}

    parameters = json.loads((out / "azuredeploy.parameters.json").read_text())
    assert parameters["parameters"] == {"db-password": {"value": ""}}


def test_generate_refuses_to_overwrite(manifest_path):
    (manifest_path.parent / "azuredeploy.json").write_text("{}")

    result = runner.invoke(app, ["generate", "--config", str(manifest_path)])
    assert result.exit_code == 1
    assert (manifest_path.parent / "azuredeploy.json").read_text() == "{}"

    result = runner.invoke(app, ["generate", "--config", str(manifest_path), "--force"])
    assert result.exit_code == 0
    assert json.loads((manifest_path.parent / "azuredeploy.json").read_text())["resources"]


def test_deploy_requires_secure_parameters(manifest_path, monkeypatch):
    monkeypatch.delenv("ARMGRAPH_PARAM_DB_PASSWORD", raising=False)
    with patch("main.TemplateDeployer") as mock_deployer:
        result = runner.invoke(app, ["deploy", "--config", str(manifest_path)])

    assert result.exit_code == 1
    assert "ARMGRAPH_PARAM_DB_PASSWORD" in result.stdout
    mock_deployer.assert_not_called()


def test_deploy_submits_template(manifest_path):
    with patch("main.TemplateDeployer") as mock_deployer:
        deployer = mock_deployer.return_value
        result = runner.invoke(
            app, ["deploy", "--config", str(manifest_path), "--param", "db-password=s3cret"]
        )

    assert result.exit_code == 0, result.stdout
    mock_deployer.assert_called_once_with("sub-id", debug=False)
    deployer.ensure_resource_group.assert_called_once_with("shop-rg", "westeurope", {})
    resource_group, _, template, values = deployer.deploy.call_args[0]
    assert resource_group == "shop-rg"
    assert len(template["resources"]) == 4
    assert values == {"db-password": "s3cret"}


def test_deploy_what_if_skips_post_deploy(manifest_path):
    with patch("main.TemplateDeployer") as mock_deployer, patch("main.KuduZipDeployer") as mock_kudu:
        mock_deployer.return_value.deploy.return_value = {
            "changes": [{"resourceId": "/sites/shop-web", "changeType": "Create"}]
        }
        result = runner.invoke(
            app, ["deploy", "--config", str(manifest_path), "-p", "db-password=x", "--what-if"]
        )

    assert result.exit_code == 0, result.stdout
    assert mock_deployer.return_value.deploy.call_args[1] == {"what_if": True}
    assert "Changes: 1" in result.stdout
    mock_kudu.assert_not_called()


def test_deploy_reports_post_deploy_failures(tmp_path):
    app_folder = tmp_path / "dist"
    app_folder.mkdir()
    (app_folder / "index.html").write_text("hi")
    manifest_path = tmp_path / "infra.yaml"
    manifest_path.write_text(textwrap.dedent(f"""
        metadata:
          name: shop
          version: "1.0"
        subscription: sub-id
        resourceGroup:
          name: shop-rg
        location: westeurope
        resources:
          - type: webApp
            name: good
            zipDeployPath: {app_folder}
          - type: webApp
            name: bad
            zipDeployPath: {tmp_path / "missing"}
    """))

    uploader = MagicMock(return_value=PostDeployOutcome("good", True, "Deployed dist.zip to good"))
    with patch("main.TemplateDeployer"), patch("main.KuduZipDeployer", return_value=uploader):
        result = runner.invoke(app, ["deploy", "--config", str(manifest_path)])

    assert result.exit_code == 1
    uploader.assert_called_once()
    assert "1 post-deploy action(s) failed" in result.stdout
