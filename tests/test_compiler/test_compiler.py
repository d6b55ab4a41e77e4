"""Tests for the graph compiler."""
from typing import List

import pytest

from armgraph.arm.models import ArmResource, ResourceName
from armgraph.arm.web import AppSetting, Sku
from armgraph.builders.base import Builder, BuildContext
from armgraph.builders.key_vault import KeyVaultConfig, SecretConfig
from armgraph.builders.web import ServicePlanConfig, WebAppConfig
from armgraph.compiler import TEMPLATE_SCHEMA, GraphCompiler, compile_graph
from armgraph.errors import ConfigurationError


class FailingBuilder(Builder):
    """Builder whose resource construction always fails."""

    @property
    def dependency_name(self) -> ResourceName:
        return ResourceName("broken")

    def build_resources(self, location: str, context: BuildContext) -> List[ArmResource]:
        raise ConfigurationError("broken builder")


def test_resources_keep_builder_order():
    builders = [
        KeyVaultConfig(name=ResourceName("vault"), secrets=[SecretConfig("api-key")]),
        WebAppConfig(name=ResourceName("shop"), sku=Sku.basic("B1")),
    ]
    graph = compile_graph(builders, "westeurope")

    assert [r.name.value for r in graph.resources] == ["vault", "vault/api-key", "shop-plan", "shop"]


def test_shared_parameter_is_declared_once():
    builders = [
        WebAppConfig(name=ResourceName("a"), app_settings={"SECRET": AppSetting.secret("shared")}),
        WebAppConfig(name=ResourceName("b"), app_settings={"SECRET": AppSetting.secret("shared")}),
        KeyVaultConfig(name=ResourceName("vault"), secrets=[SecretConfig("shared"), SecretConfig("other")]),
    ]
    graph = compile_graph(builders, "westeurope")

    assert graph.parameter_names == ["shared", "other"]
    assert graph.template()["parameters"] == {
        "shared": {"type": "securestring"},
        "other": {"type": "securestring"},
    }


def test_empty_input():
    graph = compile_graph([], "westeurope")

    assert graph.resources == []
    assert graph.parameters == []
    assert graph.post_deploy == []
    assert graph.template()["resources"] == []


def test_builder_failure_aborts_compilation():
    builders = [WebAppConfig(name=ResourceName("shop")), FailingBuilder()]
    with pytest.raises(ConfigurationError, match="broken builder"):
        GraphCompiler().compile(builders, "westeurope")


def test_template_shape():
    template = compile_graph([ServicePlanConfig(name=ResourceName("plan"))], "westeurope").template()

    assert template["$schema"] == TEMPLATE_SCHEMA
    assert template["contentVersion"] == "1.0.0.0"
    assert template["parameters"] == {}
    assert template["outputs"] == {}
    assert [r["type"] for r in template["resources"]] == ["Microsoft.Web/serverfarms"]


def test_post_deploy_actions_in_resource_order():
    builders = [
        WebAppConfig(name=ResourceName("first"), zip_deploy_path="./first"),
        WebAppConfig(name=ResourceName("plain")),
        WebAppConfig(name=ResourceName("second"), zip_deploy_path="./second.zip"),
    ]
    graph = compile_graph(builders, "westeurope")

    assert [a.resource_name.value for a in graph.post_deploy] == ["first", "second"]


def test_peers_visible_to_builders():
    """A web app on a plan declared later in the graph still depends on it."""
    builders = [
        WebAppConfig(
            name=ResourceName("shop"),
            service_plan=ResourceName("shared-plan"),
            create_service_plan=False,
        ),
        ServicePlanConfig(name=ResourceName("shared-plan")),
    ]
    graph = compile_graph(builders, "westeurope")

    site = graph.template()["resources"][0]
    assert site["dependsOn"] == ["shared-plan"]


def test_debug_output(capsys):
    GraphCompiler(debug=True).compile([ServicePlanConfig(name=ResourceName("plan"))], "westeurope")
    assert "Debug:" in capsys.readouterr().out
