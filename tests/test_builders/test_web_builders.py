"""Tests for service plan and web app configurations."""
import pytest

from armgraph.arm.models import ResourceName
from armgraph.arm.web import OS, AppSetting, ServerFarm, Site, Sku, WorkerSize
from armgraph.builders.base import BuildContext
from armgraph.builders.web import ServicePlanConfig, WebAppConfig
from armgraph.compiler import compile_graph
from armgraph.errors import ConfigurationError


def test_web_app_dependency_name_is_its_name():
    app = WebAppConfig(name=ResourceName("shop"))
    assert app.dependency_name == ResourceName("shop")


def test_default_service_plan_name():
    app = WebAppConfig(name=ResourceName("shop"))
    assert app.service_plan == ResourceName("shop-plan")


def test_web_app_requires_name():
    with pytest.raises(ConfigurationError):
        WebAppConfig(name=ResourceName(""))


def test_external_plan_must_be_named():
    with pytest.raises(ConfigurationError):
        WebAppConfig(name=ResourceName("shop"), create_service_plan=False)


def test_service_plan_rejects_negative_worker_count():
    with pytest.raises(ConfigurationError):
        ServicePlanConfig(name=ResourceName("plan"), worker_count=-1)


def test_web_app_emits_plan_then_site():
    app = WebAppConfig(
        name=ResourceName("shop"),
        sku=Sku.standard("S1"),
        worker_count=2,
        operating_system=OS.LINUX,
    )
    farm, site = app.build_resources("westeurope", BuildContext())

    assert isinstance(farm, ServerFarm)
    assert farm.name == ResourceName("shop-plan")
    assert farm.location == "westeurope"
    assert farm.sku == Sku.standard("S1")
    assert farm.worker_count == 2

    assert isinstance(site, Site)
    assert site.service_plan == ResourceName("shop-plan")
    assert site.dependencies == [ResourceName("shop-plan")]
    assert site.kind == "app,linux"


def test_windows_web_app_kind():
    _, site = WebAppConfig(name=ResourceName("shop")).build_resources("westeurope", BuildContext())
    assert site.kind == "app"


def test_external_plan_in_graph():
    """An app on another configuration's plan depends on it and follows its OS."""
    plan = ServicePlanConfig(name=ResourceName("shared-plan"), operating_system=OS.LINUX)
    app = WebAppConfig(
        name=ResourceName("shop"),
        service_plan=ResourceName("shared-plan"),
        create_service_plan=False,
    )
    resources = app.build_resources("westeurope", BuildContext(peers=(plan, app)))

    assert len(resources) == 1
    site = resources[0]
    assert site.dependencies == [ResourceName("shared-plan")]
    assert site.kind == "app,linux"


def test_plan_created_by_another_web_app():
    """An app sharing a peer app's own plan depends on it and follows its OS."""
    owner = WebAppConfig(name=ResourceName("a"), operating_system=OS.LINUX)
    tenant = WebAppConfig(
        name=ResourceName("b"),
        service_plan=ResourceName("a-plan"),
        create_service_plan=False,
    )
    (site,) = tenant.build_resources("westeurope", BuildContext(peers=(owner, tenant)))

    assert site.dependencies == [ResourceName("a-plan")]
    assert site.kind == "app,linux"


def test_shared_plan_dependency_in_compiled_template():
    builders = [
        WebAppConfig(name=ResourceName("a")),
        WebAppConfig(name=ResourceName("b"), service_plan=ResourceName("a-plan"), create_service_plan=False),
    ]
    resources = compile_graph(builders, "westeurope").template()["resources"]

    assert [r["name"] for r in resources] == ["a-plan", "a", "b"]
    assert resources[2]["dependsOn"] == ["a-plan"]


def test_external_plan_outside_graph():
    app = WebAppConfig(
        name=ResourceName("shop"),
        service_plan=ResourceName("existing-plan"),
        create_service_plan=False,
    )
    (site,) = app.build_resources("westeurope", BuildContext(peers=(app,)))

    assert site.service_plan == ResourceName("existing-plan")
    assert site.dependencies == []


def test_extra_dependencies_are_not_duplicated():
    app = WebAppConfig(
        name=ResourceName("shop"),
        dependencies=[ResourceName("shop-plan"), ResourceName("vault")],
    )
    _, site = app.build_resources("westeurope", BuildContext())
    assert site.dependencies == [ResourceName("shop-plan"), ResourceName("vault")]


def test_app_settings_keep_order_and_secrets():
    app = WebAppConfig(
        name=ResourceName("shop"),
        app_settings={
            "MODE": AppSetting.literal("production"),
            "DB_PASSWORD": AppSetting.secret("db-password"),
        },
    )
    _, site = app.build_resources("westeurope", BuildContext())

    assert [key for key, _ in site.app_settings] == ["MODE", "DB_PASSWORD"]
    assert [p.name for p in site.secure_parameters()] == ["db-password"]


def test_zip_deploy_path_carries_to_site():
    app = WebAppConfig(name=ResourceName("shop"), zip_deploy_path="./dist")
    _, site = app.build_resources("westeurope", BuildContext())

    assert site.zip_deploy_path == "./dist"
    assert len(site.post_deploy_actions()) == 1


def test_standalone_service_plan():
    plan = ServicePlanConfig(
        name=ResourceName("func-plan"),
        sku=Sku.isolated("Y1"),
        worker_size=WorkerSize.SERVERLESS,
    )
    (farm,) = plan.build_resources("northeurope", BuildContext())

    assert plan.dependency_name == ResourceName("func-plan")
    assert farm.is_dynamic
