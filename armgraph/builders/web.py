"""App Service plan and web app configurations."""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..arm.models import ArmResource, FeatureFlag, ResourceName
from ..arm.web import OS, AppSetting, ServerFarm, Site, Sku, WorkerSize
from ..errors import ConfigurationError
from .base import Builder, BuildContext


def _require_name(name: ResourceName, kind: str) -> None:
    if name.is_empty:
        raise ConfigurationError(f"A {kind} must have a name.")


@dataclass
class ServicePlanConfig(Builder):
    """A standalone App Service plan."""
    name: ResourceName
    sku: Sku = field(default_factory=Sku.free)
    worker_size: WorkerSize = WorkerSize.SMALL
    worker_count: int = 1
    operating_system: OS = OS.WINDOWS

    def __post_init__(self):
        _require_name(self.name, "service plan")
        if self.worker_count < 0:
            raise ConfigurationError(
                f"Service plan '{self.name}' cannot have a negative worker count."
            )

    @property
    def dependency_name(self) -> ResourceName:
        return self.name

    def to_server_farm(self, location: str) -> ServerFarm:
        return ServerFarm(
            name=self.name,
            location=location,
            sku=self.sku,
            worker_size=self.worker_size,
            worker_count=self.worker_count,
            operating_system=self.operating_system,
        )

    def build_resources(self, location: str, context: BuildContext) -> List[ArmResource]:
        return [self.to_server_farm(location)]


@dataclass
class WebAppConfig(Builder):
    """A web app and, unless it is bound to an existing one, its service plan.

    When ``create_service_plan`` is False the app is hosted on the plan named
    by ``service_plan``. If the graph builds that plan, either as a standalone
    plan or as the plan of another web app, the app depends on it and follows
    its operating system.
    """
    name: ResourceName
    service_plan: ResourceName = ResourceName.EMPTY
    create_service_plan: bool = True
    sku: Sku = field(default_factory=Sku.free)
    worker_size: WorkerSize = WorkerSize.SMALL
    worker_count: int = 1
    operating_system: OS = OS.WINDOWS
    app_settings: Dict[str, AppSetting] = field(default_factory=dict)
    always_on: bool = False
    https_only: bool = False
    http20_enabled: Optional[bool] = None
    client_affinity_enabled: Optional[bool] = None
    web_sockets_enabled: Optional[bool] = None
    identity: Optional[FeatureFlag] = None
    linux_fx_version: Optional[str] = None
    app_command_line: Optional[str] = None
    net_framework_version: Optional[str] = None
    java_version: Optional[str] = None
    java_container: Optional[str] = None
    java_container_version: Optional[str] = None
    php_version: Optional[str] = None
    python_version: Optional[str] = None
    metadata: List[Tuple[str, str]] = field(default_factory=list)
    dependencies: List[ResourceName] = field(default_factory=list)
    zip_deploy_path: Optional[str] = None

    def __post_init__(self):
        _require_name(self.name, "web app")
        if self.service_plan.is_empty:
            if not self.create_service_plan:
                raise ConfigurationError(
                    f"Web app '{self.name}' must name the existing service plan it runs on."
                )
            self.service_plan = self.name.map(lambda name: f"{name}-plan")

    @property
    def dependency_name(self) -> ResourceName:
        return self.name

    def plan_config(self) -> ServicePlanConfig:
        """The service plan this app creates for itself."""
        return ServicePlanConfig(
            name=self.service_plan,
            sku=self.sku,
            worker_size=self.worker_size,
            worker_count=self.worker_count,
            operating_system=self.operating_system,
        )

    def _hosting_os(self, context: BuildContext) -> Tuple[OS, bool]:
        """Operating system of the hosting plan and whether it is in the graph."""
        if self.create_service_plan:
            return self.operating_system, True
        peer = context.find(self.service_plan)
        if isinstance(peer, ServicePlanConfig):
            return peer.operating_system, True
        # Another web app in the graph may create the plan for itself.
        for peer in context.peers:
            if (
                isinstance(peer, WebAppConfig)
                and peer is not self
                and peer.create_service_plan
                and peer.service_plan == self.service_plan
            ):
                return peer.operating_system, True
        return self.operating_system, False

    def build_resources(self, location: str, context: BuildContext) -> List[ArmResource]:
        operating_system, plan_in_graph = self._hosting_os(context)

        dependencies = [self.service_plan] if plan_in_graph else []
        for dependency in self.dependencies:
            if dependency not in dependencies:
                dependencies.append(dependency)

        site = Site(
            name=self.name,
            location=location,
            service_plan=self.service_plan,
            app_settings=list(self.app_settings.items()),
            always_on=self.always_on,
            https_only=self.https_only,
            http20_enabled=self.http20_enabled,
            client_affinity_enabled=self.client_affinity_enabled,
            web_sockets_enabled=self.web_sockets_enabled,
            dependencies=dependencies,
            kind="app,linux" if operating_system is OS.LINUX else "app",
            identity=self.identity,
            linux_fx_version=self.linux_fx_version,
            app_command_line=self.app_command_line,
            net_framework_version=self.net_framework_version,
            java_version=self.java_version,
            java_container=self.java_container,
            java_container_version=self.java_container_version,
            php_version=self.php_version,
            python_version=self.python_version,
            metadata=list(self.metadata),
            zip_deploy_path=self.zip_deploy_path,
        )

        resources: List[ArmResource] = []
        if self.create_service_plan:
            resources.append(self.plan_config().to_server_farm(location))
        resources.append(site)
        return resources
