"""App Service plan and web site ARM resources."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from rich.console import Console

from ..errors import ArtifactError, ConfigurationError
from .models import (
    ArmResource,
    FeatureFlag,
    PostDeployAction,
    PostDeployOutcome,
    ResourceName,
    SecureParameter,
    set_if_present,
)
from .zip_deploy import ZipDeployKind

console = Console()

API_VERSIONS = {
    "Microsoft.Web/serverfarms": "2018-02-01",
    "Microsoft.Web/sites": "2016-08-01",
}


class SkuTier(Enum):
    FREE = "Free"
    SHARED = "Shared"
    BASIC = "Basic"
    STANDARD = "Standard"
    PREMIUM = "Premium"
    PREMIUM_V2 = "PremiumV2"
    DYNAMIC = "Dynamic"
    ISOLATED = "Isolated"


# Tiers with a fixed SKU code; every other tier carries the user's code verbatim.
FIXED_SKU_CODES = {
    SkuTier.FREE: "F1",
    SkuTier.SHARED: "D1",
    SkuTier.DYNAMIC: "Y1",
}


@dataclass(frozen=True)
class Sku:
    """App Service plan pricing tier and, where the tier has several, its code."""
    tier: SkuTier
    code: Optional[str] = None

    def __post_init__(self):
        if self.tier in FIXED_SKU_CODES:
            if self.code is not None:
                raise ConfigurationError(f"The {self.tier.value} tier does not take a SKU code.")
        elif not self.code:
            raise ConfigurationError(f"The {self.tier.value} tier requires a SKU code, e.g. 'S1'.")

    @property
    def name(self) -> str:
        return FIXED_SKU_CODES.get(self.tier) or self.code

    @staticmethod
    def free() -> "Sku":
        return Sku(SkuTier.FREE)

    @staticmethod
    def shared() -> "Sku":
        return Sku(SkuTier.SHARED)

    @staticmethod
    def basic(code: str) -> "Sku":
        return Sku(SkuTier.BASIC, code)

    @staticmethod
    def standard(code: str) -> "Sku":
        return Sku(SkuTier.STANDARD, code)

    @staticmethod
    def premium(code: str) -> "Sku":
        return Sku(SkuTier.PREMIUM, code)

    @staticmethod
    def premium_v2(code: str) -> "Sku":
        return Sku(SkuTier.PREMIUM_V2, code)

    @staticmethod
    def dynamic() -> "Sku":
        return Sku(SkuTier.DYNAMIC)

    @staticmethod
    def isolated(code: str) -> "Sku":
        return Sku(SkuTier.ISOLATED, code)


class WorkerSize(Enum):
    SMALL = "0"
    MEDIUM = "1"
    LARGE = "2"
    SERVERLESS = "Y1"


class OS(Enum):
    WINDOWS = "Windows"
    LINUX = "Linux"


@dataclass
class ServerFarm(ArmResource):
    """Microsoft.Web/serverfarms (App Service plan)."""
    location: str = ""
    sku: Sku = field(default_factory=Sku.free)
    worker_size: WorkerSize = WorkerSize.SMALL
    worker_count: int = 1
    operating_system: OS = OS.WINDOWS

    resource_type = "Microsoft.Web/serverfarms"

    @property
    def is_dynamic(self) -> bool:
        return self.sku == Sku.isolated("Y1") and self.worker_size is WorkerSize.SERVERLESS

    @property
    def reserved(self) -> bool:
        return self.operating_system is OS.LINUX

    @property
    def kind(self) -> Optional[str]:
        return "linux" if self.operating_system is OS.LINUX else None

    @property
    def tier(self) -> str:
        return self.sku.tier.value

    def json_model(self) -> Dict[str, Any]:
        sku = {
            "name": self.sku.name,
            "tier": self.tier,
            "size": self.worker_size.value,
        }
        if self.is_dynamic:
            sku["family"] = "Y"
        sku["capacity"] = 0 if self.is_dynamic else self.worker_count

        properties = {"name": self.name.value}
        if self.is_dynamic:
            properties["computeMode"] = "Dynamic"
        # The plan carries perSiteScaling for its sites: null when dynamic, false otherwise.
        properties["perSiteScaling"] = None if self.is_dynamic else False
        properties["reserved"] = self.reserved

        model = {
            "type": self.resource_type,
            "sku": sku,
            "name": self.name.value,
            "apiVersion": API_VERSIONS[self.resource_type],
            "location": self.location,
            "properties": properties,
        }
        set_if_present(model, "kind", self.kind)
        return model


@dataclass(frozen=True)
class AppSetting:
    """An app setting value: a literal string or a secure parameter."""
    value: Optional[str] = None
    parameter: Optional[SecureParameter] = None

    @staticmethod
    def literal(value: str) -> "AppSetting":
        return AppSetting(value=value)

    @staticmethod
    def secret(parameter_name: str) -> "AppSetting":
        return AppSetting(parameter=SecureParameter(parameter_name))

    @property
    def arm_value(self) -> str:
        return self.parameter.param_value if self.parameter else self.value


@dataclass
class Site(ArmResource):
    """Microsoft.Web/sites."""
    location: str = ""
    service_plan: ResourceName = ResourceName.EMPTY
    app_settings: List[Tuple[str, AppSetting]] = field(default_factory=list)
    always_on: bool = False
    https_only: bool = False
    http20_enabled: Optional[bool] = None
    client_affinity_enabled: Optional[bool] = None
    web_sockets_enabled: Optional[bool] = None
    dependencies: List[ResourceName] = field(default_factory=list)
    kind: str = "app"
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
    zip_deploy_path: Optional[str] = None

    resource_type = "Microsoft.Web/sites"

    def secure_parameters(self) -> List[SecureParameter]:
        return [setting.parameter for _, setting in self.app_settings if setting.parameter]

    def post_deploy_actions(self) -> List[PostDeployAction]:
        if self.zip_deploy_path is None:
            return []
        return [PostDeployAction(self.name, self.run_zip_deploy)]

    def run_zip_deploy(self, context) -> PostDeployOutcome:
        """Package the configured path and upload it to this site.

        Args:
            context: Deployment context providing ``resource_group`` and a
                ``zip_deploy(site_name, zip_path, resource_group)`` callable.

        Returns:
            PostDeployOutcome: The uploader's outcome.

        Raises:
            ArtifactError: If the path is neither a folder nor a .zip file, or
                the folder cannot be archived.
        """
        kind = ZipDeployKind.parse(self.zip_deploy_path)
        console.print(f"Running ZIP deploy for {kind.value}")
        try:
            zip_path = kind.get_zip_path()
        except OSError as e:
            raise ArtifactError(
                f"Could not package '{kind.value}' for {self.name.value}: {e}"
            ) from e
        return context.zip_deploy(self.name.value, zip_path, context.resource_group)

    def _identity_model(self) -> Optional[Dict[str, str]]:
        if self.identity is None:
            return None
        return {"type": "SystemAssigned" if self.identity.as_bool else "None"}

    def _site_config(self) -> Dict[str, Any]:
        site_config = {
            "alwaysOn": self.always_on,
            "appSettings": [
                {"name": key, "value": setting.arm_value} for key, setting in self.app_settings
            ],
        }
        set_if_present(site_config, "linuxFxVersion", self.linux_fx_version)
        set_if_present(site_config, "appCommandLine", self.app_command_line)
        set_if_present(site_config, "netFrameworkVersion", self.net_framework_version)
        set_if_present(site_config, "javaVersion", self.java_version)
        set_if_present(site_config, "javaContainer", self.java_container)
        set_if_present(site_config, "javaContainerVersion", self.java_container_version)
        set_if_present(site_config, "phpVersion", self.php_version)
        set_if_present(site_config, "pythonVersion", self.python_version)
        set_if_present(site_config, "http20Enabled", self.http20_enabled)
        set_if_present(site_config, "webSocketsEnabled", self.web_sockets_enabled)
        site_config["metadata"] = [{"name": key, "value": value} for key, value in self.metadata]
        return site_config

    def json_model(self) -> Dict[str, Any]:
        properties = {
            "serverFarmId": self.service_plan.value,
            "httpsOnly": self.https_only,
        }
        set_if_present(properties, "clientAffinityEnabled", self.client_affinity_enabled)
        properties["siteConfig"] = self._site_config()

        model = {
            "type": self.resource_type,
            "name": self.name.value,
            "apiVersion": API_VERSIONS[self.resource_type],
            "location": self.location,
            "dependsOn": [dependency.value for dependency in self.dependencies],
            "kind": self.kind,
        }
        set_if_present(model, "identity", self._identity_model())
        model["properties"] = properties
        return model
