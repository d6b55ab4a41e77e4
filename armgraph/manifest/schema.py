"""Pydantic models for manifest validation."""
from datetime import datetime
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..arm.key_vault import (
    Bypass,
    Certificate,
    DefaultAction,
    Key,
    Secret,
    SecretValue,
    SoftDeletionMode,
    Storage,
    VaultSku,
)
from ..arm.models import ArmExpression, FeatureFlag, ResourceName
from ..arm.web import OS, AppSetting, Sku, SkuTier, WorkerSize
from ..builders.base import Builder
from ..builders.key_vault import (
    AccessPolicy,
    KeyVaultBuilderState,
    KeyVaultConfig,
    KeyVaultSettings,
    NetworkAcl,
    SecretConfig,
    SimpleCreateMode,
)
from ..builders.web import ServicePlanConfig, WebAppConfig


class ManifestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class Metadata(ManifestModel):
    """Manifest metadata."""
    name: str
    description: Optional[str] = None
    version: str


class ResourceGroup(ManifestModel):
    """Resource group configuration."""
    name: str
    tags: Dict[str, str] = Field(default_factory=dict)


class SkuSpec(ManifestModel):
    """App Service SKU, e.g. ``{tier: Standard, code: S1}``."""
    tier: SkuTier
    code: Optional[str] = None

    def to_sku(self) -> Sku:
        return Sku(self.tier, self.code)


class PlanSettings(ManifestModel):
    sku: SkuSpec = Field(default_factory=lambda: SkuSpec(tier=SkuTier.FREE))
    worker_size: Literal["Small", "Medium", "Large", "Serverless"] = Field(default="Small", alias="workerSize")
    worker_count: int = Field(default=1, alias="workerCount")
    os: OS = OS.WINDOWS

    @property
    def worker_size_value(self) -> WorkerSize:
        return WorkerSize[self.worker_size.upper()]


class ServicePlanResource(PlanSettings):
    """Standalone App Service plan."""
    type: Literal["servicePlan"]
    name: str

    def to_config(self) -> ServicePlanConfig:
        return ServicePlanConfig(
            name=ResourceName(self.name),
            sku=self.sku.to_sku(),
            worker_size=self.worker_size_value,
            worker_count=self.worker_count,
            operating_system=self.os,
        )


class WebAppResource(PlanSettings):
    """Web app, optionally with its own plan."""
    type: Literal["webApp"]
    name: str
    service_plan: Optional[str] = Field(default=None, alias="servicePlan")
    create_service_plan: bool = Field(default=True, alias="createServicePlan")
    app_settings: Dict[str, str] = Field(default_factory=dict, alias="appSettings")
    secret_settings: List[str] = Field(default_factory=list, alias="secretSettings")
    always_on: bool = Field(default=False, alias="alwaysOn")
    https_only: bool = Field(default=False, alias="httpsOnly")
    http20_enabled: Optional[bool] = Field(default=None, alias="http20Enabled")
    client_affinity_enabled: Optional[bool] = Field(default=None, alias="clientAffinityEnabled")
    web_sockets_enabled: Optional[bool] = Field(default=None, alias="webSocketsEnabled")
    identity: Optional[FeatureFlag] = None
    linux_fx_version: Optional[str] = Field(default=None, alias="linuxFxVersion")
    app_command_line: Optional[str] = Field(default=None, alias="appCommandLine")
    net_framework_version: Optional[str] = Field(default=None, alias="netFrameworkVersion")
    java_version: Optional[str] = Field(default=None, alias="javaVersion")
    java_container: Optional[str] = Field(default=None, alias="javaContainer")
    java_container_version: Optional[str] = Field(default=None, alias="javaContainerVersion")
    php_version: Optional[str] = Field(default=None, alias="phpVersion")
    python_version: Optional[str] = Field(default=None, alias="pythonVersion")
    metadata: Dict[str, str] = Field(default_factory=dict)
    depends_on: List[str] = Field(default_factory=list, alias="dependsOn")
    zip_deploy_path: Optional[str] = Field(default=None, alias="zipDeployPath")

    def to_config(self) -> WebAppConfig:
        settings = {key: AppSetting.literal(value) for key, value in self.app_settings.items()}
        # Secret settings are supplied as secure parameters named after the setting.
        for key in self.secret_settings:
            settings[key] = AppSetting.secret(key)

        return WebAppConfig(
            name=ResourceName(self.name),
            service_plan=ResourceName(self.service_plan or ""),
            create_service_plan=self.create_service_plan,
            sku=self.sku.to_sku(),
            worker_size=self.worker_size_value,
            worker_count=self.worker_count,
            operating_system=self.os,
            app_settings=settings,
            always_on=self.always_on,
            https_only=self.https_only,
            http20_enabled=self.http20_enabled,
            client_affinity_enabled=self.client_affinity_enabled,
            web_sockets_enabled=self.web_sockets_enabled,
            identity=self.identity,
            linux_fx_version=self.linux_fx_version,
            app_command_line=self.app_command_line,
            net_framework_version=self.net_framework_version,
            java_version=self.java_version,
            java_container=self.java_container,
            java_container_version=self.java_container_version,
            php_version=self.php_version,
            python_version=self.python_version,
            metadata=list(self.metadata.items()),
            dependencies=[ResourceName(name) for name in self.depends_on],
            zip_deploy_path=self.zip_deploy_path,
        )


class AccessPolicySpec(ManifestModel):
    object_id: str = Field(alias="objectId")
    application_id: Optional[str] = Field(default=None, alias="applicationId")
    keys: List[Key] = Field(default_factory=list)
    secrets: List[Secret] = Field(default_factory=list)
    certificates: List[Certificate] = Field(default_factory=list)
    storage: List[Storage] = Field(default_factory=list)

    def to_policy(self) -> AccessPolicy:
        return AccessPolicy.for_object(
            self.object_id,
            application_id=self.application_id,
            keys=frozenset(self.keys),
            secrets=frozenset(self.secrets),
            certificates=frozenset(self.certificates),
            storage=frozenset(self.storage),
        )


class AccessSpec(ManifestModel):
    vm_access: Optional[FeatureFlag] = Field(default=None, alias="vmAccess")
    resource_manager_access: Optional[FeatureFlag] = Field(default=FeatureFlag.ENABLED, alias="resourceManagerAccess")
    disk_encryption_access: Optional[FeatureFlag] = Field(default=None, alias="diskEncryptionAccess")
    soft_delete: Optional[SoftDeletionMode] = Field(default=None, alias="softDelete")

    def to_settings(self) -> KeyVaultSettings:
        return KeyVaultSettings(
            virtual_machine_access=self.vm_access,
            resource_manager_access=self.resource_manager_access,
            azure_disk_encryption_access=self.disk_encryption_access,
            soft_delete=self.soft_delete,
        )


class NetworkSpec(ManifestModel):
    ip_rules: List[str] = Field(default_factory=list, alias="ipRules")
    vnet_rules: List[str] = Field(default_factory=list, alias="vnetRules")
    default_action: Optional[DefaultAction] = Field(default=None, alias="defaultAction")
    bypass: Optional[Bypass] = None

    def to_acl(self) -> NetworkAcl:
        return NetworkAcl(
            ip_rules=tuple(self.ip_rules),
            vnet_rules=tuple(self.vnet_rules),
            default_action=self.default_action,
            bypass=self.bypass,
        )


class SecretSpec(ManifestModel):
    """Vault secret; without ``expression`` the value is a secure parameter."""
    key: str
    expression: Optional[str] = None
    owner: Optional[str] = None
    content_type: Optional[str] = Field(default=None, alias="contentType")
    enabled: Optional[bool] = None
    activation_date: Optional[datetime] = Field(default=None, alias="activationDate")
    expiration_date: Optional[datetime] = Field(default=None, alias="expirationDate")
    depends_on: List[str] = Field(default_factory=list, alias="dependsOn")

    def to_config(self) -> SecretConfig:
        if self.expression is not None and self.owner is not None:
            secret = SecretConfig.from_expression(
                self.key, ArmExpression(self.expression), ResourceName(self.owner)
            )
        elif self.expression is not None:
            secret = SecretConfig(self.key, value=SecretValue(expression=ArmExpression(self.expression)))
        else:
            secret = SecretConfig.create(self.key)

        secret.content_type = self.content_type
        secret.enabled = self.enabled
        secret.activation_date = self.activation_date
        secret.expiration_date = self.expiration_date
        for name in self.depends_on:
            dependency = ResourceName(name)
            if dependency not in secret.dependencies:
                secret.dependencies.append(dependency)
        return secret


class KeyVaultResource(ManifestModel):
    """Key Vault with policies and secrets."""
    type: Literal["keyVault"]
    name: str
    sku: VaultSku = VaultSku.STANDARD
    tenant_id: Optional[str] = Field(default=None, alias="tenantId")
    uri: Optional[str] = None
    access: AccessSpec = Field(default_factory=AccessSpec)
    network: NetworkSpec = Field(default_factory=NetworkSpec)
    create_mode: Optional[SimpleCreateMode] = Field(default=None, alias="createMode")
    access_policies: List[AccessPolicySpec] = Field(default_factory=list, alias="accessPolicies")
    readers: List[str] = Field(default_factory=list)
    secrets: List[SecretSpec] = Field(default_factory=list)

    def to_config(self) -> KeyVaultConfig:
        policies = [spec.to_policy() for spec in self.access_policies]
        policies.extend(
            AccessPolicy.reader(ArmExpression.string_literal(object_id)) for object_id in self.readers
        )
        state = KeyVaultBuilderState(
            name=ResourceName(self.name),
            tenant_id=ArmExpression.string_literal(self.tenant_id) if self.tenant_id else None,
            access=self.access.to_settings(),
            sku=self.sku,
            network_acl=self.network.to_acl(),
            create_mode=self.create_mode,
            policies=policies,
            uri=self.uri,
        )
        state.add_secrets(spec.to_config() for spec in self.secrets)
        return state.finalize()


ResourceSpec = Annotated[
    Union[ServicePlanResource, WebAppResource, KeyVaultResource],
    Field(discriminator="type"),
]


class Manifest(ManifestModel):
    """Root manifest schema."""
    metadata: Metadata
    subscription: Optional[str] = None
    resource_group: ResourceGroup = Field(alias="resourceGroup")
    location: str
    resources: List[ResourceSpec] = Field(default_factory=list)

    def to_builders(self) -> List[Builder]:
        """Finalize every resource entry into its builder configuration.

        Raises:
            ConfigurationError: If any entry violates a configuration invariant.
        """
        return [resource.to_config() for resource in self.resources]
