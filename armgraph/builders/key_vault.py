"""Key Vault and secret configurations."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Tuple

from ..arm.key_vault import (
    Bypass,
    Certificate,
    CreateModeToken,
    DefaultAction,
    Key,
    Secret,
    SecretValue,
    SoftDeletionMode,
    Storage,
    Vault,
    VaultAccessPolicy,
    VaultSecret,
    VaultSku,
)
from ..arm.models import ArmExpression, ArmResource, FeatureFlag, ResourceName, SecureParameter
from ..errors import ConfigurationError
from .base import Builder, BuildContext

MAX_SECRET_KEY_LENGTH = 127


@dataclass(frozen=True)
class AccessPolicy:
    """Permissions granted to one principal on a vault."""
    object_id: ArmExpression
    application_id: Optional[str] = None
    keys: FrozenSet[Key] = frozenset()
    secrets: FrozenSet[Secret] = frozenset()
    certificates: FrozenSet[Certificate] = frozenset()
    storage: FrozenSet[Storage] = frozenset()

    @staticmethod
    def for_object(object_id: str, **permissions) -> "AccessPolicy":
        """Create a policy from a raw object id (GUID) string."""
        return AccessPolicy(ArmExpression.string_literal(object_id), **permissions)

    @staticmethod
    def reader(principal: ArmExpression) -> "AccessPolicy":
        """A policy that only permits reading secrets."""
        return AccessPolicy(principal, secrets=frozenset({Secret.GET}))

    def to_vault_policy(self) -> VaultAccessPolicy:
        return VaultAccessPolicy(
            object_id=self.object_id,
            application_id=self.application_id,
            keys=self.keys,
            secrets=self.secrets,
            certificates=self.certificates,
            storage=self.storage,
        )


@dataclass(frozen=True)
class CreateMode:
    """How the vault is created, together with its access policies."""
    policies: Tuple[AccessPolicy, ...] = ()

    token: Optional[CreateModeToken] = None


@dataclass(frozen=True)
class Unspecified(CreateMode):
    """No explicit create mode; the platform decides."""
    pass


@dataclass(frozen=True)
class Default(CreateMode):
    token: Optional[CreateModeToken] = CreateModeToken.DEFAULT


@dataclass(frozen=True)
class Recover(CreateMode):
    """Recover a soft-deleted vault. Requires at least one access policy."""
    token: Optional[CreateModeToken] = CreateModeToken.RECOVER

    def __post_init__(self):
        if not self.policies:
            raise ConfigurationError(
                "Setting the creation mode to Recover requires at least one access policy."
            )


class SimpleCreateMode(Enum):
    RECOVER = "Recover"
    DEFAULT = "Default"


@dataclass(frozen=True)
class KeyVaultSettings:
    virtual_machine_access: Optional[FeatureFlag] = None
    resource_manager_access: Optional[FeatureFlag] = FeatureFlag.ENABLED
    azure_disk_encryption_access: Optional[FeatureFlag] = None
    soft_delete: Optional[SoftDeletionMode] = None


@dataclass(frozen=True)
class NetworkAcl:
    ip_rules: Tuple[str, ...] = ()
    vnet_rules: Tuple[str, ...] = ()
    default_action: Optional[DefaultAction] = None
    bypass: Optional[Bypass] = None


def validate_secret_key(key: str) -> None:
    """Check a Key Vault secret name.

    Raises:
        ConfigurationError: Unless the key is 1-127 characters of letters,
            digits and dashes.
    """
    valid = (
        key is not None
        and key.strip() != ""
        and len(key) <= MAX_SECRET_KEY_LENGTH
        and all(char.isalnum() or char == "-" for char in key)
    )
    if not valid:
        raise ConfigurationError(
            f"Invalid Key Vault secret name '{key}': names must be a 1-{MAX_SECRET_KEY_LENGTH} "
            "character string containing only 0-9, a-z, A-Z, and -."
        )


@dataclass
class SecretConfig:
    """A secret stored in a vault.

    By default the value is a secure parameter named after the key, supplied
    at deployment time.
    """
    key: str
    value: Optional[SecretValue] = None
    content_type: Optional[str] = None
    enabled: Optional[bool] = None
    activation_date: Optional[datetime] = None
    expiration_date: Optional[datetime] = None
    dependencies: List[ResourceName] = field(default_factory=list)

    def __post_init__(self):
        validate_secret_key(self.key)
        if self.value is None:
            self.value = SecretValue(parameter=SecureParameter(self.key))

    @staticmethod
    def create(key: str) -> "SecretConfig":
        return SecretConfig(key)

    @staticmethod
    def from_expression(key: str, expression: ArmExpression, owner: ResourceName) -> "SecretConfig":
        """A secret whose value comes from another resource in the template."""
        return SecretConfig(key, value=SecretValue(expression=expression), dependencies=[owner])

    def to_vault_secret(self, vault: ResourceName, location: str) -> VaultSecret:
        dependencies = [vault]
        for dependency in self.dependencies:
            if dependency not in dependencies:
                dependencies.append(dependency)
        return VaultSecret(
            name=vault.map(lambda name: f"{name}/{self.key}"),
            value=self.value,
            location=location,
            content_type=self.content_type,
            enabled=self.enabled,
            activation_date=self.activation_date,
            expiration_date=self.expiration_date,
            dependencies=dependencies,
        )


@dataclass
class KeyVaultConfig(Builder):
    """A finalized vault with its policies and secrets."""
    name: ResourceName
    create_mode: CreateMode = field(default_factory=Unspecified)
    tenant_id: Optional[ArmExpression] = None
    access: KeyVaultSettings = field(default_factory=KeyVaultSettings)
    sku: VaultSku = VaultSku.STANDARD
    network_acl: NetworkAcl = field(default_factory=NetworkAcl)
    uri: Optional[str] = None
    secrets: List[SecretConfig] = field(default_factory=list)

    def __post_init__(self):
        if self.name.is_empty:
            raise ConfigurationError("A key vault must have a name.")

    @property
    def dependency_name(self) -> ResourceName:
        return self.name

    def build_resources(self, location: str, context: BuildContext) -> List[ArmResource]:
        tenant_id = (self.tenant_id or context.tenant_id).eval()
        vault = Vault(
            name=self.name,
            location=location,
            tenant_id=tenant_id,
            sku=self.sku,
            template_deployment=self.access.resource_manager_access,
            disk_encryption=self.access.azure_disk_encryption_access,
            deployment=self.access.virtual_machine_access,
            soft_delete=self.access.soft_delete,
            create_mode=self.create_mode.token,
            access_policies=[policy.to_vault_policy() for policy in self.create_mode.policies],
            uri=self.uri,
            default_action=self.network_acl.default_action,
            bypass=self.network_acl.bypass,
            ip_rules=list(self.network_acl.ip_rules),
            vnet_rules=list(self.network_acl.vnet_rules),
        )

        resources: List[ArmResource] = [vault]
        for secret in self.secrets:
            resources.append(secret.to_vault_secret(self.name, location))
        return resources


@dataclass
class KeyVaultBuilderState:
    """Mutable vault settings collected before finalization."""
    name: ResourceName = ResourceName.EMPTY
    tenant_id: Optional[ArmExpression] = None
    access: KeyVaultSettings = field(default_factory=KeyVaultSettings)
    sku: VaultSku = VaultSku.STANDARD
    network_acl: NetworkAcl = field(default_factory=NetworkAcl)
    create_mode: Optional[SimpleCreateMode] = None
    policies: List[AccessPolicy] = field(default_factory=list)
    uri: Optional[str] = None
    secrets: List[SecretConfig] = field(default_factory=list)

    def add_secrets(self, secrets: Iterable[SecretConfig]) -> "KeyVaultBuilderState":
        self.secrets.extend(secrets)
        return self

    def finalize(self) -> KeyVaultConfig:
        """Turn the collected settings into a vault configuration.

        Raises:
            ConfigurationError: If the name is empty, or recovery mode was
                requested without any access policy.
        """
        policies = tuple(self.policies)
        if self.create_mode is None:
            create_mode: CreateMode = Unspecified(policies)
        elif self.create_mode is SimpleCreateMode.DEFAULT:
            create_mode = Default(policies)
        else:
            create_mode = Recover(policies)

        return KeyVaultConfig(
            name=self.name,
            create_mode=create_mode,
            tenant_id=self.tenant_id,
            access=self.access,
            sku=self.sku,
            network_acl=self.network_acl,
            uri=self.uri,
            secrets=list(self.secrets),
        )
