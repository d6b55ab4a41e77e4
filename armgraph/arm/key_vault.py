"""Key Vault and Key Vault secret ARM resources."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

from .models import (
    ArmExpression,
    ArmResource,
    FeatureFlag,
    ResourceName,
    SecureParameter,
    set_if_present,
)

API_VERSIONS = {
    "Microsoft.KeyVault/vaults": "2018-02-14",
    "Microsoft.KeyVault/vaults/secrets": "2018-02-14",
}


class Key(Enum):
    ENCRYPT = "encrypt"
    DECRYPT = "decrypt"
    WRAP_KEY = "wrapKey"
    UNWRAP_KEY = "unwrapKey"
    SIGN = "sign"
    VERIFY = "verify"
    GET = "get"
    LIST = "list"
    CREATE = "create"
    UPDATE = "update"
    IMPORT = "import"
    DELETE = "delete"
    BACKUP = "backup"
    RESTORE = "restore"
    RECOVER = "recover"
    PURGE = "purge"


class Secret(Enum):
    GET = "get"
    LIST = "list"
    SET = "set"
    DELETE = "delete"
    BACKUP = "backup"
    RESTORE = "restore"
    RECOVER = "recover"
    PURGE = "purge"


class Certificate(Enum):
    GET = "get"
    LIST = "list"
    DELETE = "delete"
    CREATE = "create"
    IMPORT = "import"
    UPDATE = "update"
    MANAGE_CONTACTS = "managecontacts"
    GET_ISSUERS = "getissuers"
    LIST_ISSUERS = "listissuers"
    SET_ISSUERS = "setissuers"
    DELETE_ISSUERS = "deleteissuers"
    MANAGE_ISSUERS = "manageissuers"
    RECOVER = "recover"
    PURGE = "purge"
    BACKUP = "backup"
    RESTORE = "restore"


class Storage(Enum):
    GET = "get"
    LIST = "list"
    DELETE = "delete"
    SET = "set"
    UPDATE = "update"
    REGENERATE_KEY = "regeneratekey"
    GET_SAS = "getsas"
    LIST_SAS = "listsas"
    DELETE_SAS = "deletesas"
    SET_SAS = "setsas"
    RECOVER = "recover"
    BACKUP = "backup"
    RESTORE = "restore"
    PURGE = "purge"


class SoftDeletionMode(Enum):
    SOFT_DELETION_ONLY = "SoftDeletionOnly"
    SOFT_DELETE_WITH_PURGE_PROTECTION = "SoftDeleteWithPurgeProtection"


class DefaultAction(Enum):
    ALLOW = "Allow"
    DENY = "Deny"


class Bypass(Enum):
    AZURE_SERVICES = "AzureServices"
    NO_TRAFFIC = "None"


class CreateModeToken(Enum):
    RECOVER = "recover"
    DEFAULT = "default"


class VaultSku(Enum):
    STANDARD = "standard"
    PREMIUM = "premium"


def _permission_list(permissions: FrozenSet[Enum]) -> List[str]:
    return sorted(permission.value.lower() for permission in permissions)


def _epoch_seconds(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp())


@dataclass(frozen=True)
class VaultAccessPolicy:
    """Access policy as embedded in a vault's properties."""
    object_id: ArmExpression
    application_id: Optional[str] = None
    keys: FrozenSet[Key] = frozenset()
    secrets: FrozenSet[Secret] = frozenset()
    certificates: FrozenSet[Certificate] = frozenset()
    storage: FrozenSet[Storage] = frozenset()

    def json_model(self, tenant_id: str) -> Dict[str, Any]:
        model = {
            "objectId": self.object_id.eval(),
            "tenantId": tenant_id,
        }
        set_if_present(model, "applicationId", self.application_id)
        model["permissions"] = {
            "keys": _permission_list(self.keys),
            "storage": _permission_list(self.storage),
            "certificates": _permission_list(self.certificates),
            "secrets": _permission_list(self.secrets),
        }
        return model


@dataclass
class Vault(ArmResource):
    """Microsoft.KeyVault/vaults."""
    location: str = ""
    tenant_id: str = ""
    sku: VaultSku = VaultSku.STANDARD
    template_deployment: Optional[FeatureFlag] = None
    disk_encryption: Optional[FeatureFlag] = None
    deployment: Optional[FeatureFlag] = None
    soft_delete: Optional[SoftDeletionMode] = None
    create_mode: Optional[CreateModeToken] = None
    access_policies: List[VaultAccessPolicy] = field(default_factory=list)
    uri: Optional[str] = None
    default_action: Optional[DefaultAction] = None
    bypass: Optional[Bypass] = None
    ip_rules: List[str] = field(default_factory=list)
    vnet_rules: List[str] = field(default_factory=list)

    resource_type = "Microsoft.KeyVault/vaults"

    @staticmethod
    def _flag(flag: Optional[FeatureFlag]) -> Optional[bool]:
        return flag.as_bool if flag is not None else None

    def _network_acls(self) -> Dict[str, Any]:
        acls = {
            "ipRules": [{"value": rule} for rule in self.ip_rules],
            "virtualNetworkRules": [{"id": rule} for rule in self.vnet_rules],
        }
        set_if_present(acls, "defaultAction", self.default_action.value if self.default_action else None)
        set_if_present(acls, "bypass", self.bypass.value if self.bypass else None)
        return acls

    def json_model(self) -> Dict[str, Any]:
        properties = {
            "tenantId": self.tenant_id,
            "sku": {"name": self.sku.value, "family": "A"},
        }
        set_if_present(properties, "enabledForDeployment", self._flag(self.deployment))
        set_if_present(properties, "enabledForDiskEncryption", self._flag(self.disk_encryption))
        set_if_present(properties, "enabledForTemplateDeployment", self._flag(self.template_deployment))
        if self.soft_delete is not None:
            properties["enableSoftDelete"] = True
            if self.soft_delete is SoftDeletionMode.SOFT_DELETE_WITH_PURGE_PROTECTION:
                properties["enablePurgeProtection"] = True
        set_if_present(properties, "createMode", self.create_mode.value if self.create_mode else None)
        set_if_present(properties, "vaultUri", self.uri)
        properties["accessPolicies"] = [
            policy.json_model(self.tenant_id) for policy in self.access_policies
        ]
        properties["networkAcls"] = self._network_acls()

        return {
            "type": self.resource_type,
            "name": self.name.value,
            "apiVersion": API_VERSIONS[self.resource_type],
            "location": self.location,
            "properties": properties,
        }


@dataclass(frozen=True)
class SecretValue:
    """Value of a vault secret: a secure parameter or an ARM expression."""
    parameter: Optional[SecureParameter] = None
    expression: Optional[ArmExpression] = None

    @property
    def arm_value(self) -> str:
        if self.parameter is not None:
            return self.parameter.param_value
        return self.expression.eval()


@dataclass
class VaultSecret(ArmResource):
    """Microsoft.KeyVault/vaults/secrets."""
    value: SecretValue = field(default_factory=SecretValue)
    location: str = ""
    content_type: Optional[str] = None
    enabled: Optional[bool] = None
    activation_date: Optional[datetime] = None
    expiration_date: Optional[datetime] = None
    dependencies: List[ResourceName] = field(default_factory=list)

    resource_type = "Microsoft.KeyVault/vaults/secrets"

    def secure_parameters(self) -> List[SecureParameter]:
        return [self.value.parameter] if self.value.parameter else []

    def json_model(self) -> Dict[str, Any]:
        attributes = {}
        set_if_present(attributes, "enabled", self.enabled)
        if self.activation_date is not None:
            attributes["nbf"] = _epoch_seconds(self.activation_date)
        if self.expiration_date is not None:
            attributes["exp"] = _epoch_seconds(self.expiration_date)

        properties = {"value": self.value.arm_value}
        set_if_present(properties, "contentType", self.content_type)
        properties["attributes"] = attributes

        return {
            "type": self.resource_type,
            "name": self.name.value,
            "apiVersion": API_VERSIONS[self.resource_type],
            "location": self.location,
            "dependsOn": [dependency.value for dependency in self.dependencies],
            "properties": properties,
        }
