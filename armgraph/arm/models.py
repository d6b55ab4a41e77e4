"""Shared data models for ARM resource generation."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, List, Optional

from ..errors import ConfigurationError


@dataclass(frozen=True)
class ResourceName:
    """Name of an ARM resource, also used as a dependency reference."""
    value: str

    EMPTY: ClassVar["ResourceName"]

    @property
    def is_empty(self) -> bool:
        return not self.value or not self.value.strip()

    def map(self, mapper: Callable[[str], str]) -> "ResourceName":
        """Derive a new name from this one, e.g. ``<app>-plan``."""
        return ResourceName(mapper(self.value))

    def __str__(self) -> str:
        return self.value


ResourceName.EMPTY = ResourceName("")


@dataclass(frozen=True)
class ArmExpression:
    """An ARM template expression such as ``subscription().tenantId``."""
    value: str

    def eval(self) -> str:
        """Render the expression as a template string value."""
        return f"[{self.value}]"

    @staticmethod
    def string_literal(value: str) -> "ArmExpression":
        return ArmExpression(f"string('{value}')")


SUBSCRIPTION_TENANT_ID = ArmExpression("subscription().tenantId")


@dataclass(frozen=True)
class SecureParameter:
    """A secret value supplied at deployment time instead of in the template."""
    name: str

    @property
    def param_value(self) -> str:
        return f"[parameters('{self.name}')]"

    @property
    def arm_declaration(self) -> Dict[str, str]:
        return {"type": "securestring"}


class FeatureFlag(Enum):
    ENABLED = "Enabled"
    DISABLED = "Disabled"

    @property
    def as_bool(self) -> bool:
        return self is FeatureFlag.ENABLED


@dataclass
class PostDeployOutcome:
    """Result of running one post-deploy action."""
    resource_name: str
    succeeded: bool
    message: str = ""
    error: Optional[Exception] = None


@dataclass
class PostDeployAction:
    """Work to run once the template has been applied successfully.

    ``run`` receives the deployment context (resource group, uploader, ...)
    and returns the outcome of the action.
    """
    resource_name: ResourceName
    run: Callable[[Any], PostDeployOutcome]


@dataclass
class ArmResource(ABC):
    """Base class for every resource emitted into an ARM template."""
    name: ResourceName

    resource_type: ClassVar[str] = ""

    def __post_init__(self):
        if self.name.is_empty:
            raise ConfigurationError(
                f"Cannot create a {self.resource_type or 'resource'} without a name."
            )

    @abstractmethod
    def json_model(self) -> Dict[str, Any]:
        """Serialize the resource as an ARM template resource entry."""
        pass

    def secure_parameters(self) -> List[SecureParameter]:
        return []

    def post_deploy_actions(self) -> List[PostDeployAction]:
        return []


def set_if_present(target: Dict[str, Any], key: str, value: Any) -> None:
    """Add ``key`` to ``target`` only when ``value`` is not None."""
    if value is not None:
        target[key] = value
