"""Exceptions raised while compiling and deploying resource graphs."""
from typing import Optional


class ArmGraphError(Exception):
    """Base class for all armgraph errors."""
    pass


class ConfigurationError(ArmGraphError):
    """Raised when a resource configuration violates one of its invariants."""
    pass


class ManifestError(ConfigurationError):
    """Raised when the infrastructure manifest is invalid."""
    pass


class ArtifactError(ArmGraphError):
    """Raised when a ZIP deploy path is neither a folder nor a .zip file."""
    pass


class DeploymentError(ArmGraphError):
    """Raised when a template submission or package upload fails."""

    def __init__(self, message: str, resource_name: Optional[str] = None):
        super().__init__(message)
        self.resource_name = resource_name
