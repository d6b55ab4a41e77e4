"""Builder contract shared by every resource configuration."""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..arm.models import SUBSCRIPTION_TENANT_ID, ArmExpression, ArmResource, ResourceName


class Builder(ABC):
    """Base class for finalized resource configurations.

    A builder is handed to the compiler once its configuration has been
    finalized and validated; ``build_resources`` is a pure function of the
    configuration, the target location and the build context.
    """

    @property
    @abstractmethod
    def dependency_name(self) -> ResourceName:
        """Name other configurations use to depend on this one."""
        pass

    @abstractmethod
    def build_resources(self, location: str, context: "BuildContext") -> List[ArmResource]:
        """Build every ARM resource this configuration contributes.

        Args:
            location: Azure region the resources are deployed to.
            context: Read-only view of the other builders in the graph.

        Returns:
            List[ArmResource]: Resources in template order.
        """
        pass


@dataclass(frozen=True)
class BuildContext:
    """Read-only view of the graph being compiled."""
    peers: Sequence[Builder] = field(default_factory=tuple)
    tenant_id: ArmExpression = SUBSCRIPTION_TENANT_ID

    def find(self, name: ResourceName) -> Optional[Builder]:
        """Return the peer builder whose dependency name is ``name``, if any."""
        for peer in self.peers:
            if peer.dependency_name == name:
                return peer
        return None
