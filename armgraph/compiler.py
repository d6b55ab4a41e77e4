"""Compiles builder configurations into an ARM template and post-deploy plan."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from rich.console import Console

from .arm.models import ArmResource, PostDeployAction, SecureParameter
from .builders.base import Builder, BuildContext

console = Console()

TEMPLATE_SCHEMA = "https://schema.management.azure.com/schemas/2019-04-01/deploymentTemplate.json#"
CONTENT_VERSION = "1.0.0.0"


@dataclass
class CompiledGraph:
    """Output of compiling a set of builders."""
    resources: List[ArmResource] = field(default_factory=list)
    parameters: List[SecureParameter] = field(default_factory=list)
    post_deploy: List[PostDeployAction] = field(default_factory=list)

    @property
    def parameter_names(self) -> List[str]:
        return [parameter.name for parameter in self.parameters]

    def template(self) -> Dict[str, Any]:
        """Render the ARM deployment template.

        Returns:
            Dict[str, Any]: Template document ready for JSON serialization.
        """
        return {
            "$schema": TEMPLATE_SCHEMA,
            "contentVersion": CONTENT_VERSION,
            "parameters": {
                parameter.name: parameter.arm_declaration for parameter in self.parameters
            },
            "outputs": {},
            "resources": [resource.json_model() for resource in self.resources],
        }


class GraphCompiler:
    """Walks builder configurations and collects their resources.

    Resources keep the order of the builders that produced them; the platform
    orders the actual deployment from each resource's ``dependsOn`` list.
    """

    def __init__(self, debug: bool = False):
        """Initialize the compiler.

        Args:
            debug: If True, print verbose debug information.
        """
        self.debug = debug

    def compile(self, builders: Sequence[Builder], location: str) -> CompiledGraph:
        """Compile builders for a target location.

        Args:
            builders: Finalized configurations, in declaration order.
            location: Azure region to deploy to.

        Returns:
            CompiledGraph: Resources, unique secure parameters and post-deploy actions.
        """
        context = BuildContext(peers=tuple(builders))
        resources: List[ArmResource] = []
        parameters: Dict[str, SecureParameter] = {}
        post_deploy: List[PostDeployAction] = []

        for builder in builders:
            built = builder.build_resources(location, context)
            if self.debug:
                console.print(
                    f"[blue]Debug: {builder.dependency_name} produced {len(built)} resource(s)[/]"
                )
            for resource in built:
                resources.append(resource)
                for parameter in resource.secure_parameters():
                    parameters.setdefault(parameter.name, parameter)
                post_deploy.extend(resource.post_deploy_actions())

        if self.debug:
            console.print(
                f"[blue]Debug: Compiled {len(resources)} resources, "
                f"{len(parameters)} secure parameters, {len(post_deploy)} post-deploy actions[/]"
            )
        return CompiledGraph(resources, list(parameters.values()), post_deploy)


def compile_graph(builders: Sequence[Builder], location: str, debug: bool = False) -> CompiledGraph:
    """Compile builders with a default compiler."""
    return GraphCompiler(debug=debug).compile(builders, location)
