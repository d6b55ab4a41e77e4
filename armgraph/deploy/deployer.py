"""Submits compiled templates to Azure Resource Manager through the Azure CLI."""
import json
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from rich.console import Console

from ..errors import DeploymentError
from .parameters import write_parameters_file

console = Console()

TEMPLATE_FILE = "azuredeploy.json"
PARAMETERS_FILE = "azuredeploy.parameters.json"


def get_default_subscription(debug: bool = False) -> str:
    """Get the default subscription ID from Azure CLI.

    Returns:
        str: Azure subscription ID.

    Raises:
        subprocess.CalledProcessError: If Azure CLI command fails.
    """
    cmd = ["az", "account", "show", "--query", "id", "-o", "tsv"]

    if debug:
        console.print(f"[blue]Debug: Running command: {' '.join(cmd)}[/]")

    result = subprocess.run(cmd, capture_output=True, text=True, check=True)
    subscription_id = result.stdout.strip()

    if debug:
        console.print(f"[blue]Debug: Using subscription ID: {subscription_id}[/]")

    return subscription_id


class TemplateDeployer:
    """Creates the resource group and applies an ARM template to it."""

    def __init__(self, subscription_id: Optional[str] = None, debug: bool = False):
        """Initialize the deployer.

        Args:
            subscription_id: Azure subscription ID; the CLI default when None.
            debug: If True, print verbose debug information.
        """
        self.subscription_id = subscription_id
        self.debug = debug

    def _run(self, cmd: List[str], failure: str, resource_name: str) -> str:
        if self.subscription_id:
            cmd = cmd + ["--subscription", self.subscription_id]

        if self.debug:
            console.print("[blue]Debug: Full Azure CLI command:[/]")
            console.print(f"[dim]{' '.join(cmd)}[/]")

        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=True)
        except subprocess.CalledProcessError as e:
            raise DeploymentError(f"{failure}: {(e.stderr or '').strip() or e}", resource_name) from e
        return result.stdout

    def ensure_resource_group(self, name: str, location: str, tags: Optional[Dict[str, str]] = None) -> None:
        """Create or update the target resource group.

        Raises:
            DeploymentError: If the resource group cannot be created.
        """
        cmd = ["az", "group", "create", "--name", name, "--location", location]
        if tags:
            cmd.extend(["--tags", *(f"{key}={value}" for key, value in tags.items())])
        self._run(cmd, f"Failed to create resource group {name}", name)

    def deploy(
        self,
        resource_group: str,
        deployment_name: str,
        template: Dict[str, Any],
        parameters: Mapping[str, str],
        what_if: bool = False,
    ) -> Dict[str, Any]:
        """Apply a template in Incremental mode and wait for completion.

        The template and parameter values are written to a temporary directory
        that is removed once the CLI returns.

        Args:
            resource_group: Target resource group.
            deployment_name: Name of the ARM deployment.
            template: Rendered ARM template.
            parameters: Value for each secure parameter the template declares.
            what_if: If True, only preview the changes.

        Returns:
            Dict[str, Any]: Outputs of the deployment, or the what-if result.

        Raises:
            DeploymentError: If the deployment is rejected or does not succeed.
        """
        with tempfile.TemporaryDirectory(prefix="armgraph-") as workdir:
            template_path = Path(workdir) / TEMPLATE_FILE
            template_path.write_text(json.dumps(template, indent=2))
            params_path = write_parameters_file(
                Path(workdir) / PARAMETERS_FILE, list(parameters), parameters
            )

            cmd = [
                "az", "deployment", "group",
                "what-if" if what_if else "create",
                "--resource-group", resource_group,
                "--name", deployment_name,
                "--template-file", str(template_path),
                "--parameters", f"@{params_path}",
            ]
            if what_if:
                cmd.append("--no-pretty-print")
            else:
                cmd.extend(["--mode", "Incremental", "--output", "json"])

            stdout = self._run(cmd, f"Deployment {deployment_name} failed", deployment_name)

        try:
            result = json.loads(stdout)
        except json.JSONDecodeError as e:
            raise DeploymentError(
                f"Failed to parse the result of deployment {deployment_name}", deployment_name
            ) from e

        if what_if:
            return result

        state = result.get("properties", {}).get("provisioningState")
        if state != "Succeeded":
            raise DeploymentError(
                f"Deployment {deployment_name} finished in state {state}", deployment_name
            )
        return result["properties"].get("outputs") or {}
