"""ZIP deployment of application packages through the Kudu API."""
from pathlib import Path
from typing import Optional

import requests
from azure.core.exceptions import ClientAuthenticationError
from azure.identity import DefaultAzureCredential
from rich.console import Console

from ..arm.models import PostDeployOutcome
from ..errors import DeploymentError

console = Console()

MANAGEMENT_SCOPE = "https://management.azure.com/.default"


class KuduZipDeployer:
    """Uploads ZIP packages to web apps using an Azure AD bearer token."""

    def __init__(self, credential=None, timeout: int = 600, debug: bool = False):
        """Initialize the deployer.

        Args:
            credential: Azure credential; defaults to DefaultAzureCredential.
            timeout: Seconds to wait for the synchronous deployment.
            debug: If True, print verbose debug information.
        """
        self.credential = credential or DefaultAzureCredential()
        self.timeout = timeout
        self.debug = debug

    def zipdeploy_url(self, site_name: str) -> str:
        return f"https://{site_name}.scm.azurewebsites.net/api/zipdeploy"

    def __call__(self, site_name: str, zip_path: Path, resource_group: Optional[str] = None) -> PostDeployOutcome:
        """Upload ``zip_path`` to ``site_name`` and wait for the deployment.

        Returns:
            PostDeployOutcome: Successful outcome for the site.

        Raises:
            DeploymentError: If authentication, transport or the deployment fails.
        """
        try:
            token = self.credential.get_token(MANAGEMENT_SCOPE).token
        except ClientAuthenticationError as e:
            raise DeploymentError(
                f"Could not acquire a token to deploy {site_name}: {e.message}", site_name
            ) from e

        url = self.zipdeploy_url(site_name)
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/zip",
        }

        if self.debug:
            console.print(f"[blue]Debug: POST {url} ({zip_path}, resource group {resource_group})[/]")

        try:
            with open(zip_path, "rb") as package:
                response = requests.post(
                    url,
                    params={"isAsync": "false"},
                    data=package,
                    headers=headers,
                    timeout=self.timeout,
                )
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise DeploymentError(
                f"ZIP deploy of {zip_path} to {site_name} failed: "
                f"{e.response.status_code} - {e.response.text}",
                site_name,
            ) from e
        except requests.exceptions.RequestException as e:
            raise DeploymentError(f"ZIP deploy of {zip_path} to {site_name} failed: {e}", site_name) from e
        except OSError as e:
            raise DeploymentError(f"Could not read {zip_path} to deploy {site_name}: {e}", site_name) from e

        return PostDeployOutcome(site_name, True, f"Deployed {Path(zip_path).name} to {site_name}")
