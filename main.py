"""armgraph CLI entrypoint."""
import json
import subprocess
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from armgraph.compiler import CompiledGraph, GraphCompiler
from armgraph.deploy.deployer import (
    PARAMETERS_FILE,
    TEMPLATE_FILE,
    TemplateDeployer,
    get_default_subscription,
)
from armgraph.deploy.kudu import KuduZipDeployer
from armgraph.deploy.parameters import (
    load_parameters_file,
    parse_param_options,
    resolve_parameter_values,
    write_parameters_file,
)
from armgraph.deploy.post_deploy import DeploymentContext, PostDeployReport, run_post_deploy
from armgraph.errors import ArmGraphError, ConfigurationError, DeploymentError
from armgraph.manifest.parser import ManifestParser
from armgraph.manifest.schema import Manifest

app = typer.Typer(help="armgraph - compile resource manifests into ARM templates and deploy them")
console = Console()


def _compile(config: str, debug: bool) -> Tuple[Manifest, CompiledGraph]:
    manifest = ManifestParser.load(config)
    builders = manifest.to_builders()
    graph = GraphCompiler(debug=debug).compile(builders, manifest.location)
    return manifest, graph


def _print_resources(graph: CompiledGraph) -> None:
    table = Table(title="Resources")
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    for resource in graph.resources:
        table.add_row(resource.name.value, resource.resource_type)
    console.print(table)

    if graph.parameters:
        console.print(f"Secure parameters: [bold]{', '.join(graph.parameter_names)}[/]")
    if graph.post_deploy:
        names = ", ".join(action.resource_name.value for action in graph.post_deploy)
        console.print(f"Post-deploy actions: [bold]{names}[/]")


def _print_outcomes(report: PostDeployReport) -> None:
    table = Table(title="Post-deploy Actions")
    table.add_column("Resource", style="cyan")
    table.add_column("Status")
    table.add_column("Details")
    for outcome in report.outcomes:
        status = "[green]✓ SUCCEEDED[/]" if outcome.succeeded else "[red]❌ FAILED[/]"
        table.add_row(outcome.resource_name, status, escape(outcome.message))
    console.print(table)


@app.command("validate")
def validate(
    config: str = typer.Option("infra.yaml", "--config", "-c", help="Path to the infrastructure YAML file"),
    debug: bool = typer.Option(False, "--debug", help="Print verbose debug information"),
):
    """Validate the manifest and compile it without writing anything."""
    try:
        _, graph = _compile(config, debug)
    except (ArmGraphError, FileNotFoundError) as e:
        console.print(f"[bold red]Error: {escape(str(e))}[/]")
        raise typer.Exit(code=1)

    _print_resources(graph)
    console.print("[green]Manifest is valid[/]")


@app.command("generate")
def generate(
    config: str = typer.Option("infra.yaml", "--config", "-c", help="Path to the infrastructure YAML file"),
    output_dir: str = typer.Option(None, "--output-dir", "-o", help="Directory for generated template files"),
    debug: bool = typer.Option(False, "--debug", help="Print verbose debug information including the generated template"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing template files"),
):
    """Generate the ARM template and parameters file from the YAML manifest."""
    console.print("[bold blue]Generating ARM template...[/]")

    try:
        _, graph = _compile(config, debug)
    except (ArmGraphError, FileNotFoundError) as e:
        console.print(f"[bold red]Error: {escape(str(e))}[/]")
        raise typer.Exit(code=1)

    output_path = Path(output_dir) if output_dir else Path(config).parent
    output_path.mkdir(parents=True, exist_ok=True)
    template_path = output_path / TEMPLATE_FILE
    params_path = output_path / PARAMETERS_FILE

    existing_files = [path for path in (template_path, params_path) if path.exists()]
    if existing_files and not force:
        existing_files_str = ", ".join(str(f) for f in existing_files)
        console.print(f"[bold yellow]WARNING: Template files already exist: {existing_files_str}[/]")
        console.print("[yellow]Use --force to overwrite existing files.[/]")
        raise typer.Exit(code=1)

    template_path.write_text(json.dumps(graph.template(), indent=2))
    write_parameters_file(params_path, graph.parameter_names)

    _print_resources(graph)
    console.print(f"[green]ARM template generated at {template_path}[/]")
    console.print(f"[green]Parameters file generated at {params_path}[/]")

    if debug:
        console.print("\n[bold blue]Generated ARM Template:[/]")
        console.print_json(template_path.read_text())


@app.command("deploy")
def deploy(
    config: str = typer.Option("infra.yaml", "--config", "-c", help="Path to the infrastructure YAML file"),
    param: Optional[List[str]] = typer.Option(None, "--param", "-p", help="Secure parameter value as name=value"),
    parameters_file: Optional[str] = typer.Option(None, "--parameters-file", help="ARM parameters file with secure values"),
    what_if: bool = typer.Option(False, "--what-if", help="Show what would be deployed without making changes"),
    debug: bool = typer.Option(False, "--debug", help="Print verbose debug information including all Azure CLI commands"),
):
    """Deploy the manifest's resources, then run post-deploy actions."""
    console.print("[bold blue]Deploying resources...[/]")

    try:
        manifest, graph = _compile(config, debug)

        explicit = load_parameters_file(parameters_file) if parameters_file else {}
        explicit.update(parse_param_options(param or []))
        values = resolve_parameter_values(graph.parameter_names, explicit)

        subscription_id = manifest.subscription or get_default_subscription(debug)
        resource_group = manifest.resource_group.name
        deployment_name = f"{manifest.metadata.name}-{datetime.now().strftime('%Y%m%d%H%M%S')}"

        deployer = TemplateDeployer(subscription_id, debug=debug)
        deployer.ensure_resource_group(resource_group, manifest.location, manifest.resource_group.tags)
        with console.status(f"Running deployment {deployment_name}..."):
            result = deployer.deploy(
                resource_group, deployment_name, graph.template(), values, what_if=what_if
            )
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error: {escape(str(e))}[/]")
        raise typer.Exit(code=1)
    except DeploymentError as e:
        console.print(f"[bold red]Deployment failed: {escape(str(e))}[/]")
        raise typer.Exit(code=1)
    except subprocess.CalledProcessError as e:
        console.print(f"[bold red]Azure CLI command failed: {escape(str(e))}[/]")
        if debug:
            console.print(escape(e.stderr or "No error output captured"))
        raise typer.Exit(code=1)
    except FileNotFoundError as e:
        console.print(f"[bold red]Error: {escape(str(e))}[/]")
        raise typer.Exit(code=1)

    if what_if:
        console.print(f"Changes: {len(result.get('changes', []))}")
        for change in result.get("changes", []):
            console.print(f"- {change.get('resourceId')}: {change.get('changeType')}")
        console.print("\n[green]What-if deployment analysis completed. No resources were modified.[/]")
        return

    console.print(f"[green]Deployment {deployment_name} succeeded[/]")

    if not graph.post_deploy:
        return

    context = DeploymentContext(
        resource_group=resource_group,
        zip_deploy=KuduZipDeployer(debug=debug),
        subscription_id=subscription_id,
    )
    report = run_post_deploy(graph.post_deploy, context, debug=debug)
    _print_outcomes(report)

    if not report.succeeded:
        console.print(f"[bold red]{len(report.failures)} post-deploy action(s) failed[/]")
        raise typer.Exit(code=1)
    console.print("[green]All post-deploy actions completed successfully![/]")


if __name__ == "__main__":
    app()
