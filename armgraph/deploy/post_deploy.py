"""Sequential execution of post-deploy actions."""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from rich.console import Console

from ..arm.models import PostDeployAction, PostDeployOutcome
from ..errors import ArmGraphError

console = Console()

ZipDeployCall = Callable[[str, Path, Optional[str]], PostDeployOutcome]


@dataclass
class DeploymentContext:
    """What post-deploy actions need to know about the applied deployment."""
    resource_group: str
    zip_deploy: ZipDeployCall
    subscription_id: Optional[str] = None


@dataclass
class PostDeployReport:
    outcomes: List[PostDeployOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return all(outcome.succeeded for outcome in self.outcomes)

    @property
    def failures(self) -> List[PostDeployOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.succeeded]


def run_post_deploy(
    actions: Sequence[PostDeployAction],
    context: DeploymentContext,
    debug: bool = False,
) -> PostDeployReport:
    """Run every action in order, recording each outcome.

    A failing action does not stop the ones after it, and nothing is retried.

    Args:
        actions: Post-deploy queue from the compiled graph.
        context: Deployment context handed to each action.
        debug: If True, print verbose debug information.

    Returns:
        PostDeployReport: One outcome per action, in order.
    """
    report = PostDeployReport()
    for action in actions:
        if debug:
            console.print(f"[blue]Debug: Running post-deploy action for {action.resource_name}[/]")
        try:
            outcome = action.run(context)
        except ArmGraphError as e:
            outcome = PostDeployOutcome(action.resource_name.value, False, str(e), e)
        report.outcomes.append(outcome)
    return report
