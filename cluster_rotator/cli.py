"""Main CLI entry point for cluster rotation."""

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cluster_rotator.exceptions import ConfigurationError, RotationError
from cluster_rotator.logging_config import get_logger, setup_logging
from cluster_rotator.models.cluster import ClusterSnapshot, HealthCheckName
from cluster_rotator.models.config import RotationConfig
from cluster_rotator.models.run import ReplacementState, RotationEvent

app = typer.Typer(
    name="cluster-rotator",
    help="Rolling replacement of every master and agent in a running cluster",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)
logger = get_logger(__name__)

STATE_STYLES = {
    ReplacementState.REPLACING: "yellow",
    ReplacementState.WAITING_FOR_REJOIN: "cyan",
    ReplacementState.HEALTH_CHECKING: "magenta",
    ReplacementState.DONE: "green",
}


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    log_file: str | None = typer.Option(None, "--log-file", help="Path to log file"),
):
    """Global options for all commands."""
    log_path = Path(log_file) if log_file else None
    setup_logging(verbose=verbose, log_file=log_path)
    logger.debug("Logging initialized")


def load_config(config_path: str | None) -> RotationConfig:
    if config_path is None:
        return RotationConfig()
    return RotationConfig.load(config_path)


def build_backend(context: str, rotation_config: RotationConfig):
    """Create the collaborator for a kubeconfig context."""
    from cluster_rotator.kubernetes_backend import KubernetesBackend

    return KubernetesBackend.from_context(context, rotation_config)


def print_event(event: RotationEvent) -> None:
    style = STATE_STYLES.get(event.state, "white")
    scope = ""
    if event.zone:
        scope = escape(f"[{event.zone}] ")
    console.print(f"[{style}]{event.state.value:>18}[/{style}] {scope}{escape(event.message)}")


def print_check_passed(name: HealthCheckName) -> None:
    console.print(f"[green]✓[/green] {name.value}")


def fail(title: str, error: RotationError, code: int = 1) -> None:
    err_console.print(f"[red]{title}:[/red] {escape(error.message)}")
    if error.details:
        err_console.print(f"\n{error.details}", markup=False)
    raise typer.Exit(code=code)


def snapshot_table(title: str, snapshot: ClusterSnapshot) -> Table:
    table = Table(title=title)
    table.add_column("Name", style="cyan")
    table.add_column("Role", style="magenta")
    table.add_column("Zone", style="yellow")
    table.add_column("Instance")

    for node in snapshot.masters:
        role = "master (leader)" if node.name == snapshot.leader.name else "master"
        table.add_row(node.name, role, node.zone or "-", node.instance_ref)
    for node in snapshot.agents:
        table.add_row(node.name, "agent", node.zone or "-", node.instance_ref)
    return table


def summary_table(rows: list[tuple[str, str, str]]) -> Table:
    table = Table(title="Rotation Summary")
    table.add_column("", style="bold")
    table.add_column("Before", style="cyan")
    table.add_column("After", style="green")
    for label, before, after in rows:
        table.add_row(label, before, after)
    return table


@app.command()
def version() -> None:
    """Show version information."""
    from cluster_rotator import __version__

    typer.echo(f"cluster-rotator version {__version__}")


@app.command()
def rotate(
    context: str = typer.Argument(..., help="Kubeconfig context of the cluster to rotate"),
    config_path: str | None = typer.Option(
        None, "--config", "-c", help="Path to rotation config YAML"
    ),
    skip_agents: bool = typer.Option(
        False, "--skip-agents", help="Only replace masters, leave agents untouched"
    ),
) -> None:
    """
    Replace every master and agent of a cluster.

    Masters are replaced one at a time with the leader last, each followed by a
    wait for the master count to recover and the control-plane health gate.
    Agents are then replaced zone by zone. The run stops at the first step that
    fails; nothing is rolled back.
    """
    from cluster_rotator.controller import RunController

    try:
        rotation_config = load_config(config_path)
        if skip_agents:
            rotation_config = rotation_config.model_copy(update={"skip_agents": True})
        if not rotation_config.terminate_command:
            raise ConfigurationError(
                "No terminate_command configured",
                "Add terminate_command to the config file, e.g.\n"
                "  terminate_command: aws ec2 terminate-instances --instance-ids {instance_id}",
            )

        backend = build_backend(context, rotation_config)
        controller = RunController(
            backend,
            rotation_config,
            on_event=print_event,
            on_check_passed=print_check_passed,
        )

        console.print(f"\n[bold cyan]Rotating cluster {context}[/bold cyan]\n")
        result = controller.run()

    except ConfigurationError as e:
        fail("Configuration Error", e)
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Rotation interrupted by user[/yellow]")
        err_console.print("The cluster is left as the last completed step made it")
        raise typer.Exit(code=130)
    except Exception as e:
        logger.error(f"Unexpected error during rotation: {e}", exc_info=True)
        err_console.print(f"[red]Unexpected error:[/red] {escape(str(e))}")
        err_console.print("\nRun with --verbose --log-file rotation.log for more details")
        raise typer.Exit(code=1)

    console.print()
    console.print(summary_table(controller.summary(result)))

    if not result.success:
        err_console.print(f"\n[red]✗ Rotation failed at {escape(result.failed_step)}[/red]")
        if result.error:
            err_console.print(result.error, markup=False)
        raise typer.Exit(code=result.exit_code)

    console.print("\n[green]✓ Rotation completed successfully[/green]")


@app.command()
def plan(
    context: str = typer.Argument(..., help="Kubeconfig context of the cluster"),
    config_path: str | None = typer.Option(
        None, "--config", "-c", help="Path to rotation config YAML"
    ),
) -> None:
    """
    Show the order in which a rotation would replace nodes.

    No node is touched.
    """
    from cluster_rotator.controller import RunController

    try:
        rotation_config = load_config(config_path)
        backend = build_backend(context, rotation_config)
        replacement_plan = RunController(backend, rotation_config).plan()
    except ConfigurationError as e:
        fail("Configuration Error", e)
    except RotationError as e:
        fail("Error", e)

    table = Table(title=f"Replacement Plan for {context}")
    table.add_column("Step", style="bold")
    table.add_column("Node", style="cyan")
    table.add_column("Role", style="magenta")
    table.add_column("Zone", style="yellow")

    step = 1
    leader = replacement_plan.snapshot.leader.name
    for node in replacement_plan.masters:
        role = "master (leader)" if node.name == leader else "master"
        table.add_row(str(step), node.name, role, "-")
        step += 1
    for zone, agents in replacement_plan.zones:
        if not agents:
            table.add_row(str(step), "(no agents)", "agent", zone)
        for node in agents:
            table.add_row(str(step), node.name, "agent", zone)
        step += 1

    console.print(table)


@app.command()
def snapshot(
    context: str = typer.Argument(..., help="Kubeconfig context of the cluster"),
    config_path: str | None = typer.Option(
        None, "--config", "-c", help="Path to rotation config YAML"
    ),
) -> None:
    """Show current masters, leader and agents."""
    from cluster_rotator.executor import RetryingExecutor
    from cluster_rotator.inventory import InventorySnapshot

    try:
        rotation_config = load_config(config_path)
        backend = build_backend(context, rotation_config)
        executor = RetryingExecutor(
            rotation_config.timeout_budget, rotation_config.backoff_seconds
        )
        current = InventorySnapshot(backend, executor).capture()
    except ConfigurationError as e:
        fail("Configuration Error", e)
    except RotationError as e:
        fail("Error", e)

    console.print(snapshot_table(f"Cluster {context}", current))
    console.print(f"\n[bold]Masters:[/bold] {current.master_count}")
    console.print(f"[bold]Leader:[/bold] {current.leader.name}")
    console.print(f"[bold]Agents:[/bold] {current.agent_count}")


@app.command()
def health(
    context: str = typer.Argument(..., help="Kubeconfig context of the cluster"),
    config_path: str | None = typer.Option(
        None, "--config", "-c", help="Path to rotation config YAML"
    ),
    agents: bool = typer.Option(False, "--agents", "-a", help="Also run the agent health check"),
) -> None:
    """Run the control-plane health gate without replacing anything."""
    from cluster_rotator.executor import RetryingExecutor
    from cluster_rotator.health import HealthGate

    try:
        rotation_config = load_config(config_path)
        backend = build_backend(context, rotation_config)
        executor = RetryingExecutor(
            rotation_config.timeout_budget, rotation_config.backoff_seconds
        )
        gate = HealthGate(backend, executor, on_check_passed=print_check_passed)
        gate.check_control_plane()
        if agents:
            gate.check_agents()
    except ConfigurationError as e:
        fail("Configuration Error", e)
    except RotationError as e:
        fail("Health Gate Failed", e)

    console.print("\n[green]✓ All health checks passed[/green]")


if __name__ == "__main__":
    app()
