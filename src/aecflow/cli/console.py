"""Rich console output for the aecflow CLI."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from aecflow.domain.models import AEC, StepStatus
from aecflow.infrastructure.resilience import CircuitBreakerRegistry, RetryConfig

console = Console()
error_console = Console(stderr=True)

_STEP_STYLES = {
    StepStatus.PENDING: "dim",
    StepStatus.IN_PROGRESS: "bold yellow",
    StepStatus.COMPLETE: "green",
    StepStatus.FAILED: "bold red",
}


def print_error(message: str, hint: str | None = None) -> None:
    """Print formatted error message to stderr."""
    content = Text(f"ERROR: {message}", style="bold red")
    if hint:
        content.append(f"\n\nHint: {hint}", style="yellow")
    error_console.print(Panel(content, title="Error", border_style="red"))


def print_success(message: str) -> None:
    console.print(Panel(message, title="Success", border_style="green"))


def print_aec(aec: AEC) -> None:
    """Print an AEC summary table followed by its generation steps."""
    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    table.add_row("ID", aec.id)
    table.add_row("Workspace", aec.workspace_id)
    table.add_row("Title", aec.title)
    table.add_row("Status", aec.status.value)
    table.add_row("Locked by", aec.locked_by or "-")
    table.add_row("Version", str(aec.version))
    if aec.failure_reason:
        table.add_row("Failure", aec.failure_reason)
    for question_id, answer in sorted(aec.question_answers.items()):
        table.add_row(f"Answer {question_id}", answer)
    console.print(table)

    if aec.generation_state.is_empty:
        return

    steps = Table(title="Generation", show_lines=False)
    steps.add_column("#", justify="right")
    steps.add_column("Step")
    steps.add_column("Status")
    steps.add_column("Details", style="dim")
    for step in aec.generation_state.steps:
        steps.add_row(
            str(step.id),
            step.title,
            Text(step.status.value, style=_STEP_STYLES[step.status]),
            step.error or step.details or "",
        )
    console.print(steps)


def print_resilience(registry: CircuitBreakerRegistry, retry: RetryConfig) -> None:
    """Print the breaker thresholds and retry schedule in effect."""
    table = Table(title="Circuit breakers")
    table.add_column("Dependency", style="cyan")
    table.add_column("Failures to open", justify="right")
    table.add_column("Open for (ms)", justify="right")
    table.add_column("Successes to close", justify="right")

    rows = [("(default)", registry.default_config)]
    rows += [(name, registry.get(name).config) for name in registry.configured_names()]
    for name, config in rows:
        table.add_row(
            name,
            str(config.failure_threshold),
            str(config.open_duration_ms),
            str(config.success_threshold_to_close),
        )
    console.print(table)
    console.print(
        f"Retry: {retry.max_attempts} attempts, {retry.initial_delay_ms} ms initial delay, "
        f"x{retry.backoff_multiplier:g} backoff"
    )
