"""Click CLI for driving AEC lifecycles against a filesystem repository.

Step execution is not performed here: run commands are recorded and logged
so an operator can walk an AEC through its lifecycle by hand.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from functools import wraps
from pathlib import Path
from typing import Any, TypeVar

import click

from aecflow import __version__
from aecflow.application.coordinator import WorkflowCoordinator
from aecflow.cli.console import (
    console,
    print_aec,
    print_error,
    print_resilience,
    print_success,
)
from aecflow.cli.logging_setup import setup_logging
from aecflow.domain.exceptions import AECError, NotFound
from aecflow.domain.models import AEC, FindingsAction
from aecflow.infrastructure.config import AecflowSettings, ConfigurationError, load_settings
from aecflow.infrastructure.persistence import FilesystemAECRepository
from aecflow.infrastructure.resilience import CircuitBreakerRegistry
from aecflow.infrastructure.runner import RecordingStepRunner

T = TypeVar("T")
F = TypeVar("F", bound=Callable[..., Any])


@dataclass
class CliContext:
    settings: AecflowSettings
    repository: FilesystemAECRepository
    coordinator: WorkflowCoordinator
    breakers: CircuitBreakerRegistry


def _run(ctx: click.Context, coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine, turning domain errors into a styled exit(1)."""
    try:
        return asyncio.run(coro)
    except AECError as e:
        print_error(str(e))
        ctx.exit(1)
        raise  # unreachable: ctx.exit raises


def workspace_option(func: F) -> F:
    """Decorator adding the required --workspace option."""

    @click.option(
        "-w",
        "--workspace",
        required=True,
        help="Workspace that owns the AEC",
    )
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def _parse_answers(pairs: tuple[str, ...]) -> dict[str, str]:
    answers: dict[str, str] = {}
    for pair in pairs:
        question_id, sep, answer = pair.partition("=")
        if not sep or not question_id:
            raise click.BadParameter(
                f"expected QUESTION_ID=ANSWER, got '{pair}'", param_hint="--answer"
            )
        answers[question_id.strip()] = answer
    return answers


@click.group()
@click.version_option(__version__, prog_name="aecflow")
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to aecflow settings JSON",
)
@click.option(
    "--data-dir",
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory for AEC storage (overrides settings)",
)
@click.option(
    "--log-file",
    default=None,
    type=click.Path(dir_okay=False),
    help="Path to log file",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Enable verbose (DEBUG) logging to console",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path | None,
    data_dir: Path | None,
    log_file: str | None,
    verbose: bool,
) -> None:
    """Drive Agent Execution Contracts through their generation lifecycle."""
    setup_logging("aecflow", log_file=log_file, verbose=verbose)
    try:
        settings = load_settings(config_path)
    except ConfigurationError as e:
        print_error(str(e), hint="Check the file passed to --config")
        ctx.exit(1)

    repository = FilesystemAECRepository(data_dir or settings.data_dir)
    ctx.obj = CliContext(
        settings=settings,
        repository=repository,
        coordinator=WorkflowCoordinator(repository, RecordingStepRunner()),
        breakers=CircuitBreakerRegistry.from_settings(settings),
    )


@cli.command()
@click.argument("workspace")
@click.argument("title")
@click.option("--description", default=None, help="Longer description of the work")
@click.pass_context
def create(ctx: click.Context, workspace: str, title: str, description: str | None) -> None:
    """Create a draft AEC in WORKSPACE."""
    obj: CliContext = ctx.obj
    try:
        aec = AEC.create_draft(workspace, title, description)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="TITLE") from e
    _run(ctx, obj.repository.save(aec))
    print_success(f"Created draft {aec.id}")
    click.echo(aec.id)


@cli.command()
@click.argument("aec_id")
@workspace_option
@click.pass_context
def show(ctx: click.Context, aec_id: str, workspace: str) -> None:
    """Show an AEC and its generation progress."""
    obj: CliContext = ctx.obj
    aec = _run(ctx, obj.repository.find_by_id(aec_id))
    if aec is None or aec.workspace_id != workspace:
        print_error(str(NotFound(aec_id)))
        ctx.exit(1)
    print_aec(aec)


@cli.command()
@click.argument("aec_id")
@workspace_option
@click.pass_context
def execute(ctx: click.Context, aec_id: str, workspace: str) -> None:
    """Lock a draft AEC and start a generation run."""
    obj: CliContext = ctx.obj
    result = _run(ctx, obj.coordinator.execute(aec_id, workspace))
    print_success(f"{result.message}\nRun: {result.run_id}")


@cli.command("resume-findings")
@click.argument("aec_id")
@workspace_option
@click.option(
    "--action",
    required=True,
    type=click.Choice([a.value for a in FindingsAction]),
    help="Decision for the findings review",
)
@click.pass_context
def resume_findings(ctx: click.Context, aec_id: str, workspace: str, action: str) -> None:
    """Resume an AEC suspended for findings review."""
    obj: CliContext = ctx.obj
    ack = _run(ctx, obj.coordinator.resume_findings(aec_id, workspace, action))
    print_success(ack.message)


@cli.command("submit-answers")
@click.argument("aec_id")
@workspace_option
@click.option(
    "-a",
    "--answer",
    "answers",
    multiple=True,
    required=True,
    help="Answer as QUESTION_ID=ANSWER (repeatable)",
)
@click.pass_context
def submit_answers(
    ctx: click.Context, aec_id: str, workspace: str, answers: tuple[str, ...]
) -> None:
    """Answer the questions of a suspended AEC and continue."""
    obj: CliContext = ctx.obj
    parsed = _parse_answers(answers)
    ack = _run(ctx, obj.coordinator.submit_answers(aec_id, workspace, parsed))
    print_success(ack.message)


@cli.command("skip-questions")
@click.argument("aec_id")
@workspace_option
@click.pass_context
def skip_questions(ctx: click.Context, aec_id: str, workspace: str) -> None:
    """Continue a suspended AEC without answering its questions."""
    obj: CliContext = ctx.obj
    ack = _run(ctx, obj.coordinator.skip_questions(aec_id, workspace))
    print_success(ack.message)


@cli.command("list")
@click.pass_context
def list_aecs(ctx: click.Context) -> None:
    """List stored AEC ids."""
    obj: CliContext = ctx.obj
    ids = obj.repository.list_ids()
    if not ids:
        console.print("[dim]No AECs stored[/dim]")
    for aec_id in ids:
        click.echo(aec_id)


@cli.command()
@click.pass_context
def breakers(ctx: click.Context) -> None:
    """Show the circuit breaker and retry settings in effect."""
    obj: CliContext = ctx.obj
    print_resilience(obj.breakers, obj.settings.retry.to_config())


if __name__ == "__main__":
    cli()
