"""CLI command implementations."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Literal

import typer

from hf_spaces_provisioner.cli import app
from hf_spaces_provisioner.cli.errors import handle_error

if TYPE_CHECKING:
    from hf_spaces_provisioner.config.schema import Config
    from hf_spaces_provisioner.engine.types import ApplyResult, Plan

ConfigPath = Annotated[
    Path,
    typer.Option("--config", "-c", help="Path to the configuration file."),
]

NoColor = Annotated[
    bool,
    typer.Option("--no-color", help="Disable colored output."),
]

AutoApprove = Annotated[
    bool,
    typer.Option("--auto-approve", help="Skip interactive approval."),
]

RefreshKeys = Annotated[
    bool,
    typer.Option(
        "--refresh-keys",
        help="Re-read secret and variable keys from the Hub before planning.",
    ),
]

_DEFAULT_CONFIG = Path("hf-spaces.yaml")


def _use_color(no_color: bool) -> bool:
    return not (no_color or os.environ.get("NO_COLOR"))


def _apply_with_progress(plan_obj: Plan, cfg: Config, *, color: bool) -> ApplyResult:
    """Apply a plan with a Rich progress bar and per-space status lines."""
    from rich.console import Console
    from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

    from hf_spaces_provisioner.cli.formatting import _ACTION_STYLES
    from hf_spaces_provisioner.config import apply
    from hf_spaces_provisioner.engine.types import Action, SpaceChange

    console = Console(no_color=not color)
    actionable = [c for c in plan_obj.changes if c.action != Action.NOOP]

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Applying", total=len(actionable))

        def on_progress(change: SpaceChange, event: Literal["start", "done"]) -> None:
            s = _ACTION_STYLES[change.action.value]
            if event == "start":
                progress.update(task, description=f"{change.address}: {s.progress_verb}...")
            elif event == "done":
                progress.console.print(f"  {change.address}: {s.done_verb}")
                progress.advance(task)

        return apply(plan_obj, cfg, progress=on_progress)


def _confirm_and_apply(
    plan_obj: Plan,
    cfg: Config,
    *,
    color: bool,
    auto_approve: bool,
    confirm_msg: str,
    empty_msg: str,
) -> None:
    """Show plan -> confirm -> apply with progress -> print summary."""
    from hf_spaces_provisioner.cli.formatting import (
        format_apply_summary,
        format_plan,
        format_plan_summary,
        has_actionable_changes,
    )

    if not has_actionable_changes(plan_obj):
        typer.echo(empty_msg)
        raise typer.Exit(0)

    typer.echo(format_plan(plan_obj, color=color))
    typer.echo()
    typer.echo(format_plan_summary(plan_obj.summary(), color=color))
    typer.echo()

    if not auto_approve:
        try:
            typer.confirm(confirm_msg, abort=True)
        except typer.Abort as e:
            typer.echo("Apply canceled.", err=True)
            raise typer.Exit(1) from e

    try:
        result = _apply_with_progress(plan_obj, cfg, color=color)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    typer.echo()
    typer.echo(format_apply_summary(result.summary(), color=color))


@app.command()
def plan(
    config: ConfigPath = _DEFAULT_CONFIG,
    out: Annotated[
        Path | None,
        typer.Option("--out", "-o", help="Save plan to file."),
    ] = None,
    no_color: NoColor = False,
    refresh_keys: RefreshKeys = False,
) -> None:
    """Show changes required by the current configuration."""
    from hf_spaces_provisioner.cli.formatting import (
        format_plan,
        format_plan_summary,
        has_actionable_changes,
    )
    from hf_spaces_provisioner.config import load
    from hf_spaces_provisioner.config import plan as plan_fn

    color = _use_color(no_color)
    try:
        cfg = load(config)
        plan_obj = plan_fn(cfg, refresh_keys=refresh_keys)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    typer.echo(format_plan(plan_obj, color=color))
    typer.echo()
    typer.echo(format_plan_summary(plan_obj.summary(), color=color))

    if out is not None:
        plan_obj.save(out)
        typer.echo(f"\nPlan saved to {out} (contains secret values, keep it private)")

    if has_actionable_changes(plan_obj):
        raise typer.Exit(2)


@app.command(name="apply")
def apply_cmd(
    plan_file: Annotated[
        Path | None,
        typer.Argument(help="Saved plan file to apply."),
    ] = None,
    config: ConfigPath = _DEFAULT_CONFIG,
    auto_approve: AutoApprove = False,
    no_color: NoColor = False,
    refresh_keys: RefreshKeys = False,
) -> None:
    """Apply the changes required by the current configuration."""
    from hf_spaces_provisioner.config import load
    from hf_spaces_provisioner.config import plan as plan_fn
    from hf_spaces_provisioner.engine.types import Plan

    color = _use_color(no_color)
    try:
        cfg = load(config)
        plan_obj = (
            Plan.load(plan_file)
            if plan_file is not None
            else plan_fn(cfg, refresh_keys=refresh_keys)
        )
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    _confirm_and_apply(
        plan_obj,
        cfg,
        color=color,
        auto_approve=auto_approve,
        confirm_msg="Do you want to apply these changes?",
        empty_msg="No changes. Spaces are up-to-date.",
    )


@app.command()
def destroy(
    config: ConfigPath = _DEFAULT_CONFIG,
    auto_approve: AutoApprove = False,
    no_color: NoColor = False,
) -> None:
    """Destroy all managed spaces."""
    from hf_spaces_provisioner.config import load
    from hf_spaces_provisioner.config import plan as plan_fn

    color = _use_color(no_color)
    try:
        cfg = load(config)
        plan_obj = plan_fn(cfg, destroy=True)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    _confirm_and_apply(
        plan_obj,
        cfg,
        color=color,
        auto_approve=auto_approve,
        confirm_msg="Do you really want to destroy all spaces?",
        empty_msg="No spaces to destroy.",
    )


@app.command(name="import")
def import_cmd(
    label: Annotated[str, typer.Argument(help="Configuration label to manage the space under.")],
    space_id: Annotated[str, typer.Argument(help="Existing space id (owner/name).")],
    config: ConfigPath = _DEFAULT_CONFIG,
    no_color: NoColor = False,
) -> None:
    """Adopt an existing space into the state file."""
    from hf_spaces_provisioner.cli.formatting import styler
    from hf_spaces_provisioner.config import import_space, load

    color = _use_color(no_color)
    try:
        cfg = load(config)
        snapshot = import_space(cfg, label, space_id)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    typer.echo(styler(color)(f"Imported {snapshot.identity} as {label}.", fg="green"))
    typer.echo("Secrets and variables are not imported; the next apply will push them.")


@app.command()
def show(
    space_id: Annotated[str, typer.Argument(help="Space id (owner/name).")],
    config: ConfigPath = _DEFAULT_CONFIG,
    no_color: NoColor = False,
) -> None:
    """Show a space as seen on the Hub."""
    from hf_spaces_provisioner.cli.formatting import format_space_info
    from hf_spaces_provisioner.config import load
    from hf_spaces_provisioner.config import show as show_fn

    color = _use_color(no_color)
    try:
        cfg = load(config)
        info = show_fn(cfg, space_id)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    typer.echo(format_space_info(info))


@app.command()
def validate(
    config: ConfigPath = _DEFAULT_CONFIG,
    no_color: NoColor = False,
) -> None:
    """Validate the configuration file."""
    from hf_spaces_provisioner.cli.formatting import styler
    from hf_spaces_provisioner.config import load
    from hf_spaces_provisioner.config import plan as plan_fn

    color = _use_color(no_color)
    try:
        cfg = load(config)
        plan_fn(cfg)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    typer.echo(styler(color)("Configuration is valid.", fg="green"))
