"""Plan and apply output rendering (Terraform-style)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, NamedTuple

import typer

from hf_spaces_provisioner.engine.steps import (
    AddStep,
    Collection,
    HardwareStep,
    RemoveStep,
    RenameStep,
    SleepTimeStep,
    StorageStep,
    VisibilityStep,
)
from hf_spaces_provisioner.engine.types import Action

if TYPE_CHECKING:
    from collections.abc import Callable

    from hf_spaces_provisioner.core.client import SpaceInfo
    from hf_spaces_provisioner.engine.types import Plan, SpaceChange


class _ActionStyle(NamedTuple):
    color: str
    symbol: str
    progress_verb: str
    done_verb: str


_ACTION_STYLES: dict[str, _ActionStyle] = {
    "create": _ActionStyle("green", "+", "Creating", "Creation complete"),
    "update": _ActionStyle("yellow", "~", "Updating", "Update complete"),
    "delete": _ActionStyle("red", "-", "Destroying", "Destroy complete"),
    "no-op": _ActionStyle("bright_black", " ", "", ""),
}

_ACTION_DESC: dict[str, str] = {
    "create": "will be created",
    "update": "will be updated in-place",
    "delete": "will be destroyed",
    "no-op": "is up-to-date",
}

_SYMBOL_COLORS = {"+": "green", "~": "yellow", "-": "red"}

_SCALAR_FIELDS = ("name", "private", "sdk", "template", "hardware", "storage", "sleep_time")


def styler(color: bool) -> Callable[..., str]:
    """Return ``typer.style`` when *color* is True, otherwise a passthrough."""
    if color:
        return typer.style
    return lambda text, **_kw: text


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def has_actionable_changes(plan: Plan) -> bool:
    """Return True if the plan contains any non-NOOP changes."""
    return any(c.action != Action.NOOP for c in plan.changes)


def _format_value(value: Any) -> str:
    """Format a value for display in a plan diff block."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{value}"'
    if value is None:
        return "null"
    return str(value)


def _entry_value(collection: Collection, key: str, value: str | None) -> str:
    if collection is Collection.SECRETS:
        return f"{_format_value(key)} (sensitive)"
    return f"{_format_value(key)} = {_format_value(value)}"


# ---------------------------------------------------------------------------
# Plan rendering
# ---------------------------------------------------------------------------

_Line = tuple[str, str, str]  # symbol, attribute, rendered value


def _create_lines(change: SpaceChange) -> list[_Line]:
    if change.desired is None:
        return []
    desired = change.desired
    lines: list[_Line] = [
        ("+", field, _format_value(getattr(desired, field)))
        for field in _SCALAR_FIELDS
        if getattr(desired, field) is not None
    ]
    for collection, entries in (
        (Collection.SECRETS, desired.secrets),
        (Collection.VARIABLES, desired.variables),
    ):
        for key in sorted(entries or {}):
            lines.append(("+", collection.singular, _entry_value(collection, key, entries[key])))
    return lines


def _update_lines(change: SpaceChange) -> list[_Line]:
    prior = change.prior
    lines: list[_Line] = []

    def _from(field: str) -> str:
        return _format_value(getattr(prior, field) if prior is not None else None)

    for step in change.steps:
        match step:
            case RenameStep(to_identity=to_identity):
                lines.append(("~", "id", f"{_from('identity')} -> {_format_value(to_identity)}"))
            case VisibilityStep(private=private):
                lines.append(("~", "private", f"{_from('private')} -> {_format_value(private)}"))
            case HardwareStep(tier=tier):
                lines.append(("~", "hardware", f"{_from('hardware')} -> {_format_value(tier)}"))
            case StorageStep(tier=tier):
                lines.append(("~", "storage", f"{_from('storage')} -> {_format_value(tier)}"))
            case SleepTimeStep(seconds=seconds):
                lines.append(("~", "sleep_time", f"{_from('sleep_time')} -> {seconds}"))
            case RemoveStep(collection=collection, key=key):
                lines.append(("-", collection.singular, _format_value(key)))
            case AddStep(collection=collection, key=key, value=value):
                lines.append(("+", collection.singular, _entry_value(collection, key, value)))
    return lines


def _change_lines(change: SpaceChange) -> list[_Line]:
    if change.action == Action.CREATE:
        return _create_lines(change)
    if change.action == Action.UPDATE:
        return _update_lines(change)
    if change.action == Action.DELETE and change.prior is not None:
        return [("-", "id", _format_value(change.prior.identity))]
    return []


def format_change(change: SpaceChange, *, color: bool = True) -> str:
    """Render a single SpaceChange as a Terraform-style block."""
    style = styler(color)
    action_val = change.action.value
    sc = {"fg": _ACTION_STYLES[action_val].color}
    symbol = _ACTION_STYLES[action_val].symbol

    attr_lines = _change_lines(change)
    width = max((len(attr) for _, attr, _ in attr_lines), default=0)
    lines = [
        style(f"  # {change.address} {_ACTION_DESC[action_val]}", bold=True, **sc),
        style(f'  {symbol} space "{change.label}" {{', **sc),
        *[
            style(f"      {sym} {attr.ljust(width)} = {value}", fg=_SYMBOL_COLORS[sym])
            for sym, attr, value in attr_lines
        ],
        style("    }", **sc),
    ]
    return "\n".join(lines)


def format_changes(changes: list[SpaceChange], *, color: bool = True) -> str:
    """Render a list of changes as Terraform-style diff blocks."""
    blocks = [format_change(c, color=color) for c in changes if c.action != Action.NOOP]
    if not blocks:
        return "No changes. Spaces are up-to-date."
    return "\n\n".join(blocks)


def format_plan(plan: Plan, *, color: bool = True) -> str:
    """Render the full plan output with per-change diff blocks."""
    return format_changes(plan.changes, color=color)


def format_space_info(info: SpaceInfo) -> str:
    """Render a fetched space as aligned ``key = value`` lines."""
    items = {
        "id": info.id,
        "author": info.author,
        "private": info.private,
        "sdk": info.sdk,
        "hardware": info.hardware,
        "storage": info.storage,
        "sleep_time": info.sleep_time,
        "likes": info.likes,
        "last_modified": info.last_modified,
    }
    width = max(len(k) for k in items)
    return "\n".join(f"{k.ljust(width)} = {_format_value(v)}" for k, v in items.items())


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------

_PLAN_VERBS = ("to add", "to change", "to destroy")
_APPLY_VERBS = ("added", "changed", "destroyed")
_SUMMARY_COLORS = ("green", "yellow", "red")


def _format_summary(summary: dict[str, int], verbs: tuple[str, ...], *, color: bool) -> str:
    """Build the ``N verb, N verb, N verb`` part of a summary line."""
    style = styler(color)
    counts = (summary.get("create", 0), summary.get("update", 0), summary.get("delete", 0))
    parts = [
        style(f"{n} {verb}", fg=fg) if n and color else f"{n} {verb}"
        for n, verb, fg in zip(counts, verbs, _SUMMARY_COLORS, strict=True)
    ]
    return ", ".join(parts)


def format_plan_summary(summary: dict[str, int], *, color: bool = True) -> str:
    """Render ``Plan: 2 to add, 1 to change, 0 to destroy.``"""
    return f"Plan: {_format_summary(summary, _PLAN_VERBS, color=color)}."


def format_apply_summary(summary: dict[str, int], *, color: bool = True) -> str:
    """Render ``Apply complete! Spaces: 2 added, 0 changed, 0 destroyed.``"""
    style = styler(color)
    header = style("Apply complete!", fg="green", bold=True)
    return f"{header} Spaces: {_format_summary(summary, _APPLY_VERBS, color=color)}."
