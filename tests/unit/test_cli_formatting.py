from __future__ import annotations

import re

from hf_spaces_provisioner.cli.formatting import (
    format_apply_summary,
    format_change,
    format_plan,
    format_plan_summary,
    format_space_info,
    has_actionable_changes,
)
from hf_spaces_provisioner.core.client import SpaceInfo
from hf_spaces_provisioner.core.state import SpaceState
from hf_spaces_provisioner.engine.steps import (
    AddStep,
    Collection,
    CreateStep,
    DeleteStep,
    RemoveStep,
    RenameStep,
    VisibilityStep,
)
from hf_spaces_provisioner.engine.types import Action, Plan, PlanMetadata, SpaceChange
from hf_spaces_provisioner.resources.space import SpaceResource

_META = PlanMetadata(
    destroy=False,
    state_lineage="lineage-1",
    state_serial=0,
    state_digest="digest",
    config_digest="cdigest",
    engine_version="0.1.0",
)

_PRIOR = SpaceState(identity="alice/demo", name="demo", private=False, secrets={}, variables={})


def _strip_ansi(text: str) -> str:
    return re.sub(r"\x1b\[[0-9;]*m", "", text)


class TestFormatPlanSummary:
    def test_all_zeros(self) -> None:
        result = format_plan_summary({"create": 0, "update": 0, "delete": 0}, color=False)
        assert result == "Plan: 0 to add, 0 to change, 0 to destroy."

    def test_with_counts(self) -> None:
        result = format_plan_summary({"create": 2, "update": 1, "delete": 3}, color=False)
        assert result == "Plan: 2 to add, 1 to change, 3 to destroy."

    def test_color_mode_contains_ansi(self) -> None:
        result = format_plan_summary({"create": 1, "update": 0, "delete": 0}, color=True)
        assert "\x1b[" in result
        assert "1 to add" in _strip_ansi(result)


class TestFormatApplySummary:
    def test_with_counts(self) -> None:
        result = format_apply_summary({"create": 1, "update": 2, "delete": 0}, color=False)
        assert result == "Apply complete! Spaces: 1 added, 2 changed, 0 destroyed."


class TestFormatChange:
    def test_create_block(self) -> None:
        desired = SpaceResource(
            name="demo", sdk="gradio", private=True, secrets={"KEY": "s3cr3t"}, variables={"V": "1"}
        )
        change = SpaceChange(
            address="hf_space.web",
            action=Action.CREATE,
            steps=[CreateStep(desired=desired)],
            desired=desired,
        )

        out = format_change(change, color=False)

        assert "# hf_space.web will be created" in out
        assert '+ space "web" {' in out
        assert 'name     = "demo"' in out
        assert "private  = true" in out
        assert '"KEY" (sensitive)' in out
        assert "s3cr3t" not in out
        assert 'variable = "V" = "1"' in out

    def test_update_block(self) -> None:
        change = SpaceChange(
            address="hf_space.web",
            action=Action.UPDATE,
            steps=[
                RenameStep(to_identity="alice/new", name="new"),
                VisibilityStep(private=True),
                RemoveStep(collection=Collection.SECRETS, key="OLD"),
                AddStep(collection=Collection.SECRETS, key="NEW", value="hidden"),
            ],
            prior=_PRIOR,
        )

        out = format_change(change, color=False)

        assert "will be updated in-place" in out
        assert '~ id      = "alice/demo" -> "alice/new"' in out
        assert "~ private = false -> true" in out
        assert '- secret  = "OLD"' in out
        assert '+ secret  = "NEW" (sensitive)' in out
        assert "hidden" not in out

    def test_delete_block(self) -> None:
        change = SpaceChange(
            address="hf_space.web", action=Action.DELETE, steps=[DeleteStep()], prior=_PRIOR
        )

        out = format_change(change, color=False)

        assert "will be destroyed" in out
        assert '- id = "alice/demo"' in out


class TestFormatPlan:
    def test_no_changes(self) -> None:
        plan = Plan(
            metadata=_META,
            changes=[SpaceChange(address="hf_space.ok", action=Action.NOOP, prior=_PRIOR)],
        )
        assert format_plan(plan, color=False) == "No changes. Spaces are up-to-date."
        assert not has_actionable_changes(plan)

    def test_noop_blocks_are_hidden(self) -> None:
        plan = Plan(
            metadata=_META,
            changes=[
                SpaceChange(address="hf_space.ok", action=Action.NOOP, prior=_PRIOR),
                SpaceChange(address="hf_space.gone", action=Action.DELETE, prior=_PRIOR),
            ],
        )

        out = format_plan(plan, color=False)

        assert "hf_space.gone" in out
        assert "hf_space.ok" not in out
        assert has_actionable_changes(plan)


def test_format_space_info() -> None:
    info = SpaceInfo(id="alice/demo", author="alice", private=True, likes=4, sdk="docker")

    out = format_space_info(info)

    assert 'id            = "alice/demo"' in out
    assert "private       = true" in out
    assert "likes         = 4" in out
    assert "sleep_time    = null" in out
