from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from hf_spaces_provisioner.core.state import State
from hf_spaces_provisioner.engine import SpaceReconciler, SpacesEngine
from hf_spaces_provisioner.engine.errors import (
    ApplyError,
    PartialCreateError,
    StalePlanError,
    ValidationError,
)
from hf_spaces_provisioner.engine.steps import CreateStep, DeleteStep, HardwareStep
from hf_spaces_provisioner.engine.types import Action, Plan
from hf_spaces_provisioner.resources.space import SpaceResource

if TYPE_CHECKING:
    from pathlib import Path

    from conftest import FakeHub


def _engine(tmp_path: Path, hub: FakeHub) -> SpacesEngine:
    return SpacesEngine(reconciler=SpaceReconciler(hub), state_path=tmp_path / "state.json")


def test_create_noop_update_delete_roundtrip(tmp_path: Path, hub: FakeHub) -> None:
    engine = _engine(tmp_path, hub)
    spaces = {"demo": SpaceResource(name="demo", hardware="cpu-basic", secrets={"T": "1"})}

    plan1 = engine.plan(spaces)
    assert [c.action for c in plan1.changes] == [Action.CREATE]
    assert plan1.changes[0].steps == [CreateStep(desired=spaces["demo"])]

    plan_path = tmp_path / "plan.json"
    plan1.save(plan_path)
    result = engine.apply(Plan.load(plan_path))
    assert result.summary()["create"] == 1

    state = State.load(engine.state_path)
    assert state.serial == 1
    assert state.resources["hf_space.demo"].identity == "alice/demo"
    assert hub.secrets["alice/demo"] == {"T": "1"}

    plan2 = engine.plan(spaces)
    assert plan2.changes[0].action == Action.NOOP
    engine.apply(plan2)
    assert State.load(engine.state_path).serial == 1  # NOOP does not write state

    spaces["demo"] = SpaceResource(name="demo", hardware="t4-small", secrets={"T": "1"})
    plan3 = engine.plan(spaces)
    assert plan3.changes[0].action == Action.UPDATE
    assert plan3.changes[0].steps == [HardwareStep(tier="t4-small")]
    engine.apply(plan3)
    assert hub.spaces["alice/demo"]["hardware"] == "t4-small"

    plan4 = engine.plan({})
    assert [(c.action, c.steps) for c in plan4.changes] == [(Action.DELETE, [DeleteStep()])]
    engine.apply(plan4)

    state = State.load(engine.state_path)
    assert state.serial == 3
    assert state.resources == {}
    assert hub.spaces == {}


def test_destroy_plans_delete_for_everything(tmp_path: Path, hub: FakeHub) -> None:
    engine = _engine(tmp_path, hub)
    spaces = {"a": SpaceResource(name="a"), "b": SpaceResource(name="b")}
    engine.apply(engine.plan(spaces))

    plan = engine.plan(spaces, destroy=True)

    assert plan.metadata.destroy
    assert [(c.address, c.action) for c in plan.changes] == [
        ("hf_space.a", Action.DELETE),
        ("hf_space.b", Action.DELETE),
    ]


def test_deletes_come_after_creates(tmp_path: Path, hub: FakeHub) -> None:
    engine = _engine(tmp_path, hub)
    engine.apply(engine.plan({"old": SpaceResource(name="old")}))

    plan = engine.plan({"new": SpaceResource(name="new")})

    assert [(c.address, c.action) for c in plan.changes] == [
        ("hf_space.new", Action.CREATE),
        ("hf_space.old", Action.DELETE),
    ]


def test_inconsistent_input_fails_plan(tmp_path: Path, hub: FakeHub) -> None:
    engine = _engine(tmp_path, hub)

    with pytest.raises(ValidationError) as exc_info:
        engine.plan({"bad": SpaceResource(name="alice/bad")})

    assert exc_info.value.errors[0].startswith("hf_space.bad:")


def test_stale_plan_rejected(tmp_path: Path, hub: FakeHub) -> None:
    engine = _engine(tmp_path, hub)
    plan_a = engine.plan({"a": SpaceResource(name="a")})
    plan_b = engine.plan({"b": SpaceResource(name="b")})

    engine.apply(plan_a)

    with pytest.raises(StalePlanError):
        engine.apply(plan_b)


def test_failed_update_persists_partial_state(tmp_path: Path, hub: FakeHub) -> None:
    engine = _engine(tmp_path, hub)
    engine.apply(engine.plan({"demo": SpaceResource(name="demo", private=False)}))
    hub.fail_on.add("set_hardware")

    desired = {"demo": SpaceResource(name="renamed", private=True, hardware="t4-small")}
    with pytest.raises(ApplyError) as exc_info:
        engine.apply(engine.plan(desired))

    err = exc_info.value
    assert err.address == "hf_space.demo"
    assert err.result.applied == []
    assert "Apply failed on hf_space.demo" in str(err)

    state = State.load(engine.state_path)
    snapshot = state.resources["hf_space.demo"]
    assert snapshot.identity == "alice/renamed"
    assert snapshot.private is True
    assert snapshot.hardware is None

    hub.fail_on.clear()
    retry = engine.plan(desired)
    assert retry.changes[0].steps == [HardwareStep(tier="t4-small")]


def test_partial_create_is_recorded(tmp_path: Path, hub: FakeHub) -> None:
    engine = _engine(tmp_path, hub)
    hub.fail_on.add("add_secret:B")
    spaces = {"demo": SpaceResource(name="demo", secrets={"A": "1", "B": "2"})}

    with pytest.raises(PartialCreateError):
        engine.apply(engine.plan(spaces))

    state = State.load(engine.state_path)
    assert state.resources["hf_space.demo"].identity == "alice/demo"

    hub.fail_on.clear()
    retry = engine.plan(spaces)
    assert retry.changes[0].action == Action.UPDATE
    assert [s.key for s in retry.changes[0].steps] == ["B"]


def test_failed_create_writes_nothing(tmp_path: Path, hub: FakeHub) -> None:
    engine = _engine(tmp_path, hub)
    hub.fail_on.add("create")

    with pytest.raises(ApplyError):
        engine.apply(engine.plan({"demo": SpaceResource(name="demo")}))

    assert not engine.state_path.exists()


def test_import_adopts_space(tmp_path: Path, hub: FakeHub) -> None:
    engine = _engine(tmp_path, hub)
    hub.seed("alice/existing", sdk="docker")
    spaces = {"site": SpaceResource(name="existing", variables={"V": "1"})}

    snapshot = engine.import_space("site", "alice/existing", spaces=spaces)

    assert snapshot.sdk == "docker"
    state = State.load(engine.state_path)
    assert state.resources["hf_space.site"].identity == "alice/existing"

    with pytest.raises(ValidationError):
        engine.import_space("site", "alice/existing", spaces=spaces)

    plan = engine.plan(spaces)
    assert plan.changes[0].action == Action.UPDATE
    assert [s.kind for s in plan.changes[0].steps] == ["add"]


def test_import_rejects_undeclared_label(tmp_path: Path, hub: FakeHub) -> None:
    engine = _engine(tmp_path, hub)
    hub.seed("alice/existing")
    spaces = {"site": SpaceResource(name="existing")}

    with pytest.raises(ValidationError) as exc_info:
        engine.import_space("typo", "alice/existing", spaces=spaces)

    assert "hf_space.typo is not declared" in exc_info.value.errors[0]
    assert hub.calls == []
    assert not engine.state_path.exists()

    # Nothing was adopted, so the next plan cannot delete the existing space.
    plan = engine.plan(spaces)
    assert [(c.address, c.action) for c in plan.changes] == [("hf_space.site", Action.CREATE)]


def test_refresh_keys_plan_removes_rogue_entries(tmp_path: Path, hub: FakeHub) -> None:
    engine = _engine(tmp_path, hub)
    spaces = {"demo": SpaceResource(name="demo", variables={"V": "1"})}
    engine.apply(engine.plan(spaces))
    hub.variables["alice/demo"]["ROGUE"] = "x"

    assert engine.plan(spaces).changes[0].action == Action.NOOP

    plan = engine.plan(spaces, refresh_keys=True)
    assert [(s.kind, s.key) for s in plan.changes[0].steps] == [("remove", "ROGUE")]


def test_saved_plan_is_plain_json(tmp_path: Path, hub: FakeHub) -> None:
    engine = _engine(tmp_path, hub)
    plan = engine.plan({"demo": SpaceResource(name="demo", secrets={"T": "x"})})
    path = tmp_path / "plan.json"

    plan.save(path)

    data = json.loads(path.read_text())
    assert data["changes"][0]["steps"][0]["kind"] == "create"
    assert Plan.load(path) == plan
