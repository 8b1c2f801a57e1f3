"""Reconciliation executor.

Runs mutation steps strictly in order against the Hub client, recording the
effect of each successful step on a working snapshot right after the call
returns. The first failure stops the run; the outcome then holds the snapshot
as of the last successful step, so re-planning against it yields exactly the
steps that did not happen.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from hf_spaces_provisioner.core.errors import RemoteError
from hf_spaces_provisioner.core.state import SpaceState
from hf_spaces_provisioner.engine.errors import PlanInconsistencyError
from hf_spaces_provisioner.engine.planner import collection_steps
from hf_spaces_provisioner.engine.steps import (
    AddStep,
    Collection,
    CreateStep,
    DeleteStep,
    HardwareStep,
    PlanInconsistencyStep,
    RemoveStep,
    RenameStep,
    SleepTimeStep,
    StorageStep,
    VisibilityStep,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from hf_spaces_provisioner.core.client import RemoteResourceClient
    from hf_spaces_provisioner.engine.steps import MutationStep

logger = logging.getLogger(__name__)


@dataclass
class StepOutcome:
    """Result of :func:`apply_steps`: either success or the first failure.

    Attributes:
        state: Working snapshot after the last successful step
        applied: Steps that completed, in order (create pushes included)
        failed_step: Step that failed, if any
        error: Classified error of the failed step, if any
    """

    state: SpaceState
    applied: list[MutationStep] = field(default_factory=list)
    failed_step: MutationStep | None = None
    error: RemoteError | PlanInconsistencyError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def deleted(self) -> bool:
        return any(isinstance(s, DeleteStep) for s in self.applied)

    @property
    def partial_create(self) -> bool:
        """The space was created but one of its initial pushes failed."""
        return not self.ok and any(isinstance(s, CreateStep) for s in self.applied)


def _expand(step: MutationStep) -> list[MutationStep]:
    # Create always pushes every declared secret and variable afresh.
    if isinstance(step, CreateStep):
        desired = step.desired
        return [
            step,
            *collection_steps(Collection.SECRETS, desired.secrets, None),
            *collection_steps(Collection.VARIABLES, desired.variables, None),
        ]
    return [step]


def _apply_one(client: RemoteResourceClient, step: MutationStep, state: SpaceState) -> SpaceState:
    """Issue the remote call for *step*, then record its effect on *state*."""
    match step:
        case CreateStep(desired=desired):
            identity = client.create(desired)
            created = SpaceState.from_desired(desired, identity)
            created.secrets = {} if desired.secrets is not None else None
            created.variables = {} if desired.variables is not None else None
            return created
        case RenameStep(name=name):
            state.identity = client.rename(state.identity, name)
            state.name = name
        case VisibilityStep(private=private):
            client.set_visibility(state.identity, private)
            state.private = private
        case HardwareStep(tier=tier):
            client.set_hardware(state.identity, tier)
            state.hardware = tier
        case StorageStep(tier=tier):
            client.set_storage(state.identity, tier)
            state.storage = tier
        case SleepTimeStep(seconds=seconds):
            client.set_sleep_time(state.identity, seconds)
            state.sleep_time = seconds
        case RemoveStep(collection=collection, key=key):
            if collection is Collection.SECRETS:
                client.remove_secret(state.identity, key)
            else:
                client.remove_variable(state.identity, key)
            entries = dict(getattr(state, collection.value) or {})
            entries.pop(key, None)
            setattr(state, collection.value, entries)
        case AddStep(collection=collection, key=key, value=value):
            if collection is Collection.SECRETS:
                client.add_secret(state.identity, key, value)
            else:
                client.add_variable(state.identity, key, value)
            entries = dict(getattr(state, collection.value) or {})
            entries[key] = value
            setattr(state, collection.value, entries)
        case DeleteStep():
            client.delete(state.identity)
            state.identity = ""
        case _:
            raise ValueError(f"Unsupported step: {step!r}")
    return state


def apply_steps(
    client: RemoteResourceClient,
    identity: str,
    steps: Sequence[MutationStep],
    working: SpaceState,
) -> StepOutcome:
    """Execute *steps* in order against the space addressed by *identity*.

    *working* is not modified; a deep copy (with ``identity`` applied) is
    updated after each successful step and returned in the outcome. Plans
    containing a :class:`PlanInconsistencyStep` are refused before any call.
    """
    state = working.model_copy(deep=True)
    state.identity = identity
    outcome = StepOutcome(state=state)

    for step in steps:
        if isinstance(step, PlanInconsistencyStep):
            outcome.failed_step = step
            outcome.error = PlanInconsistencyError(step.reason)
            logger.error("Refusing to apply plan: %s", step.reason)
            return outcome

    for step in steps:
        for unit in _expand(step):
            logger.info("%s: %s", outcome.state.identity or "<new space>", unit.describe())
            try:
                outcome.state = _apply_one(client, unit, outcome.state)
            except RemoteError as exc:
                logger.warning("Step failed (%s): %s", unit.describe(), exc)
                outcome.failed_step = unit
                outcome.error = exc
                return outcome
            outcome.applied.append(unit)

    return outcome
