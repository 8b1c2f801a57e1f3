"""Diff planner: desired spec vs. prior snapshot -> ordered mutation steps.

The planner is pure. It never calls the Hub and never raises; structurally
invalid input is reported as a single :class:`PlanInconsistencyStep`.

Step order within a plan:

1. rename (later calls address the space by its new identity)
2. visibility
3. hardware, storage, sleep time
4. secrets, then variables; within each collection every removal comes
   before every addition
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

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
from hf_spaces_provisioner.resources.space import renamed_identity

if TYPE_CHECKING:
    from collections.abc import Mapping

    from hf_spaces_provisioner.core.state import SpaceState
    from hf_spaces_provisioner.engine.steps import MutationStep
    from hf_spaces_provisioner.resources.space import SpaceResource

logger = logging.getLogger(__name__)

_CREATE_ONLY_FIELDS = ("sdk", "template")


def _inconsistency(desired: SpaceResource, prior: SpaceState | None) -> str | None:
    if not desired.name:
        return "desired spec has an empty name"
    if "/" in desired.name:
        return f"space name {desired.name!r} must not contain '/'"
    if prior is not None and not prior.identity:
        return "prior state has no identity"
    return None


def collection_steps(
    collection: Collection,
    desired: Mapping[str, str] | None,
    prior: Mapping[str, str | None] | None,
) -> list[MutationStep]:
    """Removals then additions converging *prior* to *desired*.

    A key whose value changed is removed and then added again. ``desired``
    set to ``None`` leaves the collection unmanaged.
    """
    if desired is None:
        return []
    prior = prior or {}

    changed = {k for k, v in desired.items() if k in prior and prior[k] != v}
    removals: list[MutationStep] = [
        RemoveStep(collection=collection, key=k)
        for k in sorted(prior)
        if k not in desired or k in changed
    ]
    additions: list[MutationStep] = [
        AddStep(collection=collection, key=k, value=desired[k])
        for k in sorted(desired)
        if k not in prior or k in changed
    ]
    return [*removals, *additions]


def plan_steps(desired: SpaceResource, prior: SpaceState | None = None) -> list[MutationStep]:
    """Compute the steps that converge *prior* to *desired*.

    ``prior=None`` means the space does not exist yet: the plan is a single
    :class:`CreateStep` carrying the whole desired spec.
    """
    reason = _inconsistency(desired, prior)
    if reason is not None:
        logger.debug("Inconsistent input for %r: %s", desired.name, reason)
        return [PlanInconsistencyStep(reason=reason)]

    if prior is None:
        return [CreateStep(desired=desired)]

    steps: list[MutationStep] = []
    if desired.name != prior.name:
        steps.append(
            RenameStep(to_identity=renamed_identity(prior.identity, desired.name), name=desired.name)
        )
    if desired.private is not None and desired.private != prior.private:
        steps.append(VisibilityStep(private=desired.private))
    if desired.hardware is not None and desired.hardware != prior.hardware:
        steps.append(HardwareStep(tier=desired.hardware))
    if desired.storage is not None and desired.storage != prior.storage:
        steps.append(StorageStep(tier=desired.storage))
    if desired.sleep_time is not None and desired.sleep_time != prior.sleep_time:
        steps.append(SleepTimeStep(seconds=desired.sleep_time))

    steps.extend(collection_steps(Collection.SECRETS, desired.secrets, prior.secrets))
    steps.extend(collection_steps(Collection.VARIABLES, desired.variables, prior.variables))

    for field in _CREATE_ONLY_FIELDS:
        want, have = getattr(desired, field), getattr(prior, field)
        if want is not None and have is not None and want != have:
            logger.warning(
                "%s of %s cannot change after creation (%r -> %r); ignoring",
                field,
                prior.identity,
                have,
                want,
            )

    logger.debug("Planned %d step(s) for %s", len(steps), prior.identity)
    return steps


def plan_delete(prior: SpaceState) -> list[MutationStep]:
    """Single-step plan tearing down the space tracked by *prior*."""
    if not prior.identity:
        return [PlanInconsistencyStep(reason="prior state has no identity")]
    return [DeleteStep()]
