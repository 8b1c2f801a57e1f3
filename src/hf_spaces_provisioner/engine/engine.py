"""Plan/apply engine for a whole configuration of labelled spaces."""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Literal

from hf_spaces_provisioner import __version__
from hf_spaces_provisioner.core.state import State, compute_state_digest
from hf_spaces_provisioner.engine.errors import (
    ApplyCanceled,
    ApplyError,
    StalePlanError,
    ValidationError,
)
from hf_spaces_provisioner.engine.lock import state_lock
from hf_spaces_provisioner.engine.planner import plan_delete
from hf_spaces_provisioner.engine.steps import PlanInconsistencyStep
from hf_spaces_provisioner.engine.types import Action, ApplyResult, Plan, PlanMetadata, SpaceChange
from hf_spaces_provisioner.resources.space import SpaceResource

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[SpaceChange, Literal["start", "done"]], None]

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from hf_spaces_provisioner.core.client import SpaceInfo
    from hf_spaces_provisioner.core.state import SpaceState
    from hf_spaces_provisioner.engine.reconciler import SpaceReconciler


def address_for(label: str) -> str:
    """State address of the space declared under *label*."""
    return f"{SpaceResource.resource_type}.{label}"


def _canonical_json(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), default=str)


def _compute_config_digest(spaces: Mapping[str, SpaceResource]) -> str:
    items = {address_for(label): s.model_dump(mode="json") for label, s in spaces.items()}
    return hashlib.sha256(_canonical_json(items).encode("utf-8")).hexdigest()


class SpacesEngine:
    """Terraform-like plan/apply engine over a local state file."""

    def __init__(self, *, reconciler: SpaceReconciler, state_path: Path) -> None:
        self._reconciler = reconciler
        self._state_path = state_path

    @property
    def state_path(self) -> Path:
        return self._state_path

    def _load_state(self) -> State:
        state = State.load_or_create(self._state_path)
        logger.debug("State loaded: serial=%d, %d spaces", state.serial, len(state.resources))
        return state

    def _load_state_for_apply(self, plan: Plan) -> State:
        if self._state_path.exists():
            return self._load_state()
        # No state yet: bootstrap from the plan metadata (saved-plan semantics).
        return State(lineage=plan.metadata.state_lineage, serial=plan.metadata.state_serial)

    def _persist(self, state: State) -> None:
        state.serial += 1
        state.save(self._state_path)

    def _classify_change(
        self,
        address: str,
        desired: SpaceResource,
        prior: SpaceState | None,
        *,
        refresh_keys: bool,
    ) -> SpaceChange:
        if prior is None:
            logger.debug("Classified %s as create", address)
            return SpaceChange(
                address=address,
                action=Action.CREATE,
                steps=self._reconciler.plan(desired, None),
                desired=desired,
            )

        if refresh_keys:
            prior = self._reconciler.refresh_keys(prior)
        steps = self._reconciler.plan(desired, prior)
        action = Action.UPDATE if steps else Action.NOOP
        logger.debug("Classified %s as %s (%d steps)", address, action.value, len(steps))
        return SpaceChange(address=address, action=action, steps=steps, desired=desired, prior=prior)

    def plan(
        self,
        spaces: Mapping[str, SpaceResource],
        *,
        destroy: bool = False,
        refresh_keys: bool = False,
    ) -> Plan:
        """Plan changes for *spaces* (label -> desired spec)."""
        logger.info(
            "Planning %d spaces (destroy=%s, refresh_keys=%s)", len(spaces), destroy, refresh_keys
        )
        state = self._load_state()
        desired_by_addr = {address_for(label): s for label, s in spaces.items()}

        changes: list[SpaceChange] = []
        if not destroy:
            changes = [
                self._classify_change(
                    addr, desired, state.resources.get(addr), refresh_keys=refresh_keys
                )
                for addr, desired in sorted(desired_by_addr.items())
            ]

        for addr in sorted(state.resources):
            if destroy or addr not in desired_by_addr:
                prior = state.resources[addr]
                changes.append(
                    SpaceChange(
                        address=addr, action=Action.DELETE, steps=plan_delete(prior), prior=prior
                    )
                )

        errors = [
            f"{c.address}: {step.reason}"
            for c in changes
            for step in c.steps
            if isinstance(step, PlanInconsistencyStep)
        ]
        if errors:
            raise ValidationError(errors)

        metadata = PlanMetadata(
            created_at=datetime.now(UTC),
            destroy=destroy,
            state_lineage=state.lineage,
            state_serial=state.serial,
            state_digest=compute_state_digest(state),
            config_digest=_compute_config_digest({} if destroy else spaces),
            engine_version=__version__,
        )
        return Plan(metadata=metadata, changes=changes)

    def apply(self, plan: Plan, *, progress: ProgressCallback | None = None) -> ApplyResult:
        """Apply *plan*, writing the state file after every space.

        On failure the partial snapshot of the failing space is written
        before :class:`ApplyError` is raised, so the next plan only covers the
        steps that did not happen.
        """
        with state_lock(self._state_path):
            state = self._load_state_for_apply(plan)

            if state.lineage != plan.metadata.state_lineage:
                raise StalePlanError("State lineage changed; re-run plan")
            if state.serial != plan.metadata.state_serial:
                raise StalePlanError("State serial changed; re-run plan")
            if compute_state_digest(state) != plan.metadata.state_digest:
                raise StalePlanError("State digest changed; re-run plan")

            actionable = [c for c in plan.changes if c.action != Action.NOOP]
            logger.info("Applying %d changes", len(actionable))
            applied: list[SpaceChange] = []

            for change in actionable:
                if progress:
                    progress(change, "start")
                try:
                    new_state = self._reconciler.execute(change.steps, change.prior)
                except KeyboardInterrupt as e:  # pragma: no cover
                    raise ApplyCanceled("Apply canceled") from e
                except ApplyError as e:
                    if e.state is not None and e.state.exists:
                        state.resources[change.address] = e.state
                        self._persist(state)
                    raise type(e)(
                        e.detail,
                        state=e.state,
                        step=e.step,
                        address=change.address,
                        applied=applied,
                    ) from e

                if new_state.exists:
                    state.resources[change.address] = new_state
                else:
                    state.resources.pop(change.address, None)
                self._persist(state)
                applied.append(change)
                if progress:
                    progress(change, "done")

            return ApplyResult(applied=applied)

    def import_space(
        self, label: str, identity: str, *, spaces: Mapping[str, SpaceResource]
    ) -> SpaceState:
        """Adopt an existing space under *label*.

        *label* must be declared in *spaces*; otherwise the next plan would
        treat the adopted space as an orphan and delete it.
        """
        address = address_for(label)
        if label not in spaces:
            raise ValidationError([f"{address} is not declared in the configuration"])
        with state_lock(self._state_path):
            state = self._load_state()
            if address in state.resources:
                existing = state.resources[address].identity
                raise ValidationError([f"{address} is already managed ({existing})"])
            snapshot = self._reconciler.import_space(identity)
            state.resources[address] = snapshot
            self._persist(state)
        return snapshot

    def show(self, identity: str) -> SpaceInfo:
        return self._reconciler.client.fetch_by_id(identity)
