"""Lifecycle entry points for a single space: create, read, update, delete, import."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from hf_spaces_provisioner.core.state import SpaceState
from hf_spaces_provisioner.engine.errors import ApplyError, PartialCreateError
from hf_spaces_provisioner.engine.executor import apply_steps
from hf_spaces_provisioner.engine.planner import plan_delete, plan_steps

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from hf_spaces_provisioner.core.client import RemoteResourceClient
    from hf_spaces_provisioner.engine.executor import StepOutcome
    from hf_spaces_provisioner.engine.steps import MutationStep
    from hf_spaces_provisioner.resources.space import SpaceResource

logger = logging.getLogger(__name__)


def _merge_remote_keys(
    known: Mapping[str, str | None] | None, remote_keys: Iterable[str]
) -> dict[str, str | None]:
    """Keep known values for keys still on the Hub; unknown keys get ``None``."""
    known = known or {}
    return {key: known.get(key) for key in remote_keys}


class SpaceReconciler:
    """Converges one space at a time towards its desired spec.

    The Hub client is injected at construction; every method runs
    synchronously and surfaces the first remote failure as
    :class:`ApplyError` carrying the partial snapshot.
    """

    def __init__(self, client: RemoteResourceClient) -> None:
        self._client = client

    @property
    def client(self) -> RemoteResourceClient:
        return self._client

    def plan(self, desired: SpaceResource, prior: SpaceState | None = None) -> list[MutationStep]:
        return plan_steps(desired, prior)

    def execute(self, steps: Sequence[MutationStep], prior: SpaceState | None) -> SpaceState:
        """Apply *steps* starting from *prior* (``None`` for a new space)."""
        working = prior if prior is not None else SpaceState()
        outcome = apply_steps(self._client, working.identity, steps, working)
        if not outcome.ok:
            raise self._failure(outcome) from outcome.error
        return outcome.state

    @staticmethod
    def _failure(outcome: StepOutcome) -> ApplyError:
        assert outcome.failed_step is not None
        error_cls = PartialCreateError if outcome.partial_create else ApplyError
        return error_cls(
            f"{outcome.failed_step.describe()} failed: {outcome.error}",
            state=outcome.state,
            step=outcome.failed_step,
        )

    def create(self, desired: SpaceResource) -> SpaceState:
        return self.execute(plan_steps(desired, None), None)

    def read(self, identity: str) -> SpaceState:
        """Fetch the space and project it into a snapshot (no diffing)."""
        return SpaceState.from_info(self._client.fetch_by_id(identity))

    def update(
        self,
        desired: SpaceResource,
        prior: SpaceState,
        *,
        refresh_keys: bool = False,
    ) -> SpaceState:
        if refresh_keys:
            prior = self.refresh_keys(prior)
        return self.execute(plan_steps(desired, prior), prior)

    def delete(self, prior: SpaceState) -> None:
        """Delete the space. The caller discards *prior* afterwards."""
        self.execute(plan_delete(prior), prior)

    def import_space(self, identity: str) -> SpaceState:
        """Adopt an existing space.

        Secret and variable values are opaque on the Hub, so the snapshot
        starts with empty collections; the next update pushes every declared
        entry as an addition.
        """
        state = self.read(identity)
        logger.info("Imported space %s", state.identity)
        return state

    def refresh_keys(self, prior: SpaceState) -> SpaceState:
        """Re-read secret and variable keys from the Hub.

        Keys the snapshot does not know about get an unknown (``None``) value,
        so the planner removes them, or removes and re-adds them when they are
        declared. Keys missing on the Hub are dropped and will be re-added.
        """
        refreshed = prior.model_copy(deep=True)
        if prior.secrets is not None:
            refreshed.secrets = _merge_remote_keys(
                prior.secrets, self._client.list_secret_keys(prior.identity)
            )
        if prior.variables is not None:
            refreshed.variables = _merge_remote_keys(
                prior.variables, self._client.list_variable_keys(prior.identity)
            )
        logger.debug("Refreshed secret/variable keys of %s", prior.identity)
        return refreshed
