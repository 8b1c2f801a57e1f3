"""Engine error types."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from hf_spaces_provisioner.core.state import SpaceState
    from hf_spaces_provisioner.engine.steps import MutationStep


class EngineError(Exception):
    """Base exception for engine errors."""


class PlanInconsistencyError(EngineError):
    """A plan built from structurally invalid input was handed to the executor."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Inconsistent plan: {reason}")
        self.reason = reason


class StalePlanError(EngineError):
    """Raised when applying a plan against a different state than planned."""


class StateLockError(EngineError):
    """Raised when the state lock cannot be acquired or released."""


class ValidationError(EngineError):
    """One or more spaces failed plan validation."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        msg = "Validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        super().__init__(msg)


class ApplyError(EngineError):
    """Raised when a reconciliation stops on a failed step.

    ``state`` is the snapshot as it stands after the last successful step;
    re-planning against it covers exactly the remaining work. ``result`` is
    set by the workspace engine with the changes fully applied before the
    failure. The remote error is chained via ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        *,
        state: SpaceState | None = None,
        step: MutationStep | None = None,
        address: str | None = None,
        applied: list[Any] | None = None,
    ) -> None:
        from hf_spaces_provisioner.engine.types import ApplyResult

        self.detail = message
        self.state = state
        self.step = step
        self.address = address
        self.result = ApplyResult(applied=applied or [])
        prefix = f"Apply failed on {address}" if address else "Apply failed"
        super().__init__(f"{prefix}: {message}")


class PartialCreateError(ApplyError):
    """The space was created but pushing its secrets or variables failed.

    ``state.identity`` is set, so the next run updates instead of creating.
    """


class ApplyCanceled(EngineError):
    """Raised when an apply is canceled (e.g., Ctrl-C)."""
