"""Planning and reconciliation of Hugging Face Spaces."""

from hf_spaces_provisioner.engine.engine import SpacesEngine, address_for
from hf_spaces_provisioner.engine.errors import (
    ApplyCanceled,
    ApplyError,
    EngineError,
    PartialCreateError,
    PlanInconsistencyError,
    StalePlanError,
    StateLockError,
    ValidationError,
)
from hf_spaces_provisioner.engine.executor import StepOutcome, apply_steps
from hf_spaces_provisioner.engine.planner import plan_delete, plan_steps
from hf_spaces_provisioner.engine.reconciler import SpaceReconciler
from hf_spaces_provisioner.engine.types import Action, ApplyResult, Plan, PlanMetadata, SpaceChange

__all__ = [
    "Action",
    "ApplyCanceled",
    "ApplyError",
    "ApplyResult",
    "EngineError",
    "PartialCreateError",
    "Plan",
    "PlanInconsistencyError",
    "PlanMetadata",
    "SpaceChange",
    "SpaceReconciler",
    "SpacesEngine",
    "StalePlanError",
    "StateLockError",
    "StepOutcome",
    "ValidationError",
    "address_for",
    "apply_steps",
    "plan_delete",
    "plan_steps",
]
