"""Engine types (plan, changes, metadata)."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from hf_spaces_provisioner.core.state import SpaceState  # noqa: TC001 - Pydantic needs this at runtime
from hf_spaces_provisioner.engine.steps import MutationStep  # noqa: TC001
from hf_spaces_provisioner.resources.space import SpaceResource  # noqa: TC001


class Action(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    NOOP = "no-op"


class PlanMetadata(BaseModel):
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    destroy: bool
    state_lineage: str
    state_serial: int
    state_digest: str
    config_digest: str
    engine_version: str


class SpaceChange(BaseModel):
    """Planned change for one labelled space."""

    address: str
    action: Action
    steps: list[MutationStep] = Field(default_factory=list)
    desired: SpaceResource | None = None
    prior: SpaceState | None = None

    @property
    def label(self) -> str:
        return self.address.split(".", 1)[1] if "." in self.address else self.address


class Plan(BaseModel):
    metadata: PlanMetadata
    changes: list[SpaceChange]

    def summary(self) -> dict[str, int]:
        counts = {a.value: 0 for a in Action}
        for c in self.changes:
            counts[c.action.value] += 1
        return counts

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = self.model_dump(mode="json")
        path.write_text(json.dumps(data, indent=2, sort_keys=True) + "\n", encoding="utf-8")

    @classmethod
    def load(cls, path: Path) -> Plan:
        path = Path(path)
        return cls.model_validate_json(path.read_text(encoding="utf-8"))


class ApplyResult(BaseModel):
    applied: list[SpaceChange] = Field(default_factory=list)

    def summary(self) -> dict[str, int]:
        counts = {a.value: 0 for a in Action}
        for c in self.applied:
            counts[c.action.value] += 1
        return counts
