"""Mutation steps produced by the planner and run by the executor.

Each step maps to at most one remote call, except :class:`CreateStep`, which
also pushes every declared secret and variable of the new space.
Steps are plain data so that plans can be saved and loaded as JSON.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Discriminator, Field

from hf_spaces_provisioner.resources.space import SpaceResource


class Collection(str, Enum):
    SECRETS = "secrets"
    VARIABLES = "variables"

    @property
    def singular(self) -> str:
        return self.value[:-1]


class _Step(BaseModel):
    model_config = ConfigDict(frozen=True)

    def describe(self) -> str:
        raise NotImplementedError


class CreateStep(_Step):
    kind: Literal["create"] = "create"
    desired: SpaceResource

    def describe(self) -> str:
        return f"create space {self.desired.name!r}"


class RenameStep(_Step):
    kind: Literal["rename"] = "rename"
    to_identity: str
    name: str

    def describe(self) -> str:
        return f"rename to {self.to_identity!r}"


class VisibilityStep(_Step):
    kind: Literal["visibility"] = "visibility"
    private: bool

    def describe(self) -> str:
        return "make private" if self.private else "make public"


class HardwareStep(_Step):
    kind: Literal["hardware"] = "hardware"
    tier: str

    def describe(self) -> str:
        return f"set hardware to {self.tier!r}"


class StorageStep(_Step):
    kind: Literal["storage"] = "storage"
    tier: str

    def describe(self) -> str:
        return f"set storage to {self.tier!r}"


class SleepTimeStep(_Step):
    kind: Literal["sleep_time"] = "sleep_time"
    seconds: int

    def describe(self) -> str:
        return f"set sleep time to {self.seconds}s"


class RemoveStep(_Step):
    kind: Literal["remove"] = "remove"
    collection: Collection
    key: str

    def describe(self) -> str:
        return f"remove {self.collection.singular} {self.key!r}"


class AddStep(_Step):
    kind: Literal["add"] = "add"
    collection: Collection
    key: str
    value: str = Field(repr=False)

    def describe(self) -> str:
        return f"add {self.collection.singular} {self.key!r}"


class DeleteStep(_Step):
    kind: Literal["delete"] = "delete"

    def describe(self) -> str:
        return "delete space"


class PlanInconsistencyStep(_Step):
    """Sentinel emitted instead of a plan when the input is invalid."""

    kind: Literal["inconsistent"] = "inconsistent"
    reason: str

    def describe(self) -> str:
        return f"inconsistent plan: {self.reason}"


MutationStep = Annotated[
    CreateStep
    | RenameStep
    | VisibilityStep
    | HardwareStep
    | StorageStep
    | SleepTimeStep
    | RemoveStep
    | AddStep
    | DeleteStep
    | PlanInconsistencyStep,
    Discriminator("kind"),
]
