"""Space resource model (desired spec) and identity helpers."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field


def split_identity(identity: str) -> tuple[str, str]:
    """Split ``owner/name`` into its two segments.

    An identity without an owner segment yields ``("", identity)``.
    """
    owner, _, name = identity.rpartition("/")
    return owner, name


def renamed_identity(identity: str, name: str) -> str:
    """Replace the name segment of *identity*, keeping the owner verbatim."""
    owner, _ = split_identity(identity)
    return f"{owner}/{name}" if owner else name


class SpaceResource(BaseModel):
    """Desired configuration of a Hugging Face Space.

    Only ``name`` is required. Every other field left as ``None`` is not
    managed: the Hub assigns its default on create and the planner never
    emits a step for it. ``secrets`` and ``variables`` follow the same rule;
    an empty mapping means "managed, and empty".

    ``sdk`` and ``template`` can only be set at creation time.
    """

    model_config = ConfigDict(extra="forbid")

    resource_type: ClassVar[str] = "hf_space"

    name: str
    private: bool | None = None
    sdk: str | None = None
    template: str | None = None
    hardware: str | None = None
    storage: str | None = None
    sleep_time: int | None = Field(default=None, ge=-1)
    secrets: dict[str, str] | None = None
    variables: dict[str, str] | None = None
