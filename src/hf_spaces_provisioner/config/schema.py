"""Configuration models for YAML-based provisioning."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from hf_spaces_provisioner.core.client import DEFAULT_ENDPOINT
from hf_spaces_provisioner.resources.space import (
    SpaceResource,  # noqa: TC001 - Pydantic needs this at runtime
)


class ProviderConfig(BaseSettings):
    """Hub connection settings.

    Fields can be set via YAML (constructor kwargs) or environment variables
    with the ``HF_`` prefix. Constructor kwargs take precedence.

    ``token`` is typically provided via the ``HF_TOKEN`` environment variable
    rather than YAML to avoid committing secrets to version control.
    """

    model_config = SettingsConfigDict(env_prefix="HF_")

    endpoint: str = DEFAULT_ENDPOINT
    token: str | None = None
    timeout: float | None = Field(default=None, gt=0)


def _none_to_dict(v: Any) -> Any:
    return v if v is not None else {}


SpaceLabel = Annotated[str, Field(pattern=r"^[a-zA-Z0-9_-]+$")]


class Config(BaseModel):
    """Provisioning configuration, validated directly from YAML."""

    provider: ProviderConfig
    state_path: Path = Path(".hf-spaces-state.json")
    spaces: Annotated[dict[SpaceLabel, SpaceResource], BeforeValidator(_none_to_dict)] = {}
