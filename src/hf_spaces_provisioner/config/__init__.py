"""YAML configuration loading and convenience plan/apply API."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import SecretStr

from hf_spaces_provisioner.config.loader import ConfigError, load_config
from hf_spaces_provisioner.config.schema import Config, ProviderConfig
from hf_spaces_provisioner.core.provider import HubProvider, TokenAuth
from hf_spaces_provisioner.engine.engine import ProgressCallback, SpacesEngine
from hf_spaces_provisioner.engine.reconciler import SpaceReconciler

if TYPE_CHECKING:
    from pathlib import Path

    from hf_spaces_provisioner.core.client import SpaceInfo
    from hf_spaces_provisioner.core.state import SpaceState
    from hf_spaces_provisioner.engine.types import ApplyResult, Plan

__all__ = [
    "Config",
    "ConfigError",
    "ProviderConfig",
    "apply",
    "import_space",
    "load",
    "load_config",
    "plan",
    "show",
]


def load(path: Path | str) -> Config:
    """Load a YAML configuration file."""
    return load_config(path)


def _engine_from_config(config: Config) -> SpacesEngine:
    """Build a ``SpacesEngine`` from a ``Config`` instance."""
    if not config.provider.token:
        raise ConfigError("provider.token is required (set HF_TOKEN env var)")
    provider = HubProvider(
        endpoint=config.provider.endpoint,
        auth=TokenAuth(token=SecretStr(config.provider.token)),
        timeout=config.provider.timeout,
    )
    return SpacesEngine(
        reconciler=SpaceReconciler(provider.client),
        state_path=config.state_path,
    )


def plan(config: Config, *, destroy: bool = False, refresh_keys: bool = False) -> Plan:
    """Plan changes for the given configuration."""
    engine = _engine_from_config(config)
    return engine.plan(config.spaces, destroy=destroy, refresh_keys=refresh_keys)


def apply(
    plan_obj: Plan, config: Config, *, progress: ProgressCallback | None = None
) -> ApplyResult:
    """Apply a previously computed plan."""
    engine = _engine_from_config(config)
    return engine.apply(plan_obj, progress=progress)


def import_space(config: Config, label: str, identity: str) -> SpaceState:
    """Adopt an existing space into the state file under *label*."""
    return _engine_from_config(config).import_space(label, identity, spaces=config.spaces)


def show(config: Config, identity: str) -> SpaceInfo:
    """Fetch a space from the Hub without touching state."""
    return _engine_from_config(config).show(identity)
