"""Shared fixtures for unit tests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from hf_spaces_provisioner.config import load
from hf_spaces_provisioner.core.client import SpaceInfo
from hf_spaces_provisioner.core.errors import RemoteRejected
from hf_spaces_provisioner.resources.space import renamed_identity

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from hf_spaces_provisioner.config.schema import Config
    from hf_spaces_provisioner.resources.space import SpaceResource

_HF_ENV_VARS = ("HF_ENDPOINT", "HF_TOKEN", "HF_TIMEOUT", "HF_SPACES_LOG", "NO_COLOR")


@pytest.fixture(autouse=True)
def _clean_hf_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove HF_* env vars so unit tests don't leak host config."""
    for var in _HF_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., Config]:
    """Factory fixture: write YAML + optional .env, return loaded Config."""

    def _make(yaml_str: str, *, dotenv: str | None = None) -> Config:
        (tmp_path / "config.yaml").write_text(yaml_str)
        if dotenv is not None:
            (tmp_path / ".env").write_text(dotenv)
        return load(tmp_path / "config.yaml")

    return _make


class FakeHub:
    """In-memory stand-in for the Hub client.

    ``fail_on`` holds call names (``"set_hardware"``) or call names with a
    key (``"add_secret:TOKEN"``) that answer with a 500.
    """

    def __init__(self, owner: str = "alice") -> None:
        self.owner = owner
        self.calls: list[tuple[Any, ...]] = []
        self.spaces: dict[str, dict[str, Any]] = {}
        self.secrets: dict[str, dict[str, str]] = {}
        self.variables: dict[str, dict[str, str]] = {}
        self.fail_on: set[str] = set()

    def _call(self, name: str, *args: Any, key: str | None = None) -> None:
        self.calls.append((name, *args))
        if name in self.fail_on or (key is not None and f"{name}:{key}" in self.fail_on):
            raise RemoteRejected(name.replace("_", " "), 500, "boom")

    def _space(self, identity: str) -> dict[str, Any]:
        if identity not in self.spaces:
            raise RemoteRejected("read space", 404, "Repository not found")
        return self.spaces[identity]

    def seed(self, identity: str, **attrs: Any) -> None:
        """Register a space that already exists on the Hub."""
        self.spaces[identity] = {"private": False, **attrs}
        self.secrets[identity] = {}
        self.variables[identity] = {}

    def create(self, spec: SpaceResource) -> str:
        self._call("create", spec.name)
        identity = f"{self.owner}/{spec.name}"
        self.spaces[identity] = {
            "private": bool(spec.private),
            "sdk": spec.sdk,
            "hardware": spec.hardware,
            "storage": spec.storage,
            "sleep_time": spec.sleep_time,
        }
        self.secrets[identity] = {}
        self.variables[identity] = {}
        return identity

    def rename(self, identity: str, new_name: str) -> str:
        self._call("rename", identity, new_name)
        to_identity = renamed_identity(identity, new_name)
        self.spaces[to_identity] = self.spaces.pop(identity)
        self.secrets[to_identity] = self.secrets.pop(identity)
        self.variables[to_identity] = self.variables.pop(identity)
        return to_identity

    def set_visibility(self, identity: str, private: bool) -> None:
        self._call("set_visibility", identity, private)
        self._space(identity)["private"] = private

    def set_hardware(self, identity: str, tier: str) -> None:
        self._call("set_hardware", identity, tier)
        self._space(identity)["hardware"] = tier

    def set_storage(self, identity: str, tier: str) -> None:
        self._call("set_storage", identity, tier)
        self._space(identity)["storage"] = tier

    def set_sleep_time(self, identity: str, seconds: int) -> None:
        self._call("set_sleep_time", identity, seconds)
        self._space(identity)["sleep_time"] = seconds

    def add_secret(self, identity: str, key: str, value: str) -> None:
        self._call("add_secret", identity, key, key=key)
        self.secrets[identity][key] = value

    def remove_secret(self, identity: str, key: str) -> None:
        self._call("remove_secret", identity, key, key=key)
        self.secrets[identity].pop(key, None)

    def list_secret_keys(self, identity: str) -> list[str]:
        self._call("list_secret_keys", identity)
        return sorted(self.secrets[identity])

    def add_variable(self, identity: str, key: str, value: str) -> None:
        self._call("add_variable", identity, key, key=key)
        self.variables[identity][key] = value

    def remove_variable(self, identity: str, key: str) -> None:
        self._call("remove_variable", identity, key, key=key)
        self.variables[identity].pop(key, None)

    def list_variable_keys(self, identity: str) -> list[str]:
        self._call("list_variable_keys", identity)
        return sorted(self.variables[identity])

    def delete(self, identity: str) -> None:
        self._call("delete", identity)
        self._space(identity)
        del self.spaces[identity]

    def fetch_by_id(self, identity: str) -> SpaceInfo:
        self._call("fetch_by_id", identity)
        attrs = self._space(identity)
        owner, _, _ = identity.rpartition("/")
        return SpaceInfo(
            id=identity,
            author=owner,
            private=attrs["private"],
            sdk=attrs.get("sdk"),
            hardware=attrs.get("hardware"),
            storage=attrs.get("storage"),
            sleep_time=attrs.get("sleep_time"),
        )

    def call_names(self) -> list[str]:
        return [c[0] for c in self.calls]


@pytest.fixture
def hub() -> FakeHub:
    return FakeHub()
