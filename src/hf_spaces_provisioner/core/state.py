"""State snapshots and the state file tracking managed spaces."""

from __future__ import annotations

import contextlib
import hashlib
import json
import logging
import os
import tempfile
import uuid
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from hf_spaces_provisioner.core.client import SpaceInfo
    from hf_spaces_provisioner.resources.space import SpaceResource

logger = logging.getLogger(__name__)


def _canonical_json(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), default=str)


class SpaceState(BaseModel):
    """Last known converged state of one space.

    Attributes:
        identity: ``owner/name`` assigned by the Hub; empty until created
        name: Space name (last segment of ``identity``)
        private: Visibility
        sdk: SDK the space was created with
        template: Template the space was created from
        hardware: Hardware flavor
        storage: Persistent storage tier
        sleep_time: Idle seconds before the space is paused
        secrets: Secret values last pushed (never read back from the Hub);
            ``None`` marks a key seen on the Hub whose value is unknown
        variables: Variable values last pushed
    """

    identity: str = ""
    name: str = ""
    private: bool | None = None
    sdk: str | None = None
    template: str | None = None
    hardware: str | None = None
    storage: str | None = None
    sleep_time: int | None = None
    secrets: dict[str, str | None] | None = None
    variables: dict[str, str | None] | None = None

    @property
    def exists(self) -> bool:
        return bool(self.identity)

    @classmethod
    def from_desired(cls, desired: SpaceResource, identity: str) -> SpaceState:
        """Snapshot of a space that exactly matches *desired*."""
        return cls(identity=identity, **desired.model_dump())

    @classmethod
    def from_info(cls, info: SpaceInfo) -> SpaceState:
        """Project a fetched space into a snapshot.

        Secret and variable values cannot be read from the Hub, so both
        collections start empty.
        """
        return cls(
            identity=info.id,
            name=info.name,
            private=info.private,
            sdk=info.sdk,
            hardware=info.hardware,
            storage=info.storage,
            sleep_time=info.sleep_time,
            secrets={},
            variables={},
        )


class State(BaseModel):
    """State file for all spaces managed from one configuration.

    Attributes:
        version: State file format version
        serial: Incremented on every write
        lineage: Random id fixed when the state is first created
        resources: Mapping of addresses (``hf_space.<label>``) to snapshots
    """

    version: int = 1
    serial: int = 0
    lineage: str = Field(default_factory=lambda: str(uuid.uuid4()))
    resources: dict[str, SpaceState] = Field(default_factory=dict)

    def save(self, path: Path) -> None:
        """Write the state atomically, keeping a ``.backup`` of the previous file."""
        path.parent.mkdir(parents=True, exist_ok=True)

        backup_path = Path(str(path) + ".backup")
        with contextlib.suppress(FileNotFoundError):
            backup_path.write_bytes(path.read_bytes())

        content = json.dumps(self.model_dump(mode="json"), indent=2, sort_keys=True) + "\n"

        # mkstemp creates the file with 0600, which keeps secret values private.
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            tmp_path.replace(path)
        finally:
            with contextlib.suppress(FileNotFoundError):
                tmp_path.unlink()
        logger.debug("State saved: serial=%d path=%s", self.serial, path)

    @classmethod
    def load(cls, path: Path) -> State:
        state = cls.model_validate_json(path.read_text(encoding="utf-8"))
        logger.debug("State loaded from %s", path)
        return state

    @classmethod
    def load_or_create(cls, path: Path) -> State:
        if path.exists():
            return cls.load(path)
        logger.debug("No state at %s, starting empty", path)
        return cls()


def compute_state_digest(state: State) -> str:
    """Stable digest of the state content, used for stale-plan detection."""
    payload = _canonical_json(state.model_dump(mode="json"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
