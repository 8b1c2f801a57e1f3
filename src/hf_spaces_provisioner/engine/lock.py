"""Exclusive lock guarding a local state file."""

from __future__ import annotations

import contextlib
import logging
import sys
from pathlib import Path
from typing import IO, TYPE_CHECKING

from hf_spaces_provisioner.engine.errors import StateLockError

if TYPE_CHECKING:
    from collections.abc import Iterator

try:
    import fcntl  # type: ignore[attr-defined]
except ImportError:  # pragma: no cover
    fcntl = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)


def lock_path_for(state_path: Path) -> Path:
    return Path(str(state_path) + ".lock")


def _lock(f: IO[str]) -> None:
    if fcntl is not None:
        fcntl.flock(f.fileno(), fcntl.LOCK_EX)
    elif sys.platform == "win32":  # pragma: no cover
        import msvcrt

        msvcrt.locking(f.fileno(), msvcrt.LK_LOCK, 1)
    else:  # pragma: no cover
        raise StateLockError("State locking is not supported on this platform")


def _unlock(f: IO[str]) -> None:
    if fcntl is not None:
        fcntl.flock(f.fileno(), fcntl.LOCK_UN)
    elif sys.platform == "win32":  # pragma: no cover
        import msvcrt

        msvcrt.locking(f.fileno(), msvcrt.LK_UNLCK, 1)


@contextlib.contextmanager
def state_lock(state_path: Path) -> Iterator[Path]:
    """Hold an exclusive lock on ``<state_path>.lock`` for the block's duration.

    Blocks until the lock is available. Yields the lock file path.
    """
    path = lock_path_for(state_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a+", encoding="utf-8") as f:
        try:
            _lock(f)
        except StateLockError:
            raise
        except OSError as e:
            raise StateLockError(f"Unable to lock {path}: {e}") from e
        logger.debug("Acquired state lock %s", path)
        try:
            yield path
        finally:
            _unlock(f)
            logger.debug("Released state lock %s", path)
