"""Inter-process lock around the persisted chain file.

Saves replace ``blockchain-data.json`` with ``os.replace``, so locking the
chain file itself would lock an inode that is about to be unlinked. The lock
lives on a sidecar ``blockchain-data.json.lock`` that writers create once and
never replace.

Readers only take a shared lock when the sidecar already exists; they never
create it, so inspecting a chain on a read-only mount works. Because saves
are atomic replacements, an unlocked read still sees a whole file.

flock() on Unix is advisory: only processes that go through this module are
kept out.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Callable, Iterator

LOCK_SUFFIX = ".lock"

_lock: Callable[[BinaryIO, bool], None]
_unlock: Callable[[BinaryIO], None]

if os.name == "nt":
    import msvcrt

    # msvcrt.locking() locks a byte range; one byte at offset 0 is the whole protocol.
    # It has no shared mode, so readers lock exclusively too.
    def _lock(handle: BinaryIO, shared: bool) -> None:
        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_LOCK, 1)  # type: ignore[attr-defined]

    def _unlock(handle: BinaryIO) -> None:
        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)  # type: ignore[attr-defined]

else:
    import fcntl

    def _lock(handle: BinaryIO, shared: bool) -> None:
        fcntl.flock(handle.fileno(), fcntl.LOCK_SH if shared else fcntl.LOCK_EX)

    def _unlock(handle: BinaryIO) -> None:
        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


def lock_path_for(path: Path) -> Path:
    return path.with_name(path.name + LOCK_SUFFIX)


@contextmanager
def _held(handle: BinaryIO, shared: bool) -> Iterator[None]:
    _lock(handle, shared)
    try:
        yield
    finally:
        _unlock(handle)


@contextmanager
def exclusive_lock(path: Path) -> Iterator[None]:
    """Block until no other process holds the lock for ``path``, then hold it.

    Usage:
        with exclusive_lock(Path("data/blockchain-data.json")):
            ...replace the file...
    """
    lock_path = lock_path_for(path)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    with lock_path.open("a+b") as handle, _held(handle, shared=False):
        yield


@contextmanager
def shared_lock(path: Path) -> Iterator[None]:
    """Hold a read lock for ``path`` if a writer has set up its sidecar.

    Never creates files. Without a usable sidecar the block runs unlocked.
    """
    try:
        handle = lock_path_for(path).open("rb")
    except OSError:
        yield
        return
    with handle, _held(handle, shared=True):
        yield
