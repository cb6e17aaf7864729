# ============================================================================
# CLI FILE LOCK
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: CLI - Cross-process lock for local config files
# PURPOSE: Guard ~/.sparkcli/config against concurrent sparkcli runs
# CREATED: 15 OCT 2026
# ============================================================================
"""
CLI File Lock

Exclusive lock implemented as a sibling file "<path>.lock" created with
O_CREAT | O_EXCL, so exactly one process wins the create.

    lock_file(path)        fails if the lock file already exists
    unlock_file(path)      no-op if the lock file is missing
    wait_lock_file(...)    retries every 500ms until max_wait_millis, then
                           optionally steals a stale lock
    locked_file(...)       context manager around wait_lock_file/unlock_file
"""

import logging
import os
import time
from contextlib import contextmanager

logger = logging.getLogger(__name__)

LOCK_FILE_SUFFIX = ".lock"
RETRY_INTERVAL_SECONDS = 0.5


class FileLockError(RuntimeError):
    """Lock could not be acquired or released."""


def lock_path(file_path: str) -> str:
    return file_path + LOCK_FILE_SUFFIX


def lock_file(file_path: str) -> None:
    """
    Create the lock file for file_path.

    Raises:
        FileLockError: lock file exists or cannot be created
    """
    path = lock_path(file_path)
    try:
        fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o600)
    except FileExistsError:
        raise FileLockError(f"lock file {path} already exists")
    except OSError as e:
        raise FileLockError(f"failed to create lock file {path}: {e}")
    os.close(fd)


def unlock_file(file_path: str) -> None:
    """
    Remove the lock file for file_path; missing lock file is fine.

    Raises:
        FileLockError: lock file exists but cannot be removed
    """
    path = lock_path(file_path)
    try:
        os.remove(path)
    except FileNotFoundError:
        return
    except OSError as e:
        raise FileLockError(f"failed to delete lock file {path}: {e}")


def wait_lock_file(file_path: str, max_wait_millis: int, force_unlock: bool) -> None:
    """
    Acquire the lock, retrying until max_wait_millis elapse.

    Args:
        file_path: File being guarded
        max_wait_millis: Deadline in milliseconds
        force_unlock: On timeout, remove the existing lock and take it

    Raises:
        FileLockError: lock not acquired
    """
    deadline = time.monotonic() + max_wait_millis / 1000.0
    while time.monotonic() <= deadline:
        try:
            lock_file(file_path)
            return
        except FileLockError:
            time.sleep(RETRY_INTERVAL_SECONDS)

    if not force_unlock:
        raise FileLockError(
            f"failed to lock file {file_path} after max waiting {max_wait_millis} milliseconds"
        )

    logger.warning(f"Removing stale lock on {file_path} after {max_wait_millis} milliseconds")
    try:
        unlock_file(file_path)
        lock_file(file_path)
    except FileLockError as e:
        raise FileLockError(
            f"failed to lock file {file_path} after waiting max {max_wait_millis} "
            f"milliseconds and unlocking it: {e}"
        )


@contextmanager
def locked_file(file_path: str, max_wait_millis: int = 10_000, force_unlock: bool = True):
    """Hold the lock on file_path for the duration of the block."""
    wait_lock_file(file_path, max_wait_millis, force_unlock)
    try:
        yield
    finally:
        unlock_file(file_path)


__all__ = [
    "FileLockError",
    "lock_path",
    "lock_file",
    "unlock_file",
    "wait_lock_file",
    "locked_file",
]
