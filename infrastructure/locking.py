# ============================================================================
# SUBMISSION LOCKING SERVICE
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Infrastructure - Concurrency control
# PURPOSE: Per-submission advisory locks inside one gateway process
# CREATED: 14 OCT 2026
# ============================================================================
"""
Submission Locking Service

Serializes mutations (reconcile, delete, kill) of the same submission id
within one gateway process. Different ids never contend.

Locks are:
- In-memory asyncio.Lock objects, one per active id
- Reference counted and dropped as soon as nobody holds or waits on them
- Process-local: two gateway replicas can still race, in which case the
  orchestrator's own create conflict surfaces as ClusterRejectedError

Usage:
    from infrastructure.locking import SubmissionLockRegistry

    locks = SubmissionLockRegistry()

    async with locks.submission_lock("app-123"):
        await reconcile(...)
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Dict

logger = logging.getLogger(__name__)


@dataclass
class _LockEntry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    refs: int = 0


class SubmissionLockRegistry:
    """
    Registry of per-id asyncio locks.

    All bookkeeping happens on the event loop thread, so the registry
    dict itself needs no extra guard.
    """

    def __init__(self):
        self._entries: Dict[str, _LockEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def is_locked(self, submission_id: str) -> bool:
        """True while some task holds the lock for submission_id."""
        entry = self._entries.get(submission_id)
        return entry is not None and entry.lock.locked()

    @asynccontextmanager
    async def submission_lock(self, submission_id: str):
        """
        Hold the lock for submission_id for the duration of the block.

        Args:
            submission_id: Submission id to serialize on
        """
        entry = self._entries.get(submission_id)
        if entry is None:
            entry = _LockEntry()
            self._entries[submission_id] = entry
        entry.refs += 1

        try:
            if entry.lock.locked():
                logger.debug(f"Waiting for lock on submission {submission_id}")
            async with entry.lock:
                yield
        finally:
            entry.refs -= 1
            if entry.refs == 0:
                self._entries.pop(submission_id, None)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "SubmissionLockRegistry",
]
