"""Roster synchronization."""
from __future__ import annotations

from .roster import LOCK_TTL_BUFFER, RosterSupplier, RosterSynchronizationService, SyncResult

__all__ = ["LOCK_TTL_BUFFER", "RosterSupplier", "RosterSynchronizationService", "SyncResult"]
