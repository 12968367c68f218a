"""Ingestion of U.S. congressional rosters, roll-call votes and attendance."""
from __future__ import annotations

from .clients import CongressGovClient, CongressGovClientError
from .config import AppConfig, load_config
from .core import AccountabilityEvent, LegislativeBody, PublicOfficial, RosterEntry, VotingRecord
from .database import Storage, create_storage
from .ingestion import CycleReport, FederalIngestionService, UnitOutcome
from .lock import DistributedLockManager, InMemoryDistributedLockManager, RedisDistributedLockManager
from .publishing import AccountabilityEventPublisher
from .runtime import IngestionResources, create_ingestion
from .scheduler import IngestionScheduler
from .summarization import GeminiSummarizer, LegislationSummaryService
from .sync import RosterSynchronizationService, SyncResult

__all__ = [
    "AccountabilityEvent",
    "AccountabilityEventPublisher",
    "AppConfig",
    "CongressGovClient",
    "CongressGovClientError",
    "CycleReport",
    "DistributedLockManager",
    "FederalIngestionService",
    "GeminiSummarizer",
    "InMemoryDistributedLockManager",
    "IngestionResources",
    "IngestionScheduler",
    "LegislationSummaryService",
    "LegislativeBody",
    "PublicOfficial",
    "RedisDistributedLockManager",
    "RosterEntry",
    "RosterSynchronizationService",
    "Storage",
    "SyncResult",
    "UnitOutcome",
    "VotingRecord",
    "create_ingestion",
    "create_storage",
    "load_config",
]
