"""Application level helpers for assembling the ingestion dependencies."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import logging

from .clients import CongressGovClient
from .config import AppConfig
from .database import (
    LegislativeBodyRepository,
    PublicOfficialRepository,
    Storage,
    VotingRecordRepository,
    create_storage,
)
from .ingestion import FederalIngestionService
from .lock import DistributedLockManager, InMemoryDistributedLockManager, RedisDistributedLockManager
from .publishing import AccountabilityEventPublisher, create_producer, ensure_topic
from .summarization import GeminiSummarizer, LegislationSummaryService
from .sync import RosterSynchronizationService

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class IngestionResources:
    """Container bundling the objects needed to run ingestion cycles."""

    service: FederalIngestionService
    client: CongressGovClient
    storage: Storage
    lock_manager: DistributedLockManager
    publisher: AccountabilityEventPublisher | None
    summary_service: LegislationSummaryService | None
    owns_client: bool = True
    owns_storage: bool = True

    def close(self) -> None:
        if self.summary_service is not None:
            self.summary_service.close()
        if self.publisher is not None:
            self.publisher.close()
        if isinstance(self.lock_manager, RedisDistributedLockManager):
            self.lock_manager.close()
        if self.owns_client:
            self.client.close()
        if self.owns_storage:
            self.storage.dispose()


def _create_lock_manager(config: AppConfig) -> DistributedLockManager:
    if config.lock.redis_url:
        return RedisDistributedLockManager.from_url(config.lock.redis_url, socket_timeout=config.lock.socket_timeout)
    LOGGER.warning("No Redis URL configured - roster locks only cover this process")
    return InMemoryDistributedLockManager()


def _create_publisher(config: AppConfig) -> Optional[AccountabilityEventPublisher]:
    if not config.kafka.enabled:
        LOGGER.info("Kafka publishing disabled - change events will not be sent")
        return None
    ensure_topic(config.kafka)
    return AccountabilityEventPublisher(create_producer(config.kafka), config.kafka.topic)


def _create_summary_service(config: AppConfig, skip_summaries: bool) -> Optional[LegislationSummaryService]:
    if skip_summaries or not config.ingestion.enable_summaries:
        return None
    if not config.gemini.api_key:
        LOGGER.warning("Gemini API key missing - bill summaries will be skipped")
        return None
    summarizer = GeminiSummarizer(
        api_key=config.gemini.api_key,
        base_url=config.gemini.base_url,
        model=config.gemini.model,
        timeout=config.gemini.timeout,
        max_retries=config.gemini.max_retries,
        enable_safety_settings=config.gemini.enable_safety_settings,
    )
    return LegislationSummaryService(summarizer)


def create_ingestion(
    config: AppConfig,
    *,
    skip_summaries: bool = False,
    storage: Storage | None = None,
    client: CongressGovClient | None = None,
    lock_manager: DistributedLockManager | None = None,
    publisher: AccountabilityEventPublisher | None = None,
) -> IngestionResources:
    owns_client = client is None
    owns_storage = storage is None
    congress_client = client or CongressGovClient(
        config.congress.base_url,
        config.congress.api_key,
        timeout=config.congress.timeout,
        max_retries=config.congress.max_retries,
        page_size=config.congress.page_size,
    )
    storage_instance = storage or create_storage(config.storage.database_url, echo=config.storage.echo_sql)
    locks = lock_manager or _create_lock_manager(config)
    event_publisher = publisher if publisher is not None else _create_publisher(config)
    summary_service = _create_summary_service(config, skip_summaries)

    bodies = LegislativeBodyRepository(storage_instance)
    officials = PublicOfficialRepository(storage_instance)
    votes = VotingRecordRepository(storage_instance)
    service = FederalIngestionService(
        client=congress_client,
        body_repository=bodies,
        official_repository=officials,
        vote_repository=votes,
        roster_sync=RosterSynchronizationService(officials, bodies, locks),
        settings=config.ingestion,
        congresses=config.congress.roster_congresses,
        publisher=event_publisher,
        summary_service=summary_service,
    )
    return IngestionResources(
        service=service,
        client=congress_client,
        storage=storage_instance,
        lock_manager=locks,
        publisher=event_publisher,
        summary_service=summary_service,
        owns_client=owns_client,
        owns_storage=owns_storage,
    )


__all__ = ["IngestionResources", "create_ingestion"]
