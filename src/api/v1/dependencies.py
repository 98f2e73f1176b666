"""Dependency injection factories for API v1."""

from functools import lru_cache
from typing import Callable
from uuid import UUID

from core.config import settings
from domain.services.directory_service import DirectoryService
from domain.services.discovery_coordinator import DiscoveryCoordinator
from domain.services.like_service import LikeService
from domain.services.message_service import MessageService
from domain.services.session_service import AdminSessionStore, SessionService
from infrastructure.database.session import async_session_factory
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork
from infrastructure.resilience.connectivity import HttpReachabilityMonitor
from infrastructure.resilience.executor import ResilientExecutor
from infrastructure.resilience.offline_queue import OfflineQueue
from infrastructure.resilience.retry import RetryExecutor, RetryPolicy
from infrastructure.storage.sqlalchemy_kv_store import SQLAlchemyKeyValueStore


def get_uow_factory() -> Callable[[], SQLAlchemyUnitOfWork]:
    """Factory for creating Unit of Work instances."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(async_session_factory)

    return factory


@lru_cache
def get_local_storage() -> SQLAlchemyKeyValueStore:
    """Get the local key/value storage."""
    return SQLAlchemyKeyValueStore(settings.local_storage_url)


@lru_cache
def get_connectivity_monitor() -> HttpReachabilityMonitor:
    """Get the reachability monitor."""
    return HttpReachabilityMonitor(
        settings.reachability_url,
        timeout_s=settings.reachability_timeout_s,
        poll_interval_s=settings.connectivity_poll_interval_s,
    )


@lru_cache
def get_offline_queue() -> OfflineQueue:
    """Get the durable offline operation queue."""
    return OfflineQueue(
        get_local_storage(),
        get_connectivity_monitor(),
        max_size=settings.offline_queue_max_size,
        max_retries=settings.offline_queue_max_retries,
        settle_delay_ms=settings.offline_queue_settle_delay_ms,
    )


@lru_cache
def get_executor() -> ResilientExecutor:
    """Get the retrying, queue-backed operation executor."""
    retry = RetryExecutor(
        connectivity=get_connectivity_monitor(),
        policy=RetryPolicy(
            max_attempts=settings.retry_max_attempts,
            base_delay_ms=settings.retry_base_delay_ms,
            jitter_ms=settings.retry_jitter_ms,
            timeout_s=settings.operation_timeout_s,
        ),
    )
    return ResilientExecutor(retry, get_offline_queue())


@lru_cache
def get_directory_service() -> DirectoryService:
    """Get Directory service instance."""
    return DirectoryService(get_uow_factory(), get_executor())


@lru_cache
def get_like_service() -> LikeService:
    """Get Like service instance."""
    return LikeService(get_uow_factory(), get_executor())


@lru_cache
def get_message_service() -> MessageService:
    """Get Message service instance."""
    return MessageService(get_uow_factory(), get_executor())


@lru_cache
def get_admin_session_store() -> AdminSessionStore:
    """Get the admin session store."""
    return AdminSessionStore(get_local_storage(), valid_hours=settings.admin_session_hours)


@lru_cache
def get_session_service() -> SessionService:
    """Get Session service instance."""
    return SessionService(
        get_local_storage(),
        get_directory_service(),
        get_admin_session_store(),
    )


def create_discovery_coordinator(event_id: UUID, session_id: str) -> DiscoveryCoordinator:
    """Discovery coordinator for one session, polling at the configured interval."""
    return DiscoveryCoordinator(
        get_directory_service(),
        get_like_service(),
        event_id,
        session_id,
        poll_interval_s=settings.discovery_poll_interval_s,
    )
