#!/usr/bin/env python3
"""
Dependency Injection Container

Provides a centralized way to build the event engine's services from
configuration. Supports singleton and factory registrations.
"""

import logging
from typing import Any, Dict, Callable, TypeVar, Optional
from functools import wraps
import threading

logger = logging.getLogger(__name__)

T = TypeVar('T')


class Container:
    """Simple dependency injection container with lifecycle management."""

    def __init__(self):
        """Initialize empty container."""
        self._factories: Dict[str, Callable] = {}
        self._singletons: Dict[str, Any] = {}
        self._lock = threading.RLock()

    def register_singleton(self, service_name: str, factory: Callable[[], T]) -> None:
        """
        Register a service as singleton (created once, reused).

        Args:
            service_name: Unique name for the service
            factory: Function that creates the service instance
        """
        factory._is_singleton = True
        with self._lock:
            self._factories[service_name] = factory
            self._singletons.pop(service_name, None)

    def register_factory(self, service_name: str, factory: Callable[[], T]) -> None:
        """Register a service as factory (new instance each time)."""
        with self._lock:
            self._factories[service_name] = factory

    def get(self, service_name: str) -> Any:
        """
        Get service instance by name.

        Raises:
            KeyError: If service is not registered
        """
        if service_name in self._singletons:
            return self._singletons[service_name]

        if service_name not in self._factories:
            raise KeyError(f"Service '{service_name}' not registered")

        # Reentrant: factories resolve their own dependencies through get()
        with self._lock:
            factory = self._factories[service_name]

            if getattr(factory, '_is_singleton', False):
                if service_name not in self._singletons:
                    self._singletons[service_name] = factory()
                    logger.debug(f"Created singleton instance for '{service_name}'")
                return self._singletons[service_name]

            instance = factory()
            logger.debug(f"Created new instance for '{service_name}'")
            return instance

    def clear(self) -> None:
        """Clear all registered services and instances."""
        with self._lock:
            self._factories.clear()
            self._singletons.clear()


def singleton(factory_func: Callable[[], T]) -> Callable[[], T]:
    """
    Decorator to mark a factory function as singleton.

    Usage:
        @singleton
        def create_storage():
            return create_storage(get_config())
    """
    @wraps(factory_func)
    def wrapper():
        return factory_func()

    wrapper._is_singleton = True
    return wrapper


# Global container instance
_container: Optional[Container] = None
_container_lock = threading.Lock()


def get_container() -> Container:
    """Get global container instance (thread-safe singleton)."""
    global _container
    if _container is None:
        with _container_lock:
            if _container is None:
                _container = Container()
                _setup_default_services(_container)
    return _container


def reset_container() -> None:
    """Reset global container (useful for testing)."""
    global _container
    with _container_lock:
        if _container:
            _container.clear()
        _container = None


def _setup_default_services(container: Container) -> None:
    """Set up default service registrations with configuration injection."""

    @singleton
    def create_config():
        from core.config import get_config
        return get_config()

    @singleton
    def create_storage():
        from core.database import create_storage as build_storage
        return build_storage(container.get('config'))

    @singleton
    def create_openai_client():
        config = container.get('config')
        if not config.has_openai():
            logger.warning("OpenAI API key not configured; classification will use failure policies")
            return None
        from integrations.openai_client import OpenAIClient
        return OpenAIClient(
            api_key=config.integrations.openai_api_key,
            model=config.integrations.openai_model,
            max_tokens=config.integrations.openai_max_tokens,
            temperature=config.integrations.openai_temperature
        )

    def create_scan_service():
        from core.analysis.events import FailurePolicy, build_classification_pipeline
        from core.briefs import BriefFanout
        from core.engine import ScanService
        from core.extraction import CandidateBuilder

        config = container.get('config')
        storage = container.get('storage')
        tz = config.get_timezone()

        pipeline = build_classification_pipeline(
            openai_client=container.get('openai_client'),
            failure_policy=FailurePolicy.from_value(config.app.gatekeeper_failure_policy),
            min_score=config.app.min_relevance_score,
            fallback_score=config.app.fallback_relevance_score,
            fallback_offset_days=config.app.fallback_event_offset_days
        )
        fanout = BriefFanout(
            storage.briefs,
            max_workers=config.app.brief_write_workers,
            queue_size=config.app.brief_queue_size,
            write_delay_seconds=config.app.brief_write_delay_seconds
        )
        builder = CandidateBuilder(
            min_title_length=config.app.min_title_length,
            max_title_length=config.app.max_title_length,
            max_items=config.app.max_items_per_feed,
            tz=tz
        )
        return ScanService(
            storage.raw_events, storage.tenants, pipeline, fanout,
            candidate_builder=builder,
            default_window_months=config.app.default_window_months,
            tz=tz
        )

    def create_ingestion_service():
        from core.ingestion import IngestionService

        config = container.get('config')
        return IngestionService(
            container.get('storage').raw_events,
            batch_size=config.app.ingest_batch_size,
            batch_delay_seconds=config.app.ingest_batch_delay_seconds,
            min_title_length=config.app.min_title_length,
            max_title_length=config.app.max_title_length
        )

    container.register_singleton('config', create_config)
    container.register_singleton('storage', create_storage)
    container.register_singleton('openai_client', create_openai_client)

    # Non-singletons
    container.register_factory('scan_service', create_scan_service)
    container.register_factory('ingestion_service', create_ingestion_service)

    logger.debug("Default services registered in container")


# Convenience functions for common usage patterns

def get_config():
    """Get configuration instance from container."""
    return get_container().get('config')


def get_storage():
    """Get storage bundle from container."""
    return get_container().get('storage')


def get_openai_client():
    """Get the shared OpenAI client, or ``None`` when no key is configured."""
    return get_container().get('openai_client')


def create_scan_service():
    """Create a scan service wired from configuration."""
    return get_container().get('scan_service')


def create_ingestion_service():
    """Create an ingestion service wired from configuration."""
    return get_container().get('ingestion_service')
