"""
Service Container - Dependency Injection Container

Wires the engines and services around one record store and one clock.
Uses lazy loading to only instantiate services when first accessed.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union
import logging

from eduplay.models.achievement import AchievementDefinition
from eduplay.utils.datetime_helpers import Clock, now_utc

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Services are lazy-loaded on first access via properties.
    Infrastructure dependencies (store, clock, catalog) are injected.
    """

    # Infrastructure dependencies (injected)
    store: object  # RecordStore implementation
    clock: Clock = now_utc
    catalog_entries: List[Union[Dict[str, Any], AchievementDefinition]] = field(default_factory=list)

    # Engines and services (lazy-loaded via properties)
    _entitlement_engine: Optional[object] = field(default=None, init=False, repr=False)
    _progress_tracker: Optional[object] = field(default=None, init=False, repr=False)
    _achievement_engine: Optional[object] = field(default=None, init=False, repr=False)
    _entitlement_service: Optional[object] = field(default=None, init=False, repr=False)
    _progress_service: Optional[object] = field(default=None, init=False, repr=False)
    _reporting_service: Optional[object] = field(default=None, init=False, repr=False)
    _achievement_service: Optional[object] = field(default=None, init=False, repr=False)
    _gamification_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def entitlement_engine(self):
        """Get EntitlementEngine instance (lazy-loaded)"""
        if self._entitlement_engine is None:
            from eduplay.entitlement.engine import EntitlementEngine
            self._entitlement_engine = EntitlementEngine(clock=self.clock)
            logger.debug("EntitlementEngine instantiated")
        return self._entitlement_engine

    @property
    def progress_tracker(self):
        """Get ProgressTracker instance (lazy-loaded)"""
        if self._progress_tracker is None:
            from eduplay.gamification.progress_tracker import ProgressTracker
            self._progress_tracker = ProgressTracker(clock=self.clock)
            logger.debug("ProgressTracker instantiated")
        return self._progress_tracker

    @property
    def achievement_engine(self):
        """Get AchievementEngine instance (lazy-loaded)"""
        if self._achievement_engine is None:
            from eduplay.gamification.achievement_system import AchievementEngine
            self._achievement_engine = AchievementEngine(clock=self.clock)
            logger.debug("AchievementEngine instantiated")
        return self._achievement_engine

    @property
    def entitlement_service(self):
        """Get EntitlementService instance (lazy-loaded)"""
        if self._entitlement_service is None:
            from eduplay.services.entitlement_service import EntitlementService
            self._entitlement_service = EntitlementService(self.store, self.entitlement_engine)
            logger.debug("EntitlementService instantiated")
        return self._entitlement_service

    @property
    def progress_service(self):
        """Get ProgressService instance (lazy-loaded)"""
        if self._progress_service is None:
            from eduplay.services.progress_service import ProgressService
            self._progress_service = ProgressService(self.store, self.progress_tracker)
            logger.debug("ProgressService instantiated")
        return self._progress_service

    @property
    def reporting_service(self):
        """Get ReportingService instance (lazy-loaded)"""
        if self._reporting_service is None:
            from eduplay.services.reporting_service import ReportingService
            self._reporting_service = ReportingService(self.store)
            logger.debug("ReportingService instantiated")
        return self._reporting_service

    @property
    def achievement_service(self):
        """Get AchievementService instance (lazy-loaded)"""
        if self._achievement_service is None:
            from eduplay.gamification.achievement_system import load_catalog
            from eduplay.services.achievement_service import AchievementService
            self._achievement_service = AchievementService(
                self.store,
                self.achievement_engine,
                load_catalog(self.catalog_entries)
            )
            logger.debug("AchievementService instantiated")
        return self._achievement_service

    @property
    def gamification_service(self):
        """Get GamificationService instance (lazy-loaded)"""
        if self._gamification_service is None:
            from eduplay.services.gamification_service import GamificationService
            self._gamification_service = GamificationService(
                self.progress_service,
                self.achievement_service,
                self.entitlement_service,
                self.reporting_service
            )
            logger.debug("GamificationService instantiated")
        return self._gamification_service


# Global container instance (initialized at application startup)
_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """
    Get the global service container.

    Returns:
        ServiceContainer: The global container instance

    Raises:
        RuntimeError: If container not initialized (call init_container first)
    """
    if _container is None:
        raise RuntimeError(
            "Service container not initialized. "
            "Call init_container() at startup before using services."
        )
    return _container


def init_container(
    store: object,
    clock: Optional[Clock] = None,
    catalog_entries: Optional[Iterable[Union[Dict[str, Any], AchievementDefinition]]] = None
) -> ServiceContainer:
    """
    Initialize the global service container.

    Args:
        store: RecordStore implementation
        clock: Optional clock (defaults to UTC now)
        catalog_entries: Achievement definitions from the content collaborator

    Returns:
        ServiceContainer: The initialized container
    """
    global _container

    _container = ServiceContainer(
        store=store,
        clock=clock or now_utc,
        catalog_entries=list(catalog_entries or [])
    )

    logger.info("Service container initialized")
    return _container
