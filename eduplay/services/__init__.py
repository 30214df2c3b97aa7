"""
Service Layer Package

Business logic services sitting between the app's presentation layer and
the record store. Each service loads records, applies one engine operation
and saves the result.

Services:
- EntitlementService: Trials, billing events, premium checks
- ProgressService: Activity attempts and star ratings
- ReportingService: Progress snapshots for achievement evaluation
- AchievementService: Achievement evaluation, galleries, celebrations
- GamificationService: The full attempt -> achievements pipeline
"""

from eduplay.services.container import ServiceContainer, get_container, init_container
from eduplay.services.entitlement_service import EntitlementService
from eduplay.services.progress_service import ProgressService
from eduplay.services.reporting_service import ReportingService
from eduplay.services.achievement_service import AchievementService
from eduplay.services.gamification_service import GamificationService

__all__ = [
    # Service Layer Container
    "ServiceContainer",
    "get_container",
    "init_container",
    # Services
    "EntitlementService",
    "ProgressService",
    "ReportingService",
    "AchievementService",
    "GamificationService",
]
