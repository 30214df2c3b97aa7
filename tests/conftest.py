"""Global test fixtures and utilities for eduplay-core tests"""
import pytest
from datetime import datetime, timezone

from eduplay.entitlement.engine import EntitlementEngine
from eduplay.gamification.achievement_system import AchievementEngine, load_catalog
from eduplay.gamification.progress_tracker import ProgressTracker
from eduplay.models.achievement import AchievementDefinition, ProgressSnapshot, SubjectProgress
from eduplay.models.child import ChildProfile
from eduplay.services.container import ServiceContainer
from eduplay.storage.memory_store import InMemoryRecordStore
from eduplay.utils.datetime_helpers import FixedClock


# ============================================================================
# Clock Fixtures
# ============================================================================

@pytest.fixture
def t0():
    """Fixed starting instant for time-dependent tests"""
    return datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(t0):
    """Manually driven clock starting at t0"""
    return FixedClock(t0)


# ============================================================================
# Engine Fixtures
# ============================================================================

@pytest.fixture
def entitlement_engine(clock):
    return EntitlementEngine(clock=clock, strict=False)


@pytest.fixture
def strict_entitlement_engine(clock):
    return EntitlementEngine(clock=clock, strict=True)


@pytest.fixture
def tracker(clock):
    return ProgressTracker(clock=clock)


@pytest.fixture
def achievement_engine(clock):
    return AchievementEngine(clock=clock)


# ============================================================================
# Child & Snapshot Fixtures
# ============================================================================

@pytest.fixture
def test_child():
    """Standard five-year-old learner"""
    return ChildProfile(child_id="child-1", account_id="account-1", name="Mia", age=5)


@pytest.fixture
def advanced_child():
    """Advanced learner who qualifies for crown challenges"""
    return ChildProfile(
        child_id="child-2",
        account_id="account-2",
        name="Leo",
        age=7,
        is_advanced=True,
        total_stars_earned=60,
        current_level=4,
    )


@pytest.fixture
def empty_snapshot():
    return ProgressSnapshot(
        child_id="child-1",
        total_stars=0,
        learning_streak=0,
        crown_challenges_completed=0,
        activities_completed=0,
    )


@pytest.fixture
def make_snapshot():
    """Factory for snapshots with sensible zero defaults"""
    def _make(**overrides):
        values = {
            "child_id": "child-1",
            "total_stars": 0,
            "learning_streak": 0,
            "crown_challenges_completed": 0,
            "activities_completed": 0,
        }
        values.update(overrides)
        return ProgressSnapshot(**values)
    return _make


@pytest.fixture
def math_subject_done():
    return SubjectProgress(
        subject_id="math",
        activities_total=2,
        activities_completed=2,
        lowest_stars=2,
    )


# ============================================================================
# Achievement Catalog Fixtures
# ============================================================================

@pytest.fixture
def catalog_entries():
    """Raw catalog as delivered by the content collaborator"""
    return [
        {
            "id": "first-step",
            "name": "First Step",
            "category": "Milestone",
            "achievement_type": "FirstStep",
            "criteria": "{}",
            "points": 10,
            "display_order": 1,
        },
        {
            "id": "star-collector-50",
            "name": "Star Collector",
            "category": "Progress",
            "achievement_type": "StarCollector",
            "criteria": '{"minStars": 50}',
            "rarity": "Rare",
            "points": 100,
            "display_order": 2,
        },
        {
            "id": "streak-3",
            "name": "Three Day Streak",
            "category": "Streak",
            "achievement_type": "StreakKeeper",
            "criteria": {"minDays": 3},
            "points": 30,
            "display_order": 3,
        },
        {
            "id": "math-master",
            "name": "Math Master",
            "category": "Subject",
            "achievement_type": "SubjectMaster",
            "criteria": '{"subjectId": "math", "minStars": 2}',
            "subject_id": "math",
            "points": 50,
            "display_order": 4,
        },
        {
            "id": "crown-champion",
            "name": "Crown Champion",
            "category": "Crown",
            "achievement_type": "CrownChampion",
            "criteria": '{"minCrownChallenges": 1}',
            "rarity": "Epic",
            "points": 200,
            "is_crown_challenge": True,
            "display_order": 5,
        },
        {
            "id": "secret-speedster",
            "name": "Speedster",
            "category": "Special",
            "achievement_type": "SpeedLearner",
            "criteria": '{"maxAverageTime": 60}',
            "points": 40,
            "is_hidden": True,
            "display_order": 6,
        },
    ]


@pytest.fixture
def catalog(catalog_entries):
    return load_catalog(catalog_entries)


@pytest.fixture
def star_collector():
    return AchievementDefinition(
        id="star-collector-50",
        name="Star Collector",
        category="Progress",
        achievement_type="StarCollector",
        criteria='{"minStars": 50}',
        rarity="Rare",
        points=100,
    )


# ============================================================================
# Storage & Service Fixtures
# ============================================================================

@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def container(store, clock, catalog_entries):
    """Fully wired services sharing one store and one clock"""
    return ServiceContainer(store=store, clock=clock, catalog_entries=catalog_entries)
