"""
Achievement Criteria Evaluators

One evaluator per achievement type. Each reads named fields out of a
caller-supplied ProgressSnapshot and never touches storage. Evaluators
also report a (current, target) pair so the engine can show progress
toward locked achievements.
"""

from typing import Callable, Dict, Optional, Tuple
import logging

from eduplay.models.achievement import AchievementDefinition, ProgressSnapshot
from eduplay.models.criteria import (
    CrownChampionCriteria,
    FirstStepCriteria,
    SpeedLearnerCriteria,
    StarCollectorCriteria,
    StreakKeeperCriteria,
    SubjectMasterCriteria,
)

logger = logging.getLogger(__name__)


# ============================================
# Satisfaction checks
# ============================================

def _check_subject_master(criteria: SubjectMasterCriteria, snapshot: ProgressSnapshot) -> bool:
    """Subject completed with the minimum stars"""
    subject = snapshot.subject_progress.get(criteria.subject_id)
    if subject is None:
        return False
    return subject.completed_with_min_stars(criteria.min_stars)


def _check_star_collector(criteria: StarCollectorCriteria, snapshot: ProgressSnapshot) -> bool:
    if snapshot.total_stars is None:
        return False
    return snapshot.total_stars >= criteria.min_stars


def _check_streak_keeper(criteria: StreakKeeperCriteria, snapshot: ProgressSnapshot) -> bool:
    if snapshot.learning_streak is None:
        return False
    return snapshot.learning_streak >= criteria.min_days


def _check_crown_champion(criteria: CrownChampionCriteria, snapshot: ProgressSnapshot) -> bool:
    if snapshot.crown_challenges_completed is None:
        return False
    return snapshot.crown_challenges_completed >= criteria.min_crown_challenges


def _check_first_step(criteria: FirstStepCriteria, snapshot: ProgressSnapshot) -> bool:
    if snapshot.activities_completed is None:
        return False
    return snapshot.activities_completed >= 1


def _check_speed_learner(criteria: SpeedLearnerCriteria, snapshot: ProgressSnapshot) -> bool:
    """Average completion time at or below the limit"""
    if snapshot.average_completion_time is None:
        return False
    return snapshot.average_completion_time <= criteria.max_average_time


_CHECKS: Dict[str, Callable] = {
    "SubjectMaster": _check_subject_master,
    "StarCollector": _check_star_collector,
    "StreakKeeper": _check_streak_keeper,
    "CrownChampion": _check_crown_champion,
    "FirstStep": _check_first_step,
    "SpeedLearner": _check_speed_learner,
}


# ============================================
# Progress measures
# ============================================

def _measure_subject_master(criteria: SubjectMasterCriteria, snapshot: ProgressSnapshot) -> Tuple[int, int]:
    subject = snapshot.subject_progress.get(criteria.subject_id)
    if subject is None:
        return 0, 1
    return subject.activities_completed, max(subject.activities_total, 1)


def _measure_star_collector(criteria: StarCollectorCriteria, snapshot: ProgressSnapshot) -> Tuple[int, int]:
    return snapshot.total_stars or 0, criteria.min_stars


def _measure_streak_keeper(criteria: StreakKeeperCriteria, snapshot: ProgressSnapshot) -> Tuple[int, int]:
    return snapshot.learning_streak or 0, criteria.min_days


def _measure_crown_champion(criteria: CrownChampionCriteria, snapshot: ProgressSnapshot) -> Tuple[int, int]:
    return snapshot.crown_challenges_completed or 0, criteria.min_crown_challenges


def _measure_first_step(criteria: FirstStepCriteria, snapshot: ProgressSnapshot) -> Tuple[int, int]:
    return min(snapshot.activities_completed or 0, 1), 1


def _measure_speed_learner(criteria: SpeedLearnerCriteria, snapshot: ProgressSnapshot) -> Tuple[int, int]:
    # Lower is better, so progress is all-or-nothing
    return (1 if _check_speed_learner(criteria, snapshot) else 0), 1


_MEASURES: Dict[str, Callable] = {
    "SubjectMaster": _measure_subject_master,
    "StarCollector": _measure_star_collector,
    "StreakKeeper": _measure_streak_keeper,
    "CrownChampion": _measure_crown_champion,
    "FirstStep": _measure_first_step,
    "SpeedLearner": _measure_speed_learner,
}


def evaluate_criteria(definition: AchievementDefinition, snapshot: ProgressSnapshot) -> bool:
    """
    Whether the snapshot satisfies the definition's criteria

    Malformed criteria are reported once when the definition is loaded;
    here they simply count as not satisfied.
    """
    criteria = definition.parsed_criteria
    if criteria is None:
        logger.debug(f"Achievement {definition.id} has unusable criteria; treating as not satisfied")
        return False

    check = _CHECKS.get(criteria.achievement_type)
    if check is None:
        return False
    return check(criteria, snapshot)


def measure_progress(definition: AchievementDefinition, snapshot: ProgressSnapshot) -> Optional[Tuple[int, int]]:
    """
    (current, target) progress toward the definition

    Returns:
        None when the criteria are unusable
    """
    criteria = definition.parsed_criteria
    if criteria is None:
        return None

    measure = _MEASURES.get(criteria.achievement_type)
    if measure is None:
        return None
    return measure(criteria, snapshot)
