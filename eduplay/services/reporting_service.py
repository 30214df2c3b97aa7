"""
ReportingService - Progress Aggregation

The reporting collaborator: turns a child's stored progress records into
the ProgressSnapshot consumed by the achievement engine. The engines never
aggregate records themselves.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Mapping, Optional

from eduplay.models.achievement import ProgressSnapshot, SubjectProgress
from eduplay.models.child import ChildProfile
from eduplay.models.progress import ActivityProgressRecord
from eduplay.storage.base import RecordStore

logger = logging.getLogger(__name__)


class ReportingService:
    """Builds progress snapshots from stored records"""

    def __init__(self, store: RecordStore):
        self.store = store

    def build_snapshot(
        self,
        child: ChildProfile,
        activity_subjects: Optional[Mapping[str, str]] = None,
        subject_activity_counts: Optional[Mapping[str, int]] = None
    ) -> ProgressSnapshot:
        """
        Aggregate a child's progress.

        Args:
            child: Child profile (supplies the learning streak)
            activity_subjects: activity_id -> subject_id
            subject_activity_counts: subject_id -> number of activities in the subject

        Returns:
            ProgressSnapshot with totals and per-subject progress
        """
        records = self.store.list_progress(child.child_id)
        completed = [r for r in records if r.is_completed]

        average_time = None
        if completed:
            average_time = round(sum(r.time_spent_seconds for r in completed) / len(completed), 1)

        snapshot = ProgressSnapshot(
            child_id=child.child_id,
            total_stars=sum(r.stars_earned for r in completed),
            learning_streak=child.learning_streak,
            crown_challenges_completed=sum(1 for r in completed if r.is_crown_challenge),
            activities_completed=len(completed),
            average_completion_time=average_time,
            subject_progress=self._subject_progress(
                completed,
                activity_subjects or {},
                subject_activity_counts or {},
            ),
        )
        logger.debug(
            f"Built snapshot for child {child.child_id}: {snapshot.activities_completed} completed, "
            f"{snapshot.total_stars} stars"
        )
        return snapshot

    def _subject_progress(
        self,
        completed: List[ActivityProgressRecord],
        activity_subjects: Mapping[str, str],
        subject_activity_counts: Mapping[str, int]
    ) -> Dict[str, SubjectProgress]:
        by_subject: Dict[str, List[ActivityProgressRecord]] = defaultdict(list)
        for record in completed:
            subject_id = activity_subjects.get(record.activity_id)
            if subject_id is not None:
                by_subject[subject_id].append(record)

        progress = {}
        for subject_id, total in subject_activity_counts.items():
            done = by_subject.get(subject_id, [])
            progress[subject_id] = SubjectProgress(
                subject_id=subject_id,
                activities_total=total,
                activities_completed=len(done),
                lowest_stars=min((r.stars_earned for r in done), default=None),
            )
        return progress
