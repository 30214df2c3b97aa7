"""Audit timestamps embedded in every record"""
from datetime import datetime

from pydantic import BaseModel, Field

from eduplay.utils.datetime_helpers import now_utc


class AuditFields(BaseModel):
    """Creation and last-update timestamps"""
    created_at: datetime = Field(default_factory=now_utc)
    updated_at: datetime = Field(default_factory=now_utc)

    @classmethod
    def at(cls, moment: datetime) -> "AuditFields":
        """Audit fields for a record created at the given moment"""
        return cls(created_at=moment, updated_at=moment)

    def touch(self, moment: datetime) -> None:
        self.updated_at = moment
