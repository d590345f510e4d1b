"""Backup file schemas (Pydantic). Field names match the JSON on disk."""

from __future__ import annotations

import math
from typing import Annotated, Optional, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
    model_validator,
)

from intime.models import RelationshipTier, Theme

# bool is not a number here, nor is a numeric string
Number = Union[StrictInt, StrictFloat]


def _finite(v: float) -> float:
    # json.loads lets NaN and Infinity through
    if not math.isfinite(v):
        raise ValueError("must be a finite number")
    return v


Timestamp = Annotated[Number, AfterValidator(_finite)]


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def _first_duplicate(ids: list[str]) -> Optional[str]:
    seen = set()
    for i in ids:
        if i in seen:
            return i
        seen.add(i)
    return None


class FriendRecord(_Record):
    id: StrictStr = Field(min_length=1)
    name: StrictStr = Field(min_length=1)
    relationship_tier: RelationshipTier = Field(RelationshipTier.CLOSE, alias="relationshipTier")
    cadence_days: Number = Field(alias="cadenceDays")
    last_meeting_date: Optional[Timestamp] = Field(None, alias="lastMeetingDate")
    streak_count: int = Field(0, ge=0, alias="streakCount")
    multiplier: float = 1.0  # informational; recomputed from streakCount on import
    total_meetings: int = Field(0, ge=0, alias="totalMeetings")
    is_archived: bool = Field(False, alias="isArchived")
    created_at: Optional[Timestamp] = Field(None, alias="createdAt")
    updated_at: Optional[Timestamp] = Field(None, alias="updatedAt")

    @field_validator("cadence_days")
    @classmethod
    def check_cadence(cls, v: float) -> float:
        if not math.isfinite(v) or v <= 0:
            raise ValueError("cadenceDays must be a positive number")
        return v


class MeetingRecord(_Record):
    id: StrictStr = Field(min_length=1)
    friend_id: StrictStr = Field(min_length=1, alias="friendId")
    timestamp: Timestamp
    note: Optional[str] = None
    created_at: Optional[Timestamp] = Field(None, alias="createdAt")


class SettingsRecord(_Record):
    theme: Theme = Theme.AUTO
    notifications_enabled: bool = Field(True, alias="notificationsEnabled")
    daily_summary_interval: int = Field(30, alias="dailySummaryInterval")
    threshold_alerts_enabled: bool = Field(True, alias="thresholdAlertsEnabled")
    has_completed_onboarding: bool = Field(False, alias="hasCompletedOnboarding")


class BackupFile(_Record):
    """Full export bundle: `{version, exportedAt, friends, meetings, settings}`."""

    version: Optional[str] = None
    exported_at: Optional[Timestamp] = Field(None, alias="exportedAt")
    friends: list[FriendRecord]
    meetings: list[MeetingRecord]
    settings: SettingsRecord

    @model_validator(mode="after")
    def check_unique_ids(self) -> BackupFile:
        for kind, records in (("friend", self.friends), ("meeting", self.meetings)):
            dup = _first_duplicate([r.id for r in records])
            if dup is not None:
                raise ValueError(f"duplicate {kind} id '{dup}'")
        return self
