from __future__ import annotations

from datetime import date, datetime, timezone

from pydantic import BaseModel, field_validator


class PackageClock(BaseModel, frozen=True):
    now: datetime

    @field_validator('now')
    @classmethod
    def now_must_be_timezone_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None or value.utcoffset() is None:
            raise ValueError('PackageClock value must be timezone-aware')
        return value

    @classmethod
    def system(cls) -> PackageClock:
        return cls(now=datetime.now(timezone.utc).astimezone())

    def today(self) -> date:
        return self.now.date()
