"""
Day-boundary resolution for diary times

Patients enter four wall-clock times with no date. Each one is modelled as
wall-clock plus an anchor-day delta (0 = the sleep date, 1 = the following
day). The delta comes from a per-field rule. The default rule for every field
is "hour before noon rolls to the next day", which matches how the diary has
always been scored. It misreads schedules such as a deliberate 11:00 bedtime
after a night shift, so a clinician can pin a field to a fixed delta instead.
"""

import logging
from datetime import date, datetime
from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from cbti.utils.clock import at_date, parse_clock_time

logger = logging.getLogger(__name__)

TimeField = Literal["time_to_bed", "time_try_sleep", "time_final_awakening", "time_out_of_bed"]

TIME_FIELDS = ("time_to_bed", "time_try_sleep", "time_final_awakening", "time_out_of_bed")

DEFAULT_ROLLOVER_HOUR = 12


class DayOffsetRule(BaseModel):
    """
    How one time field picks its anchor day

    fixed_offset wins when set; otherwise a time whose hour is below
    rollover_before_hour lands on the day after the sleep date.
    """

    model_config = ConfigDict(frozen=True)

    rollover_before_hour: int = Field(default=DEFAULT_ROLLOVER_HOUR, ge=0, le=23)
    fixed_offset: Optional[Literal[0, 1]] = None

    def day_offset(self, value: str, field: Optional[str] = None) -> int:
        if self.fixed_offset is not None:
            return self.fixed_offset
        hour, _ = parse_clock_time(value, field=field)
        return 1 if hour < self.rollover_before_hour else 0


class DayBoundaryPolicy(BaseModel):
    """Per-field anchor-day rules for the four diary times"""

    model_config = ConfigDict(frozen=True)

    time_to_bed: DayOffsetRule = Field(default_factory=DayOffsetRule)
    time_try_sleep: DayOffsetRule = Field(default_factory=DayOffsetRule)
    time_final_awakening: DayOffsetRule = Field(default_factory=DayOffsetRule)
    time_out_of_bed: DayOffsetRule = Field(default_factory=DayOffsetRule)

    @classmethod
    def uniform(cls, rollover_before_hour: int = DEFAULT_ROLLOVER_HOUR) -> "DayBoundaryPolicy":
        """Same hour-threshold rule for all four fields"""
        rule = DayOffsetRule(rollover_before_hour=rollover_before_hour)
        return cls(
            time_to_bed=rule,
            time_try_sleep=rule,
            time_final_awakening=rule,
            time_out_of_bed=rule,
        )

    @classmethod
    def from_settings(cls) -> "DayBoundaryPolicy":
        from cbti.config import settings
        return cls.uniform(settings.day_rollover_hour)

    def with_fixed_offsets(self, offsets: Dict[str, int]) -> "DayBoundaryPolicy":
        """
        Copy of this policy with some fields pinned to a fixed day offset

        Example:
            >>> # Night-shift worker who goes to bed at 09:00 on the sleep date
            >>> policy = DayBoundaryPolicy().with_fixed_offsets(
            ...     {"time_to_bed": 0, "time_try_sleep": 0}
            ... )
        """
        unknown = set(offsets) - set(TIME_FIELDS)
        if unknown:
            raise ValueError(f"Unknown time fields: {', '.join(sorted(unknown))}")

        updates = {
            name: DayOffsetRule(
                rollover_before_hour=getattr(self, name).rollover_before_hour,
                fixed_offset=offset,
            )
            for name, offset in offsets.items()
        }
        return self.model_copy(update=updates)

    def day_offset(self, field: TimeField, value: str) -> int:
        return getattr(self, field).day_offset(value, field=field)

    def anchor(self, sleep_date: date, field: TimeField, value: str) -> datetime:
        """Resolve a wall-clock answer to an absolute (naive local) instant"""
        offset = self.day_offset(field, value)
        resolved = at_date(sleep_date, value, offset, field=field)
        logger.debug(f"Anchored {field}={value} to {resolved.isoformat()} (offset {offset})")
        return resolved
