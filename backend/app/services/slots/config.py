# backend/app/services/slots/config.py
"""
Business-hours configuration for slots calculation.

BusinessHoursConfig is an immutable snapshot of the admin-edited policy.
The single active policy lives in the `business_hours` table (row id=1);
defaults apply until an administrator saves one.
"""

import json
import logging
import re
from dataclasses import asdict, dataclass, field
from datetime import date

from sqlalchemy.orm import Session

from ...errors import ConfigValidationError, ParseError

logger = logging.getLogger(__name__)

WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)
WEEKEND = ("saturday", "sunday")

DURATION_BOUNDS = (15, 120)
INTERVAL_BOUNDS = (0, 60)

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

ACTIVE_CONFIG_ID = 1


def time_str_to_minutes(value: str) -> int:
    """Parse "HH:MM" (24h) into minutes since midnight."""
    if not isinstance(value, str):
        raise ParseError(value)
    match = _TIME_RE.match(value.strip())
    if not match:
        raise ParseError(value)
    return int(match.group(1)) * 60 + int(match.group(2))


def minutes_to_time_str(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True)
class BusinessHoursConfig:
    """
    Scheduling policy snapshot.

    Attributes:
        start_time / end_time: operating window, "HH:MM"
        lunch_start / lunch_end: blackout window, used only if enable_lunch_break
        consultation_duration: minutes per slot (15..120)
        interval_between: minutes of gap after each slot (0..60)
        available_days: weekday names the policy applies to
        allow_weekends: whether saturday/sunday are eligible at all
    """
    start_time: str = "08:00"
    end_time: str = "18:00"
    lunch_start: str = "12:00"
    lunch_end: str = "13:00"
    consultation_duration: int = 30
    interval_between: int = 15
    enable_lunch_break: bool = True
    allow_weekends: bool = False
    available_days: tuple[str, ...] = field(
        default=("monday", "tuesday", "wednesday", "thursday", "friday")
    )

    def validate(self) -> None:
        """Raise ConfigValidationError on the first inconsistency found."""
        minutes = {}
        for name in ("start_time", "end_time", "lunch_start", "lunch_end"):
            try:
                minutes[name] = time_str_to_minutes(getattr(self, name))
            except ParseError as e:
                raise ConfigValidationError(str(e), field=name) from None

        if minutes["end_time"] <= minutes["start_time"]:
            raise ConfigValidationError(
                "End time must be after start time", field="end_time"
            )

        if self.enable_lunch_break and minutes["lunch_end"] <= minutes["lunch_start"]:
            raise ConfigValidationError(
                "Lunch end must be after lunch start", field="lunch_end"
            )

        low, high = DURATION_BOUNDS
        if not low <= self.consultation_duration <= high:
            raise ConfigValidationError(
                f"Consultation duration must be between {low} and {high} minutes",
                field="consultation_duration",
            )

        low, high = INTERVAL_BOUNDS
        if not low <= self.interval_between <= high:
            raise ConfigValidationError(
                f"Interval between consultations must be between {low} and {high} minutes",
                field="interval_between",
            )

        if not self.available_days:
            raise ConfigValidationError(
                "Select at least one day", field="available_days"
            )
        unknown = [d for d in self.available_days if d not in WEEKDAYS]
        if unknown:
            raise ConfigValidationError(
                f"Unknown weekday(s): {', '.join(unknown)}", field="available_days"
            )

    def is_bookable_day(self, target_date: date) -> bool:
        day_name = WEEKDAYS[target_date.weekday()]
        if day_name in WEEKEND and not self.allow_weekends:
            return False
        return day_name in self.available_days

    def to_dict(self) -> dict:
        data = asdict(self)
        data["available_days"] = list(self.available_days)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "BusinessHoursConfig":
        values = dict(data)
        if "available_days" in values:
            values["available_days"] = tuple(values["available_days"] or ())
        return cls(**values)


# ── Persistence ──────────────────────────────────────────────────────────


def _config_from_row(row) -> BusinessHoursConfig:
    try:
        days = json.loads(row.available_days) if row.available_days else []
    except json.JSONDecodeError:
        logger.warning("Invalid available_days JSON in business_hours id=%s", row.id)
        days = []

    return BusinessHoursConfig(
        start_time=row.start_time,
        end_time=row.end_time,
        lunch_start=row.lunch_start,
        lunch_end=row.lunch_end,
        consultation_duration=row.consultation_duration,
        interval_between=row.interval_between,
        enable_lunch_break=bool(row.enable_lunch_break),
        allow_weekends=bool(row.allow_weekends),
        available_days=tuple(days),
    )


def get_business_hours(db: Session) -> BusinessHoursConfig:
    """Return the active config, or defaults if none was saved yet."""
    from ...models.generated import BusinessHours

    row = db.get(BusinessHours, ACTIVE_CONFIG_ID)
    if not row:
        return BusinessHoursConfig()
    return _config_from_row(row)


def save_business_hours(db: Session, config: BusinessHoursConfig) -> BusinessHoursConfig:
    """Validate and store config as the single active policy."""
    from ...models.generated import BusinessHours

    config.validate()

    row = db.get(BusinessHours, ACTIVE_CONFIG_ID)
    if not row:
        row = BusinessHours(id=ACTIVE_CONFIG_ID)
        db.add(row)

    row.start_time = config.start_time
    row.end_time = config.end_time
    row.lunch_start = config.lunch_start
    row.lunch_end = config.lunch_end
    row.consultation_duration = config.consultation_duration
    row.interval_between = config.interval_between
    row.enable_lunch_break = int(config.enable_lunch_break)
    row.allow_weekends = int(config.allow_weekends)
    row.available_days = json.dumps(list(config.available_days))

    db.commit()
    logger.info("Business hours updated: %s", config.to_dict())
    return config
