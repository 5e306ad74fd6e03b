"""ISO week keys and the fixed weekly phase schedule.

Pure functions of their inputs. Week membership is decided in UTC; the
phase clock times are local civil time converted with a constant offset
(no DST handling, so from late March to late October every phase fires
one hour late in local summer time).
"""
import re
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta

WEEK_KEY_PATTERN = re.compile(r"^(\d{4})-W(\d{2})$")

# (weekday offset from Monday, local hour)
START_AT = (0, 11)
EDIT_DEADLINE_AT = (4, 12)
VOTE_DEADLINE_AT = (4, 14)
FREEZE_AT = (4, 15)
REVEAL_AT = (4, 16)
ENDS_AT = (7, 11)


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def week_key(moment: datetime) -> str:
    """ISO-8601 week key, e.g. ``"2026-W08"``.

    Weeks start on Monday; week 1 contains the year's first Thursday, so the
    key's year can differ from the calendar year around New Year.
    """
    iso_year, iso_week, _ = ensure_utc(moment).isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def parse_week_key(key: str) -> tuple[int, int]:
    """Parse ``"2026-W08"`` into ``(2026, 8)``.

    Raises:
        ValueError: Malformed key or week number that does not exist in that year
    """
    match = WEEK_KEY_PATTERN.match(key)
    if not match:
        raise ValueError(f"Invalid week key: {key!r}")
    year, week = int(match.group(1)), int(match.group(2))
    # fromisocalendar rejects W00 and W53 in 52-week years
    date.fromisocalendar(year, week, 1)
    return year, week


def monday_of(key: str) -> date:
    """Calendar date of the Monday that opens the given ISO week."""
    year, week = parse_week_key(key)
    return date.fromisocalendar(year, week, 1)


def _as_moment(value: datetime | str) -> datetime:
    if isinstance(value, str):
        return datetime.combine(monday_of(value), time(0, 0), tzinfo=UTC)
    return ensure_utc(value)


def previous_week_key(value: datetime | str) -> str:
    """Week key seven days before ``value`` (a moment or a week key)."""
    return week_key(_as_moment(value) - timedelta(days=7))


def next_week_key(value: datetime | str) -> str:
    """Week key seven days after ``value`` (a moment or a week key)."""
    return week_key(_as_moment(value) + timedelta(days=7))


def week_keys_last_n(now: datetime, n: int) -> list[str]:
    """The week of ``now`` and the ``n - 1`` weeks before it, newest first."""
    if n < 1:
        raise ValueError(f"Need at least one week, got {n}")
    moment = ensure_utc(now)
    return [week_key(moment - timedelta(days=7 * i)) for i in range(n)]


@dataclass(frozen=True)
class PhaseWindows:
    """The six lifecycle timestamps of one challenge week, in UTC."""

    starts_at: datetime
    edit_deadline_at: datetime
    vote_deadline_at: datetime
    freeze_at: datetime
    reveal_at: datetime
    ends_at: datetime

    def as_dict(self) -> dict[str, datetime]:
        return {
            "starts_at": self.starts_at,
            "edit_deadline_at": self.edit_deadline_at,
            "vote_deadline_at": self.vote_deadline_at,
            "freeze_at": self.freeze_at,
            "reveal_at": self.reveal_at,
            "ends_at": self.ends_at,
        }

    def is_ordered(self) -> bool:
        stamps = list(self.as_dict().values())
        return all(a <= b for a, b in zip(stamps, stamps[1:]))


def windows_for(key: str, utc_offset_hours: int = 1) -> PhaseWindows:
    """Derive the phase timestamps for a week key.

    Monday 11:00 start, Friday 12:00 edit deadline, 14:00 vote deadline,
    15:00 freeze, 16:00 reveal, next Monday 11:00 end; all local civil time
    at a fixed ``utc_offset_hours`` east of UTC.
    """
    monday = datetime.combine(monday_of(key), time(0, 0), tzinfo=UTC)
    offset = timedelta(hours=utc_offset_hours)

    def at(slot: tuple[int, int]) -> datetime:
        day, hour = slot
        return monday + timedelta(days=day, hours=hour) - offset

    return PhaseWindows(
        starts_at=at(START_AT),
        edit_deadline_at=at(EDIT_DEADLINE_AT),
        vote_deadline_at=at(VOTE_DEADLINE_AT),
        freeze_at=at(FREEZE_AT),
        reveal_at=at(REVEAL_AT),
        ends_at=at(ENDS_AT),
    )
