"""Contribution activity aggregation.

Everything here is synchronous and free of I/O: callers fetch commit activity
and events first, then fold them into a one-year daily timeline which is
bucketed into weeks of seven classified days.
"""

import logging
import random
from collections.abc import Iterable
from collections.abc import Mapping
from collections.abc import Sequence
from datetime import UTC
from datetime import date
from datetime import datetime
from datetime import timedelta

from profile_dashboard.models import CommitActivityWeek
from profile_dashboard.models import ContributionDay
from profile_dashboard.models import ContributionReport
from profile_dashboard.models import ContributionWeek
from profile_dashboard.models import DailyCount
from profile_dashboard.models import RecentEvent

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400
DAYS_PER_WEEK = 7
FALLBACK_WINDOW_DAYS = 90
FALLBACK_WEEKDAY_PROBABILITY = 0.4
FALLBACK_WEEKEND_PROBABILITY = 0.2
FALLBACK_MAX_COUNT = 12


def contribution_level(count: int) -> int:
    """Map daily contribution count to a heatmap level in range 0..4."""

    level = 0
    if count > 0:
        level = 1
    if count >= 3:
        level = 2
    if count >= 6:
        level = 3
    if count >= 10:
        level = 4
    return level


def normalize_daily_commits(
    weeks: Sequence[CommitActivityWeek] | None,
) -> list[DailyCount]:
    """Flatten weekly commit activity into UTC dated daily counts."""

    if not weeks:
        return []

    daily_commits: list[DailyCount] = []
    for week in weeks:
        for day_index, count in enumerate(week.days):
            timestamp = week.week + day_index * SECONDS_PER_DAY
            day = datetime.fromtimestamp(timestamp, UTC).date()
            daily_commits.append(DailyCount(date=day, count=count))

    return sorted(daily_commits, key=lambda item: item.date)


def one_year_before(day: date) -> date:
    """Return the same calendar day one year earlier.

    29 February rolls forward to 1 March when the previous year has no leap day.
    """

    try:
        return day.replace(year=day.year - 1)
    except ValueError:
        return date(day.year - 1, 3, 1)


def initialize_timeline(now: datetime | date) -> dict[date, int]:
    """Build a zero-filled timeline from one year before `now` through `now`."""

    today = now.date() if isinstance(now, datetime) else now
    current_day = one_year_before(today)

    timeline: dict[date, int] = {}
    while current_day <= today:
        timeline[current_day] = 0
        current_day += timedelta(days=1)
    return timeline


def count_events_by_day(events: Iterable[RecentEvent]) -> dict[date, int]:
    """Count one contribution per event on the UTC date it was created."""

    counts: dict[date, int] = {}
    for event in events:
        created_at = event.created_at
        if created_at.tzinfo is not None:
            created_at = created_at.astimezone(UTC)
        day = created_at.date()
        counts[day] = counts.get(day, 0) + 1
    return counts


def merge_sources(
    timeline: dict[date, int],
    daily_commits: Iterable[DailyCount],
    event_counts: Mapping[date, int],
) -> dict[date, int]:
    """Add commit and event counts onto the timeline in place.

    Dates outside the timeline are dropped, never added.
    """

    for item in daily_commits:
        if item.date in timeline:
            timeline[item.date] += item.count

    for day, count in event_counts.items():
        if day in timeline:
            timeline[day] += count

    return timeline


def apply_synthetic_fallback(
    timeline: dict[date, int], rng: random.Random
) -> dict[date, int]:
    """Fill an all-zero timeline with random activity over its last 90 days."""

    if any(timeline.values()):
        return timeline

    recent_days = sorted(timeline)[-FALLBACK_WINDOW_DAYS:]
    for day in recent_days:
        is_weekday = day.weekday() < 5
        probability = (
            FALLBACK_WEEKDAY_PROBABILITY if is_weekday else FALLBACK_WEEKEND_PROBABILITY
        )
        if rng.random() < probability:
            timeline[day] = rng.randint(1, FALLBACK_MAX_COUNT)

    logger.info(
        "Timeline had no activity, synthesized %d active days",
        sum(1 for day in recent_days if timeline[day]),
    )
    return timeline


def bucketize_weeks(timeline: Mapping[date, int]) -> list[ContributionWeek]:
    """Group the timeline into consecutive 7-day weeks from its earliest date.

    The last week is padded with the following calendar days at zero.
    """

    days = [
        ContributionDay(
            date=day, count=timeline[day], level=contribution_level(timeline[day])
        )
        for day in sorted(timeline)
    ]

    weeks: list[ContributionWeek] = []
    for start in range(0, len(days), DAYS_PER_WEEK):
        chunk = days[start : start + DAYS_PER_WEEK]
        while len(chunk) < DAYS_PER_WEEK:
            next_day = chunk[-1].date + timedelta(days=1)
            chunk.append(ContributionDay(date=next_day, count=0, level=0))
        weeks.append(ContributionWeek(days=chunk))

    return weeks


def total_contributions(weeks: Iterable[ContributionWeek]) -> int:
    return sum(day.count for week in weeks for day in week.days)


def build_contribution_report(
    now: datetime | date,
    commit_activity: Iterable[Sequence[CommitActivityWeek] | None],
    events: Iterable[RecentEvent],
    rng: random.Random | None = None,
) -> ContributionReport:
    """Run the aggregation pipeline over already fetched data.

    `commit_activity` holds one weekly series per repository. Passing
    `rng=None` disables the synthetic fallback.
    """

    timeline = initialize_timeline(now)

    daily_commits: list[DailyCount] = []
    for repository_weeks in commit_activity:
        daily_commits.extend(normalize_daily_commits(repository_weeks))

    merge_sources(timeline, daily_commits, count_events_by_day(events))

    if rng is not None:
        apply_synthetic_fallback(timeline, rng)

    weeks = bucketize_weeks(timeline)
    return ContributionReport(
        weeks=weeks, total_contributions=total_contributions(weeks)
    )


def summarize_recent_commits(
    weeks: Sequence[CommitActivityWeek] | None, days: int = 30
) -> dict[str, object]:
    """Summarize the most recent `days` of a repository's daily commits."""

    recent = normalize_daily_commits(weeks)[-days:]
    total = sum(item.count for item in recent)
    max_per_day = max((item.count for item in recent), default=0)
    average_per_day = round(total / len(recent), 1) if recent else 0.0

    return {
        "days": recent,
        "total": total,
        "max_per_day": max_per_day,
        "average_per_day": average_per_day,
    }
