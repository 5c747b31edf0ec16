"""Billing statistics and monthly target projections.

All amounts are half-currency-units. The order of the steps matters: billing
is summed from each entry's own hours and minutes, while the worked-hours
figure uses the totals after minute overflow has been folded into hours.
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass

from billable_hours.core.models import Settings, TimeEntry
from billable_hours.core.money import Money


@dataclass(frozen=True)
class Stats:
    """Aggregates derived from the entries and settings."""

    total_hours: int
    total_minutes: int
    total_billed: float
    target_hours: int
    target_minutes: int
    hours_left_at_target: int
    minutes_left_at_target: int
    avg_rate: float
    hours_left_at_avg: int
    minutes_left_at_avg: int
    progress_percent: float

    @property
    def billed(self) -> Money:
        return Money(self.total_billed)

    @property
    def average_rate(self) -> Money:
        return Money(self.avg_rate)

    @property
    def target_reached(self) -> bool:
        return self.progress_percent >= 100


def split_hours(hours: float) -> tuple[int, int]:
    """Split fractional hours into whole hours and rounded minutes.

    Minutes round half up. A residual that rounds up to 60 minutes is carried
    into the hours.
    """
    whole = math.floor(hours)
    minutes = math.floor((hours - whole) * 60 + 0.5)
    if minutes == 60:
        whole, minutes = whole + 1, 0
    return whole, minutes


def calculate_stats(entries: Iterable[TimeEntry], settings: Settings) -> Stats:
    """Compute totals and target projections.

    Args:
        entries: Entries to aggregate (order does not matter)
        settings: Monthly target and target rate

    Returns:
        Stats for the given inputs
    """
    total_hours = 0
    total_minutes = 0
    total_billed = 0.0

    for entry in entries:
        total_hours += entry.hours
        total_minutes += entry.minutes
        total_billed += (entry.hours + entry.minutes / 60) * entry.rate

    total_hours += total_minutes // 60
    total_minutes = total_minutes % 60

    target_amount = settings.monthly_target_amount
    target_rate = settings.target_rate

    target_hours = target_amount / target_rate if target_rate > 0 else 0.0
    target_whole, target_minutes = split_hours(target_hours)

    worked_hours = total_hours + total_minutes / 60
    left_at_target = max(0.0, target_hours - worked_hours)
    left_at_target_whole, left_at_target_minutes = split_hours(left_at_target)

    avg_rate = total_billed / worked_hours if worked_hours > 0 else 0.0

    left_at_avg = max(0.0, (target_amount - total_billed) / avg_rate) if avg_rate > 0 else 0.0
    left_at_avg_whole, left_at_avg_minutes = split_hours(left_at_avg)

    if target_amount > 0:
        progress_percent = min(100.0, total_billed / target_amount * 100)
    else:
        progress_percent = 0.0

    return Stats(
        total_hours=total_hours,
        total_minutes=total_minutes,
        total_billed=total_billed,
        target_hours=target_whole,
        target_minutes=target_minutes,
        hours_left_at_target=left_at_target_whole,
        minutes_left_at_target=left_at_target_minutes,
        avg_rate=avg_rate,
        hours_left_at_avg=left_at_avg_whole,
        minutes_left_at_avg=left_at_avg_minutes,
        progress_percent=progress_percent,
    )
