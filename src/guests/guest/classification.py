"""Risk and value-segment classification derived from business metrics."""

from datetime import UTC, datetime
from enum import Enum


class RiskLevel(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ValueSegment(Enum):
    BUDGET = "budget"
    MID_RANGE = "mid-range"
    LUXURY = "luxury"


class CommunicationChannel(Enum):
    PHONE = "phone"
    WECHAT = "wechat"
    EMAIL = "email"


LOW_RATING_THRESHOLD = 3.0
STALLED_STAGE_DAYS = 30
INACTIVE_DAYS = 365

MID_RANGE_SPEND = 800.0
LUXURY_SPEND = 2000.0


def as_aware(moment: datetime | None) -> datetime | None:
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


def days_between(start: datetime | None, end: datetime) -> int:
    if start is None:
        return 0
    return max(0, (as_aware(end) - as_aware(start)).days)


def risk_signals(metrics, stage_started_at: datetime | None, now: datetime) -> list[str]:
    """Names of the risk indicators a guest currently shows.

    A rating only counts once the guest has rated a stay, and inactivity only
    once they have visited at least once.
    """
    signals = []
    if metrics.rating_count and metrics.average_rating < LOW_RATING_THRESHOLD:
        signals.append("low_rating")
    if days_between(stage_started_at, now) > STALLED_STAGE_DAYS:
        signals.append("stalled_stage")
    if metrics.last_visit_date is not None and days_between(metrics.last_visit_date, now) > INACTIVE_DAYS:
        signals.append("inactive")
    return signals


def assess_risk(metrics, stage_started_at: datetime | None, now: datetime) -> RiskLevel:
    signals = risk_signals(metrics, stage_started_at, now)
    if len(signals) >= 2:
        return RiskLevel.HIGH
    if signals:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def value_segment_for(metrics) -> ValueSegment:
    """Segment by average spend per booking."""
    if not metrics.total_bookings:
        return ValueSegment.BUDGET

    average_spend = metrics.lifetime_value / metrics.total_bookings
    if average_spend >= LUXURY_SPEND:
        return ValueSegment.LUXURY
    if average_spend >= MID_RANGE_SPEND:
        return ValueSegment.MID_RANGE
    return ValueSegment.BUDGET
