"""Read-only analysis of the fulfillment events in a journey.

Pure functions over ``FulfillmentEvent`` sequences and stage records:
event-pattern breakdowns, anomaly detection, stage bottlenecks and the
journey summary. Nothing here mutates a guest.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from guests.journey.event import EventType, FulfillmentEvent, Severity
from guests.journey.records import stage_quality_score
from guests.shared.stage import FulfillmentStage

DAY_MS = 24 * 60 * 60 * 1000
OBSERVATION_DAYS = 7
BOTTLENECK_MINUTES = 24 * 60

# Anomaly thresholds
HIGH_FREQUENCY_COUNT = 10
HIGH_FREQUENCY_SEVERE_COUNT = 20
NEGATIVE_IMPACT_THRESHOLD = -10
NEGATIVE_IMPACT_SEVERE_COUNT = 3

# Risk indicator thresholds
COMPLAINT_LIMIT = 2
NEGATIVE_RATIO_IMPACT = -5
NEGATIVE_RATIO_LIMIT = 0.3


class AnomalyKind(Enum):
    HIGH_FREQUENCY = "high_frequency"
    NEGATIVE_IMPACT = "negative_impact"
    LONG_SILENCE = "long_silence"


@dataclass(frozen=True)
class ImpactAnalysis:
    """``positive`` and ``negative`` are summed magnitudes; ``neutral`` counts zero-impact events."""

    positive: float = 0
    negative: float = 0
    neutral: int = 0
    total: float = 0


@dataclass(frozen=True)
class TimelineAnalysis:
    average_gap_ms: float = 0
    longest_gap_ms: int = 0
    shortest_gap_ms: int = 0


@dataclass(frozen=True)
class EventPatternAnalysis:
    total_events: int = 0
    event_types: dict = field(default_factory=dict)
    stage_distribution: dict = field(default_factory=dict)
    impact: ImpactAnalysis = field(default_factory=ImpactAnalysis)
    timeline: TimelineAnalysis = field(default_factory=TimelineAnalysis)
    engagement_score: float = 0
    risk_indicators: tuple[str, ...] = ()


@dataclass(frozen=True)
class EventAnomaly:
    kind: AnomalyKind
    description: str
    severity: Severity
    events: tuple[FulfillmentEvent, ...] = ()


@dataclass(frozen=True)
class JourneySummary:
    journey_id: str
    guest_id: str
    current_stage: FulfillmentStage
    started_at: datetime | None
    total_stages: int
    completed_stages: int
    overall_score: float
    duration_minutes: int
    event_count: int
    has_bottleneck: bool


def _chronological(events) -> list[FulfillmentEvent]:
    return sorted(events, key=lambda event: event.timestamp)


def time_gaps_ms(events) -> list[int]:
    """Milliseconds between consecutive events, in timestamp order."""
    ordered = _chronological(events)
    return [
        int((later.timestamp - earlier.timestamp).total_seconds() * 1000)
        for earlier, later in zip(ordered, ordered[1:])
    ]


def analyze_impact(events) -> ImpactAnalysis:
    positive = negative = total = 0
    neutral = 0
    for event in events:
        if event.impact > 0:
            positive += event.impact
        elif event.impact < 0:
            negative += abs(event.impact)
        else:
            neutral += 1
        total += event.impact
    return ImpactAnalysis(positive=positive, negative=negative, neutral=neutral, total=total)


def analyze_timeline(events) -> TimelineAnalysis:
    gaps = time_gaps_ms(events)
    if not gaps:
        return TimelineAnalysis()
    return TimelineAnalysis(
        average_gap_ms=sum(gaps) / len(gaps),
        longest_gap_ms=max(gaps),
        shortest_gap_ms=min(gaps),
    )


def engagement_score(events) -> float:
    """Share of user-initiated events plus event frequency over a 7-day window, capped at 100."""
    if not events:
        return 0
    user_ratio = sum(1 for event in events if event.is_user_initiated) / len(events)
    frequency = len(events) / OBSERVATION_DAYS
    return round(min(100, user_ratio * 50 + frequency * 10), 2)


def risk_indicators(events, now: datetime) -> tuple[str, ...]:
    indicators = []
    if sum(1 for event in events if event.type is EventType.COMPLAINT) > COMPLAINT_LIMIT:
        indicators.append("Multiple complaints")

    negatives = sum(1 for event in events if event.impact < NEGATIVE_RATIO_IMPACT)
    if negatives > len(events) * NEGATIVE_RATIO_LIMIT:
        indicators.append("High negative impact ratio")

    if events and not any(now - event.timestamp < timedelta(days=1) for event in events):
        indicators.append("No recent activity")
    return tuple(indicators)


def analyze_event_patterns(events, now: datetime) -> EventPatternAnalysis:
    """Type and stage distribution, impact split, timeline gaps, engagement and risk indicators."""
    events = list(events)
    if not events:
        return EventPatternAnalysis()

    return EventPatternAnalysis(
        total_events=len(events),
        event_types=dict(Counter(event.type.value for event in events)),
        stage_distribution=dict(Counter(event.stage.value for event in events)),
        impact=analyze_impact(events),
        timeline=analyze_timeline(events),
        engagement_score=engagement_score(events),
        risk_indicators=risk_indicators(events, now),
    )


def identify_anomalies(events) -> list[EventAnomaly]:
    """High-frequency event types, strongly negative events and silences longer than a day."""
    events = _chronological(events)
    anomalies = []

    for event_type, count in Counter(event.type for event in events).items():
        if count > HIGH_FREQUENCY_COUNT:
            anomalies.append(
                EventAnomaly(
                    kind=AnomalyKind.HIGH_FREQUENCY,
                    description=f"Event type {event_type.value} occurred {count} times",
                    severity=Severity.HIGH if count > HIGH_FREQUENCY_SEVERE_COUNT else Severity.MEDIUM,
                    events=tuple(event for event in events if event.type is event_type),
                )
            )

    negatives = tuple(event for event in events if event.impact < NEGATIVE_IMPACT_THRESHOLD)
    if negatives:
        anomalies.append(
            EventAnomaly(
                kind=AnomalyKind.NEGATIVE_IMPACT,
                description=f"Found {len(negatives)} high negative impact events",
                severity=Severity.HIGH if len(negatives) > NEGATIVE_IMPACT_SEVERE_COUNT else Severity.MEDIUM,
                events=negatives,
            )
        )

    long_gaps = [gap for gap in time_gaps_ms(events) if gap > DAY_MS]
    if long_gaps:
        anomalies.append(
            EventAnomaly(
                kind=AnomalyKind.LONG_SILENCE,
                description=f"Found {len(long_gaps)} periods of inactivity longer than 24 hours",
                severity=Severity.MEDIUM,
            )
        )

    return anomalies


def minutes_between(start: datetime | None, end: datetime) -> int:
    if start is None:
        return 0
    return max(0, int((end - start).total_seconds() // 60))


def has_stage_bottleneck(stage_started_at: datetime | None, now: datetime, threshold_minutes: int = BOTTLENECK_MINUTES) -> bool:
    """True when the current stage has lasted longer than ``threshold_minutes``."""
    return minutes_between(stage_started_at, now) > threshold_minutes


def overall_score(completed_stages, current_events) -> float:
    """Mean quality of the journey's stages so far, the in-progress stage included."""
    scores = [record.quality_score for record in completed_stages]
    scores.append(stage_quality_score(current_events))
    return round(sum(scores) / len(scores), 2)
