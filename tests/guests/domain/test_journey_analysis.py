"""Tests for the event-pattern, anomaly and bottleneck analysis functions."""

from datetime import UTC, datetime, timedelta

import pytest
from guests.journey.analysis import (
    AnomalyKind,
    EventPatternAnalysis,
    analyze_event_patterns,
    analyze_impact,
    analyze_timeline,
    engagement_score,
    has_stage_bottleneck,
    identify_anomalies,
    overall_score,
    time_gaps_ms,
)
from guests.journey.event import EventSource, EventType, FulfillmentEvent, Severity, SourceKind
from guests.journey.records import CompletedStageRecord
from guests.shared.stage import FulfillmentStage

START = datetime(2024, 5, 1, 8, 0, tzinfo=UTC)


def _event(event_type=EventType.PAGE_VIEW, impact=0, at=START, kind=SourceKind.SYSTEM):
    return FulfillmentEvent(
        journey_id="journey-1",
        guest_id="guest-1",
        type=event_type,
        stage=event_type.stage or FulfillmentStage.AWARENESS,
        impact=impact,
        source=EventSource(kind, "test"),
        timestamp=at,
    )


class TestEventPatterns:
    def test_no_events(self):
        assert analyze_event_patterns([], START) == EventPatternAnalysis()

    def test_type_and_stage_distribution(self):
        events = [
            _event(EventType.PAGE_VIEW),
            _event(EventType.PAGE_VIEW, at=START + timedelta(minutes=5)),
            _event(EventType.PRICE_CHECK, at=START + timedelta(minutes=9)),
        ]

        patterns = analyze_event_patterns(events, START + timedelta(hours=1))

        assert patterns.total_events == 3
        assert patterns.event_types == {"page_view": 2, "price_check": 1}
        assert patterns.stage_distribution == {"awareness": 2, "evaluation": 1}

    def test_impact_split(self):
        impact = analyze_impact([_event(impact=10), _event(impact=-15), _event(impact=0), _event(impact=5)])

        assert impact.positive == 15
        assert impact.negative == 15
        assert impact.neutral == 1
        assert impact.total == 0

    def test_timeline_gaps_follow_timestamp_order(self):
        events = [
            _event(at=START + timedelta(minutes=30)),
            _event(at=START),
            _event(at=START + timedelta(minutes=10)),
        ]

        assert time_gaps_ms(events) == [600000, 1200000]
        timeline = analyze_timeline(events)
        assert timeline.longest_gap_ms == 1200000
        assert timeline.shortest_gap_ms == 600000
        assert timeline.average_gap_ms == 900000

    def test_single_event_has_no_gaps(self):
        assert analyze_timeline([_event()]).longest_gap_ms == 0

    def test_engagement_score(self):
        events = [_event(kind=SourceKind.USER), _event(kind=SourceKind.SYSTEM)]
        # half user-initiated (25) plus 2 events over 7 days (2.86)
        assert engagement_score(events) == 27.86
        assert engagement_score([]) == 0

    def test_engagement_score_is_capped(self):
        events = [_event(kind=SourceKind.MOBILE_APP) for _ in range(100)]
        assert engagement_score(events) == 100

    def test_risk_indicators(self):
        complaints = [_event(EventType.COMPLAINT, impact=-10, at=START) for _ in range(3)]

        patterns = analyze_event_patterns(complaints, START + timedelta(days=3))

        assert patterns.risk_indicators == (
            "Multiple complaints",
            "High negative impact ratio",
            "No recent activity",
        )

    def test_recent_positive_activity_has_no_risk_indicators(self):
        patterns = analyze_event_patterns([_event(impact=10)], START + timedelta(hours=2))
        assert patterns.risk_indicators == ()


class TestAnomalies:
    def test_quiet_journey_has_no_anomalies(self):
        assert identify_anomalies([_event(), _event(at=START + timedelta(hours=1))]) == []

    @pytest.mark.parametrize("count,severity", [(11, Severity.MEDIUM), (21, Severity.HIGH)])
    def test_high_frequency(self, count, severity):
        events = [_event(at=START + timedelta(minutes=i)) for i in range(count)]

        (anomaly,) = identify_anomalies(events)

        assert anomaly.kind is AnomalyKind.HIGH_FREQUENCY
        assert anomaly.severity is severity
        assert len(anomaly.events) == count
        assert anomaly.description == f"Event type page_view occurred {count} times"

    def test_ten_of_a_kind_is_not_high_frequency(self):
        events = [_event(at=START + timedelta(minutes=i)) for i in range(10)]
        assert identify_anomalies(events) == []

    @pytest.mark.parametrize("count,severity", [(1, Severity.MEDIUM), (3, Severity.MEDIUM), (4, Severity.HIGH)])
    def test_negative_impact(self, count, severity):
        events = [_event(EventType.ERROR, impact=-11, at=START + timedelta(minutes=i)) for i in range(count)]

        (anomaly,) = identify_anomalies(events)

        assert anomaly.kind is AnomalyKind.NEGATIVE_IMPACT
        assert anomaly.severity is severity
        assert len(anomaly.events) == count

    def test_minus_ten_is_not_a_negative_anomaly(self):
        assert identify_anomalies([_event(EventType.ERROR, impact=-10)]) == []

    def test_long_silence(self):
        events = [_event(at=START), _event(at=START + timedelta(hours=25)), _event(at=START + timedelta(hours=26))]

        (anomaly,) = identify_anomalies(events)

        assert anomaly.kind is AnomalyKind.LONG_SILENCE
        assert anomaly.severity is Severity.MEDIUM
        assert anomaly.events == ()
        assert anomaly.description == "Found 1 periods of inactivity longer than 24 hours"


class TestBottleneckAndScore:
    def test_bottleneck_after_a_day(self):
        assert has_stage_bottleneck(START, START + timedelta(hours=24, minutes=1))
        assert not has_stage_bottleneck(START, START + timedelta(hours=24))

    def test_custom_threshold(self):
        assert has_stage_bottleneck(START, START + timedelta(minutes=31), threshold_minutes=30)

    def test_unknown_start_is_not_a_bottleneck(self):
        assert not has_stage_bottleneck(None, START)

    def test_overall_score_includes_current_stage(self):
        record = CompletedStageRecord.close(
            stage=FulfillmentStage.AWARENESS,
            start_time=START,
            end_time=START + timedelta(hours=1),
            events=[_event(impact=20)],
        )

        assert overall_score([record], []) == 60
        assert overall_score([], [_event(impact=-20)]) == 30
