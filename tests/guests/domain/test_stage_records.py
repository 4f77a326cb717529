"""Tests for completed stage records and stage quality."""

from datetime import UTC, datetime, timedelta

from guests.journey.event import EventType, FulfillmentEvent
from guests.journey.records import CompletedStageRecord, stage_quality_score
from guests.shared.stage import FulfillmentStage


def _event(impact):
    return FulfillmentEvent(
        journey_id="journey-1",
        guest_id="guest-1",
        type=EventType.COMPLAINT,
        stage=FulfillmentStage.EXPERIENCING,
        impact=impact,
    )


class TestStageQualityScore:
    def test_baseline_without_events(self):
        assert stage_quality_score([]) == 50

    def test_impacts_move_the_baseline(self):
        assert stage_quality_score([_event(20), _event(-5)]) == 65

    def test_score_is_clamped(self):
        assert stage_quality_score([_event(100)]) == 100
        assert stage_quality_score([_event(-100)]) == 0


class TestCompletedStageRecord:
    def test_close_computes_duration_and_quality(self):
        start = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
        end = start + timedelta(seconds=90)

        record = CompletedStageRecord.close(FulfillmentStage.EXPERIENCING, start, end, [_event(-10)])

        assert record.duration_ms == 90000
        assert record.quality_score == 40
        assert len(record.events) == 1

    def test_round_trip_through_dict(self):
        start = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
        record = CompletedStageRecord.close(FulfillmentStage.BOOKING, start, start + timedelta(hours=1), [_event(5)])

        assert CompletedStageRecord.from_dict(record.to_dict()) == record
