"""Tests for the Guest journey-analysis queries."""

from datetime import UTC, datetime, timedelta

from guests.guest.guest import Guest
from guests.journey.analysis import AnomalyKind
from guests.journey.event import EventType, FulfillmentEvent
from guests.journey.factory import EventFactory
from guests.shared.stage import FulfillmentStage


def _make_guest():
    guest = Guest.register(name="Zhang San", phone="13800138000")
    guest.mark_events_as_committed()
    return guest


def _browsed_and_inquired():
    guest = _make_guest()
    guest.record_event(EventFactory.page_view(guest.journey_id, str(guest.id), FulfillmentStage.AWARENESS, "/rooms"))
    guest.advance()
    guest.record_event(
        EventFactory.inquiry(guest.journey_id, str(guest.id), FulfillmentStage.EVALUATION, "suite", "high")
    )
    return guest


class TestJourneyEvents:
    def test_events_span_closed_and_current_stages(self):
        guest = _browsed_and_inquired()

        assert [event.type for event in guest.journey_events] == [EventType.PAGE_VIEW, EventType.INQUIRY_SUBMIT]

    def test_completed_journey_starts_with_no_events(self):
        guest = _browsed_and_inquired()
        for _ in range(3):
            guest.advance()
        guest.complete_journey(90)

        assert guest.journey_events == []


class TestGuestAnalysis:
    def test_event_patterns(self):
        patterns = _browsed_and_inquired().analyze_event_patterns()

        assert patterns.total_events == 2
        assert patterns.stage_distribution == {"awareness": 1, "evaluation": 1}
        assert patterns.impact.positive == 20
        assert patterns.risk_indicators == ()

    def test_anomalies_from_repeated_timeouts(self):
        guest = _make_guest()
        for _ in range(4):
            guest.record_event(EventFactory.timeout(guest.journey_id, str(guest.id), FulfillmentStage.AWARENESS, 600000))

        assert [anomaly.kind for anomaly in guest.identify_anomalies()] == []

        guest.record_event(
            FulfillmentEvent(
                journey_id=guest.journey_id,
                guest_id=str(guest.id),
                type=EventType.ERROR,
                stage=FulfillmentStage.AWARENESS,
                impact=-30,
            )
        )

        assert [anomaly.kind for anomaly in guest.identify_anomalies()] == [AnomalyKind.NEGATIVE_IMPACT]

    def test_fresh_stage_is_not_a_bottleneck(self):
        assert not _make_guest().has_stage_bottleneck()

    def test_stale_stage_is_a_bottleneck(self):
        guest = _make_guest()
        guest.stage_started_at = datetime.now(UTC) - timedelta(days=2)

        assert guest.has_stage_bottleneck()
        assert not guest.has_stage_bottleneck(threshold_minutes=3 * 24 * 60)


class TestJourneySummary:
    def test_summary(self):
        guest = _browsed_and_inquired()

        summary = guest.journey_summary()

        assert summary.journey_id == guest.journey_id
        assert summary.guest_id == str(guest.id)
        assert summary.current_stage is FulfillmentStage.EVALUATION
        assert summary.total_stages == 5
        assert summary.completed_stages == 1
        assert summary.event_count == 2
        # awareness closed at 50, evaluation in progress at 70
        assert summary.overall_score == 60
        assert summary.duration_minutes == 0
        assert summary.has_bottleneck is False

    def test_summary_does_not_change_the_guest(self):
        guest = _browsed_and_inquired()
        version = guest.version

        guest.journey_summary()
        guest.analyze_event_patterns()
        guest.identify_anomalies()

        assert guest.version == version
        assert guest.get_uncommitted_events()[-1].__class__.__name__ == "FulfillmentEventRecorded"
