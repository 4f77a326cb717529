"""Tests for Guest.advance_to_stage() and Guest.advance()."""

import json

import pytest
from guests.guest.events import StageAdvanced
from guests.guest.guest import Guest
from guests.journey.factory import EventFactory
from guests.shared.errors import InvalidTransitionError
from guests.shared.stage import FulfillmentStage, all_stages
from protean.exceptions import ValidationError


def _make_guest():
    guest = Guest.register(name="Zhang San", phone="13800138000")
    guest.mark_events_as_committed()
    return guest


class TestAdvanceToStage:
    def test_advance_to_immediate_successor(self):
        guest = _make_guest()

        guest.advance_to_stage(FulfillmentStage.EVALUATION)

        assert guest.stage is FulfillmentStage.EVALUATION
        assert guest.version == 1
        assert len(guest.completed_stages) == 1
        assert guest.completed_stages[0].stage is FulfillmentStage.AWARENESS

    def test_advance_accepts_stage_value(self):
        guest = _make_guest()
        guest.advance_to_stage("evaluation")
        assert guest.current_stage == "evaluation"

    def test_advance_raises_stage_advanced(self):
        guest = _make_guest()

        guest.advance_to_stage(FulfillmentStage.EVALUATION)

        assert len(guest._events) == 1
        event = guest._events[0]
        assert isinstance(event, StageAdvanced)
        assert event.previous_stage == "awareness"
        assert event.new_stage == "evaluation"
        assert event.quality_score == 50
        assert event.duration_ms >= 0
        assert event.guest_version == 1

    @pytest.mark.parametrize(
        "current_index,target",
        [
            (0, FulfillmentStage.BOOKING),
            (0, FulfillmentStage.AWARENESS),
            (0, FulfillmentStage.FEEDBACK),
            (2, FulfillmentStage.EVALUATION),
            (2, FulfillmentStage.BOOKING),
            (4, FulfillmentStage.AWARENESS),
            (4, FulfillmentStage.FEEDBACK),
        ],
    )
    def test_invalid_targets_leave_guest_unchanged(self, current_index, target):
        guest = _make_guest()
        for _ in range(current_index):
            guest.advance()
        guest.mark_events_as_committed()
        version_before = guest.version
        stage_before = guest.current_stage
        history_before = guest.stage_history

        with pytest.raises(InvalidTransitionError) as exc:
            guest.advance_to_stage(target)

        assert exc.value.to_stage is target
        assert guest.version == version_before
        assert guest.current_stage == stage_before
        assert guest.stage_history == history_before
        assert guest._events == []

    def test_invalid_transition_is_a_validation_error(self):
        guest = _make_guest()
        with pytest.raises(ValidationError) as exc:
            guest.advance_to_stage(FulfillmentStage.EXPERIENCING)
        assert "Cannot transition from awareness to experiencing" in str(exc.value)

    def test_unknown_stage_is_rejected(self):
        guest = _make_guest()
        with pytest.raises(ValidationError):
            guest.advance_to_stage("checkout")
        assert guest.version == 0


class TestAdvance:
    def test_advance_walks_every_stage(self):
        guest = _make_guest()

        visited = [guest.advance() for _ in range(4)]

        assert visited == all_stages()[1:]
        assert guest.version == 4
        assert [record.stage for record in guest.completed_stages] == all_stages()[:4]

    def test_cannot_advance_past_feedback(self):
        guest = _make_guest()
        for _ in range(4):
            guest.advance()

        with pytest.raises(InvalidTransitionError):
            guest.advance()
        assert guest.version == 4

    def test_closed_stage_carries_its_events_and_quality(self):
        guest = _make_guest()
        guest.advance()
        guest.record_event(
            EventFactory.inquiry(guest.journey_id, str(guest.id), FulfillmentStage.EVALUATION, "room", "high")
        )

        guest.advance()

        record = guest.completed_stages[-1]
        assert record.stage is FulfillmentStage.EVALUATION
        assert record.quality_score == 70
        assert [event.impact for event in record.events] == [20]
        assert guest.current_stage_events == []

    def test_stage_history_is_json(self):
        guest = _make_guest()
        guest.advance()
        assert json.loads(guest.stage_history)[0]["stage"] == "awareness"
