"""Tests for the fulfillment stage order and transition rule."""

import itertools

import pytest
from guests.shared.errors import InvalidTransitionError
from guests.shared.stage import (
    FINAL_STAGE,
    INITIAL_STAGE,
    FulfillmentStage,
    all_stages,
    is_valid_transition,
    next_stage,
)
from protean.exceptions import ValidationError


class TestStageOrder:
    def test_stages_are_ordered(self):
        assert [stage.value for stage in all_stages()] == [
            "awareness",
            "evaluation",
            "booking",
            "experiencing",
            "feedback",
        ]
        assert [stage.order for stage in all_stages()] == [0, 1, 2, 3, 4]

    def test_initial_and_final_stages(self):
        assert INITIAL_STAGE is FulfillmentStage.AWARENESS
        assert FINAL_STAGE is FulfillmentStage.FEEDBACK
        assert FINAL_STAGE.is_final
        assert not INITIAL_STAGE.is_final

    def test_display_name(self):
        assert FulfillmentStage.EXPERIENCING.display_name == "Experiencing"

    def test_from_value_accepts_member_or_string(self):
        assert FulfillmentStage.from_value("booking") is FulfillmentStage.BOOKING
        assert FulfillmentStage.from_value(FulfillmentStage.BOOKING) is FulfillmentStage.BOOKING

    def test_from_value_rejects_unknown_stage(self):
        with pytest.raises(ValidationError) as exc:
            FulfillmentStage.from_value("checkout")
        assert "Invalid fulfillment stage" in str(exc.value)


class TestNextStage:
    def test_next_stage_walks_forward(self):
        assert next_stage(FulfillmentStage.AWARENESS) is FulfillmentStage.EVALUATION
        assert next_stage(FulfillmentStage.EXPERIENCING) is FulfillmentStage.FEEDBACK

    def test_no_stage_after_feedback(self):
        with pytest.raises(InvalidTransitionError):
            next_stage(FulfillmentStage.FEEDBACK)


class TestIsValidTransition:
    @pytest.mark.parametrize("from_stage,to_stage", itertools.product(list(FulfillmentStage), repeat=2))
    def test_only_immediate_successor_is_valid(self, from_stage, to_stage):
        expected = to_stage.order == from_stage.order + 1
        assert is_valid_transition(from_stage, to_stage) is expected

    def test_skip_ahead_is_invalid(self):
        assert not is_valid_transition(FulfillmentStage.AWARENESS, FulfillmentStage.BOOKING)

    def test_backward_is_invalid(self):
        assert not is_valid_transition(FulfillmentStage.FEEDBACK, FulfillmentStage.BOOKING)

    def test_self_loop_is_invalid(self):
        assert not is_valid_transition(FulfillmentStage.BOOKING, FulfillmentStage.BOOKING)
