"""Fulfillment stages and the forward-only transition rule between them."""

from enum import Enum

from protean.exceptions import ValidationError

from guests.shared.errors import InvalidTransitionError


class FulfillmentStage(Enum):
    """The five ordered stages of a guest's fulfillment journey."""

    AWARENESS = "awareness"
    EVALUATION = "evaluation"
    BOOKING = "booking"
    EXPERIENCING = "experiencing"
    FEEDBACK = "feedback"

    def __str__(self):
        return self.value

    @property
    def order(self) -> int:
        return _STAGE_ORDER.index(self)

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def is_final(self) -> bool:
        return self is FINAL_STAGE

    @classmethod
    def from_value(cls, value):
        """Accept a stage member or its string value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValidationError({"stage": [f"Invalid fulfillment stage: {value}"]}) from None


_STAGE_ORDER = [
    FulfillmentStage.AWARENESS,
    FulfillmentStage.EVALUATION,
    FulfillmentStage.BOOKING,
    FulfillmentStage.EXPERIENCING,
    FulfillmentStage.FEEDBACK,
]

_DISPLAY_NAMES = {
    FulfillmentStage.AWARENESS: "Awareness",
    FulfillmentStage.EVALUATION: "Evaluation",
    FulfillmentStage.BOOKING: "Booking",
    FulfillmentStage.EXPERIENCING: "Experiencing",
    FulfillmentStage.FEEDBACK: "Feedback",
}

INITIAL_STAGE = FulfillmentStage.AWARENESS
FINAL_STAGE = FulfillmentStage.FEEDBACK


def all_stages() -> list[FulfillmentStage]:
    return list(_STAGE_ORDER)


def next_stage(current: FulfillmentStage) -> FulfillmentStage:
    """Return the stage one position ahead of ``current``.

    Raises:
        InvalidTransitionError: if ``current`` is the final stage.
    """
    current = FulfillmentStage.from_value(current)
    if current.is_final:
        raise InvalidTransitionError(current, "<none>")
    return _STAGE_ORDER[current.order + 1]


def is_valid_transition(from_stage: FulfillmentStage, to_stage: FulfillmentStage) -> bool:
    """True only when ``to_stage`` is the immediate successor of ``from_stage``."""
    return to_stage.order == from_stage.order + 1
