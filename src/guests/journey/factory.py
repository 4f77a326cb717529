"""Recipes for well-known fulfillment events.

Impact values here are business policy:

    payment success     +20
    inquiry             +10 (low/medium urgency), +20 (high)
    complaint           max(-20, -2 * severity)
    review              (rating - 3) * 5
    referral            +20
    timeout             -10
    page view             0
"""

from guests.journey.event import (
    EventSource,
    EventType,
    FulfillmentEvent,
    ImpactLevel,
    SourceKind,
)
from guests.shared.stage import FulfillmentStage

_INQUIRY_IMPACT = {
    "low": ImpactLevel.POSITIVE,
    "medium": ImpactLevel.POSITIVE,
    "high": ImpactLevel.VERY_POSITIVE,
}


def complaint_impact(severity: int) -> int:
    return max(ImpactLevel.VERY_NEGATIVE, -severity * 2)


def review_impact(rating: int) -> int:
    return (rating - 3) * 5


class EventFactory:
    @staticmethod
    def page_view(journey_id, guest_id, stage, url, duration_ms=None):
        return FulfillmentEvent(
            journey_id=journey_id,
            guest_id=guest_id,
            type=EventType.PAGE_VIEW,
            stage=stage,
            payload={"url": url, "duration_ms": duration_ms},
            impact=ImpactLevel.NEUTRAL,
            source=EventSource(SourceKind.WEB_APP, "web_client"),
        )

    @staticmethod
    def inquiry(journey_id, guest_id, stage, inquiry_type, urgency="medium"):
        if urgency not in _INQUIRY_IMPACT:
            raise ValueError(f"Unknown urgency: {urgency!r}")
        return FulfillmentEvent(
            journey_id=journey_id,
            guest_id=guest_id,
            type=EventType.INQUIRY_SUBMIT,
            stage=stage,
            payload={"service_type": inquiry_type, "value": urgency},
            impact=_INQUIRY_IMPACT[urgency],
            source=EventSource(SourceKind.USER, guest_id),
        )

    @staticmethod
    def payment_success(journey_id, guest_id, amount, payment_method):
        return FulfillmentEvent(
            journey_id=journey_id,
            guest_id=guest_id,
            type=EventType.PAYMENT_SUCCESS,
            stage=FulfillmentStage.BOOKING,
            payload={"price": amount, "value": payment_method},
            impact=ImpactLevel.VERY_POSITIVE,
            source=EventSource(SourceKind.USER, guest_id),
        )

    @staticmethod
    def complaint(journey_id, guest_id, stage, issue_type, severity=5):
        return FulfillmentEvent(
            journey_id=journey_id,
            guest_id=guest_id,
            type=EventType.COMPLAINT,
            stage=stage,
            payload={"issue_type": issue_type, "value": severity},
            impact=complaint_impact(severity),
            source=EventSource(SourceKind.USER, guest_id),
        )

    @staticmethod
    def review(journey_id, guest_id, rating, comment=None):
        return FulfillmentEvent(
            journey_id=journey_id,
            guest_id=guest_id,
            type=EventType.REVIEW_SUBMIT,
            stage=FulfillmentStage.FEEDBACK,
            payload={"rating": rating, "comment": comment},
            impact=review_impact(rating),
            source=EventSource(SourceKind.USER, guest_id),
        )

    @staticmethod
    def referral(journey_id, guest_id, referral_code=None):
        return FulfillmentEvent(
            journey_id=journey_id,
            guest_id=guest_id,
            type=EventType.REFERRAL,
            stage=FulfillmentStage.FEEDBACK,
            payload={"referral_code": referral_code},
            impact=ImpactLevel.VERY_POSITIVE,
            source=EventSource(SourceKind.USER, guest_id),
        )

    @staticmethod
    def timeout(journey_id, guest_id, stage, duration_ms):
        return FulfillmentEvent(
            journey_id=journey_id,
            guest_id=guest_id,
            type=EventType.TIMEOUT,
            stage=stage,
            payload={"duration_ms": duration_ms},
            impact=ImpactLevel.NEGATIVE,
            source=EventSource(SourceKind.SYSTEM, "timeout_monitor"),
        )
