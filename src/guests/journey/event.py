"""Fulfillment events observed along a guest's journey.

A ``FulfillmentEvent`` is an immutable record of something the guest did, or
something that happened to them, while in a stage. Each carries a signed
impact in [-100, 100] that feeds the quality score of the stage it was
observed in.
"""

import math
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Any
from uuid import uuid4

from protean.exceptions import ValidationError

from guests.shared.stage import FulfillmentStage

MIN_IMPACT = -100
MAX_IMPACT = 100


class EventType(Enum):
    # Awareness
    PAGE_VIEW = "page_view"
    AD_CLICK = "ad_click"
    SEARCH_QUERY = "search_query"
    SOCIAL_SHARE = "social_share"

    # Evaluation
    DETAILS_VIEW = "details_view"
    PHOTO_VIEW = "photo_view"
    PRICE_CHECK = "price_check"
    COMPARISON = "comparison"
    INQUIRY_SUBMIT = "inquiry_submit"
    LIVE_CHAT = "live_chat"
    PHONE_CALL = "phone_call"

    # Booking
    BOOKING_START = "booking_start"
    FORM_FILL = "form_fill"
    PAYMENT_ATTEMPT = "payment_attempt"
    PAYMENT_SUCCESS = "payment_success"
    PAYMENT_FAILED = "payment_failed"
    BOOKING_CONFIRMED = "booking_confirmed"

    # Experiencing
    CHECK_IN = "check_in"
    ROOM_ENTRY = "room_entry"
    SERVICE_REQUEST = "service_request"
    COMPLAINT = "complaint"
    COMPLIMENT = "compliment"
    FACILITY_USE = "facility_use"
    ADDITIONAL_PURCHASE = "additional_purchase"
    CHECK_OUT = "check_out"

    # Feedback
    REVIEW_SUBMIT = "review_submit"
    RATING_GIVEN = "rating_given"
    PHOTO_UPLOAD = "photo_upload"
    SOCIAL_POST = "social_post"
    REFERRAL = "referral"
    REPEAT_BOOKING = "repeat_booking"

    # System
    TIMEOUT = "timeout"
    ERROR = "error"
    REMINDER_SENT = "reminder_sent"
    NOTIFICATION_SENT = "notification_sent"

    @property
    def stage(self) -> FulfillmentStage | None:
        """The stage this kind of event belongs to, or None for system events."""
        return _EVENT_STAGES.get(self)

    @property
    def is_system(self) -> bool:
        return self.stage is None


_EVENT_STAGES = {
    **dict.fromkeys(
        [EventType.PAGE_VIEW, EventType.AD_CLICK, EventType.SEARCH_QUERY, EventType.SOCIAL_SHARE],
        FulfillmentStage.AWARENESS,
    ),
    **dict.fromkeys(
        [
            EventType.DETAILS_VIEW,
            EventType.PHOTO_VIEW,
            EventType.PRICE_CHECK,
            EventType.COMPARISON,
            EventType.INQUIRY_SUBMIT,
            EventType.LIVE_CHAT,
            EventType.PHONE_CALL,
        ],
        FulfillmentStage.EVALUATION,
    ),
    **dict.fromkeys(
        [
            EventType.BOOKING_START,
            EventType.FORM_FILL,
            EventType.PAYMENT_ATTEMPT,
            EventType.PAYMENT_SUCCESS,
            EventType.PAYMENT_FAILED,
            EventType.BOOKING_CONFIRMED,
        ],
        FulfillmentStage.BOOKING,
    ),
    **dict.fromkeys(
        [
            EventType.CHECK_IN,
            EventType.ROOM_ENTRY,
            EventType.SERVICE_REQUEST,
            EventType.COMPLAINT,
            EventType.COMPLIMENT,
            EventType.FACILITY_USE,
            EventType.ADDITIONAL_PURCHASE,
            EventType.CHECK_OUT,
        ],
        FulfillmentStage.EXPERIENCING,
    ),
    **dict.fromkeys(
        [
            EventType.REVIEW_SUBMIT,
            EventType.RATING_GIVEN,
            EventType.PHOTO_UPLOAD,
            EventType.SOCIAL_POST,
            EventType.REFERRAL,
            EventType.REPEAT_BOOKING,
        ],
        FulfillmentStage.FEEDBACK,
    ),
}

_DESCRIPTIONS = {
    EventType.PAGE_VIEW: "Viewed a page",
    EventType.INQUIRY_SUBMIT: "Submitted an inquiry",
    EventType.BOOKING_START: "Started a booking",
    EventType.PAYMENT_SUCCESS: "Payment succeeded",
    EventType.CHECK_IN: "Checked in",
    EventType.COMPLAINT: "Filed a complaint",
    EventType.REVIEW_SUBMIT: "Submitted a review",
    EventType.REFERRAL: "Referred a friend",
}


class ImpactLevel(IntEnum):
    VERY_NEGATIVE = -20
    NEGATIVE = -10
    NEUTRAL = 0
    POSITIVE = 10
    VERY_POSITIVE = 20


class Severity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SourceKind(Enum):
    USER = "user"
    SYSTEM = "system"
    STAFF = "staff"
    MOBILE_APP = "mobile_app"
    WEB_APP = "web_app"
    API = "api"
    THIRD_PARTY = "third_party"


_USER_INITIATED = {SourceKind.USER, SourceKind.MOBILE_APP}


@dataclass(frozen=True)
class EventSource:
    """Who or what produced an event."""

    kind: SourceKind = SourceKind.SYSTEM
    identifier: str = "unknown"
    version: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "kind", _coerce(SourceKind, self.kind, "source"))

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "identifier": self.identifier, "version": self.version}

    @classmethod
    def from_dict(cls, data: dict) -> "EventSource":
        return cls(kind=data.get("kind", "system"), identifier=data.get("identifier", "unknown"), version=data.get("version"))


@dataclass(frozen=True)
class EventMetadata:
    """Client context captured alongside an event."""

    user_agent: str = ""
    ip_address: str = ""
    session_id: str = ""
    device_type: str = "unknown"
    location: dict | None = None
    referrer: str | None = None
    campaign: dict | None = None

    def __post_init__(self):
        for name in ("location", "campaign"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, _json_value(dict(value), name))

    def to_dict(self) -> dict:
        return {
            "user_agent": self.user_agent,
            "ip_address": self.ip_address,
            "session_id": self.session_id,
            "device_type": self.device_type,
            "location": dict(self.location) if self.location is not None else None,
            "referrer": self.referrer,
            "campaign": dict(self.campaign) if self.campaign is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EventMetadata":
        return cls(**{key: data[key] for key in cls.__dataclass_fields__ if key in data})


def clamp_impact(impact: float) -> float:
    if not math.isfinite(impact):
        raise ValidationError({"impact": [f"Impact must be finite, got {impact!r}"]})
    clamped = max(MIN_IMPACT, min(MAX_IMPACT, impact))
    return int(clamped) if isinstance(clamped, int) else float(clamped)


def _new_event_id() -> str:
    return f"event_{int(time.time() * 1000)}_{uuid4().hex[:9]}"


def _now() -> datetime:
    return datetime.now(UTC)


def _coerce(enum_cls, value, field_name):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError({field_name: [f"Invalid {field_name}: {value!r}"]}) from None


def _json_value(value, key):
    """Payload values are stored as JSON: dates become ISO strings, anything else unencodable is rejected."""
    if value is None or isinstance(value, str | bool | int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValidationError({"payload": [f"{key!r} must be a finite number"]})
        return value
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, Enum):
        return _json_value(value.value, key)
    if isinstance(value, Mapping):
        return {str(k): _json_value(v, key) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_json_value(item, key) for item in value]
    raise ValidationError({"payload": [f"{key!r} holds a {type(value).__name__}, which cannot be stored"]})


@dataclass(frozen=True)
class FulfillmentEvent:
    """Immutable record of one thing that happened during a journey.

    ``impact`` is clamped to [-100, 100] at construction and never changes
    afterwards. ``payload`` is free-form keyed data (url, price, rating,
    issue_type, ...) and is exposed read-only.
    """

    journey_id: str
    guest_id: str
    type: EventType
    stage: FulfillmentStage
    payload: Any = field(default_factory=dict)
    impact: float = 0
    source: EventSource = field(default_factory=EventSource)
    metadata: EventMetadata = field(default_factory=EventMetadata)
    id: str = field(default_factory=_new_event_id)
    timestamp: datetime = field(default_factory=_now)

    def __post_init__(self):
        if not self.journey_id:
            raise ValidationError({"journey_id": ["is required"]})
        if not self.guest_id:
            raise ValidationError({"guest_id": ["is required"]})
        if isinstance(self.impact, bool) or not isinstance(self.impact, int | float):
            raise ValidationError({"impact": [f"Impact must be a number, got {self.impact!r}"]})

        object.__setattr__(self, "type", _coerce(EventType, self.type, "type"))
        object.__setattr__(self, "stage", _coerce(FulfillmentStage, self.stage, "stage"))
        object.__setattr__(self, "impact", clamp_impact(self.impact))
        payload = {key: _json_value(value, key) for key, value in (self.payload or {}).items() if value is not None}
        object.__setattr__(self, "payload", MappingProxyType(payload))
        if isinstance(self.source, dict):
            object.__setattr__(self, "source", EventSource.from_dict(self.source))
        if isinstance(self.metadata, dict):
            object.__setattr__(self, "metadata", EventMetadata.from_dict(self.metadata))

    @property
    def is_positive_impact(self) -> bool:
        return self.impact > 0

    @property
    def is_negative_impact(self) -> bool:
        return self.impact < 0

    @property
    def severity(self) -> Severity:
        magnitude = abs(self.impact)
        if magnitude >= 20:
            return Severity.CRITICAL
        if magnitude >= 15:
            return Severity.HIGH
        if magnitude >= 5:
            return Severity.MEDIUM
        return Severity.LOW

    @property
    def is_user_initiated(self) -> bool:
        return self.source.kind in _USER_INITIATED

    @property
    def is_system_generated(self) -> bool:
        return self.source.kind is SourceKind.SYSTEM

    @property
    def duration_ms(self) -> int | None:
        return self.payload.get("duration_ms")

    @property
    def description(self) -> str:
        return _DESCRIPTIONS.get(self.type, self.type.value)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "journey_id": self.journey_id,
            "guest_id": self.guest_id,
            "type": self.type.value,
            "stage": self.stage.value,
            "timestamp": self.timestamp.isoformat(),
            "payload": dict(self.payload),
            "impact": self.impact,
            "source": self.source.to_dict(),
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FulfillmentEvent":
        """Rebuild a stored event, keeping its original id and timestamp."""
        timestamp = data.get("timestamp")
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp)
        return cls(
            id=data["id"],
            journey_id=data["journey_id"],
            guest_id=data["guest_id"],
            type=data["type"],
            stage=data["stage"],
            timestamp=timestamp or _now(),
            payload=data.get("payload") or {},
            impact=data.get("impact", 0),
            source=EventSource.from_dict(data.get("source") or {}),
            metadata=EventMetadata.from_dict(data.get("metadata") or {}),
        )
