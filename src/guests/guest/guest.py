"""Guest aggregate, the consistency boundary for a guest's fulfillment journey.

State Machine:
    AWARENESS → EVALUATION → BOOKING → EXPERIENCING → FEEDBACK
    FEEDBACK --complete_journey--> AWARENESS (next journey)

Every successful mutating call moves ``version`` by exactly one and raises at
least one domain event. Checks run before any field is written, so a failed
call leaves the guest untouched.

Stage history and the events buffered in the current stage are kept as JSON
text, the same way other aggregates in this codebase carry nested lists.
"""

import json
import re
from datetime import UTC, datetime
from uuid import uuid4

from protean import invariant
from protean.core.aggregate import BaseAggregate
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, List, String, Text, ValueObject

from guests.domain import guests
from guests.guest.classification import (
    CommunicationChannel,
    RiskLevel,
    ValueSegment,
    as_aware,
    assess_risk,
    days_between,
    risk_signals,
    value_segment_for,
)
from guests.guest.events import (
    BehaviorPatternAdded,
    BusinessMetricsUpdated,
    FulfillmentEventRecorded,
    GuestRegistered,
    JourneyCompleted,
    LoyaltyUpgraded,
    PreferencesUpdated,
    RiskLevelChanged,
    StageAdvanced,
)
from guests.journey import analysis
from guests.journey.event import FulfillmentEvent
from guests.journey.records import CompletedStageRecord, stage_quality_score
from guests.shared.aggregate_root import AggregateRoot
from guests.shared.email import EmailAddress
from guests.shared.errors import InvalidTransitionError, JourneyNotReadyError
from guests.shared.loyalty import LoyaltyLevel, LoyaltyMetrics, calculate_score, level_for_score
from guests.shared.stage import (
    FINAL_STAGE,
    INITIAL_STAGE,
    FulfillmentStage,
    all_stages,
    is_valid_transition,
    next_stage,
)

_METRIC_FIELDS = (
    "lifetime_value",
    "total_bookings",
    "total_nights",
    "average_rating",
    "rating_count",
    "referral_count",
    "last_visit_date",
)

_PREFERENCE_FIELDS = (
    "room_types",
    "price_min",
    "price_max",
    "special_requests",
    "communication_preference",
)

_PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]+$")


def _now() -> datetime:
    return datetime.now(UTC)


def _iso(moment: datetime | None) -> str | None:
    return moment.isoformat() if moment is not None else None


def _parse(value) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@guests.value_object(part_of="Guest")
class PersonalInfo:
    """Who the guest is.

    Name and a well-formed phone are checked by ``validate_personal_info``
    at registration and on every repository write, not when the value is
    built, so stored guests always rehydrate.
    """

    name: String(max_length=100)
    phone: String(max_length=20)
    email: ValueObject(EmailAddress)
    id_card: String(max_length=50)
    avatar: String(max_length=500)


@guests.value_object(part_of="Guest")
class BusinessMetrics:
    lifetime_value: Float(default=0.0, min_value=0.0)
    total_bookings: Integer(default=0, min_value=0)
    total_nights: Integer(default=0, min_value=0)
    average_rating: Float(default=0.0, min_value=0.0, max_value=5.0)
    rating_count: Integer(default=0, min_value=0)
    referral_count: Integer(default=0, min_value=0)
    last_visit_date: DateTime()


@guests.value_object(part_of="Guest")
class GuestPreferences:
    room_types: List(content_type=String, default=list)
    price_min: Float(default=0.0, min_value=0.0)
    price_max: Float(default=10000.0, min_value=0.0)
    special_requests: List(content_type=String, default=list)
    communication_preference: String(
        max_length=20,
        choices=CommunicationChannel,
        default=CommunicationChannel.PHONE.value,
    )

    @invariant.post
    def price_range_is_ordered(self):
        if self.price_min is not None and self.price_max is not None and self.price_min > self.price_max:
            raise ValidationError({"price_range": ["Minimum price cannot exceed maximum price"]})


@guests.value_object(part_of="Guest")
class GuestTags:
    loyalty_level: String(max_length=20, choices=LoyaltyLevel, default=LoyaltyLevel.BRONZE.value)
    risk_level: String(max_length=20, choices=RiskLevel, default=RiskLevel.LOW.value)
    value_segment: String(max_length=20, choices=ValueSegment, default=ValueSegment.BUDGET.value)
    behavior_patterns: List(content_type=String, default=list)


def validate_personal_info(info) -> None:
    """Raise ValidationError unless the guest has a name and a well-formed phone."""
    errors = {}
    if info is None:
        raise ValidationError({"personal_info": ["Personal information is required"]})
    if not (info.name or "").strip():
        errors["name"] = ["Name is required"]
    if not (info.phone or "").strip():
        errors["phone"] = ["Phone is required"]
    elif not _PHONE_PATTERN.match(info.phone):
        errors["phone"] = [f"Invalid phone number: {info.phone!r}"]
    if errors:
        raise ValidationError(errors)


def _metric_values(metrics) -> dict:
    return {name: getattr(metrics, name) for name in _METRIC_FIELDS}


def _preference_values(preferences) -> dict:
    values = {name: getattr(preferences, name) for name in _PREFERENCE_FIELDS}
    values["room_types"] = list(values["room_types"] or [])
    values["special_requests"] = list(values["special_requests"] or [])
    return values


def _personal_info_from(stored: dict) -> PersonalInfo:
    email = stored.get("email")
    return PersonalInfo(
        name=stored.get("name"),
        phone=stored.get("phone"),
        email=EmailAddress(address=email) if email else None,
        id_card=stored.get("id_card"),
        avatar=stored.get("avatar"),
    )


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@guests.aggregate
class Guest(AggregateRoot, BaseAggregate):
    personal_info: ValueObject(PersonalInfo, required=True)
    journey_id: String(required=True, max_length=64)
    current_stage: String(
        max_length=20,
        choices=FulfillmentStage,
        default=INITIAL_STAGE.value,
    )
    stage_started_at: DateTime()
    journey_started_at: DateTime()
    stage_history: Text(default="[]")  # JSON list of completed stage records, current journey only
    stage_events: Text(default="[]")  # JSON list of events observed in the current stage
    journey_count: Integer(default=0, min_value=0)
    total_journey_time: Integer(default=0, min_value=0)  # days across completed journeys
    business_metrics: ValueObject(BusinessMetrics)
    preferences: ValueObject(GuestPreferences)
    tags: ValueObject(GuestTags)
    version: Integer(default=0)
    persisted_version: Integer()
    is_deleted: Boolean(default=False)
    created_at: DateTime()
    updated_at: DateTime()

    # -------------------------------------------------------------------
    # Factory methods
    # -------------------------------------------------------------------
    @classmethod
    def register(
        cls,
        name: str,
        phone: str,
        email: str | None = None,
        id_card: str | None = None,
        avatar: str | None = None,
        preferences: dict | None = None,
        guest_id: str | None = None,
    ):
        """Create a guest at the start of their first journey."""
        info = PersonalInfo(
            name=name,
            phone=phone,
            email=EmailAddress(address=email) if email else None,
            id_card=id_card,
            avatar=avatar,
        )
        validate_personal_info(info)
        guest_preferences = GuestPreferences(**(preferences or {}))

        now = _now()
        identity = {"id": guest_id} if guest_id else {}
        guest = cls(
            personal_info=info,
            journey_id=str(uuid4()),
            current_stage=INITIAL_STAGE.value,
            stage_started_at=now,
            journey_started_at=now,
            business_metrics=BusinessMetrics(),
            preferences=guest_preferences,
            tags=GuestTags(),
            version=0,
            created_at=now,
            updated_at=now,
            **identity,
        )
        guest.raise_(
            GuestRegistered(
                guest_id=str(guest.id),
                journey_id=guest.journey_id,
                name=name,
                phone=phone,
                email=email,
                guest_version=guest.version,
                registered_at=now,
            )
        )
        return guest

    @classmethod
    def from_document(cls, document: dict):
        """Rehydrate a guest from its persisted document.

        Restores the stored state as-is: stage history is not replayed and
        personal info is not re-validated. The restored version becomes the
        base version used for optimistic concurrency on the next save.
        """
        history = document["fulfillment_history"]
        metrics = document["business_metrics"]
        preferences = document["preferences"]
        tags = document["tags"]
        price_min, price_max = preferences.get("price_range") or (0.0, 10000.0)

        return cls(
            id=document["id"],
            personal_info=_personal_info_from(document["personal_info"]),
            journey_id=history["journey_id"],
            current_stage=FulfillmentStage(history["current_stage"]).value,
            stage_started_at=_parse(history.get("stage_started_at")),
            journey_started_at=_parse(history.get("journey_started_at")),
            stage_history=json.dumps(history.get("completed_stages", [])),
            stage_events=json.dumps(history.get("current_stage_events", [])),
            journey_count=history.get("journey_count", 0),
            total_journey_time=history.get("total_journey_time", 0),
            business_metrics=BusinessMetrics(
                lifetime_value=metrics.get("lifetime_value", 0.0),
                total_bookings=metrics.get("total_bookings", 0),
                total_nights=metrics.get("total_nights", 0),
                average_rating=metrics.get("average_rating", 0.0),
                rating_count=metrics.get("rating_count", 0),
                referral_count=metrics.get("referral_count", 0),
                last_visit_date=_parse(metrics.get("last_visit_date")),
            ),
            preferences=GuestPreferences(
                room_types=list(preferences.get("room_types", [])),
                price_min=price_min,
                price_max=price_max,
                special_requests=list(preferences.get("special_requests", [])),
                communication_preference=preferences.get("communication_preference", CommunicationChannel.PHONE.value),
            ),
            tags=GuestTags(
                loyalty_level=tags.get("loyalty_level", LoyaltyLevel.BRONZE.value),
                risk_level=tags.get("risk_level", RiskLevel.LOW.value),
                value_segment=tags.get("value_segment", ValueSegment.BUDGET.value),
                behavior_patterns=list(tags.get("behavior_patterns", [])),
            ),
            version=document["version"],
            persisted_version=document["version"],
            is_deleted=document.get("is_deleted", False),
            created_at=_parse(document.get("created_at")),
            updated_at=_parse(document.get("updated_at")),
        )

    def to_document(self) -> dict:
        """Persisted document shape. JSON-serializable."""
        info = self.personal_info
        metrics = self.business_metrics
        preferences = self.preferences
        tags = self.tags
        return {
            "id": str(self.id),
            "personal_info": {
                "name": info.name,
                "phone": info.phone,
                "email": info.email.address if info.email else None,
                "id_card": info.id_card,
                "avatar": info.avatar,
            },
            "fulfillment_history": {
                "journey_id": self.journey_id,
                "current_stage": self.current_stage,
                "stage_started_at": _iso(self.stage_started_at),
                "journey_started_at": _iso(self.journey_started_at),
                "completed_stages": json.loads(self.stage_history or "[]"),
                "current_stage_events": json.loads(self.stage_events or "[]"),
                "journey_count": self.journey_count,
                "total_journey_time": self.total_journey_time,
            },
            "business_metrics": {
                "lifetime_value": metrics.lifetime_value,
                "total_bookings": metrics.total_bookings,
                "total_nights": metrics.total_nights,
                "average_rating": metrics.average_rating,
                "rating_count": metrics.rating_count,
                "referral_count": metrics.referral_count,
                "last_visit_date": _iso(metrics.last_visit_date),
            },
            "preferences": {
                "room_types": list(preferences.room_types or []),
                "price_range": [preferences.price_min, preferences.price_max],
                "special_requests": list(preferences.special_requests or []),
                "communication_preference": preferences.communication_preference,
            },
            "tags": {
                "loyalty_level": tags.loyalty_level,
                "risk_level": tags.risk_level,
                "value_segment": tags.value_segment,
                "behavior_patterns": list(tags.behavior_patterns or []),
            },
            "version": self.version,
            "is_deleted": bool(self.is_deleted),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    # -------------------------------------------------------------------
    # Read model
    # -------------------------------------------------------------------
    @property
    def stage(self) -> FulfillmentStage:
        return FulfillmentStage(self.current_stage)

    @property
    def loyalty_level(self) -> LoyaltyLevel:
        return LoyaltyLevel(self.tags.loyalty_level)

    @property
    def risk_level(self) -> RiskLevel:
        return RiskLevel(self.tags.risk_level)

    @property
    def value_segment(self) -> ValueSegment:
        return ValueSegment(self.tags.value_segment)

    @property
    def completed_stages(self) -> list[CompletedStageRecord]:
        return [CompletedStageRecord.from_dict(record) for record in json.loads(self.stage_history or "[]")]

    @property
    def current_stage_events(self) -> list[FulfillmentEvent]:
        return [FulfillmentEvent.from_dict(event) for event in json.loads(self.stage_events or "[]")]

    @property
    def current_stage_quality(self) -> float:
        return stage_quality_score(self.current_stage_events)

    @property
    def journey_events(self) -> list[FulfillmentEvent]:
        """Every event of the in-progress journey: closed stages first, then the current one."""
        events = [event for record in self.completed_stages for event in record.events]
        return events + self.current_stage_events

    # -------------------------------------------------------------------
    # Stage management
    # -------------------------------------------------------------------
    def advance_to_stage(self, target) -> None:
        """Close out the current stage and move to ``target``, its immediate successor."""
        target = FulfillmentStage.from_value(target)
        current = self.stage
        if not is_valid_transition(current, target):
            raise InvalidTransitionError(current, target)

        now = _now()
        record = CompletedStageRecord.close(
            stage=current,
            start_time=as_aware(self.stage_started_at) or now,
            end_time=now,
            events=self.current_stage_events,
        )
        history = json.loads(self.stage_history or "[]")
        history.append(record.to_dict())

        self.stage_history = json.dumps(history)
        self.stage_events = "[]"
        self.current_stage = target.value
        self.stage_started_at = now
        self.updated_at = now
        self._bump_version()

        self.raise_(
            StageAdvanced(
                guest_id=str(self.id),
                journey_id=self.journey_id,
                previous_stage=current.value,
                new_stage=target.value,
                quality_score=record.quality_score,
                duration_ms=record.duration_ms,
                guest_version=self.version,
                advanced_at=now,
            )
        )

    def advance(self) -> FulfillmentStage:
        """Advance to the next stage in order."""
        target = next_stage(self.stage)
        self.advance_to_stage(target)
        return target

    def record_event(self, event: FulfillmentEvent) -> None:
        """Buffer a fulfillment event observed in the current stage."""
        if event.guest_id != str(self.id):
            raise ValidationError({"guest_id": [f"Event belongs to guest {event.guest_id}"]})
        if event.journey_id != self.journey_id:
            raise ValidationError({"journey_id": [f"Event belongs to journey {event.journey_id}"]})
        if event.stage is not self.stage:
            raise ValidationError(
                {"stage": [f"Event observed in {event.stage.value} but guest is in {self.current_stage}"]}
            )

        buffered = json.loads(self.stage_events or "[]")
        if any(existing["id"] == event.id for existing in buffered):
            raise ValidationError({"event_id": [f"Event {event.id} already recorded"]})
        buffered.append(event.to_dict())

        now = _now()
        self.stage_events = json.dumps(buffered)
        self.updated_at = now
        self._bump_version()

        self.raise_(
            FulfillmentEventRecorded(
                guest_id=str(self.id),
                journey_id=self.journey_id,
                event_id=event.id,
                event_type=event.type.value,
                stage=event.stage.value,
                impact=event.impact,
                severity=event.severity.value,
                guest_version=self.version,
                recorded_at=now,
            )
        )

    def complete_journey(self, quality_score: float) -> None:
        """Finish the journey from the feedback stage and start the next one at awareness.

        The completed journey's stage records travel on the JourneyCompleted
        event; the aggregate itself keeps only the in-progress journey.
        """
        if self.stage is not FINAL_STAGE:
            raise JourneyNotReadyError(self.stage)
        if isinstance(quality_score, bool) or not isinstance(quality_score, int | float) or not 0 <= quality_score <= 100:
            raise ValidationError({"quality_score": ["Quality score must be between 0 and 100"]})

        now = _now()
        feedback = CompletedStageRecord.close(
            stage=FINAL_STAGE,
            start_time=as_aware(self.stage_started_at) or now,
            end_time=now,
            events=self.current_stage_events,
        )
        stages = json.loads(self.stage_history or "[]")
        stages.append(feedback.to_dict())
        duration_days = days_between(self.journey_started_at, now)
        finished_journey_id = self.journey_id

        self.journey_count = (self.journey_count or 0) + 1
        self.total_journey_time = (self.total_journey_time or 0) + duration_days
        self.journey_id = str(uuid4())
        self.current_stage = INITIAL_STAGE.value
        self.stage_started_at = now
        self.journey_started_at = now
        self.stage_history = "[]"
        self.stage_events = "[]"
        self.updated_at = now
        self._bump_version()

        self.raise_(
            JourneyCompleted(
                guest_id=str(self.id),
                journey_id=finished_journey_id,
                next_journey_id=self.journey_id,
                journey_count=self.journey_count,
                duration_days=duration_days,
                final_score=quality_score,
                stages=json.dumps(stages),
                guest_version=self.version,
                completed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Business metrics
    # -------------------------------------------------------------------
    def update_business_metrics(self, **changes) -> None:
        """Replace metric values and recompute loyalty, risk and value segment."""
        unknown = set(changes) - set(_METRIC_FIELDS)
        if unknown:
            raise ValidationError({"business_metrics": [f"Unknown metrics: {', '.join(sorted(unknown))}"]})

        metrics = BusinessMetrics(**{**_metric_values(self.business_metrics), **changes})
        self._apply_metrics(metrics)

    def record_booking(self, amount: float, nights: int, visited_at: datetime | None = None) -> None:
        if amount is None or amount < 0:
            raise ValidationError({"amount": ["Booking amount cannot be negative"]})
        if nights is None or nights < 1:
            raise ValidationError({"nights": ["A booking covers at least one night"]})

        current = self.business_metrics
        self.update_business_metrics(
            lifetime_value=current.lifetime_value + amount,
            total_bookings=current.total_bookings + 1,
            total_nights=current.total_nights + nights,
            last_visit_date=visited_at or _now(),
        )

    def record_rating(self, rating: float) -> None:
        if rating is None or not 1 <= rating <= 5:
            raise ValidationError({"rating": ["Rating must be between 1 and 5"]})

        current = self.business_metrics
        count = current.rating_count or 0
        self.update_business_metrics(
            average_rating=round((current.average_rating * count + rating) / (count + 1), 2),
            rating_count=count + 1,
        )

    def record_referral(self) -> None:
        self.update_business_metrics(referral_count=self.business_metrics.referral_count + 1)

    def _apply_metrics(self, metrics) -> None:
        now = _now()
        previous_level = self.loyalty_level
        score = calculate_score(self._loyalty_metrics(metrics, now))
        recalculated = level_for_score(score)
        # Downgrades are a business decision, not an automatic recomputation
        new_level = recalculated if previous_level.can_upgrade_to(recalculated) else previous_level

        previous_risk = self.risk_level
        new_risk = assess_risk(metrics, self.stage_started_at, now)

        self.business_metrics = metrics
        self.tags = GuestTags(
            loyalty_level=new_level.value,
            risk_level=new_risk.value,
            value_segment=value_segment_for(metrics).value,
            behavior_patterns=list(self.tags.behavior_patterns or []),
        )
        self.updated_at = now
        self._bump_version()

        self.raise_(
            BusinessMetricsUpdated(
                guest_id=str(self.id),
                lifetime_value=metrics.lifetime_value,
                total_bookings=metrics.total_bookings,
                total_nights=metrics.total_nights,
                average_rating=metrics.average_rating,
                referral_count=metrics.referral_count,
                last_visit_date=metrics.last_visit_date,
                guest_version=self.version,
                updated_at=now,
            )
        )
        if new_level is not previous_level:
            self.raise_(
                LoyaltyUpgraded(
                    guest_id=str(self.id),
                    previous_level=previous_level.value,
                    new_level=new_level.value,
                    score=score,
                    guest_version=self.version,
                    upgraded_at=now,
                )
            )
        if new_risk is not previous_risk:
            self.raise_(
                RiskLevelChanged(
                    guest_id=str(self.id),
                    previous_level=previous_risk.value,
                    new_level=new_risk.value,
                    guest_version=self.version,
                    changed_at=now,
                )
            )

    def _loyalty_metrics(self, metrics, now: datetime) -> LoyaltyMetrics:
        return LoyaltyMetrics(
            total_value=metrics.lifetime_value,
            visit_count=metrics.total_bookings,
            average_rating=metrics.average_rating,
            referral_count=metrics.referral_count,
            months_since_first_visit=days_between(self.created_at, now) // 30,
        )

    # -------------------------------------------------------------------
    # Preferences and tags
    # -------------------------------------------------------------------
    def update_preferences(self, **changes) -> None:
        if "price_range" in changes:
            changes["price_min"], changes["price_max"] = changes.pop("price_range")

        unknown = set(changes) - set(_PREFERENCE_FIELDS)
        if unknown:
            raise ValidationError({"preferences": [f"Unknown preferences: {', '.join(sorted(unknown))}"]})

        self.preferences = GuestPreferences(**{**_preference_values(self.preferences), **changes})
        self.updated_at = _now()
        self._bump_version()

        self.raise_(
            PreferencesUpdated(
                guest_id=str(self.id),
                changes=json.dumps(changes),
                guest_version=self.version,
                updated_at=self.updated_at,
            )
        )

    def add_behavior_pattern(self, pattern: str) -> None:
        """Tag the guest with a behavior pattern. Adding a known pattern changes nothing."""
        pattern = (pattern or "").strip()
        if not pattern:
            raise ValidationError({"pattern": ["Behavior pattern cannot be blank"]})

        patterns = list(self.tags.behavior_patterns or [])
        if pattern in patterns:
            return

        now = _now()
        self.tags = GuestTags(
            loyalty_level=self.tags.loyalty_level,
            risk_level=self.tags.risk_level,
            value_segment=self.tags.value_segment,
            behavior_patterns=[*patterns, pattern],
        )
        self.updated_at = now
        self._bump_version()

        self.raise_(
            BehaviorPatternAdded(
                guest_id=str(self.id),
                pattern=pattern,
                guest_version=self.version,
                added_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Derived queries
    # -------------------------------------------------------------------
    def loyalty_score(self) -> int:
        return calculate_score(self._loyalty_metrics(self.business_metrics, _now()))

    def days_in_current_stage(self) -> int:
        return days_between(self.stage_started_at, _now())

    def days_since_last_visit(self) -> int | None:
        last_visit = self.business_metrics.last_visit_date
        if last_visit is None:
            return None
        return days_between(last_visit, _now())

    def is_risk_customer(self) -> bool:
        return bool(risk_signals(self.business_metrics, self.stage_started_at, _now()))

    def calculate_lifetime_value(self) -> float:
        """Projected lifetime value: average booking value over past and predicted bookings."""
        metrics = self.business_metrics
        if not metrics.total_bookings:
            return 0.0

        average_booking = metrics.lifetime_value / metrics.total_bookings
        predicted_bookings = max(1, metrics.total_bookings * 0.5)
        return average_booking * (metrics.total_bookings + predicted_bookings)

    def recommendation_weight(self) -> float:
        """Personalised recommendation weight in [0.5, 5.0]."""
        metrics = self.business_metrics
        weight = 1.0 + self.loyalty_level.tier * 0.5
        if metrics.lifetime_value > 5000:
            weight += 1.0
        if metrics.total_bookings > 5:
            weight += 0.5
        weight += (metrics.average_rating - 3) * 0.3
        return max(0.5, min(5.0, weight))

    # -------------------------------------------------------------------
    # Journey analysis
    # -------------------------------------------------------------------
    def analyze_event_patterns(self) -> analysis.EventPatternAnalysis:
        return analysis.analyze_event_patterns(self.journey_events, _now())

    def identify_anomalies(self) -> list[analysis.EventAnomaly]:
        return analysis.identify_anomalies(self.journey_events)

    def has_stage_bottleneck(self, threshold_minutes: int = analysis.BOTTLENECK_MINUTES) -> bool:
        return analysis.has_stage_bottleneck(as_aware(self.stage_started_at), _now(), threshold_minutes)

    def journey_summary(self) -> analysis.JourneySummary:
        now = _now()
        completed = self.completed_stages
        current_events = self.current_stage_events
        return analysis.JourneySummary(
            journey_id=self.journey_id,
            guest_id=str(self.id),
            current_stage=self.stage,
            started_at=as_aware(self.journey_started_at),
            total_stages=len(all_stages()),
            completed_stages=len(completed),
            overall_score=analysis.overall_score(completed, current_events),
            duration_minutes=analysis.minutes_between(as_aware(self.journey_started_at), now),
            event_count=sum(len(record.events) for record in completed) + len(current_events),
            has_bottleneck=analysis.has_stage_bottleneck(as_aware(self.stage_started_at), now),
        )
