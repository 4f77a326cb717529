"""Domain events for the Guest aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from guests.domain import guests


@guests.event(part_of="Guest")
class GuestRegistered:
    """A guest was created, starting their first journey at awareness."""

    __version__ = 1

    guest_id: Identifier(required=True)
    journey_id: Identifier(required=True)
    name: String(required=True)
    phone: String(required=True)
    email: String()
    guest_version: Integer(required=True)
    registered_at: DateTime(required=True)


@guests.event(part_of="Guest")
class StageAdvanced:
    """A guest moved to the next stage of their journey."""

    __version__ = 1

    guest_id: Identifier(required=True)
    journey_id: Identifier(required=True)
    previous_stage: String(required=True)
    new_stage: String(required=True)
    quality_score: Float(required=True)
    duration_ms: Integer(required=True)
    guest_version: Integer(required=True)
    advanced_at: DateTime(required=True)


@guests.event(part_of="Guest")
class FulfillmentEventRecorded:
    """A fulfillment event was observed in the guest's current stage."""

    __version__ = 1

    guest_id: Identifier(required=True)
    journey_id: Identifier(required=True)
    event_id: String(required=True)
    event_type: String(required=True)
    stage: String(required=True)
    impact: Float(required=True)
    severity: String(required=True)
    guest_version: Integer(required=True)
    recorded_at: DateTime(required=True)


@guests.event(part_of="Guest")
class JourneyCompleted:
    """A guest finished a full journey and was reset to awareness."""

    __version__ = 1

    guest_id: Identifier(required=True)
    journey_id: Identifier(required=True)
    next_journey_id: Identifier(required=True)
    journey_count: Integer(required=True)
    duration_days: Integer(required=True)
    final_score: Float(required=True)
    stages: Text(required=True)  # JSON list of completed stage records
    guest_version: Integer(required=True)
    completed_at: DateTime(required=True)


@guests.event(part_of="Guest")
class BusinessMetricsUpdated:
    """A guest's business metrics changed."""

    __version__ = 1

    guest_id: Identifier(required=True)
    lifetime_value: Float(required=True)
    total_bookings: Integer(required=True)
    total_nights: Integer(required=True)
    average_rating: Float(required=True)
    referral_count: Integer(required=True)
    last_visit_date: DateTime()
    guest_version: Integer(required=True)
    updated_at: DateTime(required=True)


@guests.event(part_of="Guest")
class LoyaltyUpgraded:
    """A guest's recomputed loyalty tier is higher than the stored one."""

    __version__ = 1

    guest_id: Identifier(required=True)
    previous_level: String(required=True)
    new_level: String(required=True)
    score: Integer(required=True)
    guest_version: Integer(required=True)
    upgraded_at: DateTime(required=True)


@guests.event(part_of="Guest")
class RiskLevelChanged:
    """A guest's risk classification changed."""

    __version__ = 1

    guest_id: Identifier(required=True)
    previous_level: String(required=True)
    new_level: String(required=True)
    guest_version: Integer(required=True)
    changed_at: DateTime(required=True)


@guests.event(part_of="Guest")
class PreferencesUpdated:
    """A guest's stay and communication preferences changed."""

    __version__ = 1

    guest_id: Identifier(required=True)
    changes: Text(required=True)  # JSON object of changed preference fields
    guest_version: Integer(required=True)
    updated_at: DateTime(required=True)


@guests.event(part_of="Guest")
class BehaviorPatternAdded:
    """A new behavior pattern tag was attached to a guest."""

    __version__ = 1

    guest_id: Identifier(required=True)
    pattern: String(required=True)
    guest_version: Integer(required=True)
    added_at: DateTime(required=True)
