"""Journey progression: advancing stages, recording fulfillment events, completing journeys."""

import structlog
from protean import current_domain, handle
from protean.fields import Dict, Float, Identifier, String

from guests.domain import guests
from guests.guest.guest import Guest
from guests.journey.event import EventSource, FulfillmentEvent

logger = structlog.get_logger(__name__)


@guests.command(part_of="Guest")
class AdvanceStage:
    """Move a guest to the next stage, or to ``target_stage`` when given."""

    guest_id: Identifier(required=True)
    target_stage: String(max_length=20)


@guests.command(part_of="Guest")
class RecordFulfillmentEvent:
    """Record something the guest did, or that happened to them, in their current stage."""

    guest_id: Identifier(required=True)
    event_type: String(required=True, max_length=50)
    impact: Float(default=0.0)
    payload: Dict()
    source_kind: String(max_length=20, default="system")
    source_identifier: String(max_length=100, default="unknown")


@guests.command(part_of="Guest")
class CompleteJourney:
    """Close the guest's journey from feedback and start the next one."""

    guest_id: Identifier(required=True)
    quality_score: Float(required=True)


@guests.command_handler(part_of=Guest)
class JourneyHandler:
    @handle(AdvanceStage)
    def advance_stage(self, command):
        repo = current_domain.repository_for(Guest)
        guest = repo.get(command.guest_id)
        previous = guest.current_stage
        if command.target_stage:
            guest.advance_to_stage(command.target_stage)
        else:
            guest.advance()
        repo.add(guest)

        logger.info(
            "Guest advanced stage",
            guest_id=str(guest.id),
            previous_stage=previous,
            new_stage=guest.current_stage,
        )
        return guest.current_stage

    @handle(RecordFulfillmentEvent)
    def record_fulfillment_event(self, command):
        repo = current_domain.repository_for(Guest)
        guest = repo.get(command.guest_id)
        event = FulfillmentEvent(
            journey_id=guest.journey_id,
            guest_id=str(guest.id),
            type=command.event_type,
            stage=guest.current_stage,
            payload=dict(command.payload or {}),
            impact=command.impact or 0,
            source=EventSource(kind=command.source_kind, identifier=command.source_identifier),
        )
        guest.record_event(event)
        repo.add(guest)
        return event.id

    @handle(CompleteJourney)
    def complete_journey(self, command):
        repo = current_domain.repository_for(Guest)
        guest = repo.get(command.guest_id)
        guest.complete_journey(command.quality_score)
        repo.add(guest)

        logger.info(
            "Guest journey completed",
            guest_id=str(guest.id),
            journey_count=guest.journey_count,
            quality_score=command.quality_score,
        )
        return guest.journey_id
