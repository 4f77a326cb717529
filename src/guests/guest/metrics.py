"""Business metrics: bookings, ratings and referrals, with the loyalty and risk tags they drive."""

import structlog
from protean import current_domain, handle
from protean.fields import DateTime, Float, Identifier, Integer

from guests.domain import guests
from guests.guest.guest import Guest

logger = structlog.get_logger(__name__)


@guests.command(part_of="Guest")
class RecordBooking:
    """A paid booking: adds to lifetime value, bookings and nights."""

    guest_id: Identifier(required=True)
    amount: Float(required=True)
    nights: Integer(required=True)
    visited_at: DateTime()


@guests.command(part_of="Guest")
class RecordRating:
    guest_id: Identifier(required=True)
    rating: Float(required=True)


@guests.command(part_of="Guest")
class RecordReferral:
    guest_id: Identifier(required=True)


@guests.command_handler(part_of=Guest)
class BusinessMetricsHandler:
    @handle(RecordBooking)
    def record_booking(self, command):
        guest = current_domain.repository_for(Guest).get(command.guest_id)
        guest.record_booking(command.amount, command.nights, visited_at=command.visited_at)
        return self._commit(guest)

    @handle(RecordRating)
    def record_rating(self, command):
        guest = current_domain.repository_for(Guest).get(command.guest_id)
        guest.record_rating(command.rating)
        return self._commit(guest)

    @handle(RecordReferral)
    def record_referral(self, command):
        guest = current_domain.repository_for(Guest).get(command.guest_id)
        guest.record_referral()
        return self._commit(guest)

    def _commit(self, guest):
        current_domain.repository_for(Guest).add(guest)
        logger.info(
            "Guest metrics updated",
            guest_id=str(guest.id),
            lifetime_value=guest.business_metrics.lifetime_value,
            loyalty_level=guest.tags.loyalty_level,
            risk_level=guest.tags.risk_level,
        )
        return guest.tags.loyalty_level
