"""Guest removal: soft delete through the repository."""

import structlog
from protean import current_domain, handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier

from guests.domain import guests
from guests.guest.guest import Guest

logger = structlog.get_logger(__name__)


@guests.command(part_of="Guest")
class RemoveGuest:
    """Hide a guest from every query. The stored guest is kept, flagged as deleted."""

    guest_id: Identifier(required=True)


@guests.command_handler(part_of=Guest)
class RemoveGuestHandler:
    @handle(RemoveGuest)
    def remove_guest(self, command):
        if not current_domain.repository_for(Guest).delete(command.guest_id):
            raise ObjectNotFoundError(f"Guest with id {command.guest_id} does not exist")
        logger.info("Guest removed", guest_id=str(command.guest_id))
