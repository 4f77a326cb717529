"""Guest preferences and behavior-pattern tags: commands and handler."""

from protean import current_domain, handle
from protean.fields import Float, Identifier, List, String

from guests.domain import guests
from guests.guest.guest import Guest


@guests.command(part_of="Guest")
class UpdatePreferences:
    """Change any subset of a guest's preferences. Omitted fields keep their values."""

    guest_id: Identifier(required=True)
    room_types: List(content_type=String)
    price_min: Float()
    price_max: Float()
    special_requests: List(content_type=String)
    communication_preference: String(max_length=20)


@guests.command(part_of="Guest")
class AddBehaviorPattern:
    guest_id: Identifier(required=True)
    pattern: String(required=True, max_length=100)


@guests.command_handler(part_of=Guest)
class PreferencesHandler:
    @handle(UpdatePreferences)
    def update_preferences(self, command):
        changes = {
            field_name: getattr(command, field_name)
            for field_name in ("room_types", "price_min", "price_max", "special_requests", "communication_preference")
            if getattr(command, field_name) not in (None, [])
        }
        repo = current_domain.repository_for(Guest)
        guest = repo.get(command.guest_id)
        guest.update_preferences(**changes)
        repo.add(guest)

    @handle(AddBehaviorPattern)
    def add_behavior_pattern(self, command):
        repo = current_domain.repository_for(Guest)
        guest = repo.get(command.guest_id)
        guest.add_behavior_pattern(command.pattern)
        repo.add(guest)
