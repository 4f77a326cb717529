"""Guest registration: command and handler."""

from protean import current_domain, handle
from protean.fields import Float, List, String

from guests.domain import guests
from guests.guest.guest import Guest


@guests.command(part_of="Guest")
class RegisterGuest:
    """Create a guest and start their first journey at awareness."""

    name: String(required=True, max_length=100)
    phone: String(required=True, max_length=20)
    email: String(max_length=254)
    id_card: String(max_length=50)
    avatar: String(max_length=500)
    room_types: List(content_type=String)
    price_min: Float()
    price_max: Float()
    communication_preference: String(max_length=20)


@guests.command_handler(part_of=Guest)
class RegisterGuestHandler:
    @handle(RegisterGuest)
    def register_guest(self, command):
        preferences = {
            key: value
            for key, value in {
                "room_types": command.room_types or None,
                "price_min": command.price_min,
                "price_max": command.price_max,
                "communication_preference": command.communication_preference,
            }.items()
            if value is not None
        }
        guest = Guest.register(
            name=command.name,
            phone=command.phone,
            email=command.email,
            id_card=command.id_card,
            avatar=command.avatar,
            preferences=preferences,
        )
        current_domain.repository_for(Guest).add(guest)
        return str(guest.id)
