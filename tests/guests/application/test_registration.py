"""Application tests for guest registration via domain.process()."""

import pytest
from guests.guest.guest import Guest
from guests.guest.registration import RegisterGuest
from protean import current_domain
from protean.exceptions import ValidationError


class TestRegisterGuestFlow:
    def test_register_stores_guest(self):
        guest_id = current_domain.process(
            RegisterGuest(name="Zhang San", phone="13800138000", email="zhang@example.com"),
            asynchronous=False,
        )

        guest = current_domain.repository_for(Guest).find_by_id(guest_id)
        assert guest is not None
        assert guest.personal_info.name == "Zhang San"
        assert guest.current_stage == "awareness"
        assert guest.version == 0
        assert guest.base_version == 0

    def test_register_with_preferences(self):
        guest_id = current_domain.process(
            RegisterGuest(
                name="Li Si",
                phone="13900139000",
                room_types=["suite"],
                price_min=800.0,
                price_max=2000.0,
                communication_preference="wechat",
            ),
            asynchronous=False,
        )

        preferences = current_domain.repository_for(Guest).find_by_id(guest_id).preferences
        assert preferences.room_types == ["suite"]
        assert preferences.price_min == 800.0
        assert preferences.price_max == 2000.0
        assert preferences.communication_preference == "wechat"

    def test_invalid_phone_is_not_stored(self):
        with pytest.raises(ValidationError):
            current_domain.process(
                RegisterGuest(name="Zhang San", phone="not-a-phone!"),
                asynchronous=False,
            )

        assert current_domain.repository_for(Guest).find_by_phone("not-a-phone!") == []

    def test_name_is_required_on_the_command(self):
        with pytest.raises(ValidationError):
            RegisterGuest(phone="13800138000")

    def test_invalid_email_is_rejected(self):
        with pytest.raises(ValidationError):
            current_domain.process(
                RegisterGuest(name="Zhang San", phone="13800138000", email="zhang@@example"),
                asynchronous=False,
            )

        assert current_domain.repository_for(Guest).find_by_phone("13800138000") == []

    def test_email_is_stored_as_value_object(self):
        guest_id = current_domain.process(
            RegisterGuest(name="Zhang San", phone="13800138000", email="zhang@example.com"),
            asynchronous=False,
        )

        guest = current_domain.repository_for(Guest).get(guest_id)
        assert guest.personal_info.email.address == "zhang@example.com"


class TestRegistrationEventStore:
    def test_guest_registered_event_in_event_store(self):
        guest_id = current_domain.process(
            RegisterGuest(name="Zhang San", phone="13800138000", email="zhang@example.com"),
            asynchronous=False,
        )

        messages = current_domain.event_store.store.read("guests::guest")
        registered = [
            m
            for m in messages
            if m.metadata and m.metadata.headers and m.metadata.headers.type == "Guests.GuestRegistered.v1"
        ]
        assert len(registered) == 1
        assert registered[0].data["guest_id"] == guest_id
        assert registered[0].data["guest_version"] == 0

