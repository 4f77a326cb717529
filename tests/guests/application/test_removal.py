"""Application tests for guest removal via domain.process()."""

import pytest
from guests.guest.guest import Guest
from guests.guest.journey import AdvanceStage
from guests.guest.registration import RegisterGuest
from guests.guest.removal import RemoveGuest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError


class TestRemoveGuestFlow:
    def test_removed_guest_is_hidden(self):
        guest_id = current_domain.process(
            RegisterGuest(name="Zhang San", phone="13800138000"),
            asynchronous=False,
        )

        current_domain.process(RemoveGuest(guest_id=guest_id), asynchronous=False)

        assert current_domain.repository_for(Guest).find_by_id(guest_id) is None
        assert current_domain.repository_for(Guest).find_by_phone("13800138000") == []

    def test_removed_guest_cannot_be_advanced(self):
        guest_id = current_domain.process(
            RegisterGuest(name="Zhang San", phone="13800138000"),
            asynchronous=False,
        )
        current_domain.process(RemoveGuest(guest_id=guest_id), asynchronous=False)

        with pytest.raises(ObjectNotFoundError):
            current_domain.process(AdvanceStage(guest_id=guest_id), asynchronous=False)

    def test_removing_unknown_guest(self):
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(RemoveGuest(guest_id="missing"), asynchronous=False)
