"""Guest repository: persistence and the query surface over stored guests.

Guests live in the domain's configured database provider. Writes check
personal info and the optimistic-concurrency version before handing the
guest to protean, whose unit of work stores it and publishes its events.
Soft-deleted guests stay in storage but are invisible to every read.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime

import structlog
from protean import UnitOfWork
from protean.core.repository import BaseRepository
from protean.exceptions import ObjectNotFoundError, ValidationError

from guests.domain import guests
from guests.guest.classification import RiskLevel, as_aware
from guests.guest.guest import Guest, validate_personal_info
from guests.shared.errors import VersionConflictError
from guests.shared.loyalty import LoyaltyLevel
from guests.shared.stage import FulfillmentStage, all_stages

logger = structlog.get_logger(__name__)

# Sort keys accepted by find_with_pagination
_SORT_KEYS = {
    "created_at": lambda guest: as_aware(guest.created_at),
    "updated_at": lambda guest: as_aware(guest.updated_at),
    "name": lambda guest: guest.personal_info.name,
    "lifetime_value": lambda guest: guest.business_metrics.lifetime_value,
    "total_bookings": lambda guest: guest.business_metrics.total_bookings,
    "journey_count": lambda guest: guest.journey_count,
}


@dataclass(frozen=True)
class GuestCriteria:
    """Filters combined with AND. ``None`` means "do not filter on this"."""

    loyalty_levels: tuple[str, ...] | None = None
    stages: tuple[str, ...] | None = None
    risk_levels: tuple[str, ...] | None = None
    value_segments: tuple[str, ...] | None = None
    min_lifetime_value: float | None = None
    max_lifetime_value: float | None = None
    registered_after: str | None = None  # ISO-8601
    registered_before: str | None = None  # ISO-8601
    behavior_patterns: tuple[str, ...] | None = None  # guest must carry all of them

    def matches(self, guest) -> bool:
        tags = guest.tags
        lifetime_value = guest.business_metrics.lifetime_value

        if self.loyalty_levels is not None and tags.loyalty_level not in self.loyalty_levels:
            return False
        if self.stages is not None and guest.current_stage not in self.stages:
            return False
        if self.risk_levels is not None and tags.risk_level not in self.risk_levels:
            return False
        if self.value_segments is not None and tags.value_segment not in self.value_segments:
            return False
        if self.min_lifetime_value is not None and lifetime_value < self.min_lifetime_value:
            return False
        if self.max_lifetime_value is not None and lifetime_value > self.max_lifetime_value:
            return False
        if self.behavior_patterns is not None and not set(self.behavior_patterns) <= set(tags.behavior_patterns or []):
            return False

        created_at = as_aware(guest.created_at)
        if self.registered_after is not None and (created_at is None or created_at < _moment(self.registered_after)):
            return False
        if self.registered_before is not None and (created_at is None or created_at > _moment(self.registered_before)):
            return False
        return True


@dataclass(frozen=True)
class Page:
    """One window of a query result. ``total`` counts every match, not just this window."""

    data: list = field(default_factory=list)
    total: int = 0
    limit: int = 0
    offset: int = 0

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.data) < self.total


def _moment(value) -> datetime:
    if isinstance(value, datetime):
        return as_aware(value)
    return as_aware(datetime.fromisoformat(value))


def _sort_value(value):
    # Missing values sort after present ones
    return (value is None, value if value is not None else 0)


@guests.repository(part_of=Guest)
class GuestRepository(BaseRepository):
    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    def add(self, guest):
        """Persist ``guest`` and publish its events.

        Raises:
            ValidationError: name or a well-formed phone is missing.
            VersionConflictError: the stored version is not the one ``guest`` was
                loaded at, or ``guest`` is new and its id is already taken.
        """
        validate_personal_info(guest.personal_info)
        self._check_version(str(guest.id), guest.base_version)

        base_version = guest.persisted_version
        guest.mark_persisted()
        try:
            super().add(guest)
        except Exception:
            guest.persisted_version = base_version
            raise

        logger.debug("Guest saved", guest_id=str(guest.id), version=guest.version)
        return guest

    def bulk_insert(self, new_guests) -> None:
        """Validate every guest first. On the first failure raise and write nothing."""
        new_guests = list(new_guests)
        seen = set()
        for guest in new_guests:
            validate_personal_info(guest.personal_info)
            guest_id = str(guest.id)
            if guest_id in seen:
                raise ValidationError({"id": [f"Guest {guest_id} appears more than once in the batch"]})
            seen.add(guest_id)
            self._check_version(guest_id, guest.base_version)

        with UnitOfWork():
            for guest in new_guests:
                self.add(guest)

        logger.info("Guests bulk inserted", count=len(new_guests))

    def delete(self, guest_id) -> bool:
        """Soft delete. Returns False when there was no live guest to delete."""
        guest = self._stored(guest_id)
        if guest is None or guest.is_deleted:
            return False

        guest.is_deleted = True
        guest.updated_at = datetime.now(UTC)
        guest._bump_version()
        self.add(guest)

        logger.info("Guest soft-deleted", guest_id=str(guest_id))
        return True

    def _stored(self, guest_id):
        try:
            return self._dao.get(str(guest_id))
        except ObjectNotFoundError:
            return None

    def _check_version(self, guest_id: str, base_version) -> None:
        stored = self._stored(guest_id)
        stored_version = stored.version if stored is not None else None
        if stored_version != base_version:
            logger.warning(
                "Guest version conflict",
                guest_id=guest_id,
                expected_version=base_version,
                stored_version=stored_version,
            )
            raise VersionConflictError(guest_id, base_version, stored_version)

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def get(self, guest_id):
        guest = self.find_by_id(guest_id)
        if guest is None:
            raise ObjectNotFoundError(f"Guest with id {guest_id} does not exist")
        return guest

    def find_by_id(self, guest_id):
        """Return the guest, or None when unknown or soft-deleted."""
        guest = self._stored(guest_id)
        if guest is None or guest.is_deleted:
            return None
        return guest

    def _live(self, **filters) -> list:
        return self._dao.query.filter(is_deleted=False, **filters).all().items

    def find_by_phone(self, phone: str) -> list:
        return [guest for guest in self._live() if guest.personal_info.phone == phone]

    def find_by_loyalty_level(self, level: str) -> list:
        level = LoyaltyLevel(level).value
        return [guest for guest in self._live() if guest.tags.loyalty_level == level]

    def find_by_current_stage(self, stage: str) -> list:
        return self._live(current_stage=FulfillmentStage.from_value(stage).value)

    def find_by_multiple_criteria(self, criteria: GuestCriteria) -> list:
        return [guest for guest in self._live() if criteria.matches(guest)]

    def find_risk_customers(self, level: str | None = None) -> list:
        """Guests at ``level``, or at medium and high risk when no level is given."""
        if level is None:
            levels = {RiskLevel.MEDIUM.value, RiskLevel.HIGH.value}
        else:
            levels = {RiskLevel(level).value}
        return [guest for guest in self._live() if guest.tags.risk_level in levels]

    def find_high_value_customers(self, min_value: float) -> list:
        return [guest for guest in self._live() if guest.business_metrics.lifetime_value >= min_value]

    def find_with_pagination(
        self,
        limit: int,
        offset: int = 0,
        criteria: GuestCriteria | None = None,
        sort_by: str = "created_at",
        descending: bool = False,
    ) -> Page:
        """Deterministically ordered window of matching guests, ties broken by id."""
        if limit < 0:
            raise ValidationError({"limit": ["Limit cannot be negative"]})
        if offset < 0:
            raise ValidationError({"offset": ["Offset cannot be negative"]})
        if sort_by not in _SORT_KEYS:
            raise ValidationError({"sort_by": [f"Cannot sort guests by {sort_by!r}"]})

        matches = self._live()
        if criteria is not None:
            matches = [guest for guest in matches if criteria.matches(guest)]

        # Id order first, then a stable sort on the requested key keeps ties deterministic
        key = _SORT_KEYS[sort_by]
        matches.sort(key=lambda guest: str(guest.id))
        matches.sort(key=lambda guest: _sort_value(key(guest)), reverse=descending)

        return Page(
            data=matches[offset : offset + limit],
            total=len(matches),
            limit=limit,
            offset=offset,
        )

    # -------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------
    def stage_statistics(self) -> dict[str, int]:
        counts = {stage.value: 0 for stage in all_stages()}
        for guest in self._live():
            counts[guest.current_stage] += 1
        return counts

    def loyalty_distribution(self) -> dict[str, int]:
        counts = {level.value: 0 for level in LoyaltyLevel}
        for guest in self._live():
            counts[guest.tags.loyalty_level] += 1
        return counts
