"""Errors raised by the guests domain.

Rule violations raised by the aggregate are ``ValidationError`` subclasses so
callers that already handle protean validation failures keep working.
Optimistic-concurrency failures come from the repository, not the aggregate.
"""

from protean.exceptions import ValidationError


class InvalidTransitionError(ValidationError):
    """A stage change that is not the immediate successor of the current stage."""

    def __init__(self, from_stage, to_stage):
        self.from_stage = from_stage
        self.to_stage = to_stage
        super().__init__({"current_stage": [f"Cannot transition from {from_stage} to {to_stage}"]})


class JourneyNotReadyError(ValidationError):
    """Journey completion attempted before the guest reached the feedback stage."""

    def __init__(self, current_stage):
        self.current_stage = current_stage
        super().__init__(
            {"current_stage": [f"Cannot complete journey from {current_stage}, guest must reach feedback first"]}
        )


class VersionConflictError(Exception):
    """The stored guest moved past the version this copy was loaded at."""

    def __init__(self, guest_id, expected_version, stored_version):
        self.guest_id = guest_id
        self.expected_version = expected_version
        self.stored_version = stored_version
        super().__init__(
            f"Guest {guest_id} was modified concurrently: "
            f"expected stored version {expected_version}, found {stored_version}"
        )
