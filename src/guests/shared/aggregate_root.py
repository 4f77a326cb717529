"""Versioning and outbox behavior shared by the context's aggregates.

Protean's ``BaseAggregate`` supplies identity and the ``raise_()`` outbox.
``AggregateRoot`` adds the explicit contract around them: a ``version``
field that moves by exactly one per successful mutating call, and an outbox
that the aggregate never drains on its own. It empties through
``mark_events_as_committed()`` or when protean's unit of work publishes the
events of a stored guest.

Aggregates mix it in ahead of ``BaseAggregate`` and declare two integer
fields, ``version`` and ``persisted_version``.
"""


class AggregateRoot:
    def _bump_version(self) -> None:
        """Called once by each mutating operation, after all checks passed."""
        self.version = (self.version or 0) + 1

    def get_uncommitted_events(self) -> list:
        """Events raised since the last commit. Returns a copy."""
        return list(self._events)

    def mark_events_as_committed(self) -> None:
        """Drain the outbox once the events have been durably recorded."""
        self._events.clear()

    @property
    def has_uncommitted_events(self) -> bool:
        return bool(self._events)

    @property
    def base_version(self):
        """Version of the stored copy this instance was loaded from, or None if never stored."""
        return self.persisted_version

    def mark_persisted(self) -> None:
        self.persisted_version = self.version
