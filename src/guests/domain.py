"""Guests bounded context: guest fulfillment journeys.

Tracks each guest through the awareness → evaluation → booking →
experiencing → feedback journey, the business metrics that journey feeds,
and the loyalty and risk classifications derived from those metrics.
"""

from protean.domain import Domain

from guests.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

guests = Domain(name="guests")
