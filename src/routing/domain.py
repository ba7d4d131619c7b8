"""Routing bounded context: outbound event routing and delivery tracking.

Accepts outbound events from platform services, resolves which recipient
groups should hear about them (routing policies), fans each event out into
individually tracked deliveries per contact and channel, and follows every
delivery through its send/retry lifecycle. Channel health is derived from
the delivery history.
"""

from protean.domain import Domain

from routing.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

logger = get_logger(__name__)

routing = Domain(name="routing")
