"""Policy Resolver: which routing policies fire for an event."""

import structlog
from protean.utils.globals import current_domain

from routing.policy.policy import RoutingPolicy
from routing.shared.precedence import ClientScopedLookup

logger = structlog.get_logger(__name__)


class PolicyResolver:
    """Select the enabled policies for (service, topic, client, severity).

    Client policies come first; only when the client has none that match
    are the default policies used. Results are ordered by priority,
    highest first. No match at either level returns an empty list.
    """

    def resolve(self, service: str, topic: str, client_id: str | None, severity: str) -> list[RoutingPolicy]:
        repo = current_domain.repository_for(RoutingPolicy)
        lookup = ClientScopedLookup(lambda scope: repo.matching(service, topic, scope, severity))
        result = lookup.resolve(client_id)

        if not result.items:
            logger.warning(
                "No routing policies matched",
                service=service,
                topic=topic,
                client_id=client_id,
                severity=severity,
            )
        else:
            logger.debug(
                "Routing policies resolved",
                service=service,
                topic=topic,
                client_id=client_id,
                scope="client" if not result.is_default else "default",
                count=len(result.items),
            )
        return result.items


def resolve_policies(service, topic, client_id, severity) -> list[RoutingPolicy]:
    return PolicyResolver().resolve(service, topic, client_id, severity)
