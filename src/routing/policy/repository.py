"""RoutingPolicy repository with the lookups used by routing and administration."""

from routing.domain import routing
from routing.policy.policy import RoutingPolicy
from routing.shared.precedence import same_scope
from routing.shared.queries import all_items


def _by_priority(policies):
    return sorted(policies, key=lambda p: p.priority or 0, reverse=True)


@routing.repository(part_of=RoutingPolicy)
class RoutingPolicyRepository:
    def matching(self, service: str, topic: str, client_id: str | None, severity: str) -> list[RoutingPolicy]:
        """Enabled policies at exactly ``client_id``'s scope that accept ``severity``.

        Ordered by priority, highest first.
        """
        candidates = all_items(self._dao.query.filter(service=service, topic=topic, is_enabled=True))
        return _by_priority(p for p in candidates if same_scope(p.client_id, client_id) and p.applies_to(severity))

    def by_service_and_topic(self, service: str, topic: str) -> list[RoutingPolicy]:
        return _by_priority(all_items(self._dao.query.filter(service=service, topic=topic)))

    def by_client(self, client_id: str | None) -> list[RoutingPolicy]:
        return _by_priority(p for p in all_items(self._dao.query) if same_scope(p.client_id, client_id))

    def using_group(self, group_id) -> list[RoutingPolicy]:
        return all_items(self._dao.query.filter(recipient_group_id=str(group_id)))

    def list_policies(self, include_disabled: bool = False) -> list[RoutingPolicy]:
        query = self._dao.query if include_disabled else self._dao.query.filter(is_enabled=True)
        return sorted(
            all_items(query),
            key=lambda p: (p.service, p.topic, p.client_id or "", -(p.priority or 0)),
        )
