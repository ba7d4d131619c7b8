"""Client-overrides-default lookup shared by the policy and template resolvers.

Configuration rows carry an optional ``client_id``: rows with a client id
apply to that client only, rows without one are the defaults. When a
client has *any* matching rows the defaults are ignored entirely.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")

DEFAULT_SCOPE = None


@dataclass(frozen=True)
class ScopedResult:
    items: list
    client_id: str | None  # scope the items came from; None for the defaults

    @property
    def is_default(self) -> bool:
        return self.client_id is DEFAULT_SCOPE


class ClientScopedLookup(Generic[T]):
    """Run ``fetch(client_id)`` for the client first, falling back to the defaults.

    ``fetch`` receives a client id (or ``None`` for the default scope) and
    returns the rows that match at exactly that scope, already filtered and
    ordered by the caller's rules.
    """

    def __init__(self, fetch: Callable[[str | None], list[T]]):
        self._fetch = fetch

    def resolve(self, client_id: str | None) -> ScopedResult:
        if client_id:
            items = self._fetch(client_id)
            if items:
                return ScopedResult(items, client_id)
        return ScopedResult(self._fetch(DEFAULT_SCOPE), DEFAULT_SCOPE)


def same_scope(row_client_id, client_id) -> bool:
    """Compare a stored client id with a lookup scope, treating '' and None alike."""
    return (row_client_id or None) == (client_id or None)
