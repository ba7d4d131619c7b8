"""Helpers for repository queries."""

# Upper bound on rows fetched by a single repository query
QUERY_LIMIT = 10_000


def all_items(queryset, limit: int | None = None) -> list:
    """Evaluate a DAO queryset and return its entities as a list."""
    return list(queryset.limit(limit or QUERY_LIMIT).all().items)
