"""Tests for the client-overrides-default lookup."""

from routing.shared.precedence import ClientScopedLookup, same_scope


def _lookup(rows):
    calls = []

    def fetch(scope):
        calls.append(scope)
        return rows.get(scope, [])

    return ClientScopedLookup(fetch), calls


class TestClientScopedLookup:
    def test_client_rows_win_over_defaults(self):
        lookup, _ = _lookup({"acme": ["client-row"], None: ["default-row"]})
        result = lookup.resolve("acme")
        assert result.items == ["client-row"]
        assert result.client_id == "acme"
        assert not result.is_default

    def test_falls_back_to_defaults_when_client_has_none(self):
        lookup, calls = _lookup({None: ["default-row"]})
        result = lookup.resolve("acme")
        assert result.items == ["default-row"]
        assert result.is_default
        assert calls == ["acme", None]

    def test_no_client_goes_straight_to_defaults(self):
        lookup, calls = _lookup({None: ["default-row"]})
        assert lookup.resolve(None).items == ["default-row"]
        assert calls == [None]

    def test_empty_client_id_is_treated_as_no_client(self):
        lookup, calls = _lookup({None: ["default-row"]})
        lookup.resolve("")
        assert calls == [None]

    def test_nothing_at_either_scope(self):
        lookup, _ = _lookup({})
        result = lookup.resolve("acme")
        assert result.items == []
        assert result.is_default


class TestSameScope:
    def test_blank_and_none_are_the_default_scope(self):
        assert same_scope("", None)
        assert same_scope(None, "")

    def test_client_ids_compare_exactly(self):
        assert same_scope("acme", "acme")
        assert not same_scope("acme", None)
        assert not same_scope("acme", "globex")
