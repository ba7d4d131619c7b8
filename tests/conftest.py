import os
from pathlib import Path

import pytest

# Test layer directories and the marker each one carries.
_LAYER_MARKERS = {
    "domain": pytest.mark.domain,
    "application": pytest.mark.application,
    "integration": pytest.mark.integration,
    "bdd": pytest.mark.bdd,
}


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config overlay from domain.toml to run the routing tests against",
    )


def pytest_sessionstart(session):
    """Activate the routing domain before collection.

    PROTEAN_ENV must be set before ``routing.init()`` so the selected overlay
    (sync processing for ``test``) is the one that gets loaded.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env

    from routing.domain import routing

    routing.init()
    routing.domain_context().push()


def pytest_collection_modifyitems(config, items):
    for item in items:
        parts = Path(item.fspath).parts
        for layer, marker in _LAYER_MARKERS.items():
            if layer in parts:
                item.add_marker(marker)
                break
        if "integration" in parts and not any(m.name == "fast" for m in item.iter_markers()):
            item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session", autouse=True)
def routing_db():
    """Create routing tables on SQL providers for the whole session."""
    from routing.domain import routing
    from routing.utils.db import drop_db, setup_db

    setup_db(routing)
    yield
    drop_db(routing)


@pytest.fixture(autouse=True)
def reset_routing_state():
    """Wipe stored aggregates, the event store and bound log context after each test."""
    yield

    from protean import current_domain

    from routing.utils.logging import clear_context

    for provider in current_domain.providers.values():
        provider._data_reset()
    current_domain.event_store.store._data_reset()
    clear_context()
