"""Protean Engine runner for the routing domain.

Starts the Engine workers that process routing events asynchronously:
- OutboxProcessor: polls the outbox table, publishes events to Redis Streams
- StreamSubscriptions: reads Redis Streams, invokes the delivery dispatcher
  and the projectors

Usage:
    PROTEAN_ENV=production python src/server.py
    PROTEAN_ENV=production python src/server.py --test-mode
"""

import argparse

from protean.server.engine import Engine

from routing.utils.logging import get_logger

logger = get_logger(__name__)


def _get_domain():
    from routing.domain import routing

    routing.init()
    return routing


def run(test_mode: bool = False):
    domain = _get_domain()
    logger.info("Starting routing engine", domain=domain.name, test_mode=test_mode)
    engine = Engine(domain, test_mode=test_mode)
    engine.run()


def main():
    parser = argparse.ArgumentParser(description="Routing Engine runner")
    parser.add_argument(
        "--test-mode",
        action="store_true",
        help="Process the pending backlog once and exit",
    )
    args = parser.parse_args()

    run(test_mode=args.test_mode)


if __name__ == "__main__":
    main()
