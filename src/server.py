"""Protean Engine runner for the Reviews domain.

Starts the Engine, which processes events asynchronously:
- OutboxProcessor: polls outbox table, publishes events to Redis Streams
- StreamSubscriptions: reads Redis Streams, invokes projectors, the rating
  maintainer and the Bookings event handler

Optionally runs the auto-approval sweep next to it for the `delayed`
moderation mode. The sweep has its own thread and event loop, and each
round runs the blocking command in a worker thread, so the Engine's loop
is never held up by it.

Usage:
    python src/server.py                        # Run the engine
    python src/server.py --sweep-interval 300   # ...and sweep every 5 minutes
"""

import argparse
import asyncio
import threading

from protean.server.engine import Engine

from reviews.utils.logging import get_logger

logger = get_logger(__name__)


def _get_domain():
    from reviews.domain import reviews

    reviews.init()
    return reviews


def _approve_due(domain):
    """One sweep round. Pushes its own domain context for the calling thread."""
    from reviews.review.auto_approval import ApproveDueReviews

    with domain.domain_context():
        return domain.process(ApproveDueReviews(), asynchronous=False)


async def sweep(domain, interval):
    """Approve due pending reviews every `interval` seconds."""
    while True:
        approved = await asyncio.to_thread(_approve_due, domain)
        logger.info("Auto-approval sweep finished", approved=approved)
        await asyncio.sleep(interval)


def start_sweeper(domain, interval) -> threading.Thread:
    thread = threading.Thread(
        target=asyncio.run,
        args=(sweep(domain, interval),),
        name="auto-approval-sweep",
        daemon=True,
    )
    thread.start()
    return thread


def run(sweep_interval=None):
    domain = _get_domain()
    if sweep_interval:
        start_sweeper(domain, sweep_interval)

    # Engine.run owns its event loop and blocks until shutdown
    Engine(domain).run()


def main():
    parser = argparse.ArgumentParser(description="Boda Connect Reviews Engine runner")
    parser.add_argument(
        "--sweep-interval",
        type=float,
        default=None,
        help="Seconds between auto-approval sweeps (default: no sweep)",
    )
    args = parser.parse_args()

    run(args.sweep_interval)


if __name__ == "__main__":
    main()
