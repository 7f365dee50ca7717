"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state — no cross-user sharing.
State tracks entity IDs returned by creation endpoints so follow-up
operations can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class BookingReviewState:
    """Tracks state for the reviews of a single simulated booking."""

    booking_id: str | None = None
    client_id: str | None = None
    supplier_id: str | None = None
    client_review_id: str | None = None
    supplier_review_id: str | None = None
    ratings_given: list[float] = field(default_factory=list)
