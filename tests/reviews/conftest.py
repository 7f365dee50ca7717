import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def reviews_bed():
    from reviews.domain import reviews

    bed = DomainFixture(reviews)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(reviews_bed):
    with reviews_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def bookings():
    """A fresh in-memory booking directory for every test."""
    from reviews.bookings import set_booking_directory
    from reviews.bookings.fake_adapter import FakeBookingDirectory

    directory = FakeBookingDirectory()
    set_booking_directory(directory)
    return directory


@pytest.fixture()
def review_settings(monkeypatch):
    """Override REVIEWS_* settings for one test: review_settings(moderation_mode="immediate")."""
    from reviews.settings import get_settings

    def _apply(**values):
        for name, value in values.items():
            monkeypatch.setenv(f"REVIEWS_{name.upper()}", str(value))
        get_settings.cache_clear()
        return get_settings()

    yield _apply
    get_settings.cache_clear()
