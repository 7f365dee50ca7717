"""Published event contracts must stay in step with the events the domain raises."""

import pytest
from protean.utils.reflection import declared_fields
from reviews.rating import events as rating_events
from reviews.review import events as review_events
from shared.events import reviews as contracts

_SOURCES = {
    contracts.ReviewSubmitted: review_events.ReviewSubmitted,
    contracts.ReviewApproved: review_events.ReviewApproved,
    contracts.ReviewResponded: review_events.ReviewResponded,
    contracts.SubjectRatingRecalculated: rating_events.SubjectRatingRecalculated,
}


@pytest.mark.parametrize("contract", list(_SOURCES), ids=lambda cls: cls.__name__)
def test_contract_fields_are_carried_by_source_event(contract):
    source_fields = declared_fields(_SOURCES[contract])
    missing = [name for name in declared_fields(contract) if not name.startswith("_") and name not in source_fields]
    assert missing == []


@pytest.mark.parametrize("contract", list(_SOURCES), ids=lambda cls: cls.__name__)
def test_contract_versions_match(contract):
    assert contract.__version__ == _SOURCES[contract].__version__
