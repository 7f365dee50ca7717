"""Schema management for relational providers of the Reviews domain.

The memory provider needs no schema. For SQLite/PostgreSQL the DAOs must
be touched once so that Protean registers their SQLAlchemy models before
`create_all` runs.
"""

from protean.domain import Domain
from sqlalchemy import create_engine

from reviews.utils.logging import get_logger

logger = get_logger(__name__)

_RELATIONAL_PROVIDERS = ("sqlite", "postgresql")


def _relational_providers(domain: Domain):
    for name, provider in domain.providers.items():
        if provider.conn_info["provider"] in _RELATIONAL_PROVIDERS:
            yield name, provider


def _register_models(domain: Domain, provider_name: str) -> None:
    records = [
        *domain.registry.aggregates.values(),
        *domain.registry.entities.values(),
        *domain.registry.projections.values(),
    ]
    for record in records:
        if record.cls.meta_.provider == provider_name:
            domain.repository_for(record.cls)._dao  # noqa: B018

    # Outbox tables are registered internally, outside the registry
    outbox_repos = getattr(domain, "_outbox_repos", {})
    if provider_name in outbox_repos:
        outbox_repos[provider_name]._dao  # noqa: B018


def setup_db(domain: Domain) -> None:
    """Create tables for every relational provider."""
    with domain.domain_context():
        for name, provider in _relational_providers(domain):
            engine = create_engine(provider.conn_info["database_uri"])
            _register_models(domain, name)
            provider._metadata.create_all(engine)
            logger.info("Schema created", provider=name)


def drop_db(domain: Domain) -> None:
    """Drop tables for every relational provider."""
    with domain.domain_context():
        for name, provider in _relational_providers(domain):
            engine = create_engine(provider.conn_info["database_uri"])
            provider._metadata.drop_all(engine)
            logger.info("Schema dropped", provider=name)
