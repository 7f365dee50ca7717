"""Boda Connect Reviews management CLI.

Provides commands to create and drop the database schema, and to run the
auto-approval sweep once (e.g. from cron).

Usage:
    python src/manage.py setup-db      # Create all tables
    python src/manage.py drop-db       # Drop all tables
    python src/manage.py approve-due   # Approve pending reviews past the delay
"""

import argparse
import sys


def _domain():
    from reviews.domain import reviews

    print("Initializing reviews domain...")
    reviews.init()
    return reviews


def setup_database():
    """Create the database schema."""
    from reviews.utils.db import setup_db

    domain = _domain()
    print("Creating reviews database schema...")
    setup_db(domain)
    print("Done.")


def drop_database():
    """Drop the database schema."""
    from reviews.utils.db import drop_db

    domain = _domain()
    print("Dropping reviews database schema...")
    drop_db(domain)
    print("Done.")


def approve_due_reviews():
    """Run one auto-approval sweep."""
    from reviews.review.auto_approval import ApproveDueReviews

    domain = _domain()
    with domain.domain_context():
        approved = domain.process(ApproveDueReviews(), asynchronous=False)
    print(f"Approved {approved} review(s).")


def main():
    parser = argparse.ArgumentParser(description="Boda Connect Reviews management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    subparsers.add_parser("approve-due", help="Approve pending reviews past the moderation delay")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "approve-due":
        approve_due_reviews()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
