"""PrintFlow management CLI.

Usage:
    python src/manage.py setup-db               # Create all tables
    python src/manage.py drop-db                # Drop all tables
    python src/manage.py process-notifications  # Retry due notifications (cron)
"""

import argparse
import sys

from shared.config import Settings
from shared.container import Container
from shared.db import Database
from shared.logging import configure_logging


def setup_database(settings: Settings) -> None:
    print(f"Creating schema at {settings.database_url}...")
    Database(settings.database_url).create_all()
    print("Done.")


def drop_database(settings: Settings) -> None:
    print(f"Dropping schema at {settings.database_url}...")
    Database(settings.database_url).drop_all()
    print("Done.")


def process_notifications(settings: Settings) -> dict:
    container = Container.build(settings)
    result = container.outbox.process_due()
    print(f"Processed {result['processed']} notification(s): {result['sent']} sent, {result['failed']} failed.")
    return result


def main(argv=None):
    parser = argparse.ArgumentParser(description="PrintFlow management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    subparsers.add_parser("process-notifications", help="Retry failed notifications that are due")

    args = parser.parse_args(argv)

    configure_logging()
    settings = Settings.from_env()

    if args.command == "setup-db":
        setup_database(settings)
    elif args.command == "drop-db":
        drop_database(settings)
    elif args.command == "process-notifications":
        process_notifications(settings)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
