#!/usr/bin/env python
"""Remove every residual auth record for an email address.

Use this when a half-created or half-deleted account blocks someone from
signing up again. Users with the email are removed through the identity
provider when it is configured, with direct database deletes as fallback.
Events owned by removed users are left in place and listed as orphaned.

Usage:
    python scripts/cleanup_user.py someone@example.com

Environment Variables:
    DATABASE_URL: PostgreSQL connection string
    IDENTITY_PROVIDER_URL: Auth provider base URL (optional)
    IDENTITY_PROVIDER_ADMIN_TOKEN: Admin token for the auth provider (optional)

Exits with status 1 when records remain after cleanup.
"""

import argparse
import sys

from gallery_lifecycle.accounts import AccountTeardownService
from gallery_lifecycle.config import get_settings
from gallery_lifecycle.database import SessionLocal
from gallery_lifecycle.infrastructure.identity import build_identity_provider
from gallery_lifecycle.observability import configure_logging


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Deep cleanup of all records for an email address")
    parser.add_argument("email", help="Email address to clean up")
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.LOG_LEVEL, json_format=False)

    identity_provider = build_identity_provider(settings)
    db = SessionLocal()
    try:
        result = AccountTeardownService(db, identity_provider=identity_provider).deep_cleanup_by_email(
            args.email
        )
    finally:
        db.close()
        if identity_provider is not None:
            identity_provider.close()

    for step in result.steps:
        print(step)

    if result.orphaned_event_ids:
        print(f"WARNING: {len(result.orphaned_event_ids)} events still reference removed users:")
        for event_id in result.orphaned_event_ids:
            print(f"  {event_id}")

    if not result.clean:
        print(f"ERROR: records remain for {result.email}")
        return 1

    print(f"Deep cleanup completed for {result.email}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
