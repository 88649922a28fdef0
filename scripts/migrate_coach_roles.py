#!/usr/bin/env python3
"""
Promote the seed coach accounts to role=coach.

Run once per deployment that still relied on the old email list. After
this, the users.role column is the only thing that decides who is a coach.

Usage:
    python scripts/migrate_coach_roles.py --dry-run
    python scripts/migrate_coach_roles.py --emails coach@example.com,other@example.com

Requires:
    - .env file with DATABASE_URL
    - COACH_SEED_EMAILS in the environment, or --emails
"""

import sys
from pathlib import Path

# Add the project root to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from leadership_canvas.config.settings import get_settings
from leadership_canvas.infrastructure.database.client import Database
from leadership_canvas.infrastructure.database.seed import promote_seed_coaches


def main():
    import argparse

    parser = argparse.ArgumentParser(description='Promote seed coach accounts by email')
    parser.add_argument('--dry-run', action='store_true', help='List matches, don\'t update')
    parser.add_argument('--emails', default=None, help='Comma-separated emails (overrides COACH_SEED_EMAILS)')
    args = parser.parse_args()

    settings = get_settings()
    if args.emails is not None:
        emails = [e.strip() for e in args.emails.split(',') if e.strip()]
    else:
        emails = settings.coach_seed_emails_list

    if not emails:
        print("ERROR: No seed emails given (set COACH_SEED_EMAILS or pass --emails)")
        sys.exit(1)

    database = Database.from_settings(settings)
    try:
        with database.session() as session:
            promoted = promote_seed_coaches(session, emails, dry_run=args.dry_run)
    finally:
        database.dispose()

    verb = "Would promote" if args.dry_run else "Promoted"
    print(f"{verb} {len(promoted)} account(s) to coach")
    for email in promoted:
        print(f"  {email}")

    sys.exit(0)


if __name__ == '__main__':
    main()
