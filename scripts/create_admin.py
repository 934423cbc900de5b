"""Create an admin account.

Usage:
  python scripts/create_admin.py --username alice --password '...' --mobile +15551234567 --role admin

Accounts created here are approved unless --pending is given.
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from blog_platform.auth.crud import create_admin
from blog_platform.config import load_config
from blog_platform.db import connect, init_db
from blog_platform.errors import BlogPlatformError
from blog_platform.models import STATUS_APPROVED, STATUS_PENDING, VALID_ROLES


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--username", required=True)
    ap.add_argument("--password", required=True)
    ap.add_argument("--name", default=None)
    ap.add_argument("--email", default=None)
    ap.add_argument("--mobile", default=None)
    ap.add_argument("--role", choices=list(VALID_ROLES), default="admin")
    ap.add_argument("--pending", action="store_true", help="leave the account awaiting approval")
    args = ap.parse_args()

    cfg = load_config()
    init_db(cfg.DB_DSN)

    try:
        with connect(cfg.DB_DSN) as conn:
            u = create_admin(
                conn,
                username=args.username,
                password=args.password,
                name=args.name,
                email=args.email,
                mobile=args.mobile,
                role=args.role,
                status=STATUS_PENDING if args.pending else STATUS_APPROVED,
            )
    except BlogPlatformError as e:
        print(f"Failed: {e.detail}")
        sys.exit(1)

    print("Created admin:")
    print(u)


if __name__ == "__main__":
    main()
