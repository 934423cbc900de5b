"""Delete consumed and expired one-time login codes. Safe to run from cron."""

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from blog_platform.auth.otp import purge_expired_otps
from blog_platform.config import load_config
from blog_platform.db import connect


def main() -> None:
    cfg = load_config()
    with connect(cfg.DB_DSN) as conn:
        n = purge_expired_otps(conn)
    print(f"Purged {n} OTP challenge(s)")


if __name__ == "__main__":
    main()
