"""
CLI entrypoint for the cleanup sweeper. Use it instead of the in-process
sweeper (SWEEP_IN_PROCESS=false) when running several API instances:

  python -m helpdesk_auth.sweep

Hourly cron: 0 * * * * cd /path/to/helpdesk-auth && .venv/bin/python -m helpdesk_auth.sweep
"""

import logging
import sys

from helpdesk_auth.core.config import get_settings
from helpdesk_auth.core.database import SessionLocal
from helpdesk_auth.services.sweeper import run_sweep

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Delete expired sessions and stale reset tokens once."""
    settings = get_settings()
    db = SessionLocal()
    try:
        result = run_sweep(db, settings)
        logger.info(
            "Sweep completed: sessions_deleted=%s reset_tokens_deleted=%s",
            result.sessions_deleted,
            result.reset_tokens_deleted,
        )
        return 0
    except Exception as e:
        logger.exception("Sweep job failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
