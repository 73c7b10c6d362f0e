"""
Command-line job that removes expired refresh tokens from the database.

    python -m app.session_cleanup

Exits 0 on success and 1 if the cleanup raised, so a scheduler can alert on failures.
"""

import logging
import sys

from dotenv import load_dotenv

from app.core.config import get_settings
from app.core.database import build_engine, build_session_factory
from app.services.session_cleanup import purge_expired_refresh_tokens

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S%z",
)
logger = logging.getLogger(__name__)


def main() -> int:
    load_dotenv()
    settings = get_settings()
    db = build_session_factory(build_engine(settings))()
    try:
        removed = purge_expired_refresh_tokens(db, settings)
    except Exception:
        logger.exception("Expired refresh token cleanup failed")
        return 1
    finally:
        db.close()
    logger.info("Expired refresh token cleanup finished, %d removed", removed)
    return 0


if __name__ == "__main__":
    sys.exit(main())
