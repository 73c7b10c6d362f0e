"""Expired refresh tokens: find and drop the rows that can no longer be redeemed."""

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from app.models import RefreshToken

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def purge_expired_refresh_tokens(
    session: Session,
    settings: "Settings",
    now: datetime | None = None,
) -> int:
    """
    Remove every refresh token whose expires_at lies before ``now`` (default: the
    current UTC time) and commit. Verification already refuses these tokens; the rows
    only make users' session lists longer.

    Returns how many tokens were removed; a second call with the same ``now`` removes none.
    """
    if not settings.SESSION_CLEANUP_ENABLED:
        logger.info("Expired refresh tokens kept: SESSION_CLEANUP_ENABLED is off")
        return 0

    expired_before = now or datetime.now(UTC)
    removed = (
        session.query(RefreshToken)
        .filter(RefreshToken.expires_at < expired_before)
        .delete(synchronize_session=False)
    )
    session.commit()

    if removed:
        logger.info(
            "Removed expired refresh tokens",
            extra={"expired_before": expired_before.isoformat(), "removed": removed},
        )
    return removed
