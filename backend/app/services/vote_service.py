"""Vote recording — the one place where ordering and atomicity matter.

A vote is an INSERT into ``votes`` followed by ``votes = votes + 1`` on the
feature, committed together. Duplicate votes are detected only by the
``(feature_id, voter_ip)`` unique constraint rejecting the INSERT; there is
no "has this voter voted?" pre-check, because two concurrent requests could
both pass it.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.models.feature import Feature, Vote

logger = logging.getLogger(__name__)

# SQLSTATE for unique_violation (PostgreSQL drivers expose it as sqlstate/pgcode)
UNIQUE_VIOLATION_SQLSTATE = "23505"
_SQLITE_UNIQUE_ERROR_NAMES = frozenset({"SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY"})


class VoteOutcome(enum.Enum):
    RECORDED = "recorded"
    NOT_FOUND = "not_found"
    ALREADY_VOTED = "already_voted"


@dataclass(frozen=True)
class VoteResult:
    outcome: VoteOutcome
    feature: Feature | None = None


def is_unique_violation(exc: IntegrityError) -> bool:
    """True only when the driver reports a unique-constraint conflict.

    Reads the driver's structured error code; foreign key, NOT NULL and
    CHECK failures are IntegrityErrors too and must not match.
    """
    orig = exc.orig
    if getattr(orig, "sqlite_errorname", None) in _SQLITE_UNIQUE_ERROR_NAMES:
        return True
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return sqlstate == UNIQUE_VIOLATION_SQLSTATE


async def cast_vote(session: AsyncSession, feature_id: int, voter_ip: str) -> VoteResult:
    """Record one vote by ``voter_ip`` for ``feature_id``.

    Returns NOT_FOUND without touching the store's write path when the
    feature does not exist, ALREADY_VOTED when the constraint rejects the
    insert, and RECORDED with the refreshed feature otherwise. Any other
    failure rolls the whole unit back and propagates.
    """
    feature = await session.get(Feature, feature_id)
    if feature is None:
        return VoteResult(VoteOutcome.NOT_FOUND)

    now = datetime.now(UTC).isoformat()
    try:
        # INSERT first: on SQLite this takes the write lock before anything
        # else happens inside the unit.
        session.add(Vote(feature_id=feature_id, voter_ip=voter_ip, created_at=now))
        await session.flush()

        await session.execute(
            update(Feature)
            .where(Feature.id == feature_id)
            .values(votes=Feature.votes + 1, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if is_unique_violation(exc):
            logger.info("Duplicate vote on feature %s from %s", feature_id, voter_ip)
            return VoteResult(VoteOutcome.ALREADY_VOTED)
        raise
    except Exception:
        await session.rollback()
        raise

    await session.refresh(feature)
    logger.info("Vote recorded on feature %s (now %d)", feature_id, feature.votes)
    return VoteResult(VoteOutcome.RECORDED, feature)
