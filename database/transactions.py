"""
Unit-of-work helpers.

A workflow operation stages all of its writes (the transition itself,
any cross-entity side effect and the audit row) on one session and
commits them together here. Persistence failures are translated into
workflow errors after a rollback, so a failed transition leaves nothing
behind.
"""

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from core.exceptions import ConflictError, InternalError

logger = logging.getLogger(__name__)


async def commit_transition(
    session: AsyncSession,
    operation: str,
    *refresh: Any,
) -> None:
    """
    Commit the session as one atomic transition.

    Args:
        session: Session holding the staged writes
        operation: Operation name used in logs and error messages
        *refresh: Entities to refresh after commit (e.g. to pick up
            values produced by the database)

    Raises:
        ConflictError: A concurrent writer changed a row first (version
            mismatch) or won a unique-key race
        InternalError: Any other persistence failure
    """
    try:
        await session.commit()
    except StaleDataError:
        await session.rollback()
        logger.warning(f"Concurrent modification detected during {operation}")
        raise ConflictError(
            f"{operation} lost a race with a concurrent update; refresh and retry"
        )
    except IntegrityError as exc:
        await session.rollback()
        logger.warning(f"Integrity conflict during {operation}: {type(exc.orig).__name__}")
        raise ConflictError(
            f"{operation} conflicts with an existing record; refresh and retry"
        )
    except SQLAlchemyError:
        await session.rollback()
        logger.error(f"Persistence failure during {operation}", exc_info=True)
        raise InternalError()

    for entity in refresh:
        await session.refresh(entity)


async def flush_or_conflict(session: AsyncSession, operation: str) -> None:
    """
    Flush pending writes mid-operation, mapping races like ``commit_transition``.
    """
    try:
        await session.flush()
    except StaleDataError:
        await session.rollback()
        raise ConflictError(
            f"{operation} lost a race with a concurrent update; refresh and retry"
        )
    except IntegrityError:
        await session.rollback()
        raise ConflictError(
            f"{operation} conflicts with an existing record; refresh and retry"
        )
    except SQLAlchemyError:
        await session.rollback()
        logger.error(f"Persistence failure during {operation}", exc_info=True)
        raise InternalError()
