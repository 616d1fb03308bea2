"""
Local mirror of identity-provider users.

Every table that points at a user references the internal `users.id`, so a
verified token is mapped onto a row keyed by the provider id before any
write. The row is created on first sight and its role follows the token.
"""

from typing import TYPE_CHECKING, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from eventzen.core.logging import get_logger
from eventzen.models.user import User

if TYPE_CHECKING:
    from eventzen.core.security import TokenClaims

logger = get_logger(__name__)


async def get_user_by_external_id(db: AsyncSession, external_id: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.external_id == external_id))
    return result.scalar_one_or_none()


async def _insert(db: AsyncSession, claims: "TokenClaims", with_profile: bool) -> Optional[User]:
    user = User(
        external_id=claims.subject,
        email=claims.email if with_profile else None,
        username=claims.username if with_profile else None,
        role=claims.role,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return None
    await db.refresh(user)
    return user


async def sync_user(db: AsyncSession, claims: "TokenClaims") -> User:
    """Return the user for a verified token, creating the row on first use."""
    user = await get_user_by_external_id(db, claims.subject)
    if user is not None:
        if user.role != claims.role:
            user.role = claims.role
            await db.commit()
        return user

    user = await _insert(db, claims, with_profile=True)
    if user is not None:
        logger.info("user_created", user_id=user.id, external_id=claims.subject)
        return user

    # Either a concurrent first request won, or the email/username belongs to another row
    user = await get_user_by_external_id(db, claims.subject)
    if user is not None:
        return user

    user = await _insert(db, claims, with_profile=False)
    if user is None:
        user = await get_user_by_external_id(db, claims.subject)
    if user is None:
        raise RuntimeError(f"could not create user for subject {claims.subject!r}")
    logger.warning("user_created_without_profile", user_id=user.id, external_id=claims.subject)
    return user
