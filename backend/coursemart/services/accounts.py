from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from coursemart.core.errors import AuthenticationError, ConflictError
from coursemart.core.security import create_refresh_token, hash_password, hash_refresh_token, verify_password
from coursemart.db.models.refresh_session import RefreshSession
from coursemart.db.models.user import User

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.lower().strip()


async def _active_user(db: AsyncSession, user_id: int) -> User | None:
    user = await db.get(User, user_id)
    if user is None or not user.is_active:
        return None
    return user


async def authenticate(db: AsyncSession, *, email: str, password: str) -> User:
    res = await db.execute(select(User).where(User.email == normalize_email(email)))
    user = res.scalar_one_or_none()
    if user is None or not user.is_active or not verify_password(password, user.hashed_password):
        raise AuthenticationError("Invalid login")
    return user


async def register(db: AsyncSession, *, email: str, password: str, first_name: str, last_name: str) -> User:
    """Create an account. Raises ConflictError when the email is taken."""
    email = normalize_email(email)

    res = await db.execute(select(User.id).where(User.email == email))
    if res.scalar_one_or_none() is not None:
        raise ConflictError("Email already registered")

    user = User(
        email=email,
        hashed_password=hash_password(password),
        first_name=first_name,
        last_name=last_name,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent signup for the same address.
        await db.rollback()
        raise ConflictError("Email already registered") from e
    await db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


async def open_refresh_session(db: AsyncSession, *, user_id: int, secret: str, ttl_seconds: int) -> str:
    """Persist a new refresh session and return the raw token for the cookie."""
    token = create_refresh_token()
    db.add(
        RefreshSession(
            user_id=user_id,
            token_hash=hash_refresh_token(token, secret),
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=int(ttl_seconds)),
        )
    )
    await db.commit()
    return token


async def rotate_refresh_session(
    db: AsyncSession,
    *,
    refresh_token: str | None,
    secret: str,
    ttl_seconds: int,
) -> tuple[User, str]:
    """
    Exchange a live refresh token for a new one.

    The old session is revoked and linked to its replacement, so replaying it
    fails. Raises AuthenticationError for unknown, revoked or expired tokens.
    """
    if not refresh_token:
        raise AuthenticationError()

    now = datetime.now(timezone.utc)
    res = await db.execute(
        select(RefreshSession).where(
            RefreshSession.token_hash == hash_refresh_token(refresh_token, secret),
            RefreshSession.revoked_at.is_(None),
            RefreshSession.expires_at > now,
        )
    )
    session = res.scalar_one_or_none()
    if session is None:
        raise AuthenticationError()

    user = await _active_user(db, session.user_id)
    if user is None:
        raise AuthenticationError()

    new_token = create_refresh_token()
    replacement = RefreshSession(
        user_id=user.id,
        token_hash=hash_refresh_token(new_token, secret),
        expires_at=now + timedelta(seconds=int(ttl_seconds)),
    )
    db.add(replacement)
    # The replacement row must exist before the old one can point at it.
    await db.flush()

    session.revoked_at = now
    session.replaced_by_id = replacement.id
    await db.commit()
    return user, new_token


async def revoke_refresh_session(db: AsyncSession, *, refresh_token: str | None, secret: str) -> None:
    if not refresh_token:
        return
    res = await db.execute(
        select(RefreshSession).where(RefreshSession.token_hash == hash_refresh_token(refresh_token, secret))
    )
    session = res.scalar_one_or_none()
    if session is not None and session.revoked_at is None:
        session.revoked_at = datetime.now(timezone.utc)
        await db.commit()
