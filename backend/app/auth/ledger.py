"""Persistence of refresh tokens: store, lookup, invalidation and expiry."""

import logging
from datetime import datetime, timedelta

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..core.database import as_utc, utcnow
from ..core.errors import DuplicateToken
from ..models.RefreshToken import RefreshToken

logger = logging.getLogger(__name__)


class TokenLedger:
    """
    Owns the refresh_tokens table. Like CredentialStore it only flushes;
    commit and rollback belong to the calling service.
    """

    def __init__(self, session: Session, ttl: timedelta = timedelta(days=7)):
        self.session = session
        self.ttl = ttl

    def store(self, token: str, user_id: int, issued_at: datetime | None = None) -> int:
        issued_at = as_utc(issued_at) if issued_at else utcnow()
        record = RefreshToken(
            token=token,
            user_id=user_id,
            expires_at=issued_at + self.ttl,
            created_at=issued_at,
        )
        self.session.add(record)
        try:
            self.session.flush()
        except IntegrityError as exc:
            self.session.rollback()
            if self.find(token) is None:
                # Not a collision (e.g. user_id does not reference a live user)
                raise
            logger.error("Refresh token collision", extra={"user_id": user_id})
            raise DuplicateToken() from exc
        return record.id

    def find(self, token: str) -> RefreshToken | None:
        return self.session.exec(select(RefreshToken).where(RefreshToken.token == token)).first()

    def is_valid(self, token: str) -> bool:
        statement = select(RefreshToken.id).where(
            RefreshToken.token == token,
            RefreshToken.expires_at > utcnow(),
        )
        return self.session.exec(statement).first() is not None

    def remove(self, token: str) -> int:
        """Idempotent: removing an unknown token returns 0."""
        result = self.session.exec(delete(RefreshToken).where(RefreshToken.token == token))
        return result.rowcount

    def consume(self, token: str) -> int:
        """
        Atomic delete-if-unexpired guard used by rotation. Only one of several
        concurrent callers presenting the same token gets a row count of 1.
        """
        result = self.session.exec(
            delete(RefreshToken).where(
                RefreshToken.token == token,
                RefreshToken.expires_at > utcnow(),
            )
        )
        return result.rowcount

    def remove_for_user(self, user_id: int) -> int:
        result = self.session.exec(delete(RefreshToken).where(RefreshToken.user_id == user_id))
        return result.rowcount

    def purge_expired(self) -> int:
        result = self.session.exec(delete(RefreshToken).where(RefreshToken.expires_at <= utcnow()))
        return result.rowcount
