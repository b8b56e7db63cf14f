"""Signing and verification of access/refresh JWTs. Stateless: never touches the store."""

import uuid
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError

from ..core.errors import TokenExpired, TokenInvalid
from ..core.settings import Settings
from ..models.RefreshToken import TokenPair, TokenPayload

ACCESS = "access"
REFRESH = "refresh"


class TokenIssuer:
    """
    Mints and checks token pairs. Access and refresh tokens are signed with
    two distinct keys so one kind can never pass as the other.
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
    ):
        if access_secret == refresh_secret:
            raise ValueError("Access and refresh signing keys must differ")
        self._keys = {ACCESS: access_secret, REFRESH: refresh_secret}
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(
            access_secret=settings.JWT_ACCESS_SECRET,
            refresh_secret=settings.JWT_REFRESH_SECRET,
            algorithm=settings.ALGORITHM,
            access_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        )

    def _encode(self, user_id: int, token_type: str, ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        to_encode = {
            "sub": str(user_id),
            "type": token_type,
            "iat": now,
            "exp": now + ttl,
            # Two tokens for the same user in the same second must still differ
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(to_encode, self._keys[token_type], algorithm=self.algorithm)

    def _decode(self, token: str, token_type: str) -> int:
        try:
            payload = jwt.decode(token, self._keys[token_type], algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise TokenExpired()
        except JWTError:
            raise TokenInvalid()

        try:
            token_data = TokenPayload(**payload)
        except ValidationError:
            raise TokenInvalid()
        if token_data.type != token_type or not token_data.sub:
            raise TokenInvalid()
        try:
            return int(token_data.sub)
        except ValueError:
            raise TokenInvalid()

    def issue_access_token(self, user_id: int) -> str:
        return self._encode(user_id, ACCESS, self.access_ttl)

    def issue_refresh_token(self, user_id: int) -> str:
        return self._encode(user_id, REFRESH, self.refresh_ttl)

    def issue_pair(self, user_id: int) -> TokenPair:
        return TokenPair(
            access_token=self.issue_access_token(user_id),
            refresh_token=self.issue_refresh_token(user_id),
        )

    def verify_access_token(self, token: str) -> int:
        """
        Returns the user id. Raises TokenExpired for a well-signed token past
        its expiry and TokenInvalid for anything else.
        """
        return self._decode(token, ACCESS)

    def verify_refresh_token(self, token: str) -> int:
        """
        Signature and expiry check only; whether the token is still in the
        ledger is TokenLedger's concern.
        """
        try:
            return self._decode(token, REFRESH)
        except TokenExpired:
            raise TokenInvalid()
