"""Register, login, refresh and logout on top of the credential store, the issuer and the ledger."""

import logging

from sqlmodel import Session

from ..core.database import unit_of_work
from ..core.errors import InvalidCredentials, InvalidRefreshToken, TokenInvalid, DuplicateEmail
from ..models.RefreshToken import AuthResult, RotationResult, TokenPair
from ..models.User import RegisterRequest, UserResponse
from ..user.store import CredentialStore
from .ledger import TokenLedger
from .tokens import TokenIssuer

logger = logging.getLogger(__name__)


class AuthSessionService:
    """
    Per-request orchestration; holds no state of its own. Every operation is
    a single unit of work on the injected session: all of it commits or none.
    """

    def __init__(self, session: Session, credentials: CredentialStore, issuer: TokenIssuer, ledger: TokenLedger):
        self.session = session
        self.credentials = credentials
        self.issuer = issuer
        self.ledger = ledger

    def _issue_for(self, user_id: int) -> TokenPair:
        tokens = self.issuer.issue_pair(user_id)
        self.ledger.store(tokens.refresh_token, user_id)
        return tokens

    def register(self, data: RegisterRequest) -> AuthResult:
        with unit_of_work(self.session):
            if self.credentials.find_by_email(data.email) is not None:
                raise DuplicateEmail()
            password_hash = self.credentials.hash_password(data.password)
            user_id = self.credentials.create(data.email, password_hash, data.name, data.bio)
            tokens = self._issue_for(user_id)
            user = self.credentials.get(user_id)
            result = AuthResult(user=UserResponse.model_validate(user, from_attributes=True), tokens=tokens)

        logger.info("User registered", extra={"user_id": user_id})
        return result

    def login(self, email: str, password: str) -> AuthResult:
        with unit_of_work(self.session):
            user = self.credentials.find_by_email(email)
            # Same error for an unknown email and a wrong password
            if user is None or not self.credentials.verify_password(password, user.password_hash):
                raise InvalidCredentials()
            tokens = self._issue_for(user.id)
            result = AuthResult(user=UserResponse.model_validate(user, from_attributes=True), tokens=tokens)

        logger.info("User logged in", extra={"user_id": result.user.id})
        return result

    def refresh(self, refresh_token: str) -> RotationResult:
        """
        Rotates a refresh token. Both the ledger and the signature must accept
        it; the old token is consumed and the new one stored in one transaction.
        Returns the new pair with the id of the user it belongs to.
        """
        with unit_of_work(self.session):
            if not self.ledger.is_valid(refresh_token):
                raise InvalidRefreshToken()
            try:
                user_id = self.issuer.verify_refresh_token(refresh_token)
            except TokenInvalid:
                raise InvalidRefreshToken()

            if self.credentials.get(user_id) is None:
                raise InvalidRefreshToken()

            # A concurrent rotation of the same token already consumed it
            if self.ledger.consume(refresh_token) != 1:
                raise InvalidRefreshToken()

            tokens = self._issue_for(user_id)

        logger.info("Refresh token rotated", extra={"user_id": user_id})
        return RotationResult(user_id=user_id, tokens=tokens)

    def logout(self, refresh_token: str | None = None) -> int:
        """Always succeeds; returns how many ledger rows were removed."""
        if not refresh_token:
            return 0
        with unit_of_work(self.session):
            removed = self.ledger.remove(refresh_token)
        return removed
