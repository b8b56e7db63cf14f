from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from ..core.database import get_session
from ..core.errors import TokenMissing
from ..user.store import CredentialStore
from .ledger import TokenLedger
from .service import AuthSessionService
from .tokens import TokenIssuer

# auto_error=False so a missing header maps to TOKEN_MISSING instead of FastAPI's 403
bearer_scheme = HTTPBearer(auto_error=False)

def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer

def get_credential_store(request: Request, session: Session = Depends(get_session)) -> CredentialStore:
    return CredentialStore(session, request.app.state.password_hasher)

def get_token_ledger(
    session: Session = Depends(get_session),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> TokenLedger:
    # Stored expiry uses the same window as the refresh token's exp claim
    return TokenLedger(session, ttl=issuer.refresh_ttl)

def get_auth_service(
    session: Session = Depends(get_session),
    credentials: CredentialStore = Depends(get_credential_store),
    issuer: TokenIssuer = Depends(get_token_issuer),
    ledger: TokenLedger = Depends(get_token_ledger),
) -> AuthSessionService:
    return AuthSessionService(session, credentials, issuer, ledger)

def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> int:
    """
    Stateless access-token check: signature and expiry only, no store lookup.
    """
    if credentials is None or not credentials.credentials:
        raise TokenMissing()
    return issuer.verify_access_token(credentials.credentials)
