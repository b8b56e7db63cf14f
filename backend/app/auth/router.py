from fastapi import APIRouter, Depends, Request, status
from sqlmodel import Session

from ..audit.service import record
from ..core.database import get_session
from ..core.errors import ApiError
from ..models.RefreshToken import AuthResponse, LogoutRequest, RefreshRequest, RefreshResponse
from ..models.User import LoginRequest, MessageResponse, RegisterRequest
from .dependencies import get_auth_service
from .service import AuthSessionService

router = APIRouter(prefix="/api/auth", tags=["auth"])

@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterRequest,
    request: Request,
    session: Session = Depends(get_session),
    service: AuthSessionService = Depends(get_auth_service),
):
    """
    Register a new user and return it with a fresh token pair.
    """
    try:
        result = service.register(data)
    except ApiError as exc:
        record(request, session, 0, exc.status_code, exc.message)
        raise

    record(request, session, result.user.id, status.HTTP_201_CREATED, "User registered successfully")
    return AuthResponse(message="User registered successfully", user=result.user, tokens=result.tokens)

@router.post("/login", response_model=AuthResponse)
def login(
    data: LoginRequest,
    request: Request,
    session: Session = Depends(get_session),
    service: AuthSessionService = Depends(get_auth_service),
):
    """
    Login with email and password to get an access/refresh token pair.
    """
    try:
        result = service.login(data.email, data.password)
    except ApiError as exc:
        record(request, session, 0, exc.status_code, exc.message)
        raise

    record(request, session, result.user.id, status.HTTP_200_OK, "Login successful")
    return AuthResponse(message="Login successful", user=result.user, tokens=result.tokens)

@router.post("/refresh", response_model=RefreshResponse)
def refresh(
    data: RefreshRequest,
    request: Request,
    session: Session = Depends(get_session),
    service: AuthSessionService = Depends(get_auth_service),
):
    """
    Rotate a refresh token: the presented token is retired and a new pair is returned.
    """
    try:
        result = service.refresh(data.refresh_token)
    except ApiError as exc:
        record(request, session, 0, exc.status_code, exc.message)
        raise

    record(request, session, result.user_id, status.HTTP_200_OK, "Tokens refreshed successfully")
    return RefreshResponse(message="Tokens refreshed successfully", tokens=result.tokens)

@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    data: LogoutRequest | None = None,
    session: Session = Depends(get_session),
    service: AuthSessionService = Depends(get_auth_service),
):
    """
    Invalidate the supplied refresh token. Succeeds even if it was already gone.
    """
    removed = service.logout(data.refresh_token if data else None)
    record(request, session, 0, status.HTTP_200_OK, f"Logout successful ({removed} token(s) removed)")
    return MessageResponse(message="Logout successful")
