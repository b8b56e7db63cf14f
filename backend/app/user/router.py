from fastapi import APIRouter, Depends, Request, status
from sqlmodel import Session

from ..audit.service import record
from ..auth.dependencies import get_credential_store, get_current_user_id, get_token_ledger
from ..auth.ledger import TokenLedger
from ..core.database import get_session
from ..core.errors import ApiError
from ..models.User import MessageResponse, ProfileResponse, ProfileUpdate
from .service import delete_account, get_profile, update_profile
from .store import CredentialStore

router = APIRouter(prefix="/api/user", tags=["user"])

@router.get("/profile", response_model=ProfileResponse)
def get_my_profile(
    user_id: int = Depends(get_current_user_id),
    store: CredentialStore = Depends(get_credential_store),
):
    """
    Get the current user's profile.
    """
    return ProfileResponse(message="Profile retrieved successfully", user=get_profile(store, user_id))

@router.put("/profile", response_model=ProfileResponse)
def update_my_profile(
    update_data: ProfileUpdate,
    request: Request,
    user_id: int = Depends(get_current_user_id),
    session: Session = Depends(get_session),
    store: CredentialStore = Depends(get_credential_store),
):
    """
    Update name, bio and/or email. Only the fields present in the body change.
    """
    try:
        user = update_profile(session, store, user_id, update_data)
    except ApiError as exc:
        record(request, session, user_id, exc.status_code, exc.message)
        raise

    record(request, session, user_id, status.HTTP_200_OK, "Profile updated successfully")
    return ProfileResponse(message="Profile updated successfully", user=user)

@router.delete("/account", response_model=MessageResponse)
def delete_my_account(
    request: Request,
    user_id: int = Depends(get_current_user_id),
    session: Session = Depends(get_session),
    store: CredentialStore = Depends(get_credential_store),
    ledger: TokenLedger = Depends(get_token_ledger),
):
    """
    Delete the current user's account together with all its refresh tokens.
    """
    try:
        delete_account(session, store, ledger, user_id)
    except ApiError as exc:
        record(request, session, user_id, exc.status_code, exc.message)
        raise

    record(request, session, user_id, status.HTTP_200_OK, "Account deleted successfully")
    return MessageResponse(message="Account deleted successfully")
