from sqlmodel import Session

from ..auth.ledger import TokenLedger
from ..core.database import unit_of_work
from ..core.errors import UserNotFound
from ..models.User import ProfileUpdate, UserResponse
from .store import CredentialStore

def get_profile(store: CredentialStore, user_id: int) -> UserResponse:
    user = store.get(user_id)
    if user is None:
        raise UserNotFound()
    return UserResponse.model_validate(user, from_attributes=True)

def update_profile(session: Session, store: CredentialStore, user_id: int, update_data: ProfileUpdate) -> UserResponse:
    with unit_of_work(session):
        user = store.update_fields(user_id, update_data)
        profile = UserResponse.model_validate(user, from_attributes=True)
    return profile

def delete_account(session: Session, store: CredentialStore, ledger: TokenLedger, user_id: int) -> None:
    """
    Deletes the user and every refresh token it owns in one transaction.
    """
    with unit_of_work(session):
        ledger.remove_for_user(user_id)
        if not store.delete(user_id):
            raise UserNotFound()
