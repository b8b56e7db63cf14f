"""Persistence of user records and the email/password check that gates token issuance."""

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..core.crypto import PasswordHasher
from ..core.database import utcnow
from ..core.errors import DuplicateEmail, UserNotFound, NoUpdateFields
from ..models.User import User, ProfileUpdate


class CredentialStore:
    """
    Owns the users table. Writes are flushed, never committed: the calling
    service decides the transaction boundary.
    """

    def __init__(self, session: Session, hasher: PasswordHasher):
        self.session = session
        self.hasher = hasher

    def find_by_email(self, email: str) -> User | None:
        statement = select(User).where(User.email == email.strip().lower())
        return self.session.exec(statement).first()

    def get(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def hash_password(self, password: str) -> str:
        return self.hasher.hash(password)

    def verify_password(self, password: str, stored_hash: str | None) -> bool:
        return self.hasher.verify(password, stored_hash)

    def create(self, email: str, password_hash: str, name: str | None = None, bio: str | None = None) -> int:
        email = email.strip().lower()
        if self.find_by_email(email) is not None:
            raise DuplicateEmail()

        now = utcnow()
        user = User(
            email=email,
            password_hash=password_hash,
            name=name,
            bio=bio,
            created_at=now,
            updated_at=now,
        )
        self.session.add(user)
        try:
            self.session.flush()
        except IntegrityError as exc:
            # Lost a race against a concurrent registration of the same email
            self.session.rollback()
            raise DuplicateEmail() from exc
        return user.id

    def update_fields(self, user_id: int, changes: ProfileUpdate) -> User:
        fields = changes.changes()
        if not fields:
            raise NoUpdateFields()

        user = self.get(user_id)
        if user is None:
            raise UserNotFound()

        new_email = fields.get("email")
        if new_email is not None and new_email != user.email:
            statement = select(User.id).where(User.email == new_email, User.id != user_id)
            if self.session.exec(statement).first() is not None:
                raise DuplicateEmail("Email address is already in use by another user")

        changes.apply_to(user)
        user.updated_at = utcnow()
        self.session.add(user)
        try:
            self.session.flush()
        except IntegrityError as exc:
            self.session.rollback()
            raise DuplicateEmail("Email address is already in use by another user") from exc
        return user

    def delete(self, user_id: int) -> bool:
        user = self.get(user_id)
        if user is None:
            return False

        # refresh_tokens rows go with it through ON DELETE CASCADE
        self.session.delete(user)
        self.session.flush()
        return True
