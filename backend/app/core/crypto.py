from passlib.context import CryptContext

from .settings import Settings


class PasswordHasher:
    """
    One-way salted password hashing (argon2 through passlib).
    A server-side pepper is appended before hashing and verifying.
    """

    def __init__(self, settings: Settings):
        self._pepper = settings.PASSWORD_PEPPER
        self._context = CryptContext(
            schemes=["argon2"],
            deprecated="auto",
            argon2__time_cost=settings.ARGON2_TIME_COST,
            argon2__memory_cost=settings.ARGON2_MEMORY_COST,
            argon2__parallelism=settings.ARGON2_PARALLELISM,
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password + self._pepper)

    def verify(self, password: str, hashed_password: str | None) -> bool:
        if not hashed_password:
            return False
        try:
            return self._context.verify(password + self._pepper, hashed_password)
        except ValueError:
            # Stored value is not a hash this context understands
            return False
