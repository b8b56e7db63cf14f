import os
import tempfile
import unittest
from datetime import timedelta

from backend.app.auth.ledger import TokenLedger
from backend.app.auth.service import AuthSessionService
from backend.app.auth.tokens import TokenIssuer
from backend.app.core.crypto import PasswordHasher
from backend.app.core.database import Database
from backend.app.core.settings import Settings
from backend.app.user.store import CredentialStore


def make_settings(database_url: str, **overrides) -> Settings:
    values = {
        "DATABASE_URL": database_url,
        "JWT_ACCESS_SECRET": "unit-access-secret",
        "JWT_REFRESH_SECRET": "unit-refresh-secret",
        "ARGON2_TIME_COST": 1,
        "ARGON2_MEMORY_COST": 1024,
        "ARGON2_PARALLELISM": 1,
        "LOG_LEVEL": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


class DatabaseTestCase(unittest.TestCase):
    """
    Fresh SQLite file per test, with the components wired the way the API wires them.
    """

    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.settings = make_settings("sqlite:///" + os.path.join(self._tmpdir.name, "test.db"))
        self.database = Database(self.settings.DATABASE_URL).init()
        self.hasher = PasswordHasher(self.settings)
        self.issuer = TokenIssuer.from_settings(self.settings)
        self.session = self.database.session()

    def tearDown(self):
        self.session.close()
        self.database.dispose()
        self._tmpdir.cleanup()

    def make_store(self, session=None) -> CredentialStore:
        return CredentialStore(session or self.session, self.hasher)

    def make_ledger(self, session=None) -> TokenLedger:
        return TokenLedger(session or self.session, ttl=timedelta(days=self.settings.REFRESH_TOKEN_EXPIRE_DAYS))

    def make_service(self, session=None) -> AuthSessionService:
        session = session or self.session
        return AuthSessionService(session, self.make_store(session), self.issuer, self.make_ledger(session))
