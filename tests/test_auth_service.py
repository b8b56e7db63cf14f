import threading
import unittest
from datetime import timedelta

from sqlmodel import select

from backend.app.core.database import as_utc, utcnow
from backend.app.core.errors import ApiError, DuplicateEmail, InvalidCredentials, InvalidRefreshToken
from backend.app.models.RefreshToken import RefreshToken
from backend.app.models.User import RegisterRequest, User, UserResponse
from backend.app.user.service import delete_account
from tests.support import DatabaseTestCase


class TestAuthSessionService(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.service = self.make_service()

    def _register(self, email="x@y.com", password="Passw0rd", name="Xi", bio="hi"):
        return self.service.register(RegisterRequest(email=email, password=password, name=name, bio=bio))

    def _token_count(self) -> int:
        return len(self.session.exec(select(RefreshToken)).all())

    def test_register_returns_user_and_tokens(self):
        result = self._register()

        self.assertEqual(result.user.email, "x@y.com")
        self.assertEqual(result.user.name, "Xi")
        self.assertEqual(result.user.bio, "hi")
        self.assertTrue(result.tokens.access_token)
        self.assertTrue(result.tokens.refresh_token)
        self.assertEqual(self.issuer.verify_access_token(result.tokens.access_token), result.user.id)
        self.assertTrue(self.make_ledger().is_valid(result.tokens.refresh_token))

    def test_register_persists_utc_timestamps(self):
        result = self._register()

        self.assertEqual(result.user.created_at.utcoffset(), timedelta(0))
        self.session.expire_all()
        record = self.session.exec(select(RefreshToken).where(RefreshToken.token == result.tokens.refresh_token)).one()
        lifetime = as_utc(record.expires_at) - as_utc(record.created_at)
        self.assertEqual(lifetime, timedelta(days=7))
        reloaded = UserResponse.model_validate(self.session.get(User, result.user.id), from_attributes=True)
        self.assertEqual(reloaded.created_at.utcoffset(), timedelta(0))

    def test_register_same_email_twice(self):
        self._register()
        with self.assertRaises(DuplicateEmail):
            self._register(name="Other")
        self.assertEqual(len(self.session.exec(select(User)).all()), 1)

    def test_success_payloads_never_expose_password_hash(self):
        registered = self._register()
        logged_in = self.service.login("x@y.com", "Passw0rd")

        for result in (registered, logged_in):
            dumped = result.model_dump(by_alias=True)
            self.assertNotIn("password_hash", dumped["user"])
            self.assertNotIn("password", dumped["user"])

    def test_login_round_trip(self):
        self._register(email="a@b.com", password="Secret123")

        result = self.service.login("a@b.com", "Secret123")
        self.assertEqual(result.user.email, "a@b.com")
        self.assertTrue(self.make_ledger().is_valid(result.tokens.refresh_token))

    def test_login_failures_are_indistinguishable(self):
        self._register(email="a@b.com", password="Secret123")

        with self.assertRaises(InvalidCredentials) as wrong_password:
            self.service.login("a@b.com", "Secret124")
        with self.assertRaises(InvalidCredentials) as unknown_user:
            self.service.login("nobody@b.com", "Secret123")

        self.assertEqual(wrong_password.exception.detail, unknown_user.exception.detail)
        self.assertEqual(wrong_password.exception.status_code, unknown_user.exception.status_code)

    def test_failed_login_stores_nothing(self):
        self._register()
        count = self._token_count()
        with self.assertRaises(InvalidCredentials):
            self.service.login("x@y.com", "wrong")
        self.assertEqual(self._token_count(), count)

    def test_refresh_rotates_token(self):
        token_a = self._register().tokens.refresh_token

        token_b = self.service.refresh(token_a).tokens.refresh_token

        self.assertNotEqual(token_a, token_b)
        ledger = self.make_ledger()
        self.assertFalse(ledger.is_valid(token_a))
        self.assertTrue(ledger.is_valid(token_b))
        with self.assertRaises(InvalidRefreshToken):
            self.service.refresh(token_a)

    def test_refresh_new_access_token_identifies_user(self):
        result = self._register()
        rotation = self.service.refresh(result.tokens.refresh_token)
        self.assertEqual(rotation.user_id, result.user.id)
        self.assertEqual(self.issuer.verify_access_token(rotation.tokens.access_token), result.user.id)

    def test_refresh_with_garbage(self):
        with self.assertRaises(InvalidRefreshToken):
            self.service.refresh("garbage")

    def test_refresh_with_access_token(self):
        result = self._register()
        with self.assertRaises(InvalidRefreshToken):
            self.service.refresh(result.tokens.access_token)

    def test_refresh_requires_ledger_record(self):
        result = self._register()
        # Well signed, but never stored
        unknown = self.issuer.issue_refresh_token(result.user.id)
        with self.assertRaises(InvalidRefreshToken):
            self.service.refresh(unknown)

    def test_refresh_requires_valid_signature(self):
        result = self._register()
        forged = "not.a.jwt"
        self.make_ledger().store(forged, result.user.id)
        self.session.commit()

        with self.assertRaises(InvalidRefreshToken):
            self.service.refresh(forged)
        # The failed attempt must not consume the record
        self.assertTrue(self.make_ledger().is_valid(forged))

    def test_refresh_rejects_expired_ledger_record(self):
        result = self._register()
        token = self.issuer.issue_refresh_token(result.user.id)
        self.make_ledger().store(token, result.user.id, issued_at=utcnow() - timedelta(days=8))
        self.session.commit()

        with self.assertRaises(InvalidRefreshToken):
            self.service.refresh(token)

    def test_logout_is_idempotent(self):
        token = self._register().tokens.refresh_token

        self.assertEqual(self.service.logout(token), 1)
        self.assertEqual(self.service.logout(token), 0)
        self.assertEqual(self.service.logout(None), 0)
        self.assertEqual(self.service.logout(""), 0)
        with self.assertRaises(InvalidRefreshToken):
            self.service.refresh(token)

    def test_account_deletion_invalidates_refresh_tokens(self):
        result = self._register()
        second = self.service.login("x@y.com", "Passw0rd")

        delete_account(self.session, self.make_store(), self.make_ledger(), result.user.id)

        self.assertEqual(self._token_count(), 0)
        for token in (result.tokens.refresh_token, second.tokens.refresh_token):
            with self.assertRaises(InvalidRefreshToken):
                self.service.refresh(token)

    def test_concurrent_refresh_has_one_winner(self):
        token = self._register().tokens.refresh_token
        barrier = threading.Barrier(2)
        outcomes = []

        def attempt():
            with self.database.session() as session:
                service = self.make_service(session)
                barrier.wait()
                try:
                    service.refresh(token)
                    outcomes.append("ok")
                except ApiError as exc:
                    outcomes.append(exc.code)

        threads = [threading.Thread(target=attempt) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        self.assertEqual(sorted(outcomes), ["INVALID_REFRESH_TOKEN", "ok"])


if __name__ == "__main__":
    unittest.main()
