import unittest
from datetime import timedelta

from sqlmodel import select

from backend.app.core.database import as_utc, utcnow
from backend.app.core.errors import DuplicateToken
from backend.app.models.RefreshToken import RefreshToken
from tests.support import DatabaseTestCase


class TestTokenLedger(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.store = self.make_store()
        self.ledger = self.make_ledger()
        self.user_id = self.store.create("ledger@example.com", self.store.hash_password("Secret123"))
        self.session.commit()

    def test_store_sets_seven_day_expiry(self):
        before = utcnow()
        record_id = self.ledger.store("token-a", self.user_id)
        self.session.commit()

        record = self.session.get(RefreshToken, record_id)
        self.assertEqual(record.user_id, self.user_id)
        self.assertGreaterEqual(as_utc(record.expires_at), before + timedelta(days=7))
        self.assertLessEqual(as_utc(record.expires_at), utcnow() + timedelta(days=7))

    def test_is_valid_requires_existing_record(self):
        self.ledger.store("token-a", self.user_id)
        self.session.commit()

        self.assertTrue(self.ledger.is_valid("token-a"))
        self.assertFalse(self.ledger.is_valid("token-b"))
        self.assertFalse(self.ledger.is_valid(""))

    def test_expired_record_is_not_valid_even_with_good_signature(self):
        token = self.issuer.issue_refresh_token(self.user_id)
        self.ledger.store(token, self.user_id, issued_at=utcnow() - timedelta(days=8))
        self.session.commit()

        self.assertEqual(self.issuer.verify_refresh_token(token), self.user_id)
        self.assertFalse(self.ledger.is_valid(token))

    def test_naive_issue_time_is_read_as_utc(self):
        issued_at = utcnow() - timedelta(days=1)
        self.ledger.store("naive", self.user_id, issued_at=issued_at.replace(tzinfo=None))
        self.session.commit()

        record = self.ledger.find("naive")
        self.assertEqual(as_utc(record.expires_at), issued_at + timedelta(days=7))
        self.assertTrue(self.ledger.is_valid("naive"))

    def test_remove_is_idempotent(self):
        self.ledger.store("token-a", self.user_id)
        self.session.commit()

        self.assertEqual(self.ledger.remove("token-a"), 1)
        self.session.commit()
        self.assertEqual(self.ledger.remove("token-a"), 0)
        self.assertEqual(self.ledger.remove("never-stored"), 0)
        self.assertFalse(self.ledger.is_valid("token-a"))

    def test_duplicate_token_is_reported(self):
        self.ledger.store("token-a", self.user_id)
        self.session.commit()

        with self.assertRaises(DuplicateToken):
            self.ledger.store("token-a", self.user_id)

    def test_consume_succeeds_once(self):
        self.ledger.store("token-a", self.user_id)
        self.session.commit()

        self.assertEqual(self.ledger.consume("token-a"), 1)
        self.assertEqual(self.ledger.consume("token-a"), 0)

    def test_consume_ignores_expired_record(self):
        self.ledger.store("old", self.user_id, issued_at=utcnow() - timedelta(days=30))
        self.session.commit()

        self.assertEqual(self.ledger.consume("old"), 0)

    def test_purge_expired_keeps_live_tokens(self):
        self.ledger.store("old-1", self.user_id, issued_at=utcnow() - timedelta(days=8))
        self.ledger.store("old-2", self.user_id, issued_at=utcnow() - timedelta(days=10))
        self.ledger.store("live", self.user_id)
        self.session.commit()

        self.assertEqual(self.ledger.purge_expired(), 2)
        self.session.commit()
        remaining = self.session.exec(select(RefreshToken.token)).all()
        self.assertEqual(remaining, ["live"])

    def test_remove_for_user(self):
        other_id = self.store.create("other@example.com", self.store.hash_password("Secret123"))
        self.ledger.store("mine-1", self.user_id)
        self.ledger.store("mine-2", self.user_id)
        self.ledger.store("theirs", other_id)
        self.session.commit()

        self.assertEqual(self.ledger.remove_for_user(self.user_id), 2)
        self.assertTrue(self.ledger.is_valid("theirs"))


if __name__ == "__main__":
    unittest.main()
