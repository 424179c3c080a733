"""Unit tests for FakeUserRepository: verifies Port contract compliance."""

import unittest
from datetime import datetime, timedelta, timezone

from adapter.fake.user_repository import FakeUserRepository
from domain.model.errors import UniqueViolationError
from domain.model.user import AuthProvider, User, UserCredentials


class TestFakeUserRepository(unittest.IsolatedAsyncioTestCase):
    """Tests that FakeUserRepository correctly implements the UserRepository Protocol."""

    def setUp(self):
        self.repo = FakeUserRepository()
        self.now = datetime.now(timezone.utc)

    # ── create ────────────────────────────────────────────────

    async def test_create_local_user(self):
        user = await self.repo.create(email='a@example.com', password_hash='hash')

        self.assertIsInstance(user, User)
        self.assertEqual(user.email, 'a@example.com')
        self.assertEqual(user.provider, AuthProvider.LOCAL)
        self.assertIsNone(user.provider_id)
        self.assertFalse(hasattr(user, 'password_hash'))

    async def test_create_duplicate_email_raises(self):
        await self.repo.create(email='a@example.com', password_hash='hash')
        with self.assertRaises(UniqueViolationError):
            await self.repo.create(email='a@example.com', password_hash='other')

    async def test_create_duplicate_provider_identity_raises(self):
        await self.repo.create(email='a@example.com', provider=AuthProvider.GOOGLE, provider_id='g-1')
        with self.assertRaises(UniqueViolationError):
            await self.repo.create(email='b@example.com', provider=AuthProvider.GOOGLE, provider_id='g-1')

    async def test_same_provider_id_on_different_providers_allowed(self):
        await self.repo.create(email='a@example.com', provider=AuthProvider.GOOGLE, provider_id='42')
        user = await self.repo.create(email='b@example.com', provider=AuthProvider.GITHUB, provider_id='42')
        self.assertEqual(user.provider, AuthProvider.GITHUB)

    # ── views ─────────────────────────────────────────────────

    async def test_public_and_privileged_views(self):
        created = await self.repo.create(email='a@example.com', password_hash='hash')

        public = await self.repo.get_by_email('a@example.com')
        privileged = await self.repo.get_credentials_by_email('a@example.com')

        self.assertEqual(public, created)
        self.assertIsInstance(privileged, UserCredentials)
        self.assertEqual(privileged.password_hash, 'hash')
        self.assertEqual(privileged.reset.attempts, 0)

    async def test_email_lookup_is_case_sensitive(self):
        await self.repo.create(email='a@example.com', password_hash='hash')
        self.assertIsNone(await self.repo.get_by_email('A@example.com'))

    async def test_returned_objects_are_copies(self):
        created = await self.repo.create(email='a@example.com', password_hash='hash')
        created.email = 'mutated@example.com'
        self.assertIsNotNone(await self.repo.get_by_email('a@example.com'))

    async def test_get_by_provider(self):
        created = await self.repo.create(email='a@example.com', provider=AuthProvider.GITHUB, provider_id='7')
        self.assertEqual(await self.repo.get_by_provider(AuthProvider.GITHUB, '7'), created)
        self.assertIsNone(await self.repo.get_by_provider(AuthProvider.GOOGLE, '7'))

    # ── reset fields ──────────────────────────────────────────

    async def test_reset_token_lookup_respects_expiry(self):
        user = await self.repo.create(email='a@example.com', password_hash='hash')
        await self.repo.save_reset_request(
            user.id, 'h1', self.now + timedelta(minutes=30), 1, self.now,
        )

        self.assertIsNotNone(await self.repo.get_credentials_by_reset_token('h1', self.now))
        self.assertIsNone(
            await self.repo.get_credentials_by_reset_token('h1', self.now + timedelta(minutes=31))
        )
        self.assertIsNone(await self.repo.get_credentials_by_reset_token('other', self.now))

    async def test_complete_password_reset_clears_fields_once(self):
        user = await self.repo.create(email='a@example.com', password_hash='old')
        await self.repo.save_reset_request(user.id, 'h1', self.now + timedelta(minutes=30), 3, self.now)

        self.assertTrue(await self.repo.complete_password_reset(user.id, 'h1', 'new'))
        self.assertFalse(await self.repo.complete_password_reset(user.id, 'h1', 'newer'))

        record = await self.repo.get_credentials_by_email('a@example.com')
        self.assertEqual(record.password_hash, 'new')
        self.assertIsNone(record.reset.token_hash)
        self.assertIsNone(record.reset.expires_at)
        self.assertEqual(record.reset.attempts, 0)

    async def test_save_reset_request_unknown_user(self):
        self.assertFalse(
            await self.repo.save_reset_request('missing', 'h', self.now, 1, self.now)
        )


if __name__ == '__main__':
    unittest.main()
