"""Tests for bcrypt password hashing."""

import unittest

from services import password_hasher


class TestPasswordHasher(unittest.IsolatedAsyncioTestCase):

    async def test_default_cost_is_twelve(self):
        self.assertEqual(password_hasher.BCRYPT_ROUNDS, 12)
        hashed = await password_hasher.hash_password('Password1')
        self.assertTrue(hashed.startswith('$2b$12$'))

    async def test_verify_round_trip(self):
        hashed = await password_hasher.hash_password('Password1')
        self.assertTrue(await password_hasher.verify_password('Password1', hashed))
        self.assertFalse(await password_hasher.verify_password('Password2', hashed))

    async def test_same_password_hashes_differently(self):
        first = await password_hasher.hash_password('Password1')
        second = await password_hasher.hash_password('Password1')
        self.assertNotEqual(first, second)

    async def test_over_long_password_never_verifies(self):
        hashed = await password_hasher.hash_password('Password1')
        over_limit = 'Aa' + '\U0001F600' * 18

        self.assertEqual(len(over_limit), 20)
        self.assertTrue(password_hasher.exceeds_length_limit(over_limit))
        self.assertFalse(await password_hasher.verify_password(over_limit, hashed))

    def test_length_limit_counts_bytes(self):
        self.assertFalse(password_hasher.exceeds_length_limit('a' * 72))
        self.assertTrue(password_hasher.exceeds_length_limit('a' * 73))
        self.assertTrue(password_hasher.exceeds_length_limit('\u00e9' * 37))


if __name__ == '__main__':
    unittest.main()
