"""Tests for create_index_safe conflict replacement."""

import unittest
from unittest.mock import AsyncMock, MagicMock

from pymongo.errors import OperationFailure

from adapter.mongodb.indexes import INDEX_OPTIONS_CONFLICT, create_index_safe


class TestCreateIndexSafe(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.collection = MagicMock()
        self.collection.create_index = AsyncMock()
        self.collection.drop_index = AsyncMock()
        self.collection.index_information = AsyncMock(return_value={'_id_': {'key': [('_id', 1)]}})

    async def test_creates_index(self):
        self.assertTrue(await create_index_safe(self.collection, [('email', 1)], 'idx_users_email', unique=True))
        self.collection.drop_index.assert_not_awaited()

    async def test_replaces_non_unique_index_with_same_name(self):
        self.collection.create_index.side_effect = [
            OperationFailure('Index with name: idx_users_email already exists', code=INDEX_OPTIONS_CONFLICT),
            'idx_users_email',
        ]
        self.collection.index_information.return_value = {
            '_id_': {'key': [('_id', 1)]},
            'idx_users_email': {'key': [('email', 1)]},
        }

        result = await create_index_safe(self.collection, [('email', 1)], 'idx_users_email', unique=True)

        self.assertTrue(result)
        self.collection.drop_index.assert_awaited_once_with('idx_users_email')
        self.assertEqual(self.collection.create_index.await_count, 2)

    async def test_replaces_same_keys_under_old_name(self):
        self.collection.create_index.side_effect = [
            OperationFailure('Index already exists with a different name', code=INDEX_OPTIONS_CONFLICT),
            'idx_users_email',
        ]
        self.collection.index_information.return_value = {
            'email_1': {'key': [('email', 1)], 'unique': True},
        }

        self.assertTrue(await create_index_safe(self.collection, [('email', 1)], 'idx_users_email', unique=True))
        self.collection.drop_index.assert_awaited_once_with('email_1')

    async def test_unresolvable_conflict_reports_failure(self):
        self.collection.create_index.side_effect = OperationFailure('conflict', code=INDEX_OPTIONS_CONFLICT)

        self.assertFalse(await create_index_safe(self.collection, [('email', 1)], 'idx_users_email', unique=True))
        self.collection.drop_index.assert_not_awaited()

    async def test_other_failures_propagate(self):
        self.collection.create_index.side_effect = OperationFailure('not authorized', code=13)

        with self.assertRaises(OperationFailure):
            await create_index_safe(self.collection, [('email', 1)], 'idx_users_email')


if __name__ == '__main__':
    unittest.main()
