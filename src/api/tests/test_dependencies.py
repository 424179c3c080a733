"""Unit tests for API dependencies: repository and identity-provider wiring.

- 503 when MongoDB client is None
- Correct database name is used
- get_identity_provider() resolves the path segment to a configured adapter
"""

import os
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi import HTTPException

from adapter.external.github_oauth import GitHubOAuthAdapter
from adapter.external.google_oauth import GoogleOAuthAdapter
from adapter.mongodb.user_repository import MongoUserRepository
from api.dependencies import DATABASE_NAME, get_identity_provider, get_optional_user_repo, get_user_repo

GOOGLE_ENV = {
    'GOOGLE_CLIENT_ID': 'client-id',
    'GOOGLE_CLIENT_SECRET': 'client-secret',
    'GOOGLE_CALLBACK_URL': 'https://api.example.com/api/v1/auth/google/callback',
}


class TestGetUserRepo(unittest.IsolatedAsyncioTestCase):

    @patch('api.dependencies.get_mongodb_client', new_callable=AsyncMock)
    async def test_returns_mongo_repository_when_connected(self, mock_get_client):
        mock_client = MagicMock()
        mock_get_client.return_value = mock_client

        repo = await get_user_repo()

        self.assertIsInstance(repo, MongoUserRepository)
        mock_client.__getitem__.assert_called_with(DATABASE_NAME)

    @patch('api.dependencies.get_mongodb_client', new_callable=AsyncMock)
    async def test_raises_503_when_mongodb_unavailable(self, mock_get_client):
        mock_get_client.return_value = None

        with self.assertRaises(HTTPException) as context:
            await get_user_repo()

        self.assertEqual(context.exception.status_code, 503)
        self.assertEqual(context.exception.detail, "Database unavailable")

    @patch('api.dependencies.get_mongodb_client', new_callable=AsyncMock)
    async def test_optional_repo_is_none_when_mongodb_unavailable(self, mock_get_client):
        mock_get_client.return_value = None
        self.assertIsNone(await get_optional_user_repo())

    @patch('api.dependencies.get_mongodb_client', new_callable=AsyncMock)
    async def test_optional_repo_when_connected(self, mock_get_client):
        mock_get_client.return_value = MagicMock()
        self.assertIsInstance(await get_optional_user_repo(), MongoUserRepository)


class TestGetIdentityProvider(unittest.TestCase):

    @patch.dict(os.environ, GOOGLE_ENV)
    def test_resolves_configured_google(self):
        adapter = get_identity_provider('google')
        self.assertIsInstance(adapter, GoogleOAuthAdapter)
        self.assertEqual(adapter.client_id, 'client-id')

    @patch.dict(os.environ, {'GITHUB_CLIENT_ID': '', 'GITHUB_CLIENT_SECRET': '', 'GITHUB_CALLBACK_URL': ''})
    def test_unconfigured_provider_is_503(self):
        with self.assertRaises(HTTPException) as context:
            get_identity_provider('github')

        self.assertEqual(context.exception.status_code, 503)
        self.assertIn('GitHub', context.exception.detail)

    def test_unknown_provider_is_404(self):
        with self.assertRaises(HTTPException) as context:
            get_identity_provider('local')
        self.assertEqual(context.exception.status_code, 404)

    def test_github_adapter_is_registered(self):
        env = {
            'GITHUB_CLIENT_ID': 'id',
            'GITHUB_CLIENT_SECRET': 'secret',
            'GITHUB_CALLBACK_URL': 'https://api.example.com/api/v1/auth/github/callback',
        }
        with patch.dict(os.environ, env):
            self.assertIsInstance(get_identity_provider('github'), GitHubOAuthAdapter)


if __name__ == '__main__':
    unittest.main()
