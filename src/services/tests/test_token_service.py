"""Unit tests for token_service (dual-secret JWT issuance)."""

import os
import unittest
from unittest.mock import patch

from jose import JWTError, jwt

from domain.model.errors import ConfigurationError, InternalError
from services import token_service

ACCESS_SECRET = 'access-secret-for-tests'
REFRESH_SECRET = 'refresh-secret-for-tests'
SECRETS = {'JWT_ACCESS_SECRET': ACCESS_SECRET, 'JWT_REFRESH_SECRET': REFRESH_SECRET}


class TestGenerateTokens(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        env = patch.dict(os.environ, SECRETS)
        env.start()
        self.addCleanup(env.stop)

    async def test_tokens_carry_subject(self):
        tokens = await token_service.generate_tokens({'sub': 'user-1'})

        access = jwt.decode(tokens.access_token, ACCESS_SECRET, algorithms=['HS256'])
        refresh = jwt.decode(tokens.refresh_token, REFRESH_SECRET, algorithms=['HS256'])
        self.assertEqual(access['sub'], 'user-1')
        self.assertEqual(refresh['sub'], 'user-1')

    async def test_lifetimes(self):
        tokens = await token_service.generate_tokens({'sub': 'user-1'})

        access = jwt.decode(tokens.access_token, ACCESS_SECRET, algorithms=['HS256'])
        refresh = jwt.decode(tokens.refresh_token, REFRESH_SECRET, algorithms=['HS256'])
        self.assertEqual(access['exp'] - access['iat'], 24 * 60 * 60)
        self.assertEqual(refresh['exp'] - refresh['iat'], 7 * 24 * 60 * 60)

    async def test_refresh_token_does_not_verify_under_access_secret(self):
        tokens = await token_service.generate_tokens({'sub': 'user-1'})

        with self.assertRaises(JWTError):
            jwt.decode(tokens.refresh_token, ACCESS_SECRET, algorithms=['HS256'])
        with self.assertRaises(JWTError):
            jwt.decode(tokens.access_token, REFRESH_SECRET, algorithms=['HS256'])
        self.assertIsNone(token_service.verify_access_token(tokens.refresh_token))
        self.assertIsNone(token_service.verify_refresh_token(tokens.access_token))

    async def test_verify_helpers_accept_matching_tokens(self):
        tokens = await token_service.generate_tokens({'sub': 'user-1'})
        self.assertEqual(token_service.verify_access_token(tokens.access_token)['sub'], 'user-1')
        self.assertEqual(token_service.verify_refresh_token(tokens.refresh_token)['sub'], 'user-1')

    async def test_garbage_token_rejected(self):
        self.assertIsNone(token_service.verify_access_token('not-a-jwt'))

    async def test_token_without_subject_rejected(self):
        token = jwt.encode({'role': 'admin'}, ACCESS_SECRET, algorithm='HS256')
        self.assertIsNone(token_service.verify_access_token(token))

    async def test_missing_refresh_secret_fails_fast(self):
        with patch.dict(os.environ, {'JWT_REFRESH_SECRET': ''}):
            with self.assertRaises(ConfigurationError) as ctx:
                await token_service.generate_tokens({'sub': 'user-1'})
        self.assertIsInstance(ctx.exception, InternalError)
        self.assertEqual(str(ctx.exception), 'JWT configuration error')

    async def test_missing_access_secret_fails_fast(self):
        env = {k: v for k, v in os.environ.items() if k != 'JWT_ACCESS_SECRET'}
        with patch.dict(os.environ, env, clear=True):
            with self.assertRaises(ConfigurationError):
                await token_service.generate_tokens({'sub': 'user-1'})

    async def test_signing_failure_is_internal(self):
        with patch('services.token_service.jwt.encode', side_effect=RuntimeError('bad key')):
            with self.assertRaises(InternalError) as ctx:
                await token_service.generate_tokens({'sub': 'user-1'})
        self.assertEqual(str(ctx.exception), 'Token generation failed')


if __name__ == '__main__':
    unittest.main()
