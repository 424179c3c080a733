"""Shared OAuth 2.0 authorization-code flow for identity provider adapters.

Subclasses supply the provider endpoints and turn the provider's user
payload into an OAuthProfile.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import urlencode

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from domain.model.errors import AuthenticationError
from domain.model.user import AuthProvider, OAuthProfile

logger = logging.getLogger(__name__)

API_TIMEOUT_SECONDS = 10.0


@retry(
    retry=retry_if_exception_type((httpx.TimeoutException, httpx.ConnectError)),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=4),
    reraise=True,
)
async def _request_with_retry(client: httpx.AsyncClient, method: str, url: str, **kwargs) -> httpx.Response:
    """Send a request with automatic retry on transient failures."""
    return await client.request(method, url, **kwargs)


class OAuthProviderAdapter(ABC):
    provider: AuthProvider
    authorize_url: str
    token_url: str
    scope: str

    def __init__(self, client_id: str, client_secret: str, callback_url: str):
        self.client_id = client_id
        self.client_secret = client_secret
        self.callback_url = callback_url

    @property
    def display_name(self) -> str:
        return self.provider.value.capitalize()

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret and self.callback_url)

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.callback_url,
            "response_type": "code",
            "scope": self.scope,
            "state": state,
        }
        return f"{self.authorize_url}?{urlencode(params)}"

    async def fetch_profile(self, code: str) -> OAuthProfile:
        try:
            async with httpx.AsyncClient(timeout=API_TIMEOUT_SECONDS) as client:
                access_token = await self._exchange_code(client, code)
                profile = await self._load_profile(client, access_token)
        except httpx.HTTPStatusError as e:
            logger.warning(
                "OAuth provider HTTP error",
                extra={"provider": self.provider.value, "status_code": e.response.status_code},
            )
            raise AuthenticationError(f"{self.display_name} authentication failed") from e
        except httpx.RequestError as e:
            logger.warning(
                "OAuth provider request error",
                extra={"provider": self.provider.value, "error_type": type(e).__name__},
            )
            raise AuthenticationError(f"{self.display_name} authentication failed") from e
        except ValueError as e:
            logger.warning("OAuth provider returned invalid JSON", extra={"provider": self.provider.value})
            raise AuthenticationError(f"{self.display_name} authentication failed") from e

        if not profile.email:
            raise AuthenticationError(f"Email not provided by {self.display_name}")
        return profile

    async def _exchange_code(self, client: httpx.AsyncClient, code: str) -> str:
        response = await _request_with_retry(
            client,
            "POST",
            self.token_url,
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "code": code,
                "redirect_uri": self.callback_url,
                "grant_type": "authorization_code",
            },
            headers={"Accept": "application/json"},
        )
        response.raise_for_status()
        access_token = response.json().get("access_token")
        if not access_token:
            logger.warning("OAuth token response without access_token", extra={"provider": self.provider.value})
            raise AuthenticationError(f"{self.display_name} authentication failed")
        return access_token

    async def _get_json(self, client: httpx.AsyncClient, url: str, access_token: str) -> Any:
        response = await _request_with_retry(
            client,
            "GET",
            url,
            headers={"Authorization": f"Bearer {access_token}", "Accept": "application/json"},
        )
        response.raise_for_status()
        return response.json()

    @abstractmethod
    async def _load_profile(self, client: httpx.AsyncClient, access_token: str) -> OAuthProfile:
        """Turn the provider's user payload into a profile."""
