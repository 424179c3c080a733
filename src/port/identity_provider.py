"""Identity provider port: exchanges an OAuth authorization code for a verified profile."""

from typing import Protocol

from domain.model.user import AuthProvider, OAuthProfile


class IdentityProviderPort(Protocol):
    provider: AuthProvider

    def authorization_url(self, state: str) -> str:
        """URL the browser is redirected to for consent."""
        ...

    async def fetch_profile(self, code: str) -> OAuthProfile:
        """Exchange `code` and return the verified profile.

        Raises AuthenticationError when the exchange fails or the provider
        does not return a verifiable email.
        """
        ...
