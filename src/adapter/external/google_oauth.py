"""Google identity provider (OpenID Connect userinfo)."""

import os

import httpx

from adapter.external.oauth_base import OAuthProviderAdapter
from domain.model.user import AuthProvider, OAuthProfile

GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"


class GoogleOAuthAdapter(OAuthProviderAdapter):
    provider = AuthProvider.GOOGLE
    authorize_url = "https://accounts.google.com/o/oauth2/v2/auth"
    token_url = "https://oauth2.googleapis.com/token"
    scope = "openid email profile"

    @classmethod
    def from_env(cls) -> "GoogleOAuthAdapter":
        return cls(
            client_id=os.getenv("GOOGLE_CLIENT_ID", ""),
            client_secret=os.getenv("GOOGLE_CLIENT_SECRET", ""),
            callback_url=os.getenv("GOOGLE_CALLBACK_URL", ""),
        )

    async def _load_profile(self, client: httpx.AsyncClient, access_token: str) -> OAuthProfile:
        info = await self._get_json(client, GOOGLE_USERINFO_URL, access_token)
        # An unverified address could belong to someone else
        email = info.get("email") if info.get("email_verified") else None
        return OAuthProfile(
            provider=self.provider,
            provider_id=str(info["sub"]),
            email=email or "",
            display_name=info.get("name"),
            avatar=info.get("picture"),
        )
