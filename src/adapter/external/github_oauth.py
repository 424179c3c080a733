"""GitHub identity provider.

GitHub's /user payload only carries the public email, so the primary
verified address is read from /user/emails.
"""

import os

import httpx

from adapter.external.oauth_base import OAuthProviderAdapter
from domain.model.user import AuthProvider, OAuthProfile

GITHUB_API_URL = "https://api.github.com"


def _primary_verified_email(emails: list[dict]) -> str | None:
    verified = [e for e in emails if e.get("verified") and e.get("email")]
    for entry in verified:
        if entry.get("primary"):
            return entry["email"]
    return verified[0]["email"] if verified else None


class GitHubOAuthAdapter(OAuthProviderAdapter):
    provider = AuthProvider.GITHUB
    authorize_url = "https://github.com/login/oauth/authorize"
    token_url = "https://github.com/login/oauth/access_token"
    scope = "read:user user:email"

    @property
    def display_name(self) -> str:
        return "GitHub"

    @classmethod
    def from_env(cls) -> "GitHubOAuthAdapter":
        return cls(
            client_id=os.getenv("GITHUB_CLIENT_ID", ""),
            client_secret=os.getenv("GITHUB_CLIENT_SECRET", ""),
            callback_url=os.getenv("GITHUB_CALLBACK_URL", ""),
        )

    async def _load_profile(self, client: httpx.AsyncClient, access_token: str) -> OAuthProfile:
        info = await self._get_json(client, f"{GITHUB_API_URL}/user", access_token)
        emails = await self._get_json(client, f"{GITHUB_API_URL}/user/emails", access_token)
        email = _primary_verified_email(emails if isinstance(emails, list) else [])
        return OAuthProfile(
            provider=self.provider,
            provider_id=str(info["id"]),
            email=email or "",
            display_name=info.get("name") or info.get("login"),
            avatar=info.get("avatar_url"),
        )
