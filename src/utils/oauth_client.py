"""Google OAuth 2.0 authorization-code client.

Builds the consent redirect, exchanges the returned code for an access
token and fetches the signed-in user's profile.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import requests

from config import AuthSettings
from core.exceptions import AuthError

logger = logging.getLogger(__name__)

GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
REQUEST_TIMEOUT_SECONDS = 10


@dataclass
class GoogleProfile:
    google_id: str
    email: Optional[str]
    name: Optional[str]


class GoogleOAuthClient:
    """Talks to Google's OAuth endpoints on behalf of the API."""

    def __init__(self, settings: AuthSettings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session or requests.Session()

    def _require_configured(self) -> None:
        if not self.settings.google_enabled:
            raise AuthError("Google login is not configured")

    def authorization_url(self, state: str) -> str:
        """Return the consent-screen URL the browser is redirected to."""
        self._require_configured()
        params = {
            "client_id": self.settings.google_client_id,
            "redirect_uri": self.settings.google_redirect_uri,
            "response_type": "code",
            "scope": "openid email profile",
            "prompt": "select_account",
            "state": state,
        }
        return f"{GOOGLE_AUTHORIZE_URL}?{urlencode(params)}"

    def fetch_profile(self, code: str) -> GoogleProfile:
        """Exchange an authorization code and return the user's profile.

        Raises:
            AuthError: If Google rejects the code or cannot be reached.
        """
        self._require_configured()
        try:
            token_response = self.session.post(
                GOOGLE_TOKEN_URL,
                data={
                    "code": code,
                    "client_id": self.settings.google_client_id,
                    "client_secret": self.settings.google_client_secret,
                    "redirect_uri": self.settings.google_redirect_uri,
                    "grant_type": "authorization_code",
                },
                timeout=REQUEST_TIMEOUT_SECONDS,
            )
            token_response.raise_for_status()
            access_token = token_response.json()["access_token"]

            userinfo_response = self.session.get(
                GOOGLE_USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=REQUEST_TIMEOUT_SECONDS,
            )
            userinfo_response.raise_for_status()
            info = userinfo_response.json()
        except (requests.RequestException, KeyError, ValueError) as e:
            logger.error("Google OAuth exchange failed: %s", e)
            raise AuthError("Google authentication failed") from e

        if not info.get("sub"):
            logger.error("Google userinfo response missing 'sub'")
            raise AuthError("Google authentication failed")
        return GoogleProfile(
            google_id=info["sub"],
            email=info.get("email") if info.get("email_verified", True) else None,
            name=info.get("name"),
        )
