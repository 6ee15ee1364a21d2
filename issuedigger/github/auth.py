"""GitHub App installation authentication.

An app authenticates as itself with a short-lived RS256 JWT and exchanges
it for an installation access token, which is what API calls use. Tokens
are valid for an hour and cached until shortly before they expire.
"""

import asyncio
import time
from datetime import datetime

import httpx
import jwt

from issuedigger.exceptions import ErrorCode, GitHubError
from issuedigger.logging_config import get_logger

logger = get_logger(__name__)

# GitHub rejects JWTs valid for more than ten minutes; backdate for clock drift.
JWT_BACKDATE_SECONDS = 60
JWT_LIFETIME_SECONDS = 600
TOKEN_REFRESH_MARGIN_SECONDS = 60


def create_app_jwt(app_id: int, private_key: str, now: float | None = None) -> str:
    """Sign a JWT identifying the app itself."""
    issued_at = int(now if now is not None else time.time())
    payload = {
        "iat": issued_at - JWT_BACKDATE_SECONDS,
        "exp": issued_at + JWT_LIFETIME_SECONDS,
        "iss": str(app_id),
    }
    return jwt.encode(payload, private_key, algorithm="RS256")


class InstallationTokenProvider:
    """Fetches and caches the access token of one app installation."""

    def __init__(
        self,
        app_id: int,
        private_key: str,
        installation_id: int,
        client: httpx.AsyncClient,
        api_url: str = "https://api.github.com",
    ) -> None:
        self._app_id = app_id
        self._private_key = private_key
        self._installation_id = installation_id
        self._client = client
        self._api_url = api_url.rstrip("/")
        self._token: str | None = None
        self._expires_at: float = 0.0
        self._lock = asyncio.Lock()

    async def token(self) -> str:
        """A valid installation access token, refreshed when about to expire.

        Raises:
            GitHubError: If the token exchange fails.
        """
        async with self._lock:
            if self._token is None or time.time() >= self._expires_at - TOKEN_REFRESH_MARGIN_SECONDS:
                self._token = await self._refresh()
            return self._token

    async def _refresh(self) -> str:
        url = f"{self._api_url}/app/installations/{self._installation_id}/access_tokens"
        logger.info(
            "Requesting installation access token",
            extra={"app_id": self._app_id, "installation_id": self._installation_id},
        )

        try:
            app_jwt = create_app_jwt(self._app_id, self._private_key)
        except (ValueError, jwt.PyJWTError) as e:
            raise GitHubError(
                f"Cannot sign app JWT, is the private key valid? {e}",
                code=ErrorCode.GITHUB_AUTH_ERROR,
            ) from e

        try:
            response = await self._client.post(
                url,
                headers={
                    "Authorization": f"Bearer {app_jwt}",
                    "Accept": "application/vnd.github+json",
                },
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise GitHubError(
                f"Installation token request returned {e.response.status_code}",
                code=ErrorCode.GITHUB_AUTH_ERROR,
                details={"installation_id": self._installation_id},
            ) from e
        except httpx.RequestError as e:
            raise GitHubError(
                f"Failed to connect to GitHub: {e}",
                code=ErrorCode.GITHUB_AUTH_ERROR,
                details={"url": url},
            ) from e

        try:
            data = response.json()
            token = str(data["token"])
            expires_at = datetime.fromisoformat(data["expires_at"].replace("Z", "+00:00")).timestamp()
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise GitHubError(
                f"Invalid installation token response: {e}",
                code=ErrorCode.GITHUB_AUTH_ERROR,
            ) from e

        self._expires_at = expires_at
        return token
