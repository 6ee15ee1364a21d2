"""GitHub REST API client, authenticated as one app installation."""

from collections.abc import AsyncIterator
from typing import Any

import httpx

from issuedigger.config import GitHubSettings, get_settings
from issuedigger.exceptions import GitHubError
from issuedigger.github.auth import InstallationTokenProvider
from issuedigger.github.models import GitHubItem
from issuedigger.logging_config import get_logger
from issuedigger.queue.messages import ItemKind
from issuedigger.vectors.naming import RepositoryKey

logger = get_logger(__name__)

API_VERSION = "2022-11-28"


class GitHubClient:
    """The slice of the GitHub API the bot needs.

    Listings are lazy: pages are fetched only as the caller iterates.
    """

    def __init__(
        self,
        installation_id: int,
        settings: GitHubSettings | None = None,
        client: httpx.AsyncClient | None = None,
        token_provider: InstallationTokenProvider | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            installation_id: App installation to act as.
            settings: GitHub configuration.
            client: HTTP client, possibly shared between installations.
            token_provider: Token source override (for testing).
        """
        self._settings = settings or get_settings().github
        self._installation_id = installation_id
        self._client = client or httpx.AsyncClient(timeout=self._settings.timeout)
        self._owns_client = client is None
        self._api_url = self._settings.api_url.rstrip("/")
        self._tokens = token_provider or InstallationTokenProvider(
            app_id=self._settings.id,
            private_key=self._settings.private_key.get_secret_value(),
            installation_id=installation_id,
            client=self._client,
            api_url=self._api_url,
        )

    @property
    def installation_id(self) -> int:
        return self._installation_id

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _is_self(self, obj: dict[str, Any]) -> bool:
        app = obj.get("performed_via_github_app") or {}
        return app.get("id") == self._settings.id

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        if not url.startswith("http"):
            url = f"{self._api_url}{url}"

        headers = {
            "Authorization": f"Bearer {await self._tokens.token()}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
        }

        try:
            response = await self._client.request(method, url, headers=headers, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"GitHub request failed: {e.response.status_code}",
                extra={"method": method, "url": url},
            )
            raise GitHubError(
                f"GitHub returned {e.response.status_code}",
                details={"status_code": e.response.status_code, "url": url},
            ) from e
        except httpx.RequestError as e:
            raise GitHubError(
                f"Failed to connect to GitHub: {e}",
                details={"url": url},
            ) from e

        return response

    async def _paginate(self, path: str, params: dict[str, Any]) -> AsyncIterator[list[dict[str, Any]]]:
        """Yield pages of a listing, following `Link: rel="next"`."""
        url: str | None = path
        page_params: dict[str, Any] | None = {**params, "per_page": self._settings.per_page}

        while url is not None:
            response = await self._request("GET", url, params=page_params)
            yield response.json()

            # The next link already carries all query parameters.
            url = response.links.get("next", {}).get("url")
            page_params = None

    async def create_comment(self, repository: RepositoryKey, issue_number: int, body: str) -> dict[str, Any]:
        """Post a comment on an issue."""
        logger.debug(f"Posting issue comment at {repository}/{issue_number}")
        response = await self._request(
            "POST",
            f"/repos/{repository.owner}/{repository.name}/issues/{issue_number}/comments",
            json={"body": body},
        )
        return response.json()

    async def iter_user_comments(self, repository: RepositoryKey, issue_number: int) -> AsyncIterator[GitHubItem]:
        """All comments of an issue written by human users."""
        logger.debug(f"Fetching all comments for issue {repository}/{issue_number}")

        async for comments in self._paginate(
            f"/repos/{repository.owner}/{repository.name}/issues/{issue_number}/comments",
            {},
        ):
            for comment in comments:
                user = comment.get("user")
                if user is None or user.get("type") != "User":
                    # Bots and (weirdly) unknown users
                    continue

                yield GitHubItem(
                    kind=ItemKind.COMMENT,
                    id=comment["id"],
                    issue_number=issue_number,
                    title=None,
                    body=comment.get("body"),
                    repository=repository,
                    is_self_authored=self._is_self(comment),
                )

    async def iter_issues_with_comments(self, repository: RepositoryKey) -> AsyncIterator[GitHubItem]:
        """All issues of a repository, open and closed, each followed by its human comments."""
        logger.debug(f"Fetching all issues for repo {repository}")

        async for issues in self._paginate(
            f"/repos/{repository.owner}/{repository.name}/issues",
            {"state": "all"},
        ):
            for issue in issues:
                if "pull_request" in issue:
                    # Every pull request is an issue, but only issues are indexed.
                    continue

                yield GitHubItem(
                    kind=ItemKind.ISSUE,
                    id=issue["id"],
                    issue_number=issue["number"],
                    title=issue.get("title"),
                    body=issue.get("body"),
                    repository=repository,
                    is_self_authored=self._is_self(issue),
                )

                async for comment in self.iter_user_comments(repository, issue["number"]):
                    yield comment

    async def post_reaction(self, repository: RepositoryKey, comment_id: int, reaction: str = "+1") -> None:
        """React to an issue comment."""
        logger.debug(f"Posting reaction {reaction} to comment {repository}/{comment_id}")
        await self._request(
            "POST",
            f"/repos/{repository.owner}/{repository.name}/issues/comments/{comment_id}/reactions",
            json={"content": reaction},
        )
