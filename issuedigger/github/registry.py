"""Per-installation registry of authenticated GitHub clients."""

from collections.abc import Callable

import httpx

from issuedigger.config import GitHubSettings, get_settings
from issuedigger.github.client import GitHubClient
from issuedigger.logging_config import get_logger

logger = get_logger(__name__)


class GitHubClientRegistry:
    """Creates one client per installation on first use and keeps it for the run.

    All clients share one HTTP connection pool, owned by the registry.
    """

    def __init__(
        self,
        settings: GitHubSettings | None = None,
        factory: Callable[[int], GitHubClient] | None = None,
    ) -> None:
        self._settings = settings or get_settings().github
        self._http: httpx.AsyncClient | None = None
        self._factory = factory or self._create
        self._clients: dict[int, GitHubClient] = {}

    def _create(self, installation_id: int) -> GitHubClient:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self._settings.timeout)
        return GitHubClient(installation_id, settings=self._settings, client=self._http)

    def __len__(self) -> int:
        return len(self._clients)

    def get(self, installation_id: int) -> GitHubClient:
        """Client authenticated for `installation_id`."""
        client = self._clients.get(installation_id)
        if client is None:
            logger.info(
                "Creating GitHub client",
                extra={"app_id": self._settings.id, "installation_id": installation_id},
            )
            client = self._factory(installation_id)
            self._clients[installation_id] = client
        return client

    async def close(self) -> None:
        """Release the shared connection pool."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None
        self._clients.clear()
