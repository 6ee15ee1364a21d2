"""Classification of webhook events into work.

Routing keeps no state: what an event triggers depends only on the event
itself and static app configuration. The event is first reduced to a few
independent flags; trigger rules then combine them, and several rules may
fire for the same event.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from issuedigger.config import GitHubSettings
from issuedigger.exceptions import ErrorCode, ValidationError
from issuedigger.queue.messages import (
    IndexItem,
    ItemKind,
    Offboard,
    Onboard,
    PostComment,
    ReindexComments,
    WorkItem,
)
from issuedigger.vectors.naming import RepositoryKey

# Trailing words of app commands
DIG = "dig"
ONBOARD = "onboard"
OFFBOARD = "offboard"
REINDEX = "reindex"


@dataclass(frozen=True)
class RouterConfig:
    """Static configuration routing depends on."""

    app_slug: str
    app_id: int
    app_owner: str

    @classmethod
    def from_settings(cls, settings: GitHubSettings) -> "RouterConfig":
        return cls(app_slug=settings.slug, app_id=settings.id, app_owner=settings.owner)


def is_app_command(body: str, app_slug: str) -> bool:
    """Whether a comment body is directed at the app: `@<slug> ...`."""
    return body.lstrip().startswith(f"@{app_slug} ")


@dataclass(frozen=True)
class EventFlags:
    """Independent facts about one event."""

    is_issue_event: bool = False
    is_comment_event: bool = False
    is_app_command: bool = False
    is_install_event: bool = False
    is_uninstall_event: bool = False

    @property
    def is_relevant(self) -> bool:
        return (
            self.is_issue_event
            or self.is_comment_event
            or self.is_install_event
            or self.is_uninstall_event
        )


def classify(event_name: str, payload: dict[str, Any], config: RouterConfig) -> EventFlags:
    """Reduce an event to its flags."""
    action = payload.get("action")

    is_issue_event = event_name == "issues" and action in ("opened", "edited")
    is_comment_event = event_name == "issue_comment" and action in ("created", "edited")

    command = False
    if is_comment_event:
        body = (payload.get("comment") or {}).get("body") or ""
        command = is_app_command(body, config.app_slug)

    is_install_event = (event_name == "installation_repositories" and action == "added") or (
        event_name == "installation" and action == "created"
    )
    is_uninstall_event = (event_name == "installation_repositories" and action == "removed") or (
        event_name == "installation" and action == "deleted"
    )

    return EventFlags(
        is_issue_event=is_issue_event,
        is_comment_event=is_comment_event,
        is_app_command=command,
        is_install_event=is_install_event,
        is_uninstall_event=is_uninstall_event,
    )


class PlanStatus(str, Enum):
    """Overall result of planning an event."""

    NOOP = "noop"
    PROCESS = "process"


@dataclass(frozen=True)
class RoutingPlan:
    """Work derived from one event, before self-suppression is applied.

    Attributes:
        status: Whether the event is acted upon at all.
        flags: The classification the plan was derived from.
        messages: Work items to submit, in order.
        react_to_comment: Comment ID to acknowledge with a reaction.
        repository: Repository to react in.
    """

    status: PlanStatus
    flags: EventFlags
    messages: list[WorkItem] = field(default_factory=list)
    react_to_comment: int | None = None
    repository: RepositoryKey | None = None


def _event_repository(payload: dict[str, Any]) -> RepositoryKey:
    repo = payload["repository"]
    return RepositoryKey(owner=repo["owner"]["login"], name=repo["name"])


def _listed_repositories(repos: list[dict[str, Any]] | None) -> list[RepositoryKey]:
    # Installation payloads only carry `full_name`, not the owner login.
    return [
        RepositoryKey(owner=repo["full_name"].split("/")[0], name=repo["name"])
        for repo in repos or []
    ]


def _ends_with(body: str, word: str) -> bool:
    return body.endswith(word)


def plan_event(event_name: str, payload: dict[str, Any], config: RouterConfig) -> RoutingPlan:
    """Decide which work an event triggers.

    Raises:
        ValidationError: If the event is relevant but lacks the installation
            ID or other fields the triggered work needs.
    """
    flags = classify(event_name, payload, config)

    if not flags.is_relevant:
        return RoutingPlan(status=PlanStatus.NOOP, flags=flags)

    installation = payload.get("installation")
    if not installation or installation.get("id") is None:
        raise ValidationError(
            "GitHub App Installation ID missing, cannot authenticate",
            code=ErrorCode.INSTALLATION_MISSING,
        )

    try:
        return _plan_relevant(event_name, payload, config, flags, int(installation["id"]))
    except (KeyError, TypeError, AttributeError) as e:
        raise ValidationError(
            f"Event payload is missing required fields: {e}",
            code=ErrorCode.EVENT_MALFORMED,
            details={"event": event_name, "action": payload.get("action")},
        ) from e


def _plan_relevant(
    event_name: str,
    payload: dict[str, Any],
    config: RouterConfig,
    flags: EventFlags,
    installation_id: int,
) -> RoutingPlan:
    messages: list[WorkItem] = []

    comment: dict[str, Any] = payload.get("comment") or {}
    comment_body: str = comment.get("body") or ""
    by_owner = flags.is_app_command and (comment.get("user") or {}).get("login") == config.app_owner

    # Post a similarity comment
    if flags.is_issue_event or (flags.is_app_command and _ends_with(comment_body, DIG)):
        repository = _event_repository(payload)
        issue = payload["issue"]
        messages.append(
            PostComment(
                repo_owner=repository.owner,
                repo_name=repository.name,
                issue_number=issue["number"],
                title=issue.get("title"),
                body=issue.get("body"),
                installation_id=installation_id,
            )
        )

    # Onboarding is expensive, so commands are restricted to the app owner.
    if flags.is_install_event or (by_owner and _ends_with(comment_body, ONBOARD)):
        if event_name == "installation_repositories":
            repos = _listed_repositories(payload.get("repositories_added"))
        elif event_name == "installation":
            repos = _listed_repositories(payload.get("repositories"))
        else:
            repos = [_event_repository(payload)]

        messages.extend(
            Onboard(repo_owner=r.owner, repo_name=r.name, installation_id=installation_id)
            for r in repos
        )

    # Offboarding is destructive, so commands are restricted to the app owner.
    if flags.is_uninstall_event or (by_owner and _ends_with(comment_body, OFFBOARD)):
        if event_name == "installation_repositories":
            repos = _listed_repositories(payload.get("repositories_removed"))
        elif event_name == "installation":
            repos = _listed_repositories(payload.get("repositories"))
        else:
            repos = [_event_repository(payload)]

        messages.extend(Offboard(repo_owner=r.owner, repo_name=r.name) for r in repos)

    should_index_item = flags.is_issue_event or flags.is_comment_event
    should_reindex_issue = by_owner and _ends_with(comment_body, REINDEX)

    if should_reindex_issue:
        repository = _event_repository(payload)
        issue = payload["issue"]
        # The issue itself is already at hand; its comments need fetching.
        messages.append(
            IndexItem(
                kind=ItemKind.ISSUE,
                repo_owner=repository.owner,
                repo_name=repository.name,
                issue_number=issue["number"],
                title=issue.get("title"),
                body=issue.get("body"),
                is_self_authored=_performed_by_app(issue, config),
                installation_id=installation_id,
            )
        )
        messages.append(
            ReindexComments(
                repo_owner=repository.owner,
                repo_name=repository.name,
                issue_number=issue["number"],
                installation_id=installation_id,
            )
        )
    elif should_index_item:
        repository = _event_repository(payload)
        issue = payload["issue"]
        if flags.is_issue_event:
            item = IndexItem(
                kind=ItemKind.ISSUE,
                repo_owner=repository.owner,
                repo_name=repository.name,
                issue_number=issue["number"],
                title=issue.get("title"),
                body=issue.get("body"),
                is_self_authored=_performed_by_app(issue, config),
                installation_id=installation_id,
            )
        else:
            item = IndexItem(
                kind=ItemKind.COMMENT,
                repo_owner=repository.owner,
                repo_name=repository.name,
                issue_number=issue["number"],
                title=None,
                body=comment.get("body"),
                is_self_authored=_performed_by_app(comment, config),
                installation_id=installation_id,
            )
        messages.append(item)

    react_to = None
    repository = None
    if flags.is_app_command:
        react_to = comment["id"]
        repository = _event_repository(payload)

    return RoutingPlan(
        status=PlanStatus.PROCESS,
        flags=flags,
        messages=messages,
        react_to_comment=react_to,
        repository=repository,
    )


def _performed_by_app(obj: dict[str, Any], config: RouterConfig) -> bool:
    app = obj.get("performed_via_github_app") or {}
    return app.get("id") == config.app_id
