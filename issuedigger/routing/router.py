"""Execution of routing plans for verified webhook events."""

from dataclasses import dataclass, field
from typing import Any

from issuedigger.exceptions import GitHubError
from issuedigger.github import GitHubClientRegistry, ValidationToken
from issuedigger.logging_config import get_logger
from issuedigger.queue import WorkItem, WorkQueue
from issuedigger.routing.classifier import PlanStatus, RouterConfig, is_app_command, plan_event
from issuedigger.routing.submitter import Submitter

logger = get_logger(__name__)


@dataclass
class RoutingOutcome:
    """What became of one event."""

    status: PlanStatus
    submitted: list[WorkItem] = field(default_factory=list)
    suppressed: list[WorkItem] = field(default_factory=list)
    failed: list[WorkItem] = field(default_factory=list)
    reacted: bool = False


class EventRouter:
    """Turns verified webhook events into queued work."""

    def __init__(
        self,
        config: RouterConfig,
        queue: WorkQueue,
        registry: GitHubClientRegistry,
    ) -> None:
        self._config = config
        self._queue = queue
        self._registry = registry

    async def route(
        self,
        event_name: str,
        payload: dict[str, Any],
        token: ValidationToken,
    ) -> RoutingOutcome:
        """Plan and submit the work an event triggers.

        `token` is the proof of signature verification; it is not otherwise
        used.

        Raises:
            ValidationError: If the event is relevant but malformed.
        """
        if not isinstance(token, ValidationToken):
            raise TypeError("Events must be verified before routing")

        plan = plan_event(event_name, payload, self._config)
        outcome = RoutingOutcome(status=plan.status)

        if plan.status is PlanStatus.NOOP:
            return outcome

        installation_id = int(payload["installation"]["id"])
        slug = self._config.app_slug
        submitter = Submitter(
            self._queue,
            is_app_command=lambda body: plan.flags.is_comment_event and is_app_command(body, slug),
            wait=False,
        )

        for item in plan.messages:
            suppressed = submitter.should_suppress(item)
            if not await submitter.submit(item):
                outcome.failed.append(item)
            elif suppressed:
                outcome.suppressed.append(item)
            else:
                outcome.submitted.append(item)

        if plan.react_to_comment is not None and plan.repository is not None:
            # Acknowledging a command is best effort.
            try:
                client = self._registry.get(installation_id)
                await client.post_reaction(plan.repository, plan.react_to_comment, "+1")
                outcome.reacted = True
            except GitHubError as e:
                logger.warning(
                    f"Failed to react to app command: {e.message}",
                    extra={"comment_id": plan.react_to_comment, "repository": str(plan.repository)},
                )

        logger.info(
            "Routed webhook event",
            extra={
                "event": event_name,
                "action": payload.get("action"),
                "submitted": [item.type for item in outcome.submitted],
                "suppressed": len(outcome.suppressed),
                "failed": len(outcome.failed),
            },
        )
        return outcome
