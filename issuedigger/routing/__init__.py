"""Webhook event routing."""

from issuedigger.routing.classifier import (
    EventFlags,
    PlanStatus,
    RouterConfig,
    RoutingPlan,
    classify,
    is_app_command,
    plan_event,
)
from issuedigger.routing.router import EventRouter, RoutingOutcome
from issuedigger.routing.submitter import Submitter

__all__ = [
    "EventFlags",
    "EventRouter",
    "PlanStatus",
    "RouterConfig",
    "RoutingOutcome",
    "RoutingPlan",
    "Submitter",
    "classify",
    "is_app_command",
    "plan_event",
]
