"""GitHub integration: webhooks, authentication and API client."""

from issuedigger.github.auth import InstallationTokenProvider, create_app_jwt
from issuedigger.github.client import GitHubClient
from issuedigger.github.models import GitHubItem
from issuedigger.github.registry import GitHubClientRegistry
from issuedigger.github.webhook import (
    SIGNATURE_HEADER,
    SIGNATURE_LENGTH,
    ValidationToken,
    sign_webhook_body,
    verify_webhook_signature,
)

__all__ = [
    "SIGNATURE_HEADER",
    "SIGNATURE_LENGTH",
    "GitHubClient",
    "GitHubClientRegistry",
    "GitHubItem",
    "InstallationTokenProvider",
    "ValidationToken",
    "create_app_jwt",
    "sign_webhook_body",
    "verify_webhook_signature",
]
