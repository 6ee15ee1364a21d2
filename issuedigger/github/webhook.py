"""Webhook signature verification.

GitHub signs every delivery with HMAC-SHA256 over the raw body using the
app's webhook secret and sends `sha256=<hex digest>` in the
`X-Hub-Signature-256` header. A successful verification yields a
`ValidationToken`, which event handling requires as an argument, so no
code path can process an event without verifying it first.
"""

import hashlib
import hmac

from issuedigger.exceptions import WebhookValidationError

SIGNATURE_HEADER = "x-hub-signature-256"
SIGNATURE_PREFIX = "sha256="
# Prefix plus 64 hex characters of a SHA-256 digest.
SIGNATURE_LENGTH = len(SIGNATURE_PREFIX) + 64

_TOKEN_KEY = object()


class ValidationToken:
    """Proof that a webhook body passed signature verification.

    Only `verify_webhook_signature` can create one.
    """

    __slots__ = ()

    def __init__(self, key: object) -> None:
        if key is not _TOKEN_KEY:
            raise TypeError("ValidationToken can only be obtained by verifying a signature")

    def __repr__(self) -> str:
        return "ValidationToken()"


def sign_webhook_body(body: bytes, secret: str) -> str:
    """Signature header value GitHub would send for `body`."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_webhook_signature(
    body: bytes,
    secret: str,
    untrusted_signature: str,
) -> ValidationToken:
    """Verify a webhook body against its signature header in constant time.

    Raises:
        WebhookValidationError: If the signature does not match. The
            exception carries the received and expected values.
    """
    trusted_signature = sign_webhook_body(body, secret)

    if not hmac.compare_digest(
        trusted_signature.encode("utf-8"),
        untrusted_signature.encode("utf-8"),
    ):
        raise WebhookValidationError(
            "Invalid signature",
            got=untrusted_signature,
            expected=trusted_signature,
        )

    return ValidationToken(_TOKEN_KEY)
