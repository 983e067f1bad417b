"""Event Verifier — authenticate and parse inbound processor webhooks.

With a signing secret configured, the `Stripe-Signature` header is checked
against the raw body BEFORE anything is parsed. Without one, the body is
trusted as-is; this disables tamper and replay protection and is logged at
WARNING for every event.
"""

import json
import logging

import stripe
from pydantic import ValidationError

from src.ent_billing.domain.models import BillingEvent
from src.ent_common.errors import AuthenticationError, MalformedEventError

logger = logging.getLogger(__name__)


class EventVerifier:
    def __init__(self, signing_secret: str, tolerance_seconds: int = 300) -> None:
        self._secret = signing_secret
        self._tolerance = tolerance_seconds

    def verify(self, payload: bytes, signature: str | None) -> BillingEvent:
        """Return the parsed event.

        Raises:
            AuthenticationError: secret configured and the header is missing,
                stale, or does not match the body.
            MalformedEventError: body is not a JSON event with `id`, `type`
                and `data.object`.
        """
        try:
            body = payload.decode("utf-8")
        except UnicodeDecodeError:
            raise MalformedEventError("body is not valid UTF-8") from None

        if self._secret:
            if not signature:
                raise AuthenticationError("Missing Stripe-Signature header")
            try:
                stripe.WebhookSignature.verify_header(
                    body, signature, self._secret, self._tolerance
                )
            except stripe.SignatureVerificationError as exc:
                logger.warning("Webhook signature verification failed: %s", exc)
                raise AuthenticationError("Invalid signature") from None
        else:
            logger.warning(
                "Webhook signature verification DISABLED (no signing secret configured); "
                "accepting event body as trusted JSON"
            )

        try:
            raw = json.loads(body)
        except json.JSONDecodeError as exc:
            raise MalformedEventError(f"body is not JSON ({exc.msg})") from None
        try:
            return BillingEvent.model_validate(raw)
        except ValidationError as exc:
            fields = sorted({".".join(str(p) for p in e["loc"]) or "<root>" for e in exc.errors()})
            raise MalformedEventError(f"invalid event fields {fields}") from None
