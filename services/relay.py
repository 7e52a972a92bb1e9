import logging
from typing import Optional

import httpx

from errors import RelayError, RelayTimeoutError
from models import SubmissionAck, SubmissionRequest

logger = logging.getLogger(__name__)


class WebhookRelay:
    """
    Forwards a lead submission to the enrichment workflow webhook.

    One POST per submission, no retry and no idempotency key: calling
    submit() twice triggers the workflow twice. Only the webhook's
    acknowledgement is awaited, not the enrichment itself.
    """

    def __init__(
        self,
        webhook_url: Optional[str],
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.transport = transport

    async def submit(self, request: SubmissionRequest) -> SubmissionAck:
        if not self.webhook_url:
            raise RelayError("WEBHOOK_URL is not configured")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(self.webhook_url, json=request.model_dump())
                response.raise_for_status()
            except httpx.TimeoutException as e:
                logger.warning("Webhook timed out after %ss for %r", self.timeout, request.companyName)
                raise RelayTimeoutError(
                    f"Webhook did not respond within {self.timeout:g}s"
                ) from e
            except httpx.HTTPStatusError as e:
                logger.warning("Webhook returned %s for %r", e.response.status_code, request.companyName)
                raise RelayError(
                    f"Webhook returned status {e.response.status_code}",
                    status_code=e.response.status_code,
                ) from e
            except httpx.RequestError as e:
                logger.warning("Failed to reach webhook: %s", e)
                raise RelayError(f"Failed to reach webhook: {e}") from e

        logger.info("Submitted lead for %r to webhook", request.companyName)
        return SubmissionAck()
