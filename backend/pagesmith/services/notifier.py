"""Notifier: deliver the evaluation payload to the caller's webhook.

Retry policy (tenacity):
- 3xx: redirects are followed; the final answer is classified
- 2xx: delivered, stop
- 5xx, connect, timeout and network failures: transient, retried with
  1, 2, 4, 8, 16s backoff
- 4xx: the payload is wrong, raise NotificationRejectedError at once
- anything else (including a malformed or non-HTTP URL): propagates
  immediately, no retry
- 6 attempts total, then NotificationExhaustedError with the last error
"""

from dataclasses import dataclass

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from pagesmith.core.config import Settings
from pagesmith.core.exceptions import (
    NotificationExhaustedError,
    NotificationRejectedError,
    TransientDeliveryError,
)
from pagesmith.schemas.deployment import NotificationPayload

logger = structlog.get_logger(__name__)

# Faults of the connection itself. UnsupportedProtocol and LocalProtocolError
# mean the request is wrong and are not retried.
_TRANSIENT_ERRORS = (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError)


@dataclass(frozen=True)
class DeliveryReceipt:
    """Successful delivery: final status code and attempts used."""

    status_code: int
    attempts: int


class Notifier:
    """POSTs NotificationPayloads with bounded exponential-backoff retry."""

    def __init__(
        self,
        settings: Settings,
        wait: wait_base | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.transport = transport
        # 2^(attempt-1) seconds: 1, 2, 4, 8, 16
        self.wait = wait or wait_exponential(multiplier=1, exp_base=2)

    async def notify(self, url: str, payload: NotificationPayload) -> DeliveryReceipt:
        """Deliver payload to url.

        Raises:
            NotificationRejectedError: webhook answered 4xx
            NotificationExhaustedError: every attempt failed transiently
        """
        body = payload.model_dump(mode="json")
        attempt_number = 0

        retrying = AsyncRetrying(
            retry=retry_if_exception_type(TransientDeliveryError),
            stop=stop_after_attempt(self.settings.notify_max_attempts),
            wait=self.wait,
            before_sleep=lambda rs: logger.warning(
                "notification_retrying",
                attempt=rs.attempt_number,
                sleep_seconds=rs.next_action.sleep,
                error=str(rs.outcome.exception()),
            ),
        )

        try:
            async for attempt in retrying:
                with attempt:
                    attempt_number = attempt.retry_state.attempt_number
                    status_code = await self._post_once(url, body, attempt_number)
        except RetryError as exc:
            last_error = exc.last_attempt.exception()
            logger.error("notification_exhausted", url=url, attempts=attempt_number, error=str(last_error))
            raise NotificationExhaustedError(attempt_number, last_error) from last_error

        logger.info("notification_delivered", url=url, status_code=status_code, attempts=attempt_number)
        return DeliveryReceipt(status_code=status_code, attempts=attempt_number)

    async def _post_once(self, url: str, body: dict, attempt_number: int) -> int:
        logger.info("notification_attempt", url=url, attempt=attempt_number)
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.http_timeout_seconds,
                follow_redirects=True,
                transport=self.transport,
            ) as client:
                response = await client.post(url, json=body)
        except _TRANSIENT_ERRORS as exc:
            raise TransientDeliveryError(f"Network error reaching evaluation endpoint: {exc}") from exc

        if response.is_success:
            return response.status_code

        if response.is_server_error:
            raise TransientDeliveryError(
                f"Evaluation endpoint returned server error {response.status_code}: {response.text}"
            )

        logger.error("notification_rejected", url=url, status_code=response.status_code, attempt=attempt_number)
        raise NotificationRejectedError(response.status_code, response.text, attempt_number)
