"""AvailabilityPoller: advisory check that a Pages URL is serving."""

import asyncio
import math

import httpx
import structlog

from pagesmith.core.config import Settings

logger = structlog.get_logger(__name__)


class AvailabilityPoller:
    """Probes a URL at a fixed interval until it answers 2xx or the budget runs out.

    Never raises for probe failures: transport errors and non-2xx answers
    both mean "not live yet".
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    async def await_live(
        self,
        url: str,
        max_wait_seconds: float | None = None,
        interval_seconds: float | None = None,
    ) -> bool:
        """Return True on the first 2xx probe, False after ceil(max_wait / interval) failed probes."""
        max_wait = self.settings.pages_poll_timeout_seconds if max_wait_seconds is None else max_wait_seconds
        interval = self.settings.pages_poll_interval_seconds if interval_seconds is None else interval_seconds
        max_probes = max(1, math.ceil(max_wait / interval))

        async with httpx.AsyncClient(
            timeout=self.settings.http_timeout_seconds,
            follow_redirects=True,
        ) as client:
            for probe in range(1, max_probes + 1):
                try:
                    response = await client.get(url)
                    if response.is_success:
                        logger.info("pages_live", url=url, probes=probe)
                        return True
                    logger.info("pages_not_live_yet", url=url, probe=probe, status_code=response.status_code)
                except httpx.HTTPError as exc:
                    logger.info("pages_probe_error", url=url, probe=probe, error_type=type(exc).__name__)

                if probe < max_probes:
                    await asyncio.sleep(interval)

        return False
