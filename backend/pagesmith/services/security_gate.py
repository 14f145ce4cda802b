"""SecurityGate: secret scanning of generated documents with bounded regeneration.

Architecture:
- trufflehog runs as an async subprocess over a temp copy of the document
- Any stdout output means a finding; the document is unsafe
- Scanner missing or crashing is NOT a rejection: the document counts as safe
- generate_until_safe() regenerates up to max_attempts times, then fails open
  and returns the last bundle (logged, never dropped)
"""

import asyncio
import os
import tempfile
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import structlog

from pagesmith.core.config import Settings
from pagesmith.schemas.deployment import ArtifactBundle

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class GateOutcome:
    """Result of the regenerate-and-rescan loop."""

    bundle: ArtifactBundle
    attempts: int
    safe: bool


class SecurityGate:
    """Binary secret classifier plus the bounded regeneration loop.

    Public API:
        is_safe(text) -> bool
        generate_until_safe(produce, max_attempts=None) -> GateOutcome
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    async def is_safe(self, text: str) -> bool:
        """Return False only when trufflehog reports a finding."""
        fd, tmp_path = tempfile.mkstemp(prefix="pagesmith-scan-", suffix=".html")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
            return await self._scan_file(tmp_path)
        finally:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass

    async def _scan_file(self, path: str) -> bool:
        try:
            process = await asyncio.create_subprocess_exec(
                self.settings.trufflehog_path,
                "filesystem",
                path,
                "--json",
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, _ = await process.communicate()
        except FileNotFoundError:
            logger.info("security_scanner_unavailable", scanner=self.settings.trufflehog_path)
            return True
        except Exception as exc:
            logger.warning("security_scan_error", error=str(exc), error_type=type(exc).__name__)
            return True

        if stdout and stdout.strip():
            logger.warning("security_scan_secrets_detected", findings_bytes=len(stdout))
            return False

        logger.info("security_scan_clean")
        return True

    async def generate_until_safe(
        self,
        produce: Callable[[], Awaitable[ArtifactBundle]],
        max_attempts: int | None = None,
    ) -> GateOutcome:
        """Call produce() until a bundle scans clean or attempts run out.

        Errors raised by produce() propagate; only content rejection is retried.

        Raises:
            ValueError: max_attempts below 1
        """
        if max_attempts is None:
            max_attempts = self.settings.max_generation_attempts
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        bundle: ArtifactBundle | None = None

        for attempt in range(1, max_attempts + 1):
            bundle = await produce()
            if await self.is_safe(bundle.html):
                logger.info("security_gate_passed", attempt=attempt)
                return GateOutcome(bundle=bundle, attempts=attempt, safe=True)

            logger.warning("security_gate_rejected", attempt=attempt, max_attempts=max_attempts)

        # Fail-open: publish the last bundle
        logger.error("security_gate_exhausted_proceeding", attempts=max_attempts)
        return GateOutcome(bundle=bundle, attempts=max_attempts, safe=False)
