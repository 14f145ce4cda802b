"""DeploymentPipeline: brief in, published and reported Pages site out.

Stage order:
    received -> generating <-> scanning (max attempts) -> publishing
             -> polling (advisory) -> notifying -> done
Any raised error moves the run to failed. run() never raises: the intake
caller was acknowledged before the pipeline started, so every outcome is
reported through logs and the returned PipelineOutcome.

Concurrent runs for the same (task, round) are not serialized; the last one
to move the branch ref wins.
"""

from dataclasses import dataclass, field

import structlog

from pagesmith.core.config import Settings
from pagesmith.schemas.deployment import (
    ArtifactBundle,
    NotificationPayload,
    PublicationResult,
    Specification,
)
from pagesmith.services.attachments import decode_attachments
from pagesmith.services.availability import AvailabilityPoller
from pagesmith.services.generation_service import GenerationService
from pagesmith.services.notifier import DeliveryReceipt, Notifier
from pagesmith.services.publication_service import PublicationService
from pagesmith.services.security_gate import GateOutcome, SecurityGate
from pagesmith.services.stages import PipelineStage, StageTracker

logger = structlog.get_logger(__name__)


@dataclass
class PipelineOutcome:
    """What one pipeline run achieved. Filled in stage by stage."""

    stage: PipelineStage = PipelineStage.RECEIVED
    history: list[PipelineStage] = field(default_factory=list)
    prior_artifact: str | None = None
    security: GateOutcome | None = None
    publication: PublicationResult | None = None
    pages_live: bool | None = None
    delivery: DeliveryReceipt | None = None
    error: str | None = None
    error_type: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.stage == PipelineStage.DONE


class DeploymentPipeline:
    """Sequences generation, scanning, publication, polling and notification.

    Collaborators are injectable; by default each is built from settings.
    """

    def __init__(
        self,
        settings: Settings,
        generation: GenerationService | None = None,
        gate: SecurityGate | None = None,
        publication: PublicationService | None = None,
        poller: AvailabilityPoller | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self.settings = settings
        self.generation = generation or GenerationService(settings)
        self.gate = gate or SecurityGate(settings)
        self.publication = publication or PublicationService(settings)
        self.poller = poller or AvailabilityPoller(settings)
        self.notifier = notifier or Notifier(settings)

    async def run(self, spec: Specification) -> PipelineOutcome:
        """Run the pipeline to done or failed. Never raises."""
        tracker = StageTracker()
        outcome = PipelineOutcome()

        with structlog.contextvars.bound_contextvars(task=spec.task, round=spec.round, nonce=spec.nonce):
            logger.info("pipeline_started", target=spec.target_name, checks=len(spec.checks))
            try:
                await self._execute(spec, tracker, outcome)
            except Exception as exc:
                logger.error(
                    "pipeline_failed",
                    stage=tracker.stage.value,
                    error=str(exc),
                    error_type=type(exc).__name__,
                    exc_info=True,
                )
                tracker.fail(reason=type(exc).__name__)
                outcome.error = str(exc)
                outcome.error_type = type(exc).__name__
            else:
                logger.info(
                    "pipeline_completed",
                    repo_url=outcome.publication.repo_url,
                    commit_sha=outcome.publication.commit_sha,
                    pages_url=outcome.publication.pages_url,
                )

        outcome.stage = tracker.stage
        outcome.history = list(tracker.history)
        return outcome

    async def _execute(self, spec: Specification, tracker: StageTracker, outcome: PipelineOutcome) -> None:
        attachments = decode_attachments(spec.attachments)

        prior_artifact: str | None = None
        if spec.is_revision:
            prior_artifact = await self.publication.fetch_primary_document(spec.previous_target_name)
            logger.info(
                "prior_artifact_loaded",
                repo=spec.previous_target_name,
                found=bool(prior_artifact),
            )
        outcome.prior_artifact = prior_artifact

        attempt = 0

        async def produce() -> ArtifactBundle:
            nonlocal attempt
            attempt += 1
            tracker.advance(PipelineStage.GENERATING, attempt=attempt)
            bundle = await self.generation.generate(spec, prior_artifact)
            tracker.advance(PipelineStage.SCANNING, attempt=attempt)
            return bundle

        outcome.security = await self.gate.generate_until_safe(produce)
        if not outcome.security.safe:
            logger.warning("publishing_unsafe_content", attempts=outcome.security.attempts)

        tracker.advance(PipelineStage.PUBLISHING)
        outcome.publication = await self.publication.publish(
            spec.target_name,
            outcome.security.bundle,
            attachments,
            message=f"Deploy {spec.task} round {spec.round}",
        )

        tracker.advance(PipelineStage.POLLING, pages_url=outcome.publication.pages_url)
        outcome.pages_live = await self.poller.await_live(outcome.publication.pages_url)
        if not outcome.pages_live:
            logger.warning("pages_not_live_within_timeout", pages_url=outcome.publication.pages_url)

        tracker.advance(PipelineStage.NOTIFYING)
        payload = NotificationPayload.build(spec, outcome.publication)
        outcome.delivery = await self.notifier.notify(spec.evaluation_url, payload)

        tracker.advance(PipelineStage.DONE)
