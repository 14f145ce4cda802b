"""Pipeline stages and transition validation."""

from enum import Enum

import structlog

from pagesmith.core.exceptions import InvalidStageTransitionError

logger = structlog.get_logger(__name__)


class PipelineStage(str, Enum):
    """Deployment pipeline lifecycle states."""

    RECEIVED = "received"
    GENERATING = "generating"
    SCANNING = "scanning"
    PUBLISHING = "publishing"
    POLLING = "polling"
    NOTIFYING = "notifying"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STAGES = frozenset({PipelineStage.DONE, PipelineStage.FAILED})


class StageTracker:
    """Tracks one pipeline run's stage with validated transitions."""

    TRANSITIONS = {
        PipelineStage.RECEIVED: [PipelineStage.GENERATING, PipelineStage.FAILED],
        PipelineStage.GENERATING: [PipelineStage.SCANNING, PipelineStage.FAILED],
        PipelineStage.SCANNING: [
            PipelineStage.GENERATING,
            PipelineStage.PUBLISHING,
            PipelineStage.FAILED,
        ],  # Regenerate on rejected content
        PipelineStage.PUBLISHING: [PipelineStage.POLLING, PipelineStage.FAILED],
        PipelineStage.POLLING: [PipelineStage.NOTIFYING, PipelineStage.FAILED],
        PipelineStage.NOTIFYING: [PipelineStage.DONE, PipelineStage.FAILED],
        PipelineStage.DONE: [],  # Terminal state
        PipelineStage.FAILED: [],  # Terminal state
    }

    def __init__(self) -> None:
        self.stage = PipelineStage.RECEIVED
        self.history: list[PipelineStage] = [PipelineStage.RECEIVED]

    @property
    def is_terminal(self) -> bool:
        return self.stage in TERMINAL_STAGES

    def advance(self, new_stage: PipelineStage, **context) -> None:
        """Move to new_stage or raise InvalidStageTransitionError."""
        if new_stage not in self.TRANSITIONS[self.stage]:
            raise InvalidStageTransitionError(self.stage.value, new_stage.value)

        logger.info("pipeline_stage_changed", from_stage=self.stage.value, to_stage=new_stage.value, **context)
        self.stage = new_stage
        self.history.append(new_stage)

    def fail(self, **context) -> None:
        """Move to FAILED. No-op when already terminal."""
        if self.is_terminal:
            return
        self.advance(PipelineStage.FAILED, **context)
