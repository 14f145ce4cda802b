"""Intake route: authenticate and acknowledge, then run the pipeline in the background."""

import secrets

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from pagesmith.core.config import Settings, get_settings
from pagesmith.schemas.deployment import DeploymentRequest, DeploymentResponse
from pagesmith.services.pipeline import DeploymentPipeline

logger = structlog.get_logger(__name__)

router = APIRouter()


def get_pipeline(settings: Settings = Depends(get_settings)) -> DeploymentPipeline:
    """Build a pipeline from the process-wide settings."""
    return DeploymentPipeline(settings)


@router.post("/api-endpoint", response_model=DeploymentResponse)
async def receive_deployment(
    request: DeploymentRequest,
    background_tasks: BackgroundTasks,
    settings: Settings = Depends(get_settings),
    pipeline: DeploymentPipeline = Depends(get_pipeline),
):
    """Accept a deployment request.

    The response is sent before the pipeline starts; pipeline outcomes are
    only visible in logs.

    Raises:
        HTTPException(400): Shared secret missing or wrong.
    """
    logger.info("deployment_request_received", task=request.task, round=request.round)

    if not settings.shared_secret or not secrets.compare_digest(request.secret, settings.shared_secret):
        logger.warning("deployment_request_invalid_secret", task=request.task, round=request.round)
        raise HTTPException(status_code=400, detail="Invalid secret")

    background_tasks.add_task(pipeline.run, request.to_specification())

    return DeploymentResponse(status="received")
