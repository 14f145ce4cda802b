from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint.

    Returns 503 during graceful shutdown so the load balancer stops routing
    new deployment requests.
    """
    if getattr(request.app.state, "shutting_down", False):
        return JSONResponse(
            status_code=503,
            content={"status": "shutting_down", "service": "pagesmith"},
        )
    return {"status": "healthy", "service": "pagesmith"}
