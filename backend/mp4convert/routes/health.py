"""
Health endpoint.
"""

from fastapi import APIRouter, Request

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
def health_check(request: Request):
    """Report service status and whether the transcoder is installed."""
    engine = request.app.state.engine
    return {"status": "ok", "transcoder": engine.name, "available": engine.available}
