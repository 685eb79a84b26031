from fastapi import HTTPException, Request

from ..integrations.base import MessagingTransport
from ..services.scheduler_service import TeamScheduleRegistry


def get_transport(request: Request) -> MessagingTransport:
    transport = getattr(request.app.state, "transport", None)
    if transport is None:
        raise HTTPException(status_code=503, detail="Messaging transport is not configured")
    return transport


def get_registry(request: Request) -> TeamScheduleRegistry:
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        raise HTTPException(status_code=503, detail="Scheduling is disabled")
    return registry
