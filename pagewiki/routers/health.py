from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from pagewiki.models import HealthResponse, ReadyResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(ok=True)


@router.get(
    "/ready",
    response_model=ReadyResponse,
    responses={503: {"model": ReadyResponse, "description": "Storage service not listening"}},
)
async def ready(request: Request):
    storage = getattr(request.app.state, "storage", None)
    bus = getattr(request.app.state, "bus", None)
    missing: list[str] = []
    if storage is None or not storage.listening:
        missing.append("storage service not started")
    elif bus is None or not bus.has_consumer(storage.address):
        missing.append(f"no consumer on {storage.address}")

    if missing:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=ReadyResponse(ready=False, reason="; ".join(missing)).model_dump(),
        )
    return ReadyResponse(ready=True)
