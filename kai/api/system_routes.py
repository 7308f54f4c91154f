from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from kai.models import HealthResponse

router = APIRouter(tags=["system"])


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "Kaï Backend Running"


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse()


__all__ = ["router"]
