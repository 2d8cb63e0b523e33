import logging

from fastapi import APIRouter, Response, status
from tree_sitter_language_pack import get_parser

from json_pilot.api.schemas import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter()

_GRAMMARS = ("json", "javascript")


@router.get("/health", response_model=HealthResponse)
async def health(response: Response) -> HealthResponse:
    """Checks that the JSON and expression grammars can be loaded."""
    try:
        for name in _GRAMMARS:
            get_parser(name)
    except (LookupError, OSError) as exc:
        logger.warning("Grammar unavailable: %s", exc)
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="degraded")
    return HealthResponse()


@router.get("/healthz/live", response_model=HealthResponse)
async def liveness() -> HealthResponse:
    """Liveness probe."""
    return HealthResponse()
