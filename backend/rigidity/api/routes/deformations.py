"""
Deformation generation endpoint
"""
from functools import lru_cache

from fastapi import APIRouter, Depends

from rigidity.core.config import get_settings
from rigidity.core.logging_config import LoggingConfig
from rigidity.core.openai_client import OpenAIClient
from rigidity.models.deformation import DeformationRequest
from rigidity.services.deformation_service import DeformationService

router = APIRouter(tags=["deformations"])
logger = LoggingConfig.get_logger(__name__)


@lru_cache()
def get_openai_client() -> OpenAIClient:
    """Completion client built from settings once per process"""
    return OpenAIClient(get_settings().openai_config())


def get_deformation_service(
    client: OpenAIClient = Depends(get_openai_client),
) -> DeformationService:
    return DeformationService(client=client, mode=get_settings().deformation_mode)


@router.post("/generate-deformations")
async def generate_deformations(
    request: DeformationRequest,
    service: DeformationService = Depends(get_deformation_service),
):
    """
    Generate deformations for the given control points

    Body:
        control_points: [{"id": int, "role": str, "position": [x, y, z]}]
        prompt: animation or pose description
        length: number of frames (required in multi-frame modes)

    Returns:
        {"<id>": {"delta_x", "delta_y", "delta_z"}} in single mode, a list of
        such objects otherwise, keyed by the original control point ids.
    """
    logger.info(
        "Deformation requested",
        extra={
            "control_points": len(request.control_points),
            "length": request.length,
            "mode": service.mode.value,
        },
    )
    return await service.generate(request)
