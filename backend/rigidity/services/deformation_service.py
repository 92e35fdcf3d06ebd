"""
Deformation pipeline for one request.

Validating -> Normalizing -> Dispatching -> Decoding -> Remapping, with no
retries. Validation failures are raised before the provider is contacted.
"""
from typing import Any, Dict, List, Optional, Union

from rigidity.components.identifier_normalizer import (normalize_control_points,
                                                       restore_frame,
                                                       restore_frames)
from rigidity.components.prompt_assembler import PromptAssembler
from rigidity.components.response_decoder import (ResponseDecoder,
                                                  reference_positions)
from rigidity.core.config import DeformationMode
from rigidity.core.errors import ClientInputError, DeformationError
from rigidity.core.logging_config import LoggingConfig
from rigidity.core.metrics import deformation_requests_total
from rigidity.core.openai_client import OpenAIClient
from rigidity.models.deformation import DeformationRequest, Frame

logger = LoggingConfig.get_logger(__name__)

DeformationReply = Union[Dict[str, Dict[str, float]], List[Dict[str, Dict[str, float]]]]


class DeformationService:
    """Runs the deformation pipeline against an explicit completion client"""

    def __init__(
        self,
        client: OpenAIClient,
        mode: DeformationMode,
        assembler: Optional[PromptAssembler] = None,
        decoder: Optional[ResponseDecoder] = None,
    ):
        self.client = client
        self.mode = mode
        self.assembler = assembler or PromptAssembler(mode)
        self.decoder = decoder or ResponseDecoder(mode)

    def validate(self, request: DeformationRequest) -> None:
        """Reject requests that cannot be sent to the model"""
        if not request.control_points or not request.prompt:
            if self.mode.is_multi_frame:
                raise ClientInputError("Missing control_points, prompt, or invalid length")
            raise ClientInputError("Missing control_points or prompt")
        if self.mode.is_multi_frame and (request.length is None or request.length <= 0):
            raise ClientInputError("Missing control_points, prompt, or invalid length")

    async def generate(self, request: DeformationRequest) -> DeformationReply:
        """
        Produce deformations keyed by the caller's original control point ids

        Returns:
            One frame ({"<id>": {"delta_x", "delta_y", "delta_z"}}) in single
            mode, otherwise a list of such frames.

        Raises:
            ClientInputError, ConfigurationError, UpstreamError, DecodeError
        """
        try:
            result = await self._run(request)
        except DeformationError as e:
            deformation_requests_total.labels(mode=self.mode.value, outcome=e.category.value).inc()
            raise
        deformation_requests_total.labels(mode=self.mode.value, outcome="success").inc()
        return result

    async def _run(self, request: DeformationRequest) -> DeformationReply:
        self.validate(request)

        points, id_map = normalize_control_points(request.control_points)
        if len(id_map) != len(points):
            logger.info(
                "Duplicate control point ids merged",
                extra={"points": len(points), "distinct_ids": len(id_map)},
            )

        assembled = self.assembler.assemble(points, request.prompt, request.length)
        logger.info(f"Sending payload to OpenAI: {assembled.user_content}")

        completion = await self.client.complete(assembled.system_prompt, assembled.user_content)
        logger.debug(f"OpenAI response content: {completion.content}")

        try:
            decoded = self.decoder.decode(completion.content, reference_positions(points))
        except DeformationError:
            logger.error(f"Failed to parse OpenAI response, content was: {completion.content}")
            raise

        if isinstance(decoded, dict):
            return _serialize_frame(restore_frame(decoded, id_map))
        return [_serialize_frame(frame) for frame in restore_frames(decoded, id_map)]


def _serialize_frame(frame: Frame) -> Dict[str, Dict[str, Any]]:
    return {str(point_id): deformation.model_dump() for point_id, deformation in frame.items()}
