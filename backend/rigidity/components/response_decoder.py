"""
Decoding of model replies into deformation frames.

Three reply shapes are understood, one per DeformationMode:

- single:    {"<id>": {"delta_x", "delta_y", "delta_z"}}
- frames:    {"frames": [{"<id>": {"delta_x", "delta_y", "delta_z"}}, ...]}
- positions: {"frames": [{"<id>": {"x", "y", "z"}}, ...]}

For the multi-frame shapes a bare top-level array of frames is accepted too.
Absolute positions are converted to deltas against the reference positions
sent to the model. Keys that are not integer literals are skipped with a
warning; anything else that does not match the shape fails the whole reply.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from rigidity.core.config import DeformationMode
from rigidity.core.errors import DecodeError
from rigidity.core.logging_config import LoggingConfig
from rigidity.core.metrics import skipped_ids_total
from rigidity.models.deformation import ControlPoint, Deformation, Frame, Position

logger = LoggingConfig.get_logger(__name__)

M = TypeVar("M", bound=BaseModel)

_INT_KEY = re.compile(r"-?\d+")


def parse_id(key: str) -> Optional[int]:
    """Strict integer parse of a JSON object key; None when it is not one."""
    if isinstance(key, str) and _INT_KEY.fullmatch(key):
        return int(key)
    return None


def round_hundredths(value: float) -> float:
    """Round half away from zero at the hundredths digit."""
    scaled = abs(value * 100)
    # floor(x + 0.5) would round 0.49999999999999994 up
    whole = math.floor(scaled)
    rounded = whole + 1 if scaled - whole >= 0.5 else whole
    if rounded == 0:
        return 0.0
    return math.copysign(rounded, value) / 100


def position_delta(position: Position, reference: Sequence[float]) -> Deformation:
    deltas = (
        position.x - reference[0],
        position.y - reference[1],
        position.z - reference[2],
    )
    if not all(math.isfinite(delta) for delta in deltas):
        raise DecodeError(
            f"Failed to parse OpenAI response: position {position.model_dump()} is out of range"
        )
    return Deformation(
        delta_x=round_hundredths(deltas[0]),
        delta_y=round_hundredths(deltas[1]),
        delta_z=round_hundredths(deltas[2]),
    )


def reference_positions(points: Sequence[ControlPoint]) -> Dict[int, List[float]]:
    """Dense id -> position of the last point carrying that id."""
    positions: Dict[int, List[float]] = {}
    for point in points:
        positions[point.id] = list(point.position)
    return positions


def load_reply(text: str) -> Any:
    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Failed to parse OpenAI response: {e}") from e


def decode_frame(raw: Any, value_model: Type[M], frame_index: Optional[int] = None) -> Dict[int, M]:
    """Decode one ``{"<id>": {...}}`` object into a frame keyed by int id."""
    where = "reply" if frame_index is None else f"frame {frame_index}"
    if not isinstance(raw, dict):
        raise DecodeError(
            f"Failed to parse OpenAI response: {where} is {type(raw).__name__}, expected an object"
        )

    frame: Dict[int, M] = {}
    for key, value in raw.items():
        point_id = parse_id(key)
        if point_id is None:
            logger.warning(
                f"Invalid ID format: {key!r}",
                extra={"frame_index": frame_index},
            )
            skipped_ids_total.labels(reason="non_numeric").inc()
            continue
        try:
            frame[point_id] = value_model.model_validate(value)
        except ValidationError as e:
            raise DecodeError(
                f"Failed to parse OpenAI response: {where}, id {key}: "
                f"{e.error_count()} invalid field(s): {_describe(e)}"
            ) from e
    return frame


def frame_list(data: Any) -> List[Any]:
    """Pull the list of frames out of a multi-frame reply."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        frames = data.get("frames")
        if isinstance(frames, list):
            return frames
        raise DecodeError("Failed to parse OpenAI response: missing 'frames' array")
    raise DecodeError(
        f"Failed to parse OpenAI response: top-level {type(data).__name__}, expected an object or array"
    )


def _describe(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item.get("loc", ())) or "value"
        parts.append(f"{loc} ({item.get('msg')})")
    return "; ".join(parts)


class ResponseDecoder:
    """Turns the model's text into frames keyed by dense id"""

    def __init__(self, mode: DeformationMode):
        self.mode = mode

    def decode(
        self,
        text: str,
        references: Optional[Mapping[int, Sequence[float]]] = None,
    ) -> Union[Frame, List[Frame]]:
        data = load_reply(text)

        if self.mode is DeformationMode.SINGLE:
            return decode_frame(data, Deformation)

        raw_frames = frame_list(data)
        if self.mode is DeformationMode.FRAMES:
            return [decode_frame(raw, Deformation, index) for index, raw in enumerate(raw_frames)]

        references = references or {}
        frames: List[Frame] = []
        for index, raw in enumerate(raw_frames):
            positions = decode_frame(raw, Position, index)
            frame: Frame = {}
            for point_id, position in positions.items():
                reference = references.get(point_id)
                if reference is None:
                    logger.warning(
                        f"No original position for id {point_id}, skipping",
                        extra={"frame_index": index},
                    )
                    skipped_ids_total.labels(reason="unknown_id").inc()
                    continue
                frame[point_id] = position_delta(position, reference)
            frames.append(frame)
        return frames
