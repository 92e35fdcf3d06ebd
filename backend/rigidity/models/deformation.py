"""
Request and reply models for control-point deformations
"""
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ControlPoint(BaseModel):
    """A positioned landmark on a character rig"""
    model_config = ConfigDict(allow_inf_nan=False)

    id: int = Field(..., description="Control point id")
    role: str = Field(default="", description="Free-text hint such as 'left arm'")
    position: List[float] = Field(
        ...,
        min_length=3,
        max_length=3,
        description="Rest position as [x, y, z]"
    )


class DeformationRequest(BaseModel):
    """Body of POST /generate-deformations"""
    control_points: List[ControlPoint] = Field(default_factory=list)
    prompt: str = Field(default="", description="Animation described in natural language")
    length: Optional[int] = Field(default=None, description="Number of frames to generate")


class Deformation(BaseModel):
    """Offset from a control point's rest position"""
    model_config = ConfigDict(allow_inf_nan=False)

    delta_x: float
    delta_y: float
    delta_z: float


class Position(BaseModel):
    """Absolute control point position returned by the model"""
    model_config = ConfigDict(allow_inf_nan=False)

    x: float
    y: float
    z: float


Frame = Dict[int, Deformation]
