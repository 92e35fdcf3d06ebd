"""
Pydantic models
"""
from rigidity.models.deformation import (ControlPoint,  # noqa: F401
                                         Deformation, DeformationRequest,
                                         Frame, Position)
