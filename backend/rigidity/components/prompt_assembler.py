"""
Builds the two chat messages sent to the model.

The system message is the fixed instruction for the active reply variant; the
user message is the JSON view of the normalized request.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional, Sequence

from pydantic import BaseModel

from rigidity.components.prompt_repository import ComponentPromptRepository
from rigidity.core.config import DeformationMode
from rigidity.models.deformation import ControlPoint


class AssembledPrompt(BaseModel):
    system_prompt: str
    user_content: str


class PromptAssembler:
    def __init__(
        self,
        mode: DeformationMode,
        prompt_repo: Optional[ComponentPromptRepository] = None,
    ):
        self.mode = mode
        self.prompt_repo = prompt_repo or ComponentPromptRepository()

    def build_payload(
        self,
        control_points: Sequence[ControlPoint],
        prompt: str,
        length: Optional[int] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "control_points": [point.model_dump() for point in control_points],
            "prompt": prompt,
        }
        if length is not None:
            payload["length"] = length
        return payload

    def assemble(
        self,
        control_points: Sequence[ControlPoint],
        prompt: str,
        length: Optional[int] = None,
    ) -> AssembledPrompt:
        if not self.mode.is_multi_frame:
            # Frame count means nothing to the single-pose template
            length = None
        payload = self.build_payload(control_points, prompt, length)
        return AssembledPrompt(
            system_prompt=self.prompt_repo.get_system_prompt(self.mode.value),
            user_content=json.dumps(payload),
        )
