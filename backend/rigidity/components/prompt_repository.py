"""
File-backed repository of system prompts, one ``<name>.system`` file per reply variant.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

_DEFAULT_ROOT = Path(__file__).resolve().parent / "prompts"


class ComponentPromptRepository:
    def __init__(self, prompts_root: Optional[Path] = None):
        self.prompts_root = prompts_root or _DEFAULT_ROOT

    def get_system_prompt(self, name: str) -> str:
        return _read_prompt(self.prompts_root / f"{name}.system")


@lru_cache(maxsize=None)
def _read_prompt(path: Path) -> str:
    return path.read_text(encoding="utf-8")
