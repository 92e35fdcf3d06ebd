"""
Identifier normalization for control points.

Outbound, every control point id is replaced by a dense zero-based index in
first-seen order; repeated ids share the index of their first occurrence.
Inbound, frames keyed by those indexes are translated back to the caller's
original ids.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple, TypeVar

from rigidity.models.deformation import ControlPoint

V = TypeVar("V")


class IdentifierMap:
    """Original id -> dense id, built once per request"""

    def __init__(self) -> None:
        self._forward: Dict[int, int] = {}

    def assign(self, original_id: int) -> int:
        if original_id not in self._forward:
            self._forward[original_id] = len(self._forward)
        return self._forward[original_id]

    def dense_id(self, original_id: int) -> int:
        return self._forward[original_id]

    def items(self) -> Iterable[Tuple[int, int]]:
        return self._forward.items()

    def __contains__(self, original_id: object) -> bool:
        return original_id in self._forward

    def __len__(self) -> int:
        return len(self._forward)

    def __repr__(self) -> str:
        return f"IdentifierMap({self._forward!r})"


def normalize_control_points(
    points: Iterable[ControlPoint],
) -> Tuple[List[ControlPoint], IdentifierMap]:
    """Return copies of ``points`` with dense ids, plus the map used."""
    id_map = IdentifierMap()
    rewritten = [
        point.model_copy(update={"id": id_map.assign(point.id)})
        for point in points
    ]
    return rewritten, id_map


def restore_frame(frame: Dict[int, V], id_map: IdentifierMap) -> Dict[int, V]:
    """Re-key one frame by original id; dense ids the model left out are dropped."""
    restored: Dict[int, V] = {}
    for original_id, dense_id in id_map.items():
        if dense_id in frame:
            restored[original_id] = frame[dense_id]
    return restored


def restore_frames(frames: Iterable[Dict[int, V]], id_map: IdentifierMap) -> List[Dict[int, V]]:
    return [restore_frame(frame, id_map) for frame in frames]
