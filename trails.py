# trails.py
"""
Per-particle trail recording.

A Trail is an ordered list of segments. Each segment is a bounded FIFO of
(x, y) samples recorded while the particle moved without crossing a
boundary. Wrapping starts a new segment so exported paths never contain a
spurious edge-to-edge jump.
"""
from collections import deque
from typing import Deque, List, Tuple

Point = Tuple[float, float]

# --- Data Contracts ---
#
# class Trail:
#   - record(self, point: Point, wrapped: bool, max_length: int) -> None:
#     - Side Effects: appends a new empty segment first when `wrapped`,
#       then appends `point` to the last segment and evicts its oldest
#       samples until it holds at most `max_length` points.
#     - Invariants: len(self.segments) >= 1. Segment count never shrinks
#       except through clear().


class Trail:
    """Recorded history of one particle."""
    __slots__ = ("segments",)

    def __init__(self):
        self.segments: List[Deque[Point]] = [deque()]

    def record(self, point: Point, wrapped: bool, max_length: int) -> None:
        if wrapped:
            self.segments.append(deque())
        segment = self.segments[-1]
        segment.append(point)
        while len(segment) > max_length:
            segment.popleft()

    def clear(self) -> None:
        self.segments = [deque()]

    @property
    def point_count(self) -> int:
        return sum(len(segment) for segment in self.segments)

    def __len__(self) -> int:
        return len(self.segments)

    def __iter__(self):
        return iter(self.segments)
