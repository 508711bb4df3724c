# src/waterrun/game/player.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple
from .config import (
    VIEW_W, EDGE_MARGIN, START_Y, MOVE_SPEED, TRACK_LEN,
    RUNNER_HALF_W, RUNNER_TAIL, RUNNER_HEAD
)
from .world import Obstacle, Bounds

MIN_X = EDGE_MARGIN
MAX_X = VIEW_W - EDGE_MARGIN


def clamp_x(x: float) -> float:
    return max(MIN_X, min(MAX_X, x))


def runner_bounds(x: float, y: float) -> Bounds:
    return (x - RUNNER_HALF_W, x + RUNNER_HALF_W, y - RUNNER_TAIL, y + RUNNER_HEAD)


def boxes_overlap(a: Bounds, b: Bounds) -> bool:
    """Inclusive AABB test: touching edges count as overlap."""
    a_left, a_right, a_low, a_high = a
    b_left, b_right, b_low, b_high = b
    return not (a_right < b_left or a_left > b_right or a_high < b_low or a_low > b_high)


def intersects_obstacle(x: float, y: float, ob: Obstacle) -> bool:
    return boxes_overlap(runner_bounds(x, y), ob.padded_bounds())


@dataclass
class Player:
    """
    Runner on the track. y grows toward the finish line.
    - facing: last horizontal/vertical direction pressed ("up", "down", "left", "right")
    - moving: True if any direction was applied on the last move
    """
    x: float
    y: float = float(START_Y)
    facing: str = "up"
    moving: bool = False

    @property
    def position(self) -> Tuple[float, float]:
        return self.x, self.y

    def move(self, intent, dt: float, track_len: float = TRACK_LEN, speed: float = MOVE_SPEED) -> None:
        """Continuous movement along every held axis, then clamp to the track."""
        step = speed * dt
        moved = False
        if intent.up:
            self.y = min(track_len, self.y + step)
            self.facing = "up"
            moved = True
        if intent.down:
            self.y = max(START_Y, self.y - step)
            self.facing = "down"
            moved = True
        if intent.left:
            self.x = clamp_x(self.x - step)
            self.facing = "left"
            moved = True
        if intent.right:
            self.x = clamp_x(self.x + step)
            self.facing = "right"
            moved = True
        self.moving = moved

    def snap_to_lane(self, delta: int, lanes: Sequence[float]) -> None:
        """Jump `delta` lanes from the nearest lane (touch swipe)."""
        if not lanes or delta == 0:
            return
        nearest = min(range(len(lanes)), key=lambda i: abs(self.x - lanes[i]))
        target = max(0, min(len(lanes) - 1, nearest + delta))
        self.x = lanes[target]
        self.facing = "left" if delta < 0 else "right"

    def resolve_collisions(self, prev_x: float, prev_y: float, obstacles: Iterable[Obstacle]) -> bool:
        """
        Axis-priority separation, vertical first:
          1) undo only the vertical move; keep it if that clears the block
          2) else undo only the horizontal move
          3) else go back to the previous frame's position and stop
        Undoing one axis lets the runner slide along an edge instead of sticking.
        Returns True if any correction was applied.
        """
        corrected = False
        for ob in obstacles:
            if not intersects_obstacle(self.x, self.y, ob):
                continue
            corrected = True

            if self.y != prev_y:
                if not intersects_obstacle(self.x, prev_y, ob):
                    self.y = prev_y
                    continue
                self.y = prev_y

            if self.x != prev_x:
                if not intersects_obstacle(prev_x, self.y, ob):
                    self.x = prev_x
                    continue
                self.x = prev_x

            # boxed in: stall until the input changes
            self.x, self.y = prev_x, prev_y
            break
        return corrected
