# src/waterrun/game/world.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Generic, Iterator, List, Tuple, TypeVar
from .config import (
    VIEW_W, EDGE_MARGIN, LANE_COUNT, TRACK_LEN, OBSTACLE_PAD_X, OBSTACLE_PAD_Y
)

Bounds = Tuple[float, float, float, float]  # (left, right, low, high) in world units


@dataclass(frozen=True)
class Obstacle:
    """Solid block centered at (x, y). Blocks movement."""
    x: float
    y: float
    w: float
    h: float

    def padded_bounds(self, pad_x: float = OBSTACLE_PAD_X, pad_y: float = OBSTACLE_PAD_Y) -> Bounds:
        return (self.x - self.w / 2 + pad_x, self.x + self.w / 2 - pad_x,
                self.y - self.h / 2 + pad_y, self.y + self.h / 2 - pad_y)


@dataclass(frozen=True)
class Hazard:
    """Adds a time penalty and disappears on contact."""
    x: float
    y: float
    w: float
    h: float


@dataclass(frozen=True)
class Collectible:
    """Point pickup; takes time off the clock."""
    x: float
    y: float


T = TypeVar("T")


class EntityPool(Generic[T]):
    """
    Index-stable container: removal tombstones the slot instead of shifting,
    so an index handed out once keeps naming the same entity for the run.
    """

    def __init__(self, items=()):
        self._items: List[T] = list(items)
        self._alive: List[bool] = [True] * len(self._items)
        self._live_count = len(self._items)

    def add(self, item: T) -> int:
        self._items.append(item)
        self._alive.append(True)
        self._live_count += 1
        return len(self._items) - 1

    def remove(self, index: int) -> bool:
        """Tombstone slot `index`. Returns False if it was already gone."""
        if not self._alive[index]:
            return False
        self._alive[index] = False
        self._live_count -= 1
        return True

    def is_alive(self, index: int) -> bool:
        return self._alive[index]

    def live(self) -> Iterator[Tuple[int, T]]:
        for i, item in enumerate(self._items):
            if self._alive[i]:
                yield i, item

    def values(self) -> List[T]:
        return [item for _, item in self.live()]

    def __len__(self) -> int:
        return self._live_count


def lane_centers(count: int = LANE_COUNT, width: float = VIEW_W, margin: float = EDGE_MARGIN) -> List[float]:
    """Evenly spaced lane x positions across the margin-inset play width."""
    if count == 1:
        return [width / 2]
    usable = width - margin * 2
    spacing = usable / (count - 1)
    return [margin + i * spacing for i in range(count)]


@dataclass
class World:
    """Live entity collections for one run. Obstacles never change after build."""
    obstacles: Tuple[Obstacle, ...] = ()
    hazards: EntityPool = field(default_factory=EntityPool)
    collectibles: EntityPool = field(default_factory=EntityPool)
    track_len: float = TRACK_LEN
    lanes: List[float] = field(default_factory=lane_centers)

    @classmethod
    def from_entities(cls, obstacles, hazards, collectibles, track_len: float = TRACK_LEN) -> "World":
        return cls(
            obstacles=tuple(obstacles),
            hazards=EntityPool(hazards),
            collectibles=EntityPool(collectibles),
            track_len=track_len,
        )
