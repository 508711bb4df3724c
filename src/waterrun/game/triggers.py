# src/waterrun/game/triggers.py
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List
from .config import (
    PICKUP_REACH_X, PICKUP_REACH_Y, PICKUP_REBATE_S, HAZARD_PENALTY_S,
    HAZARD_LANE_FRAC, HAZARD_BAND_BACK, HAZARD_BAND_FRONT
)

if TYPE_CHECKING:
    from .run import GameState

logger = logging.getLogger(__name__)

COLLECTED = "collected"
HAZARD_HIT = "hazard"
FINISHED = "finished"


@dataclass(frozen=True)
class RunEvent:
    """
    Discrete outcome of a frame, for audio/toast/persistence listeners.
    amount: rebate (collected), penalty (hazard) or final time (finished), in seconds.
    """
    kind: str
    amount: float
    x: float = 0.0
    y: float = 0.0


def collect_pickups(state: "GameState", rebate: float = PICKUP_REBATE_S) -> List[RunEvent]:
    """Consume every collectible in reach; each takes `rebate` off the clock (never below 0)."""
    px, py = state.player.x, state.player.y
    pool = state.world.collectibles
    events: List[RunEvent] = []
    for i, it in list(pool.live()):
        if abs(it.x - px) < PICKUP_REACH_X and abs(it.y - py) < PICKUP_REACH_Y:
            pool.remove(i)
            state.collected += 1
            state.elapsed = max(0.0, state.elapsed - rebate)
            events.append(RunEvent(COLLECTED, rebate, it.x, it.y))
            logger.debug("collectible %d at (%.0f, %.0f) -> elapsed %.2f", i, it.x, it.y, state.elapsed)
    return events


def trigger_hazards(state: "GameState", penalty: float = HAZARD_PENALTY_S) -> List[RunEvent]:
    """Consume every hazard overlapping the runner's lane band; each adds `penalty`."""
    px, py = state.player.x, state.player.y
    band_low, band_high = py - HAZARD_BAND_BACK, py + HAZARD_BAND_FRONT
    pool = state.world.hazards
    events: List[RunEvent] = []
    for i, hz in list(pool.live()):
        low, high = hz.y - hz.h / 2, hz.y + hz.h / 2
        same_lane = abs(hz.x - px) < hz.w * HAZARD_LANE_FRAC
        overlap_y = not (band_low > high or band_high < low)
        if same_lane and overlap_y:
            pool.remove(i)
            state.hazards_hit += 1
            state.elapsed += penalty
            events.append(RunEvent(HAZARD_HIT, penalty, hz.x, hz.y))
            logger.debug("hazard %d at (%.0f, %.0f) -> elapsed %.2f", i, hz.x, hz.y, state.elapsed)
    return events
