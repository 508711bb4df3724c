# src/waterrun/env/observations.py
from __future__ import annotations
from typing import Tuple
import numpy as np

from waterrun.game.config import (
    START_Y, RUNNER_HALF_W, RUNNER_HEAD, RUNNER_TAIL,
    PICKUP_REACH_X, HAZARD_LANE_FRAC, HAZARD_BAND_BACK
)
from waterrun.game.player import MIN_X, MAX_X

# How far ahead of the runner's head the lane probes look (world units)
LOOKAHEAD: float = 360.0
# Elapsed time is reported as a fraction of this many seconds (then clipped)
ELAPSED_SCALE_S: float = 60.0

OBS_SIZE = 12


def _clamp01(x: float) -> float:
    return 0.0 if x < 0.0 else (1.0 if x > 1.0 else x)


def _obstacle_clearance(state, lane_x: float, lookahead: float) -> float:
    """
    Gap from the runner's head to the nearest obstacle ahead that would block
    a runner centered on lane_x, as a fraction of `lookahead` (1.0 = clear).
    """
    py = state.player.y
    head = py + RUNNER_HEAD
    best = 1.0
    for ob in state.world.obstacles:
        left, right, low, high = ob.padded_bounds()
        if lane_x + RUNNER_HALF_W < left or lane_x - RUNNER_HALF_W > right:
            continue
        if high < py - RUNNER_TAIL:
            continue  # behind
        gap = max(0.0, low - head)
        if gap <= lookahead:
            best = min(best, gap / lookahead)
    return best


def _lane_flags(state, lane_x: float, lookahead: float) -> Tuple[float, float]:
    """(hazard_ahead, collectible_ahead) as 0/1 for one lane."""
    py = state.player.y
    lo, hi = py - HAZARD_BAND_BACK, py + lookahead
    hazard = 0.0
    for hz in state.world.hazards.values():
        if lo <= hz.y <= hi and abs(hz.x - lane_x) < hz.w * HAZARD_LANE_FRAC:
            hazard = 1.0
            break
    pickup = 0.0
    for it in state.world.collectibles.values():
        if lo <= it.y <= hi and abs(it.x - lane_x) < PICKUP_REACH_X:
            pickup = 1.0
            break
    return hazard, pickup


def build_observation(state, lookahead: float = LOOKAHEAD) -> np.ndarray:
    """
    Returns a fixed (12,) float32 vector in [0, 1]:
      [ x_norm, progress, elapsed_norm,
        clear@lane0, hazard@lane0, pickup@lane0,
        clear@lane1, hazard@lane1, pickup@lane1,
        clear@lane2, hazard@lane2, pickup@lane2 ]
    - x_norm: runner x across the playable width
    - progress: distance covered from the start line to the finish
    - clear@lane: obstacle gap ahead / lookahead (1 = nothing within range)
    - hazard/pickup@lane: any live entity in that lane within range
    """
    player = state.player
    world = state.world
    x_norm = _clamp01((player.x - MIN_X) / max(1.0, MAX_X - MIN_X))
    progress = _clamp01((player.y - START_Y) / max(1.0, world.track_len - START_Y))
    elapsed = _clamp01(state.elapsed / ELAPSED_SCALE_S)

    feats = [x_norm, progress, elapsed]
    for lane_x in world.lanes:
        clear = _obstacle_clearance(state, lane_x, lookahead)
        hazard, pickup = _lane_flags(state, lane_x, lookahead)
        feats.extend([clear, hazard, pickup])

    obs = np.asarray(feats, dtype=np.float32)
    return np.clip(obs, 0.0, 1.0)
