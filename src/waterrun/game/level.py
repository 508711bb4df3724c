# src/waterrun/game/level.py
from __future__ import annotations
import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
from .config import (
    TRACK_LEN, GRID_COLS, CELL_W, OBSTACLE_H, HAZARD_W, HAZARD_H,
    PATTERN_END_MARGIN, PROC_START_Y, PROC_END_MARGIN,
    EASY_START_Y, EASY_ROW_SPACING, NORMAL_START_Y, NORMAL_ROW_SPACING
)
from .rowgen import GenConfig, RowGenerator, RowLayout, OBSTACLE, HAZARD, COLLECTIBLE, round_half_up
from .world import Collectible, Hazard, Obstacle, World

logger = logging.getLogger(__name__)

DIFFICULTIES = ("easy", "normal", "hard", "custom")


@dataclass(frozen=True)
class PatternRow:
    """Hand-authored row: obstacle (start, width) spans plus single cells."""
    obstacles: Tuple[Tuple[int, int], ...] = ()
    hazards: Tuple[int, ...] = ()
    yellows: Tuple[int, ...] = ()
    spacing: Optional[float] = None  # distance to the next row; None = pattern default


EASY_PATTERN: Tuple[PatternRow, ...] = (
    PatternRow(obstacles=((3, 6),), hazards=(1, 10), yellows=(5,)),
    PatternRow(obstacles=((0, 4), (8, 4)), hazards=(4, 7), yellows=(1, 10)),
    PatternRow(obstacles=((3, 6),), hazards=(5,), yellows=(1, 10)),
    PatternRow(obstacles=((0, 4), (8, 4)), hazards=(4, 7), yellows=(5,)),
)

_HALF = NORMAL_ROW_SPACING / 2
_ROW_A = ((2, 3), (7, 3), (11, 1))
_ROW_B = ((0, 1), (3, 5), (10, 2))
_ROW_C = ((0, 4), (8, 4))
_ROW_D = ((0, 1), (3, 7))

# Obstacle rows alternate with obstacle-free spacer rows, all half-spaced.
NORMAL_PATTERN: Tuple[PatternRow, ...] = (
    PatternRow(_ROW_A, (0, 1, 6, 10), (5,), _HALF),
    PatternRow((), (8,), (), _HALF),
    PatternRow(_ROW_B, (2, 9), (7,), _HALF),
    PatternRow((), (6,), (), _HALF),
    PatternRow(_ROW_C, (4, 7), (6,), _HALF),
    PatternRow((), (8,), (), _HALF),
    PatternRow(_ROW_D, (1, 10), (2, 9), _HALF),
    PatternRow((), (0, 6, 8), (), _HALF),
    PatternRow(_ROW_A, (1, 6), (5,), _HALF),
    PatternRow((), (0, 9), (), _HALF),
    PatternRow(_ROW_B, (1, 2, 9), (7,), _HALF),
    PatternRow((), (0, 3, 5, 9), (), _HALF),
    PatternRow(_ROW_C, (4, 7), (6,), _HALF),
    PatternRow((), (2,), (), _HALF),
    PatternRow(_ROW_D, (1, 10), (2, 9), _HALF),
    PatternRow((), (0, 6, 8), (), _HALF),
)


@dataclass
class TrackStats:
    forced_hazards: int = 0
    target_hazards: int = 0
    obstacles: int = 0
    hazards: int = 0
    collectibles: int = 0


@dataclass
class Track:
    difficulty: str
    seed: int
    obstacles: List[Obstacle] = field(default_factory=list)
    hazards: List[Hazard] = field(default_factory=list)
    collectibles: List[Collectible] = field(default_factory=list)
    rows: List[RowLayout] = field(default_factory=list)  # procedural only
    stats: TrackStats = field(default_factory=TrackStats)
    track_len: float = TRACK_LEN

    def to_world(self) -> World:
        return World.from_entities(self.obstacles, self.hazards, self.collectibles, self.track_len)


def cell_center_x(col: int) -> float:
    return col * CELL_W + CELL_W / 2


class TrackGen:
    """
    Builds the entity layout for one run.
    Pattern tiers replay a fixed row list; procedural tiers drive RowGenerator
    with a seeded RNG, so the same seed always yields the same track.
    """

    def __init__(self, seed: int | None, track_len: float = TRACK_LEN, cols: int = GRID_COLS):
        if seed is None:
            seed = random.randrange(0, 2**32 - 1)
        self.seed = seed
        self.rng = random.Random(seed)
        self.track_len = track_len
        self.cols = cols

    def build(self, difficulty: str, gen_config: Optional[GenConfig] = None) -> Track:
        track = Track(difficulty=difficulty, seed=self.seed, track_len=self.track_len)
        if difficulty == "easy":
            self._build_pattern(track, EASY_PATTERN, EASY_START_Y, EASY_ROW_SPACING, final_index=0)
        elif difficulty == "normal":
            self._build_pattern(track, NORMAL_PATTERN, NORMAL_START_Y, NORMAL_ROW_SPACING,
                                final_index=len(NORMAL_PATTERN) - 2)
        elif difficulty == "hard":
            self._build_procedural(track, gen_config or GenConfig.preset("hard"))
        elif difficulty == "custom":
            self._build_procedural(track, gen_config or GenConfig.preset("relaxed"))
        else:
            raise ValueError(f"Unknown difficulty {difficulty!r} (choose from {DIFFICULTIES})")

        track.stats.obstacles = len(track.obstacles)
        track.stats.hazards = len(track.hazards)
        track.stats.collectibles = len(track.collectibles)
        logger.info("built %s track seed=%s: %d obstacles, %d hazards, %d collectibles",
                    difficulty, self.seed, track.stats.obstacles, track.stats.hazards,
                    track.stats.collectibles)
        return track

    # -------------------- Pattern mode --------------------

    def _build_pattern(self, track: Track, pattern: Sequence[PatternRow], start_y: float,
                       spacing: float, final_index: int) -> None:
        if not pattern:
            return
        y = start_y
        index = 0
        last_obstacle_y = float("-inf")
        while y < self.track_len - PATTERN_END_MARGIN:
            row = pattern[index % len(pattern)]
            self._place_pattern_row(track, row, y)
            if row.obstacles:
                last_obstacle_y = y
            index += 1
            y += row.spacing if row.spacing is not None else spacing

        # keep the finish stretch from being bare
        if self.track_len - last_obstacle_y > spacing:
            final = pattern[final_index % len(pattern)]
            step = final.spacing if final.spacing is not None else spacing
            self._place_pattern_row(track, final, self.track_len - step)

    def _place_pattern_row(self, track: Track, row: PatternRow, y: float) -> None:
        for start, width in row.obstacles:
            track.obstacles.append(_obstacle_span(start, start + width - 1, y))
        for col in row.hazards:
            track.hazards.append(Hazard(cell_center_x(col), y, HAZARD_W, HAZARD_H))
        for col in row.yellows:
            track.collectibles.append(Collectible(cell_center_x(col), y))

    # -------------------- Procedural mode --------------------

    def _row_positions(self, cfg: GenConfig) -> List[float]:
        lo, hi = cfg.row_gap
        span = max(0.0, hi - lo)
        ys: List[float] = []
        y = float(PROC_START_Y)
        while y < self.track_len - PROC_END_MARGIN:
            ys.append(y)
            y += lo + self.rng.random() * span
        return ys

    def _build_procedural(self, track: Track, cfg: GenConfig) -> None:
        gen = RowGenerator(cfg, self.rng, self.cols)
        rows = [gen.build_row(y) for y in self._row_positions(cfg)]
        track.rows = rows
        if not rows:
            return

        forced = sum(r.forced_hazards for r in rows)
        pool = [(ri, col) for ri, r in enumerate(rows) for col in sorted(r.eligible)]
        total_weight = cfg.yellow_weight + cfg.black_weight
        target = max(forced, round_half_up(cfg.black_weight / total_weight * (len(pool) + forced)))
        remaining = max(0, target - forced)
        track.stats.forced_hazards = forced
        track.stats.target_hazards = target

        self.rng.shuffle(pool)
        remaining = self._assign_hazards(rows, pool, remaining, keep_floor=True)
        if remaining > 0:
            logger.debug("hazard target short by %d after constrained pass, relaxing", remaining)
            fallback = [(ri, col) for ri, r in enumerate(rows) for col in sorted(r.eligible)]
            self.rng.shuffle(fallback)
            remaining = self._assign_hazards(rows, fallback, remaining, keep_floor=False)

        for r in rows:
            for col in r.eligible:
                r.cells[col] = COLLECTIBLE
            r.eligible.clear()

        for r in rows:
            self._emit_row(track, r)

    def _assign_hazards(self, rows: List[RowLayout], slots: List[Tuple[int, int]], remaining: int,
                        keep_floor: bool) -> int:
        for ri, col in slots:
            if remaining <= 0:
                break
            row = rows[ri]
            if col not in row.eligible:
                continue
            if keep_floor and row.reserved_empty + len(row.eligible) - 1 < row.min_yellow_plus_empty:
                continue
            row.cells[col] = HAZARD
            row.eligible.discard(col)
            remaining -= 1
        return remaining

    def _emit_row(self, track: Track, row: RowLayout) -> None:
        """Collapse obstacle runs into wide blocks; hazards/collectibles stay per cell."""
        cells = row.cells
        col = 0
        while col < len(cells):
            if cells[col] == OBSTACLE:
                end = col
                while end + 1 < len(cells) and cells[end + 1] == OBSTACLE:
                    end += 1
                track.obstacles.append(_obstacle_span(col, end, row.y))
                col = end + 1
                continue
            if cells[col] == HAZARD:
                track.hazards.append(Hazard(cell_center_x(col), row.y, HAZARD_W, HAZARD_H))
            elif cells[col] == COLLECTIBLE:
                track.collectibles.append(Collectible(cell_center_x(col), row.y))
            col += 1


def _obstacle_span(first_col: int, last_col: int, y: float) -> Obstacle:
    left = first_col * CELL_W
    right = (last_col + 1) * CELL_W
    return Obstacle(x=(left + right) / 2, y=y, w=right - left, h=OBSTACLE_H)


def build_world(difficulty: str, seed: int | None = None, gen_config: Optional[GenConfig] = None,
                track_len: float = TRACK_LEN) -> Tuple[World, Track]:
    track = TrackGen(seed, track_len=track_len).build(difficulty, gen_config)
    return track.to_world(), track
