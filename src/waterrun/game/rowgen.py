# src/waterrun/game/rowgen.py
"""
Row-by-row grid generation for the procedural track.

Each row splits the play width into GRID_COLS cells labelled empty, obstacle,
hazard or collectible. Rows are not independent draws: the generator keeps
the previous row's obstacle columns and a per-column count of consecutive
empty rows, and uses both to constrain the next row.
"""
from __future__ import annotations
import logging
import math
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple
from .config import (
    GRID_COLS, BASE_OBSTACLE_MIN_FRAC, BASE_OBSTACLE_MAX_FRAC, LARGE_RANGE_FRAC,
    MAX_EMPTY_STREAK, SEGMENT_ATTEMPTS, SHRINK_PASSES, DIFFICULTY_PRESETS
)

logger = logging.getLogger(__name__)

EMPTY = "empty"
OBSTACLE = "obstacle"
HAZARD = "hazard"
COLLECTIBLE = "collectible"


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def rand_int(rng: random.Random, lo: int, hi: int) -> int:
    """Inclusive randint that tolerates hi < lo (returns lo)."""
    if hi < lo:
        return lo
    return rng.randint(lo, hi)


def _pair(raw: Dict[str, Any], key: str, default: Tuple[float, float]) -> Tuple[float, float]:
    """[lo, hi] under `key`; `default` only when the key is absent."""
    if key not in raw:
        return default
    value = raw[key]
    if (not isinstance(value, (list, tuple)) or len(value) != 2
            or not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in value)):
        raise ValueError(f"{key} must be a [min, max] pair of numbers, got {value!r}")
    return float(value[0]), float(value[1])


@dataclass(frozen=True)
class GenConfig:
    """Tuning for one procedural difficulty tier."""
    row_gap: Tuple[float, float]
    yellow_weight: float
    black_weight: float
    segments: Tuple[int, int]
    size_min: float
    size_max: float
    large_chance: float
    empty_frac_min: float
    empty_frac_max: float
    yellow_plus_empty_frac_min: float

    @staticmethod
    def from_dict(raw: Dict[str, Any], cols: int = GRID_COLS) -> "GenConfig":
        """Build a config from a preset-shaped dict; missing keys fall back to
        the "relaxed" preset. Raises ValueError if the result is unusable."""
        base = DIFFICULTY_PRESETS["relaxed"]
        if not isinstance(raw, dict):
            raise ValueError(f"Generation config must be a mapping, got {type(raw).__name__}")
        size = raw.get("obstacle_size", base["obstacle_size"])
        if not isinstance(size, dict):
            raise ValueError(f"obstacle_size must be an object with min/max/large_chance, got {size!r}")
        base_size = base["obstacle_size"]
        seg_lo, seg_hi = _pair(raw, "obstacle_segments", tuple(base["obstacle_segments"]))
        if seg_lo != int(seg_lo) or seg_hi != int(seg_hi):
            raise ValueError(f"obstacle_segments must be whole numbers, got {raw['obstacle_segments']!r}")
        try:
            cfg = GenConfig(
                row_gap=_pair(raw, "row_gap", tuple(base["row_gap"])),
                yellow_weight=float(raw.get("yellow_weight", base["yellow_weight"])),
                black_weight=float(raw.get("black_weight", base["black_weight"])),
                segments=(int(seg_lo), int(seg_hi)),
                size_min=float(size.get("min", base_size["min"])),
                size_max=float(size.get("max", base_size["max"])),
                large_chance=float(size.get("large_chance", base_size["large_chance"])),
                empty_frac_min=float(raw.get("empty_frac_min", base["empty_frac_min"])),
                empty_frac_max=float(raw.get("empty_frac_max", base["empty_frac_max"])),
                yellow_plus_empty_frac_min=float(
                    raw.get("yellow_plus_empty_frac_min", base["yellow_plus_empty_frac_min"])
                ),
            )
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid generation config: {e}") from e
        cfg.validate(cols)
        return cfg

    @staticmethod
    def preset(name: str) -> "GenConfig":
        if name not in DIFFICULTY_PRESETS:
            raise ValueError(f"Unknown preset {name!r} (choose from {sorted(DIFFICULTY_PRESETS)})")
        return GenConfig.from_dict(DIFFICULTY_PRESETS[name])

    # --- derived counts ---

    def obstacle_width_range(self, cols: int) -> Tuple[int, int]:
        lo = max(1, round_half_up(cols * max(BASE_OBSTACLE_MIN_FRAC, self.size_min)))
        hi = max(lo, round_half_up(cols * min(BASE_OBSTACLE_MAX_FRAC, self.size_max)))
        return lo, hi

    def empty_bounds(self, cols: int) -> Tuple[int, int]:
        lo = max(1, round_half_up(cols * self.empty_frac_min))
        hi = max(lo, round_half_up(cols * self.empty_frac_max))
        return lo, hi

    def validate(self, cols: int) -> None:
        if self.row_gap[0] <= 0 or self.row_gap[1] < self.row_gap[0]:
            raise ValueError(f"row_gap must be 0 < min <= max, got {self.row_gap}")
        if self.yellow_weight < 0 or self.black_weight < 0 or self.yellow_weight + self.black_weight <= 0:
            raise ValueError("yellow_weight/black_weight must be >= 0 and not both zero")
        if self.segments[0] < 0 or self.segments[1] < self.segments[0]:
            raise ValueError(f"obstacle_segments must be 0 <= min <= max, got {self.segments}")
        for name in ("size_min", "size_max", "large_chance", "empty_frac_min",
                     "empty_frac_max", "yellow_plus_empty_frac_min"):
            v = getattr(self, name)
            if not 0.0 <= v <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {v}")
        if self.empty_frac_max < self.empty_frac_min:
            raise ValueError("empty_frac_max must be >= empty_frac_min")
        min_cols, _ = self.obstacle_width_range(cols)
        min_empty, _ = self.empty_bounds(cols)
        if min_cols >= cols:
            raise ValueError(f"minimum obstacle width {min_cols} does not fit {cols} columns")
        # narrowest legal layout: min-width segments separated by one gap
        needed = self.segments[0] * min_cols + max(0, self.segments[0] - 1)
        if cols - needed < min_empty:
            raise ValueError(
                f"{self.segments[0]} segments of width {min_cols} leave fewer than "
                f"{min_empty} empty columns out of {cols}"
            )


@dataclass
class Segment:
    start: int
    end: int  # inclusive


@dataclass
class RowLayout:
    y: float
    cells: List[str]
    reserved_empty: int
    min_empty: int
    max_empty: int
    min_yellow_plus_empty: int
    eligible: Set[int]                                   # may still become hazard or collectible
    forced_hazards: int = 0
    forced_cols: Set[int] = field(default_factory=set)   # obstacles placed ignoring the previous row
    relaxed_cols: Set[int] = field(default_factory=set)  # left empty although the streak rule asked otherwise

    def count(self, label: str) -> int:
        return sum(1 for c in self.cells if c == label)

    def cols_with(self, label: str) -> Set[int]:
        return {i for i, c in enumerate(self.cells) if c == label}


class RowGenerator:
    """
    Builds one row at a time. Cross-row state:
      - prev_obstacle_cols: obstacle columns of the last row built
      - empty_streaks[c]: consecutive rows column c has stayed empty
    """

    def __init__(self, cfg: GenConfig, rng: random.Random, cols: int = GRID_COLS):
        cfg.validate(cols)
        self.cfg = cfg
        self.rng = rng
        self.cols = cols
        self.prev_obstacle_cols: Set[int] = set()
        self.empty_streaks: List[int] = [0] * cols

    def build_row(self, y: float) -> RowLayout:
        cols = self.cols
        min_empty, max_empty = self.cfg.empty_bounds(cols)
        min_yp_base = round_half_up(cols * self.cfg.yellow_plus_empty_frac_min)
        cells = [EMPTY] * cols
        forced_cols: Set[int] = set()
        relaxed: Set[int] = set()

        segments = self._place_segments(cells, min_empty, forced_cols)
        forced_hazards = self._enforce_safety(cells, segments, min_empty, relaxed)

        # density cap
        clear = cells.count(EMPTY)
        if clear > max_empty:
            empties = [c for c in range(cols) if cells[c] == EMPTY]
            self.rng.shuffle(empties)
            for col in empties[:clear - max_empty]:
                cells[col] = HAZARD
                forced_hazards += 1
                self.empty_streaks[col] = 0

        # reserve a guaranteed path; the rest is up for grabs
        empty_cols = [c for c in range(cols) if cells[c] == EMPTY]
        self.rng.shuffle(empty_cols)
        reserve_max = min(len(empty_cols), max_empty)
        reserve_min = min(len(empty_cols), min_empty)
        reserve_count = rand_int(self.rng, reserve_min, reserve_max) if reserve_max > reserve_min else reserve_max
        reserved = empty_cols[:reserve_count]
        eligible = set(empty_cols[reserve_count:])
        min_yp = min(len(reserved) + len(eligible), max(len(reserved), min_yp_base))

        self.prev_obstacle_cols.clear()
        self.prev_obstacle_cols.update(c for c in range(cols) if cells[c] == OBSTACLE)

        if relaxed:
            logger.debug("row y=%.0f: streak rule relaxed on cols %s", y, sorted(relaxed))

        return RowLayout(
            y=y,
            cells=cells,
            reserved_empty=len(reserved),
            min_empty=min_empty,
            max_empty=max_empty,
            min_yellow_plus_empty=min_yp,
            eligible=eligible,
            forced_hazards=forced_hazards,
            forced_cols=forced_cols,
            relaxed_cols=relaxed,
        )

    # --- step 1: obstacle segments ---

    def _place_segments(self, cells: List[str], min_empty: int, forced_cols: Set[int]) -> List[Segment]:
        seg_lo, seg_hi = self.cfg.segments
        target = rand_int(self.rng, seg_lo, seg_hi)
        min_cols, max_cols = self.cfg.obstacle_width_range(self.cols)
        segments: List[Segment] = []

        placed = 0
        attempts = 0
        while placed < target and attempts < SEGMENT_ATTEMPTS:
            attempts += 1
            width = min(self._choose_width(min_cols, max_cols), self.cols - 1)
            start: Optional[int] = None
            size = width
            for size in range(min(width, max_cols), min_cols - 1, -1):
                start = self._find_slot(cells, size, min_empty)
                if start is not None:
                    break
            if start is None:
                continue
            self._apply_segment(cells, start, size, segments)
            placed += 1

        if placed < seg_lo:
            logger.debug("placed %d/%d segments, forcing the rest", placed, seg_lo)
            for _ in range(seg_lo - placed):
                start = self._find_slot(cells, min_cols, min_empty, force=True)
                if start is None:
                    break
                self._apply_segment(cells, start, min_cols, segments)
                forced_cols.update(range(start, start + min_cols))

        guard = 0
        while cells.count(EMPTY) < min_empty and guard < SHRINK_PASSES:
            guard += 1
            if self._shrink_for_clear(cells, segments) is None:
                break
        return segments

    def _choose_width(self, min_cols: int, max_cols: int) -> int:
        """Biased toward the wide end with probability `large_chance`."""
        if min_cols == max_cols:
            return min_cols
        large_start = max(min_cols, int(math.floor(max_cols * LARGE_RANGE_FRAC)))
        if self.rng.random() < self.cfg.large_chance:
            return rand_int(self.rng, large_start, max_cols)
        return rand_int(self.rng, min_cols, max(min_cols, round_half_up((min_cols + max_cols) / 2)))

    def _find_slot(self, cells: List[str], width: int, min_empty: int, force: bool = False) -> Optional[int]:
        """
        Start column of a free span of `width`, or None. Spans touching a
        playfield edge win. `force` drops the previous-row and min-empty
        constraints (never the no-touching-obstacles one).
        """
        clear = cells.count(EMPTY)
        candidates: List[int] = []
        for start in range(self.cols - width + 1):
            span = range(start, start + width)
            if any(cells[c] != EMPTY for c in span):
                continue
            if not force and any(c in self.prev_obstacle_cols for c in span):
                continue
            if start > 0 and cells[start - 1] == OBSTACLE:
                continue
            if start + width < self.cols and cells[start + width] == OBSTACLE:
                continue
            if not force and clear - width < min_empty:
                continue
            candidates.append(start)
        if not candidates:
            return None
        edge = [s for s in candidates if s == 0 or s + width == self.cols]
        return self.rng.choice(edge or candidates)

    def _apply_segment(self, cells: List[str], start: int, width: int, segments: List[Segment]) -> None:
        for col in range(start, start + width):
            cells[col] = OBSTACLE
        segments.append(Segment(start, start + width - 1))

    def _shrink_for_clear(self, cells: List[str], segments: List[Segment]) -> Optional[int]:
        """
        Trim one end column off the longest shrinkable segment. Ends that sit
        over a previous-row obstacle are avoided when possible.
        Returns the freed column, or None if nothing could shrink.
        """
        min_cols = max(1, round_half_up(self.cols * BASE_OBSTACLE_MIN_FRAC))
        segments.sort(key=lambda s: s.end - s.start, reverse=True)
        for seg in segments:
            if seg.end - seg.start + 1 <= min_cols:
                continue
            options = [c for c in (seg.start, seg.end) if c not in self.prev_obstacle_cols]
            col = self.rng.choice(options) if options else seg.start
            cells[col] = EMPTY
            if col == seg.start:
                seg.start += 1
            else:
                seg.end -= 1
            return col
        return None

    # --- step 2: no straight-line safety ---

    def _enforce_safety(self, cells: List[str], segments: List[Segment], min_empty: int, relaxed: Set[int]) -> int:
        streaks = self.empty_streaks
        before = list(streaks)
        forced = 0
        clear = cells.count(EMPTY)
        for col in range(self.cols):
            if cells[col] != EMPTY:
                streaks[col] = 0
                continue
            streaks[col] += 1
            if streaks[col] <= MAX_EMPTY_STREAK:
                continue

            if clear - 1 < min_empty:
                freed = self._shrink_for_clear(cells, segments)
                if freed is not None:
                    clear = cells.count(EMPTY)
                    if freed < col:
                        # already walked past it as an obstacle
                        streak = before[freed] + 1
                        if streak > MAX_EMPTY_STREAK:
                            streak = MAX_EMPTY_STREAK
                            relaxed.add(freed)
                        streaks[freed] = streak

            if clear - 1 >= min_empty:
                cells[col] = HAZARD
                clear -= 1
                forced += 1
                streaks[col] = 0
            else:
                # give up for this row; retry on the next one
                streaks[col] = MAX_EMPTY_STREAK
                relaxed.add(col)
        return forced
