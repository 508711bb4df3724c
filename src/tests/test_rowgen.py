# src/tests/test_rowgen.py
import random

import pytest

from waterrun.game.config import MAX_EMPTY_STREAK, GRID_COLS
from waterrun.game.rowgen import (
    GenConfig, RowGenerator, EMPTY, OBSTACLE, HAZARD, round_half_up
)


def make_rows(cfg: GenConfig, seed: int, n: int = 60):
    gen = RowGenerator(cfg, random.Random(seed))
    return [gen.build_row(260 + i * 150) for i in range(n)]


def test_round_half_up_matches_js_rounding():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(1.8) == 2
    assert round_half_up(-0.5) == 0


def test_presets_are_feasible():
    for name in ("relaxed", "hard"):
        cfg = GenConfig.preset(name)
        cfg.validate(GRID_COLS)
    assert GenConfig.preset("hard").obstacle_width_range(GRID_COLS) == (3, 5)
    assert GenConfig.preset("relaxed").empty_bounds(GRID_COLS) == (4, 6)


def test_from_dict_fills_missing_keys_from_relaxed():
    cfg = GenConfig.from_dict({"black_weight": 2})
    assert cfg.black_weight == 2.0
    assert cfg.yellow_weight == 3.0
    assert cfg.segments == (2, 3)


def test_infeasible_config_raises():
    with pytest.raises(ValueError):
        GenConfig.from_dict({"obstacle_segments": [5, 5], "obstacle_size": {"min": 0.4, "max": 0.4}})
    with pytest.raises(ValueError):
        GenConfig.from_dict({"empty_frac_min": 0.6, "empty_frac_max": 0.3})
    with pytest.raises(ValueError):
        GenConfig.from_dict({"yellow_weight": "lots"})
    with pytest.raises(ValueError):
        GenConfig.preset("brutal")


@pytest.mark.parametrize("raw", [
    {"row_gap": 150},
    {"row_gap": [140]},
    {"row_gap": ["wide", "wider"]},
    {"obstacle_segments": "3-5"},
    {"obstacle_segments": [2.5, 3]},
    {"obstacle_size": "huge"},
    ["row_gap", 140, 190],
])
def test_malformed_values_are_rejected(raw):
    with pytest.raises(ValueError):
        GenConfig.from_dict(raw)


@pytest.mark.parametrize("preset", ["relaxed", "hard"])
def test_forced_fallback_places_minimum_segments(preset):
    # every column blocked by the previous row: only the forced path can place
    cfg = GenConfig.preset(preset)
    gen = RowGenerator(cfg, random.Random(17))
    gen.prev_obstacle_cols = set(range(GRID_COLS))
    row = gen.build_row(400)
    cells = row.cells
    runs = sum(1 for c in range(GRID_COLS)
               if cells[c] == OBSTACLE and (c == 0 or cells[c - 1] != OBSTACLE))
    assert row.forced_cols
    assert runs >= cfg.segments[0]
    assert row.cols_with(OBSTACLE) == row.forced_cols
    assert row.count(EMPTY) >= row.min_empty


@pytest.mark.parametrize("preset", ["relaxed", "hard"])
def test_rows_respect_empty_bounds(preset):
    cfg = GenConfig.preset(preset)
    for seed in range(5):
        for row in make_rows(cfg, seed):
            clear = row.count(EMPTY)
            assert row.min_empty <= clear <= row.max_empty
            assert row.reserved_empty + len(row.eligible) == clear
            assert len(row.cells) == GRID_COLS


@pytest.mark.parametrize("preset", ["relaxed", "hard"])
def test_no_column_stays_empty_too_long(preset):
    cfg = GenConfig.preset(preset)
    for seed in range(5):
        streaks = [0] * GRID_COLS
        for row in make_rows(cfg, seed):
            for col, cell in enumerate(row.cells):
                streaks[col] = streaks[col] + 1 if cell == EMPTY else 0
                if streaks[col] > MAX_EMPTY_STREAK:
                    assert col in row.relaxed_cols


@pytest.mark.parametrize("preset", ["relaxed", "hard"])
def test_obstacles_avoid_previous_row_unless_forced(preset):
    cfg = GenConfig.preset(preset)
    for seed in range(5):
        prev = set()
        for row in make_rows(cfg, seed):
            cur = row.cols_with(OBSTACLE)
            assert (cur & prev) <= row.forced_cols
            prev = cur


def test_same_seed_same_rows():
    cfg = GenConfig.preset("hard")
    a = [r.cells for r in make_rows(cfg, 99, n=30)]
    b = [r.cells for r in make_rows(cfg, 99, n=30)]
    assert a == b


def test_streak_rule_relaxed_when_row_cannot_spare_a_column():
    # one unshrinkable 2-wide block and exactly 10 empties required
    cfg = GenConfig.from_dict({
        "obstacle_segments": [1, 1],
        "obstacle_size": {"min": 0.15, "max": 0.15, "large_chance": 0.0},
        "empty_frac_min": 0.84,
        "empty_frac_max": 0.84,
    })
    gen = RowGenerator(cfg, random.Random(3))
    gen.empty_streaks = [MAX_EMPTY_STREAK] * GRID_COLS
    row = gen.build_row(400)
    assert row.count(EMPTY) == 10
    assert row.count(OBSTACLE) == 2
    assert row.forced_hazards == 0
    assert row.relaxed_cols == row.cols_with(EMPTY)
    for col in row.relaxed_cols:
        assert gen.empty_streaks[col] == MAX_EMPTY_STREAK


def test_streak_rule_shrinks_a_block_to_free_a_column():
    # 3-wide block, 9..10 empties: one shrink frees room for a single forced hazard
    cfg = GenConfig.from_dict({
        "obstacle_segments": [1, 1],
        "obstacle_size": {"min": 0.25, "max": 0.25, "large_chance": 0.0},
        "empty_frac_min": 0.75,
        "empty_frac_max": 0.84,
    })
    gen = RowGenerator(cfg, random.Random(5))
    gen.empty_streaks = [MAX_EMPTY_STREAK] * GRID_COLS
    row = gen.build_row(400)
    assert row.forced_hazards == 1
    assert row.count(HAZARD) == 1
    assert row.count(OBSTACLE) == 2
    assert row.count(EMPTY) == 9
    assert gen.prev_obstacle_cols == row.cols_with(OBSTACLE)


if __name__ == "__main__":
    raise SystemExit(pytest.main([__file__, "-q"]))
