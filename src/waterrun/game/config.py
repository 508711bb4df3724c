# --- Display ---
VIEW_W = 480
VIEW_H = 720
FPS = 60

# --- Track ---
TRACK_LEN = 5200            # world units from y=0 to the finish line
EDGE_MARGIN = 20            # playable width inset on both sides
LANE_COUNT = 3
SEED_DEFAULT = 12345

# --- Runner ---
START_Y = 80                # runner can never back up past this
MOVE_SPEED = 252.0          # units/s on each held axis
RUNNER_HALF_W = 18
RUNNER_TAIL = 40            # box extends this far behind y
RUNNER_HEAD = 12            # ... and this far ahead of y
OBSTACLE_PAD_X = 12         # obstacle box inset, horizontal
OBSTACLE_PAD_Y = 12         # obstacle box inset, vertical

# --- Timing ---
MAX_FRAME_MS = 48           # clamp stalls (backgrounded window, debugger...)
CAMERA_LEAD_FRAC = 0.68     # runner sits this far up the view

# --- Pickups / hazards ---
PICKUP_REACH_X = 28
PICKUP_REACH_Y = 42
PICKUP_REBATE_S = 3.0
HAZARD_PENALTY_S = 4.0
HAZARD_LANE_FRAC = 0.6      # |dx| < w * frac counts as same lane
HAZARD_BAND_BACK = 40
HAZARD_BAND_FRONT = 20

# --- Grid / rows ---
GRID_COLS = 12
CELL_W = VIEW_W / GRID_COLS
OBSTACLE_H = 52
HAZARD_W = 46
HAZARD_H = 26
BASE_OBSTACLE_MIN_FRAC = 0.15
BASE_OBSTACLE_MAX_FRAC = 0.40
LARGE_RANGE_FRAC = 0.75     # "large" widths start at this fraction of max
MAX_EMPTY_STREAK = 3        # rows a column may stay empty in a row
SEGMENT_ATTEMPTS = 120
SHRINK_PASSES = 10

# --- Track builder ---
PATTERN_END_MARGIN = 200
PROC_START_Y = 260
PROC_END_MARGIN = 220

EASY_START_Y = 320
EASY_ROW_SPACING = 125
NORMAL_START_Y = 300
NORMAL_ROW_SPACING = 110

# Procedural tiers. "relaxed" is the default for the custom tier.
DIFFICULTY_PRESETS = {
    "relaxed": {
        "row_gap": [140, 190],
        "yellow_weight": 3,
        "black_weight": 1,
        "obstacle_segments": [2, 3],
        "obstacle_size": {"min": 0.15, "max": 0.26, "large_chance": 0.25},
        "empty_frac_min": 0.30,
        "empty_frac_max": 0.50,
        "yellow_plus_empty_frac_min": 0.40,
    },
    "hard": {
        "row_gap": [110, 165],
        "yellow_weight": 1,
        "black_weight": 3,
        "obstacle_segments": [3, 5],
        "obstacle_size": {"min": 0.22, "max": 0.40, "large_chance": 0.65},
        "empty_frac_min": 0.10,
        "empty_frac_max": 0.20,
        "yellow_plus_empty_frac_min": 0.15,
    },
}

# --- Colors (RGB) ---
COLOR_BG = (23, 92, 40)
COLOR_FG = (235, 245, 235)
COLOR_RUNNER = (96, 165, 250)
COLOR_RUNNER_HEAD = (147, 197, 253)
COLOR_OBSTACLE = (63, 45, 32)
COLOR_OBSTACLE_EDGE = (217, 119, 6)
COLOR_HAZARD = (37, 51, 49)
COLOR_COLLECTIBLE = (255, 216, 77)
COLOR_FINISH = (255, 216, 77)
COLOR_DANGER = (239, 68, 68)
COLOR_GOOD = (34, 197, 94)
