# src/waterrun/env/water_run_env.py
from __future__ import annotations
from typing import Optional, Dict, Any
import numpy as np
import gymnasium as gym
import pygame

from waterrun.game.config import VIEW_W, VIEW_H
from waterrun.game.game import draw_scene
from waterrun.game.level import DIFFICULTIES
from waterrun.game.rowgen import GenConfig
from waterrun.game.run import GameState, Intent, Phase, arm, new_state, transition
from waterrun.game.run import step as run_step
from waterrun.game.triggers import COLLECTED, HAZARD_HIT
from waterrun.env.observations import build_observation, OBS_SIZE

# Action -> held directions for the whole decision step
ACTION_INTENTS = (
    Intent(),            # 0 NOOP
    Intent(up=True),     # 1 UP (toward the finish)
    Intent(down=True),   # 2 DOWN
    Intent(left=True),   # 3 LEFT
    Intent(right=True),  # 4 RIGHT
)


class WaterRunEnv(gym.Env):
    """
    Water Run Gymnasium environment (vector observations).
    - Simulation at 60 Hz (internal), same step function as the game.
    - Agent acts every `frame_skip` frames (default 4) -> 15 decisions/sec.
    - Observation: shape (12,), float32, see observations.build_observation.
    - Reward: progress gained / 100 minus the change in elapsed time, so a
      pickup pays its rebate and a hazard costs its penalty.
    """
    metadata = {"render_modes": ["human", "rgb_array"], "render_fps": 60}

    def __init__(self,
                 render_mode: Optional[str] = None,
                 difficulty: str = "normal",
                 frame_skip: int = 4,
                 time_limit_seconds: Optional[float] = 120.0,
                 gen_config: Optional[GenConfig] = None):
        super().__init__()
        assert frame_skip >= 1, "frame_skip must be >= 1"
        assert difficulty in DIFFICULTIES, f"difficulty must be one of {DIFFICULTIES}"
        assert render_mode is None or render_mode in self.metadata["render_modes"]
        self.render_mode = render_mode
        self.difficulty = difficulty
        self.gen_config = gen_config
        self.frame_skip = int(frame_skip)

        # Internal sim timing
        self.sim_fps = 60
        self.dt_ms = 1000.0 / self.sim_fps

        self.time_limit_decisions = None
        if time_limit_seconds is not None:
            self.time_limit_decisions = int(self.sim_fps * time_limit_seconds / self.frame_skip)

        # --- Gym spaces ---
        # Actions: 0 = NOOP, 1 = UP, 2 = DOWN, 3 = LEFT, 4 = RIGHT
        self.action_space = gym.spaces.Discrete(len(ACTION_INTENTS))
        self.observation_space = gym.spaces.Box(low=0.0, high=1.0, shape=(OBS_SIZE,), dtype=np.float32)

        # --- Runtime state ---
        self.state: Optional[GameState] = None
        self.timestep: int = 0                   # number of *decision* steps elapsed
        self.current_seed: Optional[int] = None  # track seed for this episode

        # Rendering
        self.screen = None
        self.clock = None

    # -------------------- Core API --------------------

    def reset(self, *, seed: Optional[int] = None, options: Optional[Dict[str, Any]] = None):
        super().reset(seed=seed)  # initializes self.np_random

        # Seeding policy:
        # - If a seed is provided, use it directly for the track for strict reproducibility.
        # - If not, let TrackGen randomize internally (None).
        track_seed = int(seed) if seed is not None else None

        difficulty = (options or {}).get("difficulty", self.difficulty)
        self.state = new_state(difficulty, track_seed, self.gen_config)
        # Skip the armed wait: the clock runs from the first decision
        arm(self.state)
        self.state.phase = transition(self.state.phase, "input")

        self.timestep = 0
        self.current_seed = self.state.seed

        obs = self._get_obs()
        info = self._info()
        if self.render_mode == "human":
            self.render()
        return obs, info

    def step(self, action: int):
        assert self.action_space.contains(action), f"Invalid action {action}"
        assert self.state is not None, "Call reset() before step()"

        state = self.state
        intent = ACTION_INTENTS[int(action)]
        prev_y = state.player.y
        prev_elapsed = state.elapsed
        collected = hazards = 0

        for _ in range(self.frame_skip):
            _, events = run_step(state, intent, self.dt_ms)
            collected += sum(1 for ev in events if ev.kind == COLLECTED)
            hazards += sum(1 for ev in events if ev.kind == HAZARD_HIT)
            if state.phase is Phase.FINISHED:
                break

        reward = (state.player.y - prev_y) / 100.0 - (state.elapsed - prev_elapsed)

        self.timestep += 1
        terminated = state.phase is Phase.FINISHED
        truncated = False
        if (self.time_limit_decisions is not None) and (self.timestep >= self.time_limit_decisions):
            truncated = not terminated

        obs = self._get_obs()
        info = self._info()
        info.update({"timestep": self.timestep, "collected_step": collected, "hazards_step": hazards})

        if self.render_mode == "human":
            self.render()

        return obs, float(reward), terminated, truncated, info

    # -------------------- Helpers --------------------

    def _get_obs(self) -> np.ndarray:
        assert self.state is not None
        return build_observation(self.state)

    def _info(self) -> Dict[str, Any]:
        s = self.state
        return {
            "seed": self.current_seed,
            "difficulty": s.difficulty,
            "y": s.player.y,
            "elapsed": s.elapsed,
            "collected": s.collected,
            "hazards_hit": s.hazards_hit,
            "finished": s.phase is Phase.FINISHED,
        }

    # -------------------- Rendering --------------------

    def render(self):
        if self.render_mode is None or self.state is None:
            return None

        if self.render_mode == "human":
            if self.screen is None:
                pygame.init()
                self.screen = pygame.display.set_mode((VIEW_W, VIEW_H))
                pygame.display.set_caption("Water Run - Gym Env")
                self.clock = pygame.time.Clock()
            # Pump minimal event queue so the OS doesn't think we're hung
            pygame.event.pump()
            draw_scene(self.screen, self.state)
            pygame.display.flip()
            if self.clock is not None:
                self.clock.tick(self.metadata.get("render_fps", 60))
            return None

        # rgb_array: off-screen surface, no window needed
        if self.screen is None:
            self.screen = pygame.Surface((VIEW_W, VIEW_H))
        draw_scene(self.screen, self.state)
        arr = pygame.surfarray.array3d(self.screen)  # (W, H, 3)
        return np.transpose(arr, (1, 0, 2))

    def close(self):
        if self.screen is not None:
            if self.render_mode == "human":
                pygame.display.quit()
                pygame.quit()
            self.screen = None
            self.clock = None
