# src/waterrun/game/run.py
"""
Run lifecycle and the per-frame step.

    IDLE --arm--> ARMED --input--> PLAYING --finish--> FINISHED
      ^______________________reset_____________________|

`step(state, intent, dt_ms)` is the whole frame: lane shift, movement,
collision, camera, timer, pickups, hazards, finish check. It only touches
the GameState it is given, so runs can be replayed headless from a seed
and an input log.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Tuple
from .config import VIEW_H, MAX_FRAME_MS, CAMERA_LEAD_FRAC, START_Y
from .level import Track, TrackGen
from .player import Player
from .rowgen import GenConfig
from .triggers import FINISHED, RunEvent, collect_pickups, trigger_hazards
from .world import World

logger = logging.getLogger(__name__)

DIRECTIONS = ("up", "down", "left", "right")


class Phase(Enum):
    IDLE = "idle"
    ARMED = "armed"
    PLAYING = "playing"
    FINISHED = "finished"


_TRANSITIONS = {
    (Phase.IDLE, "arm"): Phase.ARMED,
    (Phase.ARMED, "input"): Phase.PLAYING,
    (Phase.PLAYING, "finish"): Phase.FINISHED,
}


def transition(phase: Phase, trigger: str) -> Phase:
    """Next phase for `trigger`; illegal transitions leave the phase unchanged."""
    if trigger == "reset":
        return Phase.IDLE
    nxt = _TRANSITIONS.get((phase, trigger))
    if nxt is None:
        logger.debug("ignored %r while %s", trigger, phase.value)
        return phase
    return nxt


@dataclass
class Intent:
    """Held directions plus one-shot gestures, consumed at the next frame."""
    up: bool = False
    down: bool = False
    left: bool = False
    right: bool = False
    lane_shift: int = 0     # touch swipe, in lanes
    tap: bool = False       # touch with no direction: starts an armed run

    def held(self) -> bool:
        return self.up or self.down or self.left or self.right

    def qualifies(self) -> bool:
        return self.held() or self.lane_shift != 0 or self.tap

    def set(self, direction: str, value: bool) -> None:
        if direction not in DIRECTIONS:
            raise ValueError(f"Unknown direction {direction!r}")
        setattr(self, direction, value)

    def clear(self) -> None:
        self.up = self.down = self.left = self.right = False
        self.lane_shift = 0
        self.tap = False


@dataclass
class GameState:
    difficulty: str
    seed: int
    world: World
    player: Player
    phase: Phase = Phase.IDLE
    elapsed: float = 0.0
    camera_y: float = 0.0
    collected: int = 0
    hazards_hit: int = 0
    track: Optional[Track] = field(default=None, repr=False)


def new_state(difficulty: str = "normal", seed: int | None = None,
              gen_config: Optional[GenConfig] = None) -> GameState:
    """Fresh world and runner for `difficulty`; the run starts IDLE."""
    track = TrackGen(seed).build(difficulty, gen_config)
    world = track.to_world()
    lanes = world.lanes
    player = Player(x=lanes[len(lanes) // 2], y=float(START_Y))
    return GameState(difficulty=difficulty, seed=track.seed, world=world, player=player, track=track)


def arm(state: GameState) -> GameState:
    state.phase = transition(state.phase, "arm")
    return state


def step(state: GameState, intent: Intent, dt_ms: float) -> Tuple[GameState, List[RunEvent]]:
    """Advance one frame. Returns the (updated in place) state and the frame's events."""
    events: List[RunEvent] = []
    if state.phase is Phase.ARMED and intent.qualifies():
        state.phase = transition(state.phase, "input")
    if state.phase is not Phase.PLAYING:
        return state, events

    dt = max(0.0, min(float(dt_ms), MAX_FRAME_MS)) / 1000.0
    player = state.player
    world = state.world

    prev_x, prev_y = player.x, player.y
    if intent.lane_shift:
        player.snap_to_lane(intent.lane_shift, world.lanes)
    player.move(intent, dt, world.track_len)
    player.resolve_collisions(prev_x, prev_y, world.obstacles)

    state.camera_y = max(state.camera_y, player.y - CAMERA_LEAD_FRAC * VIEW_H)
    state.elapsed += dt

    events.extend(collect_pickups(state))
    events.extend(trigger_hazards(state))

    if player.y >= world.track_len:
        state.phase = transition(state.phase, "finish")
        player.moving = False
        events.append(RunEvent(FINISHED, state.elapsed, player.x, player.y))
        logger.info("finished %s seed=%s in %.2fs (%d pickups, %d hazards)",
                    state.difficulty, state.seed, state.elapsed, state.collected, state.hazards_hit)
    return state, events


class RunController:
    """
    Host-facing wrapper: owns the GameState and the live Intent, exposes the
    lifecycle calls (reset/start), input handlers, and event subscription.
    """

    def __init__(self, difficulty: str = "normal", seed: int | None = None,
                 gen_config: Optional[GenConfig] = None):
        self.difficulty = difficulty
        self.gen_config = gen_config
        self.intent = Intent()
        self._listeners: List[Callable[[RunEvent], None]] = []
        self._seed = seed
        self.state = new_state(difficulty, seed, gen_config)
        self._seed = self.state.seed

    # ---------- lifecycle ----------

    def reset(self, difficulty: Optional[str] = None, reseed: bool = False) -> GameState:
        """Discard the world and rebuild it (same seed unless `reseed`). Leaves the run IDLE."""
        if difficulty is not None:
            self.difficulty = difficulty
        if reseed:
            self._seed = None
        self.intent.clear()
        self.state = new_state(self.difficulty, self._seed, self.gen_config)
        self._seed = self.state.seed
        return self.state

    def start(self, difficulty: Optional[str] = None, reseed: bool = False) -> GameState:
        """Reset and arm: the timer waits for the first input."""
        self.reset(difficulty, reseed)
        arm(self.state)
        logger.info("armed %s seed=%s", self.difficulty, self.state.seed)
        return self.state

    # ---------- input ----------

    def press(self, direction: str) -> None:
        if self.state.phase is Phase.ARMED:
            self.state.phase = transition(self.state.phase, "input")
        if self.state.phase is not Phase.PLAYING:
            return
        self.intent.set(direction, True)

    def release(self, direction: str) -> None:
        self.intent.set(direction, False)

    def swipe(self, delta: int) -> None:
        if self.state.phase is Phase.PLAYING:
            self.intent.lane_shift += delta

    def tap(self) -> None:
        if self.state.phase is Phase.ARMED:
            self.state.phase = transition(self.state.phase, "input")

    # ---------- frame ----------

    def step(self, dt_ms: float) -> List[RunEvent]:
        _, events = step(self.state, self.intent, dt_ms)
        self.intent.lane_shift = 0
        self.intent.tap = False
        for ev in events:
            for cb in self._listeners:
                cb(ev)
        return events

    def subscribe(self, callback: Callable[[RunEvent], None]) -> None:
        self._listeners.append(callback)

    # ---------- read-only views ----------

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def elapsed(self) -> float:
        return self.state.elapsed

    @property
    def collected(self) -> int:
        return self.state.collected

    @property
    def player_position(self) -> Tuple[float, float]:
        return self.state.player.position

    @property
    def camera_y(self) -> float:
        return self.state.camera_y

    def live_entities(self):
        w = self.state.world
        return list(w.obstacles), w.hazards.values(), w.collectibles.values()
