# src/tests/test_run.py
import pytest

from waterrun.game.config import START_Y, TRACK_LEN, MOVE_SPEED, MAX_FRAME_MS
from waterrun.game.run import (
    Phase, Intent, RunController, transition, new_state, arm, step
)
from waterrun.game.triggers import COLLECTED, FINISHED
from waterrun.game.world import World, Collectible


def test_transition_table():
    assert transition(Phase.IDLE, "arm") is Phase.ARMED
    assert transition(Phase.ARMED, "input") is Phase.PLAYING
    assert transition(Phase.PLAYING, "finish") is Phase.FINISHED
    for phase in Phase:
        assert transition(phase, "reset") is Phase.IDLE
    # illegal triggers leave the phase alone
    assert transition(Phase.IDLE, "input") is Phase.IDLE
    assert transition(Phase.FINISHED, "input") is Phase.FINISHED
    assert transition(Phase.PLAYING, "arm") is Phase.PLAYING


def test_new_state_starts_idle_in_middle_lane():
    state = new_state("easy", seed=1)
    assert state.phase is Phase.IDLE
    assert state.player.position == (240, START_Y)
    assert state.elapsed == 0.0
    assert state.camera_y == 0.0


def test_input_while_idle_is_ignored():
    state = new_state("easy", seed=1)
    _, events = step(state, Intent(up=True), 16)
    assert events == []
    assert state.player.y == START_Y
    assert state.elapsed == 0.0
    assert state.phase is Phase.IDLE


def test_armed_waits_for_input():
    state = arm(new_state("easy", seed=1))
    step(state, Intent(), 16)
    assert state.phase is Phase.ARMED
    assert state.elapsed == 0.0


def test_first_input_starts_and_moves_same_frame():
    state = arm(new_state("easy", seed=1))
    step(state, Intent(up=True), 16)
    assert state.phase is Phase.PLAYING
    assert state.elapsed == pytest.approx(0.016)
    assert state.player.y == pytest.approx(START_Y + MOVE_SPEED * 0.016)


def test_frame_time_is_clamped():
    state = arm(new_state("easy", seed=1))
    step(state, Intent(up=True), 1000)
    assert state.elapsed == pytest.approx(MAX_FRAME_MS / 1000.0)
    assert state.player.y == pytest.approx(START_Y + MOVE_SPEED * MAX_FRAME_MS / 1000.0)
    step(state, Intent(up=True), -5)
    assert state.elapsed == pytest.approx(MAX_FRAME_MS / 1000.0)


def test_clear_track_finishes_exactly_once():
    state = arm(new_state("easy", seed=1))
    state.world = World(track_len=TRACK_LEN)
    finished = []
    cameras = []
    for _ in range(5000):
        _, events = step(state, Intent(up=True), 16)
        finished.extend(e for e in events if e.kind == FINISHED)
        cameras.append(state.camera_y)
        if state.phase is Phase.FINISHED:
            break
    assert state.phase is Phase.FINISHED
    assert len(finished) == 1
    assert finished[0].amount == pytest.approx(state.elapsed)
    assert abs(state.elapsed - (TRACK_LEN - START_Y) / MOVE_SPEED) < 0.016 + 1e-9
    assert all(b >= a for a, b in zip(cameras, cameras[1:]))
    assert cameras[-1] > 0

    # finished runs are frozen
    y, elapsed = state.player.y, state.elapsed
    _, events = step(state, Intent(up=True), 16)
    assert events == []
    assert (state.player.y, state.elapsed) == (y, elapsed)
    assert not state.player.moving


def test_camera_never_moves_back():
    state = arm(new_state("easy", seed=1))
    state.world = World(track_len=TRACK_LEN)
    for _ in range(200):
        step(state, Intent(up=True), 16)
    high = state.camera_y
    assert high > 0
    for _ in range(100):
        step(state, Intent(down=True), 16)
    assert state.camera_y == high
    assert state.player.y < high + 0.68 * 720


def test_controller_lifecycle_and_events():
    c = RunController("easy", seed=1)
    assert c.phase is Phase.IDLE
    c.press("up")
    assert not c.intent.up

    c.start()
    assert c.phase is Phase.ARMED
    c.state.world.collectibles.add(Collectible(240, 100))
    seen = []
    c.subscribe(seen.append)

    c.press("up")
    assert c.phase is Phase.PLAYING
    events = c.step(16)
    assert [e.kind for e in events] == [COLLECTED]
    assert [e.kind for e in seen] == [COLLECTED]
    assert c.collected == 1
    assert c.elapsed == 0.0
    assert c.player_position[1] > START_Y

    c.release("up")
    y = c.player_position[1]
    c.step(16)
    assert c.player_position[1] == y


def test_touch_without_direction_starts_the_run():
    c = RunController("easy", seed=1)
    c.tap()
    assert c.phase is Phase.IDLE

    c.start()
    c.tap()
    assert c.phase is Phase.PLAYING
    c.step(16)
    assert c.elapsed == pytest.approx(0.016)
    assert c.player_position == (240, START_Y)

    c.state.phase = Phase.FINISHED
    c.tap()
    assert c.phase is Phase.FINISHED


def test_tap_intent_arms_the_pure_step():
    state = arm(new_state("easy", seed=1))
    step(state, Intent(tap=True), 16)
    assert state.phase is Phase.PLAYING
    assert state.player.position == (240, START_Y)


def test_controller_accessors():
    c = RunController("easy", seed=1)
    obstacles, hazards, collectibles = c.live_entities()
    assert len(obstacles) == len(c.state.track.obstacles)
    assert len(hazards) == len(c.state.track.hazards)
    assert len(collectibles) == len(c.state.track.collectibles)
    assert c.camera_y == 0.0

    c.start()
    c.state.world.collectibles.add(Collectible(240, 100))
    before = len(c.live_entities()[2])
    c.press("up")
    c.step(16)
    assert len(c.live_entities()[2]) == before - 1

    c.state.world = World(track_len=TRACK_LEN)
    for _ in range(200):
        c.step(16)
    assert c.camera_y > 0
    assert c.camera_y == c.state.camera_y


def test_controller_swipe_snaps_lane():
    c = RunController("easy", seed=1)
    c.start()
    c.swipe(-1)             # ignored while armed
    c.press("up")
    c.swipe(-1)
    c.step(16)
    assert c.player_position[0] == 20
    c.step(16)
    assert c.player_position[0] == 20


def test_controller_reset_keeps_seed_unless_asked():
    c = RunController("hard", seed=42)
    obstacles = c.state.world.obstacles
    c.start()
    c.press("up")
    c.step(16)
    c.reset()
    assert c.phase is Phase.IDLE
    assert c.state.seed == 42
    assert c.state.world.obstacles == obstacles
    assert c.elapsed == 0.0
    assert not c.intent.up

    c.reset(difficulty="easy")
    assert c.state.difficulty == "easy"


def test_release_rejects_unknown_direction():
    c = RunController("easy", seed=1)
    with pytest.raises(ValueError):
        c.release("sideways")


if __name__ == "__main__":
    raise SystemExit(pytest.main([__file__, "-q"]))
