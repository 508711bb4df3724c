# src/tests/test_water_run_env.py
"""
Quick tests for WaterRunEnv (Gymnasium environment).

Usage (from repo root):
  pytest src/tests/test_water_run_env.py
  python -m tests.test_water_run_env             # with src/ on PYTHONPATH
  python -m tests.test_water_run_env --render
  python -m tests.test_water_run_env --difficulty hard --no-api-check
"""

from __future__ import annotations
import argparse
import sys
from typing import List, Tuple

import numpy as np
from gymnasium.utils.env_checker import check_env

from waterrun.env.water_run_env import WaterRunEnv


def api_check(frame_skip: int = 4, difficulty: str = "normal") -> None:
    """Verify Gym API contract (spaces, step/reset signatures, types)."""
    env = WaterRunEnv(difficulty=difficulty, frame_skip=frame_skip)
    try:
        check_env(env, skip_render_check=True)
    finally:
        env.close()
    print("✓ API check ok")


def smoke_test(steps: int = 300, seed: int = 123, frame_skip: int = 4, difficulty: str = "normal") -> None:
    """Short random rollout: no crashes, obs in space, reward type, proper terminations."""
    env = WaterRunEnv(difficulty=difficulty, frame_skip=frame_skip)
    env.action_space.seed(seed)
    try:
        obs, info = env.reset(seed=seed)
        assert env.observation_space.contains(obs), "Initial observation not in space"
        assert info["seed"] == seed

        for t in range(steps):
            a = env.action_space.sample()
            obs, r, term, trunc, info = env.step(a)
            assert isinstance(r, float), "Reward must be a float"
            assert env.observation_space.contains(obs), f"Step {t}: observation out of bounds"
            if term or trunc:
                break
    finally:
        env.close()
    print("✓ Smoke test ok")


def determinism_test(steps: int = 300, seed: int = 123, frame_skip: int = 4, difficulty: str = "normal") -> None:
    """Same seed + same action sequence => identical obs/reward/terminal flags."""
    def rollout(seed_val: int, action_seq: List[int]) -> List[Tuple[np.ndarray, float, bool, bool]]:
        env = WaterRunEnv(difficulty=difficulty, frame_skip=frame_skip)
        traj: List[Tuple[np.ndarray, float, bool, bool]] = []
        try:
            obs, _ = env.reset(seed=seed_val)
            for a in action_seq:
                obs, r, term, trunc, _ = env.step(int(a))
                traj.append((obs.copy(), float(r), bool(term), bool(trunc)))
                if term or trunc:
                    break
        finally:
            env.close()
        return traj

    rng = np.random.RandomState(42)
    action_seq = [int(rng.randint(0, 5)) for _ in range(steps)]

    t1 = rollout(seed, action_seq)
    t2 = rollout(seed, action_seq)

    assert len(t1) == len(t2), "Determinism: trajectory length mismatch"
    for i, ((o1, r1, te1, tr1), (o2, r2, te2, tr2)) in enumerate(zip(t1, t2)):
        if not np.allclose(o1, o2):
            raise AssertionError(f"Determinism: obs mismatch at step {i}")
        if not (r1 == r2 and te1 == te2 and tr1 == tr2):
            raise AssertionError(f"Determinism: transition mismatch at step {i}")

    print("✓ Determinism ok")


def render_demo(steps: int, seed: int, frame_skip: int, difficulty: str) -> None:
    """Open a window and hold UP so you can visually verify behavior."""
    env = WaterRunEnv(render_mode="human", difficulty=difficulty, frame_skip=frame_skip)
    try:
        obs, info = env.reset(seed=seed)
        for _ in range(steps):
            obs, r, term, trunc, info = env.step(1)
            if term or trunc:
                break
    finally:
        env.close()
    print("✓ Render demo finished")


# ---------- pytest entry points ----------

def test_api_check():
    api_check()


def test_smoke_every_difficulty():
    for difficulty in ("easy", "normal", "hard", "custom"):
        smoke_test(steps=150, difficulty=difficulty)


def test_determinism():
    determinism_test(steps=200, difficulty="hard")


def test_hold_up_on_clear_track_terminates_with_progress_reward():
    env = WaterRunEnv(difficulty="easy", frame_skip=4)
    try:
        env.reset(seed=1)
        env.state.world.hazards = type(env.state.world.hazards)()
        env.state.world.collectibles = type(env.state.world.collectibles)()
        env.state.world.obstacles = ()
        total = 0.0
        term = trunc = False
        for _ in range(1000):
            _, r, term, trunc, info = env.step(1)
            total += r
            if term or trunc:
                break
        assert term and not trunc
        assert info["finished"]
        # progress pays 1 per 100 units; the clock costs the elapsed seconds
        expected = (env.state.world.track_len - 80) / 100.0 - info["elapsed"]
        assert abs(total - expected) < 1e-6
    finally:
        env.close()


def test_time_limit_truncates():
    env = WaterRunEnv(difficulty="normal", frame_skip=4, time_limit_seconds=1.0)
    try:
        env.reset(seed=5)
        trunc = False
        for i in range(15):
            _, _, term, trunc, _ = env.step(0)
            assert not term
        assert trunc
    finally:
        env.close()


def test_rgb_array_render():
    env = WaterRunEnv(render_mode="rgb_array", difficulty="normal")
    try:
        env.reset(seed=2)
        frame = env.render()
        assert frame.shape == (720, 480, 3)
        assert frame.dtype == np.uint8
    finally:
        env.close()


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--seed", type=int, default=123, help="Episode seed for tests")
    ap.add_argument("--steps", type=int, default=300, help="Max decision steps per test")
    ap.add_argument("--frame-skip", type=int, default=4, help="Sim frames per decision step")
    ap.add_argument("--difficulty", type=str, default="normal", choices=["easy", "normal", "hard", "custom"])
    ap.add_argument("--render", action="store_true", help="Run a short visual demo")
    ap.add_argument("--no-api-check", action="store_true", help="Skip Gym API compliance check")
    ap.add_argument("--no-smoke", action="store_true", help="Skip smoke test")
    ap.add_argument("--no-determinism", action="store_true", help="Skip determinism test")
    args = ap.parse_args()

    try:
        if not args.no_api_check:
            api_check(frame_skip=args.frame_skip, difficulty=args.difficulty)
        if not args.no_smoke:
            smoke_test(steps=args.steps, seed=args.seed, frame_skip=args.frame_skip, difficulty=args.difficulty)
        if not args.no_determinism:
            determinism_test(steps=args.steps, seed=args.seed, frame_skip=args.frame_skip,
                             difficulty=args.difficulty)
        if args.render:
            render_demo(steps=min(args.steps, 600), seed=args.seed, frame_skip=args.frame_skip,
                        difficulty=args.difficulty)
    except AssertionError as e:
        print(f"✗ Test failed: {e}", file=sys.stderr)
        sys.exit(1)
    else:
        print("🎉 All selected tests passed")


if __name__ == "__main__":
    main()
