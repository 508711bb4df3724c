# src/waterrun/game/game.py
import sys, argparse, logging
import pygame
from pygame import K_ESCAPE, K_r, K_n, K_UP, K_DOWN, K_LEFT, K_RIGHT, K_w, K_a, K_s, K_d, K_1, K_2, K_3, K_4
from .config import (
    VIEW_W, VIEW_H, FPS, SEED_DEFAULT,
    RUNNER_HALF_W, RUNNER_TAIL, RUNNER_HEAD,
    COLOR_BG, COLOR_FG, COLOR_RUNNER, COLOR_RUNNER_HEAD, COLOR_OBSTACLE, COLOR_OBSTACLE_EDGE,
    COLOR_HAZARD, COLOR_COLLECTIBLE, COLOR_FINISH, COLOR_DANGER, COLOR_GOOD
)
from .config_io import load_gen_config
from .level import DIFFICULTIES
from .run import RunController, Phase, GameState
from .triggers import COLLECTED, HAZARD_HIT, FINISHED, RunEvent

KEY_DIRECTIONS = {
    K_UP: "up", K_w: "up",
    K_DOWN: "down", K_s: "down",
    K_LEFT: "left", K_a: "left",
    K_RIGHT: "right", K_d: "right",
}
KEY_DIFFICULTY = {K_1: "easy", K_2: "normal", K_3: "hard", K_4: "custom"}
SWIPE_MIN_PX = 20
TOAST_S = 0.9


def world_to_screen_y(y: float, camera_y: float) -> float:
    """World y grows toward the finish; on screen the finish is up."""
    return VIEW_H - (y - camera_y)


def draw_scene(surface: pygame.Surface, state: GameState) -> None:
    """Background, finish line, entities and runner. No HUD."""
    surface.fill(COLOR_BG)
    cam = state.camera_y
    world = state.world

    fy = world_to_screen_y(world.track_len, cam)
    if -10 <= fy <= VIEW_H + 10:
        pygame.draw.line(surface, COLOR_FINISH, (0, int(fy)), (VIEW_W, int(fy)), 6)

    for ob in world.obstacles:
        sy = world_to_screen_y(ob.y, cam)
        if sy < -ob.h or sy > VIEW_H + ob.h:
            continue
        rect = pygame.Rect(int(ob.x - ob.w / 2), int(sy - ob.h / 2), int(ob.w), int(ob.h))
        pygame.draw.rect(surface, COLOR_OBSTACLE, rect, border_radius=6)
        pygame.draw.rect(surface, COLOR_OBSTACLE_EDGE, rect, width=2, border_radius=6)

    for hz in world.hazards.values():
        sy = world_to_screen_y(hz.y, cam)
        if sy < -hz.h or sy > VIEW_H + hz.h:
            continue
        pygame.draw.ellipse(surface, COLOR_HAZARD,
                            pygame.Rect(int(hz.x - hz.w / 2), int(sy - hz.h / 2), int(hz.w), int(hz.h)))

    for it in world.collectibles.values():
        sy = world_to_screen_y(it.y, cam)
        if sy < -20 or sy > VIEW_H + 20:
            continue
        pygame.draw.circle(surface, COLOR_COLLECTIBLE, (int(it.x), int(sy)), 12)

    p = state.player
    top = world_to_screen_y(p.y + RUNNER_HEAD, cam)
    body = pygame.Rect(int(p.x - RUNNER_HALF_W), int(top), RUNNER_HALF_W * 2, RUNNER_HEAD + RUNNER_TAIL)
    pygame.draw.rect(surface, COLOR_RUNNER, body, border_radius=8)
    pygame.draw.circle(surface, COLOR_RUNNER_HEAD, (int(p.x), int(top) + 8), 8)


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Water Run: reach the finish line in the lowest time.")
    p.add_argument("--difficulty", choices=DIFFICULTIES, default="normal")
    p.add_argument("--seed", type=int, default=None,
                   help="Track seed. Omit for SEED_DEFAULT, use -1 for random each launch.")
    p.add_argument("--config", type=str, default=None,
                   help="JSON generation config for the procedural tiers (hard/custom).")
    p.add_argument("--log-level", default="WARNING",
                   choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return p.parse_args(argv)


def run(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    # Resolve seed: None -> use SEED_DEFAULT; -1 -> random
    if args.seed is None:
        launch_seed = SEED_DEFAULT
    elif args.seed == -1:
        launch_seed = None
    else:
        launch_seed = args.seed

    gen_config = load_gen_config(args.config) if args.config else None

    pygame.init()
    pygame.display.set_caption("Water Run")
    screen = pygame.display.set_mode((VIEW_W, VIEW_H))
    clock = pygame.time.Clock()
    font = pygame.font.SysFont("jetbrainsmono", 18)
    big_font = pygame.font.SysFont("jetbrainsmono", 32)

    controller = RunController(args.difficulty, launch_seed, gen_config)
    controller.start()

    toasts = []  # [text, color, seconds_left]

    def on_event(ev: RunEvent):
        if ev.kind == COLLECTED:
            toasts.append([f"-{ev.amount:.2f}s", COLOR_GOOD, TOAST_S])
        elif ev.kind == HAZARD_HIT:
            toasts.append([f"+{ev.amount:.2f}s", COLOR_DANGER, TOAST_S])
        elif ev.kind == FINISHED:
            print(f"Finished {controller.difficulty} (seed {controller.state.seed}) in {ev.amount:.2f}s")

    controller.subscribe(on_event)
    touch_x = None

    while True:
        dt_ms = clock.tick(FPS)

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                pygame.quit(); sys.exit()
            if event.type == pygame.KEYDOWN:
                if event.key == K_ESCAPE:
                    pygame.quit(); sys.exit()
                if event.key == K_r:
                    controller.start()
                    toasts.clear()
                elif event.key == K_n:
                    controller.start(reseed=True)
                    toasts.clear()
                elif event.key in KEY_DIFFICULTY:
                    controller.start(KEY_DIFFICULTY[event.key])
                    toasts.clear()
                elif event.key in KEY_DIRECTIONS:
                    controller.press(KEY_DIRECTIONS[event.key])
            if event.type == pygame.KEYUP and event.key in KEY_DIRECTIONS:
                controller.release(KEY_DIRECTIONS[event.key])
            # Mouse stands in for touch: click starts an armed run, drag swipes lanes
            if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                if controller.phase is Phase.FINISHED:
                    controller.start()
                    toasts.clear()
                else:
                    controller.tap()
                    touch_x = event.pos[0]
            if event.type == pygame.MOUSEBUTTONUP and event.button == 1 and touch_x is not None:
                dx = event.pos[0] - touch_x
                if dx < -SWIPE_MIN_PX:
                    controller.swipe(-1)
                elif dx > SWIPE_MIN_PX:
                    controller.swipe(1)
                touch_x = None

        controller.step(dt_ms)

        # --- Render ---
        state = controller.state
        draw_scene(screen, state)

        hud = (f"Time: {state.elapsed:6.2f}s   Pickups: {state.collected}   "
               f"{controller.difficulty.upper()}   Seed: {state.seed}")
        screen.blit(font.render(hud, True, COLOR_FG), (12, 10))
        screen.blit(font.render("Arrows/WASD move | R restart | N new | 1-4 tier | ESC quit",
                                True, (190, 215, 195)), (12, 32))

        for i, toast in enumerate(toasts):
            text, color, _ = toast
            surf = big_font.render(text, True, color)
            screen.blit(surf, (VIEW_W // 2 - surf.get_width() // 2, 90 + i * 36))
            toast[2] -= dt_ms / 1000.0
        toasts[:] = [t for t in toasts if t[2] > 0]

        if controller.phase is Phase.ARMED:
            msg = big_font.render("Press an arrow to go", True, COLOR_FG)
            screen.blit(msg, (VIEW_W // 2 - msg.get_width() // 2, VIEW_H // 2 - msg.get_height() // 2))

        if controller.phase is Phase.FINISHED:
            panel = pygame.Surface((VIEW_W - 80, 150), pygame.SRCALPHA)
            panel.fill((10, 35, 20, 190))
            screen.blit(panel, (40, VIEW_H // 2 - 75))
            lines = [
                (big_font, f"Finished: {state.elapsed:.2f}s", COLOR_FINISH),
                (font, f"Pickups {state.collected}   Hazards {state.hazards_hit}", COLOR_FG),
                (font, "Play again (R / click)   New track (N)", COLOR_FG),
            ]
            y = VIEW_H // 2 - 60
            for f, text, color in lines:
                surf = f.render(text, True, color)
                screen.blit(surf, (VIEW_W // 2 - surf.get_width() // 2, y))
                y += surf.get_height() + 12

        pygame.display.flip()


if __name__ == "__main__":
    run()
