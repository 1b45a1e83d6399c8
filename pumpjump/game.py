"""
Side-scrolling game simulation: bird physics, pipes and difficulty ramp.

Everything is tick based and normalized to a 60fps reference frame, so the
simulation is deterministic for a given random seed and frame deltas.
"""
import json
import logging
import random
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .config import GameConfig
from .types import GameEvent, GameState

logger = logging.getLogger(__name__)

GRAVITY = 0.4
JUMP_VELOCITY = -8.0
TERMINAL_VELOCITY = 10.0
BIRD_RADIUS = 15

PIPE_GAP_START = 200
PIPE_GAP_MIN = 160
PIPE_WIDTH = 60
PIPE_SPEED = 2.5
PIPE_SPACING = 220
PIPE_MARGIN = 80  # min distance of a gap from ceiling and ground

SPEED_START = 0.5
SPEED_INCREMENT = 0.05
SPEED_MAX = 1.0
GAP_DECREMENT = 4

FRAME_MS = 16.67
BIRD_X = 80


@dataclass
class Bounds:
    """Axis-aligned bounding box."""
    left: float
    right: float
    top: float
    bottom: float


@dataclass
class Pipe:
    """A pipe pair with a gap between gap_top and gap_bottom."""
    x: float
    gap_top: float
    gap_bottom: float
    scored: bool = False


class Bird:
    """The player: falls under gravity, jumps on command."""

    def __init__(self, x: float, y: float):
        self.radius = BIRD_RADIUS
        self.reset(x, y)

    def reset(self, x: float, y: float) -> None:
        self.x = x
        self.y = y
        self.velocity = 0.0
        self.rotation = 0.0
        self.flap_frame = 0
        self.flap_timer = 0
        self.is_flapping = False

    def update(self, speed: float = 1.0) -> None:
        """Advance one (speed-scaled) frame of gravity and animation."""
        self.velocity = min(self.velocity + GRAVITY * speed, TERMINAL_VELOCITY)
        self.y += self.velocity * speed

        # Nose up while rising, dive while falling
        target_rotation = min(max(self.velocity * 4, -25.0), 90.0)
        self.rotation += (target_rotation - self.rotation) * 0.1

        if self.is_flapping:
            self.flap_timer += 1
            if self.flap_timer > 3:
                self.flap_timer = 0
                self.flap_frame += 1
                if self.flap_frame > 2:
                    self.flap_frame = 0
                    self.is_flapping = False

    def jump(self) -> None:
        self.velocity = JUMP_VELOCITY
        self.is_flapping = True
        self.flap_frame = 0
        self.flap_timer = 0

    def bounds(self) -> Bounds:
        return Bounds(
            left=self.x - self.radius,
            right=self.x + self.radius,
            top=self.y - self.radius,
            bottom=self.y + self.radius,
        )


class PipeManager:
    """Spawns, scrolls and retires pipes; checks collisions and scoring."""

    def __init__(self, width: int, height: int, ground_height: int,
                 rng: Optional[random.Random] = None):
        self.width = width
        self.height = height
        self.ground_height = ground_height
        self.rng = rng or random.Random()
        self.pipes: List[Pipe] = []
        self.spawn_timer = 0.0
        self.spawn_interval = PIPE_SPACING / PIPE_SPEED

    def update(self, speed: float = 1.0, gap: float = PIPE_GAP_MIN) -> None:
        for pipe in self.pipes:
            pipe.x -= PIPE_SPEED * speed

        self.pipes = [pipe for pipe in self.pipes if pipe.x > -PIPE_WIDTH]

        self.spawn_timer += speed
        if self.spawn_timer >= self.spawn_interval:
            self.spawn_pipe(gap)
            self.spawn_timer = 0.0

    def spawn_pipe(self, gap: float = PIPE_GAP_MIN) -> Pipe:
        """Add a pipe at the right edge with a random gap position."""
        playable_height = self.height - self.ground_height
        min_y = PIPE_MARGIN
        max_y = max(min_y, playable_height - gap - PIPE_MARGIN)
        gap_y = self.rng.uniform(min_y, max_y)

        pipe = Pipe(x=self.width, gap_top=gap_y, gap_bottom=gap_y + gap)
        self.pipes.append(pipe)
        return pipe

    def check_collision(self, bird: Bird) -> bool:
        b = bird.bounds()
        for pipe in self.pipes:
            if b.right > pipe.x and b.left < pipe.x + PIPE_WIDTH:
                if b.top < pipe.gap_top or b.bottom > pipe.gap_bottom:
                    return True
        return False

    def check_score(self, bird: Bird) -> bool:
        """Mark pipes the bird has fully passed; True if any were new."""
        scored = False
        for pipe in self.pipes:
            if not pipe.scored and bird.x > pipe.x + PIPE_WIDTH:
                pipe.scored = True
                scored = True
        return scored

    def reset(self) -> None:
        self.pipes = []
        self.spawn_timer = 0.0


class Game:
    """
    Game state machine: menu -> ready -> playing -> gameover.

    The bird stays frozen in `ready` until the first jump, and a round over
    can only be restarted after a short cooldown so the pump that killed the
    bird does not immediately start the next round.
    """

    def __init__(self, cfg: Optional[GameConfig] = None):
        self.cfg = cfg or GameConfig()
        self.width = self.cfg.width
        self.height = self.cfg.height
        self.ground_height = self.cfg.ground_height
        self.rng = random.Random(self.cfg.seed)

        self.bird = Bird(BIRD_X, self.height / 2)
        self.pipes = PipeManager(self.width, self.height, self.ground_height, self.rng)

        self.state: GameState = "menu"
        self.score = 0
        self.high_score = self.load_high_score()
        self.frozen = True
        self.speed = SPEED_START
        self.gap = float(PIPE_GAP_START)
        self.game_over_time: Optional[float] = None

        self.ground_offset = 0.0
        self.cloud_offset = 0.0

    def load_high_score(self) -> int:
        path = self.cfg.high_score_path
        if not path or not Path(path).exists():
            return 0
        try:
            with open(path, 'r') as f:
                return int(json.load(f).get("high_score", 0))
        except (OSError, ValueError, AttributeError) as e:
            logger.warning(f"Could not read high score from {path}: {e}")
            return 0

    def save_high_score(self) -> None:
        if self.score <= self.high_score:
            return
        self.high_score = self.score
        logger.info(f"New high score: {self.high_score}")
        path = self.cfg.high_score_path
        if not path:
            return
        try:
            with open(path, 'w') as f:
                json.dump({"high_score": self.high_score}, f)
        except OSError as e:
            logger.warning(f"Could not save high score to {path}: {e}")

    def start(self) -> None:
        """Begin a new round from the menu or the game-over screen."""
        if self.state in ("menu", "gameover"):
            self.reset()
            self.state = "ready"

    def reset(self) -> None:
        self.bird.reset(BIRD_X, self.height / 2)
        self.pipes.reset()
        self.score = 0
        self.frozen = True
        self.speed = SPEED_START
        self.gap = float(PIPE_GAP_START)
        self.ground_offset = 0.0
        self.cloud_offset = 0.0

    def update_difficulty(self) -> None:
        """Faster scrolling and narrower gaps as the score climbs."""
        self.speed = min(SPEED_START + SPEED_INCREMENT * self.score, SPEED_MAX)
        self.gap = max(PIPE_GAP_START - GAP_DECREMENT * self.score, PIPE_GAP_MIN)

    def jump(self, now: Optional[float] = None) -> bool:
        """
        Route a jump signal according to the current state.

        Args:
            now: Timestamp in seconds (defaults to time.monotonic())

        Returns:
            True if the jump did something
        """
        if self.state == "playing":
            self.bird.jump()
            return True
        if self.state == "ready":
            # First pump starts the round
            self.frozen = False
            self.state = "playing"
            self.bird.jump()
            return True
        if self.state == "menu":
            self.start()
            return True
        if self.state == "gameover" and self.can_restart(now):
            self.start()
            return True
        return False

    def can_restart(self, now: Optional[float] = None) -> bool:
        if self.game_over_time is None:
            return True
        if now is None:
            now = time.monotonic()
        return (now - self.game_over_time) * 1000.0 >= self.cfg.restart_cooldown_ms

    def update(self, delta_ms: float = FRAME_MS, now: Optional[float] = None) -> Optional[GameEvent]:
        """
        Advance the simulation by one frame.

        Args:
            delta_ms: Elapsed wall time since the previous frame
            now: Timestamp in seconds, recorded on game over

        Returns:
            "score" when a pipe was passed, "hit" on collision, else None
        """
        if self.state not in ("playing", "ready") or self.frozen:
            return None

        dt = (delta_ms / FRAME_MS) * self.speed
        self.bird.update(dt)
        self.pipes.update(dt, self.gap)

        if self.pipes.check_score(self.bird):
            self.score += 1
            self.update_difficulty()
            return "score"

        playable_height = self.height - self.ground_height
        if self.bird.y < self.bird.radius or self.bird.y > playable_height - self.bird.radius:
            self.game_over(now)
            return "hit"

        if self.pipes.check_collision(self.bird):
            self.game_over(now)
            return "hit"

        self.ground_offset = (self.ground_offset + PIPE_SPEED * dt) % 24
        self.cloud_offset = (self.cloud_offset + 0.5 * dt) % self.width
        return None

    def game_over(self, now: Optional[float] = None) -> None:
        self.state = "gameover"
        self.game_over_time = time.monotonic() if now is None else now
        logger.info(f"Game over with score {self.score}")
        self.save_high_score()
