"""
Type definitions for the hand-pump jump pipeline.
"""
from dataclasses import dataclass, field
from typing import Any, List, Literal, Optional, Protocol, Tuple, runtime_checkable


Point = Tuple[float, float]

MotionStateName = Literal["idle", "moving_up", "cooldown"]

GameState = Literal["menu", "ready", "playing", "gameover"]

GameEvent = Literal["score", "hit"]


@dataclass
class Hand:
    """One detected hand: ordered landmark coordinates in pixels (None = missing)."""
    keypoints: List[Optional[Point]] = field(default_factory=list)
    handedness: Optional[str] = None
    score: float = 1.0


@dataclass
class Sample:
    """One smoothed vertical position reading."""
    y: float
    timestamp: float  # seconds, monotonic


@dataclass
class HandResult:
    """Hand chosen for this tick by the hand selector."""
    hand: Hand
    center: Optional[Point]
    is_active: bool
    interpolated: bool = False  # True while serving the persisted hand
    index: int = 0


@dataclass
class MotionDebugInfo:
    """Read-only snapshot of the motion detector for on-screen diagnostics."""
    velocity: float
    state: MotionStateName
    cooldown: int
    positions: int
    raw_y: Optional[float]
    smoothed_y: Optional[float]
    peak_velocity: float = 0.0


@runtime_checkable
class HandDetectorProto(Protocol):
    """Anything that turns a camera frame into 0..2 hands."""

    def process(self, frame: Any) -> List[Hand]:
        """Return the hands found in the frame (empty list when none)."""
        ...


@runtime_checkable
class GameActionProto(Protocol):
    """Game-action layer that receives jump signals."""

    def jump(self, now: Optional[float] = None) -> bool:
        """Apply a jump; return True if the game accepted it."""
        ...
