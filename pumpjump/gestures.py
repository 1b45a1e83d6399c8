"""
Gesture recognition that converts vertical hand motion into jump events.
"""
import logging
import math
import time
from collections import deque
from typing import Deque, List, Optional, Tuple

from .types import Hand, HandResult, MotionDebugInfo, MotionStateName, Sample
from .config import Cfg, MotionConfig
from .hand_selector import HandSelector

logger = logging.getLogger(__name__)


class MotionDetector:
    """
    Converts a stream of vertical hand positions into one-shot jump events.

    Features:
    - Exponential smoothing of raw positions to suppress detector jitter
    - Frame-rate independent velocity (normalized to a reference tick)
    - idle -> moving_up -> cooldown state machine, one jump per pump
    - Cooldown ends only once the hand moves back down
    - Missing samples leave the state untouched (brief occlusions)

    Screen coordinates grow downwards, so upward motion is negative velocity.
    """

    def __init__(self, cfg: Optional[MotionConfig] = None):
        """Initialize motion detector state."""
        self.cfg = cfg or MotionConfig()
        self.reset()

    def reset(self) -> None:
        """Reinitialize smoothing, histories, cooldown and state for a new round."""
        self.positions: Deque[Sample] = deque(maxlen=self.cfg.max_positions)
        self.smoothed_y: Optional[float] = None
        self.raw_y: Optional[float] = None

        self.velocity_history: Deque[float] = deque(maxlen=self.cfg.max_velocity_history)
        self.peak_velocity = 0.0
        self.current_velocity = 0.0

        self.state: MotionStateName = "idle"
        self.upward_frames = 0
        self.cooldown_timer = 0

    def add_position(self, y: float, t_now: Optional[float] = None) -> bool:
        """
        Smooth a raw position and append it to the position history.

        Args:
            y: Raw vertical position
            t_now: Timestamp in seconds (defaults to time.perf_counter())

        Returns:
            False if y is non-finite or beyond max_abs_y (sample dropped)
        """
        if not math.isfinite(y) or abs(y) > self.cfg.max_abs_y:
            return False

        if t_now is None:
            t_now = time.perf_counter()

        if self.smoothed_y is None:
            self.smoothed_y = y
        else:
            alpha = self.cfg.smoothing_factor
            self.smoothed_y = alpha * y + (1 - alpha) * self.smoothed_y

        self.raw_y = y
        self.positions.append(Sample(y=self.smoothed_y, timestamp=t_now))
        return True

    def get_velocity(self) -> float:
        """
        Weighted velocity over the last few smoothed intervals.

        Each interval is dy / dt normalized to the reference tick, and newer
        intervals weigh more (weights 1, 2, 3, ...). Returns 0 until enough
        samples exist.

        Returns:
            Velocity in position units per reference tick
        """
        if len(self.positions) < self.cfg.min_velocity_samples:
            self.current_velocity = 0.0
            return 0.0

        recent: List[Sample] = list(self.positions)[-(self.cfg.velocity_window + 1):]
        total_velocity = 0.0
        total_weight = 0
        for i in range(1, len(recent)):
            dy = recent[i].y - recent[i - 1].y
            dt_ms = (recent[i].timestamp - recent[i - 1].timestamp) * 1000.0
            normalized = dy / max(dt_ms, self.cfg.min_dt_ms) * self.cfg.reference_tick_ms
            limit = self.cfg.max_abs_velocity
            normalized = min(max(normalized, -limit), limit)
            total_velocity += normalized * i
            total_weight += i

        velocity = total_velocity / total_weight if total_weight > 0 else 0.0
        self.current_velocity = velocity

        self.velocity_history.append(velocity)
        self.peak_velocity = min(self.velocity_history)
        return velocity

    def update(self, y: Optional[float], t_now: Optional[float] = None) -> bool:
        """
        Feed one tick and report whether a jump should fire.

        Args:
            y: Vertical hand position (None if no hand could be resolved)
            t_now: Timestamp in seconds (defaults to time.perf_counter())

        Returns:
            True exactly once per qualifying upward pump, False otherwise
        """
        if y is None or not self.add_position(y, t_now):
            # Hand not resolvable this tick - keep state across occlusions
            return False

        velocity = self.get_velocity()

        if self.cooldown_timer > 0:
            self.cooldown_timer -= 1

        cfg = self.cfg
        if self.state == "idle":
            if velocity < -cfg.onset_threshold:
                self.upward_frames = 1
                if self._should_jump(velocity):
                    return self._trigger_jump(velocity)
                self.state = "moving_up"

        elif self.state == "moving_up":
            if velocity < -cfg.onset_threshold:
                self.upward_frames += 1
                if self._should_jump(velocity):
                    return self._trigger_jump(velocity)
            else:
                # Motion stopped or reversed
                self.state = "idle"
                self.upward_frames = 0

        elif self.state == "cooldown":
            # Wait for the hand to come back down before the next pump
            if velocity > cfg.return_threshold:
                self.state = "idle"
                self.upward_frames = 0

        return False

    def _should_jump(self, velocity: float) -> bool:
        return (self.upward_frames >= self.cfg.required_upward_frames
                and velocity < -self.cfg.jump_threshold
                and self.cooldown_timer == 0)

    def _trigger_jump(self, velocity: float) -> bool:
        self.state = "cooldown"
        self.cooldown_timer = self.cfg.cooldown_frames
        self.upward_frames = 0
        logger.debug(f"Jump (velocity {velocity:.1f})")
        return True

    def get_debug_info(self) -> MotionDebugInfo:
        """Snapshot of velocity, state and positions for diagnostics."""
        return MotionDebugInfo(
            velocity=self.current_velocity,
            state=self.state,
            cooldown=self.cooldown_timer,
            positions=len(self.positions),
            raw_y=self.raw_y,
            smoothed_y=self.smoothed_y,
            peak_velocity=self.peak_velocity,
        )


class GestureProcessor:
    """
    Per-tick pipeline: hand selection followed by jump detection.
    """

    def __init__(self, cfg: Optional[Cfg] = None):
        """Initialize gesture processor with configuration."""
        self.cfg = cfg or Cfg()
        self.hand_selector = HandSelector(self.cfg.hand_selection)
        self.motion_detector = MotionDetector(self.cfg.motion)

    def process_frame(self, hands: List[Hand],
                      t_now: Optional[float] = None) -> Tuple[bool, Optional[HandResult], MotionDebugInfo]:
        """
        Process one frame worth of detections.

        Args:
            hands: Hands detected this frame (empty list if none)
            t_now: Current timestamp in seconds

        Returns:
            Tuple of (jump, selected_hand, debug_info)
        """
        result = self.hand_selector.process(hands)

        y = None
        if result is not None and result.center is not None:
            y = result.center[1]

        jump = self.motion_detector.update(y, t_now)
        return jump, result, self.motion_detector.get_debug_info()

    def reset(self) -> None:
        """Start a new round; the hand selector keeps its persistence."""
        self.motion_detector.reset()
