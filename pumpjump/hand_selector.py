"""
Active-hand selection with short-gap persistence.

Up to two hands can be in view (the pumping hand and the one holding the
phone, or a second player). Each hand slot keeps a short history of vertical
positions; the slot whose recent positions vary the most is the one that is
pumping. A sticky index with a switch ratio keeps the choice from flickering
between two similarly still hands, and the last confirmed hand is served for a
few frames when the detector drops out.
"""
import logging
from collections import deque
from typing import Deque, List, Optional

import numpy as np

from .config import HandSelectionConfig
from .types import Hand, HandResult, Point

logger = logging.getLogger(__name__)

NUM_SLOTS = 2


class HandSelector:
    """
    Picks the intentionally moving hand out of 0..2 detections per tick.

    Features:
    - Per-slot position histories, cleared when a slot has no detection
    - Variance-based motion score with switch hysteresis
    - Persistence of the last valid hand across brief detection gaps
    """

    def __init__(self, cfg: Optional[HandSelectionConfig] = None):
        """Initialize selector state."""
        self.cfg = cfg or HandSelectionConfig()
        self.reset()

    def reset(self) -> None:
        """Return to the state of a freshly constructed selector."""
        self.hand_histories: List[Deque[float]] = [
            deque(maxlen=self.cfg.history_length) for _ in range(NUM_SLOTS)
        ]
        self.active_hand_index = -1  # -1 = undecided

        # Persistence across detection gaps
        self.lost_frames = 0
        self.last_valid_hand: Optional[Hand] = None
        self.last_valid_center: Optional[Point] = None
        self.last_valid_index = 0
        self.last_result: Optional[HandResult] = None

    def process(self, hands: List[Hand]) -> Optional[HandResult]:
        """
        Run one tick of hand selection.

        Args:
            hands: Hands detected this frame (empty list when none)

        Returns:
            The selected hand, the persisted hand while within the lost-frame
            window (marked interpolated), or None once the hand is truly lost
        """
        if not hands:
            self.lost_frames += 1
            if self.lost_frames <= self.cfg.max_lost_frames and self.last_valid_hand is not None:
                self.last_result = HandResult(
                    hand=self.last_valid_hand,
                    center=self.last_valid_center,
                    is_active=False,
                    interpolated=True,
                    index=self.last_valid_index,
                )
                return self.last_result

            if self.last_valid_hand is not None:
                logger.debug(f"Hand lost for {self.lost_frames} frames, dropping persisted hand")
            self.last_valid_hand = None
            self.last_valid_center = None
            self.last_result = None
            return None

        self.lost_frames = 0
        hands = hands[:NUM_SLOTS]
        positions = [self.get_hand_center(hand) for hand in hands]
        self.update_histories(positions)

        result = self.select_active_hand(hands, positions)
        if result is not None:
            self.last_valid_hand = result.hand
            self.last_valid_center = result.center
            self.last_valid_index = result.index
        self.last_result = result
        return result

    def get_hand_center(self, hand: Optional[Hand]) -> Optional[Point]:
        """
        Average the stable palm landmarks of a hand.

        Uses whichever of the configured landmarks are present; returns None
        when none of them are, never a zero coordinate.
        """
        if hand is None or not hand.keypoints:
            return None

        keypoints = hand.keypoints
        points = [
            keypoints[i] for i in self.cfg.center_landmarks
            if 0 <= i < len(keypoints) and keypoints[i] is not None
        ]
        if not points:
            return None

        x_sum = sum(p[0] for p in points)
        y_sum = sum(p[1] for p in points)
        return (x_sum / len(points), y_sum / len(points))

    def update_histories(self, positions: List[Optional[Point]]) -> None:
        """
        Append each slot's y position to its history.

        Slots without a position this tick are cleared, not frozen.
        """
        for i in range(NUM_SLOTS):
            position = positions[i] if i < len(positions) else None
            if position is None:
                self.hand_histories[i].clear()
            else:
                self.hand_histories[i].append(position[1])

    def motion_scores(self) -> List[float]:
        """Variance of the most recent positions per slot (0 until enough samples)."""
        scores = []
        for history in self.hand_histories:
            if len(history) < self.cfg.min_motion_samples:
                scores.append(0.0)
                continue
            recent = list(history)[-self.cfg.motion_window:]
            scores.append(float(np.var(recent)))
        return scores

    def select_active_hand(self, hands: List[Hand],
                           positions: List[Optional[Point]]) -> Optional[HandResult]:
        """
        Choose the pumping hand.

        Args:
            hands: Hands detected this frame
            positions: Center of each hand, aligned with hands

        Returns:
            HandResult for the chosen hand, None if no hands were given
        """
        if not hands:
            return None

        if len(hands) == 1:
            return HandResult(hand=hands[0], center=positions[0], is_active=True, index=0)

        motions = self.motion_scores()
        challenger = 0 if motions[0] >= motions[1] else 1
        incumbent = 1 - challenger

        if (self.active_hand_index == -1
                or motions[challenger] > motions[incumbent] * self.cfg.switch_ratio):
            if challenger != self.active_hand_index:
                logger.debug(f"Active hand -> slot {challenger} "
                             f"(motion {motions[challenger]:.1f} vs {motions[incumbent]:.1f})")
            self.active_hand_index = challenger

        # Stale index after a hand disappears
        idx = min(self.active_hand_index, len(hands) - 1)
        center = positions[idx] if idx < len(positions) else None
        return HandResult(hand=hands[idx], center=center, is_active=True, index=idx)

    def get_position(self) -> Optional[Point]:
        """Center of the hand served on the last tick (live or persisted)."""
        if self.last_result is None:
            return None
        if self.last_result.center is not None:
            return self.last_result.center
        return self.get_hand_center(self.last_result.hand)
