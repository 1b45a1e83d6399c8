"""
Hand landmark detection using MediaPipe.
"""
import cv2
import mediapipe as mp
import numpy as np
from typing import List, Optional

from .types import Hand, Point

# Finger chains and palm edges of the 21-point hand model
HAND_CONNECTIONS = [
    (0, 1), (1, 2), (2, 3), (3, 4),
    (0, 5), (5, 6), (6, 7), (7, 8),
    (0, 9), (9, 10), (10, 11), (11, 12),
    (0, 13), (13, 14), (14, 15), (15, 16),
    (0, 17), (17, 18), (18, 19), (19, 20),
    (5, 9), (9, 13), (13, 17),
]


class HandsTracker:
    """Hand landmark tracker using MediaPipe Hands."""

    def __init__(self, max_num_hands: int = 2, min_detection_conf: float = 0.5,
                 min_tracking_conf: float = 0.5, flip_horizontal: bool = True):
        """
        Initialize the hands tracker.

        Args:
            max_num_hands: Maximum number of hands to detect
            min_detection_conf: Minimum confidence for hand detection
            min_tracking_conf: Minimum confidence for hand tracking
            flip_horizontal: Mirror frames first (selfie view)
        """
        self.mp_hands = mp.solutions.hands
        self.hands = self.mp_hands.Hands(
            static_image_mode=False,
            max_num_hands=max_num_hands,
            min_detection_confidence=min_detection_conf,
            min_tracking_confidence=min_tracking_conf
        )
        self.flip_horizontal = flip_horizontal

    def process(self, frame_bgr: np.ndarray) -> List[Hand]:
        """
        Process a frame and return hand landmarks.

        Args:
            frame_bgr: Input frame in BGR format

        Returns:
            Up to max_num_hands hands with 21 (x, y) pixel coordinates each;
            empty list if no hand detected
        """
        if self.flip_horizontal:
            frame_bgr = cv2.flip(frame_bgr, 1)
        height, width = frame_bgr.shape[:2]

        # Convert BGR to RGB for MediaPipe
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        results = self.hands.process(frame_rgb)

        if not results.multi_hand_landmarks:
            return []

        handedness = results.multi_handedness or []
        hands = []
        for i, hand_landmarks in enumerate(results.multi_hand_landmarks):
            keypoints: List[Optional[Point]] = [
                (landmark.x * width, landmark.y * height) for landmark in hand_landmarks.landmark
            ]
            label, score = None, 1.0
            if i < len(handedness):
                classification = handedness[i].classification[0]
                label, score = classification.label, classification.score
            hands.append(Hand(keypoints=keypoints, handedness=label, score=score))

        return hands

    def close(self) -> None:
        self.hands.close()


def draw_hand(frame: np.ndarray, hand: Hand, active: bool = True) -> np.ndarray:
    """
    Draw hand landmarks and connections on the frame.

    Args:
        frame: Input frame (already mirrored if the tracker mirrors)
        hand: Hand with pixel coordinates
        active: Green when active, grey when the hand is a persisted stand-in

    Returns:
        Frame with the hand drawn
    """
    color = (0, 255, 0) if active else (102, 102, 102)
    points = hand.keypoints

    for i, j in HAND_CONNECTIONS:
        if i < len(points) and j < len(points) and points[i] is not None and points[j] is not None:
            p1 = (int(points[i][0]), int(points[i][1]))
            p2 = (int(points[j][0]), int(points[j][1]))
            cv2.line(frame, p1, p2, color, 1)

    for point in points:
        if point is not None:
            cv2.circle(frame, (int(point[0]), int(point[1])), 3, color, -1)

    return frame


def draw_center(frame: np.ndarray, center: Point) -> np.ndarray:
    """Draw the tracked center as a yellow crosshair."""
    cx, cy = int(center[0]), int(center[1])
    color = (61, 217, 255)
    cv2.circle(frame, (cx, cy), 8, color, 2)
    cv2.line(frame, (cx - 12, cy), (cx + 12, cy), color, 2)
    cv2.line(frame, (cx, cy - 12), (cx, cy + 12), color, 2)
    return frame
