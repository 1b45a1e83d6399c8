"""
Pump Jump

Turns the vertical motion of a tracked hand into jump events for a
side-scrolling reflex game: active-hand selection with short-gap persistence,
a debounced jump detector, and the game simulation they drive.
"""

__version__ = "0.1.0"

from .types import Hand, HandResult, MotionDebugInfo, Sample, HandDetectorProto, GameActionProto
from .config import load_config, Cfg, HandSelectionConfig, MotionConfig, GameConfig
from .hand_selector import HandSelector
from .gestures import MotionDetector, GestureProcessor
from .detection import LatestResultChannel
from .game import Game, Bird, PipeManager

__all__ = [
    "Hand",
    "HandResult",
    "MotionDebugInfo",
    "Sample",
    "HandDetectorProto",
    "GameActionProto",
    "load_config",
    "Cfg",
    "HandSelectionConfig",
    "MotionConfig",
    "GameConfig",
    "HandSelector",
    "MotionDetector",
    "GestureProcessor",
    "LatestResultChannel",
    "Game",
    "Bird",
    "PipeManager",
]
