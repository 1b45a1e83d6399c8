"""
Configuration management for the hand-pump jump game.
"""
import math
import os
import yaml
from dotenv import load_dotenv
from pathlib import Path
from typing import Optional, Dict, Any, List
from dataclasses import dataclass, field, fields


CONFIG_ENV_VAR = "PUMPJUMP_CONFIG"


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    index: int = 0
    width: int = 640
    height: int = 480
    fps: int = 30


@dataclass
class MediaPipeConfig:
    """MediaPipe Hands configuration settings."""
    max_num_hands: int = 2
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5
    flip_horizontal: bool = True


@dataclass
class HandSelectionConfig:
    """Active-hand selection and persistence settings."""
    history_length: int = 10
    motion_window: int = 5  # samples used for the variance score
    min_motion_samples: int = 3
    switch_ratio: float = 1.5  # challenger must beat incumbent by this factor
    max_lost_frames: int = 8  # ~250ms at 30fps
    # wrist + index/middle/ring/pinky knuckles
    center_landmarks: List[int] = field(default_factory=lambda: [0, 5, 9, 13, 17])

    def __post_init__(self):
        if self.history_length < 1 or self.motion_window < 1:
            raise ValueError("history_length and motion_window must be positive")
        if self.switch_ratio < 1.0:
            raise ValueError(f"switch_ratio must be >= 1.0, got {self.switch_ratio}")
        if self.max_lost_frames < 0:
            raise ValueError(f"max_lost_frames must be >= 0, got {self.max_lost_frames}")


@dataclass
class MotionConfig:
    """Jump detection configuration."""
    smoothing_factor: float = 0.5
    jump_threshold: float = 8.0  # units per reference tick
    onset_threshold: float = 5.0
    return_threshold: float = 3.0  # downward velocity that ends cooldown
    cooldown_frames: int = 8
    required_upward_frames: int = 2
    max_positions: int = 10
    max_velocity_history: int = 5
    velocity_window: int = 3  # intervals in the weighted estimate
    min_velocity_samples: int = 3
    reference_tick_ms: float = 16.67
    min_dt_ms: float = 1.0
    max_abs_y: float = 1.0e12  # larger positions are treated as missing
    max_abs_velocity: float = 1.0e12  # per-interval clamp

    def __post_init__(self):
        if not 0.0 < self.smoothing_factor <= 1.0:
            raise ValueError(f"smoothing_factor must be in (0, 1], got {self.smoothing_factor}")
        if self.required_upward_frames < 1:
            raise ValueError("required_upward_frames must be at least 1")
        if self.max_positions < 2 or self.max_velocity_history < 1 or self.velocity_window < 1:
            raise ValueError("history caps must be positive (max_positions >= 2)")
        if self.min_velocity_samples < 2:
            raise ValueError("min_velocity_samples must be at least 2")
        if self.min_dt_ms <= 0:
            raise ValueError("min_dt_ms must be positive")
        if not (0 < self.max_abs_y < math.inf and 0 < self.max_abs_velocity < math.inf):
            raise ValueError("max_abs_y and max_abs_velocity must be positive and finite")


@dataclass
class GameConfig:
    """Game simulation and loop settings."""
    width: int = 600
    height: int = 900
    ground_height: int = 80
    detection_interval_ms: float = 33.0
    max_frame_ms: float = 50.0
    restart_cooldown_ms: float = 3000.0
    high_score_path: Optional[str] = None
    seed: Optional[int] = None


@dataclass
class DisplayConfig:
    """Display configuration settings."""
    show_landmarks: bool = True
    show_debug: bool = True
    window_name: str = "Pump Jump"


@dataclass
class Cfg:
    """Main configuration class."""
    camera: CameraConfig = field(default_factory=CameraConfig)
    mediapipe: MediaPipeConfig = field(default_factory=MediaPipeConfig)
    hand_selection: HandSelectionConfig = field(default_factory=HandSelectionConfig)
    motion: MotionConfig = field(default_factory=MotionConfig)
    game: GameConfig = field(default_factory=GameConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)


def load_config(path: Optional[str] = None) -> Cfg:
    """
    Load configuration from YAML file.

    Args:
        path: Path to config file. If None, uses $PUMPJUMP_CONFIG (a .env file
            is honoured) and then config.default.yaml in the project root

    Returns:
        Configuration object with all settings
    """
    if path is None:
        load_dotenv()
        path = os.environ.get(CONFIG_ENV_VAR)
    if path is None:
        project_root = Path(__file__).parent.parent
        path = project_root / "config.default.yaml"

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f) or {}

    return _dict_to_config(data)


def _section(cls, data: Optional[Dict[str, Any]]):
    """Build a config section, ignoring unknown keys and keeping defaults for missing ones."""
    data = data or {}
    known = {f.name for f in fields(cls)}
    return cls(**{key: value for key, value in data.items() if key in known})


def _dict_to_config(data: Dict[str, Any]) -> Cfg:
    """Convert dictionary to configuration object."""
    return Cfg(
        camera=_section(CameraConfig, data.get('camera')),
        mediapipe=_section(MediaPipeConfig, data.get('mediapipe')),
        hand_selection=_section(HandSelectionConfig, data.get('hand_selection')),
        motion=_section(MotionConfig, data.get('motion')),
        game=_section(GameConfig, data.get('game')),
        display=_section(DisplayConfig, data.get('display')),
    )
