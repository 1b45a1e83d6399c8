"""
Main application: camera -> hand detection -> jump gestures -> game.
"""
import argparse
import asyncio
import logging
import time
from typing import Optional

import cv2

from .config import load_config
from .detection import LatestResultChannel
from .game import Game
from .gestures import GestureProcessor
from .landmarks import HandsTracker, draw_hand, draw_center

logger = logging.getLogger(__name__)

JUMP_KEYS = (ord(' '), ord('w'))


class PumpJumpApp:
    """Game loop driver: ticks hand selection, jump detection and the game."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize the application with configuration."""
        self.config = load_config(config_path)
        self.tracker = HandsTracker(
            max_num_hands=self.config.mediapipe.max_num_hands,
            min_detection_conf=self.config.mediapipe.min_detection_confidence,
            min_tracking_conf=self.config.mediapipe.min_tracking_confidence,
            flip_horizontal=self.config.mediapipe.flip_horizontal
        )
        self.channel = LatestResultChannel(self.tracker)
        self.gesture_processor = GestureProcessor(self.config)
        self.game = Game(self.config.game)

        self.last_result = None
        self.last_debug = None

        # Initialize camera
        self.cap = cv2.VideoCapture(self.config.camera.index)
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.camera.width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.camera.height)
        self.cap.set(cv2.CAP_PROP_FPS, self.config.camera.fps)

        if not self.cap.isOpened():
            raise RuntimeError(f"Failed to open camera {self.config.camera.index}")
        logger.info(f"Camera {self.config.camera.index} opened")

    def start_game(self) -> None:
        """Start a round and clear the jump detector."""
        self.game.start()
        self.gesture_processor.reset()

    def handle_jump(self, now: float) -> None:
        if self.game.jump(now):
            logger.debug(f"Jump accepted in state {self.game.state}")

    async def run(self):
        """Run the main application loop."""
        logger.info(f"Starting {self.config.display.window_name}")
        logger.info("Pump your hand up to jump; space/w = jump, s = start, q = quit")

        game_cfg = self.config.game
        last_frame = time.perf_counter()
        last_detection = 0.0

        try:
            while True:
                ret, frame = self.cap.read()
                if not ret:
                    logger.error("Failed to read frame from camera")
                    break

                now = time.perf_counter()
                delta_ms = min((now - last_frame) * 1000.0, game_cfg.max_frame_ms)
                last_frame = now

                # At most one detection in flight, throttled to the detection rate
                if (now - last_detection) * 1000.0 > game_cfg.detection_interval_ms and not self.channel.pending:
                    if self.channel.submit(frame):
                        last_detection = now

                hands = self.channel.take()
                if hands is not None:
                    jump, self.last_result, self.last_debug = self.gesture_processor.process_frame(hands, now)
                    if jump:
                        self.handle_jump(now)

                event = self.game.update(delta_ms, now)
                if event == "score":
                    logger.info(f"Score: {self.game.score}")

                self.show(frame)

                key = cv2.waitKey(1) & 0xFF
                if key == ord('q'):
                    break
                if key in JUMP_KEYS:
                    self.handle_jump(now)
                elif key == ord('s'):
                    self.start_game()

                # Let detection results land
                await asyncio.sleep(0)
        finally:
            await self.channel.close()
            self.tracker.close()
            self.cap.release()
            cv2.destroyAllWindows()

    def show(self, frame) -> None:
        """Draw hand tracking and jump diagnostics on the camera preview."""
        display = self.config.display
        if self.config.mediapipe.flip_horizontal:
            frame = cv2.flip(frame, 1)

        result = self.last_result
        if result is not None and display.show_landmarks:
            frame = draw_hand(frame, result.hand, active=result.is_active)
            if result.center is not None and result.is_active:
                frame = draw_center(frame, result.center)

        status = "No hand detected" if result is None else "Hand tracked"
        if result is not None and result.interpolated:
            status = "Hand lost (holding last position)"
        cv2.putText(frame, status, (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255, 255, 255), 2)

        if display.show_debug and self.last_debug is not None:
            debug = self.last_debug
            cv2.putText(frame, f"v: {debug.velocity:.1f} | {debug.state}", (10, 60),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.5, (255, 255, 255), 1)

        game_text = f"{self.game.state.upper()}  score {self.game.score}  best {self.game.high_score}"
        cv2.putText(frame, game_text, (10, 90), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 255, 0), 2)

        cv2.imshow(display.window_name, frame)


async def run_app(config_path: Optional[str] = None):
    app = PumpJumpApp(config_path)
    await app.run()


def main():
    """Entry point for the application."""
    parser = argparse.ArgumentParser(description="Hand-pump jump game")
    parser.add_argument("--config", help="Path to YAML config (default: $PUMPJUMP_CONFIG or config.default.yaml)")
    parser.add_argument("--debug", action="store_true", help="Log gesture state transitions")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)

    if args.debug:
        logging.getLogger("pumpjump").setLevel(logging.DEBUG)

    try:
        asyncio.run(run_app(args.config))
    except KeyboardInterrupt:
        logger.info("Application interrupted by user")


if __name__ == "__main__":
    main()
