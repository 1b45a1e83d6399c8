"""
Test cases for jump detection with synthetic position traces.
"""
import math
import unittest
import sys
from pathlib import Path
from typing import List, Optional

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from pumpjump.gestures import MotionDetector, GestureProcessor
from pumpjump.config import Cfg, MotionConfig
from pumpjump.types import Hand, MotionDebugInfo

TICK_S = 0.01667  # one 60fps frame


def feed(detector: MotionDetector, ys: List[Optional[float]], start: float = 0.0) -> List[bool]:
    """Feed positions one tick apart and collect the jump signals."""
    return [detector.update(y, start + i * TICK_S) for i, y in enumerate(ys)]


def make_hand(cx: float, cy: float) -> Hand:
    """Hand whose landmarks all sit on (cx, cy)."""
    return Hand(keypoints=[(cx, cy)] * 21)


class TestVelocity(unittest.TestCase):
    """Test velocity estimation."""

    def setUp(self):
        self.detector = MotionDetector()

    def test_zero_without_positions(self):
        self.assertEqual(self.detector.get_velocity(), 0.0)

    def test_zero_with_one_position(self):
        self.detector.add_position(100, 0.0)
        self.assertEqual(self.detector.get_velocity(), 0.0)

    def test_zero_until_enough_samples(self):
        self.detector.add_position(100, 0.0)
        self.detector.add_position(150, TICK_S)
        self.assertEqual(self.detector.get_velocity(), 0.0)

    def test_downward_motion_is_positive(self):
        for i, y in enumerate([100, 120, 140]):
            self.detector.add_position(y, i * TICK_S)
        self.assertGreater(self.detector.get_velocity(), 0)

    def test_upward_motion_is_negative(self):
        for i, y in enumerate([200, 180, 160]):
            self.detector.add_position(y, i * TICK_S)
        self.assertLess(self.detector.get_velocity(), 0)

    def test_weighted_towards_recent_intervals(self):
        """Smoothed 200, 185, 162.5 -> intervals -15 and -22.5 weighted 1:2."""
        for i, y in enumerate([200, 170, 140]):
            self.detector.add_position(y, i * TICK_S)
        self.assertAlmostEqual(self.detector.get_velocity(), -20.0, places=3)

    def test_normalized_to_reference_tick(self):
        """Same displacement over twice the time gives half the velocity."""
        fast = MotionDetector()
        slow = MotionDetector()
        for i, y in enumerate([200, 180, 160]):
            fast.add_position(y, i * TICK_S)
            slow.add_position(y, i * 2 * TICK_S)
        self.assertAlmostEqual(slow.get_velocity(), fast.get_velocity() / 2, places=6)

    def test_zero_elapsed_time_stays_finite(self):
        for y in [10000, 9000, 8000]:
            self.detector.add_position(y, 1.0)
        self.assertTrue(math.isfinite(self.detector.get_velocity()))

    def test_very_small_values_stay_finite(self):
        feed(self.detector, [0.001, 0.0005, 0.0001])
        self.assertTrue(math.isfinite(self.detector.current_velocity))

    def test_large_values_without_timestamps(self):
        self.detector.update(10000)
        self.detector.update(9000)
        self.detector.update(8000)
        self.assertTrue(math.isfinite(self.detector.current_velocity))

    def test_extreme_magnitudes_stay_finite(self):
        ys = [1.7e308, -1.7e308, -1.7e308, 1.7e308]
        feed(self.detector, ys)
        self.assertTrue(math.isfinite(self.detector.current_velocity))
        self.assertEqual(len(self.detector.positions), 0)

    def test_extreme_magnitudes_with_shared_timestamp(self):
        for y in [1e308, -1e308, -1e308, 1e308]:
            self.detector.update(y, 1.0)
        self.assertTrue(math.isfinite(self.detector.current_velocity))
        self.assertEqual(self.detector.state, "idle")

    def test_out_of_range_position_is_missing_sample(self):
        feed(self.detector, [200, 190, 180])
        before = (self.detector.smoothed_y, self.detector.state, len(self.detector.positions))
        self.assertFalse(self.detector.update(5e12, 3 * TICK_S))
        after = (self.detector.smoothed_y, self.detector.state, len(self.detector.positions))
        self.assertEqual(before, after)

    def test_extreme_magnitudes_with_raised_position_limit(self):
        cfg = MotionConfig(max_abs_y=1.7e308)
        ys = [1.7e308, -1.7e308, -1.7e308, 1.7e308]
        for shared in (False, True):
            detector = MotionDetector(cfg)
            for i, y in enumerate(ys):
                detector.update(y, 1.0 if shared else i * TICK_S)
                self.assertTrue(math.isfinite(detector.current_velocity))
                self.assertLessEqual(abs(detector.current_velocity), cfg.max_abs_velocity)
            self.assertEqual(len(detector.positions), 4)

    def test_interval_velocity_is_clamped(self):
        detector = MotionDetector(MotionConfig(min_dt_ms=1e-300))
        for y in [1e12, -1e12, 1e12, -1e12]:
            detector.add_position(y, 1.0)
            detector.get_velocity()
        self.assertTrue(all(math.isfinite(v) for v in detector.velocity_history))
        self.assertLessEqual(abs(detector.current_velocity), detector.cfg.max_abs_velocity)

    def test_cooldown_exit_after_large_swing(self):
        detector = MotionDetector(MotionConfig(required_upward_frames=1))
        results = feed(detector, [1e11, 5e10, 0.0])
        self.assertTrue(results[-1])
        feed(detector, [5e10, 1e11, 1.5e11], start=3 * TICK_S)
        self.assertEqual(detector.state, "idle")

    def test_negative_coordinates(self):
        feed(self.detector, [-100, -150, -200])
        self.assertLess(self.detector.current_velocity, 0)

    def test_velocity_history_is_capped(self):
        for i in range(20):
            self.detector.add_position(100 + i * 10, i * TICK_S)
            self.detector.get_velocity()
        self.assertEqual(len(self.detector.velocity_history), self.detector.cfg.max_velocity_history)

    def test_peak_velocity_tracks_fastest_upward(self):
        feed(self.detector, [300, 250, 200, 150, 150, 150])
        self.assertEqual(self.detector.peak_velocity, min(self.detector.velocity_history))
        self.assertLess(self.detector.peak_velocity, self.detector.current_velocity)


class TestSmoothing(unittest.TestCase):
    """Test exponential smoothing of raw positions."""

    def setUp(self):
        self.detector = MotionDetector()

    def test_first_position_seeds_smoothing(self):
        self.detector.add_position(100, 0.0)
        self.assertEqual(self.detector.smoothed_y, 100)

    def test_exponential_smoothing(self):
        self.detector.add_position(100, 0.0)
        self.detector.add_position(200, TICK_S)
        # 0.5 * 200 + 0.5 * 100
        self.assertEqual(self.detector.smoothed_y, 150)

    def test_spike_is_dampened(self):
        for i, y in enumerate([100, 100, 100, 200]):
            self.detector.add_position(y, i * TICK_S)
        self.assertLess(self.detector.smoothed_y, 200)
        self.assertGreater(self.detector.smoothed_y, 100)

    def test_raw_y_is_unsmoothed(self):
        self.detector.add_position(100, 0.0)
        self.detector.add_position(200, TICK_S)
        self.assertEqual(self.detector.raw_y, 200)

    def test_positions_are_capped(self):
        ys = [200 + math.sin(i * 0.5) * 50 for i in range(100)]
        feed(self.detector, ys)
        self.assertEqual(len(self.detector.positions), self.detector.cfg.max_positions)


class TestJumpDetection(unittest.TestCase):
    """Test the idle / moving_up / cooldown state machine."""

    def setUp(self):
        self.detector = MotionDetector()

    def test_fast_pump_triggers_on_fourth_tick(self):
        self.assertEqual(feed(self.detector, [200, 170, 140, 100]), [False, False, False, True])

    def test_no_second_jump_during_cooldown(self):
        feed(self.detector, [200, 170, 140, 100])
        self.assertFalse(self.detector.update(60, 4 * TICK_S))
        self.assertEqual(self.detector.state, "cooldown")

    def test_no_jump_on_first_update(self):
        self.assertFalse(self.detector.update(100, 0.0))

    def test_slow_upward_motion_ignored(self):
        self.assertFalse(any(feed(self.detector, [100, 99, 98, 97, 96, 95])))

    def test_downward_motion_never_jumps(self):
        ys = [100 + i * 25 for i in range(30)]
        self.assertFalse(any(feed(self.detector, ys)))

    def test_sustained_upward_motion_jumps_once(self):
        ys = [800 - i * 30 for i in range(25)]
        results = feed(self.detector, ys)
        self.assertEqual(results.count(True), 1)
        jump_at = results.index(True)
        self.assertFalse(any(results[jump_at + 1:]))

    def test_cooldown_waits_for_hand_to_return(self):
        results = feed(self.detector, [200, 170, 140, 100])
        self.assertTrue(results[-1])

        # Hand held still well past the cooldown frames: still waiting
        feed(self.detector, [100] * 20, start=4 * TICK_S)
        self.assertEqual(self.detector.state, "cooldown")
        self.assertEqual(self.detector.cooldown_timer, 0)

        # Pumping up again without coming down first does nothing
        self.assertFalse(any(feed(self.detector, [70, 40, 10, -20], start=24 * TICK_S)))

    def test_next_pump_after_hand_returns(self):
        feed(self.detector, [200, 170, 140, 100])
        feed(self.detector, [100 + i * 30 for i in range(1, 11)], start=4 * TICK_S)
        self.assertEqual(self.detector.state, "idle")

        results = feed(self.detector, [400 - i * 40 for i in range(1, 11)], start=14 * TICK_S)
        self.assertEqual(results.count(True), 1)

    def test_single_confirmation_frame_jumps_from_idle(self):
        detector = MotionDetector(MotionConfig(required_upward_frames=1))
        self.assertEqual(feed(detector, [200, 170, 140]), [False, False, True])
        self.assertEqual(detector.state, "cooldown")

    def test_shorter_cooldown(self):
        detector = MotionDetector(MotionConfig(cooldown_frames=3, required_upward_frames=1))
        feed(detector, [200, 150, 100])
        self.assertEqual(detector.cooldown_timer, 3)
        feed(detector, [150, 200, 250], start=3 * TICK_S)
        self.assertEqual(detector.cooldown_timer, 0)
        self.assertEqual(detector.state, "idle")

    def test_none_input_returns_false(self):
        self.detector.update(100, 0.0)
        self.assertFalse(self.detector.update(None))

    def test_nan_input_treated_as_missing(self):
        self.detector.update(100, 0.0)
        self.assertFalse(self.detector.update(float("nan")))
        self.assertEqual(len(self.detector.positions), 1)

    def test_none_input_freezes_state(self):
        feed(self.detector, [200, 190, 180])
        before = (self.detector.smoothed_y, self.detector.state, len(self.detector.positions),
                  self.detector.cooldown_timer, self.detector.upward_frames)
        for _ in range(5):
            self.assertFalse(self.detector.update(None))
        after = (self.detector.smoothed_y, self.detector.state, len(self.detector.positions),
                 self.detector.cooldown_timer, self.detector.upward_frames)
        self.assertEqual(before, after)

    def test_occlusion_does_not_break_pump(self):
        results = feed(self.detector, [200, 170, None, 140, 100])
        self.assertEqual(results.count(True), 1)


class TestStateMachine(unittest.TestCase):
    """Test state transitions and reset."""

    def setUp(self):
        self.detector = MotionDetector()

    def test_initial_state_is_idle(self):
        self.assertEqual(self.detector.state, "idle")

    def test_transitions_to_moving_up(self):
        feed(self.detector, [200, 190, 180])
        self.assertEqual(self.detector.state, "moving_up")
        self.assertEqual(self.detector.upward_frames, 1)

    def test_returns_to_idle_when_motion_stops(self):
        feed(self.detector, [200, 190, 180, 190])
        self.assertEqual(self.detector.state, "idle")
        self.assertEqual(self.detector.upward_frames, 0)

    def test_reset_matches_fresh_detector(self):
        feed(self.detector, [200, 170, 140, 100, 60])
        self.detector.reset()
        fresh = MotionDetector()
        self.assertEqual(self.detector.get_debug_info(), fresh.get_debug_info())
        self.assertEqual(len(self.detector.positions), 0)
        self.assertEqual(len(self.detector.velocity_history), 0)
        self.assertIsNone(self.detector.smoothed_y)
        self.assertEqual(self.detector.cooldown_timer, 0)
        self.assertEqual(self.detector.upward_frames, 0)

    def test_reset_allows_immediate_pump(self):
        feed(self.detector, [200, 170, 140, 100])
        self.detector.reset()
        self.assertEqual(feed(self.detector, [200, 170, 140, 100], start=1.0), [False, False, False, True])


class TestDebugInfo(unittest.TestCase):
    """Test the diagnostics snapshot."""

    def test_snapshot_fields(self):
        detector = MotionDetector()
        feed(detector, [100, 120])
        info = detector.get_debug_info()
        self.assertIsInstance(info, MotionDebugInfo)
        self.assertEqual(info.state, "idle")
        self.assertEqual(info.cooldown, 0)
        self.assertEqual(info.positions, 2)
        self.assertEqual(info.raw_y, 120)
        self.assertEqual(info.smoothed_y, 110)

    def test_snapshot_has_no_side_effects(self):
        detector = MotionDetector()
        feed(detector, [200, 170, 140])
        first = detector.get_debug_info()
        second = detector.get_debug_info()
        self.assertEqual(first, second)
        self.assertEqual(len(detector.velocity_history), 1)


class TestGestureProcessor(unittest.TestCase):
    """Test the per-tick hand selection + jump pipeline."""

    def setUp(self):
        self.processor = GestureProcessor(Cfg())

    def run_ticks(self, frames, start=0.0):
        return [self.processor.process_frame(hands, start + i * TICK_S) for i, hands in enumerate(frames)]

    def test_pump_with_single_hand(self):
        frames = [[make_hand(300, y)] for y in [200, 170, 140, 100]]
        jumps = [jump for jump, _, _ in self.run_ticks(frames)]
        self.assertEqual(jumps, [False, False, False, True])

    def test_no_hand_reports_nothing(self):
        jump, result, debug = self.processor.process_frame([], 0.0)
        self.assertFalse(jump)
        self.assertIsNone(result)
        self.assertIsNone(debug.smoothed_y)

    def test_persisted_hand_feeds_last_position(self):
        self.run_ticks([[make_hand(300, 200)]])
        jump, result, debug = self.processor.process_frame([], TICK_S)
        self.assertFalse(jump)
        self.assertTrue(result.interpolated)
        self.assertEqual(debug.positions, 2)
        self.assertEqual(debug.raw_y, 200)

    def test_hand_without_landmarks_is_skipped(self):
        jump, result, debug = self.processor.process_frame([Hand(keypoints=[])], 0.0)
        self.assertFalse(jump)
        self.assertIsNotNone(result)
        self.assertIsNone(result.center)
        self.assertEqual(debug.positions, 0)

    def test_pumping_hand_chosen_over_still_hand(self):
        frames = []
        for y in [400, 380, 420, 370, 430, 360]:
            frames.append([make_hand(100, 300), make_hand(500, y)])
        results = self.run_ticks(frames)
        _, last, _ = results[-1]
        self.assertEqual(last.index, 1)

    def test_reset_clears_motion_only(self):
        self.run_ticks([[make_hand(300, y)] for y in [200, 170, 140, 100]])
        self.processor.reset()
        self.assertEqual(self.processor.motion_detector.state, "idle")
        self.assertIsNotNone(self.processor.hand_selector.last_valid_hand)


if __name__ == '__main__':
    unittest.main()
