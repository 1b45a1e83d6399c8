"""
Non-blocking hand detection channel.

Hand inference is slower than the render loop, so it runs off the loop in the
default executor. At most one request is in flight; the game loop keeps
consuming the newest resolved result instead of waiting.
"""
import asyncio
import logging
from typing import Any, List, Optional

from .types import Hand, HandDetectorProto

logger = logging.getLogger(__name__)


class LatestResultChannel:
    """Request/response channel that keeps only the latest detection result."""

    def __init__(self, detector: HandDetectorProto):
        """
        Args:
            detector: Object with process(frame) -> List[Hand]
        """
        self.detector = detector
        self._task: Optional[asyncio.Future] = None
        self._latest: List[Hand] = []
        self._fresh = False
        self._closed = False
        self.completed = 0

    @property
    def pending(self) -> bool:
        """True while a detection request is in flight."""
        return self._task is not None and not self._task.done()

    def submit(self, frame: Any) -> bool:
        """
        Start detection on a frame unless a request is already pending.

        Must be called from inside a running event loop.

        Returns:
            True if the frame was accepted
        """
        if self._closed:
            raise RuntimeError("Detection channel is closed")
        if self.pending:
            return False

        loop = asyncio.get_running_loop()
        self._task = asyncio.ensure_future(loop.run_in_executor(None, self.detector.process, frame))
        self._task.add_done_callback(self._on_done)
        return True

    def _on_done(self, task: asyncio.Future) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Hand detection failed: {error}")
            hands: List[Hand] = []
        else:
            hands = list(task.result() or [])
        self._latest = hands
        self._fresh = True
        self.completed += 1

    def latest(self) -> List[Hand]:
        """Most recently resolved hands (empty before the first result)."""
        return self._latest

    def take(self) -> Optional[List[Hand]]:
        """Newest result once; None if nothing resolved since the last take."""
        if not self._fresh:
            return None
        self._fresh = False
        return self._latest

    async def wait(self) -> Optional[List[Hand]]:
        """Wait for the in-flight request, then take its result."""
        if self._task is not None:
            await asyncio.wait([self._task])
            await asyncio.sleep(0)
        return self.take()

    async def close(self) -> None:
        """Wait for the in-flight request and refuse new ones."""
        self._closed = True
        if self._task is not None and not self._task.done():
            await asyncio.wait([self._task])
