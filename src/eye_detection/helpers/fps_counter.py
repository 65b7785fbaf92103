import time
from collections import deque


class FpsCounter:
    """Frames seen during the last second, updated on every tick()."""

    def __init__(self, clock=time.perf_counter):
        self._clock = clock
        self._stamps: deque[float] = deque()

    def tick(self) -> int:
        now = self._clock()
        self._stamps.append(now)
        while self._stamps and now - self._stamps[0] > 1.0:
            self._stamps.popleft()
        return len(self._stamps)

    def reset(self):
        self._stamps.clear()
