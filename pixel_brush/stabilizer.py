from collections import deque


class Stabilizer:
    """Moving-average smoothing of the pointer path.

    Strength 0 passes points through; 100 averages over the last 11 samples.
    """

    def __init__(self, strength: float = 30):
        self._strength = 0.0
        self._points: deque[tuple[float, float]] = deque()
        self.set_strength(strength)

    @property
    def strength(self) -> float:
        return self._strength

    def set_strength(self, strength: float):
        self._strength = max(0.0, min(float(strength), 100.0))

    @property
    def window(self) -> int:
        return int(self._strength / 100 * 10) + 1

    def reset(self):
        self._points.clear()

    def process(self, x: float, y: float) -> tuple[float, float]:
        if self._strength == 0:
            return x, y

        self._points.append((x, y))
        while len(self._points) > self.window:
            self._points.popleft()

        n = len(self._points)
        avg_x = sum(p[0] for p in self._points) / n
        avg_y = sum(p[1] for p in self._points) / n
        return avg_x, avg_y
