from dataclasses import dataclass
from typing import Protocol

import numpy as np

from .layer import LayerStack


class SurfaceError(RuntimeError):
    """The raster surface cannot be drawn on right now."""


class SurfaceLockedError(SurfaceError):
    pass


class SurfaceUnavailableError(SurfaceError):
    pass


@dataclass(frozen=True)
class Region:
    x: int
    y: int
    w: int
    h: int

    @property
    def is_empty(self) -> bool:
        return self.w <= 0 or self.h <= 0

    def clamped(self, width: int, height: int) -> "Region":
        x0 = max(0, self.x)
        y0 = max(0, self.y)
        x1 = min(width, self.x + self.w)
        y1 = min(height, self.y + self.h)
        return Region(x0, y0, x1 - x0, y1 - y0)


class RasterSurface(Protocol):
    """What the stroke engine needs from the thing it paints on.

    get_drawing_context() returns the writable (H, W, 4) uint8 RGBA array
    of the target, or raises SurfaceLockedError / SurfaceUnavailableError.
    target() identifies what is being painted, so a stroke can tell when it
    goes away.
    """

    def get_drawing_context(self) -> np.ndarray: ...

    def get_pixel_region(self, x: int, y: int, w: int, h: int) -> np.ndarray: ...

    def put_pixel_region(self, buffer: np.ndarray, x: int, y: int): ...

    def width(self) -> int: ...

    def height(self) -> int: ...

    def request_render(self): ...

    def target(self) -> object: ...


class HistoryStore(Protocol):
    def save(self): ...

    def save_immediate(self): ...


class LayerSurface:
    """RasterSurface over the active layer of a LayerStack."""

    def __init__(self, stack: LayerStack):
        self._stack = stack

    @property
    def stack(self) -> LayerStack:
        return self._stack

    def get_drawing_context(self) -> np.ndarray:
        layer = self._stack.active_layer
        if layer is None:
            raise SurfaceUnavailableError("No active layer")
        if layer.locked:
            raise SurfaceLockedError(f"Layer {layer.name!r} is locked")
        return layer.image

    def width(self) -> int:
        return self._stack.width

    def height(self) -> int:
        return self._stack.height

    def get_pixel_region(self, x: int, y: int, w: int, h: int) -> np.ndarray:
        image = self.get_drawing_context()
        r = Region(x, y, w, h).clamped(image.shape[1], image.shape[0])
        if r.is_empty:
            return np.zeros((0, 0, 4), dtype=np.uint8)
        return image[r.y:r.y + r.h, r.x:r.x + r.w].copy()

    def put_pixel_region(self, buffer: np.ndarray, x: int, y: int):
        image = self.get_drawing_context()
        bh, bw = buffer.shape[:2]
        r = Region(x, y, bw, bh).clamped(image.shape[1], image.shape[0])
        if r.is_empty:
            return
        sx = r.x - x
        sy = r.y - y
        image[r.y:r.y + r.h, r.x:r.x + r.w] = buffer[sy:sy + r.h, sx:sx + r.w]

    def request_render(self):
        self._stack.changed.emit()

    def target(self):
        return self._stack.active_layer
