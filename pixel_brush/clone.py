"""Source sampling and blending shared by the clone and heal tools.

The anchor keeps a source point and the offset between the painted
position and the sampled one. The first stamp after the source is picked
fixes the offset; every later stamp, in this stroke or the next, samples
at ``dest - offset`` so the sampled area moves together with the hand.
"""

import math
from typing import Callable

import numpy as np

from .surface import RasterSurface, Region

Point = tuple[float, float]

# share of the destination's deviation from the source kept by heal
HEAL_TEXTURE_STRENGTH = 0.7


class SourceAnchor:
    def __init__(self):
        self._source: Point | None = None
        self._offset: Point | None = None  # None until the first stamp after set_source

    @property
    def is_set(self) -> bool:
        return self._source is not None

    @property
    def source(self) -> Point | None:
        return self._source

    @property
    def offset(self) -> Point:
        return self._offset if self._offset is not None else (0.0, 0.0)

    def set_source(self, x: float, y: float):
        self._source = (x, y)
        self._offset = None

    def ensure_source(self, x: float, y: float):
        if self._source is None:
            self.set_source(x, y)

    def sample_point(self, x: float, y: float) -> Point:
        if self._source is None:
            raise RuntimeError("Source point is not set")
        if self._offset is None:
            # pending offset becomes dest - source, so the sample is the source itself
            return self._source
        return x - self._offset[0], y - self._offset[1]

    def commit(self, x: float, y: float, sample: Point):
        self._source = sample
        self._offset = (x - sample[0], y - sample[1])


def clip_stamp_regions(sample: Point, dest: Point, size: float,
                       width: int, height: int) -> tuple[Region, Region] | None:
    """Matching source and destination boxes of side ~size, clipped to the surface.

    Both boxes are trimmed by the same amount so texel (i, j) of one
    corresponds to texel (i, j) of the other. None when nothing is left.
    """
    r = math.ceil(size / 2)
    side = 2 * r
    sx = math.floor(sample[0]) - r
    sy = math.floor(sample[1]) - r
    dx = math.floor(dest[0]) - r
    dy = math.floor(dest[1]) - r

    lx0 = max(0, -sx, -dx)
    ly0 = max(0, -sy, -dy)
    lx1 = min(side, width - sx, width - dx)
    ly1 = min(side, height - sy, height - dy)
    if lx1 <= lx0 or ly1 <= ly0:
        return None

    w = lx1 - lx0
    h = ly1 - ly0
    return Region(sx + lx0, sy + ly0, w, h), Region(dx + lx0, dy + ly0, w, h)


def _round(values: np.ndarray) -> np.ndarray:
    return np.clip(np.floor(values + 0.5), 0, 255).astype(np.uint8)


def clone_blend(src: np.ndarray, dst: np.ndarray, strength: float) -> np.ndarray:
    out = src.copy()
    out[:, :, 3] = _round(src[:, :, 3].astype(np.float32) * strength)
    return out


def heal_blend(src: np.ndarray, dst: np.ndarray, strength: float) -> np.ndarray:
    """Pull destination colour toward the source while keeping part of its texture.

    A fixed-coefficient approximation, not a gradient-domain solve.
    """
    s = src.astype(np.float32)
    d = dst.astype(np.float32)

    healed = np.empty_like(s)
    healed[:, :, :3] = s[:, :, :3] + (d[:, :, :3] - s[:, :, :3]) * HEAL_TEXTURE_STRENGTH
    healed[:, :, 3] = np.maximum(s[:, :, 3], d[:, :, 3])

    return _round(d * (1.0 - strength) + healed * strength)


Blend = Callable[[np.ndarray, np.ndarray, float], np.ndarray]


def sample_stamp(surface: RasterSurface, anchor: SourceAnchor, x: float, y: float,
                 size: float, strength: float, blend: Blend) -> bool:
    """Copy-blend one stamp from the anchor's sample point to (x, y).

    Returns True when pixels were written.
    """
    sample = anchor.sample_point(x, y)
    regions = clip_stamp_regions(sample, (x, y), size, surface.width(), surface.height())
    written = False
    if regions is not None:
        src_r, dst_r = regions
        src = surface.get_pixel_region(src_r.x, src_r.y, src_r.w, src_r.h)
        dst = surface.get_pixel_region(dst_r.x, dst_r.y, dst_r.w, dst_r.h)
        surface.put_pixel_region(blend(src, dst, strength), dst_r.x, dst_r.y)
        written = True
    anchor.commit(x, y, sample)
    return written
