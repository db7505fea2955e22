import math
from enum import Enum

import numpy as np
from PIL import Image, ImageDraw

from .brush import MaskCache


class StampMode(str, Enum):
    DRAW = "draw"
    ERASE = "erase"
    ANTI_ERASE = "anti-erase"  # restores alpha removed by erase


def uses_fast_path(size: float, hardness: float) -> bool:
    return size <= 2 or hardness >= 100


def circle_coverage(cx: int, cy: int, size: float) -> tuple[np.ndarray, int, int]:
    """Hard-edged filled circle of diameter `size` centred on (cx, cy).

    Returns the uint8 coverage buffer and its top-left corner in image
    coordinates.
    """
    r = size / 2
    pad = math.ceil(r) + 1
    side = 2 * pad + 1
    ox = cx - pad
    oy = cy - pad

    img = Image.new("L", (side, side), 0)
    x0 = cx - r - ox
    y0 = cy - r - oy
    x1 = max(x0, cx + r - 1 - ox)
    y1 = max(y0, cy + r - 1 - oy)
    ImageDraw.Draw(img).ellipse([x0, y0, x1, y1], fill=255)
    coverage = np.array(img, dtype=np.uint8)
    if not coverage.any():
        coverage[pad, pad] = 255
    return coverage, ox, oy


def stamp_coverage(x: float, y: float, size: float, hardness: float,
                   mask_cache: MaskCache) -> tuple[np.ndarray, int, int]:
    cx = math.floor(x)
    cy = math.floor(y)
    if uses_fast_path(size, hardness):
        return circle_coverage(cx, cy, size)
    mask = mask_cache.get_mask(size, hardness)
    return mask, math.floor(cx - size / 2), math.floor(cy - size / 2)


def composite_alpha(image: np.ndarray, alpha: np.ndarray, x0: int, y0: int,
                    mode: StampMode, color=(0, 0, 0, 255)):
    """Blend a float alpha buffer (0..1) into `image` with its corner at (x0, y0)."""
    sh, sw = alpha.shape[:2]
    ih, iw = image.shape[:2]

    # clip to image bounds
    sx0 = max(0, -x0)
    sy0 = max(0, -y0)
    sx1 = min(sw, iw - x0)
    sy1 = min(sh, ih - y0)

    dx0 = max(0, x0)
    dy0 = max(0, y0)
    dx1 = dx0 + (sx1 - sx0)
    dy1 = dy0 + (sy1 - sy0)

    if dx0 >= dx1 or dy0 >= dy1:
        return

    a = alpha[sy0:sy1, sx0:sx1, None].astype(np.float32)
    dst = image[dy0:dy1, dx0:dx1].astype(np.float32)
    mode = StampMode(mode)

    if mode is StampMode.DRAW:
        inv = 1.0 - a
        rgb = np.array(color[:3], dtype=np.float32)
        dst[:, :, :3] = rgb * a + dst[:, :, :3] * inv
        dst[:, :, 3:4] = a * 255.0 + dst[:, :, 3:4] * inv
    elif mode is StampMode.ERASE:
        dst[:, :, 3:4] = dst[:, :, 3:4] * (1.0 - a)
    else:
        # destination-over with an opaque white source
        da = dst[:, :, 3:4] / 255.0
        add = a * (1.0 - da)
        out_a = da + add
        safe = np.where(out_a > 0, out_a, 1.0)
        dst[:, :, :3] = np.where(out_a > 0,
                                 (dst[:, :, :3] * da + 255.0 * add) / safe,
                                 dst[:, :, :3])
        dst[:, :, 3:4] = out_a * 255.0

    image[dy0:dy1, dx0:dx1] = np.clip(np.rint(dst), 0, 255).astype(np.uint8)


def apply_stamp(image: np.ndarray, x: float, y: float, size: float, hardness: float,
                strength: float, mode: StampMode = StampMode.DRAW,
                color=(0, 0, 0, 255), mask_cache: MaskCache = None):
    """Apply one brush stamp centred on (x, y).

    strength is opacity * flow. In draw mode the brush colour's own alpha
    scales it further.
    """
    if strength <= 0:
        return
    if mask_cache is None:
        mask_cache = MaskCache()
    coverage, x0, y0 = stamp_coverage(x, y, size, hardness, mask_cache)
    scale = strength
    if StampMode(mode) is StampMode.DRAW:
        scale *= color[3] / 255.0
    alpha = coverage.astype(np.float32) / 255.0 * scale
    composite_alpha(image, alpha, x0, y0, mode, color)
