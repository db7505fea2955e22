import logging
import math
from collections import OrderedDict

import numpy as np

logger = logging.getLogger(__name__)

MAX_MASK_CACHE_SIZE = 50


class MaskBuildError(RuntimeError):
    pass


def rasterize_mask(size: float, hardness: float) -> np.ndarray:
    """Anti-aliased circular alpha mask of side ceil(size), uint8.

    Opaque inside radius * hardness / 100, quadratic falloff to zero at the
    outer radius, transparent beyond.
    """
    d = math.ceil(size)
    if d < 1:
        raise ValueError(f"Brush size must be positive, got {size}")
    radius = size / 2
    inner = radius * hardness / 100
    center = d / 2

    y, x = np.ogrid[0:d, 0:d]
    dx = x - center
    dy = y - center
    dist = np.sqrt(dx * dx + dy * dy)

    falloff = max(radius - inner, 1e-6)
    gradient = 1.0 - (dist - inner) / falloff
    soft = np.floor(255.0 * gradient * gradient + 0.5)

    alpha = np.where(dist <= inner, 255.0, np.where(dist <= radius, soft, 0.0))
    mask = np.clip(alpha, 0, 255).astype(np.uint8)
    mask.setflags(write=False)
    return mask


class MaskCache:
    """Bounded FIFO cache of brush masks keyed by (size, hardness)."""

    def __init__(self, max_entries: int = MAX_MASK_CACHE_SIZE):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._masks: OrderedDict[tuple[float, float], np.ndarray] = OrderedDict()

    def __len__(self) -> int:
        return len(self._masks)

    def __contains__(self, key) -> bool:
        return key in self._masks

    def clear(self):
        self._masks.clear()

    def get_mask(self, size: float, hardness: float) -> np.ndarray:
        key = (float(size), float(hardness))
        mask = self._masks.get(key)
        if mask is not None:
            return mask

        # build before touching the cache so a failure leaves it intact
        try:
            mask = rasterize_mask(size, hardness)
        except (ValueError, MemoryError) as e:
            raise MaskBuildError(f"Cannot build brush mask size={size} hardness={hardness}") from e

        if len(self._masks) >= self.max_entries:
            evicted, _ = self._masks.popitem(last=False)
            logger.debug("Evicted brush mask %s", evicted)
        self._masks[key] = mask
        return mask
