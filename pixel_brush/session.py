import logging
from enum import Enum

from .brush import MaskCache
from .config import BrushParameters
from .pressure import NEUTRAL_PRESSURE, StampDynamics, resolve_dynamics
from .spacing import Point, calculate_spacing, schedule

logger = logging.getLogger(__name__)


class SessionState(Enum):
    IDLE = "idle"
    DRAWING = "drawing"


class StrokeSession:
    """State of one gesture, from pointer-down to pointer-up.

    begin() moves idle -> drawing, advance() stays in drawing, finish() and
    abort() return to idle. advance() and finish() outside drawing, and
    begin() while drawing, are no-ops.
    """

    def __init__(self, params: BrushParameters, mask_cache: MaskCache):
        self.params = params
        self.mask_cache = mask_cache
        self.state = SessionState.IDLE
        self.last_point: Point | None = None
        self.last_stamp_point: Point | None = None
        self.accumulated_distance = 0.0
        self.pressure = NEUTRAL_PRESSURE
        self.stamp_count = 0

    @property
    def is_drawing(self) -> bool:
        return self.state is SessionState.DRAWING

    @property
    def dynamics(self) -> StampDynamics:
        return resolve_dynamics(self.params, self.pressure)

    def begin(self, point: Point, pressure: float) -> Point | None:
        """Start the stroke; returns the point of the initial stamp."""
        if self.is_drawing:
            return None
        self.state = SessionState.DRAWING
        self.pressure = pressure
        self.last_point = point
        self.last_stamp_point = point
        self.accumulated_distance = 0.0
        return point

    def advance(self, point: Point, pressure: float) -> list[Point]:
        """Move to a new smoothed point; returns the stamps to place."""
        if not self.is_drawing:
            return []
        self.pressure = pressure
        size = self.dynamics.size
        spacing = calculate_spacing(size, self.params.spacing)
        stamps, self.accumulated_distance = schedule(
            self.last_point, point, spacing, self.accumulated_distance, size)
        if stamps:
            self.last_stamp_point = stamps[-1]
        self.last_point = point
        return stamps

    def record_stamp(self):
        self.stamp_count += 1

    def finish(self) -> bool:
        """End the stroke; False when it was not drawing."""
        if not self.is_drawing:
            return False
        self.state = SessionState.IDLE
        self.accumulated_distance = 0.0
        logger.debug("Stroke finished after %d stamps", self.stamp_count)
        return True

    def abort(self):
        self.state = SessionState.IDLE
        self.accumulated_distance = 0.0
