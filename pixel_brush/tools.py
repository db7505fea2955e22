import logging
from dataclasses import dataclass, field
from typing import Callable

import numpy as np

from .brush import MaskBuildError, MaskCache
from .clone import SourceAnchor, clone_blend, heal_blend, sample_stamp
from .compositing import StampMode, apply_stamp
from .config import BrushParameters, ToolConfiguration
from .layer import LayerStack
from .pressure import InputSample, StampDynamics, apply_jitter, normalize_pressure
from .session import StrokeSession
from .spacing import Point
from .stabilizer import Stabilizer
from .surface import HistoryStore, RasterSurface, SurfaceError
from .throttle import FrameThrottle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Modifiers:
    alt: bool = False
    ctrl: bool = False
    meta: bool = False
    shift: bool = False

    @property
    def sets_source(self) -> bool:
        return self.alt or self.ctrl or self.meta


NO_MODIFIERS = Modifiers()


@dataclass
class ToolContext:
    surface: RasterSurface
    history: HistoryStore
    mask_cache: MaskCache = field(default_factory=MaskCache)
    scheduler: Callable | None = None  # frame scheduler for render coalescing
    rng: np.random.Generator = field(default_factory=np.random.default_rng)


class BrushTool:
    """Shared pointer lifecycle of every stamp-based tool.

    Subclasses implement `_apply` to put one stamp on the surface.
    """

    name = ""
    # heal renders and commits synchronously on release; the rest defer
    commit_immediately = False

    def __init__(self):
        self._config: ToolConfiguration | None = None
        self._context: ToolContext | None = None
        self._session: StrokeSession | None = None
        self._stabilizer = Stabilizer()
        self._render: FrameThrottle | None = None
        self._target = None

    def init(self, config: ToolConfiguration | BrushParameters, context: ToolContext):
        if isinstance(config, BrushParameters):
            config = ToolConfiguration(config)
        self._config = config
        self._context = context
        self._session = None
        self._render = FrameThrottle(context.surface.request_render, context.scheduler)

    @property
    def session(self) -> StrokeSession | None:
        return self._session

    @property
    def is_drawing(self) -> bool:
        return self._session is not None and self._session.is_drawing

    @property
    def stroke_target(self):
        """What the current stroke paints on, None when idle."""
        return self._target if self.is_drawing else None

    # --- Input ---

    def on_input_start(self, sample: InputSample, modifiers: Modifiers = NO_MODIFIERS):
        if self._context is None:
            logger.warning("%s tool used before init()", self.name)
            return
        if self.is_drawing:
            return

        params = self._config.params
        self._session = StrokeSession(params, self._context.mask_cache)
        self._target = self._context.surface.target()
        self._stabilizer.set_strength(params.stabilizer_strength)
        self._stabilizer.reset()
        self._update_modifiers(modifiers)

        point = self._smooth(sample)
        start = self._session.begin(point, normalize_pressure(sample))
        logger.debug("%s stroke started at (%.1f, %.1f)", self.name, *start)
        if self._stamp(start):
            self._render()

    def on_input_move(self, sample: InputSample, modifiers: Modifiers = NO_MODIFIERS):
        if not self.is_drawing:
            return
        self._update_modifiers(modifiers)
        point = self._smooth(sample)
        stamps = self._session.advance(point, normalize_pressure(sample))
        for p in stamps:
            if not self._stamp(p):
                return
        if stamps:
            self._render()

    def on_input_end(self, modifiers: Modifiers = NO_MODIFIERS):
        if self._session is None or not self._session.finish():
            return
        self._stabilizer.reset()
        self._finalize()

    def cancel(self, commit: bool = True):
        """End the current gesture early.

        Stamps already painted are committed to history unless `commit` is
        False, as when the layer being painted has been removed.
        """
        if not self.is_drawing:
            return
        logger.info("%s stroke cancelled", self.name)
        self._abort(commit)

    # --- Hooks ---

    def _update_modifiers(self, modifiers: Modifiers):
        pass

    def _smooth(self, sample: InputSample) -> Point:
        return self._stabilizer.process(sample.x, sample.y)

    def _apply(self, point: Point, dynamics: StampDynamics):
        raise NotImplementedError

    # --- Internals ---

    def _stamp(self, point: Point) -> bool:
        """Place one stamp; False when the gesture had to be aborted."""
        try:
            self._apply(point, self._session.dynamics)
        except SurfaceError as e:
            logger.warning("%s stroke aborted: %s", self.name, e)
            self._abort()
            return False
        except MaskBuildError:
            logger.error("%s stamp skipped", self.name, exc_info=True)
            return True
        self._session.record_stamp()
        return True

    def _abort(self, commit: bool = True):
        painted = self._session.stamp_count > 0
        self._session.abort()
        self._stabilizer.reset()
        self._render.flush()
        if commit and painted:
            self._commit()

    def _finalize(self):
        self._render()
        self._render.flush()
        self._commit()

    def _commit(self):
        if self.commit_immediately:
            self._context.history.save_immediate()
        else:
            self._context.history.save()


class PaintTool(BrushTool):
    mode = StampMode.DRAW

    def _hardness(self) -> float:
        return self._session.params.hardness

    def _apply(self, point: Point, dynamics: StampDynamics):
        params = self._session.params
        image = self._context.surface.get_drawing_context()
        x, y = apply_jitter(point[0], point[1], params.jitter, params.size, self._context.rng)
        apply_stamp(image, x, y, dynamics.size, self._hardness(), dynamics.strength,
                    self.mode, params.color, self._session.mask_cache)


class PencilTool(PaintTool):
    name = "pencil"


class EraserTool(PaintTool):
    """Eraser; holding alt restores erased pixels instead.

    In hard-edge mode points are rounded to whole pixels, the stabilizer is
    bypassed and the brush is always fully hard.
    """

    name = "eraser"

    def __init__(self, hard_edge: bool = False):
        super().__init__()
        self.hard_edge = hard_edge
        self.anti_erase = False

    @property
    def mode(self) -> StampMode:
        return StampMode.ANTI_ERASE if self.anti_erase else StampMode.ERASE

    def _update_modifiers(self, modifiers: Modifiers):
        self.anti_erase = modifiers.alt

    def _smooth(self, sample: InputSample) -> Point:
        if self.hard_edge:
            return float(round(sample.x)), float(round(sample.y))
        return super()._smooth(sample)

    def _hardness(self) -> float:
        return 100.0 if self.hard_edge else super()._hardness()

    def _finalize(self):
        self.anti_erase = False
        super()._finalize()


class SamplingTool(BrushTool):
    """Clone-style tool: a modifier click picks the source, dragging paints from it."""

    def __init__(self):
        super().__init__()
        self.anchor = SourceAnchor()

    def on_input_start(self, sample: InputSample, modifiers: Modifiers = NO_MODIFIERS):
        if self._context is None:
            logger.warning("%s tool used before init()", self.name)
            return
        if self.is_drawing:
            return
        if modifiers.sets_source:
            self.anchor.set_source(sample.x, sample.y)
            logger.debug("%s source set to (%.1f, %.1f)", self.name, sample.x, sample.y)
            return
        self.anchor.ensure_source(sample.x, sample.y)
        super().on_input_start(sample, modifiers)

    @staticmethod
    def blend(src: np.ndarray, dst: np.ndarray, strength: float) -> np.ndarray:
        raise NotImplementedError

    def _apply(self, point: Point, dynamics: StampDynamics):
        sample_stamp(self._context.surface, self.anchor, point[0], point[1],
                     dynamics.size, dynamics.strength, self.blend)


class CloneTool(SamplingTool):
    name = "clone"
    blend = staticmethod(clone_blend)


class HealTool(SamplingTool):
    name = "heal"
    commit_immediately = True
    blend = staticmethod(heal_blend)


class ToolRegistry:
    """Named tools sharing one configuration and context, one of them active."""

    def __init__(self, config: ToolConfiguration, context: ToolContext):
        self.config = config
        self.context = context
        self._tools: dict[str, BrushTool] = {}
        self._active: BrushTool | None = None

    def register(self, tool: BrushTool):
        self._tools[tool.name] = tool
        tool.init(self.config, self.context)

    def get(self, name: str) -> BrushTool:
        try:
            return self._tools[name]
        except KeyError:
            raise KeyError(f"Unknown tool: {name!r}") from None

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    @property
    def active(self) -> BrushTool | None:
        return self._active

    def select(self, name: str) -> BrushTool:
        tool = self.get(name)
        if self._active is not None and self._active is not tool:
            self._active.cancel()
        self._active = tool
        return tool

    def attach(self, stack: LayerStack):
        stack.layer_removed.connect(self._on_layer_removed)

    def _on_layer_removed(self, layer):
        if self._active is None or self._active.stroke_target is not layer:
            return
        logger.info("Layer %r removed during a stroke", layer.name)
        self._active.cancel(commit=False)

    def on_input_start(self, sample: InputSample, modifiers: Modifiers = NO_MODIFIERS):
        if self._active is not None:
            self._active.on_input_start(sample, modifiers)

    def on_input_move(self, sample: InputSample, modifiers: Modifiers = NO_MODIFIERS):
        if self._active is not None:
            self._active.on_input_move(sample, modifiers)

    def on_input_end(self, modifiers: Modifiers = NO_MODIFIERS):
        if self._active is not None:
            self._active.on_input_end(modifiers)


def create_registry(config: ToolConfiguration, context: ToolContext) -> ToolRegistry:
    registry = ToolRegistry(config, context)
    for tool in (PencilTool(), EraserTool(), CloneTool(), HealTool()):
        registry.register(tool)
    registry.select("pencil")
    return registry
