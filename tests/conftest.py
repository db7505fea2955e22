import numpy as np
import pytest

from pixel_brush.brush import MaskCache
from pixel_brush.config import BrushParameters, ToolConfiguration
from pixel_brush.surface import SurfaceLockedError
from pixel_brush.tools import ToolContext


class FakeHistory:
    def __init__(self):
        self.saves = 0
        self.immediate_saves = 0

    def save(self):
        self.saves += 1

    def save_immediate(self):
        self.immediate_saves += 1


class ManualScheduler:
    """Frame scheduler that only runs callbacks when the test says so."""

    def __init__(self):
        self.callbacks = []

    def __call__(self, callback):
        self.callbacks.append(callback)

    def run(self):
        callbacks, self.callbacks = self.callbacks, []
        for callback in callbacks:
            callback()


class RecordingSurface:
    """RasterSurface over a plain array that records region reads and writes."""

    def __init__(self, width: int, height: int, fill=(0, 0, 0, 0)):
        self.image = np.zeros((height, width, 4), dtype=np.uint8)
        self.image[:] = fill
        self.locked = False
        self.reads = []
        self.puts = []
        self.renders = 0

    def get_drawing_context(self):
        if self.locked:
            raise SurfaceLockedError("Layer is locked")
        return self.image

    def get_pixel_region(self, x, y, w, h):
        self.get_drawing_context()
        self.reads.append((x, y, w, h))
        return self.image[y:y + h, x:x + w].copy()

    def put_pixel_region(self, buffer, x, y):
        self.get_drawing_context()
        h, w = buffer.shape[:2]
        self.puts.append((x, y, w, h))
        self.image[y:y + h, x:x + w] = buffer

    def width(self):
        return self.image.shape[1]

    def height(self):
        return self.image.shape[0]

    def request_render(self):
        self.renders += 1

    def target(self):
        return self


@pytest.fixture
def history():
    return FakeHistory()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def surface():
    return RecordingSurface(100, 100)


@pytest.fixture
def context(surface, history, scheduler):
    return ToolContext(
        surface=surface,
        history=history,
        mask_cache=MaskCache(),
        scheduler=scheduler,
        rng=np.random.default_rng(0),
    )


@pytest.fixture
def make_tool(context):
    """Build and init a tool with the given brush parameter overrides."""

    def _make(tool_cls, **params):
        params.setdefault("stabilizer_strength", 0)
        tool = tool_cls()
        tool.init(ToolConfiguration(BrushParameters(**params)), context)
        return tool

    return _make
