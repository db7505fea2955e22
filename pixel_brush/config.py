"""Brush parameters, the per-tool configuration holder and built-in presets."""

from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class PressureCurve(str, Enum):
    LINEAR = "linear"
    EASE_IN = "ease-in"
    EASE_OUT = "ease-out"
    EASE_IN_OUT = "ease-in-out"
    CUSTOM = "custom"


Channel = Annotated[int, Field(ge=0, le=255)]


class BrushParameters(BaseModel):
    """Immutable snapshot of everything a stamp needs from the tool settings.

    A snapshot is taken once at the start of a stroke; changing the
    configuration mid-stroke only affects the next stroke.
    """

    model_config = ConfigDict(frozen=True)

    size: float = Field(10.0, gt=0, le=1000)  # diameter in pixels
    hardness: float = Field(100.0, ge=0, le=100)  # 100 = hard circle
    opacity: float = Field(1.0, ge=0, le=1)
    flow: float = Field(1.0, ge=0, le=1)
    spacing: float = Field(25.0, ge=0, le=1000)  # percent of size
    jitter: float = Field(0.0, ge=0, le=100)  # percent of size

    pressure_enabled: bool = False
    pressure_size: bool = True
    pressure_opacity: bool = True
    pressure_flow: bool = False
    pressure_curve: PressureCurve = PressureCurve.LINEAR

    color: tuple[Channel, Channel, Channel, Channel] = (0, 0, 0, 255)
    stabilizer_strength: float = Field(30.0, ge=0, le=100)


class ToolConfiguration:
    """Mutable holder of the current brush parameters.

    Tools read `params` once per stroke, so a stroke always sees one
    consistent snapshot.
    """

    def __init__(self, params: BrushParameters | None = None):
        self._params = params if params is not None else BrushParameters()

    @property
    def params(self) -> BrushParameters:
        return self._params

    def update(self, **changes) -> BrushParameters:
        merged = self._params.model_dump()
        merged.update(changes)
        self._params = BrushParameters(**merged)
        return self._params

    def apply_preset(self, name: str) -> BrushParameters:
        preset = get_preset(name)
        return self.update(**preset.model_dump(exclude={"name", "display_name", "category"}))


class BrushPreset(BaseModel):
    name: str
    display_name: str
    category: str

    size: float
    hardness: float
    opacity: float
    flow: float
    spacing: float
    jitter: float = 0.0
    pressure_size: bool = True
    pressure_opacity: bool = True
    pressure_flow: bool = False
    pressure_curve: PressureCurve = PressureCurve.LINEAR


# ============================================================================
# BRUSH PRESETS
# ============================================================================

BRUSH_SOFT = BrushPreset(
    name="soft_brush",
    display_name="Soft Brush",
    category="paint",
    size=10, hardness=30, opacity=1.0, flow=0.5, spacing=25,
    pressure_size=True, pressure_opacity=True, pressure_flow=False,
    pressure_curve=PressureCurve.EASE_OUT,
)

BRUSH_HARD = BrushPreset(
    name="hard_brush",
    display_name="Hard Brush",
    category="paint",
    size=8, hardness=100, opacity=1.0, flow=1.0, spacing=25,
    pressure_size=True, pressure_opacity=False, pressure_flow=False,
    pressure_curve=PressureCurve.LINEAR,
)

BRUSH_TEXTURE = BrushPreset(
    name="texture_brush",
    display_name="Texture Brush",
    category="texture",
    size=15, hardness=50, opacity=0.8, flow=0.6, spacing=50, jitter=10,
    pressure_size=True, pressure_opacity=True, pressure_flow=True,
    pressure_curve=PressureCurve.EASE_IN_OUT,
)

BRUSH_AIRBRUSH = BrushPreset(
    name="airbrush",
    display_name="Airbrush",
    category="paint",
    size=20, hardness=0, opacity=0.3, flow=0.2, spacing=1, jitter=5,
    pressure_size=True, pressure_opacity=True, pressure_flow=True,
    pressure_curve=PressureCurve.EASE_OUT,
)

BRUSH_PENCIL_HARD = BrushPreset(
    name="pencil_hard",
    display_name="Hard Pencil",
    category="pencil",
    size=2, hardness=100, opacity=1.0, flow=1.0, spacing=10,
    pressure_size=True, pressure_opacity=False, pressure_flow=False,
    pressure_curve=PressureCurve.LINEAR,
)

BRUSH_PRESETS: dict[str, BrushPreset] = {
    preset.name: preset
    for preset in (BRUSH_SOFT, BRUSH_HARD, BRUSH_TEXTURE, BRUSH_AIRBRUSH, BRUSH_PENCIL_HARD)
}


def get_preset(name: str) -> BrushPreset:
    try:
        return BRUSH_PRESETS[name]
    except KeyError:
        raise KeyError(f"Unknown brush preset: {name!r}") from None


def get_presets_by_category(category: str) -> list[BrushPreset]:
    return [p for p in BRUSH_PRESETS.values() if p.category == category]
