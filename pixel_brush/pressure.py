from dataclasses import dataclass

import numpy as np

from .config import BrushParameters, PressureCurve

NEUTRAL_PRESSURE = 0.5


@dataclass(frozen=True)
class InputSample:
    """One raw pointer sample in image coordinates."""
    x: float
    y: float
    pressure: float = NEUTRAL_PRESSURE
    device: str = "mouse"  # "mouse", "pen", "eraser" or "touch"


def normalize_pressure(sample: InputSample) -> float:
    """Pressure of a sample, or the neutral value when there is no pressure signal.

    Mice and devices that report exactly 0.5 are treated as carrying no
    pressure information.
    """
    if sample.device == "mouse" or sample.pressure == NEUTRAL_PRESSURE:
        return NEUTRAL_PRESSURE
    return sample.pressure


def apply_curve(pressure: float, curve: PressureCurve | str) -> float:
    p = max(0.0, min(1.0, pressure))
    curve = PressureCurve(curve)
    if curve is PressureCurve.EASE_IN:
        return p * p
    if curve is PressureCurve.EASE_OUT:
        return 1 - (1 - p) * (1 - p)
    if curve is PressureCurve.EASE_IN_OUT:
        if p < 0.5:
            return 2 * p * p
        return 1 - (-2 * p + 2) ** 2 / 2
    # linear; custom has no curve points here and behaves as linear
    return p


def _curve_value(pressure: float, params: BrushParameters, flag: bool) -> float | None:
    if not params.pressure_enabled or not flag or pressure == NEUTRAL_PRESSURE:
        return None
    return apply_curve(pressure, params.pressure_curve)


def brush_size(params: BrushParameters, pressure: float) -> float:
    c = _curve_value(pressure, params, params.pressure_size)
    if c is None:
        return params.size
    # 0.0 pressure still leaves 30% of the base size
    return max(1.0, params.size * (0.3 + c * 0.7))


def brush_opacity(params: BrushParameters, pressure: float) -> float:
    c = _curve_value(pressure, params, params.pressure_opacity)
    if c is None:
        return params.opacity
    return params.opacity * c


def brush_flow(params: BrushParameters, pressure: float) -> float:
    c = _curve_value(pressure, params, params.pressure_flow)
    if c is None:
        return params.flow
    return params.flow * c


@dataclass(frozen=True)
class StampDynamics:
    size: float
    opacity: float
    flow: float

    @property
    def strength(self) -> float:
        return self.opacity * self.flow


def resolve_dynamics(params: BrushParameters, pressure: float) -> StampDynamics:
    return StampDynamics(
        size=brush_size(params, pressure),
        opacity=brush_opacity(params, pressure),
        flow=brush_flow(params, pressure),
    )


def apply_jitter(x: float, y: float, jitter_percent: float, size: float,
                 rng: np.random.Generator) -> tuple[float, float]:
    if jitter_percent == 0:
        return x, y
    max_jitter = size * jitter_percent / 100
    jx, jy = rng.uniform(-max_jitter, max_jitter, size=2)
    return x + float(jx), y + float(jy)
