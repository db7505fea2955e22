from PyQt6.QtCore import QPointF, Qt
from PyQt6.QtGui import QPointingDevice

from .pressure import NEUTRAL_PRESSURE, InputSample
from .tools import Modifiers

_DEVICE_NAMES = {
    QPointingDevice.PointerType.Pen: "pen",
    QPointingDevice.PointerType.Eraser: "eraser",
    QPointingDevice.PointerType.Finger: "touch",
}


def modifiers_from_qt(mods: Qt.KeyboardModifier) -> Modifiers:
    return Modifiers(
        alt=bool(mods & Qt.KeyboardModifier.AltModifier),
        ctrl=bool(mods & Qt.KeyboardModifier.ControlModifier),
        meta=bool(mods & Qt.KeyboardModifier.MetaModifier),
        shift=bool(mods & Qt.KeyboardModifier.ShiftModifier),
    )


def device_name(event) -> str:
    device = event.pointingDevice() if hasattr(event, "pointingDevice") else None
    if device is None:
        return "mouse"
    return _DEVICE_NAMES.get(device.pointerType(), "mouse")


def widget_to_image(pos: QPointF, offset: QPointF, zoom: float) -> tuple[float, float]:
    """Sub-pixel image coordinates of a widget position."""
    return (pos.x() - offset.x()) / zoom, (pos.y() - offset.y()) / zoom


def sample_from_event(event, x: float, y: float) -> InputSample:
    """InputSample for a Qt mouse or tablet event already mapped to (x, y)."""
    device = device_name(event)
    pressure = NEUTRAL_PRESSURE
    if device != "mouse" and hasattr(event, "pressure"):
        pressure = float(event.pressure())
    return InputSample(x, y, pressure, device)
