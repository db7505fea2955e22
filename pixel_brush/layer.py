import numpy as np
from PyQt6.QtCore import QObject, pyqtSignal


class Layer:
    def __init__(self, name: str, width: int, height: int, image: np.ndarray = None):
        self.name = name
        self.visible = True
        self.locked = False
        self.opacity = 1.0
        if image is not None:
            self.image = np.ascontiguousarray(image.astype(np.uint8))
        else:
            self.image = np.zeros((height, width, 4), dtype=np.uint8)


class LayerStack(QObject):
    changed = pyqtSignal()
    layer_removed = pyqtSignal(object)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._layers: list[Layer] = []  # index 0 = topmost
        self._active_layer: Layer | None = None
        self._width = 0
        self._height = 0

    @property
    def width(self):
        return self._width

    @property
    def height(self):
        return self._height

    @property
    def layers(self):
        return self._layers

    @property
    def active_layer(self) -> Layer | None:
        return self._active_layer

    @active_layer.setter
    def active_layer(self, layer: Layer | None):
        if layer is not self._active_layer:
            self._active_layer = layer
            self.changed.emit()

    def init_from_image(self, image: np.ndarray):
        self._layers.clear()
        h, w = image.shape[:2]
        self._width = w
        self._height = h
        layer = Layer("Background", w, h, image)
        self._layers.append(layer)
        self._active_layer = layer
        self.changed.emit()

    def init_blank(self, width: int, height: int):
        self.init_from_image(np.zeros((height, width, 4), dtype=np.uint8))

    def add_layer(self, name: str, image: np.ndarray = None) -> Layer | None:
        if self._width == 0 or self._height == 0:
            return None
        layer = Layer(name, self._width, self._height, image)
        if self._active_layer is not None and self._active_layer in self._layers:
            idx = self._layers.index(self._active_layer)
            self._layers.insert(idx, layer)
        else:
            self._layers.insert(0, layer)
        self._active_layer = layer
        self.changed.emit()
        return layer

    def remove_layer(self, layer: Layer):
        if layer not in self._layers:
            return
        idx = self._layers.index(layer)
        self._layers.remove(layer)
        if layer is self._active_layer:
            if self._layers:
                self._active_layer = self._layers[min(idx, len(self._layers) - 1)]
            else:
                self._active_layer = None
        self.layer_removed.emit(layer)
        self.changed.emit()

    def set_locked(self, layer: Layer, locked: bool):
        layer.locked = locked
        self.changed.emit()

    def set_visibility(self, layer: Layer, visible: bool):
        layer.visible = visible
        self.changed.emit()

    # --- Compositing ---

    @staticmethod
    def _blend_image(image: np.ndarray, opacity: float, result: np.ndarray):
        src = image.astype(np.float32)
        alpha = src[:, :, 3:4] / 255.0 * opacity
        inv_alpha = 1.0 - alpha
        result[:, :, :3] = src[:, :, :3] * alpha + result[:, :, :3] * inv_alpha
        result[:, :, 3:4] = alpha * 255.0 + result[:, :, 3:4] * inv_alpha

    def composite(self) -> np.ndarray:
        if not self._layers or self._width == 0:
            return np.zeros((1, 1, 4), dtype=np.uint8)

        result = np.zeros((self._height, self._width, 4), dtype=np.float32)
        for layer in reversed(self._layers):
            if not layer.visible or layer.opacity <= 0:
                continue
            self._blend_image(layer.image, layer.opacity, result)
        return np.clip(result, 0, 255).astype(np.uint8)
