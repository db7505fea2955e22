from typing import Callable

from PyQt6.QtCore import QTimer

FRAME_INTERVAL_MS = 16


def qt_frame_scheduler(callback: Callable[[], None]):
    QTimer.singleShot(FRAME_INTERVAL_MS, callback)


class FrameThrottle:
    """Collapses bursts of calls into one call per frame.

    The wrapped function always runs with the arguments of the latest call.
    `scheduler` receives a zero-argument callback to run at the next frame.
    """

    def __init__(self, func: Callable, scheduler: Callable[[Callable[[], None]], None] = None):
        self._func = func
        self._scheduler = scheduler or qt_frame_scheduler
        self._scheduled = False
        self._pending = False
        self._args = ()
        self._kwargs = {}

    @property
    def pending(self) -> bool:
        return self._pending

    def __call__(self, *args, **kwargs):
        self._args = args
        self._kwargs = kwargs
        self._pending = True
        if not self._scheduled:
            self._scheduled = True
            self._scheduler(self._on_frame)

    def _on_frame(self):
        self._scheduled = False
        self._fire()

    def _fire(self):
        if not self._pending:
            return
        args, kwargs = self._args, self._kwargs
        self._pending = False
        self._args = ()
        self._kwargs = {}
        self._func(*args, **kwargs)

    def flush(self):
        """Run a pending call now instead of waiting for the frame."""
        self._fire()
