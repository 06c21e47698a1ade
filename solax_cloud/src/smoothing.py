"""
Moving-average smoothers for noisy power meters.

The Solax Cloud reports instantaneous power, which jumps around with passing
clouds. Smoothers average the last *window* samples so the exposed meters
approximate a fixed real-world span.

A window of 0 or 1 disables smoothing: ``add()`` returns the latest value.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

from collections import deque


class SimpleMovingAverage:
    """Arithmetic mean of the last *window* values."""

    def __init__(self, window: int) -> None:
        self.window = window
        self._values: deque[float] = deque(maxlen=max(window, 1))

    def add(self, value: float) -> float:
        self._values.append(value)
        return self.value

    @property
    def value(self) -> float:
        if not self._values:
            return 0.0
        return sum(self._values) / len(self._values)


class ExponentialMovingAverage:
    """Exponential moving average with ``alpha = 2 / (window + 1)``.

    The first value seeds the average.
    """

    def __init__(self, window: int) -> None:
        self.window = window
        self.alpha = 2 / (window + 1) if window > 1 else 1.0
        self._value: float | None = None

    def add(self, value: float) -> float:
        if self._value is None:
            self._value = value
        else:
            self._value = self.alpha * value + (1 - self.alpha) * self._value
        return self._value

    @property
    def value(self) -> float:
        return 0.0 if self._value is None else self._value


Smoother = SimpleMovingAverage | ExponentialMovingAverage


def create_smoother(method: str, window: int) -> Smoother:
    """Return a smoother for *method* (``"sma"`` or ``"ema"``).

    Raises:
        ValueError: If *method* is unknown.
    """
    if method == "sma":
        return SimpleMovingAverage(window)
    if method == "ema":
        return ExponentialMovingAverage(window)
    raise ValueError(f"Unknown smoothing method: {method!r}")
