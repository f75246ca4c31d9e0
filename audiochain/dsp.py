"""Small signal-processing helpers: decibel conversion and linear value smoothing."""

from __future__ import annotations

import math

DEFAULT_MINUS_INFINITY_DB = -100.0


def decibels_to_gain(decibels: float, minus_infinity_db: float = DEFAULT_MINUS_INFINITY_DB) -> float:
    """Convert a level in decibels to a linear gain.

    Levels at or below ``minus_infinity_db`` are treated as silence.
    """
    if decibels > minus_infinity_db:
        return 10.0 ** (decibels * 0.05)
    return 0.0


def gain_to_decibels(gain: float, minus_infinity_db: float = DEFAULT_MINUS_INFINITY_DB) -> float:
    """Convert a linear gain to decibels, clamped at ``minus_infinity_db``."""
    if gain > 0.0:
        return max(minus_infinity_db, 20.0 * math.log10(gain))
    return minus_infinity_db


class SmoothedValue:
    """A value that ramps linearly towards its target over a fixed number of steps."""

    def __init__(self, initial: float = 0.0) -> None:
        self.current = float(initial)
        self.target = float(initial)
        self._steps_to_target = 0
        self._countdown = 0
        self._step = 0.0

    @property
    def is_smoothing(self) -> bool:
        """True while the value is still moving towards its target."""
        return self._countdown > 0

    @property
    def steps_to_target(self) -> int:
        """Number of steps a ramp to a new target takes."""
        return self._steps_to_target

    def reset(self, sample_rate: float, ramp_seconds: float) -> None:
        """Set the ramp length from a sample rate and a duration, and stop any ramp."""
        if sample_rate <= 0 or ramp_seconds < 0:
            raise ValueError("sample rate must be positive and ramp length non-negative")
        self._steps_to_target = int(math.floor(ramp_seconds * sample_rate))
        self.set_current_and_target(self.target)

    def set_current_and_target(self, value: float) -> None:
        """Jump straight to ``value`` with no ramp."""
        self.current = self.target = float(value)
        self._countdown = 0

    def set_target(self, value: float) -> None:
        """Start ramping towards ``value``."""
        value = float(value)
        if value == self.target:
            return
        if self._steps_to_target <= 0:
            self.set_current_and_target(value)
            return
        self.target = value
        self._countdown = self._steps_to_target
        self._step = (self.target - self.current) / self._countdown

    def next_value(self) -> float:
        """Advance one step and return the new value."""
        if self._countdown <= 0:
            return self.target
        self._countdown -= 1
        if self._countdown == 0:
            self.current = self.target
        else:
            self.current += self._step
        return self.current