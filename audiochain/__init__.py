"""Audio chain engine: device selection, smoothed gain, level metering, spectrum analysis, layout and theme rules."""

__version__ = "1.0.0"
__all__ = ["dsp", "processor", "input_manager", "engine", "layout", "theme"]