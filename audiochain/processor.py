"""Gain stage with peak/RMS metering and a smoothed spectrum analyser."""

from __future__ import annotations

import math
import threading

import numpy as np

from .dsp import SmoothedValue, decibels_to_gain, gain_to_decibels

NUM_CHANNELS = 2
FFT_ORDER = 10
FFT_SIZE = 1 << FFT_ORDER
SPECTRUM_SIZE = FFT_SIZE // 2

PEAK_DECAY = 0.95
SPECTRUM_SMOOTHING = 0.8
GAIN_RAMP_SECONDS = 0.05
SPECTRUM_FLOOR_DB = -100.0


def _hann_window(size: int) -> np.ndarray:
    """A Hann window normalised so that its samples average to one."""
    n = np.arange(size, dtype=np.float64)
    window = 0.5 - 0.5 * np.cos(2.0 * np.pi * n / (size - 1))
    return window * (size / window.sum())


class AudioProcessor:
    """Applies smoothed gain to audio blocks and keeps level and spectrum readings."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._gain_db = 0.0
        self._enabled = True
        self._running = False
        self._prepared = False
        self.sample_rate = 44100.0
        self.block_size = 512

        self._peaks = [0.0] * NUM_CHANNELS
        self._rms = [0.0] * NUM_CHANNELS
        self._gain = SmoothedValue()

        self._window = _hann_window(FFT_SIZE)
        self._fft_data = np.zeros((NUM_CHANNELS, FFT_SIZE), dtype=np.float64)
        self._fft_index = [0] * NUM_CHANNELS
        self._spectrum = np.zeros((NUM_CHANNELS, SPECTRUM_SIZE), dtype=np.float64)

    # -- parameters -------------------------------------------------------

    @property
    def gain(self) -> float:
        """Gain in decibels."""
        return self._gain_db

    @gain.setter
    def gain(self, gain_db: float) -> None:
        self._gain_db = float(gain_db)

    @property
    def enabled(self) -> bool:
        """Whether blocks are processed at all."""
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = bool(value)

    @property
    def active(self) -> bool:
        """Whether the processor has been started."""
        return self._running

    @property
    def spectrum_size(self) -> int:
        """Number of bins in each channel's spectrum."""
        return SPECTRUM_SIZE

    # -- lifecycle --------------------------------------------------------

    def prepare_to_play(self, samples_per_block: int, sample_rate: float) -> None:
        """Get ready for a stream at the given block size and sample rate."""
        with self._lock:
            self.sample_rate = float(sample_rate)
            self.block_size = int(samples_per_block)
            self._gain.reset(sample_rate, GAIN_RAMP_SECONDS)
            self._gain.set_current_and_target(decibels_to_gain(self._gain_db))
            self.reset_meters()
            self._fft_index = [0] * NUM_CHANNELS
            self._fft_data.fill(0.0)
            self._spectrum.fill(0.0)
            self._prepared = True

    def release_resources(self) -> None:
        """Mark the processor as no longer prepared."""
        self._prepared = False

    def start(self) -> None:
        self._running = True

    def stop(self) -> None:
        self._running = False

    # -- processing -------------------------------------------------------

    def process_audio(self, buffer: np.ndarray) -> np.ndarray:
        """Apply gain to ``buffer`` (channels x samples) in place and update the meters.

        Nothing happens unless the processor is prepared, started and enabled.
        The buffer is returned for convenience.
        """
        if not isinstance(buffer, np.ndarray) or buffer.ndim != 2:
            raise ValueError("buffer must be a 2-D numpy array of shape (channels, samples)")
        with self._lock:
            if not (self._prepared and self._running and self._enabled):
                return buffer

            self._gain.set_target(decibels_to_gain(self._gain_db))
            channels, samples = buffer.shape
            # The ramp advances once per sample of every channel, channel by channel.
            gains = np.fromiter(
                (self._gain.next_value() for _ in range(channels * samples)),
                dtype=np.float64,
                count=channels * samples,
            ).reshape(channels, samples)
            buffer *= gains.astype(buffer.dtype, copy=False)

            self._update_meters(buffer)
            self._update_spectrum(buffer)
        return buffer

    # -- metering ---------------------------------------------------------

    def peak_level(self, channel: int) -> float:
        """Decaying peak level of a channel; 0.0 for a channel out of range."""
        if 0 <= channel < NUM_CHANNELS:
            return self._peaks[channel]
        return 0.0

    def rms_level(self, channel: int) -> float:
        """RMS level of the last block of a channel; 0.0 for a channel out of range."""
        if 0 <= channel < NUM_CHANNELS:
            return self._rms[channel]
        return 0.0

    def reset_meters(self) -> None:
        self._peaks = [0.0] * NUM_CHANNELS
        self._rms = [0.0] * NUM_CHANNELS

    def spectrum(self, channel: int) -> np.ndarray:
        """A copy of the smoothed spectrum of a channel, in decibels."""
        if not 0 <= channel < NUM_CHANNELS:
            raise IndexError(f"channel {channel} out of range")
        return self._spectrum[channel].copy()

    def _update_meters(self, buffer: np.ndarray) -> None:
        channels, samples = buffer.shape
        for channel, data in enumerate(buffer[: min(channels, NUM_CHANNELS)]):
            magnitudes = np.abs(data.astype(np.float64))
            peak = float(magnitudes.max()) if samples else 0.0
            self._peaks[channel] = max(peak, self._peaks[channel] * PEAK_DECAY)
            if samples:
                self._rms[channel] = math.sqrt(float(np.sum(magnitudes * magnitudes)) / samples)
            else:
                self._rms[channel] = math.nan

    def _update_spectrum(self, buffer: np.ndarray) -> None:
        channels, _ = buffer.shape
        for channel, data in enumerate(buffer[: min(channels, NUM_CHANNELS)]):
            start = self._fft_index[channel]
            taken = data[: FFT_SIZE - start]
            self._fft_data[channel, start : start + len(taken)] = taken
            self._fft_index[channel] = start + len(taken)
            if self._fft_index[channel] >= FFT_SIZE:
                self._process_fft(channel)
                self._fft_index[channel] = 0

    def _process_fft(self, channel: int) -> None:
        windowed = self._fft_data[channel] * self._window
        magnitudes = np.abs(np.fft.rfft(windowed))[:SPECTRUM_SIZE]
        decibels = np.array(
            [max(SPECTRUM_FLOOR_DB, gain_to_decibels(m)) for m in magnitudes], dtype=np.float64
        )
        self._spectrum[channel] = (
            self._spectrum[channel] * SPECTRUM_SMOOTHING + decibels * (1.0 - SPECTRUM_SMOOTHING)
        )