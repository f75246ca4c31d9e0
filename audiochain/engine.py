"""The audio engine behind the main window: device selection, routing and processing."""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence

import numpy as np

from .input_manager import AudioInputManager, DeviceError
from .processor import AudioProcessor

log = logging.getLogger(__name__)

MIN_PROCESSING_CHANNELS = 2
PREFERRED_INPUT_KEYWORD = "microphone"


class PluginChain(Protocol):
    """Anything that can process a block of audio ahead of the processor."""

    def prepare_to_play(self, samples_per_block: int, sample_rate: float) -> None: ...

    def process_audio(self, buffer: np.ndarray) -> object: ...

    def release_resources(self) -> None: ...


class AudioChainEngine:
    """Routes input audio through an optional plugin chain and the processor to the outputs."""

    def __init__(
        self,
        input_manager: Optional[AudioInputManager] = None,
        processor: Optional[AudioProcessor] = None,
        plugin_host: Optional[PluginChain] = None,
    ) -> None:
        self.input_manager = input_manager if input_manager is not None else AudioInputManager()
        self.processor = processor if processor is not None else AudioProcessor()
        self.plugin_host = plugin_host
        self._active = False
        self._input_devices: list[str] = []
        self._output_devices: list[str] = []
        self._selected_input: Optional[str] = None
        self._selected_output: Optional[str] = None

    # -- state ------------------------------------------------------------

    @property
    def processing_active(self) -> bool:
        return self._active

    @property
    def device_selection_enabled(self) -> bool:
        """Device choice is locked while processing runs."""
        return not self._active

    @property
    def input_devices(self) -> list[str]:
        return list(self._input_devices)

    @property
    def output_devices(self) -> list[str]:
        return list(self._output_devices)

    @property
    def selected_input(self) -> Optional[str]:
        return self._selected_input

    @property
    def selected_output(self) -> Optional[str]:
        return self._selected_output

    @property
    def input_levels(self) -> tuple[float, float]:
        """Held input levels of the left and right channels."""
        return (self.input_manager.input_level(0), self.input_manager.input_level(1))

    # -- audio device callbacks -------------------------------------------

    def audio_callback(
        self,
        inputs: Optional[Sequence[Optional[Sequence[float]]]],
        num_outputs: int,
        num_samples: int,
    ) -> np.ndarray:
        """Process one block and return the output channels (num_outputs x num_samples).

        ``inputs`` holds one sample sequence per input channel (None for a channel
        without data), or is None when the device delivers no input at all.
        The outputs are silent unless processing is active.
        """
        outputs = np.zeros((num_outputs, num_samples), dtype=np.float32)
        if not self._active or inputs is None:
            return outputs

        self.input_manager.update_input_levels(inputs, num_samples)

        num_inputs = len(inputs)
        if num_inputs == 0:
            return outputs

        channels = max(num_inputs, num_outputs, MIN_PROCESSING_CHANNELS)
        buffer = np.zeros((channels, num_samples), dtype=np.float32)
        for channel, data in enumerate(inputs):
            if data is not None:
                block = np.asarray(data, dtype=np.float32)[:num_samples]
                buffer[channel, : len(block)] = block

        if num_inputs == 1 and inputs[0] is not None:
            buffer[1] = buffer[0]

        if self.plugin_host is not None:
            self.plugin_host.process_audio(buffer)
        self.processor.process_audio(buffer)

        shared = min(num_outputs, channels)
        outputs[:shared] = buffer[:shared]
        return outputs

    def device_about_to_start(self, sample_rate: float, buffer_size: int) -> None:
        """Prepare everything for a stream at the given rate and block size."""
        self.processor.prepare_to_play(buffer_size, sample_rate)
        if self.plugin_host is not None:
            self.plugin_host.prepare_to_play(buffer_size, sample_rate)
        self.input_manager.set_sample_rate(sample_rate)
        self.input_manager.set_buffer_size(buffer_size)
        log.debug("Audio prepared - sample rate %s, buffer size %s", sample_rate, buffer_size)

    def device_stopped(self) -> None:
        """Release processing resources after the stream stops."""
        self.processor.release_resources()
        if self.plugin_host is not None:
            self.plugin_host.release_resources()

    # -- controls ---------------------------------------------------------

    def toggle_processing(self) -> bool:
        """Start processing if stopped, stop it if running; return whether it now runs.

        Starting does nothing when no valid input device has been opened.
        """
        manager = self.input_manager.device_manager
        if self._active:
            manager.remove_audio_callback(self.audio_callback)
            self.input_manager.stop()
            self._active = False
            self.processor.stop()
            log.debug("Audio processing stopped")
            return False

        if not self.input_manager.has_valid_input_device:
            log.debug("No input device selected")
            return False

        try:
            self.input_manager.start()
        except DeviceError as error:
            log.debug("Failed to start audio processing: %s", error)
            return False

        manager.add_audio_callback(self.audio_callback)
        self._active = True
        self.processor.start()
        log.debug("Audio processing started from %s", self.input_manager.current_input_device)
        return True

    def refresh_devices(self) -> None:
        """Re-read the device lists and select defaults.

        A device whose name mentions a microphone is preferred as input;
        otherwise the first input is used. The first output is selected.
        Devices that fail to open stay selected but are only logged.
        """
        self._input_devices = self.input_manager.available_input_devices()
        self._output_devices = self.input_manager.available_output_devices()
        self._selected_input = None
        self._selected_output = None

        if self._input_devices:
            preferred = next(
                (name for name in self._input_devices if PREFERRED_INPUT_KEYWORD in name.lower()),
                self._input_devices[0],
            )
            try:
                self.select_input_device(preferred)
            except DeviceError as error:
                log.debug("Failed to set input device %s: %s", preferred, error)

        if self._output_devices:
            first = self._output_devices[0]
            try:
                self.select_output_device(first)
            except DeviceError as error:
                log.debug("Failed to set output device %s: %s", first, error)

    def select_input_device(self, name: str) -> None:
        """Choose one of the listed input devices and open it."""
        if name not in self._input_devices:
            raise ValueError(f"unknown input device: {name!r}")
        self._selected_input = name
        self.input_manager.set_input_device(name)

    def select_output_device(self, name: str) -> None:
        """Choose one of the listed output devices and open it."""
        if name not in self._output_devices:
            raise ValueError(f"unknown output device: {name!r}")
        self._selected_output = name
        self.input_manager.set_output_device(name)

    # -- shutdown ---------------------------------------------------------

    def close(self) -> None:
        """Stop processing and detach from the device manager."""
        if self._active:
            self.input_manager.device_manager.remove_audio_callback(self.audio_callback)
            self.input_manager.stop()
            self.processor.stop()
            self._active = False

    def __enter__(self) -> AudioChainEngine:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()