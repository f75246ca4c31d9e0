"""Audio device selection and input level monitoring."""

from __future__ import annotations

import logging
import threading
from contextlib import suppress
from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, Optional, Sequence

import numpy as np

log = logging.getLogger(__name__)

NUM_CHANNELS = 2
LEVEL_DECAY = 0.98
SIGNAL_THRESHOLD = 0.001  # roughly -60 dB
DEFAULT_SAMPLE_RATE = 44100.0
DEFAULT_BUFFER_SIZE = 512


class DeviceError(RuntimeError):
    """Raised when an audio device cannot be opened or configured."""


@dataclass(frozen=True)
class DeviceSetup:
    """The devices, channels and stream settings a device manager should use."""

    input_device: str = ""
    output_device: str = ""
    sample_rate: float = DEFAULT_SAMPLE_RATE
    buffer_size: int = DEFAULT_BUFFER_SIZE
    input_channels: frozenset[int] = frozenset()
    output_channels: frozenset[int] = frozenset()
    use_default_input_channels: bool = True
    use_default_output_channels: bool = True


@dataclass
class DeviceType:
    """A family of audio devices (one driver API) and the devices it offers.

    ``inputs`` and ``outputs`` map device names to their channel counts.
    """

    name: str
    inputs: dict[str, int] = field(default_factory=dict)
    outputs: dict[str, int] = field(default_factory=dict)

    def device_names(self, want_inputs: bool) -> list[str]:
        """Names of the input devices, or of the output devices."""
        return list(self.inputs if want_inputs else self.outputs)

    def input_channel_count(self, name: str) -> Optional[int]:
        """Input channels of the device called ``name``, or None if this type has no such device."""
        if name in self.inputs or name in self.outputs:
            return self.inputs.get(name, 0)
        return None


AudioCallback = Callable[..., object]


class DeviceManager:
    """Keeps the available device types and the setup that is currently open."""

    def __init__(self, device_types: Iterable[DeviceType] = ()) -> None:
        self.device_types: list[DeviceType] = list(device_types)
        self._setup = DeviceSetup()
        self._open = False
        self._callbacks: list[AudioCallback] = []
        self._lock = threading.Lock()

    @property
    def setup(self) -> DeviceSetup:
        """The setup currently in use."""
        return self._setup

    @property
    def is_open(self) -> bool:
        """Whether a setup has been applied successfully."""
        return self._open

    @property
    def callbacks(self) -> list[AudioCallback]:
        """A copy of the registered audio callbacks."""
        with self._lock:
            return list(self._callbacks)

    def add_audio_callback(self, callback: AudioCallback) -> None:
        with self._lock:
            if callback not in self._callbacks:
                self._callbacks.append(callback)

    def remove_audio_callback(self, callback: AudioCallback) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def _find(self, name: str, inputs: bool) -> Optional[int]:
        for device_type in self.device_types:
            devices = device_type.inputs if inputs else device_type.outputs
            if name in devices:
                return devices[name]
        return None

    def initialise_with_default_devices(self, num_inputs: int, num_outputs: int) -> None:
        """Open the first input and output devices with up to the given channel counts."""
        if not self.device_types:
            raise DeviceError("no audio device types are available")
        first_input = next(
            (n for t in self.device_types for n in t.device_names(True) if n), ""
        )
        first_output = next(
            (n for t in self.device_types for n in t.device_names(False) if n), ""
        )
        self.apply_setup(
            replace(
                self._setup,
                input_device=first_input,
                output_device=first_output,
                input_channels=frozenset(range(num_inputs)) if first_input else frozenset(),
                output_channels=frozenset(range(num_outputs)) if first_output else frozenset(),
            )
        )

    def apply_setup(self, setup: DeviceSetup) -> None:
        """Open the devices named in ``setup``; channels beyond a device's count are dropped."""
        if setup.sample_rate <= 0:
            raise DeviceError(f"invalid sample rate: {setup.sample_rate}")
        if setup.buffer_size <= 0:
            raise DeviceError(f"invalid buffer size: {setup.buffer_size}")
        input_count = output_count = 0
        if setup.input_device:
            found = self._find(setup.input_device, inputs=True)
            if found is None:
                raise DeviceError(f"no such input device: {setup.input_device!r}")
            input_count = found
        if setup.output_device:
            found = self._find(setup.output_device, inputs=False)
            if found is None:
                raise DeviceError(f"no such output device: {setup.output_device!r}")
            output_count = found
        self._setup = replace(
            setup,
            input_channels=frozenset(c for c in setup.input_channels if 0 <= c < input_count),
            output_channels=frozenset(c for c in setup.output_channels if 0 <= c < output_count),
        )
        self._open = True


class AudioInputManager:
    """Selects input and output devices and tracks the level of the incoming signal."""

    def __init__(self, device_manager: Optional[DeviceManager] = None) -> None:
        self.device_manager = device_manager if device_manager is not None else DeviceManager()
        self._input_device = ""
        self._output_device = ""
        self._sample_rate = DEFAULT_SAMPLE_RATE
        self._buffer_size = DEFAULT_BUFFER_SIZE
        self._running = False
        self._initialised = False
        self._levels = [0.0] * NUM_CHANNELS

    # -- state ------------------------------------------------------------

    @property
    def current_input_device(self) -> str:
        return self._input_device

    @property
    def current_output_device(self) -> str:
        return self._output_device

    @property
    def active(self) -> bool:
        return self._running

    @property
    def sample_rate(self) -> float:
        return self._sample_rate

    @property
    def buffer_size(self) -> int:
        return self._buffer_size

    @property
    def has_valid_input_device(self) -> bool:
        return self._initialised and bool(self._input_device)

    @property
    def status(self) -> str:
        """A short human-readable description of what the manager is doing."""
        if not self._running:
            return "Stopped"
        if not self.has_valid_input_device:
            return "No input device selected"
        return "Recording from: " + self._input_device

    # -- device lists -----------------------------------------------------

    def _ensure_initialised(self) -> bool:
        if self._initialised:
            return True
        try:
            self.device_manager.initialise_with_default_devices(2, 2)
        except DeviceError as error:
            log.debug("Failed to initialise device manager: %s", error)
            return False
        self._initialised = True
        return True

    def _device_names(self, want_inputs: bool) -> list[str]:
        if not self._ensure_initialised():
            return []
        names: list[str] = []
        for device_type in self.device_manager.device_types:
            for name in device_type.device_names(want_inputs):
                if name and name not in names:
                    names.append(name)
        return names

    def available_input_devices(self) -> list[str]:
        """Distinct, non-empty input device names across all device types."""
        return self._device_names(True)

    def available_output_devices(self) -> list[str]:
        """Distinct, non-empty output device names across all device types."""
        return self._device_names(False)

    # -- device selection -------------------------------------------------

    def set_input_device(self, name: str) -> None:
        """Open ``name`` as the input device, in stereo if it has two or more channels.

        Raises ValueError for an empty name and DeviceError if the setup fails,
        in which case the manager is left stopped.
        """
        if not name:
            raise ValueError("device name must not be empty")
        was_running = self._running
        if was_running:
            self.stop()

        channel_count = 1
        for device_type in self.device_manager.device_types:
            count = device_type.input_channel_count(name)
            if count is not None:
                channel_count = count
                break

        setup = replace(
            self.device_manager.setup,
            input_device=name,
            output_device=self._output_device,
            use_default_input_channels=False,
            use_default_output_channels=False,
            input_channels=frozenset(range(2 if channel_count >= 2 else 1)),
            output_channels=frozenset(range(2)) if self._output_device else frozenset(),
            sample_rate=self._sample_rate,
            buffer_size=self._buffer_size,
        )
        self.device_manager.apply_setup(setup)
        self._input_device = name
        self._initialised = True
        if was_running:
            self.start()

    def set_output_device(self, name: str) -> None:
        """Open ``name`` as the output device with two output channels.

        Raises ValueError for an empty name and DeviceError if the setup fails,
        in which case the manager is left stopped.
        """
        if not name:
            raise ValueError("device name must not be empty")
        was_running = self._running
        if was_running:
            self.stop()

        setup = replace(
            self.device_manager.setup,
            input_device=self._input_device,
            output_device=name,
            use_default_input_channels=False,
            use_default_output_channels=False,
            input_channels=frozenset(range(2)) if self._input_device else frozenset(),
            output_channels=frozenset(range(2)),
            sample_rate=self._sample_rate,
            buffer_size=self._buffer_size,
        )
        self.device_manager.apply_setup(setup)
        self._output_device = name
        self._initialised = True
        if was_running:
            self.start()

    # -- running ----------------------------------------------------------

    def start(self) -> None:
        """Mark the manager as running; raises DeviceError if no device was ever opened."""
        if self._running:
            return
        if not self._initialised:
            raise DeviceError("no input device selected")
        self._running = True

    def stop(self) -> None:
        self._running = False

    # -- settings ---------------------------------------------------------

    def _reopen_input(self) -> None:
        if self._initialised and self._input_device:
            with suppress(DeviceError):
                self.set_input_device(self._input_device)

    def set_sample_rate(self, sample_rate: float) -> None:
        """Change the sample rate; non-positive values are ignored."""
        if sample_rate > 0:
            self._sample_rate = float(sample_rate)
            self._reopen_input()

    def set_buffer_size(self, buffer_size: int) -> None:
        """Change the buffer size; non-positive values are ignored."""
        if buffer_size > 0:
            self._buffer_size = int(buffer_size)
            self._reopen_input()

    # -- levels -----------------------------------------------------------

    def input_level(self, channel: int) -> float:
        """Held peak level of a channel; 0.0 for a channel out of range."""
        if 0 <= channel < NUM_CHANNELS:
            return self._levels[channel]
        return 0.0

    def has_input_signal(self) -> bool:
        """True if any channel's level is above roughly -60 dB."""
        return any(level > SIGNAL_THRESHOLD for level in self._levels)

    def update_input_levels(
        self, input_channels: Sequence[Optional[Sequence[float]]], num_samples: int
    ) -> None:
        """Fold a block of input into the held peak levels.

        ``input_channels`` holds one sample sequence per channel, or None for a
        channel with no data. A mono input is shown on both channels.
        """
        for channel, data in enumerate(input_channels[:NUM_CHANNELS]):
            if data is None:
                continue
            block = np.abs(np.asarray(data[:num_samples], dtype=np.float64))
            peak = float(block.max()) if block.size else 0.0
            self._levels[channel] = max(peak, self._levels[channel] * LEVEL_DECAY)

        if len(input_channels) == 1 and input_channels[0] is not None:
            self._levels[1] = self._levels[0]