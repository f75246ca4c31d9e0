# audiochain

This is the processing core of a real-time audio chain. It chooses input and
output devices, applies smoothed gain to blocks of audio, and keeps peak and
RMS level meters. It also runs a windowed FFT spectrum analysis. For a front
end, it provides the geometry and theme rules needed to draw the header, the
level meters and the controls.

## Installation

```
pip install .
```

To run the tests, install the `test` extra:

```
pip install ".[test]"
pytest
```

## Modules

- `audiochain.dsp`
  - `decibels_to_gain` and `gain_to_decibels` convert between decibels and linear gain. Both take an optional floor, which defaults to -100 dB.
  - `SmoothedValue` ramps linearly towards a target over a number of steps. The number of steps comes from `reset(sample_rate, ramp_seconds)`.
- `audiochain.processor`
  - `AudioProcessor` applies gain (`gain`, in dB) to a `(channels, samples)` NumPy buffer in place. The gain is smoothed over 50 ms.
  - It keeps a decaying peak meter and an RMS meter for each of two channels (`peak_level`, `rms_level`, `reset_meters`).
  - It collects 1024-sample frames for each channel. Each frame is Hann-windowed and transformed. The 512-bin spectrum in dB is then smoothed from one frame to the next (`spectrum`).
  - A block is processed only when the processor is prepared (`prepare_to_play`), started (`start`) and `enabled`.
- `audiochain.input_manager`
  - `DeviceType` describes one driver family and the channel counts of its devices.
  - `DeviceManager` holds the device types, the applied `DeviceSetup` and the registered audio callbacks.
  - `AudioInputManager` lists the distinct device names. It opens an input in stereo when the device has two or more channels and in mono otherwise, and opens outputs in stereo. It also keeps held input levels (`input_level`, `has_input_signal`, `update_input_levels`).
  - Failures raise `DeviceError`. An empty device name raises `ValueError`.
- `audiochain.engine`
  - `AudioChainEngine` connects an `AudioInputManager`, an `AudioProcessor` and an optional plugin chain. The plugin chain is any object with `prepare_to_play`, `process_audio` and `release_resources`.
  - `audio_callback` returns the output block. A mono input is duplicated to both channels.
  - `toggle_processing` starts and stops processing, and device selection is locked while it runs.
  - `refresh_devices` lists the devices and selects defaults: an input whose name contains "microphone" if there is one, and otherwise the first input, plus the first output.
  - The engine is also a context manager that stops processing on exit.
- `audiochain.layout`
  - `Rect`, `Layout` and `compute_layout(width, height)` place the header controls, the plugin-chain area and the two level meters.
  - `normalized_meter_level` maps a level onto the -60 dB to 0 dB range.
  - `meter_colour` picks the colour of a meter bar.
  - `starts_window_drag` tells whether a click in the header should move the window.
- `audiochain.theme`
  - `Colour` is an ARGB colour with `brighter`, `darker` and `with_alpha`.
  - `Font` describes a font, and `Palette` holds the dark theme's colours.
  - `text_button_font`, `is_cta_button` and `button_gradient` give the button styling rules.
  - `processing_icon` gives the play or stop icon, and `combo_arrow_points` gives the combo-box chevron.

## Example

```python
import numpy as np
from audiochain.engine import AudioChainEngine
from audiochain.input_manager import AudioInputManager, DeviceManager, DeviceType

devices = DeviceManager([
    DeviceType("Core", inputs={"Built-in Microphone": 1}, outputs={"Speakers": 2}),
])
with AudioChainEngine(AudioInputManager(devices)) as engine:
    engine.refresh_devices()
    engine.device_about_to_start(48000.0, 256)
    engine.toggle_processing()

    out = engine.audio_callback([np.full(256, 0.25)], 2, 256)
    print(out.shape, engine.input_levels)   # (2, 256) (0.25, 0.25)
```

## What the package does not do

- It does not talk to sound hardware. A `DeviceManager` only records the devices you describe and the setup applied to them. Your own audio backend must call `AudioChainEngine.audio_callback` and the `device_about_to_start` and `device_stopped` hooks.
- It does not load or host audio plugins. The engine passes each block to whatever plugin-chain object you supply.
- It has no window and no command-line program. `audiochain.layout` and `audiochain.theme` compute positions, colours and shapes, but they draw nothing.