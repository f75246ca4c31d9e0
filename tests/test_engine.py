import numpy as np
import pytest

from audiochain.dsp import decibels_to_gain
from audiochain.engine import AudioChainEngine
from audiochain.input_manager import AudioInputManager, DeviceManager, DeviceType


def make_engine(inputs=None, outputs=None, plugin_host=None):
    if inputs is None:
        inputs = {"Interface": 2, "Built-in Microphone": 1}
    if outputs is None:
        outputs = {"Speakers": 2, "Headphones": 2}
    manager = DeviceManager([DeviceType("Core", inputs=inputs, outputs=outputs)])
    return AudioChainEngine(AudioInputManager(manager), plugin_host=plugin_host)


def running_engine(**kwargs):
    engine = make_engine(**kwargs)
    engine.refresh_devices()
    engine.device_about_to_start(44100.0, 4)
    assert engine.toggle_processing() is True
    return engine


class DoublingHost:
    def __init__(self):
        self.prepared = None
        self.released = False

    def prepare_to_play(self, samples_per_block, sample_rate):
        self.prepared = (samples_per_block, sample_rate)

    def process_audio(self, buffer):
        buffer *= 2.0
        return buffer

    def release_resources(self):
        self.released = True


def test_refresh_prefers_microphone():
    engine = make_engine()
    engine.refresh_devices()
    assert engine.input_devices == ["Interface", "Built-in Microphone"]
    assert engine.selected_input == "Built-in Microphone"
    assert engine.input_manager.current_input_device == "Built-in Microphone"


def test_refresh_falls_back_to_first_input():
    engine = make_engine(inputs={"Line In": 2, "Other": 2})
    engine.refresh_devices()
    assert engine.selected_input == "Line In"


def test_refresh_selects_first_output():
    engine = make_engine()
    engine.refresh_devices()
    assert engine.output_devices == ["Speakers", "Headphones"]
    assert engine.selected_output == "Speakers"
    assert engine.input_manager.current_output_device == "Speakers"


def test_select_unknown_device_raises():
    engine = make_engine()
    engine.refresh_devices()
    with pytest.raises(ValueError):
        engine.select_input_device("Nowhere")
    with pytest.raises(ValueError):
        engine.select_output_device("Nowhere")


def test_toggle_without_device_does_not_start():
    engine = make_engine()
    assert engine.toggle_processing() is False
    assert engine.processing_active is False
    assert engine.input_manager.device_manager.callbacks == []


def test_toggle_starts_and_stops():
    engine = running_engine()
    manager = engine.input_manager.device_manager
    assert engine.processing_active is True
    assert engine.device_selection_enabled is False
    assert engine.processor.active is True
    assert engine.input_manager.active is True
    assert manager.callbacks == [engine.audio_callback]

    assert engine.toggle_processing() is False
    assert engine.processing_active is False
    assert engine.device_selection_enabled is True
    assert engine.processor.active is False
    assert engine.input_manager.active is False
    assert manager.callbacks == []


def test_callback_silent_when_inactive():
    engine = make_engine()
    engine.refresh_devices()
    out = engine.audio_callback([[0.5, 0.5, 0.5, 0.5]] * 2, 2, 4)
    assert out.shape == (2, 4)
    assert np.all(out == 0.0)


def test_callback_passes_stereo_through():
    engine = running_engine()
    left = [0.1, -0.2, 0.3, -0.4]
    right = [0.5, 0.25, -0.125, 0.0]
    out = engine.audio_callback([left, right], 2, 4)
    np.testing.assert_allclose(out[0], left, rtol=1e-6)
    np.testing.assert_allclose(out[1], right, rtol=1e-6)


def test_mono_input_duplicated_to_both_outputs():
    engine = running_engine()
    mono = [0.25, -0.5, 0.125, 0.0]
    out = engine.audio_callback([mono], 2, 4)
    np.testing.assert_allclose(out[0], mono, rtol=1e-6)
    np.testing.assert_array_equal(out[0], out[1])


def test_callback_updates_input_levels():
    engine = running_engine()
    engine.audio_callback([[0.1, -0.5, 0.2, 0.0]], 2, 4)
    left, right = engine.input_levels
    assert left == pytest.approx(0.5)
    assert right == left
    assert engine.input_manager.has_input_signal() is True


def test_missing_input_leaves_outputs_silent_and_levels_untouched():
    engine = running_engine()
    out = engine.audio_callback(None, 2, 4)
    assert np.all(out == 0.0)
    assert engine.input_levels == (0.0, 0.0)


def test_zero_outputs_returns_empty_block():
    engine = running_engine()
    out = engine.audio_callback([[0.1, 0.2, 0.3, 0.4]] * 2, 0, 4)
    assert out.shape == (0, 4)
    assert engine.processor.peak_level(0) == pytest.approx(0.4, rel=1e-6)


def test_processor_gain_applied():
    engine = make_engine()
    engine.refresh_devices()
    engine.processor.gain = -6.0
    engine.device_about_to_start(44100.0, 4)
    engine.toggle_processing()
    data = [0.5, 0.5, 0.5, 0.5]
    out = engine.audio_callback([data, data], 2, 4)
    expected = 0.5 * decibels_to_gain(-6.0)
    np.testing.assert_allclose(out, np.full((2, 4), expected), rtol=1e-5)


def test_device_stopped_bypasses_processor():
    engine = make_engine()
    engine.refresh_devices()
    engine.processor.gain = -6.0
    engine.device_about_to_start(44100.0, 4)
    engine.toggle_processing()
    engine.device_stopped()
    data = [0.5, 0.5, 0.5, 0.5]
    out = engine.audio_callback([data, data], 2, 4)
    np.testing.assert_allclose(out, np.full((2, 4), 0.5), rtol=1e-6)


def test_plugin_host_is_prepared_used_and_released():
    host = DoublingHost()
    engine = running_engine(plugin_host=host)
    assert host.prepared == (4, 44100.0)
    data = [0.1, 0.2, 0.3, 0.4]
    out = engine.audio_callback([data, data], 2, 4)
    np.testing.assert_allclose(out[0], np.array(data) * 2.0, rtol=1e-6)
    engine.device_stopped()
    assert host.released is True


def test_device_about_to_start_configures_manager_and_processor():
    engine = make_engine()
    engine.refresh_devices()
    engine.device_about_to_start(48000.0, 256)
    assert engine.input_manager.sample_rate == 48000.0
    assert engine.input_manager.buffer_size == 256
    assert engine.processor.sample_rate == 48000.0
    assert engine.processor.block_size == 256
    setup = engine.input_manager.device_manager.setup
    assert setup.sample_rate == 48000.0
    assert setup.buffer_size == 256


def test_context_manager_stops_processing():
    with running_engine() as engine:
        assert engine.processing_active is True
    assert engine.processing_active is False
    assert engine.input_manager.device_manager.callbacks == []
    assert engine.processor.active is False