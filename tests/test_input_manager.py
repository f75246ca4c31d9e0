import pytest

from audiochain.input_manager import (
    AudioInputManager,
    DeviceError,
    DeviceManager,
    DeviceSetup,
    DeviceType,
)


def make_manager():
    core = DeviceType(
        "Core",
        inputs={"Built-in Microphone": 1, "Interface": 2, "": 2},
        outputs={"Speakers": 2, "Interface": 2},
    )
    other = DeviceType(
        "Other",
        inputs={"Interface": 2, "Loopback": 2},
        outputs={"Speakers": 2, "Headphones": 2},
    )
    return AudioInputManager(DeviceManager([core, other]))


def test_input_devices_are_deduplicated_and_skip_empty_names():
    manager = make_manager()
    assert manager.available_input_devices() == ["Built-in Microphone", "Interface", "Loopback"]


def test_output_devices_are_deduplicated():
    manager = make_manager()
    assert manager.available_output_devices() == ["Speakers", "Interface", "Headphones"]


def test_device_lists_empty_when_initialisation_fails():
    manager = AudioInputManager(DeviceManager([]))
    assert manager.available_input_devices() == []
    assert manager.available_output_devices() == []


def test_mono_device_gets_one_input_channel():
    manager = make_manager()
    manager.set_input_device("Built-in Microphone")
    setup = manager.device_manager.setup
    assert setup.input_device == "Built-in Microphone"
    assert setup.input_channels == frozenset({0})
    assert setup.output_channels == frozenset()
    assert manager.current_input_device == "Built-in Microphone"


def test_stereo_device_gets_two_input_channels_and_output_kept():
    manager = make_manager()
    manager.set_output_device("Speakers")
    manager.set_input_device("Interface")
    setup = manager.device_manager.setup
    assert setup.input_channels == frozenset({0, 1})
    assert setup.output_device == "Speakers"
    assert setup.output_channels == frozenset({0, 1})
    assert setup.use_default_input_channels is False


def test_output_device_sets_two_output_channels():
    manager = make_manager()
    manager.set_output_device("Headphones")
    setup = manager.device_manager.setup
    assert manager.current_output_device == "Headphones"
    assert setup.output_channels == frozenset({0, 1})
    assert setup.input_channels == frozenset()


def test_empty_names_are_rejected():
    manager = make_manager()
    with pytest.raises(ValueError):
        manager.set_input_device("")
    with pytest.raises(ValueError):
        manager.set_output_device("")


def test_unknown_device_raises_and_leaves_manager_stopped():
    manager = make_manager()
    manager.set_input_device("Interface")
    manager.start()
    with pytest.raises(DeviceError):
        manager.set_input_device("Nowhere")
    assert manager.active is False
    assert manager.current_input_device == "Interface"


def test_device_change_restarts_running_manager():
    manager = make_manager()
    manager.set_input_device("Interface")
    manager.start()
    manager.set_input_device("Loopback")
    assert manager.active is True
    assert manager.status == "Recording from: Loopback"


def test_start_without_device_raises():
    manager = make_manager()
    with pytest.raises(DeviceError):
        manager.start()
    assert manager.active is False


def test_status_strings():
    manager = make_manager()
    assert manager.status == "Stopped"
    manager.set_output_device("Speakers")
    manager.start()
    assert manager.status == "No input device selected"
    assert manager.has_valid_input_device is False
    manager.set_input_device("Interface")
    assert manager.has_valid_input_device is True


def test_sample_rate_and_buffer_size_reopen_device():
    manager = make_manager()
    manager.set_input_device("Interface")
    manager.set_sample_rate(48000.0)
    manager.set_buffer_size(256)
    setup = manager.device_manager.setup
    assert setup.sample_rate == 48000.0
    assert setup.buffer_size == 256
    assert manager.sample_rate == 48000.0
    assert manager.buffer_size == 256


def test_non_positive_settings_are_ignored():
    manager = make_manager()
    manager.set_sample_rate(0)
    manager.set_buffer_size(-1)
    assert manager.sample_rate == 44100.0
    assert manager.buffer_size == 512


def test_peak_level_holds_and_decays():
    manager = make_manager()
    manager.update_input_levels([[0.1, -0.5, 0.2], [0.0, 0.25, 0.0]], 3)
    assert manager.input_level(0) == pytest.approx(0.5)
    assert manager.input_level(1) == pytest.approx(0.25)
    manager.update_input_levels([[0.0, 0.0, 0.0], [0.0, 0.0, 0.0]], 3)
    assert manager.input_level(0) == pytest.approx(0.5 * 0.98)
    assert manager.input_level(1) < 0.25


def test_only_num_samples_are_measured():
    manager = make_manager()
    manager.update_input_levels([[0.1, 0.9], [0.1, 0.9]], 1)
    assert manager.input_level(0) == pytest.approx(0.1)


def test_mono_input_is_shown_on_both_channels():
    manager = make_manager()
    manager.update_input_levels([[0.3, -0.6]], 2)
    assert manager.input_level(1) == manager.input_level(0) == pytest.approx(0.6)


def test_missing_channel_data_is_skipped():
    manager = make_manager()
    manager.update_input_levels([None, [0.4]], 1)
    assert manager.input_level(0) == 0.0
    assert manager.input_level(1) == pytest.approx(0.4)


def test_out_of_range_channel_level_is_zero():
    manager = make_manager()
    manager.update_input_levels([[1.0], [1.0]], 1)
    assert manager.input_level(-1) == 0.0
    assert manager.input_level(2) == 0.0


def test_input_signal_threshold():
    manager = make_manager()
    assert manager.has_input_signal() is False
    manager.update_input_levels([[0.0005], [0.0005]], 1)
    assert manager.has_input_signal() is False
    manager.update_input_levels([[0.01], [0.0]], 1)
    assert manager.has_input_signal() is True


def test_device_manager_rejects_bad_setup():
    devices = DeviceManager([DeviceType("Core", inputs={"Mic": 1})])
    with pytest.raises(DeviceError):
        devices.apply_setup(DeviceSetup(input_device="Mic", sample_rate=0))
    with pytest.raises(DeviceError):
        devices.apply_setup(DeviceSetup(output_device="Mic"))
    assert devices.is_open is False


def test_device_manager_clips_channels_to_device():
    devices = DeviceManager([DeviceType("Core", inputs={"Mic": 1})])
    devices.apply_setup(DeviceSetup(input_device="Mic", input_channels=frozenset({0, 1})))
    assert devices.setup.input_channels == frozenset({0})
    assert devices.is_open is True


def test_device_manager_callbacks_add_and_remove():
    devices = DeviceManager()

    def callback():
        return None

    devices.add_audio_callback(callback)
    devices.add_audio_callback(callback)
    assert devices.callbacks == [callback]
    devices.remove_audio_callback(callback)
    assert devices.callbacks == []


def test_device_type_channel_count_lookup():
    device_type = DeviceType("Core", inputs={"Mic": 1}, outputs={"Speakers": 2})
    assert device_type.input_channel_count("Mic") == 1
    assert device_type.input_channel_count("Speakers") == 0
    assert device_type.input_channel_count("Missing") is None