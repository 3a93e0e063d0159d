import logging

import pytest

from physiokit.channels import default_registry
from physiokit.config import (
    MODALITY_FILTERS,
    EMGConfig,
    InterpolationConfig,
    Settings,
    ToolboxDefaults,
    configure_logging,
    get_defaults,
)
from physiokit.exceptions import InvalidInput, NotFound


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("PHYSIOKIT_MAINS_FREQUENCY", "60")
    monkeypatch.setenv("PHYSIOKIT_INTERPOLATED_FILE_PREFIX", "interp_")
    settings = Settings()
    assert settings.mains_frequency == 60.0
    assert settings.interpolated_file_prefix == "interp_"


def test_defaults_are_shared():
    defaults = get_defaults()
    assert defaults is get_defaults()
    assert "scr" in defaults.registry


def test_modality_filter_presets():
    defaults = get_defaults()
    pupil = defaults.modality_filter("Pupil")
    assert pupil.lpfreq == 50 and pupil.hpfreq is None
    assert pupil.direction == "bi" and pupil.down == 100
    assert defaults.modality_filter("emg_pp").down == 1000
    with pytest.raises(NotFound):
        defaults.modality_filter("eeg")


def test_emg_config_constants_are_fixed():
    config = EMGConfig(mains_frequency=60)
    assert (config.bandpass_low_hz, config.bandpass_high_hz) == (50.0, 470.0)
    assert config.output_type == "emg_pp"
    with pytest.raises(TypeError):
        EMGConfig(bandpass_order=2)


@pytest.mark.parametrize("kwargs", [
    {"mains_frequency": 0},
    {"mains_frequency": "50"},
    {"channel": 1.5},
    {"channel_action": "merge"},
])
def test_emg_config_validation(kwargs):
    with pytest.raises(InvalidInput):
        EMGConfig(**kwargs)


def test_interpolation_config_validation():
    assert InterpolationConfig(method="cubic").method == "cubic"
    with pytest.raises(InvalidInput):
        InterpolationConfig(method="akima")


def test_configure_logging():
    logger = logging.getLogger("physiokit")
    previous = logger.level
    try:
        configure_logging(Settings(log_level="debug"))
        assert logger.level == logging.DEBUG
        with pytest.raises(InvalidInput):
            configure_logging(Settings(log_level="chatty"))
    finally:
        logger.setLevel(previous)


def test_toolbox_defaults_fill_in_modality_presets():
    defaults = ToolboxDefaults(registry=default_registry(), settings=Settings())
    assert defaults.modality_filters is MODALITY_FILTERS
    assert defaults.modality_filter("dcm").direction == "bi"
    custom = ToolboxDefaults(default_registry(), Settings(), modality_filters={})
    with pytest.raises(NotFound):
        custom.modality_filter("scr")
