import numpy as np
import pytest

from physiokit.channels import Channel
from physiokit.config import InterpolationConfig
from physiokit.exceptions import InvalidInput, UnsupportedChannelCategory
from physiokit.io import create_store, load_store
from physiokit.pipelines import interpolate_data, interpolate_file


@pytest.fixture
def gappy_file(tmp_path, marker_channel):
    pupil = np.linspace(3.0, 4.0, 50)
    pupil[10:15] = np.nan
    hopeless = np.full(50, np.nan)
    hopeless[0] = 1.0
    path = tmp_path / "eye.npz"
    create_store(path, [
        Channel.wave("pupil_l", pupil, sr=50, units="mm"),
        marker_channel,
        Channel.wave("pupil_r", hopeless, sr=50, units="mm"),
    ])
    return path


def test_single_channel_is_added(gappy_file):
    channel_id = interpolate_file(gappy_file, "pupil_l")
    store = load_store(gappy_file)
    assert channel_id == 4
    assert not np.isnan(store[4].data).any()
    np.testing.assert_allclose(store[4].data, np.linspace(3.0, 4.0, 50))
    assert store.history[-1].startswith("Interpolated channel added on ")


def test_single_channel_is_replaced(gappy_file):
    config = InterpolationConfig(channel_action="replace", method="pchip")
    assert interpolate_file(gappy_file, 1, config) == 1
    store = load_store(gappy_file)
    assert len(store) == 3
    assert not np.isnan(store[1].data).any()


def test_events_channel_is_rejected(gappy_file):
    with pytest.raises(UnsupportedChannelCategory):
        interpolate_file(gappy_file, "marker")


def test_all_channels_go_to_new_file(gappy_file):
    before = gappy_file.read_bytes()
    result = interpolate_file(gappy_file, "all")
    assert result.output == gappy_file.with_name("ieye.npz")
    assert result.succeeded == {1: pytest.approx(0.1)}
    assert "InsufficientData" in result.failed[3]
    assert gappy_file.read_bytes() == before

    out = load_store(result.output)
    assert len(out) == 3
    assert not np.isnan(out[1].data).any()
    # channels that could not be filled are kept as they were
    assert np.isnan(out[3].data[1:]).all()
    assert out.history[-1].startswith("Interpolated from eye.npz")


def test_existing_output_needs_overwrite(gappy_file):
    interpolate_file(gappy_file, "all")
    with pytest.raises(InvalidInput):
        interpolate_file(gappy_file, "all")
    assert interpolate_file(gappy_file, "all", InterpolationConfig(overwrite=True)).output.exists()


def test_inline_data():
    filled, fraction = interpolate_data([1.0, np.nan, 3.0], InterpolationConfig(method="nearest"))
    assert filled[1] in (1.0, 3.0)
    assert fraction == pytest.approx(1 / 3)
