import numpy as np
import pytest

from physiokit.artifacts import blank, clipping_mask, spike_mask
from physiokit.channels import Channel
from physiokit.config import ArtifactConfig
from physiokit.exceptions import InvalidInput
from physiokit.io import create_store, load_store
from physiokit.pipelines import remove_artifacts


def test_spike_mask_flags_outlier():
    x = np.sin(np.linspace(0, 10, 1000))
    x[500] = 50.0
    mask = spike_mask(x, z_thresh=6.0)
    assert mask.sum() == 1 and mask[500]


def test_spike_mask_needs_two_finite_samples():
    assert not spike_mask(np.array([np.nan, 1.0])).any()


def test_clipping_mask_defaults_to_signal_maximum():
    x = np.array([0.1, 1.0, 1.0, -0.5, -1.0])
    np.testing.assert_array_equal(clipping_mask(x), [False, True, True, False, True])
    np.testing.assert_array_equal(clipping_mask(x, 2.0), np.zeros(5, dtype=bool))


def test_blank_copies():
    x = np.arange(4.0)
    out = blank(x, [False, True, False, False])
    assert np.isnan(out[1])
    assert x[1] == 1.0


@pytest.fixture
def spiky_file(tmp_path, scr_channel):
    x = scr_channel.data.copy()
    x[500] = 100.0
    path = tmp_path / "spiky.npz"
    create_store(path, [scr_channel.with_data(x)])
    return path


def test_remove_artifacts_replaces_spike(spiky_file, scr_channel):
    channel_id = remove_artifacts(spiky_file, "scr", ArtifactConfig(channel_action="replace"))
    store = load_store(spiky_file)
    assert channel_id == 1 and len(store) == 1
    assert store[1].data[500] == pytest.approx(scr_channel.data[500], abs=0.1)
    assert "(|z| > 6, 1 samples)" in store.history[-1]


def test_remove_artifacts_adds_by_default(spiky_file):
    assert remove_artifacts(spiky_file, "scr") == 2


def test_clean_channel_is_copied(store_file, scr_channel):
    channel_id = remove_artifacts(store_file, 1)
    assert load_store(store_file)[channel_id].same_payload(scr_channel)


def test_config_validation():
    with pytest.raises(InvalidInput):
        ArtifactConfig(z_threshold=0)
    with pytest.raises(InvalidInput):
        ArtifactConfig(method="quadratic")
