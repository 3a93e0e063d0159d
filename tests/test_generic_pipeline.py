import numpy as np
import pytest

from physiokit.channels import Channel
from physiokit.config import get_defaults
from physiokit.exceptions import InvalidInput, InvalidSpec, UnsupportedChannelCategory
from physiokit.io import create_store, load_store
from physiokit.pipelines import emg_pp, preprocess, preprocess_files
from physiokit.preprocessing import FilterSpec, Median, Notch


def test_median_adds_channel_with_history(store_file):
    n_history = len(load_store(store_file).history)
    channel_id = preprocess(store_file, "median", 5, channel="scr")
    store = load_store(store_file)
    assert channel_id == 3
    assert len(store) == 3
    assert store[3].n == store[1].n
    assert store[3].sr == store[1].sr
    assert len(store.history) == n_history + 1
    assert store.history[-1].startswith("median filter over 5 timepoints added on ")


def test_replace_overwrites_source_channel(store_file):
    assert preprocess(store_file, "median", 3, channel=1, channel_action="replace") == 1
    store = load_store(store_file)
    assert len(store) == 2
    assert "replaced" in store.history[-1]


def test_butter_with_downsampling(store_file):
    spec = get_defaults().modality_filter("scr")
    channel_id = preprocess(store_file, "butter", spec, channel="scr")
    out = load_store(store_file)[channel_id]
    assert out.sr == 10.0
    assert out.n == 100


def test_butter_from_option_mapping(store_file):
    channel_id = preprocess(store_file, "butter", {"lpfreq": 5, "lporder": 2}, channel="scr")
    assert load_store(store_file)[channel_id].sr == 100.0


def test_leaky_integrator_history(store_file):
    preprocess(store_file, "leaky_integrator", 0.5, channel="scr")
    assert load_store(store_file).history[-1].startswith("leaky integrator with tau 50 samples")


def test_failing_filter_leaves_store_untouched(store_file):
    before = store_file.read_bytes()
    # mains at the Nyquist frequency of a 100 Hz channel
    with pytest.raises(InvalidSpec):
        preprocess(store_file, "notch", 50, channel="scr")
    assert store_file.read_bytes() == before


def test_events_channel_is_rejected(store_file):
    with pytest.raises(UnsupportedChannelCategory):
        preprocess(store_file, "median", 3, channel="marker")


def test_invalid_method_and_params(store_file):
    with pytest.raises(InvalidInput):
        preprocess(store_file, "wavelet", 3, channel="scr")
    with pytest.raises(InvalidInput):
        preprocess(store_file, "median", 4, channel="scr")
    with pytest.raises(InvalidInput):
        preprocess(store_file, "butter", 5, channel="scr")
    with pytest.raises(InvalidInput):
        preprocess(store_file, "median", 3)
    with pytest.raises(InvalidInput):
        preprocess(store_file, "median", 3, channel="scr", channel_action="merge")


def test_inline_array():
    out = preprocess(np.array([0.0, 0.0, 9.0, 0.0, 0.0]), "median", 3, sr=10)
    np.testing.assert_array_equal(out, np.zeros(5))
    with pytest.raises(InvalidInput):
        preprocess(np.zeros(5), "median", 3)


def test_inline_channel(scr_channel):
    out = preprocess(scr_channel, "notch", {"freq": 20, "width": 0.05})
    assert out.chantype == "scr"
    assert out.n == scr_channel.n


def test_operator_params_from_mapping():
    assert preprocess(np.ones(7), "median", {"n": 5}, sr=1).size == 7
    assert Median(n=5) == Median(**{"n": 5})
    assert Notch(freq=60) != Notch(freq=50)
    assert FilterSpec(lpfreq=5) == FilterSpec.from_options({"lpfreq": 5})


def test_batch_collects_failures(store_file, tmp_path):
    missing = tmp_path / "missing.npz"
    result = preprocess_files([store_file, missing], method="median", params=3, channel="scr")
    assert not result.ok
    assert result.succeeded == {store_file: 3}
    assert "StoreFileNotFound" in result.failed[missing]


def test_batch_with_other_orchestrator(store_file):
    # the stored session has no EMG channel
    result = preprocess_files([store_file], emg_pp)
    assert list(result.failed) == [store_file]


def test_channel_with_gaps_is_not_filtered(tmp_path):
    x = np.sin(np.linspace(0, 20, 2000))
    x[100] = np.nan
    path = tmp_path / "blink.npz"
    create_store(path, [Channel.wave("pupil", x, sr=100, units="mm")])
    before = path.read_bytes()
    with pytest.raises(InvalidInput, match="interpolate_file"):
        preprocess(path, "butter", {"lpfreq": 5}, channel="pupil")
    assert path.read_bytes() == before
