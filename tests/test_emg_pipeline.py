import numpy as np
import pytest

from physiokit.channels import Channel
from physiokit.config import EMGConfig
from physiokit.exceptions import ReplaceAsAddWarning, UnsupportedChannelCategory
from physiokit.io import create_store, load_store
from physiokit.pipelines import emg_pipeline, emg_pp

FS = 2000.0


@pytest.fixture
def emg_file(tmp_path, marker_channel):
    rng = np.random.default_rng(1)
    t = np.arange(int(2 * FS)) / FS
    burst = (t > 1.0) & (t < 1.2)
    x = 0.05 * rng.standard_normal(t.size) + 0.5 * np.sin(2 * np.pi * 60 * t)
    x[burst] += rng.standard_normal(burst.sum())
    path = tmp_path / "emg.npz"
    create_store(path, [Channel.wave("emg", x, sr=FS, units="mV"), marker_channel])
    return path


def test_output_is_emg_pp_with_same_length(emg_file):
    with pytest.warns(ReplaceAsAddWarning):
        channel_id = emg_pp(emg_file, EMGConfig(mains_frequency=60))
    store = load_store(emg_file)
    out = store[channel_id]
    assert channel_id == 3
    assert out.chantype == "emg_pp"
    assert out.sr == FS
    assert out.n == store[1].n


def test_second_run_replaces_previous_result(emg_file):
    config = EMGConfig(mains_frequency=60)
    with pytest.warns(ReplaceAsAddWarning):
        emg_pp(emg_file, config)
    assert emg_pp(emg_file, config) == 3
    assert len(load_store(emg_file)) == 3


def test_add_keeps_previous_result(emg_file):
    config = EMGConfig(mains_frequency=60, channel_action="add")
    assert emg_pp(emg_file, config) == 3
    assert emg_pp(emg_file, config) == 4
    assert "EMG preprocessing of channel 1" in load_store(emg_file).history[-1]


def test_envelope_follows_burst():
    rng = np.random.default_rng(2)
    t = np.arange(int(2 * FS)) / FS
    x = 0.01 * rng.standard_normal(t.size)
    burst = (t > 1.0) & (t < 1.2)
    x[burst] += rng.standard_normal(burst.sum())
    env, sr = emg_pipeline(EMGConfig()).run(x, FS)
    assert sr == FS
    assert env.size == x.size
    assert np.mean(env[burst]) > 10 * np.mean(np.abs(env[: int(0.5 * FS)]))


def test_events_channel_is_rejected(emg_file):
    with pytest.raises(UnsupportedChannelCategory):
        emg_pp(emg_file, EMGConfig(channel="marker"))
