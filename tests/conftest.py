import numpy as np
import pytest

from physiokit.channels import Channel, MarkerInfo
from physiokit.io import create_store


@pytest.fixture
def scr_channel():
    # slow 0.2 Hz response plus a small 20 Hz ripple, 10 s at 100 Hz
    t = np.arange(1000) / 100.0
    x = 5.0 + np.sin(2 * np.pi * 0.2 * t) + 0.05 * np.sin(2 * np.pi * 20.0 * t)
    return Channel.wave("scr", x, sr=100.0, units="uS")


@pytest.fixture
def marker_channel():
    info = MarkerInfo(value=[1, 2, 1], name=["cs+", "cs-", "cs+"])
    return Channel.events("marker", [1.0, 2.5, 4.0], markerinfo=info)


@pytest.fixture
def store_file(tmp_path, scr_channel, marker_channel):
    path = tmp_path / "session.npz"
    create_store(path, [scr_channel, marker_channel], infos={"source": "test"})
    return path
