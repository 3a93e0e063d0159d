import os
import stat

import numpy as np
import pytest

from physiokit.channels import Channel
from physiokit.exceptions import (
    AmbiguousTarget,
    CorruptStoreFile,
    InvalidInput,
    ReplaceAsAddWarning,
    StoreFileNotFound,
)
from physiokit.io import create_store, load_channel, load_store, save_store, write_channel


def test_round_trip(store_file, scr_channel, marker_channel):
    store = load_store(store_file)
    assert len(store) == 2
    assert store[1].same_payload(scr_channel)
    assert store[2].same_payload(marker_channel)
    assert list(store[2].markerinfo.name) == ["cs+", "cs-", "cs+"]
    assert store.infos == {"source": "test"}
    assert store.history[0].startswith("Created with 2 channels")


def test_create_refuses_to_overwrite(store_file, scr_channel):
    with pytest.raises(InvalidInput):
        create_store(store_file, [scr_channel])


def test_missing_file(tmp_path):
    with pytest.raises(StoreFileNotFound):
        load_store(tmp_path / "nothing.npz")


def test_corrupt_file(tmp_path):
    path = tmp_path / "broken.npz"
    path.write_bytes(b"not a store file")
    with pytest.raises(CorruptStoreFile):
        load_store(path)


def test_save_leaves_no_temporary_files(store_file):
    store = load_store(store_file)
    save_store(store_file, store)
    assert sorted(os.listdir(store_file.parent)) == ["session.npz"]


def test_load_channel_returns_id(store_file):
    ch, channel_id = load_channel(store_file, "marker")
    assert channel_id == 2
    assert ch.category.value == "events"


def test_write_channel_add_and_replace(store_file, scr_channel):
    ids = write_channel(store_file, scr_channel.with_data(scr_channel.data * 2), "add")
    assert ids == [3]
    ids = write_channel(store_file, scr_channel, "replace")
    assert ids == [3]
    store = load_store(store_file)
    assert len(store) == 3
    np.testing.assert_allclose(store[3].data, scr_channel.data)
    assert len(store.history) == 3


def test_write_channel_replace_missing_type_adds(store_file):
    hr = Channel.wave("hr", np.full(10, 60.0), sr=1.0, units="bpm")
    with pytest.warns(ReplaceAsAddWarning):
        ids = write_channel(store_file, hr, "replace")
    assert ids == [3]


def test_write_channel_delete(store_file):
    assert write_channel(store_file, None, "delete", channel="scr") == [1]
    store = load_store(store_file)
    assert [ch.chantype for ch in store] == ["marker"]
    assert "deleted" in store.history[-1]


def test_write_channel_delete_nothing_leaves_file(store_file):
    before = store_file.read_bytes()
    assert write_channel(store_file, None, "delete", channel="hr", delete_policy="all") == []
    assert store_file.read_bytes() == before


def test_failed_write_does_not_touch_file(store_file, scr_channel):
    write_channel(store_file, scr_channel, "add")
    before = store_file.read_bytes()
    with pytest.raises(AmbiguousTarget):
        write_channel(store_file, scr_channel, "replace", delete_policy="all")
    assert store_file.read_bytes() == before


def test_write_channel_rejects_unknown_action(store_file, scr_channel):
    with pytest.raises(InvalidInput):
        write_channel(store_file, scr_channel, "append")


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_save_keeps_file_permissions(store_file):
    os.chmod(store_file, 0o640)
    save_store(store_file, load_store(store_file))
    assert stat.S_IMODE(os.stat(store_file).st_mode) == 0o640


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_new_file_gets_default_permissions(tmp_path, scr_channel):
    umask = os.umask(0)
    os.umask(umask)
    path = tmp_path / "fresh.npz"
    create_store(path, [scr_channel])
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o666 & ~umask
