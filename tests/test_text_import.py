import numpy as np
import pytest

from physiokit.channels import Category
from physiokit.exceptions import ChannelTypeNotFound, NotFound, StoreFileNotFound
from physiokit.io import create_store, import_text, load_store


@pytest.fixture
def csv_file(tmp_path):
    path = tmp_path / "recording.csv"
    rows = ["time,GSR,Trigger"]
    for i in range(20):
        rows.append(f"{i / 10:.1f},{5 + i * 0.01:.2f},{1 if i in (5, 6, 15) else 0}")
    path.write_text("\n".join(rows) + "\n")
    return path


def test_columns_are_guessed_from_names(csv_file):
    channels, provenance = import_text(csv_file, sr=10, units={"GSR": "uS"})
    assert [ch.chantype for ch in channels] == ["scr", "marker"]
    scr, marker = channels
    assert scr.units == "uS" and scr.n == 20
    assert marker.category is Category.EVENTS
    np.testing.assert_allclose(marker.data, [0.5, 1.5])
    assert provenance["columns"] == ["GSR", "Trigger"]
    assert provenance["source_file"] == str(csv_file)


def test_selection_needs_registry_types(csv_file):
    # vendor aliases are not channel types
    with pytest.raises(ChannelTypeNotFound):
        import_text(csv_file, sr=10, channels={1: "eda"})


def test_imported_channels_can_be_stored(csv_file, tmp_path):
    channels, provenance = import_text(csv_file, sr=10, channels={"GSR": "scr", 2: "marker"})
    path = tmp_path / "recording.npz"
    create_store(path, channels, infos=provenance)
    store = load_store(path)
    assert [ch.chantype for ch in store] == ["scr", "marker"]
    assert store.infos["columns"] == ["GSR", "Trigger"]


def test_missing_column_or_file(csv_file, tmp_path):
    with pytest.raises(NotFound):
        import_text(csv_file, sr=10, channels={"ECG": "ecg"})
    with pytest.raises(NotFound):
        import_text(csv_file, sr=10, channels={7: "ecg"})
    with pytest.raises(StoreFileNotFound):
        import_text(tmp_path / "absent.csv", sr=10)
