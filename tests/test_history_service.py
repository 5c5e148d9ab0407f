"""GenerationHistoryService and StorageService tests."""

from __future__ import annotations

import base64
import json

import pytest

from conftest import PNG_BYTES, MemoryStorage
from modules.design.models import DesignRequest, GeneratedDesign, TattooStyle, ViewMode
from modules.services.history_service import GenerationHistoryService, filter_valid
from modules.services.storage_service import StorageService

KEY = "inkspire_history"
IMAGE_URL = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")


def make_design(index: int, **request_fields) -> GeneratedDesign:
    request = DesignRequest(prompt=f"concept {index}", **request_fields)
    return GeneratedDesign(
        id=f"id-{index}",
        image_url=IMAGE_URL,
        original_request=request,
        refined_prompt=f"refined {index}",
        timestamp=1_700_000_000_000 + index,
    )


def test_append_prepends_and_persists():
    storage = MemoryStorage()
    history = GenerationHistoryService(storage, key=KEY, max_items=None)

    history.append(make_design(1))
    history.append(make_design(2))

    assert [design.id for design in history.entries()] == ["id-2", "id-1"]
    assert storage.writes == 2
    persisted = json.loads(storage.blobs[KEY])
    assert [entry["id"] for entry in persisted] == ["id-2", "id-1"]
    assert persisted[0]["originalRequest"]["viewMode"] == ViewMode.FLASH_SHEET.value


def test_capped_history_keeps_newest():
    history = GenerationHistoryService(MemoryStorage(), key=KEY, max_items=5)

    for index in range(8):
        history.append(make_design(index))

    assert len(history) == 5
    assert [design.id for design in history.entries()] == ["id-7", "id-6", "id-5", "id-4", "id-3"]


def test_unbounded_history_keeps_everything():
    history = GenerationHistoryService(MemoryStorage(), key=KEY, max_items=None)

    for index in range(12):
        history.append(make_design(index))

    assert len(history) == 12


def test_duplicate_id_rejected():
    history = GenerationHistoryService(MemoryStorage(), key=KEY)
    history.append(make_design(1))

    with pytest.raises(ValueError):
        history.append(make_design(1))
    assert len(history) == 1


def test_round_trip_through_storage():
    storage = MemoryStorage()
    writer = GenerationHistoryService(storage, key=KEY, max_items=None)
    designs = [make_design(1, style=TattooStyle.JAPANESE), make_design(2, reference_image=IMAGE_URL)]
    for design in designs:
        writer.append(design)

    reader = GenerationHistoryService(storage, key=KEY, max_items=None)
    report = reader.load()

    assert report.discarded == 0
    assert not report.corrupted
    assert reader.entries() == list(reversed(designs))


def test_load_filters_invalid_entries_and_backfills_view_mode():
    valid = make_design(1).to_dict()
    legacy = make_design(2).to_dict()
    del legacy["originalRequest"]["viewMode"]
    missing_id = make_design(3).to_dict()
    del missing_id["id"]
    missing_image = make_design(4).to_dict()
    missing_image["imageUrl"] = ""
    raw = [valid, legacy, missing_id, missing_image, "not-an-object"]
    storage = MemoryStorage({KEY: json.dumps(raw)})

    history = GenerationHistoryService(storage, key=KEY, max_items=None)
    report = history.load()

    kept, dropped = filter_valid(raw)
    assert dropped == 3
    assert report.discarded == 3
    assert [design.to_dict() for design in report.entries] == kept
    assert history.select("id-2").original_request.view_mode is ViewMode.FLASH_SHEET


def test_filter_valid_does_not_mutate_input():
    entry = make_design(1).to_dict()
    del entry["originalRequest"]["viewMode"]

    kept, _ = filter_valid([entry])

    assert "viewMode" not in entry["originalRequest"]
    assert kept[0]["originalRequest"]["viewMode"] == ViewMode.FLASH_SHEET.value


@pytest.mark.parametrize("blob", ["{not json", json.dumps({"id": "x"}), json.dumps("text"), "null"])
def test_corrupted_blob_yields_empty_history(blob):
    storage = MemoryStorage({KEY: blob})
    history = GenerationHistoryService(storage, key=KEY)

    report = history.load()

    assert report.corrupted
    assert report.entries == []
    assert len(history) == 0
    assert KEY not in storage.blobs


def test_load_without_blob_is_empty():
    report = GenerationHistoryService(MemoryStorage(), key=KEY).load()

    assert report.entries == []
    assert not report.corrupted


def test_entry_with_unknown_enum_is_dropped():
    broken = make_design(1).to_dict()
    broken["originalRequest"]["style"] = "Cubism"
    storage = MemoryStorage({KEY: json.dumps([broken, make_design(2).to_dict()])})

    report = GenerationHistoryService(storage, key=KEY).load()

    assert [design.id for design in report.entries] == ["id-2"]
    assert report.discarded == 1


def test_select_unknown_id_raises():
    history = GenerationHistoryService(MemoryStorage(), key=KEY)
    history.append(make_design(1))

    assert history.select("id-1").refined_prompt == "refined 1"
    with pytest.raises(KeyError):
        history.select("missing")


def test_clear_removes_blob():
    storage = MemoryStorage()
    history = GenerationHistoryService(storage, key=KEY)
    history.append(make_design(1))

    history.clear()

    assert len(history) == 0
    assert KEY not in storage.blobs


def test_storage_service_round_trip(tmp_path):
    storage = StorageService(tmp_path / "data", tmp_path / "out")
    history = GenerationHistoryService(storage, key=KEY)
    history.append(make_design(1))

    reloaded = GenerationHistoryService(StorageService(tmp_path / "data"), key=KEY)
    reloaded.load()

    assert (tmp_path / "data" / f"{KEY}.json").exists()
    assert reloaded.entries() == history.entries()


def test_storage_service_saves_download(tmp_path):
    storage = StorageService(tmp_path / "data", tmp_path / "out")

    path = storage.save_image(make_design(7))

    assert path.name == "inkspire-id-7.png"
    assert path.read_bytes() == PNG_BYTES


def test_storage_service_rejects_path_like_keys(tmp_path):
    with pytest.raises(ValueError):
        StorageService(tmp_path).read("../escape")
