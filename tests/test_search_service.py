from __future__ import annotations

import pytest

from portal.core import config
from portal.services import search
from portal.services.drive import DriveListingError
from portal.services.game_search import CatalogEntry, FileCandidate
from portal.services.mappings import upsert_game_mapping


@pytest.fixture
def storefront(monkeypatch):
    calls = []
    catalog = []

    def fake_search(query, limit=80):
        calls.append({"query": query, "limit": limit})
        return list(catalog)

    monkeypatch.setattr(search, "search_steam_apps_by_name", fake_search)
    return calls, catalog


@pytest.fixture
def app_details(monkeypatch):
    details = {}
    monkeypatch.setattr(search, "fetch_steam_app_details", lambda app_id: details.get(app_id))
    return details


@pytest.fixture
def drive_mode(monkeypatch):
    monkeypatch.setattr(config, "DRIVE_MODE", "drive")
    monkeypatch.setattr(config, "GOOGLE_FOLDER_ID", "folder-1")
    files = []
    monkeypatch.setattr(search, "load_drive_files", lambda folder_id: list(files))
    return files


def test_blank_query_returns_empty_results(storefront):
    calls, _ = storefront
    assert search.search_games("   ") == {"results": []}
    assert search.search_games(None) == {"results": []}
    assert calls == []


def test_local_search_ranks_catalog(storefront):
    calls, _ = storefront

    payload = search.search_games("413150")

    assert payload == {
        "results": [{"id": "413150", "appId": "413150", "name": "Stardew Valley", "gameName": None}],
        "source": "local",
    }
    assert calls == []


def test_sparse_local_results_are_widened_with_storefront(storefront):
    calls, catalog = storefront
    catalog.extend(
        [
            CatalogEntry(name="Stardew Valley", app_id="413150"),
            CatalogEntry(name="Stardew Valley Soundtrack", app_id="1153210"),
        ]
    )

    payload = search.search_games("stardew")

    assert calls == [{"query": "stardew", "limit": config.SEARCH_STEAM_LIMIT_LOCAL}]
    results = payload["results"]
    assert [row["appId"] for row in results] == ["413150", "1153210"]
    assert "art" not in results[0]
    assert results[1]["gameName"] == "Stardew Valley Soundtrack"
    assert "1153210" in results[1]["art"]


def test_unknown_app_id_gets_placeholder(storefront, app_details):
    calls, _ = storefront
    app_details["999999"] = {"appId": "999999", "name": "Mystery Game", "headerImage": "https://img/999999.jpg"}

    payload = search.search_games("999999")

    assert calls == []
    assert payload["results"] == [
        {
            "id": "999999",
            "appId": "999999",
            "name": "Mystery Game",
            "gameName": "Mystery Game",
            "art": "https://img/999999.jpg",
        }
    ]


def test_placeholder_without_storefront_details(storefront, app_details):
    payload = search.search_games("888888")
    row = payload["results"][0]
    assert row["name"] == "App 888888"
    assert row["gameName"] is None
    assert "888888" in row["art"]


def test_mapping_records_lead_local_results(storefront, db_session):
    _, catalog = storefront
    catalog.append(CatalogEntry(name="Hades", app_id="1145360"))
    upsert_game_mapping(db_session, app_id="1145360", name="Hades", file_id="file-hades", size_bytes=2048)

    payload = search.search_games("hades", db=db_session)

    assert len(payload["results"]) == 1
    row = payload["results"][0]
    assert row["id"] == "file-hades"
    assert row["fileId"] == "file-hades"
    assert row["size"] == 2048
    assert "1145360" in row["art"]


def test_drive_mode_requires_folder(monkeypatch, storefront):
    monkeypatch.setattr(config, "DRIVE_MODE", "drive")
    monkeypatch.setattr(config, "GOOGLE_FOLDER_ID", "")

    with pytest.raises(search.SearchConfigError):
        search.search_games("factorio")


def test_drive_mode_ranks_files(drive_mode, storefront):
    calls, _ = storefront
    drive_mode.extend(
        [
            FileCandidate(id="f1", name="427520.zip", size=1000),
            FileCandidate(id="f2", name="892970.zip"),
            FileCandidate(id="f3", name="413150.zip"),
            FileCandidate(id="f4", name="526870.zip"),
            FileCandidate(id="f5", name="548430.zip"),
        ]
    )

    payload = search.search_games("427520")

    assert payload["source"] == "drive"
    assert payload["results"] == [
        {"id": "f1", "appId": "427520", "name": "427520.zip", "gameName": "Factorio", "size": 1000}
    ]
    assert calls == []


def test_drive_mode_uses_storefront_names_when_sparse(drive_mode, storefront):
    calls, catalog = storefront
    catalog.append(CatalogEntry(name="Hades", app_id="1145360"))
    drive_mode.extend(
        [
            FileCandidate(id="f1", name="1145360.zip"),
            FileCandidate(id="f2", name="427520 Factorio.zip"),
        ]
    )

    payload = search.search_games("hades")

    assert calls == [{"query": "hades", "limit": config.SEARCH_STEAM_LIMIT_DRIVE}]
    assert payload["results"] == [
        {"id": "f1", "appId": "1145360", "name": "1145360.zip", "gameName": "Hades"}
    ]


def test_drive_mode_keeps_files_without_or_sharing_app_id(drive_mode, storefront):
    drive_mode.extend(
        [
            FileCandidate(id="a", name="Stardew Valley.zip"),
            FileCandidate(id="b", name="413150 Stardew Valley Windows.zip"),
            FileCandidate(id="c", name="413150 Stardew Valley Linux.zip"),
        ]
    )

    payload = search.search_games("stardew valley")

    rows = payload["results"]
    assert sorted(row["id"] for row in rows) == ["a", "b", "c"]
    by_id = {row["id"]: row for row in rows}
    assert by_id["a"]["appId"] is None
    assert by_id["a"]["gameName"] is None
    assert by_id["b"]["appId"] == by_id["c"]["appId"] == "413150"
    assert by_id["b"]["gameName"] == "Stardew Valley"


def test_drive_mode_keeps_mapping_records_first(drive_mode, storefront, db_session):
    drive_mode.append(FileCandidate(id="f2", name="427520 Factorio.zip"))
    upsert_game_mapping(db_session, app_id="427520", name="Factorio", file_id="file-factorio")

    payload = search.search_games("factorio", db=db_session)

    assert [row["id"] for row in payload["results"]] == ["file-factorio"]


def test_drive_listing_errors_propagate(monkeypatch, storefront):
    monkeypatch.setattr(config, "DRIVE_MODE", "drive")
    monkeypatch.setattr(config, "GOOGLE_FOLDER_ID", "folder-1")

    def failing(folder_id):
        raise DriveListingError("boom")

    monkeypatch.setattr(search, "load_drive_files", failing)

    with pytest.raises(DriveListingError):
        search.search_games("factorio")
