from __future__ import annotations

from portal.services.mappings import (
    find_game_mapping,
    remove_game_mapping,
    search_game_mappings,
    upsert_game_mapping,
)


def _seed(db):
    upsert_game_mapping(db, app_id="1145360", name="Hades", file_id="file-hades")
    upsert_game_mapping(db, app_id="70", name="Half_Life", file_id="file-hl")
    upsert_game_mapping(db, app_id="620", name="Portal 2 100%", file_id="file-p2")


def test_wildcards_in_query_match_literally(db_session):
    _seed(db_session)

    assert [row.app_id for row in search_game_mappings(db_session, "_")] == ["70"]
    assert [row.app_id for row in search_game_mappings(db_session, "%")] == ["620"]
    assert [row.app_id for row in search_game_mappings(db_session, "half_")] == ["70"]
    assert search_game_mappings(db_session, "ha%s") == []


def test_search_by_name_and_app_id(db_session):
    _seed(db_session)

    assert [row.app_id for row in search_game_mappings(db_session, "HAD")] == ["1145360"]
    assert [row.app_id for row in search_game_mappings(db_session, "114")] == ["1145360"]
    assert search_game_mappings(db_session, "   ") == []


def test_find_and_remove(db_session):
    _seed(db_session)

    assert find_game_mapping(db_session, " 620 ").file_id == "file-p2"
    assert find_game_mapping(db_session, "") is None
    assert remove_game_mapping(db_session, "620") is True
    assert find_game_mapping(db_session, "620") is None
    assert remove_game_mapping(db_session, "620") is False
