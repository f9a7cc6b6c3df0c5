from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from ..core import config
from .catalog import load_catalog
from .drive import load_drive_files
from .game_search import (
    CatalogEntry,
    MappingRecord,
    RankedResult,
    build_name_index,
    is_app_id_query,
    merge_games,
    merge_results,
    rank_catalog,
    rank_files,
)
from .mappings import search_game_mappings, to_mapping_record
from .steam_store import (
    fetch_steam_app_details,
    search_steam_apps_by_name,
    steam_header_image,
)

logger = logging.getLogger(__name__)


class SearchConfigError(ValueError):
    pass


def mapping_to_result(record: MappingRecord) -> RankedResult:
    return RankedResult(
        id=record.file_id or record.app_id,
        name=record.name or "",
        app_id=record.app_id,
        game_name=record.name,
        size=record.size_bytes or None,
        art=record.art or steam_header_image(record.app_id),
        file_id=record.file_id,
    )


def catalog_to_result(entry: CatalogEntry) -> RankedResult:
    return RankedResult(id=entry.app_id, name=entry.name, app_id=entry.app_id)


def storefront_to_result(entry: CatalogEntry) -> RankedResult:
    return RankedResult(
        id=entry.app_id,
        name=entry.name,
        app_id=entry.app_id,
        game_name=entry.name,
        art=steam_header_image(entry.app_id),
    )


def app_id_placeholder(app_id: str) -> RankedResult:
    details = fetch_steam_app_details(app_id) or {}
    name = details.get("name")
    return RankedResult(
        id=app_id,
        name=name or f"App {app_id}",
        app_id=app_id,
        game_name=name or None,
        art=details.get("headerImage") or steam_header_image(app_id),
    )


def _mapping_results(db: Optional[Session], query: str) -> List[RankedResult]:
    if db is None:
        return []
    rows = search_game_mappings(db, query, limit=config.SEARCH_MAPPING_LIMIT)
    return [mapping_to_result(to_mapping_record(row)) for row in rows]


def _is_sparse(query: str, results: Iterable[Any]) -> bool:
    return not is_app_id_query(query) and len(list(results)) < config.SEARCH_SPARSE_THRESHOLD


def _search_drive(query: str, mapped: List[RankedResult]) -> List[RankedResult]:
    if not config.GOOGLE_FOLDER_ID:
        raise SearchConfigError("Missing GOOGLE_FOLDER_ID")

    files = load_drive_files(config.GOOGLE_FOLDER_ID)
    catalog = load_catalog()
    results = rank_files(files, query, build_name_index(catalog), limit=config.SEARCH_MAX_RESULTS)

    # files without a derived app id, or sharing one, only collapse when
    # mapping records have to be merged in
    if _is_sparse(query, merge_results(mapped, results) if mapped else results):
        storefront = search_steam_apps_by_name(query, config.SEARCH_STEAM_LIMIT_DRIVE)
        if storefront:
            enriched = rank_files(
                files,
                query,
                build_name_index(merge_games(catalog, storefront)),
                limit=config.SEARCH_MAX_RESULTS,
            )
            if len(enriched) > len(results):
                logger.debug(f"Storefront names widened drive results for {query!r}")
                results = enriched

    if not mapped:
        return results
    return merge_results(mapped, results)


def _search_local(query: str, mapped: List[RankedResult]) -> List[RankedResult]:
    ranked = rank_catalog(load_catalog(), query, limit=config.SEARCH_MAX_RESULTS)
    results = merge_results(mapped, [catalog_to_result(entry) for entry in ranked])

    if _is_sparse(query, results):
        storefront = search_steam_apps_by_name(query, config.SEARCH_STEAM_LIMIT_LOCAL)
        results = merge_results(results, [storefront_to_result(entry) for entry in storefront])

    return results


def search_games(query: Optional[str], db: Optional[Session] = None) -> Dict[str, Any]:
    trimmed = str(query or "").strip()
    if not trimmed:
        return {"results": []}

    mapped = _mapping_results(db, trimmed)
    source = "drive" if config.DRIVE_MODE == "drive" else "local"
    if source == "drive":
        results = _search_drive(trimmed, mapped)
    else:
        results = _search_local(trimmed, mapped)

    if not results and is_app_id_query(trimmed):
        results = [app_id_placeholder(trimmed)]

    return {"results": [item.to_dict() for item in results], "source": source}
