from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, Iterable, List, Optional

from ..core.config import GAMES_FILE, GAMES_JSON
from .game_search import CatalogEntry

logger = logging.getLogger(__name__)

FALLBACK_GAMES = (
    CatalogEntry(name="Kerbal Space Program", app_id="220200"),
    CatalogEntry(name="Factorio", app_id="427520"),
    CatalogEntry(name="Stardew Valley", app_id="413150"),
    CatalogEntry(name="Satisfactory", app_id="526870"),
    CatalogEntry(name="Deep Rock Galactic", app_id="548430"),
    CatalogEntry(name="Valheim", app_id="892970"),
)

_CATALOG_LOCK = threading.Lock()
_CATALOG: Optional[List[CatalogEntry]] = None


def parse_catalog(rows: Iterable[Any]) -> List[CatalogEntry]:
    entries: List[CatalogEntry] = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        name = str(row.get("name") or "").strip()
        app_id = str(row.get("appId") or row.get("app_id") or "").strip()
        if not name or not app_id:
            continue
        entries.append(CatalogEntry(name=name, app_id=app_id))
    return entries


def _read_json_list(path: Path) -> Optional[list]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning(f"Ignoring unreadable catalog file {path}: {exc}")
        return None
    return payload if isinstance(payload, list) else None


def _catalog_paths() -> List[Path]:
    cwd = Path.cwd()
    paths = []
    if GAMES_FILE:
        paths.append(Path(GAMES_FILE))
    paths.extend([cwd / "data" / "games.json", cwd / "site" / "data" / "games.json"])
    return paths


def _load_from_sources() -> List[CatalogEntry]:
    if GAMES_JSON.strip():
        try:
            payload = json.loads(GAMES_JSON)
        except json.JSONDecodeError:
            logger.warning("GAMES_JSON is not valid JSON; falling back to catalog files")
            payload = None
        if isinstance(payload, list):
            return parse_catalog(payload)

    for path in _catalog_paths():
        rows = _read_json_list(path)
        if rows is not None:
            logger.info(f"Loaded game catalog from {path}")
            return parse_catalog(rows)

    return list(FALLBACK_GAMES)


def load_catalog() -> List[CatalogEntry]:
    global _CATALOG
    if _CATALOG is not None:
        return list(_CATALOG)
    with _CATALOG_LOCK:
        if _CATALOG is None:
            _CATALOG = _load_from_sources()
            logger.info(f"Game catalog ready ({len(_CATALOG)} titles)")
        return list(_CATALOG)


def reset_catalog_cache() -> None:
    global _CATALOG
    with _CATALOG_LOCK:
        _CATALOG = None
