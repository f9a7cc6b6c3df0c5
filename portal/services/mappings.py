from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..models import GameMapping
from .game_search import MappingRecord, is_app_id_query


def _trim(value: Any) -> str:
    return str(value or "").strip()


def _to_int(value: Any) -> Optional[int]:
    try:
        if value is None or value == "":
            return None
        return int(value)
    except (TypeError, ValueError):
        return None


def to_mapping_record(row: GameMapping) -> MappingRecord:
    return MappingRecord(
        app_id=row.app_id,
        name=row.name,
        file_id=row.file_id,
        size_bytes=row.size_bytes,
        art=row.art,
    )


def upsert_game_mapping(
    db: Session,
    *,
    app_id: Any,
    name: Any = None,
    file_id: Any = None,
    size_bytes: Any = None,
    art: Any = None,
) -> Optional[GameMapping]:
    key = _trim(app_id)
    if not key:
        return None
    row = db.get(GameMapping, key)
    if row is None:
        row = GameMapping(app_id=key)
        db.add(row)
    row.name = _trim(name) or None
    row.file_id = _trim(file_id) or None
    row.size_bytes = _to_int(size_bytes)
    row.art = _trim(art) or None
    row.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(row)
    return row


def remove_game_mapping(db: Session, app_id: Any) -> bool:
    row = db.get(GameMapping, _trim(app_id))
    if row is None:
        return False
    db.delete(row)
    db.commit()
    return True


def find_game_mapping(db: Session, app_id: Any) -> Optional[GameMapping]:
    key = _trim(app_id)
    if not key:
        return None
    return db.get(GameMapping, key)


def _like_pattern(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def search_game_mappings(db: Session, query: Any, limit: int = 80) -> List[GameMapping]:
    q = _trim(query)
    if not q:
        return []
    pattern = _like_pattern(q)
    if is_app_id_query(q):
        condition = GameMapping.app_id.like(pattern, escape="\\")
    else:
        condition = or_(
            GameMapping.name.ilike(pattern, escape="\\"),
            GameMapping.app_id.ilike(pattern, escape="\\"),
        )
    rows = (
        db.query(GameMapping)
        .filter(condition)
        .order_by(GameMapping.app_id)
        .limit(max(10, limit))
        .all()
    )
    return rows[:limit]


def list_game_mappings(db: Session, limit: int = 200) -> List[GameMapping]:
    return db.query(GameMapping).order_by(GameMapping.app_id).limit(limit).all()
