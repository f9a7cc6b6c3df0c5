from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..db import get_optional_db
from ..schemas import GameMappingIn, GameMappingOut
from ..services.mappings import (
    find_game_mapping,
    list_game_mappings,
    remove_game_mapping,
    search_game_mappings,
    upsert_game_mapping,
)
from .deps import require_admin_access

router = APIRouter(dependencies=[Depends(require_admin_access)])


def _require_db(db: Optional[Session]) -> Session:
    if db is None:
        raise HTTPException(status_code=501, detail="Database disabled")
    return db


def _serialize(row) -> dict:
    return GameMappingOut.model_validate(row).model_dump(by_alias=True, mode="json")


@router.get("/games")
def list_mappings(
    q: str = Query(default=""),
    db: Optional[Session] = Depends(get_optional_db),
):
    if db is None:
        return {"results": []}
    query = q.strip()
    rows = search_game_mappings(db, query, limit=200) if query else list_game_mappings(db, 200)
    return {"results": [_serialize(row) for row in rows]}


@router.get("/games/{app_id}")
def get_mapping(app_id: str, db: Optional[Session] = Depends(get_optional_db)):
    session = _require_db(db)
    row = find_game_mapping(session, app_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Mapping not found")
    return {"mapping": _serialize(row)}


@router.post("/games")
def upsert_mapping(
    payload: GameMappingIn,
    db: Optional[Session] = Depends(get_optional_db),
):
    session = _require_db(db)
    row = upsert_game_mapping(
        session,
        app_id=payload.app_id,
        name=payload.name,
        file_id=payload.file_id,
        size_bytes=payload.size_bytes,
        art=payload.art,
    )
    return {"mapping": _serialize(row)}


@router.delete("/games/{app_id}")
def delete_mapping(app_id: str, db: Optional[Session] = Depends(get_optional_db)):
    session = _require_db(db)
    if not remove_game_mapping(session, app_id):
        raise HTTPException(status_code=404, detail="Mapping not found")
    return {"ok": True}
