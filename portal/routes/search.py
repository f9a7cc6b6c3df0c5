import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..db import get_optional_db
from ..schemas import SteamAppOut
from ..services.drive import DriveListingError
from ..services.game_search import is_app_id_query
from ..services.search import SearchConfigError, search_games
from ..services.steam_store import fetch_steam_app_details

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/search")
def search(
    q: str = Query(default="", max_length=200),
    db: Optional[Session] = Depends(get_optional_db),
):
    try:
        return search_games(q, db=db)
    except SearchConfigError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except (DriveListingError, SQLAlchemyError):
        logger.exception(f"Search failed for {q!r}")
        raise HTTPException(status_code=500, detail="Search failed")


@router.get("/steam-app")
def steam_app(app_id: str = Query(default="", alias="appId")):
    trimmed = app_id.strip()
    if not is_app_id_query(trimmed):
        raise HTTPException(status_code=400, detail="Invalid appId")
    details = fetch_steam_app_details(trimmed)
    if not details:
        raise HTTPException(status_code=404, detail="Steam app not found")
    return {"app": SteamAppOut.model_validate(details).model_dump(by_alias=True)}
