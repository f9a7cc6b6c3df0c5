from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from ..core.cache import CacheClient, cache_client
from ..core.config import (
    STEAM_CACHE_TTL_SECONDS,
    STEAM_HEADER_IMAGE_URL,
    STEAM_REQUEST_TIMEOUT_SECONDS,
    STEAM_SEARCH_CACHE_TTL_SECONDS,
    STEAM_STORE_API_URL,
    STEAM_STORE_SEARCH_URL,
)
from .game_search import CatalogEntry, is_app_id_query, normalize

logger = logging.getLogger(__name__)


def steam_header_image(app_id: str) -> str:
    return STEAM_HEADER_IMAGE_URL.format(app_id=str(app_id).strip())


def _request(url: str, params: Dict[str, Any]) -> Optional[Any]:
    try:
        response = requests.get(
            url,
            params=params,
            timeout=STEAM_REQUEST_TIMEOUT_SECONDS,
            headers={"User-Agent": "game-portal/1.0"},
        )
        if response.status_code != 200:
            logger.warning(f"Steam request to {url} returned HTTP {response.status_code}")
            return None
        return response.json()
    except (requests.RequestException, ValueError) as exc:
        logger.warning(f"Steam request to {url} failed: {exc}")
        return None


def search_steam_apps_by_name(
    query: str,
    limit: int = 80,
    cache: CacheClient = cache_client,
) -> List[CatalogEntry]:
    term = str(query or "").strip()
    if not term:
        return []

    cache_key = f"steam:storesearch:{normalize(term) or term.lower()}"
    cached = cache.get_json(cache_key)
    if cached is None:
        payload = _request(
            STEAM_STORE_SEARCH_URL,
            {"term": term, "l": "english", "cc": "us"},
        )
        items = payload.get("items") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            return []
        cached = [
            {"appId": str(item.get("id")), "name": str(item.get("name") or f"App {item.get('id')}")}
            for item in items
            if isinstance(item, dict) and item.get("id") is not None
        ]
        cache.set_json(cache_key, cached, ttl=STEAM_SEARCH_CACHE_TTL_SECONDS)

    cap = max(1, int(limit or 80))
    return [CatalogEntry(name=row["name"], app_id=row["appId"]) for row in cached[:cap]]


def fetch_steam_app_details(
    app_id: str,
    cache: CacheClient = cache_client,
) -> Optional[Dict[str, Any]]:
    appid = str(app_id or "").strip()
    if not is_app_id_query(appid):
        return None

    cache_key = f"steam:appdetails:{appid}"
    cached = cache.get_json(cache_key)
    if cached is not None:
        return cached

    payload = _request(
        f"{STEAM_STORE_API_URL.rstrip('/')}/appdetails",
        {"appids": appid, "l": "english"},
    )
    entry = payload.get(appid) if isinstance(payload, dict) else None
    if not isinstance(entry, dict) or not entry.get("success") or not entry.get("data"):
        return None

    data = entry["data"]
    details = {
        "appId": appid,
        "name": data.get("name") or None,
        "headerImage": data.get("header_image") or None,
        "type": data.get("type") or None,
    }
    cache.set_json(cache_key, details, ttl=STEAM_CACHE_TTL_SECONDS)
    return details
