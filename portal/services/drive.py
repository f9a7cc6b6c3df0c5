from __future__ import annotations

import base64
import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
from jose import jwt
from jose.exceptions import JOSEError

from ..core.cache import CacheClient, cache_client
from ..core.config import (
    DRIVE_CACHE_TTL_SECONDS,
    DRIVE_PAGE_SIZE,
    DRIVE_REQUEST_TIMEOUT_SECONDS,
    GOOGLE_DRIVE_API_KEY,
    GOOGLE_DRIVE_API_URL,
    GOOGLE_DRIVE_SCOPE,
    GOOGLE_OAUTH_TOKEN_URL,
    GOOGLE_SERVICE_ACCOUNT_BASE64,
    GOOGLE_SERVICE_ACCOUNT_JSON,
    GOOGLE_SERVICE_ACCOUNT_PATH,
)
from .game_search import FileCandidate

logger = logging.getLogger(__name__)

_JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
_TOKEN_LIFETIME_SECONDS = 3600
_TOKEN_REFRESH_MARGIN_SECONDS = 60


class DriveListingError(RuntimeError):
    pass


def load_service_account() -> Optional[Dict[str, Any]]:
    raw = GOOGLE_SERVICE_ACCOUNT_JSON.strip()
    if not raw and GOOGLE_SERVICE_ACCOUNT_BASE64.strip():
        try:
            raw = base64.b64decode(GOOGLE_SERVICE_ACCOUNT_BASE64).decode("utf-8")
        except (ValueError, UnicodeDecodeError) as exc:
            raise DriveListingError("GOOGLE_SERVICE_ACCOUNT_BASE64 is not valid base64") from exc
    if not raw:
        path = Path(GOOGLE_SERVICE_ACCOUNT_PATH)
        if not path.is_file():
            return None
        raw = path.read_text(encoding="utf-8")
    try:
        credentials = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise DriveListingError("Service account credentials are not valid JSON") from exc
    if not isinstance(credentials, dict):
        raise DriveListingError("Service account credentials must be a JSON object")
    return credentials


def _signed_assertion(credentials: Dict[str, Any], token_url: str) -> str:
    issued_at = int(time.time())
    claims = {
        "iss": credentials.get("client_email"),
        "scope": GOOGLE_DRIVE_SCOPE,
        "aud": token_url,
        "iat": issued_at,
        "exp": issued_at + _TOKEN_LIFETIME_SECONDS,
    }
    headers = {"kid": credentials["private_key_id"]} if credentials.get("private_key_id") else None
    try:
        return jwt.encode(claims, credentials["private_key"], algorithm="RS256", headers=headers)
    except (JOSEError, KeyError) as exc:
        raise DriveListingError("Could not sign service account assertion") from exc


def fetch_access_token(
    credentials: Dict[str, Any],
    cache: CacheClient = cache_client,
) -> str:
    client_email = str(credentials.get("client_email") or "")
    cache_key = f"drive:token:{client_email}"
    cached = cache.get_json(cache_key)
    if cached:
        return cached

    token_url = credentials.get("token_uri") or GOOGLE_OAUTH_TOKEN_URL
    assertion = _signed_assertion(credentials, token_url)
    try:
        response = requests.post(
            token_url,
            data={"grant_type": _JWT_BEARER_GRANT, "assertion": assertion},
            timeout=DRIVE_REQUEST_TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        raise DriveListingError(f"Token request failed: {exc}") from exc
    if response.status_code != 200:
        raise DriveListingError(f"Token request returned HTTP {response.status_code}")

    try:
        payload = response.json()
    except ValueError as exc:
        raise DriveListingError("Token response is not JSON") from exc
    token = payload.get("access_token")
    if not token:
        raise DriveListingError("Token response has no access_token")
    expires_in = int(payload.get("expires_in") or _TOKEN_LIFETIME_SECONDS)
    cache.set_json(cache_key, token, ttl=max(1, expires_in - _TOKEN_REFRESH_MARGIN_SECONDS))
    return token


def _auth(cache: CacheClient) -> tuple[Dict[str, str], Dict[str, str]]:
    credentials = load_service_account()
    if credentials:
        token = fetch_access_token(credentials, cache=cache)
        return {"Authorization": f"Bearer {token}"}, {}
    if GOOGLE_DRIVE_API_KEY:
        return {}, {"key": GOOGLE_DRIVE_API_KEY}
    raise DriveListingError("No Google Drive credentials configured")


def _to_candidate(item: Dict[str, Any]) -> Optional[FileCandidate]:
    file_id = str(item.get("id") or "").strip()
    if not file_id:
        return None
    raw_size = item.get("size")
    try:
        size = int(raw_size) if raw_size not in (None, "") else None
    except (TypeError, ValueError):
        size = None
    return FileCandidate(
        id=file_id,
        name=str(item.get("name") or ""),
        size=size,
        modified_time=item.get("modifiedTime"),
    )


def _candidate_to_dict(candidate: FileCandidate) -> Dict[str, Any]:
    return {
        "id": candidate.id,
        "name": candidate.name,
        "size": candidate.size,
        "modifiedTime": candidate.modified_time,
    }


def _candidate_from_dict(row: Dict[str, Any]) -> FileCandidate:
    return FileCandidate(
        id=row["id"],
        name=row["name"],
        size=row.get("size"),
        modified_time=row.get("modifiedTime"),
    )


def list_folder(folder_id: str, cache: CacheClient = cache_client) -> List[FileCandidate]:
    headers, auth_params = _auth(cache)
    url = f"{GOOGLE_DRIVE_API_URL.rstrip('/')}/files"
    files: List[FileCandidate] = []
    page_token: Optional[str] = None

    while True:
        params: Dict[str, Any] = {
            "q": f"'{folder_id}' in parents and trashed = false",
            "fields": "nextPageToken, files(id, name, size, modifiedTime)",
            "pageSize": DRIVE_PAGE_SIZE,
            **auth_params,
        }
        if page_token:
            params["pageToken"] = page_token
        try:
            response = requests.get(
                url,
                params=params,
                headers=headers,
                timeout=DRIVE_REQUEST_TIMEOUT_SECONDS,
            )
        except requests.RequestException as exc:
            raise DriveListingError(f"Drive listing failed: {exc}") from exc
        if response.status_code != 200:
            raise DriveListingError(f"Drive listing returned HTTP {response.status_code}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise DriveListingError("Drive listing response is not JSON") from exc

        for item in payload.get("files") or []:
            if isinstance(item, dict):
                candidate = _to_candidate(item)
                if candidate:
                    files.append(candidate)
        page_token = payload.get("nextPageToken")
        if not page_token:
            break

    return files


def load_drive_files(
    folder_id: str,
    cache: CacheClient = cache_client,
    ttl_seconds: int = DRIVE_CACHE_TTL_SECONDS,
) -> List[FileCandidate]:
    cache_key = f"drive:{folder_id}"
    cached = cache.get_json(cache_key)
    if cached is not None:
        return [_candidate_from_dict(row) for row in cached]

    files = list_folder(folder_id, cache=cache)
    logger.info(f"Listed {len(files)} files from Drive folder {folder_id}")
    cache.set_json(cache_key, [_candidate_to_dict(item) for item in files], ttl=ttl_seconds)
    return files
