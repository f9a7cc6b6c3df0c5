from __future__ import annotations

import math
import re
import unicodedata
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

MAX_SEARCH_RESULTS = 60
GAME_NAME_WEIGHT = 1.25
FILE_NAME_WEIGHT = 0.65

_COMBINING_MARKS = re.compile(r"[\u0300-\u036f]")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_DIGITS_ONLY = re.compile(r"[0-9]+")
_EXTENSION = re.compile(r"\.[^.]+$")
_APP_ID_RUN = re.compile(r"(?<![0-9])[0-9]{2,10}(?![0-9])")
_LEADING_APP_ID_RUN = re.compile(r"^[0-9]{2,10}(?![0-9])")
_ROMAN_NUMERALS = {
    "i": "1",
    "ii": "2",
    "iii": "3",
    "iv": "4",
    "v": "5",
    "vi": "6",
    "vii": "7",
    "viii": "8",
    "ix": "9",
    "x": "10",
}


@dataclass(frozen=True)
class CatalogEntry:
    name: str
    app_id: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "appId": self.app_id}


@dataclass(frozen=True)
class FileCandidate:
    id: str
    name: str
    size: Optional[int] = None
    modified_time: Optional[str] = None


@dataclass(frozen=True)
class MappingRecord:
    app_id: str
    name: Optional[str] = None
    file_id: Optional[str] = None
    size_bytes: Optional[int] = None
    art: Optional[str] = None


Candidate = Union[CatalogEntry, FileCandidate, MappingRecord]


@dataclass(frozen=True)
class ScoredCandidate:
    subject: Candidate
    score: int
    derived_app_id: Optional[str] = None
    game_name: str = ""


@dataclass(frozen=True)
class RankedResult:
    id: str
    name: str
    app_id: Optional[str] = None
    game_name: Optional[str] = None
    size: Optional[int] = None
    modified_time: Optional[str] = None
    art: Optional[str] = None
    file_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "appId": self.app_id,
            "name": self.name,
            "gameName": self.game_name,
        }
        if self.size is not None:
            payload["size"] = self.size
        if self.modified_time is not None:
            payload["modifiedTime"] = self.modified_time
        if self.art is not None:
            payload["art"] = self.art
        if self.file_id is not None:
            payload["fileId"] = self.file_id
        return payload


def normalize(text: Optional[str]) -> str:
    decomposed = unicodedata.normalize("NFKD", str(text or ""))
    cleaned = _NON_ALNUM.sub(" ", _COMBINING_MARKS.sub("", decomposed).lower())
    parts = cleaned.split()
    if not parts:
        return ""
    return " ".join(_ROMAN_NUMERALS.get(token, token) for token in parts)


def compact(text: Optional[str]) -> str:
    return normalize(text).replace(" ", "")


def tokens(text: Optional[str]) -> list[str]:
    normalized = normalize(text)
    return normalized.split(" ") if normalized else []


def acronym(text: Optional[str]) -> str:
    return "".join(token[0] for token in tokens(text))


def is_subsequence(needle: str, haystack: str) -> bool:
    if not needle or not haystack:
        return False
    index = 0
    for char in haystack:
        if index >= len(needle):
            break
        if char == needle[index]:
            index += 1
    return index == len(needle)


def is_app_id_query(value: Optional[str]) -> bool:
    return bool(_DIGITS_ONLY.fullmatch(str(value or "").strip()))


def score_text(query: Optional[str], target: Optional[str]) -> int:
    q = normalize(query)
    t = normalize(target)
    if not q or not t:
        return 0

    q_compact = q.replace(" ", "")
    t_compact = t.replace(" ", "")
    q_tokens = q.split(" ")
    t_tokens = t.split(" ")
    target_acronym = "".join(token[0] for token in t_tokens)

    def prefixes_target(token: str) -> bool:
        return any(target_token.startswith(token) for target_token in t_tokens)

    score = 0
    if q == t:
        score += 2200
    if t.startswith(q):
        score += 1300
    if q in t:
        score += 900

    if all(token in t_tokens for token in q_tokens):
        score += 680
    if all(prefixes_target(token) for token in q_tokens):
        score += 540
    for token in q_tokens:
        if len(token) >= 2 and prefixes_target(token):
            score += 42

    if len(q_compact) >= 3 and q_compact in t_compact:
        score += 580
    if len(q_compact) >= 4 and is_subsequence(q_compact, t_compact):
        score += 240
    if target_acronym and len(q_compact) >= 2:
        if q_compact == target_acronym:
            score += 1500
        elif target_acronym.startswith(q_compact):
            score += 900
        elif is_subsequence(q_compact, target_acronym):
            score += 450

    score -= min(220, abs(len(t_compact) - len(q_compact)) * 3)
    return score


def score_app_id(query: Optional[str], app_id: Optional[str]) -> int:
    q = str(query or "").strip()
    candidate = str(app_id or "").strip()
    if not _DIGITS_ONLY.fullmatch(q) or not candidate:
        return 0
    if q == candidate:
        return 3000
    if candidate.startswith(q):
        return 1700
    if q in candidate:
        return 1200
    return 0


def extract_app_id(filename: Optional[str]) -> Optional[str]:
    """Derive a Steam app id from a file name.

    A digit run at the very start of the name wins over any later run, so
    ``"2013 Factorio 427520.zip"`` yields ``"2013"``. Names that lead with
    something other than the app id are misread; this is kept on purpose
    because uploaded archives are conventionally prefixed with the app id.
    """
    base = _EXTENSION.sub("", str(filename or "")).strip()
    if not base:
        return None
    runs = _APP_ID_RUN.findall(base)
    if not runs:
        return None
    leading = _LEADING_APP_ID_RUN.match(base)
    if leading:
        return leading.group(0)
    return runs[0]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def build_name_index(entries: Iterable[CatalogEntry]) -> dict[str, str]:
    return {str(entry.app_id): entry.name for entry in entries}


def score_catalog_entry(query: str, entry: CatalogEntry) -> int:
    return score_text(query, entry.name or "") + score_app_id(query, entry.app_id or "")


def score_file(
    query: str,
    candidate: FileCandidate,
    catalog_by_app_id: Mapping[str, str],
) -> ScoredCandidate:
    app_id = extract_app_id(candidate.name)
    game_name = (catalog_by_app_id.get(app_id) or "") if app_id else ""
    score = _round_half_up(
        score_text(query, game_name) * GAME_NAME_WEIGHT
        + score_text(query, candidate.name or "") * FILE_NAME_WEIGHT
        + score_app_id(query, app_id or "")
    )
    return ScoredCandidate(
        subject=candidate,
        score=score,
        derived_app_id=app_id,
        game_name=game_name,
    )


def rank_catalog(
    entries: Iterable[CatalogEntry],
    query: Optional[str],
    limit: int = MAX_SEARCH_RESULTS,
) -> list[CatalogEntry]:
    raw = str(query or "").strip()
    if not raw:
        return []

    scored = []
    for entry in entries:
        score = score_catalog_entry(raw, entry)
        if score > 0:
            scored.append(ScoredCandidate(subject=entry, score=score))

    scored.sort(key=lambda item: (-item.score, item.subject.name or ""))
    return [item.subject for item in scored[:limit]]


def rank_files(
    files: Iterable[FileCandidate],
    query: Optional[str],
    catalog_by_app_id: Mapping[str, str],
    limit: int = MAX_SEARCH_RESULTS,
) -> list[RankedResult]:
    raw = str(query or "").strip()
    if not raw:
        return []

    scored = []
    for candidate in files:
        item = score_file(raw, candidate, catalog_by_app_id)
        if item.score > 0:
            scored.append(item)

    scored.sort(key=lambda item: (-item.score, item.game_name or item.subject.name or ""))

    results = []
    for item in scored[:limit]:
        candidate = item.subject
        results.append(
            RankedResult(
                id=candidate.id,
                name=candidate.name,
                app_id=item.derived_app_id,
                game_name=(item.game_name or None) if item.derived_app_id else None,
                size=int(candidate.size) if candidate.size else None,
                modified_time=candidate.modified_time,
            )
        )
    return results


def _clean(value: Any) -> str:
    return str(value or "").strip()


def merge_results(
    primary: Optional[Sequence[RankedResult]],
    secondary: Optional[Sequence[RankedResult]],
) -> list[RankedResult]:
    by_app_id: dict[str, RankedResult] = {}
    for row in primary or []:
        app_id = _clean(row.app_id)
        if not app_id or app_id in by_app_id:
            continue
        by_app_id[app_id] = row
    for row in secondary or []:
        app_id = _clean(row.app_id)
        if not app_id or app_id in by_app_id:
            continue
        by_app_id[app_id] = row
    return list(by_app_id.values())


def merge_games(
    primary: Optional[Sequence[CatalogEntry]],
    secondary: Optional[Sequence[CatalogEntry]],
) -> list[CatalogEntry]:
    by_app_id: dict[str, CatalogEntry] = {}
    for game in list(primary or []) + list(secondary or []):
        app_id = _clean(game.app_id)
        name = _clean(game.name)
        if not app_id or not name or app_id in by_app_id:
            continue
        by_app_id[app_id] = CatalogEntry(name=name, app_id=app_id)
    return list(by_app_id.values())
