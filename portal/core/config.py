import os
from pathlib import Path


def _load_env_file(path: Path) -> None:
    if not path.exists():
        return
    try:
        for line in path.read_text(encoding="utf-8").splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#") or "=" not in stripped:
                continue
            key, value = stripped.split("=", 1)
            key = key.strip()
            if not key or key in os.environ:
                continue
            cleaned = value.strip().strip('"').strip("'")
            os.environ[key] = cleaned
    except OSError:
        return


def _load_env() -> None:
    current = Path(__file__).resolve()
    candidates = [
        Path.cwd() / ".env",
        current.parents[2] / ".env",
    ]

    for candidate in candidates:
        _load_env_file(candidate)


_load_env()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _normalize_list(value: str) -> list[str]:
    items: list[str] = []
    for raw in value.split(","):
        cleaned = raw.strip()
        if cleaned and cleaned not in items:
            items.append(cleaned)
    return items


def _default_database_url() -> str:
    explicit_path = os.getenv("PORTAL_DB_PATH", "").strip()
    if explicit_path:
        return f"sqlite:///{Path(explicit_path).as_posix()}"
    backend_root = Path(__file__).resolve().parents[2]
    return f"sqlite:///{(backend_root / 'portal.db').as_posix()}"


DATABASE_URL = os.getenv("DATABASE_URL", _default_database_url())
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))
DB_POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "3600"))
DB_ENABLED = _env_flag("DB_ENABLED", "true")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"
ADMIN_API_KEY = os.getenv("ADMIN_API_KEY", "")

_DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"
CORS_ORIGINS = _normalize_list(os.getenv("CORS_ORIGINS", _DEFAULT_CORS_ORIGINS))

# requests per window, per client address; 0 disables the limiter
RATE_LIMIT_MAX = int(os.getenv("RATE_LIMIT_MAX", "120"))
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "300"))
# honour X-Forwarded-For only behind a reverse proxy that sets it
TRUST_PROXY_HEADERS = _env_flag("TRUST_PROXY_HEADERS", "false")

CACHE_DEFAULT_TTL_SECONDS = int(os.getenv("CACHE_DEFAULT_TTL_SECONDS", "300"))
CACHE_PRUNE_INTERVAL_SECONDS = int(os.getenv("CACHE_PRUNE_INTERVAL_SECONDS", "60"))

DRIVE_MODE = os.getenv("DRIVE_MODE", "local").strip().lower() or "local"
GOOGLE_FOLDER_ID = os.getenv("GOOGLE_FOLDER_ID", "").strip()
GOOGLE_SERVICE_ACCOUNT_JSON = os.getenv("GOOGLE_SERVICE_ACCOUNT_JSON", "")
GOOGLE_SERVICE_ACCOUNT_BASE64 = os.getenv("GOOGLE_SERVICE_ACCOUNT_BASE64", "")
GOOGLE_SERVICE_ACCOUNT_PATH = os.getenv(
    "GOOGLE_SERVICE_ACCOUNT_PATH", "./service-account.json"
)
GOOGLE_DRIVE_API_KEY = os.getenv("GOOGLE_DRIVE_API_KEY", "")
GOOGLE_DRIVE_API_URL = os.getenv(
    "GOOGLE_DRIVE_API_URL", "https://www.googleapis.com/drive/v3"
)
GOOGLE_OAUTH_TOKEN_URL = os.getenv(
    "GOOGLE_OAUTH_TOKEN_URL", "https://oauth2.googleapis.com/token"
)
GOOGLE_DRIVE_SCOPE = os.getenv(
    "GOOGLE_DRIVE_SCOPE", "https://www.googleapis.com/auth/drive.readonly"
)
DRIVE_CACHE_TTL_SECONDS = int(os.getenv("DRIVE_CACHE_TTL_SECONDS", "60"))
DRIVE_REQUEST_TIMEOUT_SECONDS = int(os.getenv("DRIVE_REQUEST_TIMEOUT_SECONDS", "20"))
DRIVE_PAGE_SIZE = int(os.getenv("DRIVE_PAGE_SIZE", "1000"))

GAMES_JSON = os.getenv("GAMES_JSON", "")
GAMES_FILE = os.getenv("GAMES_FILE", "")

STEAM_STORE_API_URL = os.getenv("STEAM_STORE_API_URL", "https://store.steampowered.com/api")
STEAM_STORE_SEARCH_URL = os.getenv(
    "STEAM_STORE_SEARCH_URL", "https://store.steampowered.com/api/storesearch/"
)
STEAM_HEADER_IMAGE_URL = os.getenv(
    "STEAM_HEADER_IMAGE_URL",
    "https://cdn.akamai.steamstatic.com/steam/apps/{app_id}/header.jpg",
)
STEAM_REQUEST_TIMEOUT_SECONDS = int(os.getenv("STEAM_REQUEST_TIMEOUT_SECONDS", "6"))
STEAM_CACHE_TTL_SECONDS = int(os.getenv("STEAM_CACHE_TTL_SECONDS", "3600"))
STEAM_SEARCH_CACHE_TTL_SECONDS = int(os.getenv("STEAM_SEARCH_CACHE_TTL_SECONDS", "300"))

SEARCH_MAX_RESULTS = int(os.getenv("SEARCH_MAX_RESULTS", "60"))
SEARCH_SPARSE_THRESHOLD = int(os.getenv("SEARCH_SPARSE_THRESHOLD", "5"))
SEARCH_MAPPING_LIMIT = int(os.getenv("SEARCH_MAPPING_LIMIT", "80"))
SEARCH_STEAM_LIMIT_LOCAL = int(os.getenv("SEARCH_STEAM_LIMIT_LOCAL", "40"))
SEARCH_STEAM_LIMIT_DRIVE = int(os.getenv("SEARCH_STEAM_LIMIT_DRIVE", "120"))
