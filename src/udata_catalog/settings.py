"""Load connector settings from config.yml and derive runtime paths."""

from pathlib import Path

import yaml

ROOT_DIR = Path(__file__).resolve().parent.parent.parent

_config_file = ROOT_DIR / "config.yml"
if _config_file.exists():
    with open(_config_file, encoding="utf-8") as _f:
        _raw = yaml.safe_load(_f) or {}
else:
    _raw = {}

_catalog = _raw.get("catalog", {})
_http = _raw.get("http", {})
_spatial = _raw.get("spatial", {})
_paths = _raw.get("paths", {})

# ── Catalog ──
DEFAULT_CATALOG_URL: str = _catalog.get("url", "https://demo.data.gouv.fr")
API_KEY_MASK: str = _catalog.get("api_key_mask", "*" * 50)

# ── HTTP ── (None disables the timeout)
HTTP_TIMEOUT: float | None = _http.get("timeout")

# ── Spatial coverage lookups ──
ZONE_SUGGEST_SIZE: int = int(_spatial.get("suggest_size", 10))
SPATIAL_MAX_WORKERS: int = int(_spatial.get("max_workers", 8))

# ── Paths (resolved relative to project root) ──
DOWNLOAD_DIR = ROOT_DIR / _paths.get("downloads", "data/downloads")
LOG_PATH = ROOT_DIR / _paths.get("log", "udata-catalog.log")


def prepare_directories() -> None:
    """Ensure that the download directory exists."""
    DOWNLOAD_DIR.mkdir(parents=True, exist_ok=True)
