import os
from typing import Dict, Optional, Tuple

from .logging import get_logger

log = get_logger("config")

DEFAULT_OFF_BASE_URL = "https://world.openfoodfacts.org"
DEFAULT_OFF_TIMEOUT = 15
DEFAULT_TESSERACT_LANG = "spa"


def _find_upwards(start_dir: str, filename: str) -> Optional[str]:
    """Return first matching file found when walking up from start_dir."""
    d = os.path.abspath(start_dir or ".")
    while True:
        candidate = os.path.join(d, filename)
        if os.path.isfile(candidate):
            return candidate
        parent = os.path.dirname(d)
        if parent == d:
            return None
        d = parent


def _read_dotenv(dotenv_dir: str) -> Dict[str, str]:
    """Minimal .env reader (no external dependencies).

    - Reads key=value pairs, ignores comments (#/;) and blank lines.
    - Trims single/double quotes around the value.
    - Returns mapping; does not mutate environment.
    """
    env: Dict[str, str] = {}
    path = _find_upwards(dotenv_dir, ".env")
    if not path:
        log.debug(f"No .env found starting from: {os.path.abspath(dotenv_dir)}")
        return env
    try:
        with open(path, "r", encoding="utf-8") as f:
            for raw in f:
                line = raw.strip()
                if not line or line.startswith("#") or line.startswith(";"):
                    continue
                if "=" not in line:
                    continue
                k, v = line.split("=", 1)
                k = k.strip()
                v = v.strip()
                if (v.startswith('"') and v.endswith('"')) or (v.startswith("'") and v.endswith("'")):
                    v = v[1:-1]
                env[k] = v.strip()
        log.debug(f"Loaded {len(env)} key(s) from .env at {path}")
    except OSError as e:
        log.warning(f"Failed reading .env: {e}")
    return env


def _lookup(dotenv_dir: str, key: str) -> Optional[str]:
    v = os.environ.get(key)
    if v and v.strip():
        return v.strip()
    v = _read_dotenv(dotenv_dir).get(key)
    return v.strip() if v and v.strip() else None


def load_db_path(dotenv_dir: str) -> Optional[str]:
    """Return an explicit catalog SQLite path, or None to use var/catalog."""
    v = _lookup(dotenv_dir, "CATALOG_DB_PATH")
    if v:
        log.info(f"Using CATALOG_DB_PATH override: {v}")
    return v


def load_lookup(dotenv_dir: str) -> Tuple[str, int]:
    """Return (open_food_facts_base_url, timeout_seconds) with sensible defaults."""
    url = _lookup(dotenv_dir, "OFF_BASE_URL") or DEFAULT_OFF_BASE_URL
    raw_timeout = _lookup(dotenv_dir, "OFF_TIMEOUT")
    try:
        timeout = int(raw_timeout) if raw_timeout else DEFAULT_OFF_TIMEOUT
    except ValueError:
        log.warning(f"Ignoring invalid OFF_TIMEOUT={raw_timeout!r}")
        timeout = DEFAULT_OFF_TIMEOUT
    return url.rstrip("/"), timeout


def load_tesseract(dotenv_dir: str) -> Tuple[str, Optional[str]]:
    """Return (language, tesseract_cmd). The command is optional."""
    lang = _lookup(dotenv_dir, "TESSERACT_LANG") or DEFAULT_TESSERACT_LANG
    cmd = _lookup(dotenv_dir, "TESSERACT_CMD")
    return lang, cmd
