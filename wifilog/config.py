"""Central configuration for the wifilog daemon."""

import os
from pathlib import Path

# ── Paths ──────────────────────────────────────────────────────────────
_PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Load .env from project root
_env_path = _PROJECT_ROOT / ".env"
if _env_path.exists():
    for _line in _env_path.read_text().splitlines():
        _line = _line.strip()
        if _line and not _line.startswith("#") and "=" in _line:
            _k, _, _v = _line.partition("=")
            os.environ.setdefault(_k.strip(), _v.strip())


def _default_data_dir() -> Path:
    env = os.environ.get("WIFILOG_DATA_DIR")
    if env:
        return Path(env)
    if (_PROJECT_ROOT / "pyproject.toml").exists():
        return _PROJECT_ROOT / "data"
    return Path.home() / ".wifilog"


DATA_DIR = _default_data_dir()
DB_PATH = DATA_DIR / "connections.db"
LOG_PATH = DATA_DIR / "wifilog.log"
PID_PATH = DATA_DIR / "wifilog.pid"

# ── Target network ─────────────────────────────────────────────────────
TARGET_SSID = os.environ.get("WIFILOG_TARGET_SSID", "eduroam")

# ── Sampling ───────────────────────────────────────────────────────────
SAMPLE_INTERVAL = float(os.environ.get("WIFILOG_INTERVAL", "60"))  # seconds

# ── SSID query ─────────────────────────────────────────────────────────
# Empty = pick by platform (corewlan on macOS, nmcli on Linux, netsh on Windows)
SSID_PROVIDER = os.environ.get("WIFILOG_SSID_PROVIDER", "")
WIFI_INTERFACE = os.environ.get("WIFILOG_WIFI_INTERFACE", "en0")
SSID_QUERY_TIMEOUT = 5  # seconds

# ── Daemon health ──────────────────────────────────────────────────────
HEALTH_HEARTBEAT_INTERVAL = 300

# ── Presentation ───────────────────────────────────────────────────────
LIST_REFRESH_INTERVAL = 30  # seconds between `wifilog list --watch` refreshes
