import os
from pathlib import Path
from threading import RLock


APP_NAME = "domoticz_assistant_bridge"
PROJECT_ROOT = Path(__file__).resolve().parents[2]
ENV_FILE_PATH = PROJECT_ROOT / ".env"


def load_local_env(env_path: Path) -> None:
    if not env_path.exists():
        return

    for raw in env_path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip()
        if not key:
            continue

        if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
            value = value[1:-1]

        os.environ.setdefault(key, value)


load_local_env(ENV_FILE_PATH)


def env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_path(name: str, default: str) -> Path:
    raw = os.getenv(name, default)
    path = Path(raw)
    if path.is_absolute():
        return path
    return (Path.cwd() / path).resolve()


def env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip()
    if not value:
        return default
    return value


def env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    normalized = raw.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def clamp(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(value, maximum))


# Controller connection, adjustable at runtime through the config service.
DOMOTICZ_BASE_URL = env_str("DOMOTICZ_BASE_URL", "http://domoticz:8080").rstrip("/")
DOMOTICZ_USERNAME = os.getenv("DOMOTICZ_USERNAME", "admin")
DOMOTICZ_PASSWORD = os.getenv("DOMOTICZ_PASSWORD", "domoticz")
DOMOTICZ_TIMEOUT_SEC = env_float("DOMOTICZ_TIMEOUT_SEC", 6.0)

SYNC_INTERVAL_SEC = clamp(env_float("SYNC_INTERVAL_SEC", 10.0), 1.0, 60.0)

APP_DIR = Path(__file__).resolve().parent.parent
BRIDGE_LOG_ENABLED = env_bool("BRIDGE_LOG_ENABLED", True)
BRIDGE_LOG_PATH = env_path("BRIDGE_LOG_PATH", str(APP_DIR / "logs" / "operations.jsonl"))
BRIDGE_LOG_MAX_BYTES = env_int("BRIDGE_LOG_MAX_BYTES", 5 * 1024 * 1024)
BRIDGE_LOG_BACKUP_COUNT = max(1, env_int("BRIDGE_LOG_BACKUP_COUNT", 5))
BRIDGE_LOG_QUEUE_MAX = max(100, env_int("BRIDGE_LOG_QUEUE_MAX", 5000))

runtime_config_lock = RLock()
log_lock = RLock()
