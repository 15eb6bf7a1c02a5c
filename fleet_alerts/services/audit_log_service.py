from pathlib import Path

from fleet_alerts.core.clock import utcnow
from fleet_alerts.core.config import get_settings


def _log_file() -> Path:
    return Path(get_settings().audit_log_path)


def log_event(action: str, details: str) -> None:
    log_file = _log_file()
    log_file.parent.mkdir(parents=True, exist_ok=True)
    timestamp = utcnow().isoformat(timespec="seconds")
    with log_file.open("a", encoding="utf-8") as stream:
        stream.write(f"[{timestamp}] {action}: {details}\n")


def read_recent_logs(limit: int = 200) -> list[str]:
    log_file = _log_file()
    if not log_file.exists():
        return []

    lines = log_file.read_text(encoding="utf-8").splitlines()
    return lines[-limit:]
