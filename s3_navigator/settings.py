from __future__ import annotations
"""Application settings persistence helpers."""

from dataclasses import asdict, dataclass
import json
from pathlib import Path

from .transport import DEFAULT_MAX_POOL_CONNECTIONS, DEFAULT_TIMEOUT


@dataclass
class AppSettings:
    """Simple container for persistent app settings."""

    default_profile: str = ""
    cache_responses: bool = False
    connect_timeout: float = DEFAULT_TIMEOUT
    max_pool_connections: int = DEFAULT_MAX_POOL_CONNECTIONS


def _positive(value: object, default: float, cast) -> float:
    try:
        number = cast(value)
    except (TypeError, ValueError):
        return default
    if number <= 0:
        return default
    return number


class SettingsStorage:
    """JSON-backed persistence for :class:`AppSettings`."""

    def __init__(self, storage_path: str | Path | None = None):
        if storage_path is None:
            storage_path = Path.home() / ".pys3nav_settings.json"
        self._path = Path(storage_path)

    def load(self) -> AppSettings:
        if not self._path.exists():
            return AppSettings()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return AppSettings()
        if not isinstance(data, dict):
            return AppSettings()

        default_profile = data.get("default_profile", "")
        if not isinstance(default_profile, str):
            default_profile = ""
        cache_responses = data.get("cache_responses", False)
        if not isinstance(cache_responses, bool):
            cache_responses = AppSettings.cache_responses
        return AppSettings(
            default_profile=default_profile,
            cache_responses=cache_responses,
            connect_timeout=_positive(data.get("connect_timeout"), AppSettings.connect_timeout, float),
            max_pool_connections=_positive(
                data.get("max_pool_connections"), AppSettings.max_pool_connections, int
            ),
        )

    def save(self, settings: AppSettings) -> None:
        payload = asdict(settings)
        payload["connect_timeout"] = max(float(settings.connect_timeout), 1.0)
        payload["max_pool_connections"] = max(int(settings.max_pool_connections), 1)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError:
            # Persist best-effort; ignore filesystem issues.
            return
