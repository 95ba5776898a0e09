from __future__ import annotations
"""Application settings persistence helpers."""

from dataclasses import asdict, dataclass, replace
import json
import os
from pathlib import Path
from typing import Mapping, Optional

APP_DIR_NAME = "pyawsb"
PROFILE_ENV_VARS = ("AWS_PROFILE", "AWS_DEFAULT_PROFILE")
REGION_ENV_VARS = ("AWS_REGION", "AWS_DEFAULT_REGION")


class SettingsValidationError(ValueError):
    """Raised when the persisted settings file is malformed."""


@dataclass
class AppSettings:
    """Simple container for persistent app settings."""

    profile: Optional[str] = None
    region: Optional[str] = None
    page_size: int = 50
    refresh_seconds: int = 30


_OPTIONAL_STRINGS = ("profile", "region")
_POSITIVE_INTS = ("page_size", "refresh_seconds")


def default_config_dir(env: Mapping[str, str] | None = None) -> Path:
    env = os.environ if env is None else env
    base = env.get("XDG_CONFIG_HOME")
    if base:
        return Path(base) / APP_DIR_NAME
    return Path.home() / ".config" / APP_DIR_NAME


def resolve_initial_settings(env: Mapping[str, str], settings: AppSettings) -> AppSettings:
    """Apply environment overrides for profile and region."""

    profile = next((env[name] for name in PROFILE_ENV_VARS if env.get(name)), None)
    region = next((env[name] for name in REGION_ENV_VARS if env.get(name)), None)
    return replace(
        settings,
        profile=profile or settings.profile,
        region=region or settings.region,
    )


def _validate(data: object) -> AppSettings:
    if not isinstance(data, dict):
        raise SettingsValidationError("Settings must be a JSON object")
    unknown = sorted(set(data) - set(_OPTIONAL_STRINGS) - set(_POSITIVE_INTS))
    if unknown:
        raise SettingsValidationError(f"Unknown setting(s): {', '.join(unknown)}")
    values: dict[str, object] = {}
    for name in _OPTIONAL_STRINGS:
        value = data.get(name)
        if value is None:
            continue
        if not isinstance(value, str) or not value:
            raise SettingsValidationError(f"'{name}' must be a non-empty string")
        values[name] = value
    for name in _POSITIVE_INTS:
        if name not in data:
            continue
        value = data[name]
        # bool is an int subclass; reject it explicitly.
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise SettingsValidationError(f"'{name}' must be a positive integer")
        values[name] = value
    return AppSettings(**values)


class SettingsStorage:
    """JSON-backed persistence for :class:`AppSettings`."""

    def __init__(self, storage_path: str | Path | None = None):
        if storage_path is None:
            storage_path = default_config_dir() / "config.json"
        self._path = Path(storage_path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> AppSettings:
        """Read the settings file.

        A missing file yields the defaults; anything unreadable or invalid
        raises :class:`SettingsValidationError`.
        """

        if not self._path.exists():
            return AppSettings()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise SettingsValidationError(f"{self._path}: invalid JSON ({exc})") from exc
        except OSError as exc:
            raise SettingsValidationError(f"{self._path}: {exc}") from exc
        try:
            return _validate(data)
        except SettingsValidationError as exc:
            raise SettingsValidationError(f"{self._path}: {exc}") from exc

    def save(self, settings: AppSettings) -> None:
        payload = asdict(settings)
        payload["page_size"] = max(int(settings.page_size), 1)
        payload["refresh_seconds"] = max(int(settings.refresh_seconds), 1)
        payload = {name: value for name, value in payload.items() if value is not None}
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError:
            # Persist best-effort; ignore filesystem issues.
            return
