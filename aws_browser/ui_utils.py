from __future__ import annotations
"""UI-agnostic helpers for formatting and path completion."""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from importlib.metadata import PackageNotFoundError, metadata, version
import os
from pathlib import Path
from typing import Optional

DIST_NAME = "pyawsb"
MAX_PATH_SUGGESTIONS = 6

PALETTE = {
    "accent": "cyan",
    "muted": "grey50",
    "success": "green",
    "warning": "yellow",
    "danger": "red",
    "info": "blue",
}


@dataclass(frozen=True)
class PackageInfo:
    name: str
    version: str
    summary: str
    homepage: str | None
    repository: str | None
    author: str | None


def load_package_info(dist_name: str = DIST_NAME) -> PackageInfo:
    try:
        distribution_metadata = metadata(dist_name)
        package_version = version(dist_name)
    except PackageNotFoundError:
        return PackageInfo(
            name="AWS Browser",
            version="",
            summary="Browse EC2 instances, S3 buckets and costs from the terminal.",
            homepage=None,
            repository=None,
            author=None,
        )
    summary = distribution_metadata.get("Summary") or ""
    author = distribution_metadata.get("Author") or distribution_metadata.get("Author-email")
    homepage = distribution_metadata.get("Home-page")
    repository = None
    for entry in distribution_metadata.get_all("Project-URL") or []:
        label, _, link = entry.partition(",")
        label = label.strip().lower()
        url = link.strip()
        if label == "repository":
            repository = url
        elif label == "homepage" and not homepage:
            homepage = url
    return PackageInfo(
        name=distribution_metadata.get("Name"),
        version=package_version,
        summary=summary,
        homepage=homepage or None,
        repository=repository,
        author=author or None,
    )


def format_size(size: int | None) -> str:
    if size is None:
        return "n/a"
    suffixes = ["B", "KB", "MB", "GB", "TB"]
    value = float(max(size, 0))
    for suffix in suffixes:
        if value < 1024 or suffix == suffixes[-1]:
            return f"{value:.1f} {suffix}" if suffix != "B" else f"{int(value)} {suffix}"
        value /= 1024
    return f"{size} B"


def format_timestamp(value: object) -> str:
    if not value:
        return "n/a"
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S %Z").strip() or value.isoformat()
    try:
        return value.strftime("%Y-%m-%d %H:%M:%S %Z").strip() or str(value)
    except AttributeError:
        return str(value)


def format_amount(amount: Decimal, unit: str) -> str:
    return f"{amount:.2f} {unit}"


def format_percent(percent: float | None) -> str:
    if percent is None:
        return ""
    return f"{percent:.1f}%"


def format_status_checks(instance_status: str | None, system_status: str | None) -> str:
    return f"{instance_status or 'unknown'}/{system_status or 'unknown'}"


def instance_state_style(state: str | None) -> Optional[str]:
    normalized = (state or "").lower()
    if normalized == "running":
        return PALETTE["success"]
    if normalized in {"stopped", "shutting-down", "terminated"}:
        return PALETTE["danger"]
    if normalized in {"pending", "stopping"}:
        return PALETTE["warning"]
    return None


def status_check_style(status: str | None) -> Optional[str]:
    first = (status or "").split("/", 1)[0].lower()
    if first == "ok":
        return PALETTE["success"]
    if first in {"impaired", "insufficient-data"}:
        return PALETTE["warning"]
    if first == "failed":
        return PALETTE["danger"]
    return None


def relative_name(path: str, prefix: str) -> str:
    """Strip the browsed prefix from an object key or folder prefix."""

    if prefix and path.startswith(prefix):
        return path[len(prefix):] or "/"
    return path or "/"


def expand_home(path: str) -> str:
    if path.startswith("~"):
        return str(Path.home()) + path[1:]
    return path


def collapse_home(path: str) -> str:
    home = str(Path.home())
    if path.startswith(home):
        return "~" + path[len(home):]
    return path


def default_download_path(bucket: str, key: str) -> str:
    return collapse_home(os.path.join(str(Path.home()), "Downloads", bucket, key))


def suggest_paths(value: str, limit: int = MAX_PATH_SUGGESTIONS) -> list[str]:
    """Return local paths completing ``value``; directories end with a separator."""

    if not value:
        return []
    expanded = expand_home(value)
    if value.endswith(os.sep):
        directory, partial = expanded, ""
    else:
        directory, partial = os.path.dirname(expanded), os.path.basename(expanded)
    try:
        with os.scandir(directory or ".") as iterator:
            entries = sorted(iterator, key=lambda entry: entry.name)
    except OSError:
        return []
    suggestions: list[str] = []
    for entry in entries:
        if not entry.name.startswith(partial):
            continue
        suffix = os.sep if entry.is_dir() else ""
        suggestions.append(os.path.join(directory, entry.name) + suffix)
        if len(suggestions) >= limit:
            break
    return suggestions
