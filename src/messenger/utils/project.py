from pathlib import Path
from importlib import metadata as importlib_metadata
from typing import Any
import tomllib

# Name on the package index; used when no pyproject.toml is reachable (wheel installs)
DISTRIBUTION_NAME = "messenger-conversations"

# --------------------
# Find pyproject.toml
# --------------------


def find_pyproject(start: Path, max_up: int = 5) -> Path | None:
    p = start
    for _ in range(max_up):
        candidate = p / "pyproject.toml"
        if candidate.exists():
            return candidate
        if p.parent == p:
            break
        p = p.parent
    return None


def get_pyproject_value(
    key: str,
    start: str | Path | None = None,
    max_up: int = 5,
    default: Any = None,
) -> Any:
    """
    Return the value for a dot-separated `key` (e.g. "project.version") from the
    nearest pyproject.toml, searching upwards from `start` (defaults to this folder).

    Returns `default` if the file isn't found, can't be parsed, or the key is missing.
    """
    start_path = Path(start).resolve() if start is not None else Path(__file__).resolve().parent

    pyproject = find_pyproject(start=start_path, max_up=max_up)
    if not pyproject or not key:
        return default

    try:
        with pyproject.open("rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        return default

    cur = data
    for part in key.split("."):
        if isinstance(cur, dict) and part in cur:
            cur = cur[part]
        else:
            return default
    return cur


def get_project_name(start: Path | str | None = None, default: str | None = None) -> str | None:
    return get_pyproject_value("project.name", start=start, default=default)


def get_project_version(
    start: Path | str | None = None,
    default: str = "unknown",
    prefer_installed: bool = True,
) -> str:
    """
    Installed distribution version when available (containers, wheels), otherwise
    project.version from pyproject.toml, otherwise `default`.

    Without a reachable pyproject.toml the installed distribution is looked up
    as `DISTRIBUTION_NAME`.
    """
    name = get_project_name(start=start, default=DISTRIBUTION_NAME)
    if prefer_installed and name:
        try:
            return importlib_metadata.version(name)
        except importlib_metadata.PackageNotFoundError:
            pass

    val = get_pyproject_value("project.version", start=start)
    return val if val is not None else default


__all__ = [
    "DISTRIBUTION_NAME",
    "find_pyproject",
    "get_pyproject_value",
    "get_project_name",
    "get_project_version",
]
