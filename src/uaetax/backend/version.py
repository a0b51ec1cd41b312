"""Resolve the project version reported by the API."""

from __future__ import annotations

import re
from functools import lru_cache
from importlib import metadata
from pathlib import Path
from typing import Final

PACKAGE_NAME: Final = "uaetax"
PYPROJECT_PATH: Final = Path(__file__).resolve().parents[3] / "pyproject.toml"

_SECTION = re.compile(r"^\[(?P<name>[^\]]+)\]\s*$")
_VERSION = re.compile(r"""^version\s*=\s*["'](?P<value>[^"']+)["']""")


@lru_cache(maxsize=1)
def get_project_version() -> str:
    """Return the installed distribution version, or the one in ``pyproject.toml``."""

    try:
        return metadata.version(PACKAGE_NAME)
    except metadata.PackageNotFoundError:
        return _read_version_from_pyproject(PYPROJECT_PATH)


def _read_version_from_pyproject(path: Path) -> str:
    if not path.exists():  # pragma: no cover - repository invariant
        raise RuntimeError(f"Unable to locate project metadata at {path}")

    section: str | None = None
    for line in path.read_text(encoding="utf-8").splitlines():
        header = _SECTION.match(line.strip())
        if header:
            section = header.group("name")
            continue
        if section != "project":
            continue
        found = _VERSION.match(line.strip())
        if found:
            return found.group("value")

    raise RuntimeError(f"No [project] version declared in {path.name}")


__all__ = ["get_project_version"]
