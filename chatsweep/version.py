from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as metadata_version


def _resolve_version() -> str:
    """Installed distribution version, or ``"unknown"`` from a bare checkout."""
    try:
        return metadata_version("chatsweep")
    except PackageNotFoundError:
        return "unknown"


__version__ = _resolve_version()

__all__ = ["__version__"]
