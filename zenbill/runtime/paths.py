"""Centralized path management for zenbill.

All configuration lookups go through a single ProjectPaths instance so the
CLI and the settings loader agree on where files live.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def _get_project_root() -> Path:
    """Project root: ZENBILL_HOME if set, otherwise the working directory."""
    home = os.environ.get("ZENBILL_HOME")
    if home:
        return Path(home).expanduser()
    return Path.cwd()


@dataclass
class ProjectPaths:
    """Container for project-related paths."""

    root: Path = field(default_factory=_get_project_root)

    def __post_init__(self) -> None:
        self.root = self.root.resolve()

    @property
    def config(self) -> Path:
        """Configuration directory (config/)."""
        return self.root / "config"

    @property
    def settings(self) -> Path:
        """Billing settings TOML file.

        ZENBILL_CONFIG overrides the default location.
        """
        override = os.environ.get("ZENBILL_CONFIG")
        if override:
            return Path(override).expanduser()
        return self.config / "zenbill.toml"


_paths: ProjectPaths | None = None


def get_paths() -> ProjectPaths:
    """Get the singleton ProjectPaths instance."""
    global _paths
    if _paths is None:
        _paths = ProjectPaths()
    return _paths


def reset_paths() -> None:
    """Drop the cached ProjectPaths so the next call re-reads the environment."""
    global _paths
    _paths = None
