"""Solver settings manager - load/save SolverSettings as a JSON file."""

import json
import logging
from pathlib import Path
from typing import Optional

from simulation.settings import SolverSettings

logger = logging.getLogger(__name__)


class SettingsManager:
    """Manages the user's solver settings.

    Settings are stored as JSON in a user-writable file. A missing or
    unreadable file falls back to the defaults.
    """

    def __init__(self, settings_file: Optional[Path] = None):
        if settings_file is None:
            settings_file = self._default_settings_path()
        self._settings_file = Path(settings_file)
        self._settings = SolverSettings()
        self._load()

    @staticmethod
    def _default_settings_path() -> Path:
        """Return the default path for the settings file."""
        return Path.home() / ".mesh-nodal" / "settings.json"

    # --- Public API ---

    @property
    def settings(self) -> SolverSettings:
        return self._settings

    @property
    def settings_file(self) -> Path:
        return self._settings_file

    def update(self, **changes) -> SolverSettings:
        """Change one or more settings and persist them.

        Raises ValueError for unknown names or invalid values; nothing is
        saved in that case.
        """
        data = self._settings.to_dict()
        unknown = set(changes) - set(data)
        if unknown:
            raise ValueError(f"Unknown setting(s): {', '.join(sorted(unknown))}")
        data.update(changes)
        self._settings = SolverSettings.from_dict(data)
        self._save()
        return self._settings

    def reset(self) -> SolverSettings:
        """Restore the defaults and persist them."""
        self._settings = SolverSettings()
        self._save()
        return self._settings

    # --- Persistence ---

    def _load(self):
        """Load settings from disk."""
        if not self._settings_file.exists():
            return
        try:
            data = json.loads(self._settings_file.read_text())
            self._settings = SolverSettings.from_dict(data)
        except (json.JSONDecodeError, OSError, AttributeError, TypeError, ValueError) as e:
            logger.warning("Failed to load settings from %s: %s", self._settings_file, e)
            self._settings = SolverSettings()

    def _save(self):
        """Write settings to disk."""
        try:
            self._settings_file.parent.mkdir(parents=True, exist_ok=True)
            self._settings_file.write_text(json.dumps(self._settings.to_dict(), indent=2))
        except OSError as e:
            logger.error("Failed to save settings to %s: %s", self._settings_file, e)
