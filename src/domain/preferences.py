"""TOML-backed storage of display preferences.

The relief-tile toggle used to be a process-wide flag; it lives here as a
field of DisplaySettings with explicit load/save.
"""

from __future__ import annotations

import logging
from pathlib import Path

import tomlkit

from domain.models import DisplaySettings
from shared.constants import SETTINGS_FILE_NAME
from shared.portable import get_portable_path

logger = logging.getLogger(__name__)


def _default_settings_path() -> Path:
    """
    Determine the settings file location.

    1) If <project_root>/configs exists, use it (run-from-repo setups).
    2) Otherwise use the per-user configs directory.
    """
    project_root = Path(__file__).resolve().parent.parent.parent
    local_configs = project_root / 'configs'
    if local_configs.exists():
        return local_configs / SETTINGS_FILE_NAME
    return get_portable_path('configs') / SETTINGS_FILE_NAME


class PreferencesStore:
    """Loads and saves DisplaySettings in a TOML file.

    Usage:
        store = PreferencesStore()
        settings = store.load()
        store.set_show_relief_images(True)
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else _default_settings_path()

    def load(self) -> DisplaySettings:
        """Read settings; a missing file yields defaults.

        Raises:
            tomlkit.exceptions.ParseError: The file is not valid TOML.
            pydantic.ValidationError: A value is out of range.
        """
        if not self.path.exists():
            logger.info('Settings file not found, using defaults: %s', self.path)
            return DisplaySettings()
        text = self.path.read_text(encoding='utf-8')
        data = tomlkit.parse(text)
        settings = DisplaySettings.model_validate(data.unwrap())
        logger.info(
            'Settings loaded from %s: show_relief_images=%s',
            self.path,
            settings.show_relief_images,
        )
        return settings

    def save(self, settings: DisplaySettings) -> Path:
        """Write settings to TOML and return the file path."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        text = tomlkit.dumps(settings.model_dump())
        self.path.write_text(text, encoding='utf-8')
        logger.debug('Settings saved to %s', self.path)
        return self.path

    def show_relief_images(self) -> bool:
        return self.load().show_relief_images

    def set_show_relief_images(self, value: bool) -> DisplaySettings:
        """Persist the relief toggle, keeping the other settings."""
        settings = self.load().model_copy(update={'show_relief_images': bool(value)})
        self.save(settings)
        return settings
