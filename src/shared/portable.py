"""Helpers for locating application data in portable and installed modes."""

import os
import sys
from pathlib import Path

from shared.constants import APP_DIR_NAME


def is_portable_mode() -> bool:
    """
    Detect whether the application runs in portable mode.

    Portable mode is on when the executable name contains '_portable',
    e.g. TileRoutes_portable.exe.

    Returns:
        bool: True in portable mode, otherwise False

    """
    exe_name = Path(sys.argv[0]).name.lower()
    return '_portable' in exe_name


def get_app_dir() -> Path:
    """Directory of the running executable/script."""
    return Path(sys.argv[0]).resolve().parent


def get_user_config_dir() -> Path:
    """
    Per-user configuration directory.

    Portable mode keeps everything beside the executable; otherwise
    %APPDATA%/<app> is used, falling back to ~/.config/<app> when
    APPDATA is not set.
    """
    if is_portable_mode():
        return get_app_dir()
    appdata = os.getenv('APPDATA')
    base = Path(appdata) if appdata else Path.home() / '.config'
    return base / APP_DIR_NAME


def get_portable_path(subdir: str) -> Path:
    """
    Path of a data sub-directory ('configs', 'logs', 'maps').

    Args:
        subdir: Sub-directory name

    Returns:
        Path: Full path under the user config directory

    """
    return get_user_config_dir() / subdir
