"""Domain layer - map geometry and display settings."""
from domain.models import DisplaySettings, MapGeometry
from domain.preferences import PreferencesStore

__all__ = [
    'DisplaySettings',
    'MapGeometry',
    'PreferencesStore',
]
