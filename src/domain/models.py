from pydantic import BaseModel, field_validator

from shared.constants import (
    MAPS_DIR,
    SHOW_RELIEF_IMAGES_DEFAULT,
    TILE_CACHE_LOW_MEMORY_MB,
    TILE_CACHE_MAX_RESIDENT,
    TILE_PREFETCH_WORKERS,
)


class MapGeometry(BaseModel):
    """Wrap flags and pixel size of a map, as given by its configuration."""

    model_config = {'frozen': True}

    wrap_x: bool = False
    wrap_y: bool = False
    width: int = 0
    height: int = 0

    @field_validator('width', 'height')
    @classmethod
    def validate_size(cls, v):
        v = int(v)
        if v < 0:
            msg = 'map size cannot be negative'
            raise ValueError(msg)
        return v

    @property
    def wraps(self) -> bool:
        return self.wrap_x or self.wrap_y


class DisplaySettings(BaseModel):
    """User display preferences and tile cache tuning, persisted as TOML."""

    model_config = {
        'extra': 'ignore',  # ignore fields written by other versions
    }

    # Draw relief overlay tiles above base tiles
    show_relief_images: bool = SHOW_RELIEF_IMAGES_DEFAULT

    # Root directory holding map asset folders
    maps_root: str = MAPS_DIR

    # Tiles kept strongly referenced by the cache
    max_resident_tiles: int = TILE_CACHE_MAX_RESIDENT

    # Background decode threads
    prefetch_workers: int = TILE_PREFETCH_WORKERS

    # Available memory (MB) that triggers a resident set trim, 0 disables
    low_memory_threshold_mb: int = TILE_CACHE_LOW_MEMORY_MB

    @field_validator('max_resident_tiles', 'low_memory_threshold_mb')
    @classmethod
    def validate_non_negative(cls, v):
        v = int(v)
        if v < 0:
            msg = 'value cannot be negative'
            raise ValueError(msg)
        return v

    @field_validator('prefetch_workers')
    @classmethod
    def validate_workers(cls, v):
        v = int(v)
        if v < 1:
            msg = 'prefetch_workers must be at least 1'
            raise ValueError(msg)
        return v
