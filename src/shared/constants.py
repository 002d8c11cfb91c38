from enum import Enum

# --- Map assets layout
# Root directory holding one sub-directory per map
MAPS_DIR = 'maps'

# Sub-directory of a map holding base (terrain) tiles
BASE_TILES_DIR = 'baseTiles'

# Sub-directory of a map holding relief (shading) overlay tiles
RELIEF_TILES_DIR = 'reliefTiles'

# Tile file name template, filled with grid coordinates
TILE_FILE_TEMPLATE = '{x}_{y}.png'


class TileKind(str, Enum):
    """Kind of a map tile; the value is its directory under the map."""

    BASE = BASE_TILES_DIR
    RELIEF = RELIEF_TILES_DIR

    @property
    def transparent(self) -> bool:
        # Relief tiles are drawn over base tiles and keep their alpha channel
        return self is TileKind.RELIEF

    @property
    def image_mode(self) -> str:
        return 'RGBA' if self.transparent else 'RGB'


# --- Tile cache
# Number of most recently used tiles kept strongly referenced
TILE_CACHE_MAX_RESIDENT = 256

# Worker threads used for background tile prefetch
TILE_PREFETCH_WORKERS = 4

# Available system memory (MB) below which the resident set is trimmed
# (0 disables memory-pressure trims)
TILE_CACHE_LOW_MEMORY_MB = 256

# Interval between memory-pressure checks of the reclaimer thread (s)
TILE_RECLAIM_POLL_INTERVAL_S = 2.0

# Timeout for joining background threads on close (s)
TILE_CACHE_SHUTDOWN_TIMEOUT_S = 5.0

# --- Display preferences
# Relief overlay is hidden until the user switches it on
SHOW_RELIEF_IMAGES_DEFAULT = False

# Application folder name under the user config directory
APP_DIR_NAME = 'TileRoutes'

# Preferences file name
SETTINGS_FILE_NAME = 'settings.toml'

# --- Logging
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_FILE_NAME = 'tileroutes.log'
