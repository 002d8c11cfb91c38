"""
Tile path derivation and image decoding.

Tiles are PNG files laid out as <maps_root>/<map_dir>/<kind>/<x>_<y>.png.
Decoded images are copied into a normalized in-memory mode (RGB for base
tiles, RGBA for relief tiles) so the cache holds a plain pixel buffer
detached from the source file.
"""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image

from shared.constants import TILE_FILE_TEMPLATE, TileKind
from shared.diagnostics import Stopwatch

logger = logging.getLogger(__name__)


class TileDecodeError(RuntimeError):
    """A tile file exists but could not be read or decoded."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f'Failed to decode tile {path}: {reason}')
        self.path = path


def tile_path(maps_root: str | Path, map_dir: str, kind: TileKind, x: int, y: int) -> Path:
    """Path of the tile image for grid coordinates (x, y)."""
    return Path(maps_root) / map_dir / kind.value / TILE_FILE_TEMPLATE.format(x=x, y=y)


def tile_exists(path: Path) -> bool:
    return path.is_file()


def decode_tile(path: Path, kind: TileKind) -> Image.Image:
    """
    Decode a tile file into a normalized, fully loaded image.

    Args:
        path: Tile file path
        kind: Tile kind, selects the RGB or RGBA target mode

    Returns:
        PIL Image detached from the file

    Raises:
        FileNotFoundError: The file vanished before it could be opened
        TileDecodeError: The file is unreadable or not a valid image

    """
    with Stopwatch(logger, logging.DEBUG, 'Loading image: %s', path):
        try:
            with Image.open(path) as src:
                src.load()
                image = src.convert(kind.image_mode) if src.mode != kind.image_mode else src.copy()
        except FileNotFoundError:
            raise
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise TileDecodeError(path, str(e)) from e
    return image
