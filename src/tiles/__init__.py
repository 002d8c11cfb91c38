"""Tile image caching.

This module provides:
- TileCache: in-memory cache of decoded base and relief tiles
- ImageReclaimer: background thread tracking collected tile images
- tile_path / decode_tile: tile file layout and decoding
"""

from shared.constants import TileKind
from tiles.cache import CacheStats, TileCache
from tiles.loader import TileDecodeError, decode_tile, tile_path
from tiles.reclaimer import ImageReclaimer

__all__ = [
    'CacheStats',
    'ImageReclaimer',
    'TileCache',
    'TileDecodeError',
    'TileKind',
    'decode_tile',
    'tile_path',
]
