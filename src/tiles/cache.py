"""In-memory cache of decoded map tile images.

This module provides TileCache class that loads base and relief tiles of
the active map from disk, keeps them behind weak references and prefetches
them on a background thread pool.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from shared.constants import (
    MAPS_DIR,
    TILE_CACHE_LOW_MEMORY_MB,
    TILE_CACHE_MAX_RESIDENT,
    TILE_PREFETCH_WORKERS,
    TILE_RECLAIM_POLL_INTERVAL_S,
    TileKind,
)
from tiles.loader import TileDecodeError, decode_tile, tile_exists, tile_path
from tiles.reclaimer import ImageReclaimer

if TYPE_CHECKING:
    import weakref

    from PIL import Image

    from domain.models import DisplaySettings

logger = logging.getLogger(__name__)


@dataclass
class CacheStats:
    """Statistics about the tile cache."""

    entries: int
    resident: int
    pending: int
    live_images: int
    hits: int
    misses: int
    decodes: int


class TileCache:
    """Cache of decoded tile images keyed by tile file path.

    Features:
    - One entry per tile path; entries hold weak references
    - Bounded set of most recently used tiles kept strongly referenced
    - Background prefetch; get() waits for an in-flight load of the same tile
    - Reclaimer thread dropping collected entries and trimming under
      memory pressure
    - set_map_directory() invalidates every entry

    Usage:
        cache = TileCache(maps_root='maps', map_dir='world')
        cache.prefetch_base_tile(3, 4)
        image = cache.get_base_tile(3, 4)  # None if the file does not exist
        cache.close()
    """

    def __init__(
        self,
        maps_root: str | Path = MAPS_DIR,
        map_dir: str | None = None,
        *,
        max_resident: int = TILE_CACHE_MAX_RESIDENT,
        prefetch_workers: int = TILE_PREFETCH_WORKERS,
        low_memory_threshold_mb: int = TILE_CACHE_LOW_MEMORY_MB,
        reclaim_poll_interval: float = TILE_RECLAIM_POLL_INTERVAL_S,
    ) -> None:
        """Initialize tile cache.

        Args:
            maps_root: Directory holding map asset folders.
            map_dir: Active map folder under maps_root. Until it is set
                every tile is reported missing.
            max_resident: Number of recently used tiles kept alive by the
                cache itself.
            prefetch_workers: Threads used by prefetch().
            low_memory_threshold_mb: Available memory below which resident
                tiles are released. 0 disables the check.
            reclaim_poll_interval: Seconds between memory checks.
        """
        self.maps_root = Path(maps_root)
        self._map_dir = map_dir
        self.max_resident = max_resident
        self._lock = threading.Lock()
        self._entries: dict[str, weakref.ref[Image.Image]] = {}
        self._resident: OrderedDict[str, Image.Image] = OrderedDict()
        self._pending: dict[str, Future[Image.Image | None]] = {}
        self._hits = 0
        self._misses = 0
        self._decodes = 0
        self._closed = False
        self._executor = ThreadPoolExecutor(
            max_workers=prefetch_workers,
            thread_name_prefix='tile-prefetch',
        )
        self._reclaimer = ImageReclaimer(
            on_reclaimed=self._on_reclaimed,
            on_memory_pressure=self.trim_resident,
            low_memory_threshold_mb=low_memory_threshold_mb,
            poll_interval=reclaim_poll_interval,
        )
        self._reclaimer.start()
        logger.info('TileCache initialized at %s (map: %s)', self.maps_root, map_dir)

    @classmethod
    def from_settings(cls, settings: DisplaySettings, map_dir: str | None = None) -> TileCache:
        """Build a cache tuned by DisplaySettings."""
        return cls(
            maps_root=settings.maps_root,
            map_dir=map_dir,
            max_resident=settings.max_resident_tiles,
            prefetch_workers=settings.prefetch_workers,
            low_memory_threshold_mb=settings.low_memory_threshold_mb,
        )

    @property
    def map_dir(self) -> str | None:
        return self._map_dir

    def set_map_directory(self, map_dir: str) -> None:
        """Switch to another map and drop every cached tile.

        Images already handed out stay valid for their holders. Loads in
        flight are not cancelled; they finish under their old key.
        """
        with self._lock:
            self._map_dir = map_dir
            dropped = self._drop_all_locked()
        logger.info('Map directory set to %s, %d cached tiles dropped', map_dir, dropped)

    def clear(self) -> int:
        """Drop every cached tile, returning how many entries were dropped."""
        with self._lock:
            return self._drop_all_locked()

    def tile_key(self, kind: TileKind, x: int, y: int) -> str | None:
        """Cache key (tile file path) of a tile, None if no map is active."""
        path = self._tile_path(kind, x, y)
        return str(path) if path is not None else None

    def get(self, kind: TileKind, x: int, y: int) -> Image.Image | None:
        """Get a decoded tile, loading it on this thread if needed.

        Blocks while a prefetch or another thread is loading the same tile.

        Args:
            kind: Base or relief tile.
            x: Tile X grid coordinate.
            y: Tile Y grid coordinate.

        Returns:
            Tile image, or None if the tile file does not exist.

        Raises:
            TileDecodeError: The tile file could not be decoded.
        """
        path = self._tile_path(kind, x, y)
        if path is None:
            return None
        key = str(path)

        with self._lock:
            image = self._lookup_locked(key)
            if image is not None:
                self._hits += 1
                return image
            self._misses += 1
            future = self._pending.get(key)
            owner = future is None
            if owner:
                if not tile_exists(path):
                    return None
                future = Future()
                self._pending[key] = future

        if owner:
            return self._load(key, path, kind, future)
        return future.result()

    def prefetch(self, kind: TileKind, x: int, y: int) -> None:
        """Start loading a tile in the background; returns immediately.

        No-op if the tile is cached, already loading or missing on disk.
        """
        path = self._tile_path(kind, x, y)
        if path is None:
            return
        key = str(path)

        with self._lock:
            if self._closed or key in self._pending:
                return
            if self._lookup_locked(key) is not None:
                return
            if not tile_exists(path):
                return
            future: Future[Image.Image | None] = Future()
            self._pending[key] = future

        try:
            self._executor.submit(self._prefetch_task, key, path, kind, future)
        except RuntimeError as e:
            # Executor shut down by a concurrent close()
            with self._lock:
                self._pending.pop(key, None)
            future.set_exception(e)

    def get_base_tile(self, x: int, y: int) -> Image.Image | None:
        return self.get(TileKind.BASE, x, y)

    def get_relief_tile(self, x: int, y: int) -> Image.Image | None:
        return self.get(TileKind.RELIEF, x, y)

    def prefetch_base_tile(self, x: int, y: int) -> None:
        self.prefetch(TileKind.BASE, x, y)

    def prefetch_relief_tile(self, x: int, y: int) -> None:
        self.prefetch(TileKind.RELIEF, x, y)

    def trim_resident(self) -> int:
        """Release strong references to resident tiles.

        Tiles nobody else holds become collectable; their entries are
        dropped by the reclaimer once collected.

        Returns:
            Number of resident tiles released.
        """
        with self._lock:
            released = len(self._resident)
            self._resident.clear()
        return released

    def stats(self) -> CacheStats:
        """Get a snapshot of cache statistics."""
        with self._lock:
            return CacheStats(
                entries=len(self._entries),
                resident=len(self._resident),
                pending=len(self._pending),
                live_images=self._reclaimer.live_count,
                hits=self._hits,
                misses=self._misses,
                decodes=self._decodes,
            )

    def close(self) -> None:
        """Wait for prefetches, stop the reclaimer and drop all tiles."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._executor.shutdown(wait=True)
        self._reclaimer.stop()
        self.clear()
        logger.info('TileCache closed')

    def _tile_path(self, kind: TileKind, x: int, y: int) -> Path | None:
        map_dir = self._map_dir
        if map_dir is None:
            return None
        return tile_path(self.maps_root, map_dir, kind, x, y)

    def _lookup_locked(self, key: str) -> Image.Image | None:
        """Return a live cached image and mark it most recently used."""
        ref = self._entries.get(key)
        if ref is None:
            return None
        image = ref()
        if image is None:
            # Collected, reclaimer notification not processed yet
            del self._entries[key]
            self._reclaimer.release([ref])
            return None
        self._make_resident_locked(key, image)
        return image

    def _make_resident_locked(self, key: str, image: Image.Image) -> None:
        if self.max_resident <= 0:
            return
        self._resident[key] = image
        self._resident.move_to_end(key)
        while len(self._resident) > self.max_resident:
            self._resident.popitem(last=False)

    def _store_locked(self, key: str, image: Image.Image) -> None:
        old = self._entries.get(key)
        if old is not None:
            self._reclaimer.release([old])
        self._entries[key] = self._reclaimer.track(key, image)
        self._make_resident_locked(key, image)

    def _drop_all_locked(self) -> int:
        refs = list(self._entries.values())
        self._entries.clear()
        self._resident.clear()
        self._reclaimer.release(refs)
        return len(refs)

    def _load(
        self,
        key: str,
        path: Path,
        kind: TileKind,
        future: Future[Image.Image | None],
    ) -> Image.Image | None:
        """Decode a tile, store it and resolve the in-flight future.

        A file removed after the existence check counts as a missing tile.
        """
        try:
            image = decode_tile(path, kind)
        except FileNotFoundError:
            with self._lock:
                self._pending.pop(key, None)
            future.set_result(None)
            return None
        except Exception as e:
            with self._lock:
                self._pending.pop(key, None)
            future.set_exception(e)
            raise

        with self._lock:
            self._store_locked(key, image)
            self._pending.pop(key, None)
            self._decodes += 1
        future.set_result(image)
        return image

    def _prefetch_task(
        self,
        key: str,
        path: Path,
        kind: TileKind,
        future: Future[Image.Image | None],
    ) -> None:
        try:
            self._load(key, path, kind, future)
        except Exception:
            logger.exception('Prefetch failed for tile %s', key)

    def _on_reclaimed(self, key: str, ref: weakref.ref) -> None:
        with self._lock:
            if self._entries.get(key) is ref:
                del self._entries[key]

    def __enter__(self) -> TileCache:
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()


__all__ = ['CacheStats', 'TileCache', 'TileDecodeError', 'TileKind']
