"""Background reclamation of cached tile images.

The cache keeps tile images behind weak references. When the garbage
collector frees an image its weak reference callback posts the cache key to
a queue; the ImageReclaimer thread drains that queue, keeps a live-image
count for diagnostics and tells the cache to drop the dead entry.

Between notifications the thread polls available system memory and asks
the cache to release its resident (strongly referenced) tiles when memory
runs low, so unused tiles become collectable.
"""

from __future__ import annotations

import logging
import queue
import threading
import weakref
from typing import TYPE_CHECKING

from shared.constants import (
    TILE_CACHE_SHUTDOWN_TIMEOUT_S,
    TILE_RECLAIM_POLL_INTERVAL_S,
)
from shared.diagnostics import get_available_memory_mb

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from PIL import Image

logger = logging.getLogger(__name__)


class ImageReclaimer:
    """Daemon thread tracking weakly referenced tile images.

    Usage:
        reclaimer = ImageReclaimer(on_reclaimed=cache_drop_entry)
        reclaimer.start()
        ref = reclaimer.track(key, image)
        ...
        reclaimer.stop()
    """

    def __init__(
        self,
        on_reclaimed: Callable[[str, weakref.ref], None] | None = None,
        on_memory_pressure: Callable[[], int] | None = None,
        low_memory_threshold_mb: int = 0,
        poll_interval: float = TILE_RECLAIM_POLL_INTERVAL_S,
    ) -> None:
        """Initialize reclaimer.

        Args:
            on_reclaimed: Called from the reclaimer thread with (key, ref)
                after the image behind ref has been collected.
            on_memory_pressure: Called when available memory drops below
                low_memory_threshold_mb; returns the number of tiles released.
            low_memory_threshold_mb: Memory threshold, 0 disables checks.
            poll_interval: Seconds between memory checks.
        """
        self._on_reclaimed = on_reclaimed
        self._on_memory_pressure = on_memory_pressure
        self.low_memory_threshold_mb = low_memory_threshold_mb
        self.poll_interval = poll_interval
        # SimpleQueue.put is safe to call from weakref callbacks
        self._queue: queue.SimpleQueue[tuple[str, weakref.ref] | None] = queue.SimpleQueue()
        # Keyed by id(): PIL images are unhashable, so are weak references to them
        self._live: dict[int, weakref.ref] = {}
        self._live_lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._running = False
        self._stats_reclaimed = 0
        self._stats_trims = 0

    def start(self) -> None:
        """Start the background reclaimer thread."""
        if self._running:
            return
        self._running = True
        self._thread = threading.Thread(
            target=self._reclaim_loop,
            name='Tile Image Reclaimer',
            daemon=True,
        )
        self._thread.start()
        logger.debug('ImageReclaimer started')

    def stop(self, timeout: float = TILE_CACHE_SHUTDOWN_TIMEOUT_S) -> None:
        """Stop the thread after draining pending notifications."""
        if not self._running:
            return
        self._running = False
        self._queue.put(None)
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning('ImageReclaimer thread did not stop within timeout')
        logger.debug(
            'ImageReclaimer stopped: %d images reclaimed, %d memory trims',
            self._stats_reclaimed,
            self._stats_trims,
        )

    def is_running(self) -> bool:
        return self._running and self._thread is not None and self._thread.is_alive()

    def track(self, key: str, image: Image.Image) -> weakref.ref:
        """Return a weak reference to image that reports its collection."""
        queue_ = self._queue

        def _collected(ref: weakref.ref, key: str = key) -> None:
            queue_.put((key, ref))

        ref = weakref.ref(image, _collected)
        with self._live_lock:
            self._live[id(ref)] = ref
            count = len(self._live)
        logger.debug('Added tile image %s. Image count: %d', key, count)
        return ref

    def release(self, refs: Iterable[weakref.ref]) -> None:
        """Stop tracking refs dropped by the cache (clear or replace)."""
        with self._live_lock:
            for ref in refs:
                if self._live.get(id(ref)) is ref:
                    del self._live[id(ref)]
            count = len(self._live)
        logger.debug('Released tile images. Image count: %d', count)

    @property
    def live_count(self) -> int:
        with self._live_lock:
            return len(self._live)

    @property
    def stats(self) -> dict:
        """Get reclaimer statistics."""
        return {
            'live': self.live_count,
            'reclaimed': self._stats_reclaimed,
            'trims': self._stats_trims,
            'running': self.is_running(),
        }

    def check_memory(self) -> int:
        """Trim the cache if available memory is below the threshold.

        Returns:
            Number of resident tiles released.
        """
        if self.low_memory_threshold_mb <= 0 or self._on_memory_pressure is None:
            return 0
        available = get_available_memory_mb()
        if available is None or available >= self.low_memory_threshold_mb:
            return 0
        released = self._on_memory_pressure()
        self._stats_trims += 1
        logger.info(
            'Low memory (%.0f MB available < %d MB): released %d resident tiles',
            available,
            self.low_memory_threshold_mb,
            released,
        )
        return released

    def _reclaim_loop(self) -> None:
        """Background thread loop that processes collection notifications."""
        while True:
            try:
                item = self._queue.get(timeout=self.poll_interval)
            except queue.Empty:
                if not self._running:
                    break
                try:
                    self.check_memory()
                except Exception:
                    logger.exception('Memory pressure check failed')
                continue

            # None signals shutdown
            if item is None:
                break

            key, ref = item
            with self._live_lock:
                if self._live.get(id(ref)) is not ref:
                    # Already released by the cache
                    continue
                del self._live[id(ref)]
                count = len(self._live)
            self._stats_reclaimed += 1
            logger.debug('Removed reclaimed tile image %s. Image count: %d', key, count)

            if self._on_reclaimed is not None:
                try:
                    self._on_reclaimed(key, ref)
                except Exception:
                    logger.exception('Error dropping reclaimed tile %s', key)
