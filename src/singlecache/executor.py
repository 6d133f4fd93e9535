"""
Thread pool for asynchronous originations.

``Group.do_chan`` runs each newly created call off the caller's path on a
worker thread. Groups share one lazily created global pool unless they
are given their own executor.
"""

import atexit
import concurrent.futures
import logging
import threading

from .config import GroupConfig
from .constants import THREAD_POOL_PREFIX

logger = logging.getLogger(__name__)

_thread_pool: concurrent.futures.ThreadPoolExecutor | None = None
_thread_pool_lock = threading.Lock()


def get_thread_pool() -> concurrent.futures.ThreadPoolExecutor:
    """Get or create the global thread pool.

    Pool size comes from ``GroupConfig.resolve_max_workers()``.

    Returns:
        Global ThreadPoolExecutor instance
    """
    global _thread_pool

    with _thread_pool_lock:
        if _thread_pool is None:
            max_workers = GroupConfig.resolve_max_workers()
            _thread_pool = concurrent.futures.ThreadPoolExecutor(
                max_workers=max_workers, thread_name_prefix=THREAD_POOL_PREFIX
            )
            logger.debug(f"Created ThreadPoolExecutor with {max_workers} workers")

        return _thread_pool


def shutdown_thread_pool(wait: bool = True) -> None:
    """Shutdown the global thread pool.

    The next call to ``get_thread_pool()`` creates a fresh pool.
    """
    global _thread_pool

    with _thread_pool_lock:
        pool, _thread_pool = _thread_pool, None

    if pool is not None:
        logger.debug("Shutting down ThreadPoolExecutor")
        pool.shutdown(wait=wait)


atexit.register(shutdown_thread_pool)

