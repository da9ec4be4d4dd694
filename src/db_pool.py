"""Process-wide PostgreSQL connection pool."""

# One bounded pool per process; callers borrow connections with ``pool.connection()``.
import threading

from psycopg_pool import ConnectionPool

from db_config import get_db_conn_info, get_pool_max_size

_POOL_LOCK = threading.Lock()
_POOL = None


def init_pool(conn_info=None, max_size=None, timeout=30.0):
    """Create and open the shared connection pool.

    Opening waits for the first connection so an unreachable database fails
    at startup rather than on the first request. Waiting requests queue
    without limit once all connections are checked out. Concurrent first
    callers share a single pool.

    :param conn_info: Optional connection string; defaults to env config.
    :type conn_info: str | None
    :param max_size: Optional connection cap; defaults to ``DB_POOL_MAX``.
    :type max_size: int | None
    :param timeout: Seconds to wait for the initial connection.
    :type timeout: float
    :returns: The opened pool.
    :rtype: psycopg_pool.ConnectionPool
    :raises RuntimeError: When the pool settings in the environment are invalid.
    :raises psycopg_pool.PoolTimeout: When no connection can be established.
    """
    global _POOL  # pylint: disable=global-statement
    with _POOL_LOCK:
        if _POOL is not None:
            return _POOL
        try:
            conn_info = conn_info or get_db_conn_info()
            max_size = max_size or get_pool_max_size()
        except ValueError as exc:
            # Settings errors must not surface as ValueError, which handlers map to 400.
            raise RuntimeError(f'Invalid database pool configuration: {exc}') from exc
        pool = ConnectionPool(
            conn_info,
            min_size=1,
            max_size=max_size,
            max_waiting=0,
            open=False,
        )
        pool.open(wait=True, timeout=timeout)
        _POOL = pool
        return _POOL


def get_pool():
    """Return the shared pool, opening it on first use."""
    if _POOL is None:
        return init_pool()
    return _POOL


def close_pool():
    """Close the shared pool if it was opened."""
    global _POOL  # pylint: disable=global-statement
    with _POOL_LOCK:
        if _POOL is not None:
            _POOL.close()
            _POOL = None
