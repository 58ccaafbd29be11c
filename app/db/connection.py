import logging
import threading

import psycopg2
from psycopg2.pool import PoolError, ThreadedConnectionPool

from app import config

logger = logging.getLogger(__name__)


class BlockingConnectionPool:
    """Wraps a psycopg2 pool so getconn() waits for a free connection.

    ThreadedConnectionPool raises PoolError as soon as maxconn connections
    are checked out. Here callers block on a semaphore sized to maxconn and
    only fail after waiting `timeout` seconds (None waits forever).
    """

    def __init__(self, db_pool, maxconn: int, timeout: float = None):
        self._pool = db_pool
        self._slots = threading.BoundedSemaphore(maxconn)
        self._timeout = timeout
        self.minconn = getattr(db_pool, "minconn", 0)
        self.maxconn = maxconn

    def getconn(self):
        if not self._slots.acquire(timeout=self._timeout):
            raise PoolError(
                f"timed out after {self._timeout}s waiting for a database connection"
            )
        try:
            return self._pool.getconn()
        except BaseException:
            self._slots.release()
            raise

    def putconn(self, conn, close: bool = False):
        try:
            self._pool.putconn(conn, close=close)
        finally:
            self._slots.release()

    def closeall(self):
        self._pool.closeall()


def create_pool(
    dsn: str = None,
    minconn: int = None,
    maxconn: int = None,
) -> BlockingConnectionPool:
    dsn = dsn or config.DATABASE_URI
    if not dsn:
        raise RuntimeError("DATABASE_URI is not defined in environment variables")

    minconn = minconn if minconn is not None else config.DB_POOL_MIN
    maxconn = maxconn if maxconn is not None else config.DB_POOL_MAX
    try:
        db_pool = ThreadedConnectionPool(
            minconn,
            maxconn,
            dsn,
            connect_timeout=config.DB_CONNECT_TIMEOUT,
        )
    except psycopg2.Error as e:
        logger.error("Database connection error: %s", e)
        raise

    logger.info("Database pool ready (min=%s, max=%s)", minconn, maxconn)
    return BlockingConnectionPool(db_pool, maxconn, timeout=config.DB_POOL_TIMEOUT)
