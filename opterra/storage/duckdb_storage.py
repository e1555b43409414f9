"""
DuckDB storage implementation for Opterra.

Backs the replacement price quote cache and the seeding job manifests with
a local DuckDB file.

Key features:
- Thread-safe per-thread connections
- Automatic schema creation
- Upsert semantics for quotes (one row per quote key)
- Structured logging and ``StorageError`` on every failure
"""

import json
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import duckdb
import structlog

from opterra.models.pricing import PriceQuote
from opterra.models.system import SeedRunManifest

from .base import StorageBackend

logger = structlog.get_logger(__name__)


class StorageError(Exception):
    """Base exception for all storage operation failures."""

    pass


_QUOTE_COLUMNS = """
    quote_key, retail_price, wholesale_price, manufacturer, model_number, tier,
    fuel_type, capacity_gallons, confidence, source, fetched_at
"""


class DuckDBStorage(StorageBackend):
    """
    DuckDB implementation of the storage backend.

    Attributes:
        db_path: Path to the DuckDB database file
        _local: Thread-local storage for per-thread connections
        _lock: Thread lock for schema operations
        _initialized: Flag tracking whether schema is initialized
    """

    def __init__(self, db_path: str = "./data/opterra.duckdb"):
        """
        Initialize DuckDB storage backend.

        Args:
            db_path: Path to DuckDB database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._local = threading.local()
        self._lock = threading.Lock()
        self._initialized = False

        logger.info("duckdb_storage_initialized", db_path=str(self.db_path))

        self._initialize_schema()

    @contextmanager
    def _get_connection(self):
        """
        Get a thread-local DuckDB connection.

        Yields:
            DuckDB connection instance

        Raises:
            StorageError: If connection cannot be established
        """
        if not hasattr(self._local, "connection"):
            try:
                self._local.connection = duckdb.connect(str(self.db_path))
                logger.debug("duckdb_connection_created", thread_id=threading.get_ident())
            except Exception as e:
                logger.error("duckdb_connection_failed", error=str(e))
                raise StorageError(f"Failed to connect to DuckDB: {e}") from e

        yield self._local.connection

    def _initialize_schema(self):
        """
        Create tables. Idempotent.

        Raises:
            StorageError: If schema creation fails
        """
        if self._initialized:
            return

        with self._lock:
            if self._initialized:
                return

            try:
                with self._get_connection() as conn:
                    conn.execute(
                        """
                        CREATE TABLE IF NOT EXISTS price_quotes (
                            quote_key VARCHAR PRIMARY KEY,
                            retail_price DOUBLE NOT NULL,
                            wholesale_price DOUBLE,
                            manufacturer VARCHAR,
                            model_number VARCHAR,
                            tier VARCHAR NOT NULL,
                            fuel_type VARCHAR NOT NULL,
                            capacity_gallons DOUBLE NOT NULL,
                            confidence DOUBLE NOT NULL,
                            source VARCHAR NOT NULL,
                            fetched_at TIMESTAMP NOT NULL
                        )
                        """
                    )
                    conn.execute(
                        """
                        CREATE TABLE IF NOT EXISTS seed_runs (
                            run_id VARCHAR PRIMARY KEY,
                            started_at TIMESTAMP NOT NULL,
                            completed_at TIMESTAMP,
                            models_attempted INTEGER NOT NULL,
                            models_succeeded INTEGER NOT NULL,
                            errors JSON,
                            status VARCHAR NOT NULL
                        )
                        """
                    )
                    conn.commit()
                    logger.info("duckdb_schema_initialized")
                    self._initialized = True

            except Exception as e:
                logger.error("duckdb_schema_initialization_failed", error=str(e))
                raise StorageError(f"Failed to initialize schema: {e}") from e

    # =========================================================================
    # Price Quotes
    # =========================================================================

    @staticmethod
    def _row_to_quote(row) -> PriceQuote:
        return PriceQuote(
            quote_key=row[0],
            retail_price=row[1],
            wholesale_price=row[2],
            manufacturer=row[3],
            model_number=row[4],
            tier=row[5],
            fuel_type=row[6],
            capacity_gallons=row[7],
            confidence=row[8],
            source=row[9],
            fetched_at=row[10],
        )

    def write_price_quote(self, quote: PriceQuote) -> str:
        """Insert or replace a price quote."""
        try:
            with self._get_connection() as conn:
                conn.execute(
                    f"""
                    INSERT OR REPLACE INTO price_quotes ({_QUOTE_COLUMNS})
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        quote.quote_key,
                        quote.retail_price,
                        quote.wholesale_price,
                        quote.manufacturer,
                        quote.model_number,
                        quote.tier.value,
                        quote.fuel_type,
                        quote.capacity_gallons,
                        quote.confidence,
                        quote.source,
                        quote.fetched_at,
                    ],
                )
                conn.commit()
                logger.info("price_quote_written", quote_key=quote.quote_key)
                return quote.quote_key

        except Exception as e:
            logger.error("write_price_quote_failed", quote_key=quote.quote_key, error=str(e))
            raise StorageError(f"Failed to write price quote: {e}") from e

    def read_price_quote(self, quote_key: str) -> Optional[PriceQuote]:
        """Read a cached quote by key."""
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    f"SELECT {_QUOTE_COLUMNS} FROM price_quotes WHERE quote_key = ? LIMIT 1",
                    [quote_key],
                ).fetchone()

                if not row:
                    return None

                logger.debug("price_quote_read", quote_key=quote_key)
                return self._row_to_quote(row)

        except Exception as e:
            logger.error("read_price_quote_failed", quote_key=quote_key, error=str(e))
            raise StorageError(f"Failed to read price quote: {e}") from e

    def read_price_quotes(self, limit: int = 100) -> list[PriceQuote]:
        """Read the most recently fetched quotes."""
        try:
            with self._get_connection() as conn:
                rows = conn.execute(
                    f"SELECT {_QUOTE_COLUMNS} FROM price_quotes ORDER BY fetched_at DESC LIMIT ?",
                    [limit],
                ).fetchall()

                quotes = [self._row_to_quote(row) for row in rows]
                logger.debug("price_quotes_read", count=len(quotes))
                return quotes

        except Exception as e:
            logger.error("read_price_quotes_failed", error=str(e))
            raise StorageError(f"Failed to read price quotes: {e}") from e

    def count_price_quotes(self) -> int:
        try:
            with self._get_connection() as conn:
                return conn.execute("SELECT COUNT(*) FROM price_quotes").fetchone()[0]
        except Exception as e:
            logger.error("count_price_quotes_failed", error=str(e))
            raise StorageError(f"Failed to count price quotes: {e}") from e

    # =========================================================================
    # Seeding Job Manifests
    # =========================================================================

    def write_seed_run(self, manifest: SeedRunManifest) -> str:
        """Record the outcome of one price seeding run."""
        try:
            with self._get_connection() as conn:
                conn.execute(
                    """
                    INSERT OR REPLACE INTO seed_runs (
                        run_id, started_at, completed_at, models_attempted,
                        models_succeeded, errors, status
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        manifest.run_id,
                        manifest.started_at,
                        manifest.completed_at,
                        manifest.models_attempted,
                        manifest.models_succeeded,
                        json.dumps(manifest.errors),
                        manifest.status,
                    ],
                )
                conn.commit()
                logger.info("seed_run_written", run_id=manifest.run_id, status=manifest.status)
                return manifest.run_id

        except Exception as e:
            logger.error("write_seed_run_failed", error=str(e))
            raise StorageError(f"Failed to write seed run: {e}") from e

    def read_seed_run(self, run_id: str) -> Optional[SeedRunManifest]:
        """Read a seeding run manifest by ID."""
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    """
                    SELECT run_id, started_at, completed_at, models_attempted,
                           models_succeeded, errors, status
                    FROM seed_runs
                    WHERE run_id = ?
                    LIMIT 1
                    """,
                    [run_id],
                ).fetchone()

                if not row:
                    return None

                return SeedRunManifest(
                    run_id=row[0],
                    started_at=row[1],
                    completed_at=row[2],
                    models_attempted=row[3],
                    models_succeeded=row[4],
                    errors=json.loads(row[5]) if row[5] else {},
                    status=row[6],
                )

        except Exception as e:
            logger.error("read_seed_run_failed", run_id=run_id, error=str(e))
            raise StorageError(f"Failed to read seed run: {e}") from e
