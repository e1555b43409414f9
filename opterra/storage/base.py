"""
Abstract storage interface for Opterra.

The engine itself is stateless; storage only backs the calling layer's
collaborators: the replacement price quote cache and the manifests of the
out-of-band price seeding job.
"""

from abc import ABC, abstractmethod
from typing import Optional

from opterra.models.pricing import PriceQuote
from opterra.models.system import SeedRunManifest


class StorageBackend(ABC):
    """
    Abstract base class for all storage implementations.

    Implementations must be safe for concurrent access from request threads
    and must raise ``StorageError`` for any backend failure.
    """

    # =========================================================================
    # Price Quotes
    # =========================================================================

    @abstractmethod
    def write_price_quote(self, quote: PriceQuote) -> str:
        """
        Insert or replace a price quote.

        Args:
            quote: Quote to store, keyed by ``quote.quote_key``

        Returns:
            The quote key

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def read_price_quote(self, quote_key: str) -> Optional[PriceQuote]:
        """
        Read a cached quote by key.

        Returns:
            The quote, or None if nothing is cached under that key
        """
        pass

    @abstractmethod
    def read_price_quotes(self, limit: int = 100) -> list[PriceQuote]:
        """Read the most recently fetched quotes."""
        pass

    @abstractmethod
    def count_price_quotes(self) -> int:
        """Number of cached quotes (used by health diagnostics)."""
        pass

    # =========================================================================
    # Seeding Job Manifests
    # =========================================================================

    @abstractmethod
    def write_seed_run(self, manifest: SeedRunManifest) -> str:
        """Record the outcome of one price seeding run."""
        pass

    @abstractmethod
    def read_seed_run(self, run_id: str) -> Optional[SeedRunManifest]:
        """Read a seeding run manifest by ID."""
        pass
