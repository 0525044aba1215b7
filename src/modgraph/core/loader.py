"""
Cancellable graph loading.

Row fetches are the only suspension points in the engine. GraphLoader runs
the blocking row source on a worker thread and checks a CancellationToken
around every fetch, so a superseded build resolves to Aborted instead of
racing a stale graph into the shared view.
"""

import asyncio
import logging
from typing import Hashable, Optional

from ..config import GraphSettings
from .cache import TTLCache
from .exceptions import LoadError
from .graph import CanonicalGraph, build_canonical_graph
from .result import Aborted, Err, LoadOutcome, Ok
from .storage.base import RowSource

logger = logging.getLogger(__name__)

_ALL_PACKAGES = "*"


class BuildCancelled(Exception):
    """Raised inside a load when its token has been cancelled."""


class CancellationToken:
    """A one-shot cancellation flag shared between a caller and a load."""

    def __init__(self) -> None:
        self._cancelled = False
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "superseded") -> None:
        if not self._cancelled:
            self._cancelled = True
            self.reason = reason

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise BuildCancelled(self.reason or "cancelled")


class GraphLoader:
    """
    Fetches rows from a RowSource and builds the canonical graph.

    Built graphs are cached per package filter when a cache is supplied;
    cached graphs are immutable and safe to share.
    """

    def __init__(self, source: RowSource, cache: Optional[TTLCache] = None):
        self.source = source
        self.cache = cache

    @classmethod
    def from_settings(cls, source: RowSource, settings: GraphSettings) -> "GraphLoader":
        """A loader whose cache honors the configured TTL."""
        return cls(source, cache=TTLCache(max_age=settings.cache_ttl_seconds))

    def _cache_key(self, package_id: Optional[str]) -> Hashable:
        return package_id if package_id is not None else _ALL_PACKAGES

    async def load(
        self,
        package_id: Optional[str] = None,
        token: Optional[CancellationToken] = None,
    ) -> LoadOutcome[CanonicalGraph, LoadError]:
        """
        Load the canonical graph, optionally for a single package.

        Returns:
            Ok(graph), Err(LoadError) when the source fails, or Aborted when
            the token was cancelled before the build completed.
        """
        token = token or CancellationToken()
        key = self._cache_key(package_id)

        try:
            token.raise_if_cancelled()
            if self.cache is not None:
                cached = self.cache.get(key)
                if cached is not None:
                    logger.debug(f"Graph cache hit for {key!r}")
                    return Ok(cached)

            module_rows = await asyncio.to_thread(self.source.fetch_modules, package_id)
            token.raise_if_cancelled()
            import_rows = await asyncio.to_thread(self.source.fetch_imports, package_id)
            token.raise_if_cancelled()

            graph = build_canonical_graph(module_rows, import_rows, package_id)
            token.raise_if_cancelled()
        except (BuildCancelled, asyncio.CancelledError) as e:
            reason = token.reason or str(e) or "cancelled"
            logger.debug(f"Graph load aborted for {key!r}: {reason}")
            return Aborted(reason)
        except LoadError as e:
            return Err(e)
        except Exception as e:
            logger.warning(f"Graph load failed for {key!r}: {e}")
            return Err(LoadError(self.source.describe(), str(e)))

        if self.cache is not None:
            self.cache.set(key, graph)
        return Ok(graph)


class GraphSession:
    """
    Shared view state holding the current canonical graph.

    Each refresh cancels the build it supersedes; only a build whose token
    is still live when it finishes is committed.
    """

    def __init__(self, loader: GraphLoader):
        self.loader = loader
        self.graph: Optional[CanonicalGraph] = None
        self.last_error: Optional[LoadError] = None
        self._token: Optional[CancellationToken] = None

    def cancel(self) -> None:
        if self._token is not None:
            self._token.cancel()

    async def refresh(self, package_id: Optional[str] = None) -> LoadOutcome[CanonicalGraph, LoadError]:
        self.cancel()
        token = CancellationToken()
        self._token = token

        outcome = await self.loader.load(package_id, token)
        if token.cancelled:
            return outcome if outcome.is_aborted() else Aborted(token.reason or "superseded")

        if isinstance(outcome, Ok):
            self.graph = outcome.value
            self.last_error = None
        elif isinstance(outcome, Err):
            self.last_error = outcome.error
        return outcome
