"""
HTTP row source.

Fetches module and import rows from a JSON API:

    GET {base_url}/modules[?packageId=...]
    GET {base_url}/imports[?packageId=...]

Both endpoints return a JSON array of row objects.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from ..exceptions import LoadError
from ..rows import ImportRow, ModuleRow
from .base import RowSource

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class HttpRowSource(RowSource):
    """Rows served by an HTTP API. Blocking; the loader runs it off the event loop."""

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _get_rows(self, endpoint: str, package_id: Optional[str]) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/{endpoint}"
        params = {"packageId": package_id} if package_id is not None else None
        try:
            resp = requests.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise LoadError(url, str(e)) from e

        if not resp.ok:
            raise LoadError(url, f"HTTP {resp.status_code}")

        payload = resp.json()
        if not isinstance(payload, list):
            raise LoadError(url, "expected a JSON array of rows")
        logger.debug(f"Fetched {len(payload)} rows from {url}")
        return payload

    def fetch_modules(self, package_id: Optional[str] = None) -> List[ModuleRow]:
        return self._get_rows("modules", package_id)  # type: ignore[return-value]

    def fetch_imports(self, package_id: Optional[str] = None) -> List[ImportRow]:
        return self._get_rows("imports", package_id)  # type: ignore[return-value]

    def describe(self) -> str:
        return self.base_url
