"""
openFDA HTTP client.
Sources:
  - Animal & Veterinary Adverse Events: https://open.fda.gov/apis/animalandveterinary/event/
  - Enforcement Reports (recalls): https://open.fda.gov/apis/food/enforcement/
Authority: U.S. Food and Drug Administration (FDA)
Rate limit: 40 requests/minute without API key, 240/min with key.
"""

import logging
import threading
import time
from typing import Optional
from urllib.parse import quote, urlencode

import requests

from petcheck.config import Config
from petcheck.services.cache_service import CacheStore
from petcheck.utils.api import ERROR_CODES, ExternalServiceError
from petcheck.utils.normalization import create_cache_key

logger = logging.getLogger("petcheck.openfda")

ADVERSE_EVENTS_ENDPOINT = "/animalandveterinary/event.json"
ENFORCEMENT_ENDPOINT = "/food/enforcement.json"

MAX_LIMIT = 1000
MAX_SKIP = 25000

# openFDA reads "+" in the search parameter as a space, so it stays unencoded
_SEARCH_SAFE = '+:"()[]\\*'


def _empty_result(limit: Optional[int], skip: Optional[int]) -> dict:
    return {"meta": {"results": {"skip": skip or 0, "limit": limit or 0, "total": 0}}, "results": []}


class OpenFDAClient:
    """Rate-limited, cached GET access to api.fda.gov."""

    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None,
                 timeout: Optional[int] = None, delay: Optional[float] = None,
                 cache: Optional[CacheStore] = None, session: Optional[requests.Session] = None):
        self.base_url = (base_url or Config.OPENFDA_BASE_URL).rstrip("/")
        self.api_key = Config.OPENFDA_API_KEY if api_key is None else api_key
        self.timeout = timeout or Config.OPENFDA_TIMEOUT
        self.delay = Config.OPENFDA_DELAY if delay is None else delay
        self.cache = cache
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        self._lock = threading.Lock()
        self._last_request = 0.0

    # ── query building ───────────────────────────────────

    def build_params(self, search: Optional[str] = None, count: Optional[str] = None,
                     limit: Optional[int] = None, skip: Optional[int] = None,
                     include_key: bool = True) -> dict:
        params = {}
        if search:
            params["search"] = search
        if count:
            params["count"] = count
        if limit is not None:
            params["limit"] = min(int(limit), MAX_LIMIT)
        if skip is not None:
            params["skip"] = min(int(skip), MAX_SKIP)
        if include_key and self.api_key:
            params["api_key"] = self.api_key
        return params

    @staticmethod
    def _encode(params: dict) -> str:
        parts = []
        for key, value in params.items():
            if key == "search":
                parts.append(f"search={quote(str(value), safe=_SEARCH_SAFE)}")
            else:
                parts.append(urlencode({key: value}))
        return "&".join(parts)

    def build_query_url(self, endpoint: str, search: Optional[str] = None, count: Optional[str] = None,
                        limit: Optional[int] = None, skip: Optional[int] = None) -> str:
        """Public URL for a query, without the API key."""
        params = self.build_params(search, count, limit, skip, include_key=False)
        query = self._encode(params)
        return f"{self.base_url}{endpoint}?{query}" if query else f"{self.base_url}{endpoint}"

    # ── transport ────────────────────────────────────────

    def _wait_for_slot(self) -> None:
        with self._lock:
            wait = self._last_request + self.delay - time.monotonic()
            if wait > 0:
                time.sleep(wait)
            self._last_request = time.monotonic()

    def get(self, endpoint: str, search: Optional[str] = None, count: Optional[str] = None,
            limit: Optional[int] = None, skip: Optional[int] = None) -> dict:
        """Uncached request. 404 (no matches) yields an empty result."""
        params = self.build_params(search, count, limit, skip)
        url = f"{self.base_url}{endpoint}?{self._encode(params)}"
        self._wait_for_slot()
        logger.debug("openFDA GET %s", self.build_query_url(endpoint, search, count, limit, skip))
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.Timeout as exc:
            logger.error("openFDA request timed out: %s", exc)
            raise ExternalServiceError(
                "openFDA request timed out", code=ERROR_CODES["OPENFDA_TIMEOUT"], status_code=504
            ) from exc
        except requests.RequestException as exc:
            logger.error("openFDA request failed: %s", exc)
            raise ExternalServiceError(f"openFDA request failed: {exc}") from exc

        if resp.status_code == 200:
            try:
                return resp.json()
            except ValueError as exc:
                raise ExternalServiceError("openFDA returned malformed JSON") from exc
        if resp.status_code == 404:
            return _empty_result(params.get("limit"), params.get("skip"))
        if resp.status_code == 429:
            logger.warning("openFDA rate limit exceeded")
            raise ExternalServiceError(
                "openFDA rate limit exceeded. Please try again later.",
                code=ERROR_CODES["OPENFDA_RATE_LIMITED"], status_code=503,
            )
        logger.warning("openFDA returned %s: %s", resp.status_code, resp.text[:200])
        raise ExternalServiceError(f"openFDA returned HTTP {resp.status_code}")

    def cached_get(self, endpoint: str, ttl: int, stale_ttl: int = 0, **params) -> tuple[dict, bool, bool]:
        """Return (data, cached, stale). Stale data is served when the refresh fails."""
        if self.cache is None:
            return self.get(endpoint, **params), False, False

        key = create_cache_key(f"openfda:{endpoint}", params)
        hit = self.cache.get(key)
        if hit is not None and not hit.stale:
            logger.debug("Cache hit for %s", key)
            return hit.data, True, False

        try:
            data = self.get(endpoint, **params)
        except ExternalServiceError as exc:
            if hit is not None:
                logger.warning("Serving stale openFDA data for %s after refresh failure: %s", key, exc.message)
                return hit.data, True, True
            raise

        self.cache.set(key, data, ttl=ttl, stale_ttl=stale_ttl)
        return data, False, False
