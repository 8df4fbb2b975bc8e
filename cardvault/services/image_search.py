from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

import requests
from requests.adapters import HTTPAdapter, Retry

from ..config.loader import ImageSearchConfig

"""Card image search.

Fallback chain, stopping at the first non-empty result:
1. image-search proxy, detailed card query
2. image-search proxy, simplified query
3. eBay Browse API, detailed query

Every HTTP call has an explicit timeout and one retry. Provider failures
are logged and recorded in debug_info; search never raises for "no
results" or provider errors.
"""

__all__ = [
    "CardSearchParams",
    "ImageSearchResult",
    "ImageSearchError",
    "build_card_query",
    "build_fallback_query",
    "OmniSearchProvider",
    "EbayBrowseProvider",
    "ImageSearchService",
]

logger = logging.getLogger(__name__)

USER_AGENT = "cardvault-image-search/0.3"
EBAY_SCOPE = "https://api.ebay.com/oauth/api_scope"
EBAY_QUERY_SUFFIX = "sports card"
TOKEN_EXPIRY_MARGIN_SECONDS = 300


class ImageSearchError(Exception):
    """Provider level failure (HTTP error, bad payload, missing credentials)."""


@dataclass(frozen=True)
class CardSearchParams:
    player_name: str
    season: str
    card_number: str
    brand_name: str | None = None
    series_name: str | None = None
    insert_name: str | None = None
    parallel_name: str | None = None
    autograph: bool = False
    numbered: bool = False
    numbered_of: int | None = None


@dataclass
class ImageSearchResult:
    image_urls: list[str] = field(default_factory=list)
    debug_info: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"imageUrls": self.image_urls, "debugInfo": self.debug_info}


def build_card_query(params: CardSearchParams) -> str:
    """e.g. '2012-13 Panini Prizm LeBron James Silver #1 /99 Auto'"""
    parts = [params.season]
    if params.brand_name:
        parts.append(params.brand_name)
    if params.series_name:
        parts.append(params.series_name)
    parts.append(params.player_name)
    if params.insert_name:
        parts.append(params.insert_name)
    if params.parallel_name and params.parallel_name != "Base":
        parts.append(params.parallel_name)
    parts.append(f"#{params.card_number}")
    if params.numbered and params.numbered_of:
        parts.append(f"/{params.numbered_of}")
    if params.autograph:
        parts.append("Auto")
    return " ".join(p for p in parts if p)


def build_fallback_query(params: CardSearchParams) -> str:
    parts = [params.season]
    if params.brand_name:
        parts.append(params.brand_name)
    if params.series_name:
        parts.append(params.series_name)
    parts.append(params.player_name)
    parts.append(f"#{params.card_number}")
    return " ".join(p for p in parts if p)


def _session() -> requests.Session:
    s = requests.Session()
    retries = Retry(
        total=1,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset({"GET", "POST"}),
    )
    s.mount("https://", HTTPAdapter(max_retries=retries))
    s.mount("http://", HTTPAdapter(max_retries=retries))
    s.headers.update({"User-Agent": USER_AGENT})
    return s


class OmniSearchProvider:
    """Generic image-search proxy: POST {api_url}/omni_search."""

    name = "omni_search"

    def __init__(self, config: ImageSearchConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self.session = session or _session()

    @property
    def configured(self) -> bool:
        return bool(self.config.api_url and self.config.api_key)

    def search(self, query: str) -> list[str]:
        if not self.configured:
            raise ImageSearchError("image search proxy not configured")
        url = f"{self.config.api_url.rstrip('/')}/omni_search"  # type: ignore[union-attr]
        try:
            r = self.session.post(
                url,
                json={"queries": [query], "search_type": "image"},
                headers={"Authorization": f"Bearer {self.config.api_key}"},
                timeout=self.config.timeout_seconds,
            )
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as e:
            raise ImageSearchError(f"omni_search failed: {e}") from e

        urls: list[str] = []
        results = data.get("results") if isinstance(data, dict) else None
        if isinstance(results, list):
            for item in results[: self.config.max_results]:
                if isinstance(item, dict) and item.get("url"):
                    urls.append(item["url"])
        return urls


class EbayBrowseProvider:
    """eBay Browse API item_summary search with a cached client-credentials token."""

    name = "ebay"

    def __init__(self, config: ImageSearchConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self.session = session or _session()
        self._token: str | None = None
        self._token_expiry: float = 0.0

    @property
    def configured(self) -> bool:
        return bool(self.config.ebay_app_id and self.config.ebay_cert_id)

    @property
    def base_url(self) -> str:
        # SBX app ids are sandbox keysets
        if self.config.ebay_app_id and "SBX" in self.config.ebay_app_id:
            return "https://api.sandbox.ebay.com"
        return "https://api.ebay.com"

    def _get_token(self) -> str:
        if self._token and time.time() < self._token_expiry:
            return self._token
        if not self.configured:
            raise ImageSearchError("eBay API credentials not configured")
        try:
            r = self.session.post(
                f"{self.base_url}/identity/v1/oauth2/token",
                auth=(self.config.ebay_app_id, self.config.ebay_cert_id),  # type: ignore[arg-type]
                data={"grant_type": "client_credentials", "scope": EBAY_SCOPE},
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.config.timeout_seconds,
            )
            r.raise_for_status()
            payload = r.json()
            token = payload["access_token"]
            expires_in = int(payload.get("expires_in", 7200))
        except (requests.RequestException, ValueError, KeyError) as e:
            raise ImageSearchError(f"eBay token request failed: {e}") from e
        self._token = token
        self._token_expiry = time.time() + max(expires_in - TOKEN_EXPIRY_MARGIN_SECONDS, 0)
        return token

    def search(self, query: str) -> list[str]:
        token = self._get_token()
        full_query = f"{query} {EBAY_QUERY_SUFFIX}"
        logger.debug("eBay search q=%r", full_query)
        try:
            r = self.session.get(
                f"{self.base_url}/buy/browse/v1/item_summary/search",
                params={"q": full_query, "limit": self.config.max_results, "fieldgroups": "MATCHING_ITEMS"},
                headers={
                    "Authorization": f"Bearer {token}",
                    "X-EBAY-C-MARKETPLACE-ID": self.config.ebay_marketplace,
                },
                timeout=self.config.timeout_seconds,
            )
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as e:
            raise ImageSearchError(f"eBay search failed: {e}") from e

        if not isinstance(data, dict):
            raise ImageSearchError(f"eBay search returned {type(data).__name__}, expected an object")
        summaries = data.get("itemSummaries") or []
        if not isinstance(summaries, list):
            raise ImageSearchError("eBay search: itemSummaries is not a list")

        urls: list[str] = []
        for item in summaries:
            if not isinstance(item, dict):
                continue
            images = [item.get("image")] + list(item.get("additionalImages") or [])
            for image in images:
                if isinstance(image, dict) and image.get("imageUrl"):
                    urls.append(image["imageUrl"])
            if len(urls) >= self.config.max_results:
                break
        return urls[: self.config.max_results]


class ImageSearchService:
    def __init__(
        self,
        config: ImageSearchConfig,
        primary: Any | None = None,
        secondary: Any | None = None,
    ) -> None:
        self.config = config
        session = None if primary and secondary else _session()
        self.primary = primary or OmniSearchProvider(config, session)
        self.secondary = secondary or EbayBrowseProvider(config, session)

    def _attempt(self, provider: Any, query: str, stage: str, debug: dict[str, Any]) -> list[str]:
        entry: dict[str, Any] = {"stage": stage, "provider": provider.name, "query": query}
        try:
            urls = provider.search(query)
        except ImageSearchError as e:
            logger.warning("image search stage=%s provider=%s failed: %s", stage, provider.name, e)
            entry["error"] = str(e)
            urls = []
        entry["results"] = len(urls)
        debug["attempts"].append(entry)
        return urls[: self.config.max_results]

    def _run_chain(self, stages: list[tuple[Any, str, str]]) -> ImageSearchResult:
        debug: dict[str, Any] = {"attempts": []}
        for provider, query, stage in stages:
            urls = self._attempt(provider, query, stage, debug)
            if urls:
                debug["source"] = stage
                return ImageSearchResult(image_urls=urls, debug_info=debug)
        debug["source"] = None
        return ImageSearchResult(image_urls=[], debug_info=debug)

    def search_card(self, params: CardSearchParams) -> ImageSearchResult:
        detailed = build_card_query(params)
        simplified = build_fallback_query(params)
        stages = [(self.primary, detailed, "primary")]
        if simplified != detailed:
            stages.append((self.primary, simplified, "primary_simplified"))
        stages.append((self.secondary, detailed, "secondary"))
        return self._run_chain(stages)

    def search(self, query: str) -> ImageSearchResult:
        return self._run_chain([(self.primary, query, "primary"), (self.secondary, query, "secondary")])
