"""
NCBI E-utilities client.

Two entry points:
  1. search        : esearch → elink → esummary chain over the NCBI history
                     server, returning normalized summary records
  2. fetch_detail  : efetch of one PMC document, returning its abstract
                     sections (fetch_details fans out over many ids)

The chain is strictly sequential: each step consumes the WebEnv/query_key
issued by the step before it. Detail fetches are independent of each other
and of the chain.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pubminer.config import Settings
from pubminer.constants import (
    DEFAULT_CACHE_DIR,
    DEFAULT_DETAIL_CONCURRENCY,
    DEFAULT_SUMMARY_PAGE_SIZE,
    DETAIL_DB,
    EFETCH_URL,
    ELINK_URL,
    ESEARCH_URL,
    ESUMMARY_URL,
    EUTILS_RPS_WITH_KEY,
    LINK_DB,
    LINK_DBFROM,
    LINK_NAME,
    LINKED_ID_TYPE,
    SEARCH_DB,
    SEARCH_FILTER,
    SUMMARY_DB,
)
from pubminer.data_sources.base_client import (
    BaseClient,
    ClientConfig,
    DataSourceError,
    RateLimitConfig,
    RequestContext,
    RetryConfig,
)
from pubminer.helpers.abstract_helpers import extract_abstract
from pubminer.helpers.document_helpers import (
    extract_link_environment,
    extract_search_result,
    extract_summary_items,
)
from pubminer.helpers.error_helpers import (
    classify_error,
    error_response,
    is_empty_query,
    search_error_response,
)
from pubminer.models.model_eutils import (
    AbstractSections,
    ErrorResponse,
    LinkEnvironment,
    SearchContext,
    SearchErrorResponse,
    SearchResultSet,
    SummaryItem,
)
from pubminer.utils.cache import AbstractCache

logger = logging.getLogger(__name__)


def build_search_term(term: str, search_filter: str = SEARCH_FILTER) -> str:
    """Combine the user's term with the fixed domain filter."""
    return f"({search_filter}) AND ({term})"


class EUtilsClient(BaseClient):
    """Client for the PubMed → PMC E-utilities query chain."""

    def __init__(
        self,
        api_key: str | None = None,
        page_size: int = DEFAULT_SUMMARY_PAGE_SIZE,
        detail_concurrency: int = DEFAULT_DETAIL_CONCURRENCY,
        cache_dir: Path | None = None,
        config: ClientConfig | None = None,
    ) -> None:
        super().__init__(config)
        self.api_key = api_key or None
        self.page_size = page_size
        self.detail_concurrency = detail_concurrency
        self.cache_dir = cache_dir
        self.cache = AbstractCache(cache_dir, db=DETAIL_DB) if cache_dir else None

    @classmethod
    def from_settings(cls, settings: Settings) -> EUtilsClient:
        rps = settings.requests_per_second
        if settings.eutils_api_key:
            rps = max(rps, EUTILS_RPS_WITH_KEY)
        config = ClientConfig(
            retry=RetryConfig(max_retries=settings.max_retries),
            rate_limit=RateLimitConfig(requests_per_second=rps, burst=int(rps)),
            timeout_seconds=settings.request_timeout,
        )
        return cls(
            api_key=settings.eutils_api_key,
            page_size=settings.summary_page_size,
            detail_concurrency=settings.detail_concurrency,
            cache_dir=DEFAULT_CACHE_DIR if settings.cache_enabled else None,
            config=config,
        )

    @property
    def _source_name(self) -> str:
        return "eutils"

    def _params(self, **params: Any) -> dict[str, Any]:
        """Request parameters with the API key, when configured, appended last."""
        if self.api_key:
            params["api_key"] = self.api_key
        return params

    def _context(self, method: str, record_id: str | None = None) -> RequestContext:
        return RequestContext(
            source=self._source_name, method=method, record_id=record_id
        )

    # ------------------------------------------------------------------
    # Public: search
    # ------------------------------------------------------------------

    async def search(self, term: str | None) -> SearchResultSet:
        """Run the esearch → elink → esummary chain for ``term``.

        A blank term returns an empty result without contacting NCBI. Any
        failure aborts the whole chain with a classified DataSourceError.
        """
        if is_empty_query(term):
            logger.info("Empty search term; returning empty result set")
            return SearchResultSet.empty()

        search_context = await self._esearch(term)
        link_env = await self._elink(search_context)
        items = await self._esummary(link_env)

        return SearchResultSet(
            search_term=search_context.search_term,
            items_found=search_context.items_found,
            items_returned=search_context.items_returned,
            items=items,
        )

    async def search_or_error(
        self, term: str | None
    ) -> SearchResultSet | SearchErrorResponse:
        """Like search(), but a classified failure becomes a SearchErrorResponse."""
        try:
            return await self.search(term)
        except DataSourceError as e:
            logger.error("search failed for %r: %s", term, e)
            return search_error_response(term or "", e)

    async def _esearch(self, term: str) -> SearchContext:
        params = self._params(
            db=SEARCH_DB,
            term=build_search_term(term),
            retmode="json",
            usehistory="y",
        )
        try:
            data = await self._rest_get(
                ESEARCH_URL, params, context=self._context("esearch")
            )
            return extract_search_result(data, term)
        except (KeyError, TypeError, ValueError) as e:
            raise classify_error(e, step="search") from e

    async def _elink(self, search_context: SearchContext) -> LinkEnvironment:
        params = self._params(
            db=LINK_DB,
            dbfrom=LINK_DBFROM,
            linkname=LINK_NAME,
            query_key=search_context.query_key,
            WebEnv=search_context.web_env,
            cmd="neighbor_history",
            retmode="json",
        )
        try:
            data = await self._rest_get(
                ELINK_URL, params, context=self._context("elink")
            )
            return extract_link_environment(data, search_context.query_key)
        except (KeyError, TypeError, ValueError) as e:
            raise classify_error(e, step="link") from e

    async def _esummary(self, link_env: LinkEnvironment) -> list[SummaryItem]:
        params = self._params(
            db=SUMMARY_DB,
            query_key=link_env.query_key,
            WebEnv=link_env.web_env,
            retmode="json",
            retmax=self.page_size,
        )
        try:
            data = await self._rest_get(
                ESUMMARY_URL, params, context=self._context("esummary")
            )
            return extract_summary_items(data, LINKED_ID_TYPE)
        except (KeyError, TypeError, ValueError) as e:
            raise classify_error(e, step="summary") from e

    # ------------------------------------------------------------------
    # Public: fetch_detail / fetch_details
    # ------------------------------------------------------------------

    async def fetch_detail(self, pmcid: str) -> AbstractSections:
        """Fetch one PMC document and return its abstract sections.

        Raises a classified DataSourceError on failure. No retry happens here
        beyond what the transport does.
        """
        if self.cache is not None:
            cached = self.cache.get(pmcid)
            if cached is not None:
                return cached

        params = self._params(db=DETAIL_DB, id=pmcid, retmode="xml")
        logger.info("fetching details for %s", pmcid)
        try:
            xml_text = await self._rest_get_xml(
                EFETCH_URL, params, context=self._context("efetch", pmcid)
            )
            sections = extract_abstract(xml_text, record_id=pmcid)
        except (KeyError, TypeError, ValueError) as e:
            raise classify_error(e, step="detail", record_id=pmcid) from e

        if self.cache is not None:
            self.cache.put(pmcid, sections)
        return sections

    async def fetch_details(
        self, pmcids: Iterable[str], concurrency: int | None = None
    ) -> dict[str, AbstractSections | ErrorResponse]:
        """Fetch many documents concurrently, isolating failures per id.

        At most ``concurrency`` fetches are in flight at once. A failed id
        maps to an ErrorResponse; the other ids are unaffected. Keys follow
        the input order.
        """
        ids = list(dict.fromkeys(pmcids))
        semaphore = asyncio.Semaphore(concurrency or self.detail_concurrency)

        async def _one(pmcid: str) -> AbstractSections | ErrorResponse:
            async with semaphore:
                try:
                    return await self.fetch_detail(pmcid)
                except DataSourceError as e:
                    logger.warning("error fetching details for %s: %s", pmcid, e)
                    return error_response(e, record_id=pmcid)

        results = await asyncio.gather(*(_one(pmcid) for pmcid in ids))
        return dict(zip(ids, results))
