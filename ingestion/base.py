"""
Abstract base class for paginated JSON-over-HTTP data sources
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional
import asyncio
import logging

import httpx

from core.exceptions import (
    APIExtractionError,
    PaginationLimitError,
    ResponseFormatError,
    response_snippet,
)

logger = logging.getLogger(__name__)


class PaginatedSource(ABC):
    """
    Abstract base class for page-numbered REST sources.

    Responsibilities:
    - HTTP client lifecycle (one AsyncClient per source, injectable)
    - Full-table pagination until an empty page is returned
    - Batched-by-id fetches through an `include` filter
    - Fixed inter-request delay toward the source API

    Failure policy: any non-success status, transport error or unparseable
    body aborts the whole extraction. Nothing is retried; a scheduler re-run
    is the recovery path.
    """

    def __init__(
        self,
        source_name: str,
        page_size: int = 100,
        page_delay: float = 0.3,
        timeout: float = 120.0,
        max_pages: int = 10_000,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.source_name = source_name
        self.page_size = page_size
        self.page_delay = page_delay
        self.timeout = timeout
        self.max_pages = max_pages
        self._client = client
        self._owns_client = client is None
        self.requests_made = 0

    @abstractmethod
    def endpoint_url(self, resource: str) -> str:
        """Absolute URL of a collection endpoint (e.g. 'orders')"""
        pass

    @abstractmethod
    def auth_params(self) -> Dict[str, str]:
        """Query parameters added to every request"""
        pass

    def auth(self) -> Optional[httpx.Auth]:
        """Request-level auth, None when credentials travel as parameters"""
        return None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self):
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    async def _get_json(
        self,
        url: str,
        params: Dict[str, Any],
        context: Dict[str, Any]
    ) -> Any:
        """
        Issue one GET and decode its JSON body.

        Raises:
            APIExtractionError: Transport failure or non-success status
            ResponseFormatError: Body is not valid JSON
        """
        context = {"source_name": self.source_name, "api_url": url, **context}
        self.requests_made += 1

        request_kwargs: Dict[str, Any] = {
            "params": {**self.auth_params(), **params},
            "timeout": self.timeout,
        }
        auth = self.auth()
        if auth is not None:
            request_kwargs["auth"] = auth

        try:
            response = await self.client.get(url, **request_kwargs)
        except httpx.HTTPError as e:
            raise APIExtractionError(
                f"Request failed for {self.source_name}",
                context=context,
                original_exception=e
            )

        if not response.is_success:
            raise APIExtractionError(
                f"HTTP {response.status_code} when fetching {self.source_name}",
                context={
                    **context,
                    "status_code": response.status_code,
                    "response_body": response_snippet(response.text)
                }
            )

        try:
            return response.json()
        except ValueError as e:
            raise ResponseFormatError(
                "Failed to parse JSON response",
                context={**context, "response_body": response_snippet(response.text)},
                original_exception=e
            )

    async def fetch_all(
        self,
        resource: str,
        params: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """
        Fetch every record of a collection, page by page.

        Pagination stops at the first page whose body is an empty list or
        not a list at all; that page contributes nothing. Source order is
        preserved within and across pages.

        Raises:
            APIExtractionError: A page request failed
            ResponseFormatError: A page body was not JSON
            PaginationLimitError: More than max_pages non-empty pages
        """
        url = self.endpoint_url(resource)
        all_records: List[Dict[str, Any]] = []
        page = 1

        while True:
            if page > self.max_pages:
                raise PaginationLimitError(
                    f"Source still returning data after {self.max_pages} pages",
                    context={
                        "source_name": self.source_name,
                        "api_url": url,
                        "max_pages": self.max_pages,
                        "records_fetched": len(all_records)
                    }
                )

            logger.info(f"Fetching {resource} page {page}")
            data = await self._get_json(
                url,
                {**(params or {}), "page": page, "per_page": self.page_size},
                {"resource": resource, "page": page}
            )

            if not isinstance(data, list) or not data:
                break

            all_records.extend(data)
            logger.debug(f"Fetched {len(data)} {resource} from page {page}")
            page += 1
            await asyncio.sleep(self.page_delay)

        logger.info(
            f"Fetched {len(all_records)} {resource} from {self.source_name} "
            f"({page - 1} non-empty pages)"
        )
        return all_records

    async def fetch_by_ids(
        self,
        resource: str,
        ids: Iterable[Any],
        batch_size: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Fetch specific records through the `include=id1,id2,...` filter.

        Ids are de-duplicated (first occurrence wins) and requested in
        fixed-size batches, one request per batch, results concatenated.
        """
        url = self.endpoint_url(resource)
        batch_size = batch_size or self.page_size
        unique_ids = list(dict.fromkeys(str(i) for i in ids))
        results: List[Dict[str, Any]] = []

        for index, start in enumerate(range(0, len(unique_ids), batch_size)):
            batch = unique_ids[start:start + batch_size]
            if index:
                await asyncio.sleep(self.page_delay)

            logger.info(f"Fetching {resource} batch {index + 1} ({len(batch)} ids)")
            data = await self._get_json(
                url,
                {"include": ",".join(batch), "per_page": len(batch)},
                {"resource": resource, "batch": index}
            )
            if not isinstance(data, list):
                raise ResponseFormatError(
                    f"Expected a list of {resource} for id batch {index + 1}",
                    context={
                        "source_name": self.source_name,
                        "api_url": url,
                        "resource": resource,
                        "batch": index,
                        "response_body": response_snippet(str(data))
                    }
                )
            results.extend(data)

        return results
