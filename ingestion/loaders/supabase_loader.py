"""
Load rows into Supabase through the PostgREST bulk upsert endpoint
"""

from typing import Any, Dict, List, Optional, Sequence, Union
import asyncio
import logging

import httpx
from pydantic import BaseModel

from core.config import SyncConfig
from core.exceptions import UpsertError, response_snippet

logger = logging.getLogger(__name__)

Record = Union[BaseModel, Dict[str, Any]]


class SupabaseLoader:
    """
    Load rows into Supabase with idempotent upsert operations.

    Ensures:
    - No duplicate rows on repeated runs (merge-duplicates on the conflict key)
    - Incoming rows fully replace the stored row for the same key
    - One request per chunk, chunks written strictly in order

    A failed chunk stops the load. Chunks already written stay committed,
    so a failure means "some rows updated, operation failed".
    """

    def __init__(
        self,
        config: SyncConfig,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.base_url = config.supabase_url
        self.api_key = config.supabase_key
        self.chunk_size = config.chunk_size
        self.chunk_delay = config.chunk_delay
        self.timeout = config.request_timeout
        self._client = client
        self._owns_client = client is None

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

    def headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Prefer": "resolution=merge-duplicates",
        }

    def table_url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    @staticmethod
    def _serialize(records: Sequence[Record]) -> List[Dict[str, Any]]:
        return [r.model_dump() if isinstance(r, BaseModel) else dict(r) for r in records]

    async def upsert_chunk(
        self,
        table: str,
        conflict_key: str,
        chunk: List[Dict[str, Any]],
        chunk_index: int = 0,
        records_committed: int = 0
    ) -> int:
        """
        Upsert a single chunk in one request.

        Raises:
            UpsertError: Transport failure or non-success status
        """
        context = {
            "table_name": table,
            "conflict_key": conflict_key,
            "chunk_index": chunk_index,
            "chunk_size": len(chunk),
            "records_committed": records_committed,
        }

        try:
            response = await self.client.post(
                self.table_url(table),
                params={"on_conflict": conflict_key},
                headers=self.headers(),
                json=chunk,
                timeout=self.timeout
            )
        except httpx.HTTPError as e:
            raise UpsertError(
                f"Supabase upsert request failed for {table}",
                context=context,
                original_exception=e
            )

        if not response.is_success:
            raise UpsertError(
                f"Supabase upsert error for {table}: {response.status_code}",
                context={
                    **context,
                    "status_code": response.status_code,
                    "response_body": response_snippet(response.text)
                }
            )

        return len(chunk)

    async def upsert(
        self,
        table: str,
        conflict_key: str,
        records: Sequence[Record]
    ) -> int:
        """
        Upsert records in fixed-size chunks.

        Args:
            table: Target table name
            conflict_key: Column deciding insert vs overwrite
            records: Pydantic rows or plain dicts

        Returns:
            Total number of records written
        """
        if not records:
            logger.info(f"No records to upsert for {table}")
            return 0

        rows = self._serialize(records)
        total_loaded = 0

        for index, start in enumerate(range(0, len(rows), self.chunk_size)):
            if index:
                await asyncio.sleep(self.chunk_delay)

            chunk = rows[start:start + self.chunk_size]
            total_loaded += await self.upsert_chunk(
                table, conflict_key, chunk,
                chunk_index=index,
                records_committed=total_loaded
            )
            logger.info(f"Chunk {index + 1}: Upserted {len(chunk)} records into {table}")

        return total_loaded
