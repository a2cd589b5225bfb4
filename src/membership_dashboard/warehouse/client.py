"""Async wrapper around the BigQuery client.

google-cloud-bigquery is synchronous; each job runs in a worker thread so the
independent dashboard queries can be awaited together with asyncio.gather.
"""
import asyncio
import logging
from typing import Any, Sequence

from google.cloud import bigquery

from ..exceptions import DashboardError


logger = logging.getLogger(__name__)


class WarehouseClient:
    """Read-only query access to the MemberPress and GA4 datasets."""

    def __init__(
        self,
        client: bigquery.Client,
        project_id: str,
        subscriptions_dataset: str,
        ga4_dataset: str,
        max_concurrent_queries: int = 8,
    ) -> None:
        """Initialize warehouse client.

        Args:
            client: BigQuery client
            project_id: GCP project holding both datasets
            subscriptions_dataset: Dataset with the MemberPress export
            ga4_dataset: GA4 export dataset (events_YYYYMMDD shards)
            max_concurrent_queries: Upper bound on in-flight query jobs
        """
        self._client = client
        self.project_id = project_id
        self.subscriptions_dataset = subscriptions_dataset
        self.ga4_dataset = ga4_dataset

        self._semaphore = asyncio.Semaphore(max_concurrent_queries)
        self._pending: set[asyncio.Future] = set()
        self._closed = False

    @classmethod
    def from_config(cls, config) -> "WarehouseClient":
        """Create a client for a DashboardConfig."""
        client = bigquery.Client(project=config.project_id, location=config.location)
        return cls(
            client=client,
            project_id=config.project_id,
            subscriptions_dataset=config.subscriptions_dataset,
            ga4_dataset=config.ga4_dataset,
            max_concurrent_queries=config.max_concurrent_queries,
        )

    @property
    def subscriptions_table(self) -> str:
        return f"`{self.project_id}.{self.subscriptions_dataset}.Mepr_Subscriptions`"

    @property
    def ga4_events_table(self) -> str:
        return f"`{self.project_id}.{self.ga4_dataset}.events_*`"

    def _run(
        self, sql: str, params: Sequence[bigquery.ScalarQueryParameter]
    ) -> list[dict[str, Any]]:
        job_config = bigquery.QueryJobConfig(query_parameters=list(params))
        rows = self._client.query(sql, job_config=job_config).result()
        return [dict(row.items()) for row in rows]

    async def query(
        self,
        sql: str,
        params: Sequence[bigquery.ScalarQueryParameter] = (),
        label: str = "query",
    ) -> list[dict[str, Any]]:
        """Run a query and return its rows as dicts.

        Args:
            sql: Standard SQL text
            params: Named query parameters
            label: Short name used in logs

        Returns:
            List of row dicts (empty when nothing matched)
        """
        async with self._semaphore:
            if self._closed:
                raise DashboardError(f"Warehouse client closed before {label} ran")
            logger.debug("Running %s", label)
            job = asyncio.ensure_future(asyncio.to_thread(self._run, sql, params))
            self._pending.add(job)
            job.add_done_callback(self._pending.discard)
            rows = await job

        logger.debug("%s returned %s rows", label, len(rows))
        return rows

    async def aclose(self) -> None:
        """Close the client once in-flight jobs finish.

        Queries still waiting for a slot are refused.
        """
        self._closed = True
        while self._pending:
            logger.debug("Waiting for %s in-flight queries", len(self._pending))
            await asyncio.gather(*self._pending, return_exceptions=True)
        self._client.close()
