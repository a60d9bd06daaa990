"""Elasticsearch indices written by the Elasticsearch sink."""

from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

from elasticsearch import ApiError, Elasticsearch, TransportError

from ..exceptions import PollTimeoutError
from ..polling import wait_until

logger = logging.getLogger(__name__)

DEFAULT_NODE = "http://localhost:9200"
SEARCH_TRANSIENT_ERRORS = (ApiError, TransportError)


def create_elasticsearch_client(node: str = DEFAULT_NODE) -> Elasticsearch:
    return Elasticsearch(node)


class SearchStore:
    """Read and write helpers over one Elasticsearch cluster."""

    def __init__(self, client: Optional[Elasticsearch] = None, *, node: str = DEFAULT_NODE):
        self.client = client or create_elasticsearch_client(node)

    def index_exists(self, index: str) -> bool:
        return bool(self.client.indices.exists(index=index))

    def create_index(self, index: str, mappings: Optional[Dict[str, Any]] = None) -> None:
        if mappings:
            self.client.indices.create(index=index, mappings=mappings)
        else:
            self.client.indices.create(index=index)

    def delete_index(self, index: str, *, missing_ok: bool = True) -> bool:
        """Delete an index, returning False if it was already gone."""
        if missing_ok and not self.index_exists(index):
            return False
        self.client.indices.delete(index=index)
        return True

    def index_document(
        self,
        index: str,
        document: Dict[str, Any],
        doc_id: Optional[str] = None,
        *,
        refresh: bool = False,
    ) -> str:
        response = self.client.index(index=index, id=doc_id, document=document, refresh=refresh)
        return response["_id"]

    def update_document(self, index: str, doc_id: str, fields: Dict[str, Any], *, refresh: bool = False) -> None:
        self.client.update(index=index, id=doc_id, doc=fields, refresh=refresh)

    def delete_document(self, index: str, doc_id: str, *, refresh: bool = False) -> None:
        self.client.delete(index=index, id=doc_id, refresh=refresh)

    def get_document(self, index: str, doc_id: str) -> Optional[Dict[str, Any]]:
        return self.client.get(index=index, id=doc_id).get("_source")

    def search_hits(
        self,
        index: str,
        query: Optional[Dict[str, Any]] = None,
        size: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Raw hits including ``_id`` and ``_source``."""
        kwargs: Dict[str, Any] = {"index": index, "query": query or {"match_all": {}}}
        if size is not None:
            kwargs["size"] = size
        response = self.client.search(**kwargs)
        return list(response["hits"]["hits"])

    def search_documents(
        self,
        index: str,
        query: Optional[Dict[str, Any]] = None,
        size: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """``_source`` of every hit, defaulting to ``match_all``."""
        return [
            hit["_source"]
            for hit in self.search_hits(index, query, size)
            if hit.get("_source") is not None
        ]

    def find_by_term(self, index: str, field: str, value: Any) -> List[Dict[str, Any]]:
        """Documents where ``field`` exactly equals ``value``."""
        return self.search_documents(index, {"term": {field: value}})

    def count_documents(self, index: str) -> int:
        return int(self.client.count(index=index)["count"])

    def wait_for_index(self, index: str, timeout: float = 30.0, interval: float = 1.0) -> None:
        """Block until ``index`` exists.

        Raises:
            PollTimeoutError: If the index did not appear within ``timeout``
        """
        wait_until(
            lambda: self.index_exists(index),
            timeout,
            interval,
            target=f"index {index}",
            transient=SEARCH_TRANSIENT_ERRORS,
        )

    def wait_for_document_count(
        self,
        index: str,
        expected_count: int,
        timeout: float = 30.0,
        interval: float = 1.0,
    ) -> int:
        """Block until ``index`` holds at least ``expected_count`` documents.

        Returns:
            The observed count
        """
        try:
            return wait_until(
                lambda: self.count_documents(index),
                timeout,
                interval,
                target=f"index {index}",
                predicate=lambda count: count >= expected_count,
                transient=SEARCH_TRANSIENT_ERRORS,
            )
        except PollTimeoutError as e:
            raise PollTimeoutError(
                f"index {index} reaching {expected_count} documents", timeout, e.last_error
            ) from None

    def health_status(self) -> Optional[str]:
        """Cluster health colour, or None if the cluster is unreachable."""
        try:
            return self.client.cluster.health()["status"]
        except SEARCH_TRANSIENT_ERRORS as e:
            logger.warning(f"Health check failed: {e}")
            return None

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> SearchStore:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
