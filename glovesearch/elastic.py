"""Search-index client: index management, bulk loading, scrolling and search."""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

import requests

DEFAULT_BULK_BATCH = 500
DEFAULT_SCROLL_BATCH = 1000
SCROLL_TIMEOUT = "2m"

INDEX_SETTINGS: dict[str, Any] = {
    "settings": {
        "index": {
            "max_result_window": 50000,
            "similarity": {"content_similarity": {"type": "BM25"}},
        }
    },
    "mappings": {
        "properties": {
            "content": {"type": "text", "similarity": "content_similarity"},
        }
    },
}


class ElasticError(Exception):
    """Raised when the search server cannot be reached or reports an error."""


@dataclass(frozen=True)
class SearchHit:
    """A single matching document."""

    id: str
    content: str


@dataclass
class SearchResult:
    """Matching documents and the total number of matches."""

    hits: list[SearchHit] = field(default_factory=list)
    total: int = 0


def _extract_content(hits: Iterable[Any]) -> list[str]:
    docs = []
    for hit in hits:
        source = hit.get("_source") if isinstance(hit, dict) else None
        content = source.get("content") if isinstance(source, dict) else None
        if isinstance(content, str) and content:
            docs.append(content)
    return docs


class ElasticClient:
    """Client bound to one index; the index is created on connect if missing."""

    def __init__(self, addr: str, user: str, password: str, index_name: str) -> None:
        self.base_url = addr.rstrip("/")
        self.index_name = index_name
        self.session = requests.Session()
        self.session.auth = (user, password)
        self.session.verify = False
        self.ensure_index_exists()

    def _request(self, what: str, method: str, path: str, **kwargs: Any) -> requests.Response:
        try:
            return self.session.request(method, self.base_url + path, **kwargs)
        except requests.RequestException as exc:
            raise ElasticError(f"{what}: {exc}") from exc

    @staticmethod
    def _decode(response: requests.Response, what: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ElasticError(f"{what}: {exc}") from exc

    @property
    def _index_path(self) -> str:
        return f"/{self.index_name}"

    def ensure_index_exists(self) -> None:
        """Create the index with its settings unless it already exists."""
        response = self._request("checking index existence", "HEAD", self._index_path)
        if response.status_code == 200:
            return
        self._create_index()

    def _create_index(self) -> None:
        response = self._request("creating index", "PUT", self._index_path, json=INDEX_SETTINGS)
        if not response.ok:
            raise ElasticError(f"creating index: {response.text}")

    def insert_document(self, content: str) -> None:
        """Index one document and refresh so it is searchable at once."""
        response = self._request(
            "indexing document",
            "POST",
            f"{self._index_path}/_doc",
            params={"refresh": "true"},
            json={"content": content},
        )
        if not response.ok:
            raise ElasticError(f"indexing document: {response.text}")

    def bulk_insert(
        self,
        docs: Sequence[str],
        batch_size: int = DEFAULT_BULK_BATCH,
        on_progress: Callable[[int], None] | None = None,
    ) -> None:
        """Index documents in batches; ``on_progress`` gets the running total after each batch."""
        if batch_size <= 0:
            batch_size = DEFAULT_BULK_BATCH

        for start in range(0, len(docs), batch_size):
            batch = docs[start:start + batch_size]
            end = start + len(batch)
            lines = []
            for content in batch:
                lines.append('{"index":{}}')
                lines.append(json.dumps({"content": content}, ensure_ascii=False))
            payload = ("\n".join(lines) + "\n").encode("utf-8")

            response = self._request(
                "bulk insert",
                "POST",
                f"{self._index_path}/_bulk",
                data=payload,
                headers={"Content-Type": "application/x-ndjson"},
            )
            if not response.ok:
                raise ElasticError(f"bulk insert error: {response.status_code} {response.reason}")
            if on_progress is not None:
                on_progress(end)

        self._request("refreshing index", "POST", f"{self._index_path}/_refresh")

    def doc_count(self) -> int:
        """Return the number of documents in the index."""
        response = self._request("counting documents", "GET", f"{self._index_path}/_count")
        data = self._decode(response, "decoding count response")
        count = data.get("count", 0) if isinstance(data, dict) else 0
        return int(count)

    def scroll_all(self, batch_size: int = DEFAULT_SCROLL_BATCH) -> Iterator[list[str]]:
        """Yield the non-empty contents of every document, one page at a time."""
        if batch_size <= 0:
            batch_size = DEFAULT_SCROLL_BATCH

        query = {"query": {"match_all": {}}, "size": batch_size, "_source": ["content"]}
        response = self._request(
            "scroll init",
            "POST",
            f"{self._index_path}/_search",
            params={"scroll": SCROLL_TIMEOUT},
            json=query,
        )
        if not response.ok:
            raise ElasticError(f"scroll init error: {response.text}")
        page = self._decode(response, "decoding scroll response")

        scroll_id = ""
        try:
            while True:
                scroll_id = page.get("_scroll_id", "") or ""
                docs = _extract_content(page.get("hits", {}).get("hits", []) or [])
                if not docs:
                    break
                yield docs
                response = self._request(
                    "scroll",
                    "POST",
                    "/_search/scroll",
                    json={"scroll": SCROLL_TIMEOUT, "scroll_id": scroll_id},
                )
                page = self._decode(response, "decoding scroll page")
                if not isinstance(page, dict):
                    page = {}
                scroll_id = page.get("_scroll_id", "") or ""
        finally:
            if scroll_id:
                try:
                    self.session.delete(
                        self.base_url + "/_search/scroll", json={"scroll_id": [scroll_id]}
                    )
                except requests.RequestException:
                    pass

    def search(self, query: dict[str, Any]) -> SearchResult:
        """Run a search body against the index and return its hits."""
        response = self._request("search request", "POST", f"{self._index_path}/_search", json=query)
        if not response.ok:
            raise ElasticError(f"search error: {response.text}")
        data = self._decode(response, "decoding search response")

        hits_section = data.get("hits", {}) if isinstance(data, dict) else {}
        total = hits_section.get("total", {})
        result = SearchResult(total=int(total.get("value", 0)) if isinstance(total, dict) else 0)
        for hit in hits_section.get("hits", []) or []:
            source = hit.get("_source") or {}
            content = source.get("content") if isinstance(source, dict) else None
            result.hits.append(
                SearchHit(id=str(hit.get("_id", "")), content=content if isinstance(content, str) else "")
            )
        return result