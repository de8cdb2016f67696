"""Outline store client for a remote store speaking JSON over HTTP."""

from __future__ import annotations

import logging
import time
from typing import Any, Final

import httpx

from doc2notebook.config import (
    DOC2NOTEBOOK_STORE_BACKOFF_S,
    DOC2NOTEBOOK_STORE_MAX_RETRIES,
    DOC2NOTEBOOK_STORE_TIMEOUT_S,
    DOC2NOTEBOOK_USER_AGENT,
)
from doc2notebook.exceptions import StoreError
from doc2notebook.schemas import HierarchyNode, HierarchyScope, PageDocument

logger = logging.getLogger(__name__)

RETRY_STATUS_CODES: Final[frozenset[int]] = frozenset({429, 500, 502, 503, 504})


class HttpOutlineStore:
    """Client for the REST interface of a remote outline store.

    Endpoints (all JSON):

    - ``POST /notebooks`` ``{"path"}`` -> ``{"id"}``
    - ``POST /notebooks/{id}/sections`` ``{"name"}`` -> ``{"id"}``
    - ``POST /sections/{id}/pages`` -> ``{"id"}``
    - ``GET /hierarchy/{id}?scope=...`` -> hierarchy node
    - ``PUT /hierarchy`` hierarchy node
    - ``GET|PUT /pages/{id}/content`` page document
    - ``GET /objects/{id}/link`` -> ``{"link"}``
    - ``GET /objects/{id}/parent`` -> ``{"id"}``

    Transient failures (429 and 5xx responses, transport errors) are
    retried with exponential backoff; anything else raises ``StoreError``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        client: httpx.Client | None = None,
        max_retries: int = DOC2NOTEBOOK_STORE_MAX_RETRIES,
        backoff_s: float = DOC2NOTEBOOK_STORE_BACKOFF_S,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.Client(
            base_url=base_url,
            timeout=httpx.Timeout(DOC2NOTEBOOK_STORE_TIMEOUT_S),
            headers={"User-Agent": DOC2NOTEBOOK_USER_AGENT},
        )
        self._max_retries = max_retries
        self._backoff_s = backoff_s

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "HttpOutlineStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def open_notebook(self, path: str) -> str:
        return self._request("POST", "/notebooks", json={"path": path})["id"]

    def open_section(self, name: str, notebook_id: str) -> str:
        return self._request("POST", f"/notebooks/{notebook_id}/sections", json={"name": name})["id"]

    def create_page(self, section_id: str) -> str:
        return self._request("POST", f"/sections/{section_id}/pages")["id"]

    def get_hierarchy(self, object_id: str, scope: HierarchyScope) -> HierarchyNode:
        data = self._request("GET", f"/hierarchy/{object_id}", params={"scope": scope.value})
        return HierarchyNode.model_validate(data)

    def update_hierarchy(self, node: HierarchyNode) -> None:
        self._request("PUT", "/hierarchy", json=node.model_dump(mode="json"))

    def get_page_content(self, page_id: str) -> PageDocument:
        return PageDocument.model_validate(self._request("GET", f"/pages/{page_id}/content"))

    def update_page_content(self, document: PageDocument) -> None:
        self._request("PUT", f"/pages/{document.id}/content", json=document.model_dump(mode="json"))

    def get_hyperlink(self, object_id: str) -> str:
        return self._request("GET", f"/objects/{object_id}/link")["link"]

    def get_parent(self, object_id: str) -> str:
        return self._request("GET", f"/objects/{object_id}/parent")["id"]

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        last_exc: Exception | None = None

        for attempt in range(self._max_retries + 1):
            try:
                response = self._client.request(method, url, **kwargs)

                if response.status_code == 404:
                    raise StoreError(f"Not found: {method} {url}")

                if response.status_code in RETRY_STATUS_CODES:
                    last_exc = StoreError(f"HTTP {response.status_code} from {method} {url}")
                else:
                    response.raise_for_status()
                    if not response.content:
                        return None
                    return response.json()
            except (httpx.RequestError, httpx.HTTPStatusError) as exc:
                last_exc = exc
                if isinstance(exc, httpx.HTTPStatusError):
                    break

            if attempt < self._max_retries:
                backoff = self._backoff_s * (2**attempt)
                logger.debug("Retrying %s %s in %.2fs", method, url, backoff)
                time.sleep(backoff)

        raise StoreError(f"Store request {method} {url} failed: {last_exc}") from last_exc
