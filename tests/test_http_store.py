"""Tests for the HTTP outline store client."""

from __future__ import annotations

import json
from unittest.mock import patch

import httpx
import pytest

from doc2notebook.exceptions import StoreError
from doc2notebook.schemas import HierarchyNode, HierarchyScope, NodeKind, PageDocument
from doc2notebook.store.http import RETRY_STATUS_CODES, HttpOutlineStore


def _store(handler, **kwargs) -> HttpOutlineStore:
    client = httpx.Client(base_url="http://store.test", transport=httpx.MockTransport(handler))
    kwargs.setdefault("backoff_s", 0.0)
    return HttpOutlineStore("http://store.test", client=client, **kwargs)


class TestRetryStatusCodes:
    """Tests for RETRY_STATUS_CODES constant."""

    def test_contains_expected_codes(self) -> None:
        assert RETRY_STATUS_CODES == frozenset({429, 500, 502, 503, 504})


class TestHttpOutlineStore:
    """Tests for HttpOutlineStore requests and error handling."""

    def test_open_notebook_posts_path(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, request.url.path, json.loads(request.content)))
            return httpx.Response(200, json={"id": "nb-1"})

        assert _store(handler).open_notebook("/data/Generic") == "nb-1"
        assert seen == [("POST", "/notebooks", {"path": "/data/Generic"})]

    def test_get_hierarchy_parses_snapshot(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["scope"] == "pages"
            return httpx.Response(
                200,
                json={
                    "id": "sec-1",
                    "name": "Doc",
                    "kind": "section",
                    "children": [{"id": "pg-1", "name": "Intro", "kind": "page", "page_level": 2}],
                },
            )

        node = _store(handler).get_hierarchy("sec-1", HierarchyScope.PAGES)

        assert node.kind is NodeKind.SECTION
        assert node.pages()[0].page_level == 2

    def test_update_page_content_sends_document(self) -> None:
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append((request.method, request.url.path, json.loads(request.content)))
            return httpx.Response(204)

        _store(handler).update_page_content(PageDocument(id="pg-1", title="T"))

        method, path, body = bodies[0]
        assert (method, path) == ("PUT", "/pages/pg-1/content")
        assert body["title"] == "T"

    def test_update_hierarchy_sends_node(self) -> None:
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200)

        _store(handler).update_hierarchy(HierarchyNode(id="sec-1", name="S", kind=NodeKind.SECTION))

        assert bodies[0]["kind"] == "section"

    def test_404_raises_without_retry(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(404)

        with pytest.raises(StoreError, match="Not found"):
            _store(handler, max_retries=3).get_hyperlink("pg-9")
        assert len(calls) == 1

    def test_retries_transient_status(self) -> None:
        responses = iter([httpx.Response(503), httpx.Response(200, json={"link": "onenote:x"})])

        def handler(request: httpx.Request) -> httpx.Response:
            return next(responses)

        assert _store(handler, max_retries=2).get_hyperlink("pg-1") == "onenote:x"

    def test_raises_after_max_retries(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500)

        with patch("doc2notebook.store.http.time.sleep") as sleep:
            with pytest.raises(StoreError, match="failed"):
                _store(handler, max_retries=2, backoff_s=0.5).get_parent("pg-1")

        assert len(calls) == 3
        assert [c.args[0] for c in sleep.call_args_list] == [0.5, 1.0]

    def test_retries_transport_errors(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, json={"id": "pg-7"})

        assert _store(handler, max_retries=1).create_page("sec-1") == "pg-7"

    def test_client_error_not_retried(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(400)

        with pytest.raises(StoreError) as excinfo:
            _store(handler, max_retries=3).open_section("S", "nb-1")

        assert len(calls) == 1
        assert isinstance(excinfo.value.__cause__, httpx.HTTPStatusError)

    def test_close_leaves_injected_client_open(self) -> None:
        client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        with HttpOutlineStore("http://store.test", client=client):
            pass
        assert not client.is_closed
