from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from elasticsearch import ConnectionError as ESConnectionError
from elasticsearch import NotFoundError as ESNotFoundError

from app.core.errors import ServiceUnavailableError
from app.infra import search_client as search_module
from app.infra.search_client import INDEX_MAPPINGS, SearchClient, content_to_document, to_content_ids


def _content(**overrides):
    values = {
        "id": uuid4(),
        "creator_id": uuid4(),
        "title": "Ranking",
        "description": None,
        "body": "function score",
        "created_at": datetime(2026, 3, 1, tzinfo=timezone.utc),
        "tags_json": ["search"],
        "categories_json": ["tech"],
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def _client() -> tuple[SearchClient, MagicMock]:
    es = MagicMock()
    return SearchClient(es, index_name="content-test"), es


def test_content_to_document_maps_keyword_fields() -> None:
    content = _content()

    doc = content_to_document(content)

    assert doc["id"] == str(content.id)
    assert doc["creator_id"] == str(content.creator_id)
    assert doc["description"] == ""
    assert doc["tags"] == ["search"]
    assert doc["categories"] == ["tech"]
    assert doc["created_at"] == "2026-03-01T00:00:00+00:00"
    for field in ("id", "creator_id", "tags", "categories"):
        assert INDEX_MAPPINGS["properties"][field]["type"] == "keyword"


def test_to_content_ids_dedupes_and_skips_malformed_ids() -> None:
    first, second = uuid4(), uuid4()

    assert to_content_ids([str(first), "nope", str(second), str(first)]) == [first, second]


def test_search_ids_passes_window_and_sort() -> None:
    client, es = _client()
    es.search.return_value = {"hits": {"hits": [{"_id": "a"}, {"_id": "b"}]}}
    sort = [{"_score": {"order": "desc"}}, {"id": {"order": "asc"}}]

    ids = client.search_ids({"match_all": {}}, offset=20, size=10, sort=sort)

    assert ids == ["a", "b"]
    es.search.assert_called_once_with(
        index="content-test",
        query={"match_all": {}},
        from_=20,
        size=10,
        sort=sort,
        source=False,
    )


def test_search_ids_wraps_transport_errors() -> None:
    client, es = _client()
    es.search.side_effect = ESConnectionError("boom")

    with pytest.raises(ServiceUnavailableError) as exc:
        client.search_ids({"match_all": {}}, offset=0, size=10)

    assert exc.value.status_code == 503


def test_ensure_index_creates_missing_index() -> None:
    client, es = _client()
    es.indices.exists.side_effect = [False, True]

    assert client.ensure_index_exists() is True

    kwargs = es.indices.create.call_args.kwargs
    assert kwargs["index"] == "content-test"
    assert kwargs["mappings"] == INDEX_MAPPINGS


def test_ensure_index_skips_existing_index() -> None:
    client, es = _client()
    es.indices.exists.return_value = True

    assert client.ensure_index_exists() is True
    es.indices.create.assert_not_called()


def test_delete_document_ignores_missing_document() -> None:
    client, es = _client()
    es.delete.side_effect = ESNotFoundError("not found", meta=MagicMock(status=404), body={})

    client.delete_document(uuid4())

    es.delete.assert_called_once()


def test_index_document_wraps_errors() -> None:
    client, es = _client()
    es.index.side_effect = ESConnectionError("boom")

    with pytest.raises(ServiceUnavailableError):
        client.index_document(_content())


def test_ping_reports_false_on_transport_error() -> None:
    client, es = _client()
    es.ping.side_effect = ESConnectionError("boom")

    assert client.ping() is False


def test_reindex_all_bulk_indexes_documents(monkeypatch) -> None:
    client, es = _client()
    captured = {}

    def fake_bulk(target, actions, **kwargs):
        captured["target"] = target
        captured["actions"] = list(actions)
        captured["kwargs"] = kwargs
        return len(captured["actions"]), []

    monkeypatch.setattr(search_module.helpers, "bulk", fake_bulk)
    contents = [_content(), _content()]

    assert client.reindex_all(contents) == 2
    assert captured["target"] is es
    assert [action["_id"] for action in captured["actions"]] == [str(item.id) for item in contents]
    assert all(action["_index"] == "content-test" for action in captured["actions"])
    assert captured["kwargs"] == {"refresh": True}
