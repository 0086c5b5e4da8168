import json

import pytest

from flyte.web import Link, Response, find_url_by_rel, join, json_response


@pytest.mark.parametrize(
    "path, elements, expected",
    [
        ("test/", [], "test/"),
        ("test/", ["/v1/child"], "test/v1/child"),
        ("test", ["", ""], "test"),
        ("/a/", [], "/a/"),
        ("/a", ["b", "c/"], "/a/b/c/"),
        ("/a/", ["/b/", "c/"], "/a/b/c/"),
        ("http://www.example.com/", ["/a/", "/b/"], "http://www.example.com/a/b/"),
        ("http://www.example.com/", ["/a/", "b/"], "http://www.example.com/a/b/"),
        ("http://www.example.com/", ["/a", "b/"], "http://www.example.com/a/b/"),
        ("http://www.example.com/", ["a", "b"], "http://www.example.com/a/b"),
        ("http://www.example.com", ["/a/", "b/"], "http://www.example.com/a/b/"),
        ("http://www.example.com", ["/a/", "/b/"], "http://www.example.com/a/b/"),
        ("http://www.example.com", ["a/", "b/"], "http://www.example.com/a/b/"),
        ("http://www.example.com", ["a", "b"], "http://www.example.com/a/b"),
    ],
)
def test_join(path, elements, expected):
    assert join(path, *elements) == expected


def test_find_url_by_rel_matches_suffix():
    links = [
        Link("http://example.com/v1/audit/flows", "self"),
        Link("http://example.com/v1/packs/a/events", "http://example.com/swagger#/event"),
    ]
    assert find_url_by_rel(links, "event") == "http://example.com/v1/packs/a/events"
    assert find_url_by_rel(links, "self") == "http://example.com/v1/audit/flows"


def test_find_url_by_rel_returns_first_match():
    links = [Link("first", "x/help"), Link("second", "help")]
    assert find_url_by_rel(links, "help") == "first"


def test_find_url_by_rel_missing():
    with pytest.raises(LookupError, match='Could not find link with rel "up"'):
        find_url_by_rel([Link("a", "self")], "up")


def test_link_to_dict():
    assert Link("http://example.com/v1", "up").to_dict() == {"href": "http://example.com/v1", "rel": "up"}


def test_json_response_serialises_links():
    resp = json_response({"links": [Link("http://example.com/v1", "up")]})
    assert resp.status == 200
    assert resp.headers["Content-Type"] == "application/json"
    assert resp.body == b'{"links":[{"href":"http://example.com/v1","rel":"up"}]}'


def test_json_response_status_and_round_trip():
    resp = json_response({"a": [1, 2], "b": None}, 201)
    assert resp.status == 201
    assert json.loads(resp.body) == {"a": [1, 2], "b": None}


def test_json_response_rejects_unserialisable():
    with pytest.raises(TypeError):
        json_response({"a": object()})


def test_response_defaults():
    resp = Response()
    assert (resp.status, resp.headers, resp.body) == (200, {}, b"")