"""Tests for resource downloads and link following, with HTTP mocked."""

from __future__ import annotations

from pathlib import Path

import requests

from html_entity_parser import (
    DownloadError,
    EntityList,
    HtmlParser,
    LinkFollowingError,
    ParserSettings,
    RowProcessingError,
)
from html_entity_parser import download
from html_entity_parser.download import ResourceDownloader, filename_from_url, resolve_url


class _FakeResponse:
    def __init__(self, body: str = "", status_code: int = 200):
        self.text = body
        self.content = body.encode("utf-8")
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


def _serve(monkeypatch, pages: dict[str, str]) -> list[str]:
    requested: list[str] = []

    def fake_get(url, **_kwargs):
        requested.append(url)
        if url not in pages:
            return _FakeResponse("", 404)
        return _FakeResponse(pages[url])

    monkeypatch.setattr(download.requests, "get", fake_get)
    return requested


def test_resolve_url_and_filename() -> None:
    assert resolve_url("img/a.png", "https://example.com/page/") == "https://example.com/page/img/a.png"
    assert resolve_url("https://cdn.example.com/x", "https://example.com/") == "https://cdn.example.com/x"
    assert resolve_url("img/a.png", None) == "img/a.png"
    assert filename_from_url("https://example.com/files/report%201.pdf") == "report_1.pdf"
    assert len(filename_from_url("https://example.com/")) == 16


def test_resource_downloader_writes_file(monkeypatch, tmp_path: Path) -> None:
    requested = _serve(monkeypatch, {"https://example.com/page/img/a.png": "PNG"})
    downloader = ResourceDownloader(tmp_path / "out", base_url="https://example.com/page/")

    saved = downloader("img/a.png")

    assert requested == ["https://example.com/page/img/a.png"]
    assert saved == str(tmp_path / "out" / "a.png")
    assert Path(saved).read_bytes() == b"PNG"


def _image_entities(handler=None) -> EntityList:
    entities = EntityList()
    entities.configure_entity("images").add_field("img").match("img").get_attribute("src").download(handler)
    return entities


def test_download_field_replaces_value_with_saved_path(monkeypatch, tmp_path: Path) -> None:
    _serve(monkeypatch, {"https://example.com/a.png": "PNG"})
    settings = ParserSettings(thread_count=1, download_directory=tmp_path)

    results = HtmlParser(_image_entities(), settings).parse('<img src="a.png">', base_url="https://example.com/")

    assert results["images"].rows == [[str(tmp_path / "a.png")]]


def test_path_download_handler_takes_precedence(monkeypatch) -> None:
    requested = _serve(monkeypatch, {})
    settings = ParserSettings(thread_count=1, download_handler=lambda url: "settings:" + url)

    results = HtmlParser(_image_entities(lambda url: "path:" + url), settings).parse('<img src="a.png">')

    assert results["images"].rows == [["path:a.png"]]
    assert requested == []


def test_settings_download_handler_is_used() -> None:
    settings = ParserSettings(thread_count=1, download_handler=lambda url: url.upper())

    results = HtmlParser(_image_entities(), settings).parse('<img src="a.png">')

    assert results["images"].rows == [["A.PNG"]]


def test_failed_download_keeps_url_and_reports_error(monkeypatch, tmp_path: Path) -> None:
    _serve(monkeypatch, {})
    errors: list[RowProcessingError] = []
    settings = ParserSettings(thread_count=1, download_directory=tmp_path, error_handler=errors.append)

    results = HtmlParser(_image_entities(), settings).parse('<img src="missing.png">', base_url="https://example.com/")

    assert results["images"].rows == [["missing.png"]]
    assert len(errors) == 1
    assert isinstance(errors[0], DownloadError)
    assert errors[0].details["url"] == "missing.png"
    assert isinstance(errors[0].cause, requests.HTTPError)


LISTING = """
<ul>
  <li><a href="/a">A</a></li>
  <li><a href="/b">B</a></li>
</ul>
"""


def _listing_entities() -> EntityList:
    entities = EntityList()
    follower = entities.configure_entity("listing").add_field("link").match("a").get_attribute("href").follow_link()
    follower.configure_entity("detail").add_field("title").match("h1").get_text()
    return entities


def test_follow_link_parses_linked_pages_per_row(monkeypatch) -> None:
    _serve(
        monkeypatch,
        {
            "https://example.com/a": "<h1>Page A</h1>",
            "https://example.com/b": "<h1>Page B</h1>",
        },
    )

    result = HtmlParser(_listing_entities(), ParserSettings(thread_count=1)).parse(
        LISTING, base_url="https://example.com/list"
    )["listing"]

    assert result.rows == [["/a"], ["/b"]]
    assert result.linked_results(0)["detail"].rows == [["Page A"]]
    assert result.linked_results(1)["detail"].rows == [["Page B"]]
    assert result.to_dict()["linked"]["1"]["detail"]["rows"] == [["Page B"]]


def test_failed_link_is_reported_and_other_rows_continue(monkeypatch) -> None:
    _serve(monkeypatch, {"https://example.com/b": "<h1>Page B</h1>"})
    errors: list[RowProcessingError] = []
    settings = ParserSettings(thread_count=1, error_handler=errors.append)

    result = HtmlParser(_listing_entities(), settings).parse(LISTING, base_url="https://example.com/list")["listing"]

    assert result.linked_results(0) is None
    assert result.linked_results(1)["detail"].rows == [["Page B"]]
    assert len(errors) == 1
    assert isinstance(errors[0], LinkFollowingError)
    assert errors[0].details["url"] == "https://example.com/a"
    assert errors[0].row == ["/a"]


def test_parse_url_fetches_the_page(monkeypatch) -> None:
    requested = _serve(monkeypatch, {"https://example.com/": "<p>remote</p>"})
    entities = EntityList()
    entities.configure_entity("e").add_field("v").match("p").get_text()

    results = HtmlParser(entities, ParserSettings(thread_count=1)).parse_url("https://example.com/")

    assert requested == ["https://example.com/"]
    assert results["e"].rows == [["remote"]]
