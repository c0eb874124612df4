from __future__ import annotations

import pytest

from funding_pipeline.config import ScraperSettings, SourceSettings
from funding_pipeline.scrapers import (
    HtmlTableScraper,
    NotionScraper,
    ScraperRegistrationError,
    create_scraper,
    registered_scraper_types,
)
from funding_pipeline.scrapers import notion as notion_module


class _FakeCell:
    def __init__(self, text: str | None) -> None:
        self._text = text

    def text_content(self) -> str | None:
        return self._text


class _FakeRow:
    def __init__(self, *texts: str | None) -> None:
        self._cells = [_FakeCell(text) for text in texts]

    def query_selector_all(self, selector: str) -> list[_FakeCell]:
        assert selector == notion_module.CELL_SELECTOR
        return self._cells


class _FakePage:
    def __init__(self, rows: list[_FakeRow], goto_error: Exception | None = None) -> None:
        self.rows = rows
        self.goto_error = goto_error
        self.visited: list[tuple[str, str, int]] = []

    def goto(self, url: str, *, wait_until: str, timeout: int) -> None:
        if self.goto_error is not None:
            raise self.goto_error
        self.visited.append((url, wait_until, timeout))

    def wait_for_selector(self, selector: str, *, timeout: int) -> None:
        assert selector == notion_module.CONTENT_SELECTOR

    def query_selector_all(self, selector: str) -> list[_FakeRow]:
        assert selector == notion_module.ROW_SELECTOR
        return self.rows


class _FakeBrowser:
    def __init__(self, page: _FakePage) -> None:
        self.page = page
        self.closed = False

    def new_page(self) -> _FakePage:
        return self.page

    def close(self) -> None:
        self.closed = True


class _FakeChromium:
    def __init__(self, browser: _FakeBrowser) -> None:
        self.browser = browser
        self.launch_kwargs: dict = {}

    def launch(self, **kwargs) -> _FakeBrowser:
        self.launch_kwargs = kwargs
        return self.browser


class _FakePlaywright:
    def __init__(self, page: _FakePage) -> None:
        self.chromium = _FakeChromium(_FakeBrowser(page))

    def __enter__(self) -> _FakePlaywright:
        return self

    def __exit__(self, *exc_info) -> None:
        return None


class _DummyResponse:
    def __init__(self, text: str, status_ok: bool = True) -> None:
        self.text = text
        self.status_ok = status_ok

    def raise_for_status(self) -> None:
        if not self.status_ok:
            raise RuntimeError("503 Server Error")


def _notion_settings() -> SourceSettings:
    return SourceSettings(
        id="notion-directory",
        type="notion",
        url="https://www.notion.so/example/directory",
        source="notion-directory",
        requires_js_rendering=True,
    )


def test_notion_scraper_reads_first_cell_of_each_row(monkeypatch: pytest.MonkeyPatch) -> None:
    page = _FakePage(
        [
            _FakeRow("Y Combinator", "Accelerator"),
            _FakeRow("  Techstars  "),
            _FakeRow("", "Untitled"),
            _FakeRow(None),
            _FakeRow(),
        ]
    )
    playwright = _FakePlaywright(page)
    monkeypatch.setattr(notion_module, "sync_playwright", lambda: playwright)

    scraper = NotionScraper(
        _notion_settings(),
        ScraperSettings(navigation_timeout_seconds=20, render_timeout_seconds=5),
    )
    result = scraper.scrape()

    assert result.ok
    assert [item["name"] for item in result.opportunities] == ["Y Combinator", "Techstars"]
    assert result.opportunities[0]["source"] == "notion-directory"
    assert result.opportunities[0]["createdAt"].endswith("Z")
    assert page.visited == [("https://www.notion.so/example/directory", "networkidle", 20000)]
    assert playwright.chromium.launch_kwargs == {"headless": True}
    assert playwright.chromium.browser.closed


def test_notion_scraper_reports_navigation_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    page = _FakePage([], goto_error=RuntimeError("net::ERR_NAME_NOT_RESOLVED"))
    playwright = _FakePlaywright(page)
    monkeypatch.setattr(notion_module, "sync_playwright", lambda: playwright)

    result = NotionScraper(_notion_settings()).scrape()

    assert not result.ok
    assert result.opportunities == []
    assert result.errors == [
        "Failed to scrape https://www.notion.so/example/directory: net::ERR_NAME_NOT_RESOLVED"
    ]
    assert playwright.chromium.browser.closed


def test_html_scraper_extracts_table_rows(monkeypatch: pytest.MonkeyPatch) -> None:
    html = """
    <table>
      <tr><th>Name</th><th>Amount</th></tr>
      <tr><td><a href="/grants/smart">Smart &amp; Green Grant</a></td><td>£50k</td></tr>
      <tr><td><b>Seed   Fund</b></td><td>$100k</td></tr>
      <tr><td> </td><td>blank</td></tr>
    </table>
    """
    calls: list[dict] = []

    def _fake_get(url: str, **kwargs) -> _DummyResponse:
        calls.append({"url": url, **kwargs})
        return _DummyResponse(html)

    monkeypatch.setattr("requests.get", _fake_get)

    settings = SourceSettings(
        id="gov-grants",
        type="html",
        url="https://example.org/funding/",
        source="gov-grants",
        options={"timeout_seconds": 5},
    )
    result = HtmlTableScraper(settings).scrape()

    assert result.ok
    assert [item["name"] for item in result.opportunities] == ["Smart & Green Grant", "Seed Fund"]
    assert result.opportunities[0]["sourceUrl"] == "https://example.org/grants/smart"
    assert "sourceUrl" not in result.opportunities[1]
    assert calls[0]["timeout"] == 5


def test_html_scraper_reports_http_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("requests.get", lambda *args, **kwargs: _DummyResponse("", status_ok=False))

    settings = SourceSettings(id="gov-grants", type="html", url="https://example.org/funding/")
    result = HtmlTableScraper(settings).scrape()

    assert result.errors == ["Failed to scrape https://example.org/funding/: 503 Server Error"]


def test_registry_builds_scrapers_by_type() -> None:
    assert {"html", "notion"} <= set(registered_scraper_types())
    assert isinstance(create_scraper(_notion_settings()), NotionScraper)

    with pytest.raises(ScraperRegistrationError, match="Unknown source type 'airtable'"):
        create_scraper(SourceSettings(id="x", type="airtable", url="https://airtable.com/x"))


def test_scrape_result_document_uses_z_suffix() -> None:
    result = NotionScraper(_notion_settings())._failure(RuntimeError("boom"))

    document = result.to_document()

    assert document["opportunities"] == []
    assert document["scrapedAt"].endswith("Z")


class _BrokenRow:
    def query_selector_all(self, selector: str) -> list[_FakeCell]:
        raise RuntimeError("element is detached from the document")


def test_notion_scraper_skips_rows_that_fail_to_read(monkeypatch: pytest.MonkeyPatch) -> None:
    page = _FakePage([_FakeRow("Y Combinator"), _BrokenRow(), _FakeRow("Techstars")])
    monkeypatch.setattr(notion_module, "sync_playwright", lambda: _FakePlaywright(page))

    result = NotionScraper(_notion_settings()).scrape()

    assert result.ok
    assert [item["name"] for item in result.opportunities] == ["Y Combinator", "Techstars"]
